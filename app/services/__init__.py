"""
Services.

Business logic layer.
"""

# Reward engine
from app.services.rewards import (
    ClaimAuthorizationService,
    RewardCalculator,
    RewardEngine,
    RewardLedger,
    build_engine,
)

__all__ = [
    "RewardEngine",
    "build_engine",
    "RewardCalculator",
    "RewardLedger",
    "ClaimAuthorizationService",
]
