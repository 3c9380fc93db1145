"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base

# Blockchain state
from app.models.blockchain_sync_state import BlockchainSyncState
from app.models.claim_event import ClaimEvent

# Program configuration
from app.models.treasury_config import TreasuryConfig

# Positions and rewards
from app.models.daily_reward import DailyReward
from app.models.lp_position import LpPosition
from app.models.reward import RewardRecord

__all__ = [
    # Base
    "Base",
    # Blockchain state
    "BlockchainSyncState",
    "ClaimEvent",
    # Program configuration
    "TreasuryConfig",
    # Positions and rewards
    "LpPosition",
    "RewardRecord",
    "DailyReward",
]
