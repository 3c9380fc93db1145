"""Production collaborators of the reward engine."""

from app.services.providers.position_provider import DatabasePositionProvider
from app.services.providers.treasury_provider import DatabaseTreasuryConfigProvider

__all__ = [
    "DatabasePositionProvider",
    "DatabaseTreasuryConfigProvider",
]
