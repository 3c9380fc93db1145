"""
Sync state repository.

Data access layer for BlockchainSyncState model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.blockchain_sync_state import BlockchainSyncState
from app.repositories.base import BaseRepository


class SyncStateRepository(BaseRepository[BlockchainSyncState]):
    """Repository for event scanning progress."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(BlockchainSyncState, session)

    async def get_or_create(
        self, sync_key: str, start_block: int = 0
    ) -> BlockchainSyncState:
        """
        Get the state of a stream, creating it at start_block if missing.

        Args:
            sync_key: Stream name
            start_block: First block to scan for a new stream

        Returns:
            Sync state row
        """
        state = await self.get_by(sync_key=sync_key)
        if state is None:
            state = await self.create(
                sync_key=sync_key,
                first_synced_block=start_block,
                last_synced_block=max(0, start_block - 1),
            )
        return state
