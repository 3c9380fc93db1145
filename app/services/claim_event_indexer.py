"""
Claim event indexer.

Indexes RewardClaimed events of the claim contract together with their
block timestamps, so the claim lock is measured from the actual on-chain
claim time. Progress is kept in blockchain_sync_state and scanning resumes
where it stopped.
"""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import CLAIM_EVENTS_SYNC_KEY
from app.repositories.claim_event_repository import ClaimEventRepository
from app.repositories.sync_state_repository import SyncStateRepository
from app.services.blockchain.claim_contract_client import Web3ClaimContractClient
from app.utils.exceptions import UpstreamDataError
from app.utils.datetime_utils import utc_now
from app.utils.security import mask_address, mask_tx_hash


class ClaimEventIndexer:
    """
    Indexer for claim events; also the engine's LastClaimProvider.

    Scans in fixed block chunks from the last synced block to the chain
    head. Each chunk is committed with its progress, so a failure loses
    at most one chunk of work.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        client: Web3ClaimContractClient,
        *,
        start_block: int = 0,
        chunk_size: int = 2000,
        on_claim: Callable[[str, int], None] | None = None,
    ) -> None:
        """
        Initialize indexer.

        Args:
            session_maker: Session factory
            client: Claim contract client
            start_block: First block of a fresh scan (contract deployment)
            chunk_size: Blocks per log query
            on_claim: Called with (address, next nonce) for each new claim
        """
        self.session_maker = session_maker
        self.client = client
        self.start_block = start_block
        self.chunk_size = max(1, chunk_size)
        self.on_claim = on_claim
        self._log = logger.bind(service="ClaimEventIndexer")

    async def sync(self) -> int:
        """
        Index new claim events up to the chain head.

        Returns:
            Number of newly stored events

        Raises:
            UpstreamDataError: If the chain cannot be read; progress up to
                the failed chunk is kept and the error is recorded
        """
        latest = await self.client.latest_block()
        indexed = 0
        observed: list[tuple[str, int]] = []

        async with self.session_maker() as session:
            state = await SyncStateRepository(session).get_or_create(
                CLAIM_EVENTS_SYNC_KEY, self.start_block
            )
            events_repo = ClaimEventRepository(session)
            current = state.last_synced_block + 1

            if current > latest:
                await session.commit()
                return 0

            block_times: dict[int, datetime] = {}
            while current <= latest:
                chunk_end = min(current + self.chunk_size - 1, latest)
                try:
                    events = await self.client.reward_claimed_events(current, chunk_end)
                    for event in events:
                        if event.block_number not in block_times:
                            block_times[event.block_number] = (
                                await self.client.block_timestamp(event.block_number)
                            )
                        stored = await events_repo.add_if_missing(
                            user_address=event.user_address,
                            amount_wei=Decimal(event.amount_wei),
                            nonce=event.nonce,
                            block_number=event.block_number,
                            tx_hash=event.tx_hash,
                            log_index=event.log_index,
                            claimed_at=block_times[event.block_number],
                        )
                        if stored:
                            self._log.debug(
                                f"Claim by {mask_address(event.user_address)} "
                                f"nonce={event.nonce} tx={mask_tx_hash(event.tx_hash)}"
                            )
                            indexed += 1
                            state.events_indexed += 1
                            observed.append((event.user_address, event.nonce + 1))
                except UpstreamDataError as e:
                    state.last_error = str(e)
                    state.error_count += 1
                    await session.commit()
                    self._log.error(
                        f"Claim event scan failed at blocks {current}-{chunk_end}: {e}"
                    )
                    raise

                state.last_synced_block = chunk_end
                state.last_synced_at = utc_now()
                state.last_error = None
                await session.commit()
                current = chunk_end + 1

        if self.on_claim is not None:
            for address, next_nonce in observed:
                self.on_claim(address, next_nonce)

        if indexed:
            self._log.info(
                f"Indexed {indexed} claim events up to block {latest}",
                extra={"indexed": indexed, "latest_block": latest},
            )
        return indexed

    async def last_claim_at(self, user_address: str) -> datetime | None:
        """Block time of the latest indexed claim of an address."""
        async with self.session_maker() as session:
            return await ClaimEventRepository(session).get_last_claim_time(user_address)

    async def is_behind(self, user_address: str, claimed_on_chain_wei: int) -> bool:
        """
        Whether the index is missing claims the contract already counts.

        True when the indexed claim amounts of the address add up to less
        than the claimed amount the contract reports.
        """
        if claimed_on_chain_wei <= 0:
            return False
        async with self.session_maker() as session:
            indexed_wei = await ClaimEventRepository(session).sum_amount_for_address(
                user_address
            )
        if indexed_wei < claimed_on_chain_wei:
            self._log.warning(
                f"Claims of {mask_address(user_address)} are not fully indexed yet: "
                f"{indexed_wei} of {claimed_on_chain_wei} wei"
            )
            return True
        return False
