"""
Position provider.

Serves registered LP positions as snapshots and refreshes them from the
position manager.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import FULL_RANGE_TICK_TOLERANCE, MAX_TICK, MIN_TICK
from app.models.lp_position import LpPosition
from app.repositories.lp_position_repository import LpPositionRepository
from app.services.blockchain.pool_reader import PoolReader
from app.services.rewards.types import PositionSnapshot
from app.utils.datetime_utils import ensure_utc


def snapshot_from_model(position: LpPosition) -> PositionSnapshot:
    """Convert a stored position to a snapshot."""
    return PositionSnapshot(
        position_id=position.id,
        user_id=position.user_id,
        user_address=position.user_address.lower(),
        nft_id=int(position.nft_id),
        pool_address=position.pool_address.lower(),
        value_usd=Decimal(position.value_usd or 0),
        liquidity=int(position.liquidity or 0),
        tick_lower=position.tick_lower,
        tick_upper=position.tick_upper,
        is_full_range=position.is_full_range,
        is_in_range=position.is_in_range,
        created_at=ensure_utc(position.created_at),
    )


def is_full_range(tick_lower: int, tick_upper: int) -> bool:
    """Whether tick bounds span the whole price range."""
    return (
        tick_lower <= MIN_TICK + FULL_RANGE_TICK_TOLERANCE
        and tick_upper >= MAX_TICK - FULL_RANGE_TICK_TOLERANCE
    )


class DatabasePositionProvider:
    """PositionProvider over the lp_positions table and the pool reader."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        pool_reader: PoolReader,
    ) -> None:
        self.session_maker = session_maker
        self.pool_reader = pool_reader
        self._log = logger.bind(service="PositionProvider")

    async def list_eligible_positions(self) -> list[PositionSnapshot]:
        """Open, reward-eligible positions."""
        async with self.session_maker() as session:
            positions = await LpPositionRepository(session).get_eligible()
        return [snapshot_from_model(p) for p in positions]

    async def current_tick(self, pool_address: str) -> int:
        """Live pool tick."""
        return await self.pool_reader.current_tick(pool_address)

    async def fetch_live_snapshot(self, snapshot: PositionSnapshot) -> PositionSnapshot:
        """
        Refresh a snapshot from chain.

        The USD value is rescaled by the change in liquidity since the stored
        snapshot; a position with no liquidity left is worth 0. The refreshed
        values are written back so later fallbacks start from them.

        Raises:
            UpstreamDataError: If the position cannot be read
        """
        onchain = await self.pool_reader.position(snapshot.nft_id)

        if onchain.liquidity <= 0:
            value_usd = Decimal("0")
        elif snapshot.liquidity > 0:
            value_usd = (
                snapshot.value_usd * Decimal(onchain.liquidity) / Decimal(snapshot.liquidity)
            )
        else:
            value_usd = snapshot.value_usd

        full_range = is_full_range(onchain.tick_lower, onchain.tick_upper)
        refreshed = PositionSnapshot(
            position_id=snapshot.position_id,
            user_id=snapshot.user_id,
            user_address=snapshot.user_address,
            nft_id=snapshot.nft_id,
            pool_address=snapshot.pool_address,
            value_usd=value_usd,
            liquidity=onchain.liquidity,
            tick_lower=onchain.tick_lower,
            tick_upper=onchain.tick_upper,
            is_full_range=full_range,
            is_in_range=snapshot.is_in_range,
            created_at=snapshot.created_at,
        )

        async with self.session_maker() as session:
            await LpPositionRepository(session).update(
                snapshot.position_id,
                value_usd=value_usd,
                liquidity=Decimal(onchain.liquidity),
                tick_lower=onchain.tick_lower,
                tick_upper=onchain.tick_upper,
                is_full_range=full_range,
            )
            await session.commit()

        if onchain.liquidity <= 0 and snapshot.liquidity > 0:
            self._log.info(
                f"Position {snapshot.position_id} has no liquidity left on-chain",
                extra={"position_id": snapshot.position_id, "nft_id": snapshot.nft_id},
            )
        return refreshed
