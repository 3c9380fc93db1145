"""
Reward recalculation pass.

Refreshes every eligible position, recomputes its daily reward against the
current treasury window and accrues the elapsed time into the ledger.
Per-position failures are isolated; only an unreadable treasury window
aborts the pass.
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import DEFAULT_IN_RANGE_WINDOW_DAYS
from app.repositories.lp_position_repository import LpPositionRepository
from app.services.rewards.interfaces import PositionProvider, TreasuryConfigProvider
from app.services.rewards.reward_calculator import RewardCalculator
from app.services.rewards.reward_ledger import RewardLedger
from app.services.rewards.types import (
    DataSource,
    PositionSnapshot,
    RecalculationReport,
    RewardCalculation,
    TreasuryWindow,
)
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import RewardEngineError, UpstreamDataError


class RewardRecalculationService:
    """Runs recalculation passes over all eligible positions."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        positions: PositionProvider,
        treasury: TreasuryConfigProvider,
        calculator: RewardCalculator | None = None,
        *,
        concurrency: int = 3,
        in_range_window: timedelta = timedelta(days=DEFAULT_IN_RANGE_WINDOW_DAYS),
    ) -> None:
        """
        Initialize recalculation service.

        Args:
            session_maker: Session factory for ledger writes
            positions: Position snapshot source
            treasury: Treasury window source
            calculator: Reward formula (default instance if omitted)
            concurrency: Parallel upstream position refreshes
            in_range_window: Averaging window of the in-range ratio
        """
        self.session_maker = session_maker
        self.positions = positions
        self.treasury = treasury
        self.calculator = calculator or RewardCalculator()
        self.concurrency = max(1, concurrency)
        self.in_range_window = in_range_window
        self._log = logger.bind(service="RewardRecalculation")

    async def _read_window(self) -> TreasuryWindow:
        try:
            return await self.treasury.current_window()
        except RewardEngineError:
            raise
        except Exception as e:
            raise UpstreamDataError(
                "Treasury configuration is unavailable", reason=type(e).__name__
            ) from e

    async def _refresh_all(
        self, snapshots: list[PositionSnapshot]
    ) -> list[tuple[PositionSnapshot, DataSource]]:
        """Refresh snapshots in a bounded pool; failures keep the persisted one."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def refresh(snapshot: PositionSnapshot) -> tuple[PositionSnapshot, DataSource]:
            async with semaphore:
                try:
                    return await self.positions.fetch_live_snapshot(snapshot), DataSource.LIVE
                except Exception as e:
                    self._log.warning(
                        f"Position {snapshot.position_id} refresh failed, "
                        f"using stored snapshot: {type(e).__name__}: {e}"
                    )
                    return snapshot, DataSource.CACHED

        return list(await asyncio.gather(*(refresh(s) for s in snapshots)))

    async def _tick_for(
        self, pool_address: str, cache: dict[str, int | None]
    ) -> int | None:
        """Pool tick, read once per pool per pass. None when unreadable."""
        if pool_address not in cache:
            try:
                cache[pool_address] = await self.positions.current_tick(pool_address)
            except Exception as e:
                self._log.warning(
                    f"Tick read failed for pool {pool_address}: {type(e).__name__}: {e}"
                )
                cache[pool_address] = None
        return cache[pool_address]

    async def _process_position(
        self,
        ledger: RewardLedger,
        position_repo: LpPositionRepository,
        snapshot: PositionSnapshot,
        source: DataSource,
        window: TreasuryWindow,
        total_liquidity: Decimal,
        daily_budget: Decimal,
        tick: int | None,
        now: datetime,
    ) -> RewardCalculation:
        if tick is None and not snapshot.is_full_range:
            source = DataSource.CACHED

        in_range = self.calculator.is_in_range(snapshot, tick)
        if tick is not None and not snapshot.is_full_range and in_range != snapshot.is_in_range:
            await position_repo.update(snapshot.position_id, is_in_range=in_range)

        record = await ledger.get_record(snapshot.position_id)
        if record is None:
            ratio = Decimal("1") if in_range else Decimal("0")
        else:
            ratio = self.calculator.update_in_range_ratio(
                record.in_range_ratio,
                in_range,
                now - record.last_reward_calculation,
                self.in_range_window,
            )

        calculation = self.calculator.calculate(
            snapshot,
            total_liquidity,
            daily_budget,
            program_duration_days=window.duration_days,
            current_tick=tick,
            in_range_ratio=ratio,
            now=now,
            data_source=source,
        )
        await ledger.upsert(snapshot, calculation, now, accrue_until=window.end_date)
        return calculation

    async def run(self, now: datetime | None = None) -> RecalculationReport:
        """
        Execute one pass.

        Args:
            now: Pass time (defaults to current UTC time)

        Returns:
            RecalculationReport

        Raises:
            UpstreamDataError: If the treasury window or the position list
                cannot be read
        """
        now = now or utc_now()
        report = RecalculationReport(started_at=now)

        window = await self._read_window()
        if now < window.start_date:
            self._log.info("Reward program has not started yet, nothing to accrue")
            report.finished_at = utc_now()
            return report

        try:
            snapshots = await self.positions.list_eligible_positions()
        except RewardEngineError:
            raise
        except Exception as e:
            raise UpstreamDataError(
                "Eligible positions are unavailable", reason=type(e).__name__
            ) from e

        refreshed = await self._refresh_all(snapshots)
        total_liquidity = sum(
            (s.value_usd for s, _ in refreshed if s.value_usd > 0), Decimal("0")
        )
        daily_budget = window.daily_budget
        report.total_active_liquidity = total_liquidity

        tick_cache: dict[str, int | None] = {}
        async with self.session_maker() as session:
            ledger = RewardLedger(session)
            position_repo = LpPositionRepository(session)

            for snapshot, source in refreshed:
                tick = await self._tick_for(snapshot.pool_address, tick_cache)
                try:
                    async with session.begin_nested():
                        calculation = await self._process_position(
                            ledger, position_repo, snapshot, source, window,
                            total_liquidity, daily_budget, tick, now,
                        )
                except Exception as e:
                    report.skipped += 1
                    report.failed_positions.append(snapshot.position_id)
                    self._log.error(
                        f"Position {snapshot.position_id} skipped: {type(e).__name__}: {e}",
                        extra={"position_id": snapshot.position_id},
                    )
                    continue

                report.processed += 1
                if calculation.data_source != DataSource.LIVE:
                    report.stale += 1
                report.total_daily_rewards += calculation.daily_reward

            report.deactivated = await ledger.deactivate_missing(
                [s.position_id for s, _ in refreshed]
            )
            await session.commit()

        report.finished_at = utc_now()
        self._log.info(
            f"Recalculation complete: {report.processed} processed, "
            f"{report.skipped} skipped, {report.stale} stale, "
            f"daily total {report.total_daily_rewards}",
            extra={
                "processed": report.processed,
                "skipped": report.skipped,
                "stale": report.stale,
                "total_active_liquidity": str(total_liquidity),
            },
        )
        return report
