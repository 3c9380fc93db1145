"""
Reward calculator.

Single source of truth for the reward formula:

    daily_reward = liquidity_weight * time_coefficient * daily_budget
                   * in_range_multiplier

All inputs and outputs are Decimal. The calculator is pure; persistence
lives in RewardLedger.
"""

import math
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from loguru import logger

from app.config.constants import (
    DAYS_PER_YEAR,
    IN_RANGE_MULTIPLIER_CEILING,
    IN_RANGE_MULTIPLIER_FLOOR,
    TIME_COEFFICIENT_MAX,
    TIME_COEFFICIENT_MIN,
    TIME_COEFFICIENT_SPAN,
)
from app.services.rewards.types import (
    DataSource,
    PositionSnapshot,
    RewardCalculation,
)

ZERO = Decimal("0")
ONE = Decimal("1")


def _clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    return max(lower, min(value, upper))


class RewardCalculator:
    """
    Reward calculator for LP positions.

    Stateless; one instance is shared by the recalculation pass and the
    read-side services.
    """

    def daily_budget(
        self, total_allocation: Decimal, duration_days: int
    ) -> Decimal:
        """
        Spread the treasury allocation evenly over the program.

        Args:
            total_allocation: Treasury allocation (tokens)
            duration_days: Program duration in days

        Returns:
            Daily budget, 0 for a non-positive duration or allocation

        Example:
            >>> RewardCalculator().daily_budget(Decimal("500000"), 365)
            Decimal("1369.863013698630136986301370")
        """
        if duration_days <= 0 or total_allocation <= 0:
            logger.warning(
                "Invalid treasury window for daily budget",
                extra={
                    "total_allocation": str(total_allocation),
                    "duration_days": duration_days,
                },
            )
            return ZERO
        return total_allocation / Decimal(duration_days)

    def liquidity_weight(
        self, value_usd: Decimal, total_active_liquidity_usd: Decimal
    ) -> Decimal:
        """
        Share of the position in the total eligible liquidity.

        Args:
            value_usd: Position value
            total_active_liquidity_usd: Sum of all eligible position values

        Returns:
            Weight in [0, 1]
        """
        if total_active_liquidity_usd <= 0 or value_usd <= 0:
            return ZERO
        return _clamp(value_usd / total_active_liquidity_usd, ZERO, ONE)

    def days_active(self, created_at: datetime, now: datetime) -> int:
        """Whole days since the position was created, rounded up, never negative."""
        elapsed = now - created_at
        if elapsed <= timedelta(0):
            return 0
        return math.ceil(elapsed / timedelta(days=1))

    def time_coefficient(self, days_active: int, program_duration_days: int) -> Decimal:
        """
        Loyalty multiplier growing linearly from 0.6 to 1.0 over the program.

        Formula: 0.6 + 0.4 * min(days_active / program_duration_days, 1)

        Args:
            days_active: Days since the position was created
            program_duration_days: Program length in days

        Returns:
            Coefficient in [0.6, 1.0]

        Example:
            >>> RewardCalculator().time_coefficient(30, 365)
            Decimal("0.6328767123287671232876712329")
        """
        if program_duration_days <= 0:
            return TIME_COEFFICIENT_MAX
        if days_active <= 0:
            return TIME_COEFFICIENT_MIN

        progress = min(
            Decimal(days_active) / Decimal(program_duration_days), ONE
        )
        return TIME_COEFFICIENT_MIN + TIME_COEFFICIENT_SPAN * progress

    def is_in_range(
        self, position: PositionSnapshot, current_tick: int | None
    ) -> bool:
        """
        Whether the pool price lies inside the position's range.

        The range is half-open: [tick_lower, tick_upper). Without a live
        tick the snapshot's own flag is used.
        """
        if position.is_full_range:
            return True
        if current_tick is None:
            return position.is_in_range
        return position.tick_lower <= current_tick < position.tick_upper

    def in_range_multiplier(
        self,
        position: PositionSnapshot,
        current_tick: int | None = None,
        in_range_ratio: Decimal = ONE,
    ) -> Decimal:
        """
        Multiplier for concentrated positions.

        Args:
            position: Position snapshot
            current_tick: Live pool tick, or None to use the snapshot flag
            in_range_ratio: Time-weighted fraction of recent time in range

        Returns:
            1.0 for full range, 0 when out of range, otherwise the ratio
            clamped to [0.1, 1.0]
        """
        if position.is_full_range:
            return ONE
        if not self.is_in_range(position, current_tick):
            return ZERO
        return _clamp(
            in_range_ratio, IN_RANGE_MULTIPLIER_FLOOR, IN_RANGE_MULTIPLIER_CEILING
        )

    def update_in_range_ratio(
        self,
        previous: Decimal,
        in_range: bool,
        elapsed: timedelta,
        window: timedelta,
    ) -> Decimal:
        """
        Roll the in-range ratio forward by one observation.

        Treats the previous ratio as covering the whole window and replaces
        the oldest `elapsed` of it with the latest observation.

        Args:
            previous: Ratio after the previous pass
            in_range: Whether the position is in range now
            elapsed: Time since the previous pass
            window: Averaging window

        Returns:
            New ratio in [0, 1]
        """
        observed = ONE if in_range else ZERO
        if window <= timedelta(0) or elapsed >= window:
            return observed
        if elapsed <= timedelta(0):
            return _clamp(previous, ZERO, ONE)

        window_s = Decimal(str(window.total_seconds()))
        elapsed_s = Decimal(str(elapsed.total_seconds()))
        ratio = (previous * (window_s - elapsed_s) + observed * elapsed_s) / window_s
        return _clamp(ratio, ZERO, ONE)

    def effective_apr(self, daily_reward: Decimal, value_usd: Decimal) -> Decimal:
        """Annualized reward relative to position value, 0 for an empty position."""
        if value_usd <= 0:
            return ZERO
        return daily_reward * DAYS_PER_YEAR / value_usd

    def calculate(
        self,
        position: PositionSnapshot,
        total_active_liquidity_usd: Decimal,
        daily_budget: Decimal,
        *,
        program_duration_days: int,
        current_tick: int | None = None,
        in_range_ratio: Decimal = ONE,
        now: datetime | None = None,
        data_source: DataSource = DataSource.LIVE,
    ) -> RewardCalculation:
        """
        Calculate the daily reward of one position.

        Args:
            position: Position snapshot
            total_active_liquidity_usd: Sum of eligible position values
            daily_budget: Treasury daily budget
            program_duration_days: Program length used by the loyalty ramp
            current_tick: Live pool tick (None uses the snapshot flag)
            in_range_ratio: Time-weighted in-range ratio
            now: Calculation time (defaults to current UTC time)
            data_source: Provenance of the inputs

        Returns:
            RewardCalculation with 0 <= daily_reward <= daily_budget

        Example:
            value 1000, total 100000, 30 days, full range, budget 1369.86
            -> weight 0.01, coefficient 0.6329, daily reward ~8.67
        """
        now = now or datetime.now(UTC)
        budget = max(daily_budget, ZERO)

        weight = self.liquidity_weight(position.value_usd, total_active_liquidity_usd)
        days = self.days_active(position.created_at, now)
        coefficient = self.time_coefficient(days, program_duration_days)
        multiplier = self.in_range_multiplier(position, current_tick, in_range_ratio)

        daily_reward = _clamp(weight * coefficient * budget * multiplier, ZERO, budget)

        return RewardCalculation(
            position_id=position.position_id,
            liquidity_weight=weight,
            days_active=days,
            time_coefficient=coefficient,
            in_range_multiplier=multiplier,
            daily_reward=daily_reward,
            effective_apr=self.effective_apr(daily_reward, position.value_usd),
            in_range_ratio=_clamp(in_range_ratio, ZERO, ONE),
            data_source=data_source,
            calculated_at=now,
        )
