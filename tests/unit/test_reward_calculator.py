"""
Unit tests for the reward calculator.

Tests cover:
- Daily budget from the treasury window
- Liquidity weight bounds
- Time coefficient ramp
- In-range multiplier for full-range and concentrated positions
- Time-weighted in-range ratio
- End-to-end daily reward and APR
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.services.rewards.types import DataSource
from tests.conftest import NOW


class TestDailyBudget:
    """Test treasury budget spreading."""

    def test_budget_for_full_year(self, calculator):
        """500,000 tokens over 365 days gives ~1369.86 per day."""
        budget = calculator.daily_budget(Decimal("500000"), 365)

        assert budget.quantize(Decimal("0.01")) == Decimal("1369.86")

    def test_zero_duration_gives_zero_budget(self, calculator):
        """A non-positive duration never divides by zero."""
        assert calculator.daily_budget(Decimal("500000"), 0) == Decimal("0")
        assert calculator.daily_budget(Decimal("500000"), -5) == Decimal("0")

    def test_zero_allocation_gives_zero_budget(self, calculator):
        """An empty treasury distributes nothing."""
        assert calculator.daily_budget(Decimal("0"), 365) == Decimal("0")


class TestLiquidityWeight:
    """Test position share of the pool."""

    def test_weight_is_share_of_total(self, calculator):
        """1000 of 100000 is 1%."""
        weight = calculator.liquidity_weight(Decimal("1000"), Decimal("100000"))

        assert weight == Decimal("0.01")

    def test_weight_is_zero_for_empty_pool(self, calculator):
        """No liquidity at all means no weight."""
        assert calculator.liquidity_weight(Decimal("1000"), Decimal("0")) == Decimal("0")

    def test_weight_is_zero_for_empty_position(self, calculator):
        """A zero or negative value position earns nothing."""
        assert calculator.liquidity_weight(Decimal("0"), Decimal("1000")) == Decimal("0")
        assert calculator.liquidity_weight(Decimal("-5"), Decimal("1000")) == Decimal("0")

    def test_weight_never_exceeds_one(self, calculator):
        """A stale total smaller than the position value is capped."""
        weight = calculator.liquidity_weight(Decimal("2000"), Decimal("1000"))

        assert weight == Decimal("1")

    def test_weights_sum_to_one(self, calculator):
        """Weights of all positions in the pool add up to 1."""
        values = [Decimal("1000"), Decimal("2500"), Decimal("6500")]
        total = sum(values)

        weights = [calculator.liquidity_weight(v, total) for v in values]

        assert sum(weights) == Decimal("1")


class TestTimeCoefficient:
    """Test loyalty ramp from 0.6 to 1.0."""

    def test_new_position_starts_at_minimum(self, calculator):
        """Zero days active gives 0.6."""
        assert calculator.time_coefficient(0, 365) == Decimal("0.6")

    def test_thirty_days_into_a_year(self, calculator):
        """30 of 365 days gives ~0.6329."""
        coefficient = calculator.time_coefficient(30, 365)

        assert coefficient.quantize(Decimal("0.0001")) == Decimal("0.6329")

    def test_capped_at_one(self, calculator):
        """Positions older than the program get 1.0."""
        assert calculator.time_coefficient(365, 365) == Decimal("1.0")
        assert calculator.time_coefficient(1000, 365) == Decimal("1.0")

    def test_zero_duration_gives_maximum(self, calculator):
        """Degenerate program length does not divide by zero."""
        assert calculator.time_coefficient(10, 0) == Decimal("1.0")

    def test_monotonic_in_days(self, calculator):
        """The coefficient never decreases as a position ages."""
        values = [calculator.time_coefficient(d, 90) for d in range(0, 120, 7)]

        assert values == sorted(values)


class TestDaysActive:
    """Test whole-day counting."""

    def test_partial_day_rounds_up(self, calculator):
        """One hour old counts as one day."""
        assert calculator.days_active(NOW - timedelta(hours=1), NOW) == 1

    def test_future_creation_is_zero(self, calculator):
        """Clock skew never produces negative days."""
        assert calculator.days_active(NOW + timedelta(hours=1), NOW) == 0


class TestInRangeMultiplier:
    """Test the concentrated liquidity multiplier."""

    def test_full_range_is_always_one(self, calculator, make_snapshot):
        """Full-range positions ignore the tick."""
        position = make_snapshot(is_full_range=True)

        assert calculator.in_range_multiplier(position, 5_000_000) == Decimal("1")

    def test_out_of_range_is_zero(self, calculator, make_snapshot):
        """A tick above the upper bound earns nothing."""
        position = make_snapshot(is_full_range=False, tick_lower=-100, tick_upper=100)

        assert calculator.in_range_multiplier(position, 150) == Decimal("0")

    def test_upper_tick_is_exclusive(self, calculator, make_snapshot):
        """The range is half-open: tick == upper is out of range."""
        position = make_snapshot(is_full_range=False, tick_lower=-100, tick_upper=100)

        assert calculator.is_in_range(position, -100) is True
        assert calculator.is_in_range(position, 100) is False

    def test_ratio_is_floored(self, calculator, make_snapshot):
        """An in-range position keeps at least 0.1."""
        position = make_snapshot(is_full_range=False, tick_lower=-100, tick_upper=100)

        multiplier = calculator.in_range_multiplier(position, 0, Decimal("0.02"))

        assert multiplier == Decimal("0.1")

    def test_missing_tick_uses_snapshot_flag(self, calculator, make_snapshot):
        """Without a live tick the stored in-range flag decides."""
        in_range = make_snapshot(is_full_range=False, is_in_range=True)
        out_of_range = make_snapshot(is_full_range=False, is_in_range=False)

        assert calculator.in_range_multiplier(in_range, None, Decimal("0.5")) == Decimal("0.5")
        assert calculator.in_range_multiplier(out_of_range, None) == Decimal("0")


class TestInRangeRatio:
    """Test the time-weighted in-range ratio."""

    def test_one_day_out_of_seven(self, calculator):
        """One day out of range replaces one seventh of the window."""
        ratio = calculator.update_in_range_ratio(
            Decimal("1"), False, timedelta(days=1), timedelta(days=7)
        )

        assert ratio == Decimal("6") / Decimal("7")

    def test_elapsed_beyond_window_replaces_history(self, calculator):
        """A gap longer than the window keeps only the latest observation."""
        ratio = calculator.update_in_range_ratio(
            Decimal("0.2"), True, timedelta(days=10), timedelta(days=7)
        )

        assert ratio == Decimal("1")

    def test_no_elapsed_time_keeps_ratio(self, calculator):
        """A repeated pass does not move the ratio."""
        ratio = calculator.update_in_range_ratio(
            Decimal("0.4"), False, timedelta(0), timedelta(days=7)
        )

        assert ratio == Decimal("0.4")


class TestCalculate:
    """Test the full daily reward calculation."""

    def test_reference_example(self, calculator, make_snapshot):
        """1% weight, 30 days, full range, 1369.86 budget gives ~8.67/day."""
        position = make_snapshot(value_usd=Decimal("1000"), created_at=NOW - timedelta(days=30))
        budget = calculator.daily_budget(Decimal("500000"), 365)

        result = calculator.calculate(
            position, Decimal("100000"), budget, program_duration_days=365, now=NOW
        )

        assert result.liquidity_weight == Decimal("0.01")
        assert result.days_active == 30
        assert result.in_range_multiplier == Decimal("1")
        assert result.daily_reward.quantize(Decimal("0.01")) == Decimal("8.67")
        assert result.data_source == DataSource.LIVE

    def test_apr_is_annualized_daily_reward(self, calculator, make_snapshot):
        """APR = daily * 365 / value."""
        position = make_snapshot(value_usd=Decimal("1000"))

        result = calculator.calculate(
            position, Decimal("100000"), Decimal("1000"), program_duration_days=365, now=NOW
        )

        expected = result.daily_reward * Decimal("365") / Decimal("1000")
        assert result.effective_apr == expected

    def test_reward_never_exceeds_budget(self, calculator, make_snapshot):
        """A sole, old, full-range position gets at most the budget."""
        position = make_snapshot(
            value_usd=Decimal("5000"), created_at=NOW - timedelta(days=900)
        )

        result = calculator.calculate(
            position, Decimal("5000"), Decimal("100"), program_duration_days=365, now=NOW
        )

        assert result.daily_reward == Decimal("100")

    def test_out_of_range_earns_nothing(self, calculator, make_snapshot):
        """Concentrated position outside its range gets 0."""
        position = make_snapshot(is_full_range=False, tick_lower=0, tick_upper=60)

        result = calculator.calculate(
            position,
            Decimal("100000"),
            Decimal("1369"),
            program_duration_days=365,
            current_tick=-10,
            now=NOW,
        )

        assert result.daily_reward == Decimal("0")
        assert result.effective_apr == Decimal("0")

    def test_negative_budget_is_treated_as_zero(self, calculator, make_snapshot):
        """Corrupt budgets never produce negative rewards."""
        result = calculator.calculate(
            make_snapshot(), Decimal("1000"), Decimal("-50"),
            program_duration_days=365, now=NOW,
        )

        assert result.daily_reward == Decimal("0")

    @pytest.mark.parametrize("days", [1, 10, 100, 400])
    def test_pool_total_within_budget(self, calculator, make_snapshot, days):
        """The sum over all positions never exceeds the daily budget."""
        budget = Decimal("1369.86")
        values = [Decimal("100"), Decimal("2500"), Decimal("7400")]
        total = sum(values)
        positions = [
            make_snapshot(position_id=i, value_usd=v, created_at=NOW - timedelta(days=days))
            for i, v in enumerate(values)
        ]

        rewards = [
            calculator.calculate(p, total, budget, program_duration_days=365, now=NOW).daily_reward
            for p in positions
        ]

        assert sum(rewards) <= budget
