"""
Unit tests for the reward ledger.

Tests cover:
- Accrual arithmetic and program-end clipping
- First cycle credit
- Idempotent repeated passes
- Monotonic accumulated amount
"""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.services.rewards.reward_ledger import RewardLedger
from app.services.rewards.types import DataSource, RewardCalculation
from tests.conftest import NOW, USER_ADDRESS


def _calculation(daily: str, source: DataSource = DataSource.LIVE) -> RewardCalculation:
    return RewardCalculation(
        position_id=1,
        liquidity_weight=Decimal("0.01"),
        days_active=30,
        time_coefficient=Decimal("0.63"),
        in_range_multiplier=Decimal("1"),
        daily_reward=Decimal(daily),
        effective_apr=Decimal("3.16"),
        data_source=source,
        calculated_at=NOW,
    )


@pytest.fixture
def ledger(mock_session):
    """Ledger with mocked repositories."""
    ledger = RewardLedger(mock_session)
    ledger.reward_repo = AsyncMock()
    ledger.daily_repo = AsyncMock()
    return ledger


class TestAccrualFor:
    """Test elapsed-time accrual."""

    def test_half_day(self):
        """12 hours at 10/day accrues 5."""
        amount = RewardLedger.accrual_for(Decimal("10"), NOW - timedelta(hours=12), NOW)

        assert amount == Decimal("5")

    def test_zero_elapsed(self):
        """Same timestamp accrues nothing."""
        assert RewardLedger.accrual_for(Decimal("10"), NOW, NOW) == Decimal("0")

    def test_clock_going_backwards(self):
        """Negative elapsed time never lowers the balance."""
        amount = RewardLedger.accrual_for(Decimal("10"), NOW + timedelta(hours=3), NOW)

        assert amount == Decimal("0")

    def test_clipped_at_program_end(self):
        """Only the part before the program end is credited."""
        end = NOW - timedelta(days=1)

        amount = RewardLedger.accrual_for(
            Decimal("10"), NOW - timedelta(days=3), NOW, accrue_until=end
        )

        assert amount == Decimal("20")


class TestUpsert:
    """Test applying calculations to ledger records."""

    @pytest.mark.asyncio
    async def test_first_cycle_credits_one_day(self, ledger, make_snapshot):
        """A new position is credited one full daily reward."""
        ledger.reward_repo.get_by_position_for_update.return_value = None
        ledger.reward_repo.create.return_value = SimpleNamespace(id=7)

        await ledger.upsert(make_snapshot(), _calculation("8.5"), NOW)

        kwargs = ledger.reward_repo.create.call_args.kwargs
        assert kwargs["accumulated_amount"] == Decimal("8.5")
        assert kwargs["user_address"] == kwargs["user_address"].lower()
        ledger.daily_repo.upsert_for_day.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_first_cycle_after_program_end(self, ledger, make_snapshot):
        """No first-day credit once the program has ended."""
        ledger.reward_repo.get_by_position_for_update.return_value = None
        ledger.reward_repo.create.return_value = SimpleNamespace(id=7)

        await ledger.upsert(
            make_snapshot(), _calculation("8.5"), NOW, accrue_until=NOW - timedelta(hours=1)
        )

        assert ledger.reward_repo.create.call_args.kwargs["accumulated_amount"] == Decimal("0")

    @pytest.mark.asyncio
    async def test_repeated_pass_is_idempotent(self, ledger, make_snapshot):
        """A second pass at the same time adds nothing."""
        record = SimpleNamespace(
            id=7,
            accumulated_amount=Decimal("100"),
            last_reward_calculation=NOW,
        )
        ledger.reward_repo.get_by_position_for_update.return_value = record

        await ledger.upsert(make_snapshot(), _calculation("8.5"), NOW)

        assert record.accumulated_amount == Decimal("100")
        assert record.last_reward_calculation == NOW

    @pytest.mark.asyncio
    async def test_accrues_elapsed_time_and_advances(self, ledger, make_snapshot):
        """One day later the daily reward is added and the timestamp moves."""
        record = SimpleNamespace(
            id=7,
            accumulated_amount=Decimal("100"),
            last_reward_calculation=NOW - timedelta(days=1),
        )
        ledger.reward_repo.get_by_position_for_update.return_value = record

        await ledger.upsert(make_snapshot(), _calculation("8"), NOW)

        assert record.accumulated_amount == Decimal("108")
        assert record.last_reward_calculation == NOW
        assert record.is_active is True

    @pytest.mark.asyncio
    async def test_earlier_pass_never_moves_timestamp_back(self, ledger, make_snapshot):
        """Out-of-order passes leave the balance and timestamp untouched."""
        record = SimpleNamespace(
            id=7,
            accumulated_amount=Decimal("100"),
            last_reward_calculation=NOW,
        )
        ledger.reward_repo.get_by_position_for_update.return_value = record

        await ledger.upsert(make_snapshot(), _calculation("8"), NOW - timedelta(hours=6))

        assert record.accumulated_amount == Decimal("100")
        assert record.last_reward_calculation == NOW

    @pytest.mark.asyncio
    async def test_records_data_source(self, ledger, make_snapshot):
        """Provenance of the calculation is persisted."""
        record = SimpleNamespace(
            id=7, accumulated_amount=Decimal("0"), last_reward_calculation=NOW
        )
        ledger.reward_repo.get_by_position_for_update.return_value = record

        await ledger.upsert(make_snapshot(), _calculation("1", DataSource.CACHED), NOW)

        assert record.data_source == "cached"


class TestResetPosition:
    """Test administrative reset."""

    @pytest.mark.asyncio
    async def test_reset_zeroes_balance(self, ledger):
        """Reset is the only path that lowers the balance."""
        record = SimpleNamespace(
            accumulated_amount=Decimal("55"), daily_reward_amount=Decimal("2")
        )
        ledger.reward_repo.get_by_position_for_update.return_value = record

        result = await ledger.reset_position(1, "duplicate NFT")

        assert result is record
        assert record.accumulated_amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_reset_unknown_position(self, ledger):
        """Unknown positions return None."""
        ledger.reward_repo.get_by_position_for_update.return_value = None

        assert await ledger.reset_position(99, "cleanup") is None


class TestTotals:
    """Test ledger totals."""

    @pytest.mark.asyncio
    async def test_total_accumulated_by_user(self, ledger):
        """User total comes from the repository sum."""
        ledger.reward_repo.sum_accumulated_by_user.return_value = Decimal("42.5")

        assert await ledger.total_accumulated(7) == Decimal("42.5")
        ledger.reward_repo.sum_accumulated_by_user.assert_awaited_once_with(7)

    @pytest.mark.asyncio
    async def test_deactivate_missing(self, ledger):
        """Positions outside the eligible set are deactivated."""
        ledger.reward_repo.deactivate_except.return_value = 2

        assert await ledger.deactivate_missing([1, 3]) == 2
        ledger.reward_repo.deactivate_except.assert_awaited_once_with([1, 3])

    @pytest.mark.asyncio
    async def test_history_covers_all_positions_of_address(self, ledger):
        """History is read for every position the wallet owns."""
        ledger.reward_repo.get_by_address.return_value = [
            SimpleNamespace(position_id=1),
            SimpleNamespace(position_id=4),
        ]
        ledger.daily_repo.get_history.return_value = []
        since = NOW.date() - timedelta(days=29)

        assert await ledger.history_for_address(USER_ADDRESS, since) == []
        ledger.daily_repo.get_history.assert_awaited_once_with([1, 4], since)
