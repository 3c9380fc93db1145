"""
Reward engine value types.

Immutable snapshots and results passed between the calculator, the ledger,
the claim service and the API boundary.
"""

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from enum import Enum


class DataSource(str, Enum):
    """Provenance of a computed value."""

    LIVE = "live"
    CACHED = "cached"
    FALLBACK = "fallback"


class ClaimState(str, Enum):
    """Voucher issuance state of a single address."""

    IDLE = "idle"
    VOUCHER_REQUESTED = "voucher_requested"
    VOUCHER_ISSUED = "voucher_issued"


@dataclass(frozen=True)
class PositionSnapshot:
    """Point-in-time view of an LP position."""

    position_id: int
    user_id: int
    user_address: str
    nft_id: int
    pool_address: str
    value_usd: Decimal
    liquidity: int
    tick_lower: int
    tick_upper: int
    is_full_range: bool
    is_in_range: bool
    created_at: datetime


@dataclass(frozen=True)
class TreasuryWindow:
    """Fixed treasury budget spread over the program window."""

    total_allocation: Decimal
    duration_days: int
    start_date: datetime
    end_date: datetime

    @property
    def daily_budget(self) -> Decimal:
        """Allocation spread evenly over the program duration."""
        if self.duration_days <= 0 or self.total_allocation <= 0:
            return Decimal("0")
        return self.total_allocation / Decimal(self.duration_days)

    def is_active(self, now: datetime) -> bool:
        """Whether rewards accrue at the given moment."""
        return self.start_date <= now < self.end_date

    def days_remaining(self, now: datetime) -> int:
        """Whole days left in the program, never negative."""
        remaining = self.end_date - now
        if remaining <= timedelta(0):
            return 0
        return math.ceil(remaining / timedelta(days=1))


@dataclass(frozen=True)
class RewardCalculation:
    """Result of one position's reward calculation."""

    position_id: int
    liquidity_weight: Decimal
    days_active: int
    time_coefficient: Decimal
    in_range_multiplier: Decimal
    daily_reward: Decimal
    effective_apr: Decimal
    in_range_ratio: Decimal = Decimal("1")
    data_source: DataSource = DataSource.LIVE
    calculated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ClaimVoucher:
    """Signed authorization for one on-chain claim."""

    user_address: str
    amount: Decimal
    amount_wei: int
    nonce: int
    signature: str

    def to_dict(self) -> dict[str, object]:
        """Serialize for API responses."""
        return {
            "userAddress": self.user_address,
            "amount": str(self.amount),
            "amountWei": str(self.amount_wei),
            "nonce": self.nonce,
            "signature": self.signature,
        }


@dataclass(frozen=True)
class Claimability:
    """Read-only claim status of an address."""

    user_address: str
    accumulated: Decimal
    claimed_on_chain: Decimal
    claimable: Decimal
    can_claim: bool
    next_claim_date: datetime | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize for API responses."""
        return {
            "userAddress": self.user_address,
            "accumulated": str(self.accumulated),
            "claimedOnChain": str(self.claimed_on_chain),
            "claimable": str(self.claimable),
            "canClaim": self.can_claim,
            "nextClaimDate": (
                self.next_claim_date.isoformat() if self.next_claim_date else None
            ),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ProgramMetrics:
    """Pool-wide program statistics."""

    total_active_liquidity: Decimal
    active_participants: int
    daily_distributed: Decimal
    distributed_to_date: Decimal
    treasury_remaining: Decimal
    days_remaining: int
    average_apr: Decimal
    daily_budget: Decimal
    program_start: datetime
    program_end: datetime
    data_source: DataSource = DataSource.LIVE

    def to_dict(self) -> dict[str, object]:
        """Serialize for API responses."""
        return {
            "totalActiveLiquidity": str(self.total_active_liquidity),
            "activeParticipants": self.active_participants,
            "dailyDistributed": str(self.daily_distributed),
            "distributedToDate": str(self.distributed_to_date),
            "treasuryRemaining": str(self.treasury_remaining),
            "daysRemaining": self.days_remaining,
            "averageAPR": str(self.average_apr),
            "dailyBudget": str(self.daily_budget),
            "programStart": self.program_start.isoformat(),
            "programEnd": self.program_end.isoformat(),
            "dataSource": self.data_source.value,
        }


@dataclass
class RecalculationReport:
    """Outcome of one recalculation pass."""

    started_at: datetime
    finished_at: datetime | None = None
    processed: int = 0
    skipped: int = 0
    stale: int = 0
    deactivated: int = 0
    total_active_liquidity: Decimal = Decimal("0")
    total_daily_rewards: Decimal = Decimal("0")
    failed_positions: list[int] = field(default_factory=list)
