"""
Reward services package.

Reward accrual, ledger, metrics and claim authorization for the
liquidity-mining program.
"""

from app.services.rewards.claim_authorization import ClaimAuthorizationService
from app.services.rewards.engine import RewardEngine, build_engine
from app.services.rewards.metrics_aggregator import ProgramMetricsAggregator
from app.services.rewards.recalculation import RewardRecalculationService
from app.services.rewards.reward_calculator import RewardCalculator
from app.services.rewards.reward_ledger import RewardLedger
from app.services.rewards.types import (
    Claimability,
    ClaimState,
    ClaimVoucher,
    DataSource,
    PositionSnapshot,
    ProgramMetrics,
    RecalculationReport,
    RewardCalculation,
    TreasuryWindow,
)
from app.services.rewards.voucher_signer import VoucherSigner

__all__ = [
    "RewardEngine",
    "build_engine",
    "RewardCalculator",
    "RewardLedger",
    "RewardRecalculationService",
    "ProgramMetricsAggregator",
    "ClaimAuthorizationService",
    "VoucherSigner",
    "DataSource",
    "ClaimState",
    "PositionSnapshot",
    "TreasuryWindow",
    "RewardCalculation",
    "ClaimVoucher",
    "Claimability",
    "ProgramMetrics",
    "RecalculationReport",
]
