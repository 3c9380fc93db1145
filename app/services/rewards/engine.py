"""
Reward engine.

One explicitly constructed object that owns the reward program's
collaborators and exposes its operations to the API and the workers.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.config.constants import DEFAULT_HISTORY_DAYS, MAX_HISTORY_DAYS
from app.config.settings import Settings
from app.services.rewards.claim_authorization import ClaimAuthorizationService
from app.services.rewards.interfaces import (
    ClaimContractClient,
    LastClaimProvider,
    PositionProvider,
    TreasuryConfigProvider,
)
from app.services.rewards.metrics_aggregator import ProgramMetricsAggregator
from app.services.rewards.recalculation import RewardRecalculationService
from app.services.rewards.reward_calculator import RewardCalculator
from app.services.rewards.reward_ledger import RewardLedger
from app.services.rewards.types import (
    Claimability,
    ClaimVoucher,
    DataSource,
    ProgramMetrics,
    RecalculationReport,
    TreasuryWindow,
)
from app.services.rewards.voucher_signer import VoucherSigner
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import (
    CalculatorUnavailableError,
    RewardEngineError,
    UpstreamDataError,
    ValidationError,
)
from app.validators.unified import normalize_wallet_address

if TYPE_CHECKING:
    import redis.asyncio as redis

    from app.services.claim_event_indexer import ClaimEventIndexer


class RewardEngine:
    """Reward accrual and claim authorization engine."""

    def __init__(
        self,
        *,
        config: Settings,
        session_maker: async_sessionmaker[AsyncSession],
        positions: PositionProvider,
        treasury: TreasuryConfigProvider,
        contract: ClaimContractClient,
        last_claims: LastClaimProvider,
        signer: VoucherSigner | None,
        calculator: RewardCalculator | None = None,
        indexer: "ClaimEventIndexer | None" = None,
        redis_client: "redis.Redis | None" = None,
        db_engine: AsyncEngine | None = None,
    ) -> None:
        """
        Initialize engine.

        Args:
            config: Application settings
            session_maker: Session factory for the ledger
            positions: Position snapshot source
            treasury: Treasury window source
            contract: Claim contract reader
            last_claims: Source of last on-chain claim times
            signer: Voucher signer, None when no key is configured
            calculator: Reward formula (default instance if omitted)
            indexer: Claim event indexer, enables sync_claim_events
            redis_client: Enables the cross-process voucher lock
            db_engine: Engine disposed by close()
        """
        self.config = config
        self.session_maker = session_maker
        self.positions = positions
        self.treasury = treasury
        self.contract = contract
        self.calculator = calculator or RewardCalculator()
        self.indexer = indexer
        self.redis_client = redis_client
        self.db_engine = db_engine

        self.claims = ClaimAuthorizationService(
            contract,
            last_claims,
            self._accumulated_for,
            signer,
            token_decimals=config.token_decimals,
            claim_lock=timedelta(hours=config.claim_lock_hours),
            voucher_ttl=timedelta(minutes=config.voucher_ttl_minutes),
            local_max_claim=config.absolute_max_claim,
            redis_client=redis_client,
        )
        self.recalculation = RewardRecalculationService(
            session_maker,
            positions,
            treasury,
            self.calculator,
            concurrency=config.recalculation_concurrency,
            in_range_window=timedelta(days=config.in_range_window_days),
        )

        self._last_window: TreasuryWindow | None = None
        self._log = logger.bind(service="RewardEngine")

    @property
    def claims_available(self) -> bool:
        """Whether the claim path can sign vouchers."""
        return self.claims.is_available

    async def _accumulated_for(self, user_address: str) -> Decimal:
        async with self.session_maker() as session:
            return await RewardLedger(session).total_accumulated_for_address(user_address)

    async def recalculate(self, now: datetime | None = None) -> RecalculationReport:
        """Run one recalculation pass."""
        return await self.recalculation.run(now)

    async def request_claim_voucher(self, user_address: str) -> ClaimVoucher:
        """Sign a voucher for everything currently claimable."""
        return await self.claims.request_voucher(user_address)

    async def get_claimability(self, user_address: str) -> Claimability:
        """Read-only claim status."""
        return await self.claims.get_claimability(user_address)

    async def _window_for_metrics(self) -> tuple[TreasuryWindow, DataSource]:
        """Current window, or the last one read when the store fails."""
        try:
            window = await self.treasury.current_window()
        except (RewardEngineError, SQLAlchemyError, OSError) as e:
            if self._last_window is None:
                if isinstance(e, RewardEngineError):
                    raise
                raise UpstreamDataError(
                    "Treasury configuration is unavailable", reason=type(e).__name__
                ) from e
            self._log.warning(
                f"Treasury read failed, serving last known window: {type(e).__name__}"
            )
            return self._last_window, DataSource.FALLBACK

        self._last_window = window
        return window, DataSource.LIVE

    async def get_program_analytics(self, now: datetime | None = None) -> ProgramMetrics:
        """
        Pool-wide program metrics.

        Raises:
            UpstreamDataError: If the ledger cannot be read, or the treasury
                window cannot be read and none was seen before
        """
        now = now or utc_now()
        window, source = await self._window_for_metrics()
        try:
            async with self.session_maker() as session:
                return await ProgramMetricsAggregator(session).aggregate(window, now, source)
        except (SQLAlchemyError, OSError) as e:
            raise UpstreamDataError(
                "Reward ledger is unavailable", reason=type(e).__name__
            ) from e

    async def get_user_rewards(self, user_address: str) -> dict[str, Any]:
        """
        Per-position ledger view of a wallet.

        Raises:
            ValidationError: Malformed address
        """
        address = normalize_wallet_address(user_address)
        async with self.session_maker() as session:
            records = await RewardLedger(session).records_for_address(address)

        total = sum((r.accumulated_amount for r in records), Decimal("0"))
        daily = sum(
            (r.daily_reward_amount for r in records if r.is_active), Decimal("0")
        )
        return {
            "userAddress": address,
            "totalAccumulated": str(total),
            "dailyRewards": str(daily),
            "positions": [
                {
                    "positionId": r.position_id,
                    "nftId": r.nft_id,
                    "dailyRewardAmount": str(r.daily_reward_amount),
                    "accumulatedAmount": str(r.accumulated_amount),
                    "positionValueUSD": str(r.position_value_usd),
                    "inRangeRatio": str(r.in_range_ratio),
                    "effectiveAPR": str(r.effective_apr),
                    "dataSource": r.data_source,
                    "isActive": r.is_active,
                    "lastRewardCalculation": r.last_reward_calculation.isoformat(),
                }
                for r in records
            ],
        }

    async def get_reward_history(
        self,
        user_address: str,
        days: int = DEFAULT_HISTORY_DAYS,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Daily reward history of a wallet, newest day first.

        Args:
            user_address: Wallet address
            days: Number of calendar days to include, today included
            now: Reference time (defaults to current UTC time)

        Raises:
            ValidationError: Malformed address or days out of range
        """
        address = normalize_wallet_address(user_address)
        if not 1 <= days <= MAX_HISTORY_DAYS:
            raise ValidationError(
                f"days must be between 1 and {MAX_HISTORY_DAYS}", field="days"
            )

        since = (now or utc_now()).date() - timedelta(days=days - 1)
        async with self.session_maker() as session:
            rows = await RewardLedger(session).history_for_address(address, since)

        return {
            "userAddress": address,
            "since": since.isoformat(),
            "history": [
                {
                    "date": row.reward_date.isoformat(),
                    "positionId": row.position_id,
                    "dailyRewardAmount": str(row.daily_reward_amount),
                    "positionValueUSD": str(row.position_value_usd),
                    "liquidityWeight": str(row.liquidity_weight),
                    "timeCoefficient": str(row.time_coefficient),
                    "inRangeMultiplier": str(row.in_range_multiplier),
                    "effectiveAPR": str(row.effective_apr),
                    "daysActive": row.days_active,
                }
                for row in rows
            ],
        }

    async def sync_claim_events(self) -> int:
        """Index new on-chain claim events."""
        if self.indexer is None:
            return 0
        return await self.indexer.sync()

    async def close(self) -> None:
        """Release connections held by the engine."""
        if self.redis_client is not None:
            await self.redis_client.aclose()
        if self.db_engine is not None:
            await self.db_engine.dispose()


def build_engine(config: Settings, *, for_worker: bool = False) -> RewardEngine:
    """
    Wire the production collaborators.

    Args:
        config: Application settings
        for_worker: Use a non-pooled engine (dramatiq worker threads)

    Returns:
        Ready RewardEngine
    """
    from app.config.database import create_db_engine, create_session_maker
    from app.services.blockchain.claim_contract_client import (
        Web3ClaimContractClient,
        build_web3,
    )
    from app.services.blockchain.pool_reader import PoolReader
    from app.services.claim_event_indexer import ClaimEventIndexer
    from app.services.providers import (
        DatabasePositionProvider,
        DatabaseTreasuryConfigProvider,
    )
    from app.utils.redis_utils import create_redis_client

    db_engine = create_db_engine(config, null_pool=for_worker)
    session_maker = create_session_maker(db_engine)

    web3 = build_web3(config.rpc_url)
    contract = Web3ClaimContractClient(
        web3,
        config.claim_contract_address,
        max_retries=config.rpc_max_retries,
        base_delay=config.rpc_retry_base_delay,
    )
    pool_reader = PoolReader(
        web3,
        config.position_manager_address,
        max_retries=config.rpc_max_retries,
        base_delay=config.rpc_retry_base_delay,
    )
    indexer = ClaimEventIndexer(
        session_maker,
        contract,
        start_block=config.claim_event_start_block,
        chunk_size=config.claim_event_scan_chunk,
    )

    signer: VoucherSigner | None = None
    if config.calculator_private_key:
        try:
            signer = VoucherSigner(config.calculator_private_key, config.token_decimals)
        except CalculatorUnavailableError:
            logger.error("Calculator key is invalid; claim signing is disabled")
    else:
        logger.warning("CALCULATOR_PRIVATE_KEY not set; claim signing is disabled")

    redis_client = create_redis_client(config) if config.use_redis_claim_lock else None

    engine = RewardEngine(
        config=config,
        session_maker=session_maker,
        positions=DatabasePositionProvider(session_maker, pool_reader),
        treasury=DatabaseTreasuryConfigProvider(session_maker),
        contract=contract,
        last_claims=indexer,
        signer=signer,
        indexer=indexer,
        redis_client=redis_client,
        db_engine=db_engine,
    )
    indexer.on_claim = engine.claims.observe_nonce

    if signer is not None:
        logger.info(f"Reward engine ready, calculator {signer.calculator_address}")
    return engine
