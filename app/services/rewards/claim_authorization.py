"""
Claim authorization service.

Issues signed claim vouchers. The contract's claimed-amount counter and
nonce are authoritative; the ledger only knows what was accrued.

Per address the service moves through:

    IDLE -> VOUCHER_REQUESTED -> VOUCHER_ISSUED -> IDLE

and returns to IDLE once the chain nonce passes the issued nonce. Requests
for one address are serialized; different addresses proceed in parallel.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from loguru import logger
from redis.exceptions import LockError, RedisError

from app.config.constants import CLAIM_LOCK_BLOCKING_TIMEOUT, CLAIM_LOCK_TIMEOUT
from app.services.rewards.interfaces import ClaimContractClient, LastClaimProvider
from app.services.rewards.types import ClaimState, Claimability, ClaimVoucher
from app.services.rewards.voucher_signer import VoucherSigner
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import (
    CalculatorUnavailableError,
    ClaimInProgressError,
    ClaimLockedError,
    ContractStateError,
    InsufficientRewardsError,
    RewardEngineError,
    UpstreamDataError,
)
from app.utils.security import mask_address
from app.validators.unified import normalize_wallet_address

if TYPE_CHECKING:
    import redis.asyncio as redis


@dataclass
class AddressClaimState:
    """In-memory claim state of one address."""

    state: ClaimState = ClaimState.IDLE
    nonce: int | None = None
    issued_at: datetime | None = None


class ClaimAuthorizationService:
    """Validates claim requests and signs vouchers."""

    def __init__(
        self,
        contract: ClaimContractClient,
        last_claims: LastClaimProvider,
        accumulated_for: Callable[[str], Awaitable[Decimal]],
        signer: VoucherSigner | None,
        *,
        token_decimals: int = 18,
        claim_lock: timedelta = timedelta(hours=24),
        voucher_ttl: timedelta = timedelta(minutes=10),
        local_max_claim: Decimal | None = None,
        redis_client: "redis.Redis | None" = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize claim service.

        Args:
            contract: Claim contract reader
            last_claims: Source of last on-chain claim timestamps
            accumulated_for: Ledger total of an address (tokens)
            signer: Voucher signer, None when no key is configured
            token_decimals: Reward token decimals
            claim_lock: Minimum time between on-chain claims
            voucher_ttl: How long an issued voucher blocks re-issuance
            local_max_claim: Optional cap (tokens) below the contract cap
            redis_client: Enables the cross-process address lock
            clock: Time source
        """
        self.contract = contract
        self.last_claims = last_claims
        self.accumulated_for = accumulated_for
        self.signer = signer
        self.token_decimals = token_decimals
        self.claim_lock = claim_lock
        self.voucher_ttl = voucher_ttl
        self.local_max_claim = local_max_claim
        self.redis_client = redis_client
        self.clock = clock

        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._states: dict[str, AddressClaimState] = {}
        self._log = logger.bind(service="ClaimAuthorization")

    @property
    def is_available(self) -> bool:
        """Whether vouchers can be signed."""
        return self.signer is not None

    def state_of(self, user_address: str) -> ClaimState:
        """Current in-memory state of an address."""
        entry = self._states.get(user_address.lower())
        return entry.state if entry else ClaimState.IDLE

    def _to_tokens(self, amount_wei: int) -> Decimal:
        return Decimal(amount_wei) / (Decimal(10) ** self.token_decimals)

    @asynccontextmanager
    async def _serialized(self, address: str) -> AsyncIterator[None]:
        """
        Hold the per-address lock, plus the Redis lock when configured.

        The lock entry lives only while requests for the address are
        running or waiting.
        """
        lock = self._locks.get(address)
        if lock is None:
            lock = self._locks[address] = asyncio.Lock()
        self._lock_users[address] = self._lock_users.get(address, 0) + 1
        try:
            async with lock, self._redis_lock(address):
                yield
        finally:
            remaining = self._lock_users[address] - 1
            if remaining:
                self._lock_users[address] = remaining
            else:
                del self._lock_users[address]
                del self._locks[address]

    @asynccontextmanager
    async def _redis_lock(self, address: str) -> AsyncIterator[None]:
        if self.redis_client is None:
            yield
            return

        try:
            lock = self.redis_client.lock(
                f"claim_voucher:{address}",
                timeout=CLAIM_LOCK_TIMEOUT,
                blocking_timeout=CLAIM_LOCK_BLOCKING_TIMEOUT,
            )
            acquired = await lock.acquire()
        except RedisError as e:
            raise UpstreamDataError(
                "Claim lock store is unavailable", reason=type(e).__name__
            ) from e
        if not acquired:
            raise ClaimInProgressError(
                "Another claim request for this address is being processed"
            )

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                self._log.warning(
                    f"Claim lock for {mask_address(address)} expired before release"
                )

    def _prune_expired(self, now: datetime) -> None:
        """Forget issued vouchers whose TTL has passed."""
        expired = [
            address
            for address, entry in self._states.items()
            if entry.state == ClaimState.VOUCHER_ISSUED
            and entry.issued_at is not None
            and now - entry.issued_at >= self.voucher_ttl
        ]
        for address in expired:
            del self._states[address]

    async def _read_upstream(self, label: str, call: Awaitable[Any]) -> Any:
        """Await an upstream read, failing closed on anything unexpected."""
        try:
            return await call
        except RewardEngineError:
            raise
        except Exception as e:
            raise UpstreamDataError(
                f"Failed to read {label}", reason=type(e).__name__
            ) from e

    async def _effective_cap_wei(self) -> int | None:
        """Contract cap tightened by the local cap. None when neither is set."""
        caps = []
        contract_cap = int(await self._read_upstream(
            "absolute max claim", self.contract.absolute_max_claim()
        ))
        if contract_cap > 0:
            caps.append(contract_cap)
        if self.local_max_claim is not None:
            caps.append(int(self.local_max_claim * (Decimal(10) ** self.token_decimals)))
        return min(caps) if caps else None

    async def _next_claim_date(
        self, address: str, claimed_wei: int, now: datetime
    ) -> datetime | None:
        """
        When the address may claim again, or None if it may claim now.

        Raises:
            UpstreamDataError: If the address has claimed on-chain but the
                claim is not indexed yet
        """
        if self.claim_lock <= timedelta(0):
            return None

        if await self._read_upstream(
            "claim history", self.last_claims.is_behind(address, claimed_wei)
        ):
            raise UpstreamDataError(
                "Claim history is still being indexed, retry shortly"
            )

        last_claim = await self._read_upstream(
            "last claim time", self.last_claims.last_claim_at(address)
        )
        if last_claim is None:
            return None

        next_claim = last_claim + self.claim_lock
        return next_claim if next_claim > now else None

    def _check_outstanding(self, address: str, nonce: int, now: datetime) -> None:
        """Reject re-issuance while a fresh voucher for this nonce is outstanding."""
        entry = self._states.get(address)
        if entry is None or entry.nonce is None or entry.issued_at is None:
            return

        if nonce < entry.nonce:
            raise UpstreamDataError(
                "On-chain nonce is behind the last issued voucher",
                nonce=nonce,
            )
        if nonce == entry.nonce and now - entry.issued_at < self.voucher_ttl:
            raise ClaimInProgressError(
                "A voucher for the current nonce was already issued",
                nonce=nonce,
            )

    async def request_voucher(self, user_address: str) -> ClaimVoucher:
        """
        Authorize a claim of everything currently claimable.

        Args:
            user_address: Claiming wallet

        Returns:
            Signed voucher for the live claimable amount at the live nonce

        Raises:
            ValidationError: Malformed address
            CalculatorUnavailableError: No signing key configured
            InsufficientRewardsError: Nothing to claim
            ContractStateError: Contract paused or amount above the cap
            ClaimLockedError: Lock period since the last claim not elapsed
            ClaimInProgressError: Voucher for the current nonce outstanding
            UpstreamDataError: Any chain or store read failed
        """
        address = normalize_wallet_address(user_address)
        if self.signer is None:
            raise CalculatorUnavailableError()

        async with self._serialized(address):
            now = self.clock()
            self._prune_expired(now)
            previous = self._states.get(address)
            entry = AddressClaimState(
                state=ClaimState.VOUCHER_REQUESTED,
                nonce=previous.nonce if previous else None,
                issued_at=previous.issued_at if previous else None,
            )
            self._states[address] = entry
            issued = False

            try:
                accumulated = await self._read_upstream(
                    "accumulated rewards", self.accumulated_for(address)
                )
                claimed_wei = int(await self._read_upstream(
                    "claimed amount", self.contract.claimed_amount(address)
                ))
                claimed = self._to_tokens(claimed_wei)
                claimable = max(Decimal("0"), accumulated - claimed)
                claimable_wei = self.signer.to_base_units(claimable)

                if claimable_wei <= 0:
                    raise InsufficientRewardsError(
                        "No rewards available to claim",
                        accumulated=str(accumulated),
                        claimedOnChain=str(claimed),
                    )

                if await self._read_upstream("paused flag", self.contract.paused()):
                    raise ContractStateError("Claim contract is paused")

                cap_wei = await self._effective_cap_wei()
                if cap_wei is not None and claimable_wei > cap_wei:
                    raise ContractStateError(
                        "Claim amount exceeds the maximum allowed per claim",
                        claimable=str(claimable),
                        maxClaim=str(self._to_tokens(cap_wei)),
                    )

                next_claim = await self._next_claim_date(address, claimed_wei, now)
                if next_claim is not None:
                    raise ClaimLockedError(
                        "Claim lock period has not elapsed", next_claim_at=next_claim
                    )

                nonce = int(await self._read_upstream(
                    "nonce", self.contract.nonces(address)
                ))
                self._check_outstanding(address, nonce, now)

                voucher = self.signer.sign(address, claimable, nonce)
                self._states[address] = AddressClaimState(
                    state=ClaimState.VOUCHER_ISSUED, nonce=nonce, issued_at=now
                )
                issued = True
            finally:
                if not issued:
                    if previous is not None:
                        self._states[address] = previous
                    else:
                        self._states.pop(address, None)

        self._log.info(
            f"Claim voucher issued for {mask_address(address)}",
            extra={
                "user_address": mask_address(address),
                "amount": str(voucher.amount),
                "nonce": voucher.nonce,
            },
        )
        return voucher

    def observe_nonce(self, user_address: str, chain_nonce: int) -> None:
        """Return an address to IDLE once the chain nonce passes the issued one."""
        address = user_address.lower()
        entry = self._states.get(address)
        if (
            entry is not None
            and entry.state == ClaimState.VOUCHER_ISSUED
            and entry.nonce is not None
            and chain_nonce > entry.nonce
        ):
            self._states.pop(address, None)
            self._log.debug(f"Claim state of {mask_address(address)} reset to idle")

    async def get_claimability(self, user_address: str) -> Claimability:
        """
        Read-only claim status of an address. Never signs.

        Raises:
            ValidationError: Malformed address
            UpstreamDataError: Any chain or store read failed
        """
        address = normalize_wallet_address(user_address)
        now = self.clock()

        accumulated = await self._read_upstream(
            "accumulated rewards", self.accumulated_for(address)
        )
        claimed_wei = int(await self._read_upstream(
            "claimed amount", self.contract.claimed_amount(address)
        ))
        claimed = self._to_tokens(claimed_wei)
        claimable = max(Decimal("0"), accumulated - claimed)

        reason: str | None = None
        next_claim = await self._next_claim_date(address, claimed_wei, now)
        if claimable <= 0:
            reason = InsufficientRewardsError.code
        elif self.signer is None:
            reason = CalculatorUnavailableError.code
        elif await self._read_upstream("paused flag", self.contract.paused()):
            reason = ContractStateError.code
        elif next_claim is not None:
            reason = ClaimLockedError.code

        return Claimability(
            user_address=address,
            accumulated=accumulated,
            claimed_on_chain=claimed,
            claimable=claimable,
            can_claim=reason is None,
            next_claim_date=next_claim,
            reason=reason,
        )
