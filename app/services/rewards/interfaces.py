"""
Collaborator interfaces.

Injected into the engine at construction; production implementations live
in app.services.providers and app.services.blockchain.
"""

from datetime import datetime
from typing import Protocol

from app.services.rewards.types import PositionSnapshot, TreasuryWindow


class PositionProvider(Protocol):
    """Source of eligible position snapshots and pool ticks."""

    async def list_eligible_positions(self) -> list[PositionSnapshot]: ...

    async def current_tick(self, pool_address: str) -> int: ...

    async def fetch_live_snapshot(self, snapshot: PositionSnapshot) -> PositionSnapshot: ...


class TreasuryConfigProvider(Protocol):
    """Source of the current treasury window."""

    async def current_window(self) -> TreasuryWindow: ...


class ClaimContractClient(Protocol):
    """Read access to the claim contract. Amounts are in base units."""

    async def nonces(self, user_address: str) -> int: ...

    async def claimed_amount(self, user_address: str) -> int: ...

    async def paused(self) -> bool: ...

    async def absolute_max_claim(self) -> int: ...


class LastClaimProvider(Protocol):
    """Timestamp of the latest successful on-chain claim of an address."""

    async def last_claim_at(self, user_address: str) -> datetime | None: ...

    async def is_behind(self, user_address: str, claimed_on_chain_wei: int) -> bool: ...
