"""
Pool reader.

Reads the current tick of a Uniswap V3 pool and the on-chain state of a
position NFT. Tick math stays on-chain; only raw values are read here.
"""

from dataclasses import dataclass

from eth_utils import to_checksum_address
from web3 import AsyncWeb3

from app.config.constants import RPC_MAX_RETRIES, RPC_RETRY_BASE_DELAY
from app.services.blockchain.contract_abi import (
    POSITION_MANAGER_ABI,
    UNISWAP_V3_POOL_ABI,
)
from app.services.blockchain.rpc_wrapper import rpc_call_with_retry


@dataclass(frozen=True)
class OnChainPosition:
    """Raw position state from the position manager."""

    liquidity: int
    tick_lower: int
    tick_upper: int


class PoolReader:
    """Reads pool ticks and position NFTs."""

    def __init__(
        self,
        web3: AsyncWeb3,
        position_manager_address: str,
        *,
        max_retries: int = RPC_MAX_RETRIES,
        base_delay: float = RPC_RETRY_BASE_DELAY,
    ) -> None:
        self.web3 = web3
        self.position_manager = web3.eth.contract(
            address=to_checksum_address(position_manager_address),
            abi=POSITION_MANAGER_ABI,
        )
        self.max_retries = max_retries
        self.base_delay = base_delay

    async def current_tick(self, pool_address: str) -> int:
        """Current tick from slot0."""
        pool = self.web3.eth.contract(
            address=to_checksum_address(pool_address), abi=UNISWAP_V3_POOL_ABI
        )
        slot0 = await rpc_call_with_retry(
            lambda: pool.functions.slot0().call(),
            max_retries=self.max_retries,
            operation_name="pool.slot0",
            base_delay=self.base_delay,
        )
        return int(slot0[1])

    async def position(self, nft_id: int) -> OnChainPosition:
        """Liquidity and tick bounds of a position NFT."""
        raw = await rpc_call_with_retry(
            lambda: self.position_manager.functions.positions(nft_id).call(),
            max_retries=self.max_retries,
            operation_name="position_manager.positions",
            base_delay=self.base_delay,
        )
        return OnChainPosition(
            liquidity=int(raw[7]),
            tick_lower=int(raw[5]),
            tick_upper=int(raw[6]),
        )
