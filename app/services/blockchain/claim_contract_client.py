"""
Claim contract client.

Async reads of the reward claim contract. Every call goes through
rpc_call_with_retry, so a failed read raises UpstreamDataError and is
never replaced by a cached or default value.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger
from web3 import AsyncWeb3, Web3

from app.config.constants import (
    BLOCKCHAIN_LONG_TIMEOUT,
    BLOCKCHAIN_TIMEOUT,
    RPC_MAX_RETRIES,
    RPC_RETRY_BASE_DELAY,
)
from app.services.blockchain.contract_abi import CLAIM_CONTRACT_ABI
from app.services.blockchain.rpc_wrapper import rpc_call_with_retry

REWARD_CLAIMED_TOPIC = Web3.to_hex(
    Web3.keccak(text="RewardClaimed(address,uint256,uint256)")
)


@dataclass(frozen=True)
class ClaimedEventLog:
    """Decoded RewardClaimed log."""

    user_address: str
    amount_wei: int
    nonce: int
    block_number: int
    tx_hash: str
    log_index: int


def build_web3(rpc_url: str) -> AsyncWeb3:
    """Create an AsyncWeb3 instance over HTTP."""
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))


class Web3ClaimContractClient:
    """ClaimContractClient backed by AsyncWeb3."""

    def __init__(
        self,
        web3: AsyncWeb3,
        contract_address: str,
        *,
        max_retries: int = RPC_MAX_RETRIES,
        base_delay: float = RPC_RETRY_BASE_DELAY,
    ) -> None:
        """
        Initialize client.

        Args:
            web3: AsyncWeb3 instance
            contract_address: Claim contract address
            max_retries: Attempts per read
            base_delay: Backoff base delay in seconds
        """
        self.web3 = web3
        self.address = to_checksum_address(contract_address)
        self.contract = web3.eth.contract(address=self.address, abi=CLAIM_CONTRACT_ABI)
        self.max_retries = max_retries
        self.base_delay = base_delay

        logger.debug(f"Claim contract client initialized: {self.address}")

    async def _call(
        self,
        operation: str,
        factory: Callable[[], Awaitable[Any]],
        timeout: float = BLOCKCHAIN_TIMEOUT,
    ) -> Any:
        return await rpc_call_with_retry(
            factory,
            max_retries=self.max_retries,
            timeout=timeout,
            operation_name=f"claim_contract.{operation}",
            base_delay=self.base_delay,
        )

    async def nonces(self, user_address: str) -> int:
        """Current voucher nonce of an address."""
        user = to_checksum_address(user_address)
        return int(await self._call(
            "nonces", lambda: self.contract.functions.nonces(user).call()
        ))

    async def claimed_amount(self, user_address: str) -> int:
        """Total claimed by an address, in base units."""
        user = to_checksum_address(user_address)
        return int(await self._call(
            "userClaimedAmounts",
            lambda: self.contract.functions.userClaimedAmounts(user).call(),
        ))

    async def paused(self) -> bool:
        """Whether claims are paused."""
        return bool(await self._call(
            "paused", lambda: self.contract.functions.paused().call()
        ))

    async def absolute_max_claim(self) -> int:
        """Per-claim cap enforced by the contract, in base units."""
        return int(await self._call(
            "absoluteMaxClaim",
            lambda: self.contract.functions.absoluteMaxClaim().call(),
        ))

    async def latest_block(self) -> int:
        """Current chain head."""
        return int(await self._call(
            "block_number", lambda: self.web3.eth.block_number
        ))

    async def block_timestamp(self, block_number: int) -> datetime:
        """Timestamp of a block as an aware UTC datetime."""
        block = await self._call(
            "get_block", lambda: self.web3.eth.get_block(block_number)
        )
        return datetime.fromtimestamp(block["timestamp"], UTC)

    async def reward_claimed_events(
        self, from_block: int, to_block: int
    ) -> list[ClaimedEventLog]:
        """
        RewardClaimed logs in an inclusive block range.

        Args:
            from_block: First block
            to_block: Last block

        Returns:
            Decoded events in chain order
        """
        logs = await self._call(
            "get_logs",
            lambda: self.web3.eth.get_logs({
                "address": self.address,
                "fromBlock": from_block,
                "toBlock": to_block,
                "topics": [REWARD_CLAIMED_TOPIC],
            }),
            timeout=BLOCKCHAIN_LONG_TIMEOUT,
        )

        event = self.contract.events.RewardClaimed()
        decoded: list[ClaimedEventLog] = []
        for log in logs:
            entry = event.process_log(log)
            decoded.append(
                ClaimedEventLog(
                    user_address=entry["args"]["user"].lower(),
                    amount_wei=int(entry["args"]["amount"]),
                    nonce=int(entry["args"]["nonce"]),
                    block_number=int(entry["blockNumber"]),
                    tx_hash=Web3.to_hex(entry["transactionHash"]),
                    log_index=int(entry["logIndex"]),
                )
            )
        decoded.sort(key=lambda e: (e.block_number, e.log_index))
        return decoded
