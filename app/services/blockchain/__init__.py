"""
Blockchain services module.

Contract readers for the claim contract and the Uniswap V3 pool, with
timeout and retry handling shared by every RPC call.
"""

from .claim_contract_client import ClaimedEventLog, Web3ClaimContractClient, build_web3
from .pool_reader import OnChainPosition, PoolReader
from .rpc_wrapper import BlockchainTimeoutError, rpc_call_with_retry, with_timeout


__all__ = [
    "Web3ClaimContractClient",
    "ClaimedEventLog",
    "build_web3",
    "PoolReader",
    "OnChainPosition",
    "BlockchainTimeoutError",
    "rpc_call_with_retry",
    "with_timeout",
]
