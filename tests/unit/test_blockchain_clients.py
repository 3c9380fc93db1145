"""
Unit tests for the claim contract client and the pool reader.

Uses a mocked AsyncWeb3; no RPC endpoint is contacted.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.blockchain.claim_contract_client import Web3ClaimContractClient
from app.services.blockchain.pool_reader import PoolReader
from app.utils.exceptions import UpstreamDataError
from tests.conftest import USER_ADDRESS

CONTRACT = "0x09bcb93e7e2ff067232d83f5e7a7e8360a458175"
POSITION_MANAGER = "0x03a520b32c04bf3beef7beb72e919cf822ed34f1"


def _call(value=None, side_effect=None) -> MagicMock:
    """Contract function mock whose .call() is awaitable."""
    function = MagicMock()
    function.return_value.call = AsyncMock(return_value=value, side_effect=side_effect)
    return function


@pytest.fixture
def contract():
    """Mocked contract object returned by web3.eth.contract."""
    return MagicMock()


@pytest.fixture
def web3(contract):
    """Mocked AsyncWeb3."""
    web3 = MagicMock()
    web3.eth.contract.return_value = contract
    return web3


class TestWeb3ClaimContractClient:
    """Test claim contract reads."""

    @pytest.mark.asyncio
    async def test_reads(self, web3, contract):
        """Views are returned as Python ints and bools."""
        contract.functions.nonces = _call(3)
        contract.functions.userClaimedAmounts = _call(5 * 10**18)
        contract.functions.paused = _call(False)
        contract.functions.absoluteMaxClaim = _call(0)
        client = Web3ClaimContractClient(web3, CONTRACT, base_delay=0)

        assert await client.nonces(USER_ADDRESS) == 3
        assert await client.claimed_amount(USER_ADDRESS) == 5 * 10**18
        assert await client.paused() is False
        assert await client.absolute_max_claim() == 0

    @pytest.mark.asyncio
    async def test_nonce_read_uses_checksum_address(self, web3, contract):
        """The contract is queried with the checksummed address."""
        contract.functions.nonces = _call(0)
        client = Web3ClaimContractClient(web3, CONTRACT, base_delay=0)

        await client.nonces(USER_ADDRESS)

        queried = contract.functions.nonces.call_args.args[0]
        assert queried.lower() == USER_ADDRESS
        assert queried != USER_ADDRESS

    @pytest.mark.asyncio
    async def test_failed_read_is_retried_then_fails_closed(self, web3, contract):
        """A persistently failing read raises instead of returning a default."""
        contract.functions.nonces = _call(side_effect=ConnectionError("rpc down"))
        client = Web3ClaimContractClient(web3, CONTRACT, max_retries=2, base_delay=0)

        with pytest.raises(UpstreamDataError):
            await client.nonces(USER_ADDRESS)

        assert contract.functions.nonces.return_value.call.await_count == 2

    @pytest.mark.asyncio
    async def test_block_timestamp_is_utc(self, web3):
        """Block timestamps become aware UTC datetimes."""
        web3.eth.get_block = AsyncMock(return_value={"timestamp": 1_767_225_600})
        client = Web3ClaimContractClient(web3, CONTRACT, base_delay=0)

        block_time = await client.block_timestamp(100)

        assert block_time.tzinfo is not None
        assert block_time.year == 2026


class TestPoolReader:
    """Test pool and position reads."""

    @pytest.mark.asyncio
    async def test_current_tick(self, web3, contract):
        """The tick is the second slot0 field."""
        contract.functions.slot0 = _call((79228162514264337593543950336, -120, 0, 1, 1, 0, True))
        reader = PoolReader(web3, POSITION_MANAGER, base_delay=0)

        assert await reader.current_tick("0x82da478b1382b951cbad01beb9ed459cdb16458e") == -120

    @pytest.mark.asyncio
    async def test_position(self, web3, contract):
        """Liquidity and ticks come from the positions() tuple."""
        raw = (0, "0x0", "0xa", "0xb", 3000, -600, 600, 123456, 0, 0, 0, 0)
        contract.functions.positions = _call(raw)
        reader = PoolReader(web3, POSITION_MANAGER, base_delay=0)

        position = await reader.position(1001)

        assert position.liquidity == 123456
        assert position.tick_lower == -600
        assert position.tick_upper == 600
