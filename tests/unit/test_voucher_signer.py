"""
Unit tests for voucher signing.

Tests cover:
- Signature recovers to the calculator address
- Packed message hash layout
- Base unit conversion rounding
- Rejected inputs
"""

from decimal import Decimal

import pytest
from eth_utils import to_checksum_address
from web3 import Web3

from app.services.rewards.voucher_signer import VoucherSigner
from app.utils.exceptions import CalculatorUnavailableError, ValidationError
from tests.conftest import TEST_CALCULATOR_ADDRESS, USER_ADDRESS


class TestVoucherSigner:
    """Test calculator signatures."""

    def test_calculator_address(self, signer):
        """The key resolves to the expected checksummed address."""
        assert signer.calculator_address == TEST_CALCULATOR_ADDRESS

    def test_signature_recovers_calculator(self, signer):
        """The contract's ecrecover sees the calculator as signer."""
        voucher = signer.sign(USER_ADDRESS, Decimal("12.5"), 3)

        recovered = VoucherSigner.recover_signer(
            voucher.user_address, voucher.amount_wei, voucher.nonce, voucher.signature
        )

        assert recovered == TEST_CALCULATOR_ADDRESS

    def test_voucher_fields(self, signer):
        """Voucher carries checksummed address, wei amount and nonce."""
        voucher = signer.sign(USER_ADDRESS, Decimal("12.5"), 3)

        assert voucher.user_address == to_checksum_address(USER_ADDRESS)
        assert voucher.amount_wei == 12_500_000_000_000_000_000
        assert voucher.amount == Decimal("12.5")
        assert voucher.nonce == 3
        assert voucher.signature.startswith("0x")
        assert len(voucher.signature) == 132

    def test_message_hash_is_packed_encoding(self):
        """Hash equals keccak256(abi.encodePacked(address, uint256, uint256))."""
        packed = (
            bytes.fromhex(USER_ADDRESS[2:])
            + (1000).to_bytes(32, "big")
            + (7).to_bytes(32, "big")
        )

        assert VoucherSigner.message_hash(USER_ADDRESS, 1000, 7) == Web3.keccak(packed)

    def test_changing_nonce_changes_signature(self, signer):
        """A voucher is bound to its nonce."""
        first = signer.sign(USER_ADDRESS, Decimal("1"), 0)
        second = signer.sign(USER_ADDRESS, Decimal("1"), 1)

        assert first.signature != second.signature

    def test_to_base_units_rounds_down(self, signer):
        """Sub-wei remainders are dropped, never rounded up."""
        assert signer.to_base_units(Decimal("1.0000000000000000019")) == 10**18 + 1

    def test_amount_below_one_wei_is_rejected(self, signer):
        """Dust that rounds to zero is not signed."""
        with pytest.raises(ValidationError):
            signer.sign(USER_ADDRESS, Decimal("0.0000000000000000001"), 0)

    def test_negative_nonce_is_rejected(self, signer):
        """Nonces are uint256."""
        with pytest.raises(ValidationError):
            signer.sign(USER_ADDRESS, Decimal("1"), -1)

    def test_invalid_key(self):
        """A malformed key degrades the claim path instead of crashing."""
        with pytest.raises(CalculatorUnavailableError):
            VoucherSigner("not-a-key")

    def test_token_decimals(self):
        """Six-decimal tokens scale by 10**6."""
        from tests.conftest import TEST_CALCULATOR_KEY

        signer = VoucherSigner(TEST_CALCULATOR_KEY, token_decimals=6)

        assert signer.to_base_units(Decimal("2.5")) == 2_500_000
