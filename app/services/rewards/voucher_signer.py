"""
Voucher signer.

Produces the calculator signature the claim contract verifies:

    hash = keccak256(abi.encodePacked(address user, uint256 amount, uint256 nonce))
    signature = sign(EIP-191 prefix + hash)
"""

from decimal import ROUND_DOWN, Decimal

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_checksum_address
from loguru import logger
from web3 import Web3

from app.services.rewards.types import ClaimVoucher
from app.utils.exceptions import CalculatorUnavailableError, ValidationError
from app.utils.security import mask_address, mask_signature


class VoucherSigner:
    """Signs claim vouchers with the calculator key."""

    def __init__(self, private_key: str, token_decimals: int = 18) -> None:
        """
        Initialize signer.

        Args:
            private_key: Calculator private key (hex)
            token_decimals: Reward token decimals

        Raises:
            CalculatorUnavailableError: If the key cannot be loaded
        """
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            logger.error(f"Calculator key could not be loaded: {type(e).__name__}")
            raise CalculatorUnavailableError(
                "Configured calculator key is invalid"
            ) from e
        self.token_decimals = token_decimals

    @property
    def calculator_address(self) -> str:
        """Checksummed address of the signing key."""
        return self._account.address

    def to_base_units(self, amount: Decimal) -> int:
        """
        Convert a token amount to base units, rounding down.

        Rounding down never authorizes more than was accrued.
        """
        scaled = amount * (Decimal(10) ** self.token_decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))

    def from_base_units(self, amount_wei: int) -> Decimal:
        """Convert base units to a token amount."""
        return Decimal(amount_wei) / (Decimal(10) ** self.token_decimals)

    @staticmethod
    def message_hash(user_address: str, amount_wei: int, nonce: int) -> bytes:
        """Packed keccak hash of (user, amount, nonce)."""
        return Web3.solidity_keccak(
            ["address", "uint256", "uint256"],
            [to_checksum_address(user_address), amount_wei, nonce],
        )

    def sign(self, user_address: str, amount: Decimal, nonce: int) -> ClaimVoucher:
        """
        Sign a voucher.

        Args:
            user_address: Claiming wallet
            amount: Claim amount in tokens
            nonce: Current on-chain nonce of the wallet

        Returns:
            Signed voucher

        Raises:
            ValidationError: If the amount rounds to zero base units or the
                nonce is negative
        """
        amount_wei = self.to_base_units(amount)
        if amount_wei <= 0:
            raise ValidationError("Claim amount rounds to zero", amount=str(amount))
        if nonce < 0:
            raise ValidationError("Nonce must be non-negative", nonce=nonce)

        digest = self.message_hash(user_address, amount_wei, nonce)
        signed = self._account.sign_message(encode_defunct(primitive=digest))
        signature = Web3.to_hex(signed.signature)

        logger.debug(
            f"Voucher signed for {mask_address(user_address)} nonce={nonce} "
            f"sig={mask_signature(signature)}"
        )
        return ClaimVoucher(
            user_address=to_checksum_address(user_address),
            amount=self.from_base_units(amount_wei),
            amount_wei=amount_wei,
            nonce=nonce,
            signature=signature,
        )

    @classmethod
    def recover_signer(
        cls, user_address: str, amount_wei: int, nonce: int, signature: str
    ) -> str:
        """
        Recover the address that signed a voucher.

        Returns:
            Checksummed signer address
        """
        digest = cls.message_hash(user_address, amount_wei, nonce)
        return Account.recover_message(
            encode_defunct(primitive=digest), signature=signature
        )
