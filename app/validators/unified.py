"""Unified validators for addresses and claim amounts."""
from decimal import Decimal, InvalidOperation

from web3 import Web3

from app.utils.exceptions import ValidationError


def validate_wallet_address(address: str) -> tuple[bool, str | None]:
    """
    Single wallet address validator.

    Args:
        address: Wallet address to validate

    Returns:
        Tuple of (is_valid, error_message)
        - (True, None) if valid
        - (False, error_message) if invalid

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, "Address must start with 0x")
    """
    if not address or not isinstance(address, str):
        return False, "Address is empty"

    address = address.strip()

    if not address:
        return False, "Address is empty"

    if not address.startswith("0x"):
        return False, "Address must start with 0x"

    if len(address) != 42:
        return False, "Address must be 42 characters"

    try:
        int(address[2:], 16)
    except ValueError:
        return False, "Invalid address format"

    # Mixed-case input must carry a valid EIP-55 checksum
    body = address[2:]
    if body != body.lower() and body != body.upper():
        if not Web3.is_checksum_address(address):
            return False, "Invalid address checksum"

    if int(body, 16) == 0:
        return False, "Zero address is not allowed"

    return True, None


def validate_claim_amount(
    amount: Decimal | str | int | float,
    token_decimals: int = 18,
) -> tuple[bool, str | None]:
    """
    Validate a token amount before it is converted to base units.

    Args:
        amount: Amount in tokens
        token_decimals: Token decimals; finer amounts are rejected

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_claim_amount("1.5")
        (True, None)
        >>> validate_claim_amount("-1")
        (False, "Amount must be positive")
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        return False, "Invalid amount format"

    if not value.is_finite():
        return False, "Invalid amount format"

    if value <= 0:
        return False, "Amount must be positive"

    if (value * (Decimal(10) ** token_decimals)) < 1:
        return False, "Amount is below the smallest token unit"

    return True, None


def normalize_wallet_address(address: str) -> str:
    """
    Normalize wallet address to lowercase storage form.

    Args:
        address: Wallet address

    Returns:
        Lowercased address

    Raises:
        ValidationError: If address is invalid
    """
    is_valid, error = validate_wallet_address(address)
    if not is_valid:
        raise ValidationError(error or "Invalid address", field="userAddress")

    return address.strip().lower()
