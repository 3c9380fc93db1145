"""
Log masking helpers.

Wallet addresses, transaction hashes and voucher signatures are never
logged in full.
"""


def _mask(value: str | None, head: int, tail: int, min_length: int) -> str:
    if not value or len(value) < min_length:
        return "***"
    suffix = value[-tail:] if tail else ""
    return f"{value[:head]}...{suffix}"


def mask_address(address: str | None) -> str:
    """
    Mask wallet address: 0x1234...5678

    Examples:
        >>> mask_address("0x1234567890abcdef1234567890abcdef12345678")
        '0x1234...5678'
        >>> mask_address(None)
        '***'
    """
    return _mask(address, 6, 4, 10)


def mask_tx_hash(tx_hash: str | None) -> str:
    """
    Mask transaction hash: first 10 and last 6 characters.

    Examples:
        >>> mask_tx_hash("0x" + "ab" * 32)
        '0xabababab...ababab'
    """
    return _mask(tx_hash, 10, 6, 16)


def mask_signature(signature: str | None) -> str:
    """
    Mask a voucher signature; only a prefix is kept so it cannot be replayed from logs.

    Examples:
        >>> mask_signature("0x" + "ab" * 65)
        '0xabababab...'
    """
    return _mask(signature, 10, 0, 20)
