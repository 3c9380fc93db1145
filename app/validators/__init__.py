"""
Validators package.

Provides validation functions for API input.
"""

from app.validators.unified import (
    normalize_wallet_address,
    validate_claim_amount,
    validate_wallet_address,
)


__all__ = [
    "validate_wallet_address",
    "validate_claim_amount",
    "normalize_wallet_address",
]
