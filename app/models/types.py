"""
Standard type definitions for database models.

Provides consistent types for monetary and ratio fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for token amounts and rewards
# Precision: 30 digits total, 18 after decimal point
# Suitable for: reward tokens (18 decimals), accumulated amounts
MoneyType = DECIMAL(30, 18)

# USD value type for position valuations
# Precision: 20 digits total, 8 after decimal point
UsdType = DECIMAL(20, 8)

# Raw on-chain amounts in base units (wei) and liquidity
# Precision: 78 digits fits any uint256
BigIntegerAmountType = DECIMAL(78, 0)

# Ratio type for weights, coefficients and multipliers
# Precision: 20 digits total, 18 after decimal point
# Range: 0.000000000000000000 to 99.999999999999999999
RatioType = DECIMAL(20, 18)
