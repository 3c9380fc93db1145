"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- RewardCalculator instance
- VoucherSigner with the development key
"""

import pytest

from app.services.rewards.reward_calculator import RewardCalculator
from app.services.rewards.voucher_signer import VoucherSigner
from tests.conftest import TEST_CALCULATOR_KEY


@pytest.fixture
def calculator():
    """
    Create RewardCalculator instance.

    Returns:
        RewardCalculator: Calculator instance for testing
    """
    return RewardCalculator()


@pytest.fixture
def signer():
    """VoucherSigner holding the development calculator key."""
    return VoucherSigner(TEST_CALCULATOR_KEY, token_decimals=18)
