"""
Unit tests for log masking.
"""

from app.utils.security import mask_address, mask_signature, mask_tx_hash
from tests.conftest import USER_ADDRESS


class TestMasking:
    """Test that sensitive values never appear in full."""

    def test_address(self):
        """Addresses keep prefix and suffix only."""
        assert mask_address(USER_ADDRESS) == "0x5bc7...5b6a"

    def test_signature_keeps_prefix_only(self):
        """No signature suffix leaks into logs."""
        signature = "0x" + "ab" * 64 + "cd"

        masked = mask_signature(signature)

        assert masked == "0xabababab..."
        assert "cd" not in masked

    def test_tx_hash(self):
        """Hashes keep ten leading and six trailing characters."""
        assert mask_tx_hash("0x" + "12" * 32) == "0x12121212...121212"

    def test_short_or_missing_values(self):
        """Unusable inputs are fully masked."""
        assert mask_address(None) == "***"
        assert mask_tx_hash("0x12") == "***"
        assert mask_signature("") == "***"
