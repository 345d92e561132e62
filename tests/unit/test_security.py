"""Unit tests for log masking helpers."""

from relayer.utils.security import mask_address, mask_database_url, mask_tx_hash


class TestMasking:

    def test_mask_address(self):
        assert mask_address("0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0") == "0x742d...bEb0"

    def test_mask_short_address(self):
        assert mask_address("0x12") == "***"

    def test_mask_tx_hash(self):
        assert mask_tx_hash("0x" + "ab" * 32) == "0xabababab...ababab"

    def test_mask_database_url(self):
        assert mask_database_url(
            "postgresql+asyncpg://relayer:secret@db:5432/relayer"
        ) == "postgresql+asyncpg://relayer:****@db:5432/relayer"

    def test_database_url_without_password(self):
        url = "postgresql://relayer@db/relayer"
        assert mask_database_url(url) == url
