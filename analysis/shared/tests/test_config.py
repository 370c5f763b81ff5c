"""Tests for oracle configuration."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from shared import ChainId, OracleConfig


class TestOracleConfig:
    """Test suite for OracleConfig."""

    def test_defaults(self):
        """Test default configuration values."""
        config = OracleConfig()
        assert config.threshold_percent == Decimal("0.5")
        assert config.poll_interval_ms == 60_000
        assert config.call_timeout_ms == 5_000
        assert config.missing_cost_policy == "zero"
        assert config.get_rpc_url("optimism") == "https://mainnet.optimism.io"
        assert config.get_rpc_url("solana") == ""

    def test_env_override(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv("ORACLE_THRESHOLD_PERCENT", "1.25")
        monkeypatch.setenv("ORACLE_POLL_INTERVAL_MS", "15000")
        monkeypatch.setenv("ORACLE_MONITORING__LOG_LEVEL", "DEBUG")

        config = OracleConfig()

        assert config.threshold_percent == Decimal("1.25")
        assert config.poll_interval_ms == 15000
        assert config.monitoring.log_level == "DEBUG"

    @pytest.mark.parametrize("field,value", [
        ("threshold_percent", Decimal(-1)),
        ("poll_interval_ms", 0),
        ("call_timeout_ms", -5),
        ("max_retries", -1),
        ("missing_cost_policy", "guess"),
    ])
    def test_rejects_invalid(self, field, value):
        """Test invalid static configuration is rejected."""
        with pytest.raises(ValidationError):
            OracleConfig(**{field: value})

    def test_chain_ids(self):
        """Test numeric chain IDs."""
        assert ChainId.ETHEREUM.chain_id == 1
        assert ChainId.POLYGON.chain_id == 137
        assert ChainId("optimism") is ChainId.OPTIMISM

    def test_gas_tokens_have_feeds(self):
        """Test every default network's gas token has a feed on that network."""
        config = OracleConfig()
        for network, settings in config.networks.items():
            assert config.gas_tokens[network] in settings.feeds
        assert config.gas_tokens["polygon"] == "POL_USD"
