"""Tests for the Oracle price feed reader."""

import asyncio
from decimal import Decimal

import aiohttp
import pytest

from oracle.feed_reader import PriceFeedReader
from shared import FeedNotFoundError, SourceUnavailableError


class TestPriceFeedReader:
    """Test suite for PriceFeedReader."""

    def test_normalizes_price(self, registry, fake_factory):
        """Test raw answer is scaled by the feed decimals."""
        reader = PriceFeedReader(registry, client_factory=fake_factory({
            "A": (250012345678, 1_700_000_000, 8),
        }))

        sample = asyncio.run(reader.read_price("A", "ETH_USD"))

        assert sample.price == Decimal("2500.12345678")
        assert sample.network == "A"
        assert sample.asset == "ETH_USD"
        assert sample.updated_at == 1_700_000_000
        assert sample.observed_at_ms > 0

    def test_eighteen_decimals(self, registry, fake_factory):
        """Test normalization is exact at 18 decimals."""
        reader = PriceFeedReader(registry, client_factory=fake_factory({
            "A": (1_000000000000000001, 0, 18),
        }))

        sample = asyncio.run(reader.read_price("A", "ETH_USD"))
        assert sample.price == Decimal("1.000000000000000001")

    def test_unknown_asset(self, registry, fake_factory):
        """Test missing feed raises FeedNotFoundError."""
        reader = PriceFeedReader(registry, client_factory=fake_factory({}))
        with pytest.raises(FeedNotFoundError):
            asyncio.run(reader.read_price("A", "BTC_USD"))

    def test_unknown_network(self, registry, fake_factory):
        """Test unregistered network raises FeedNotFoundError."""
        reader = PriceFeedReader(registry, client_factory=fake_factory({}))
        with pytest.raises(FeedNotFoundError):
            asyncio.run(reader.read_price("Z", "ETH_USD"))

    def test_timeout(self, registry, fake_factory, quote, delayed):
        """Test a slow source is cut off at the call timeout."""
        reader = PriceFeedReader(registry, timeout_ms=20, client_factory=fake_factory({
            "A": delayed(1.0, quote(100)),
        }))

        with pytest.raises(SourceUnavailableError) as exc:
            asyncio.run(reader.read_price("A", "ETH_USD"))
        assert "timed out" in exc.value.reason

    def test_connection_failure(self, registry, fake_factory):
        """Test connection errors surface as SourceUnavailableError."""
        reader = PriceFeedReader(registry, client_factory=fake_factory({
            "A": ConnectionRefusedError("refused"),
        }))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(reader.read_price("A", "ETH_USD"))

    @pytest.mark.parametrize("status", [429, 503])
    def test_http_error_status(self, registry, fake_factory, status):
        """Test rate limiting and 5xx answers surface as SourceUnavailableError."""
        error = aiohttp.ClientResponseError(
            request_info=aiohttp.RequestInfo("http://a.invalid", "POST", {}),
            history=(),
            status=status,
            message="Service Unavailable",
        )
        reader = PriceFeedReader(registry, client_factory=fake_factory({"A": error}))

        with pytest.raises(SourceUnavailableError) as exc:
            asyncio.run(reader.read_price("A", "ETH_USD"))

        assert exc.value.asset == "ETH_USD"
        assert str(status) in exc.value.reason

    @pytest.mark.parametrize("response", [
        (100, 0),
        None,
        ("100", 0, 8),
        (100, 0, -1),
        (100, 0, True),
    ])
    def test_malformed_response(self, registry, fake_factory, response):
        """Test malformed payloads surface as SourceUnavailableError."""
        reader = PriceFeedReader(registry, client_factory=fake_factory({"A": response}))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(reader.read_price("A", "ETH_USD"))

    def test_client_reused(self, registry, fake_factory, quote):
        """Test one connection handle per network across reads."""
        factory = fake_factory({"A": quote(100), "B": quote(101)})
        reader = PriceFeedReader(registry, client_factory=factory)

        async def read_many():
            for _ in range(3):
                await reader.read_price("A", "ETH_USD")
            await reader.read_price("B", "ETH_USD")

        asyncio.run(read_many())

        assert len(factory.created) == 2
        assert factory.created[0].calls == 3
