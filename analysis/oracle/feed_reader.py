"""
ORACLE - Price Feed Reader

Reads one asset price from one network's Chainlink aggregator contract and
normalizes it to a Decimal.
"""

import asyncio
from collections.abc import Callable
from decimal import Decimal

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import Web3Exception

from shared import (
    AgentLogger,
    FeedClient,
    PriceSample,
    SourceUnavailableError,
    now_ms,
)

from .registry import EndpointRegistry, NetworkEndpoint


# Errors a JSON-RPC round trip can raise: socket, HTTP status, RPC error, bad ABI payload
RPC_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    aiohttp.ClientError,
    Web3Exception,
    ValueError,
)


# Chainlink AggregatorV3Interface, read-only subset
CHAINLINK_AGGREGATOR_ABI = [
    {
        "inputs": [],
        "name": "latestRoundData",
        "outputs": [
            {"internalType": "uint80", "name": "roundId", "type": "uint80"},
            {"internalType": "int256", "name": "answer", "type": "int256"},
            {"internalType": "uint256", "name": "startedAt", "type": "uint256"},
            {"internalType": "uint256", "name": "updatedAt", "type": "uint256"},
            {"internalType": "uint80", "name": "answeredInRound", "type": "uint80"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class Web3FeedClient:
    """
    FeedClient backed by a web3.py async HTTP provider.

    web3's own request retries are off; retrying is the aggregator's call.
    """

    def __init__(self, endpoint: NetworkEndpoint):
        self.network = endpoint.network
        self.w3 = AsyncWeb3(
            AsyncHTTPProvider(endpoint.rpc_url, exception_retry_configuration=None)
        )

    async def latest_round_data(self, address: str) -> tuple[int, int, int]:
        try:
            contract = self.w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(address),
                abi=CHAINLINK_AGGREGATOR_ABI,
            )
            round_data, decimals = await asyncio.gather(
                contract.functions.latestRoundData().call(),
                contract.functions.decimals().call(),
            )
            _, answer, _, updated_at, _ = round_data
        except RPC_ERRORS as e:
            raise SourceUnavailableError(self.network, f"{type(e).__name__}: {e}") from e
        except TypeError as e:
            raise SourceUnavailableError(self.network, f"malformed round data: {e}") from e

        return answer, updated_at, decimals

    async def close(self) -> None:
        await self.w3.provider.disconnect()


class PriceFeedReader:
    """
    Performs single read-only price queries.

    One FeedClient is created per network on first use and reused for
    every later read. Failures are raised, never retried here.
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        timeout_ms: int = 5000,
        client_factory: Callable[[NetworkEndpoint], FeedClient] = Web3FeedClient,
    ):
        self.logger = AgentLogger("ORACLE-READER")
        self.registry = registry
        self.timeout_ms = timeout_ms
        self.client_factory = client_factory

        self._clients: dict[str, FeedClient] = {}

    def client_for(self, network: str) -> FeedClient:
        """Get (or lazily create) the connection handle for a network."""
        client = self._clients.get(network)
        if client is None:
            client = self.client_factory(self.registry.get(network))
            self._clients[network] = client
        return client

    async def close(self) -> None:
        """Release the connections of every client created so far."""
        clients, self._clients = self._clients, {}
        for client in clients.values():
            close = getattr(client, "close", None)
            if close is not None:
                await close()

    async def read_price(self, network: str, asset: str) -> PriceSample:
        """Read and normalize the latest price of an asset on a network."""
        address = self.registry.feed_address(network, asset)
        client = self.client_for(network)

        try:
            response = await asyncio.wait_for(
                client.latest_round_data(address),
                timeout=self.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            raise SourceUnavailableError(
                network, f"timed out after {self.timeout_ms}ms", asset
            ) from None
        except SourceUnavailableError as e:
            e.asset = asset
            e.context["asset"] = asset
            raise
        except RPC_ERRORS as e:
            raise SourceUnavailableError(network, f"{type(e).__name__}: {e}", asset) from e

        raw_value, updated_at, decimals = self._parse_response(network, asset, response)
        price = Decimal(raw_value).scaleb(-decimals)

        self.logger.debug(
            "Price read",
            network=network,
            asset=asset,
            price=str(price),
            updated_at=updated_at,
        )

        return PriceSample(
            network=network,
            asset=asset,
            price=price,
            observed_at_ms=now_ms(),
            updated_at=updated_at,
        )

    @staticmethod
    def _parse_response(network: str, asset: str, response: object) -> tuple[int, int, int]:
        if not isinstance(response, (tuple, list)) or len(response) != 3:
            raise SourceUnavailableError(network, f"malformed response: {response!r}", asset)

        raw_value, updated_at, decimals = response
        for value in (raw_value, updated_at, decimals):
            if isinstance(value, bool) or not isinstance(value, int):
                raise SourceUnavailableError(
                    network, f"malformed response: {response!r}", asset
                )
        if decimals < 0:
            raise SourceUnavailableError(network, f"negative decimals: {decimals}", asset)

        return raw_value, updated_at, decimals
