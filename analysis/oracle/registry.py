"""
ORACLE - Network Endpoint Registry

Static mapping of network -> RPC endpoint and per-asset feed addresses.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from shared import ConfigurationError, FeedNotFoundError, OracleConfig


@dataclass(frozen=True)
class NetworkEndpoint:
    """Connection parameters for one network."""
    network: str
    rpc_url: str
    feeds: Mapping[str, str] = field(default_factory=dict)  # asset -> address

    def __post_init__(self) -> None:
        object.__setattr__(self, "feeds", MappingProxyType(dict(self.feeds)))


class EndpointRegistry:
    """
    Immutable registry of the networks the oracle reads from.

    Built once at startup and shared by every round without locking.
    """

    def __init__(self, endpoints: Iterable[NetworkEndpoint]):
        registry: dict[str, NetworkEndpoint] = {}
        for endpoint in endpoints:
            if not endpoint.rpc_url:
                raise ConfigurationError(
                    f"Network {endpoint.network} has no RPC URL",
                    {"network": endpoint.network},
                )
            if endpoint.network in registry:
                raise ConfigurationError(
                    f"Network {endpoint.network} registered twice",
                    {"network": endpoint.network},
                )
            registry[endpoint.network] = endpoint

        if not registry:
            raise ConfigurationError("Endpoint registry is empty")

        self._endpoints: Mapping[str, NetworkEndpoint] = MappingProxyType(registry)

    @classmethod
    def from_config(cls, config: OracleConfig) -> "EndpointRegistry":
        """Build the registry from the `networks` section of the config."""
        return cls(
            NetworkEndpoint(network=name, rpc_url=net.rpc_url, feeds=net.feeds)
            for name, net in config.networks.items()
        )

    @property
    def networks(self) -> list[str]:
        return list(self._endpoints)

    @property
    def assets(self) -> set[str]:
        return {asset for e in self._endpoints.values() for asset in e.feeds}

    def __len__(self) -> int:
        return len(self._endpoints)

    def __contains__(self, network: object) -> bool:
        return network in self._endpoints

    def get(self, network: str) -> NetworkEndpoint:
        """Get the endpoint for a network."""
        try:
            return self._endpoints[network]
        except KeyError:
            raise FeedNotFoundError(network) from None

    def feed_address(self, network: str, asset: str) -> str:
        """Get the feed contract address for an asset on a network."""
        address = self.get(network).feeds.get(asset)
        if not address:
            raise FeedNotFoundError(network, asset)
        return address

    def networks_for(self, asset: str) -> list[str]:
        """Networks that carry a feed for the asset."""
        return [n for n, e in self._endpoints.items() if asset in e.feeds]
