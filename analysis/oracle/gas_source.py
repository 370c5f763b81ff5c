"""
ORACLE - Gas Source

Samples a network's current fee market over JSON-RPC for the cost estimator.
"""

from web3 import AsyncHTTPProvider, AsyncWeb3

from sati import GasSample
from shared import SourceUnavailableError, now_ms

from .feed_reader import RPC_ERRORS
from .registry import NetworkEndpoint

GWEI = 10**9


class Web3GasSource:
    """Reads base fee, median tip and utilization of the latest block."""

    def __init__(self, endpoint: NetworkEndpoint):
        self.network = endpoint.network
        self.w3 = AsyncWeb3(
            AsyncHTTPProvider(endpoint.rpc_url, exception_retry_configuration=None)
        )

    async def fee_sample(self) -> GasSample:
        try:
            history = await self.w3.eth.fee_history(1, "latest", [50])
            # baseFeePerGas has one extra entry: the next block's base fee
            base_fee = history["baseFeePerGas"][-1]
            rewards = history["reward"]
            priority_fee = rewards[0][0] if rewards and rewards[0] else 0
            utilization = history["gasUsedRatio"][0] if history["gasUsedRatio"] else 0.0
        except RPC_ERRORS as e:
            raise SourceUnavailableError(self.network, f"{type(e).__name__}: {e}") from e
        except (KeyError, IndexError, TypeError) as e:
            raise SourceUnavailableError(self.network, f"malformed fee history: {e}") from e

        return GasSample(
            timestamp_ms=now_ms(),
            base_fee_gwei=base_fee / GWEI,
            priority_fee_gwei=priority_fee / GWEI,
            block_utilization=float(utilization),
        )

    async def close(self) -> None:
        await self.w3.provider.disconnect()
