"""
Configuration management for the Matrix price oracle.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from .types import ChainId


class NetworkConfig(BaseModel):
    """RPC endpoint and Chainlink feed addresses for one network."""
    rpc_url: str
    feeds: dict[str, str] = Field(default_factory=dict)  # asset -> address


class MonitoringConfig(BaseSettings):
    """Monitoring configuration."""
    log_level: str = "INFO"
    json_logs: bool = False


def default_networks() -> dict[str, NetworkConfig]:
    """Chainlink USD feeds on the networks the oracle watches by default."""
    return {
        ChainId.ETHEREUM.value: NetworkConfig(
            rpc_url="https://eth.llamarpc.com",
            feeds={
                "ETH_USD": "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419",
                "BTC_USD": "0xF4030086522a5bEEa4988F8cA5B36dbC97BeE88c",
                "LINK_USD": "0x2c1d072e956AFFC0D435Cb7AC38EF18d24d9127c",
            },
        ),
        ChainId.POLYGON.value: NetworkConfig(
            rpc_url="https://polygon-rpc.com",
            feeds={
                "ETH_USD": "0xF9680D99D6C9589e2a93a78A04A279e509205945",
                "BTC_USD": "0xc907E116054Ad103354f2D350FD2514433D57F6f",
                "LINK_USD": "0xd9FFdb71EbE7496cC440152d43986Aae0AB76665",
                # gas token, MATIC/USD aggregator
                "POL_USD": "0xAB594600376Ec9fD91F8e1dC5Ff0c5d1F7aE9F2e",
            },
        ),
        ChainId.OPTIMISM.value: NetworkConfig(
            rpc_url="https://mainnet.optimism.io",
            feeds={
                "ETH_USD": "0x13e3Ee699D1909E989722E753853AE30b17e08c5",
                "BTC_USD": "0xD702DD976Fb76Fffc2D3963D037dfDae5b04E593",
                "LINK_USD": "0x6d5689Ad4C1806D1BA095AEc89fE5f5e5EF5b5E1",
            },
        ),
    }


class OracleConfig(BaseSettings):
    """Main oracle configuration."""

    model_config = {"env_prefix": "ORACLE_", "env_nested_delimiter": "__"}

    # Environment
    environment: str = Field(default="development")

    # Networks and assets
    networks: dict[str, NetworkConfig] = Field(default_factory=default_networks)
    assets: list[str] = Field(default_factory=lambda: ["ETH_USD", "BTC_USD", "LINK_USD"])

    # Detection
    threshold_percent: Decimal = Field(default=Decimal("0.5"))
    max_staleness_ms: Optional[int] = Field(default=None)

    # Scheduling and I/O bounds
    poll_interval_ms: int = Field(default=60_000)
    call_timeout_ms: int = Field(default=5_000)
    cost_timeout_ms: int = Field(default=5_000)
    max_retries: int = Field(default=0)

    # Recommendations
    missing_cost_policy: Literal["zero", "exclude"] = Field(default="zero")
    gas_units: int = Field(default=150_000)
    gas_timeout_ms: int = Field(default=3_000)
    # network -> feed asset pricing its gas token
    gas_tokens: dict[str, str] = Field(default_factory=lambda: {
        ChainId.ETHEREUM.value: "ETH_USD",
        ChainId.POLYGON.value: "POL_USD",
        ChainId.OPTIMISM.value: "ETH_USD",
        ChainId.ARBITRUM.value: "ETH_USD",
        ChainId.BASE.value: "ETH_USD",
    })

    # Monitoring
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    @field_validator("threshold_percent")
    @classmethod
    def _check_threshold(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("threshold_percent must be >= 0")
        return value

    @field_validator(
        "poll_interval_ms", "call_timeout_ms", "cost_timeout_ms", "gas_units", "gas_timeout_ms"
    )
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    @field_validator("max_retries")
    @classmethod
    def _check_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("max_retries must be >= 0")
        return value

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    def get_rpc_url(self, chain: str) -> str:
        """Get RPC URL for a chain."""
        network = self.networks.get(chain)
        return network.rpc_url if network else ""


@lru_cache
def get_config() -> OracleConfig:
    """Get cached configuration instance."""
    # Load .env file if present
    from dotenv import load_dotenv
    load_dotenv()

    return OracleConfig()
