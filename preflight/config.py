from decimal import Decimal
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Node connection
    rpc_url: str = Field(
        default="http://127.0.0.1:4444",
        description="JSON-RPC endpoint of the chain node",
        validation_alias=AliasChoices("rpc_url", "node_rpc_url"),
    )
    chain_id: int = Field(default=33, description="Chain ID of the target network")
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single JSON-RPC request",
    )

    # Contract addresses
    relay_hub_address: str = Field(default=ZERO_ADDRESS, description="RelayHub contract address")
    relay_verifier_address: str = Field(default=ZERO_ADDRESS, description="RelayVerifier contract address")
    deploy_verifier_address: str = Field(default=ZERO_ADDRESS, description="DeployVerifier contract address")
    smart_wallet_factory_address: str = Field(
        default=ZERO_ADDRESS,
        description="Smart wallet factory contract address",
    )

    # Gas estimation
    estimated_gas_correction_factor: Decimal = Field(
        default=Decimal("1.0"),
        ge=1,
        description="Multiplier applied to node gas estimates to offset systematic underestimation",
    )
    internal_transaction_estimate_correction: int = Field(
        default=20000,
        ge=0,
        description="Gas subtracted from estimates of calls that will run as internal calls",
    )

    @property
    def has_relay_hub(self) -> bool:
        return bool(self.relay_hub_address) and self.relay_hub_address != ZERO_ADDRESS


# Global settings instance
settings = Settings()
