from __future__ import annotations

import secrets
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def generate_secret() -> str:
    """Generate a secure random token."""
    return secrets.token_hex(32)


# One Tgas in raw gas units
TGAS = 10**12


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ------------------------------------------------------------
    # Server
    # ------------------------------------------------------------
    backend_host: str = "0.0.0.0"
    backend_port: int = 8080
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"

    # ------------------------------------------------------------
    # Database
    # ------------------------------------------------------------
    database_url: str = "sqlite:///./data/proxy.db"

    # ------------------------------------------------------------
    # Authentication (JWT)
    # ------------------------------------------------------------
    # In production, MUST be set via env var JWT_SECRET
    jwt_secret: str = Field(default_factory=generate_secret)
    jwt_issuer: str = "governance-proxy"
    jwt_audience: str = "governance-proxy-callers"
    access_token_expire_minutes: int = 720
    jwt_algorithm: str = "HS256"

    # ------------------------------------------------------------
    # Contract identity
    # ------------------------------------------------------------
    # The proxy's own account. Only this identity may run initialization,
    # and it is the predecessor presented to the voting system.
    proxy_account_id: str = "proxy.governance.testnet"

    # If set, the contract root is initialized with this owner at startup
    owner_id: Optional[str] = None

    # ------------------------------------------------------------
    # Voting system
    # ------------------------------------------------------------
    voting_base_url: str = "http://127.0.0.1:8091"
    voting_contract_id: str = "shade.ballotbox.testnet"
    voting_token: Optional[str] = None

    # ------------------------------------------------------------
    # Governance budgets
    # ------------------------------------------------------------
    gas_for_governance_tgas: int = 50
    gas_for_callback_tgas: int = 30
    approval_deposit_yocto: int = 1
    # Wall-clock allowance per Tgas when turning a gas budget into a timeout
    seconds_per_tgas: float = 0.2

    # ------------------------------------------------------------
    # Attestation
    # ------------------------------------------------------------
    attestation_mode: str = "dev"  # dev | strict

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def governance_gas(self) -> int:
        return self.gas_for_governance_tgas * TGAS

    @property
    def callback_gas(self) -> int:
        return self.gas_for_callback_tgas * TGAS

    @property
    def governance_timeout_s(self) -> float:
        return self.gas_for_governance_tgas * self.seconds_per_tgas

    def validate_runtime(self) -> None:
        """Fail fast on missing critical config in production."""
        import os
        if self.is_production:
            missing = []
            # Require explicitly-set secrets in production (not auto-generated)
            if not os.environ.get("JWT_SECRET"):
                missing.append("JWT_SECRET")
            if missing:
                raise RuntimeError(
                    f"Missing required environment variables in production: {', '.join(missing)}"
                )
            if self.attestation_mode.lower() == "dev":
                raise RuntimeError("ATTESTATION_MODE=dev is not allowed in production")


settings = Settings()
settings.validate_runtime()
