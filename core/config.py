"""Application configuration for the Maitrix auto-task bot.

Settings are loaded from environment variables (with ``.env`` file
support) through Pydantic v2.  Only two values are mandatory: the RPC
endpoint and the account secret.  Everything else has a default that
matches the daily workflow timings.

Key exports:
    BotSettings: Root settings model (instantiate once at startup).
    ConfigurationError: Raised when required settings are missing.
    BASE_DIR / LOGS_DIR: Canonical project paths.
"""

# pylint: disable=no-member

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Base Paths
# ---------------------------------------------------------------------------
BASE_DIR: Path = Path(__file__).parent.parent
"""Project root directory (parent of ``core/``)."""

LOGS_DIR: Path = BASE_DIR / "logs"
"""Directory for log output files."""

ARBITRUM_SEPOLIA_CHAIN_ID = 421614

logger: logging.Logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a required setting is missing or unusable. Always fatal."""


class BotSettings(BaseSettings):
    """Root configuration model.

    Section overview:
        * **Core** -- log level and log file location.
        * **Chain** -- RPC endpoint, account secret, chain id, explorer.
        * **Timing** -- cycle period, step cool-downs, faucet pacing.
        * **Transactions** -- retry budget, backoff range, gas fallback.
    """

    # Core
    log_level: str = "INFO"
    log_file: str = str(LOGS_DIR / "maitrix_bot.log")

    # Chain
    rpc_url: Optional[str] = None
    private_key: Optional[SecretStr] = None
    chain_id: int = ARBITRUM_SEPOLIA_CHAIN_ID
    explorer_tx_url: str = "https://sepolia.arbiscan.io/tx/"

    # Timing (seconds)
    cycle_interval_seconds: int = 24 * 60 * 60
    step_cooldown_seconds: float = 5.0
    # Lets freshly claimed faucet tokens settle before they are spent
    settle_delay_seconds: float = 10.0
    faucet_pacing_seconds: float = 2.0

    # Transactions
    # Additional attempts after the first one (mint only)
    mint_max_retries: int = Field(default=2, ge=0)
    retry_backoff_min_seconds: float = 7.0
    retry_backoff_max_seconds: float = 10.0
    default_gas_units: int = 500_000
    # Upper bound handed to the RPC client's receipt wait
    receipt_timeout_seconds: float = 120.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def missing_credentials(self) -> List[str]:
        """Return the environment names of required settings that are unset."""
        missing = []
        if not self.rpc_url or not self.rpc_url.strip():
            missing.append("RPC_URL")
        if self.private_key is None or not self.private_key.get_secret_value().strip():
            missing.append("PRIVATE_KEY")
        return missing

    def require_credentials(self) -> None:
        """Fail fast when the RPC endpoint or account secret is absent.

        Raises:
            ConfigurationError: Listing every missing variable.
        """
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(
                f"Please set {', '.join(missing)} in your .env file"
            )
        if self.retry_backoff_min_seconds > self.retry_backoff_max_seconds:
            raise ConfigurationError(
                "retry_backoff_min_seconds must not exceed retry_backoff_max_seconds"
            )

    def secret_value(self) -> str:
        """Return the raw account secret.

        Raises:
            ConfigurationError: If no secret is configured.
        """
        if self.private_key is None:
            raise ConfigurationError("PRIVATE_KEY is required")
        return self.private_key.get_secret_value().strip()
