"""
Configuration module using Pydantic Settings.

Provides validated, type-safe configuration from environment variables
(or a local .env file). The data layer receives a Settings instance by
injection; get_settings() returns a lazily created default for callers
that don't build their own.

API key precedence:
    1. Explicit override (user-provided key, e.g. CLI --api-key)
    2. TWELVE_DATA_API_KEY from the environment / .env
    3. The literal "demo" key, which disables all network calls
"""

import logging
import sys

import structlog
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEMO_API_KEY = "demo"

# --- Logging Setup (must happen before Settings to capture validation errors) ---
logging.basicConfig(
    format="%(asctime)s [%(levelname)-8s] %(message)s",
    stream=sys.stderr,
    level=logging.INFO,
    force=True,
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.KeyValueRenderer(
            key_order=["timestamp", "level", "event"]
        ),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def set_log_level(level: str | int) -> None:
    """Apply a log level to the root logger and every logger created so far."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger().setLevel(level)
    for name in logging.root.manager.loggerDict:
        logging.getLogger(name).setLevel(level)


class Settings(BaseSettings):
    """
    Configuration for the stock screener data layer.

    The API key uses SecretStr to prevent accidental logging. Use
    get_api_key() to resolve the effective key.
    """

    # --- Upstream API ---
    twelve_data_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias="TWELVE_DATA_API_KEY",
        description="Twelve Data API key (empty means demo mode)",
    )
    twelve_data_base_url: str = Field(
        default="https://api.twelvedata.com",
        validation_alias="TWELVE_DATA_BASE_URL",
        description="Base URL of the Twelve Data REST API",
    )
    user_agent: str = Field(
        default="StockScreener/1.0",
        validation_alias="SCREENER_USER_AGENT",
        description="User-Agent header sent with every request",
    )

    # --- Request & Cache Settings ---
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        validation_alias="REQUEST_TIMEOUT",
        description="Per-request timeout in seconds",
    )
    cache_duration: float = Field(
        default=300.0,
        ge=0,
        validation_alias="CACHE_DURATION",
        description="Freshness window for cached stock records, in seconds",
    )
    max_cache_entries: int = Field(
        default=50,
        ge=1,
        validation_alias="MAX_CACHE_ENTRIES",
        description="Nominal cache capacity (pinned symbols may exceed it)",
    )
    search_max_results: int = Field(
        default=10,
        ge=1,
        le=10,
        validation_alias="SEARCH_MAX_RESULTS",
        description="Maximum number of symbol search results per query",
    )

    # Comma separated in the environment: DEFAULT_STOCKS=AAPL,MSFT,NVDA
    default_stocks: str = Field(
        default="AAPL,GOOGL,MSFT,TSLA,JNJ,JPM,V,PG,XOM,HD",
        validation_alias="DEFAULT_STOCKS",
        description="Symbols fetched when the caller doesn't name any",
    )

    # --- Logging ---
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    # --- Environment ---
    environment: str = Field(
        default="dev",
        validation_alias="ENVIRONMENT",
        description="Environment (dev, prod, test)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=False,
        populate_by_name=True,
    )

    @field_validator("twelve_data_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def setup_logging(self) -> "Settings":
        """Post-initialization: apply the configured log level."""
        set_log_level(self.log_level)
        return self

    def get_api_key(self, override: str | None = None) -> str:
        """
        Resolve the effective API key.

        Args:
            override: User-provided key. Ignored when empty or "demo".

        Returns:
            The override, else the configured key, else "demo".
        """
        if override and override.strip() and override.strip() != DEMO_API_KEY:
            return override.strip()
        configured = self.twelve_data_api_key.get_secret_value().strip()
        if configured:
            return configured
        return DEMO_API_KEY

    def is_demo_mode(self, override: str | None = None) -> bool:
        """True when the resolved key is the demo sentinel (no network calls)."""
        return self.get_api_key(override) == DEMO_API_KEY

    def get_default_symbols(self) -> list[str]:
        """Default symbol list, uppercased, blanks dropped."""
        return [s.strip().upper() for s in self.default_stocks.split(",") if s.strip()]


# --- Lazily created default instance ---
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get or create the process-wide default Settings.

    Components accept an injected Settings; this is only the default.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
