"""Application settings and configuration management."""
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AviratoAPISettings(BaseSettings):
    """Avirato PMS API configuration."""

    base_url: str = "https://apiv3.avirato.com/v3"
    request_timeout: float = 60.0  # Reservation listing is the heaviest call
    lookup_timeout: float = 30.0  # Reference lookups and billing
    max_retries: int = 3

    # Reservation listing
    page_size: int = 100
    max_pages: int = 100
    include_charges: bool = True

    # Window reconciliation
    window_padding_days: int = 90  # Heuristic bound on stay length + lead time
    default_lookback_days: int = 30

    billing_concurrency: int = 5

    # Only read by the command-line entry point
    email: str = ""
    password: str = ""

    model_config = SettingsConfigDict(env_prefix="AVIRATO_")


class SessionStoreSettings(BaseSettings):
    """Redis configuration for the persisted session."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    ssl: bool = False
    socket_timeout: int = 5
    socket_connect_timeout: int = 5

    # Fixed key names for the persisted session
    token_key: str = "avirato_token"
    site_codes_key: str = "avirato_web_codes"
    expiry_key: str = "avirato_token_expiry"

    model_config = SettingsConfigDict(env_prefix="SESSION_")


class EnrichmentSettings(BaseSettings):
    """Display fallbacks and operator name overrides."""

    # Channel codes the operators endpoint does not always list.
    # Overlaid by API-provided names; override with ENRICHMENT_OPERATOR_OVERRIDES='{"7": "..."}'
    operator_overrides: dict[int, str] = Field(
        default_factory=lambda: {
            0: "Directo",
            1: "Motor de reservas",
            2: "Booking.com",
            3: "Expedia",
            4: "Airbnb",
        }
    )
    operator_fallback: str = "Operador {id}"
    operator_unknown: str = "Operador desconocido"
    space_type_fallback: str = "Type {id}"
    no_extras_label: str = "No tiene extras contratados"

    model_config = SettingsConfigDict(env_prefix="ENRICHMENT_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """Main application settings."""

    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False

    # Sub-settings
    avirato: AviratoAPISettings = AviratoAPISettings()
    session: SessionStoreSettings = SessionStoreSettings()
    enrichment: EnrichmentSettings = EnrichmentSettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_credentials(self) -> list[str]:
        """Validate the vars the entry point needs. Returns list of missing var names."""
        missing = []
        if not self.avirato.email.strip():
            missing.append("AVIRATO_EMAIL")
        if not self.avirato.password:
            missing.append("AVIRATO_PASSWORD")
        return missing


# Global settings instance
settings = Settings()
