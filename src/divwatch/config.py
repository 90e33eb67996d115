"""Configuration values for the divwatch package."""

from datetime import date

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    metrics_key: str | None = Field(
        None, description="Shared secret required by the metrics endpoints"
    )

    portfolio_json: str | None = Field(
        None,
        description='Positions as JSON, e.g. {"KO": {"shares": 10, "avgPrice": 55.1}}',
    )
    start_date: date = Field(
        date(2023, 1, 1), description="Baseline date for price return"
    )

    fmp_api_key: str | None = Field(None, description="Financial Modeling Prep API key")
    polygon_api_key: str | None = Field(None, description="Polygon.io API key")
    data_providers: str = Field(
        "fmp,polygon", description="Comma-separated provider fallback order"
    )

    reporting_timezone: str = Field(
        "America/New_York",
        description="Timezone used for 'now' and dividend calendar years",
    )

    quote_cache_ttl: int = Field(60, description="Quote cache TTL in seconds")
    dividends_cache_ttl: int = Field(
        12 * 60 * 60, description="Dividend history cache TTL in seconds"
    )
    baseline_cache_ttl: int = Field(
        30 * 24 * 60 * 60, description="Baseline price cache TTL in seconds"
    )
    http_timeout: float = Field(30.0, description="Provider request timeout in seconds")

    log_level: str = Field("INFO", description="Log level")

    host: str = Field("0.0.0.0", description="HTTP bind host")
    port: int = Field(3000, description="HTTP bind port")

    sentry_dsn: str | None = Field(None, description="Sentry DSN (optional)")
    sentry_environment: str = Field("production", description="Sentry environment")
    sentry_traces_sample_rate: float = Field(
        0.0, description="Sentry traces sample rate"
    )

    def get_provider_names(self) -> list[str]:
        """Return the configured provider order, lowercased, blanks removed."""
        return [
            name.strip().lower() for name in self.data_providers.split(",") if name.strip()
        ]


settings = Settings()
