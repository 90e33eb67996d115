import sys

import sentry_sdk
import uvicorn

from divwatch.app import app
from divwatch.config import settings
from divwatch.exceptions import ConfigurationError
from divwatch.logging import configure_logging, logger
from divwatch.portfolio import load_portfolio
from divwatch.providers.fallback import configured_provider_names
from divwatch.version import get_version_info


def init_sentry() -> None:
    """Initialize Sentry if a DSN is configured."""
    if not settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        attach_stacktrace=True,
    )
    logger.info(
        "Sentry initialized environment={environment} traces_sample_rate={traces_sample_rate}",
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )


def validate_configuration() -> None:
    """Fail fast on a bad portfolio or missing provider credentials."""
    positions = load_portfolio(settings.portfolio_json)
    providers = configured_provider_names(settings)
    if not settings.metrics_key:
        raise ConfigurationError("METRICS_KEY not set")
    logger.info(
        "Configuration valid tickers={tickers} providers={providers} start_date={start_date}",
        tickers=",".join(p.ticker for p in positions),
        providers=",".join(providers),
        start_date=str(settings.start_date),
    )


def main() -> int:
    configure_logging(settings.log_level)
    init_sentry()

    logger.info("Starting divwatch version={version}", version=get_version_info())
    try:
        validate_configuration()
    except ConfigurationError as e:
        logger.error("Invalid configuration error={error}", error=str(e))
        return 1

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
