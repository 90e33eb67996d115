"""
FastAPI application serving the portfolio metrics.

Run locally:
    uvicorn divwatch.app:app --reload --port 3000
"""

import secrets
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from divwatch.config import settings
from divwatch.exceptions import ConfigurationError
from divwatch.logging import logger
from divwatch.models import MetricsReport, Position
from divwatch.portfolio import load_portfolio
from divwatch.providers.fallback import build_provider
from divwatch.render import render_report_html
from divwatch.service import PortfolioService
from divwatch.version import get_version_info


@lru_cache(maxsize=1)
def _service() -> PortfolioService:
    # Built once per process so the provider caches survive between requests
    return PortfolioService(
        provider=build_provider(settings),
        start_date=settings.start_date,
        timezone=settings.reporting_timezone,
    )


async def close_service() -> None:
    """Close the provider chain if the service was ever built."""
    if not _service.cache_info().currsize:
        return
    await _service().provider.aclose()
    _service.cache_clear()
    logger.info("Market data providers closed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_service()


app = FastAPI(
    title="divwatch",
    summary="Dividend and price-return portfolio metrics",
    lifespan=lifespan,
)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(
        "Configuration error path={path} error={error}",
        path=request.url.path,
        error=str(exc),
    )
    return JSONResponse(status_code=500, content={"error": str(exc)})


def get_service() -> PortfolioService:
    """FastAPI dependency: the process-wide PortfolioService."""
    return _service()


def get_positions() -> list[Position]:
    """FastAPI dependency: positions parsed from PORTFOLIO_JSON."""
    return load_portfolio(settings.portfolio_json)


def require_key(request: Request) -> None:
    """FastAPI dependency: check the shared secret from the header or ?key=."""
    expected = settings.metrics_key
    if not expected:
        raise HTTPException(status_code=500, detail="METRICS_KEY not set")

    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        token = header[len("Bearer ") :]
    else:
        token = request.query_params.get("key", "")

    if not secrets.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "ok"


@app.get("/health")
async def health():
    return {"status": "ok", "version": get_version_info()}


@app.get(
    "/metrics",
    response_model=MetricsReport,
    dependencies=[Depends(require_key)],
)
async def metrics(
    positions: list[Position] = Depends(get_positions),
    service: PortfolioService = Depends(get_service),
):
    """Per-ticker metrics plus portfolio totals as JSON."""
    return await service.build_report(positions)


@app.get(
    "/metrics.html",
    response_class=HTMLResponse,
    dependencies=[Depends(require_key)],
)
async def metrics_html(
    positions: list[Position] = Depends(get_positions),
    service: PortfolioService = Depends(get_service),
):
    """The same report rendered as an HTML table."""
    report = await service.build_report(positions)
    return render_report_html(report)
