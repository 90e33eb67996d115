"""Load the static portfolio configuration."""

import json

from divwatch.exceptions import ConfigurationError
from divwatch.logging import logger
from divwatch.metrics import to_num
from divwatch.models import Position


def load_portfolio(raw: str | None) -> list[Position]:
    """
    Parse the PORTFOLIO_JSON value into positions.

    Args:
        raw: JSON object mapping ticker to ``{"shares": ..., "avgPrice": ...}``

    Returns:
        Positions in the order they appear in the JSON object

    Raises:
        ConfigurationError: if the value is missing, not valid JSON, not an
            object, empty, or any entry lacks positive shares/avgPrice
    """
    if not raw:
        raise ConfigurationError("PORTFOLIO_JSON missing")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError("PORTFOLIO_JSON invalid JSON") from e

    if not isinstance(parsed, dict):
        raise ConfigurationError("PORTFOLIO_JSON must be a JSON object")

    positions = []
    seen = set()
    for ticker, entry in parsed.items():
        symbol = ticker.strip().upper()
        if not symbol:
            raise ConfigurationError("PORTFOLIO_JSON contains an empty ticker")
        if symbol in seen:
            raise ConfigurationError(f"Duplicate ticker {symbol}")
        seen.add(symbol)

        entry = entry if isinstance(entry, dict) else {}
        raw_values = (entry.get("shares"), entry.get("avgPrice"))
        # JSON true/false would otherwise coerce to 1.0/0.0
        shares, avg_price = (
            None if isinstance(value, bool) else to_num(value) for value in raw_values
        )
        if not shares or not avg_price or shares <= 0 or avg_price <= 0:
            raise ConfigurationError(f"Invalid shares/avgPrice for {ticker}")
        positions.append(Position(ticker=symbol, shares=shares, avg_price=avg_price))

    if not positions:
        raise ConfigurationError("Empty portfolio")

    logger.debug("Loaded portfolio positions={count}", count=len(positions))
    return positions
