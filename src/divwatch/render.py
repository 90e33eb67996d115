"""HTML rendering of a metrics report."""

from html import escape

from divwatch.models import MetricsReport, TickerError, TickerMetrics

COLUMNS = [
    "Ticker",
    "Name",
    "Curr",
    "Shares",
    "Avg Px",
    "Start Px",
    "Curr Px",
    "Price Return %",
    "TTM Div/Share",
    "Current Yield",
    "Yield on Cost",
    "DGR 3y",
    "DGR 5y",
    "DGR 10y",
    "Annual Div Income",
    "Monthly Div Income",
]

STYLE = """
body{font-family:system-ui,-apple-system,Segoe UI,Roboto,Arial,sans-serif;margin:24px}
table{border-collapse:collapse;width:100%}
th,td{border:1px solid #ddd;padding:8px;font-size:14px}
th{background:#f6f6f6;text-align:left;position:sticky;top:0}
tfoot td{font-weight:700;background:#fafafa}
td.error{color:#b00020}
small{color:#666}
.code{font-family:ui-monospace,Menlo,Consolas,monospace}
"""


def format_number(value: float | None, digits: int = 2) -> str:
    """Format a number with fixed decimals, '-' when unavailable."""
    if value is None:
        return "-"
    return f"{value:.{digits}f}"


def format_percent(value: float | None) -> str:
    """Format a ratio as a percentage (0.0123 -> '1.23%'), '-' when unavailable."""
    if value is None:
        return "-"
    return f"{value * 100:.2f}%"


def _cells(*values: str) -> str:
    return "".join(f"<td>{escape(value)}</td>" for value in values)


def _metrics_row(row: TickerMetrics) -> str:
    return "<tr>" + _cells(
        row.ticker,
        row.name,
        row.currency,
        f"{row.shares:g}",
        format_number(row.avg_price),
        format_number(row.start_price),
        format_number(row.current_price),
        format_percent(row.price_return_pct),
        format_number(row.ttm_div_ps),
        format_percent(row.current_yield),
        format_percent(row.yield_on_cost),
        format_percent(row.dgr3),
        format_percent(row.dgr5),
        format_percent(row.dgr10),
        format_number(row.annual_div_income),
        format_number(row.monthly_div_income),
    ) + "</tr>"


def _error_row(row: TickerError) -> str:
    return (
        f"<tr><td>{escape(row.ticker)}</td>"
        f'<td class="error" colspan="{len(COLUMNS) - 1}">{escape(row.error)}</td></tr>'
    )


def render_report_html(report: MetricsReport) -> str:
    """
    🖼️ Render the report as a standalone HTML page.

    Successful tickers get one row each, failed tickers a single error cell,
    and the footer carries the portfolio totals.
    """
    body_rows = "\n".join(
        _metrics_row(row) if isinstance(row, TickerMetrics) else _error_row(row)
        for row in report.per_ticker
    )
    header = "".join(f"<th>{escape(column)}</th>" for column in COLUMNS)
    totals = report.totals

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Portfolio Metrics</title>
<style>{STYLE}</style>
</head>
<body>
  <h2>Portfolio Metrics <small class="code">{escape(report.start_date.isoformat())} baseline</small></h2>
  <table>
    <thead>
      <tr>{header}</tr>
    </thead>
    <tbody>
{body_rows}
    </tbody>
    <tfoot>
      <tr>
        <td colspan="6">Totals {escape(totals.currency)} <small>market value {format_number(totals.market_value)}</small></td>
        <td></td>
        <td>{format_percent(totals.price_return_pct)}</td>
        <td colspan="6"></td>
        <td>{format_number(totals.annual_div_income)}</td>
        <td>{format_number(totals.monthly_div_income)}</td>
      </tr>
    </tfoot>
  </table>
  <p><small>Generated {escape(report.generated_at.strftime("%Y-%m-%d %H:%M:%S %Z"))}</small></p>
</body>
</html>"""
