"""Portfolio dividend and price-return metrics service."""
