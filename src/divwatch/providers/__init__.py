"""Market-data provider adapters."""
