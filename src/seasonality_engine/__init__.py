"""Calendar seasonality analytics over OHLCV time series."""

__version__ = "0.1.0"
