from . import health, market_data, sentiment


__all__ = ["health", "market_data", "sentiment"]
