"""Multi-chain balance and trade-quote aggregation engine."""

__version__ = "0.1.0"
