"""Account connect server for linking Upstox brokerage accounts."""

__version__ = "1.0.0"
