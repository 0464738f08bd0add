"""FundKeeper: a small REST backend for saved mutual fund selections."""

__version__ = "1.0.0"
