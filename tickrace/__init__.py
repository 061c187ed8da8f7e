"""Market-data challenge server, trading engine and message parsing."""

__version__ = "0.1.0"