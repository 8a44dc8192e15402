"""Audio fingerprinting and song matching against an SQLite song store."""

__version__ = "0.1.0"