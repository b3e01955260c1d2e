"""Read-only virtual filesystem over torrents, zip archives and in-memory files."""

__version__ = "0.1.0"