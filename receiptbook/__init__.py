"""Local-first receipt book: business profile, receipts, inventory and settings on SQLite."""

__version__ = "0.1.0"
