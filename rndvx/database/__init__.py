"""rndvx database helpers."""

from rndvx.database.collections import ensure_indexes

__all__ = ["ensure_indexes"]
