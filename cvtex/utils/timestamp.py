"""Timestamp formatting utilities."""

from datetime import datetime


def now() -> str:
    """Current local time as a compact, filesystem-safe stamp (YYYYMMDD_HHMMSS)."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")

