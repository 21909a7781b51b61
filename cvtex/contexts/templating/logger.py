"""
Templating context logger.

Provides logging interface for templating context with automatic [template] prefix.
All templating modules should import from this module, not from utils.logger directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[template]"


# Wrapper functions with automatic [template] prefix


def _log_info(message: str) -> None:
    """Log info message with [template] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [template] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level templating-specific logging helpers


def log_document_summary(owner: str, section_sizes: dict, document_length: int) -> None:
    """Log what went into an assembled document."""
    _log_info(f"Assembled CV for {owner} ({document_length} characters)")
    for section, size in section_sizes.items():
        _log_debug(f"  {section}: {size} entries")
