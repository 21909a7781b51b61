"""
Shared utilities for cvtex.

Common functionality used across contexts:
- Date parsing and reverse-chronological sorting
- LaTeX text helpers
- Logger setup
"""

from cvtex.utils.dates import get_year, parse_date, sort_by_date, year_range
from cvtex.utils.text_processing import deobfuscate_email, escape_latex, strip_url_scheme
from cvtex.utils.timestamp import now

__all__ = [
    "deobfuscate_email",
    "escape_latex",
    "get_year",
    "now",
    "parse_date",
    "sort_by_date",
    "strip_url_scheme",
    "year_range",
]
