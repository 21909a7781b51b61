"""
Text processing utilities for LaTeX generation.

Helpers that turn raw CV field values into strings that are safe to drop
into LaTeX markup.
"""

import re

# Placeholder used in stored e-mail addresses to keep them away from scrapers
EMAIL_AT_PLACEHOLDER = ".."

# LaTeX special characters and their escaped forms (backslash handled separately)
LATEX_SPECIAL_CHARS = {
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}

_LATEX_SPECIAL_PATTERN = re.compile(r"[\\&%$#_{}~^]")

# Leading "scheme:" and/or "//" of a URL
_URL_SCHEME_PATTERN = re.compile(r"(^\w+:|^)//")


def escape_latex(text: str) -> str:
    """
    Escape LaTeX special characters in plain text.

    All characters are replaced in a single pass so that freshly emitted
    escapes are never escaped a second time.

    Args:
        text: Plain text (no LaTeX commands)

    Returns:
        Text safe to embed in a LaTeX document

    Example:
        >>> escape_latex("R&D 100%")
        'R\\\\&D 100\\\\%'
        >>> escape_latex(r"C:\\tmp")
        'C:\\\\textbackslash{}tmp'
    """
    if not text:
        return ""

    def _replace(match: re.Match) -> str:
        char = match.group(0)
        if char == "\\":
            return r"\textbackslash{}"
        return LATEX_SPECIAL_CHARS[char]

    return _LATEX_SPECIAL_PATTERN.sub(_replace, text)


def deobfuscate_email(email: str) -> str:
    """
    Restore a stored e-mail address by replacing the first ".." with "@".

    Only the first occurrence is replaced, so dots elsewhere in the address
    survive untouched.

    Example:
        >>> deobfuscate_email("jane..doe.com")
        'jane@doe.com'
        >>> deobfuscate_email("a..b..c")
        'a@b..c'
    """
    return email.replace(EMAIL_AT_PLACEHOLDER, "@", 1)


def strip_url_scheme(url: str) -> str:
    """
    Remove the scheme and leading slashes from a URL for display.

    Example:
        >>> strip_url_scheme("https://example.com/cv")
        'example.com/cv'
        >>> strip_url_scheme("//example.com")
        'example.com'
    """
    return _URL_SCHEME_PATTERN.sub("", url, count=1)
