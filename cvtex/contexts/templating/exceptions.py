"""Custom exceptions for templating context."""

from pathlib import Path
from typing import Optional


class TemplateRenderError(Exception):
    """
    Exception raised when template rendering fails.

    Attributes:
        message: Error description
        template_path: Path to the template file
        original_error: The original Jinja2 error
    """

    def __init__(
        self,
        message: str,
        template_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.template_path = template_path
        self.original_error = original_error

        parts = [message]

        if template_path:
            parts.append(f"\nTemplate: {template_path}")

        if original_error:
            parts.append(f"\nOriginal error: {str(original_error)}")

        super().__init__("\n".join(parts))


class UnsafeContentError(ValueError):
    """
    Exception raised when embedded content would break out of its LaTeX environment.

    Attributes:
        message: Error description
        source: Name of the record carrying the content (e.g., a paper title)
        snippet: The offending content
    """

    def __init__(self, message: str, source: Optional[str] = None, snippet: Optional[str] = None):
        self.message = message
        self.source = source
        self.snippet = snippet

        parts = [message]
        if source:
            parts.append(f"Source: {source}")
        if snippet:
            # Truncate snippet if too long
            shown = snippet[:200] + "..." if len(snippet) > 200 else snippet
            parts.append(f"\nContent:\n{shown}")

        super().__init__("\n".join(parts))


class ContextLoadError(ValueError):
    """
    Exception raised when a CV context file is missing required structure.

    Raised for missing top-level keys (e.g., no 'site' profile) rather than
    for absent optional fields, which simply drop their annotations.
    """

    pass
