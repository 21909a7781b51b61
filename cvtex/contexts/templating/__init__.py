"""
Templating Context

Responsibilities:
- Represents CV records (profile, education, papers, talks, awards, projects, references)
- Formats each CV section as LaTeX markup
- Assembles the LaTeX document from the static preamble/postamble and body template

Owns: CV data structures, section formatting, LaTeX template system
Never: Invokes the LaTeX compiler or touches output directories
"""

from cvtex.contexts.templating.cv_data_structures import CVContext, load_context
from cvtex.contexts.templating.document_builder import (
    assemble_document,
    build_body,
    build_document,
    build_document_async,
    load_fragments,
)
from cvtex.contexts.templating.exceptions import (
    ContextLoadError,
    TemplateRenderError,
    UnsafeContentError,
)
from cvtex.contexts.templating.latex_formatters import FormatterOptions, partition_papers

__all__ = [
    # Data structures
    "CVContext",
    "load_context",
    # Document assembly
    "assemble_document",
    "build_body",
    "build_document",
    "build_document_async",
    "load_fragments",
    # Formatting
    "FormatterOptions",
    "partition_papers",
    # Errors
    "ContextLoadError",
    "TemplateRenderError",
    "UnsafeContentError",
]
