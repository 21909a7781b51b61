"""
CV Document Builder

Assembles the complete LaTeX source of the CV: renders every section with
the formatters in latex_formatters.py, interpolates them into the body
template, and wraps the body between the static preamble and postamble.
"""

import asyncio
from pathlib import Path
from typing import Dict, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, TemplateError

from cvtex.contexts.templating.cv_data_structures import CVContext
from cvtex.contexts.templating.exceptions import TemplateRenderError
from cvtex.contexts.templating.latex_formatters import (
    DEFAULT_OPTIONS,
    FormatterOptions,
    format_address_line,
    format_awards,
    format_education,
    format_papers,
    format_presentations,
    format_projects,
    format_refereeing,
    format_references,
    partition_papers,
)
from cvtex.contexts.templating.logger import _log_debug, log_document_summary

TEMPLATE_DIR = Path(__file__).parent / "template"
PREAMBLE_FILE = "_preamble.tex"
POSTAMBLE_FILE = "_postamble.tex"
BODY_TEMPLATE = "cv_body.tex.jinja"


def create_latex_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    """
    Create a Jinja2 environment for LaTeX templates.

    Uses custom delimiters to avoid conflicts with LaTeX syntax:
    - Variable: <<< var >>>
    - Block: <%% block %%>
    - Comment: <# comment #>
    """
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        variable_start_string="<<<",
        variable_end_string=">>>",
        block_start_string="<%%",
        block_end_string="%%>",
        comment_start_string="<#",
        comment_end_string="#>",
        # Preserve whitespace (important for LaTeX)
        trim_blocks=False,
        lstrip_blocks=False,
        keep_trailing_newline=True,
    )


def _read_fragment(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def load_fragments(template_dir: Path = TEMPLATE_DIR) -> Tuple[str, str]:
    """
    Read the static preamble and postamble.

    Returns:
        (prologue, epilogue)
    """
    return (
        _read_fragment(template_dir / PREAMBLE_FILE),
        _read_fragment(template_dir / POSTAMBLE_FILE),
    )


async def load_fragments_async(template_dir: Path = TEMPLATE_DIR) -> Tuple[str, str]:
    """Read the preamble and postamble concurrently."""
    prologue, epilogue = await asyncio.gather(
        asyncio.to_thread(_read_fragment, template_dir / PREAMBLE_FILE),
        asyncio.to_thread(_read_fragment, template_dir / POSTAMBLE_FILE),
    )
    return prologue, epilogue


def render_sections(
    context: CVContext, options: FormatterOptions = DEFAULT_OPTIONS
) -> Dict[str, str]:
    """
    Render every CV section to LaTeX.

    Returns:
        Mapping of body-template variable name to rendered fragment
    """
    profile = context.profile
    accepted, working = partition_papers(context.papers)

    return {
        "name": options.text(profile.title),
        "bio": options.text(profile.bio),
        "address_line": format_address_line(profile, options),
        "education": format_education(context.education, options),
        "publications": format_papers(accepted, profile, options),
        "working_papers": format_papers(working, profile, options),
        "presentations": format_presentations(context.presentations, options),
        "refereeing": format_refereeing(context.refereeing, options),
        "awards": format_awards(context.awards, options),
        "research_experience": format_awards(context.research_experience, options),
        "research_software": format_projects(context.academic_projects, options),
        "other_software": format_projects(
            list(context.professional_projects) + list(context.personal_projects), options
        ),
        "references": format_references(context.references, options),
    }


def build_body(
    context: CVContext,
    options: FormatterOptions = DEFAULT_OPTIONS,
    template_dir: Path = TEMPLATE_DIR,
) -> str:
    """
    Render the document body (everything between preamble and postamble).

    Raises:
        TemplateRenderError: If the body template is missing or fails to render
    """
    sections = render_sections(context, options)
    env = create_latex_environment(template_dir)

    try:
        template = env.get_template(BODY_TEMPLATE)
        return template.render(**sections)
    except TemplateError as e:
        raise TemplateRenderError(
            "Failed to render CV body", template_path=template_dir / BODY_TEMPLATE, original_error=e
        ) from e


def assemble_document(prologue: str, body: str, epilogue: str) -> str:
    """Concatenate preamble, body and postamble into one LaTeX source."""
    return f"{prologue}\n{body}\n{epilogue}"


def _log_summary(context: CVContext, document: str) -> None:
    log_document_summary(
        owner=context.profile.title,
        section_sizes={
            "education": len(context.education),
            "papers": len(context.papers),
            "presentations": len(context.presentations),
            "awards": len(context.awards),
            "research experience": len(context.research_experience),
            "references": len(context.references),
        },
        document_length=len(document),
    )


def build_document(
    context: CVContext,
    options: FormatterOptions = DEFAULT_OPTIONS,
    template_dir: Optional[Path] = None,
) -> str:
    """
    Build the complete LaTeX source of the CV.

    Args:
        context: CV data
        options: Formatting options (escaping policy)
        template_dir: Directory holding the preamble, postamble and body template

    Returns:
        Preamble + body + postamble
    """
    template_dir = template_dir or TEMPLATE_DIR
    _log_debug(f"Templates: {template_dir}")

    prologue, epilogue = load_fragments(template_dir)
    document = assemble_document(prologue, build_body(context, options, template_dir), epilogue)
    _log_summary(context, document)
    return document


async def build_document_async(
    context: CVContext,
    options: FormatterOptions = DEFAULT_OPTIONS,
    template_dir: Optional[Path] = None,
) -> str:
    """Like build_document(), reading the preamble and postamble concurrently."""
    template_dir = template_dir or TEMPLATE_DIR
    _log_debug(f"Templates: {template_dir}")

    prologue, epilogue = await load_fragments_async(template_dir)
    document = assemble_document(prologue, build_body(context, options, template_dir), epilogue)
    _log_summary(context, document)
    return document
