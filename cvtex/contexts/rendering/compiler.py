"""
LaTeX Compilation Module

Pipes the assembled CV into LuaLaTeX and moves the resulting PDF into the
distribution directory.

LuaLaTeX is required because the markdown package used for paper abstracts
is written in Lua.
"""

import asyncio
import os
import re
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from cvtex.contexts.rendering.logger import (
    _log_debug,
    _log_info,
    log_compilation_result,
    log_compilation_start,
)
from cvtex.contexts.templating.cv_data_structures import CVContext
from cvtex.contexts.templating.document_builder import build_document, build_document_async
from cvtex.contexts.templating.latex_formatters import FormatterOptions

load_dotenv()

DEFAULT_LATEX_COMPILER = "tmp/vtex/bin/x86_64-linux/lualatex"
DEFAULT_WORK_DIR = "tmp"
DEFAULT_DIST_DIR = "dist"
DEFAULT_JOBNAME = "cv"


@dataclass
class CompilationResult:
    """
    Result of LaTeX compilation.

    Attributes:
        success: Whether the compiler exited with status 0
        returncode: Compiler exit status (None if the process never started)
        pdf_path: Path to generated PDF in the working directory (None if absent)
        stdout: Standard output from the compiler
        stderr: Standard error from the compiler
        errors: List of parsed LaTeX errors
        warnings: List of parsed LaTeX warnings
    """

    success: bool
    returncode: Optional[int] = None
    pdf_path: Optional[Path] = None
    stdout: str = ""
    stderr: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class RenderResult:
    """
    Outcome of a full CV render.

    Attributes:
        success: Whether the CV was compiled and moved to the distribution directory
        document: The LaTeX source that was compiled
        compilation: Compiler diagnostics
        pdf_path: Final location of the PDF (None on failure)
    """

    success: bool
    document: str
    compilation: CompilationResult
    pdf_path: Optional[Path] = None

    @property
    def errors(self) -> List[str]:
        return self.compilation.errors


@dataclass
class RenderSettings:
    """
    Paths and options for a render.

    Relative paths are resolved against project_root. A compiler given as a
    bare name (no path separator) is looked up on PATH instead.

    Attributes:
        compiler: LuaLaTeX executable
        work_dir: Directory LuaLaTeX runs in (created if absent)
        dist_dir: Directory the finished PDF is moved to
        jobname: Output base name passed as --jobname
        template_dir: Override for preamble/postamble/body templates
        escape_text: Escape LaTeX special characters in plain-text fields
        project_root: Base for relative paths
    """

    compiler: str = DEFAULT_LATEX_COMPILER
    work_dir: Path = Path(DEFAULT_WORK_DIR)
    dist_dir: Path = Path(DEFAULT_DIST_DIR)
    jobname: str = DEFAULT_JOBNAME
    template_dir: Optional[Path] = None
    escape_text: bool = False
    project_root: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_env(cls) -> "RenderSettings":
        """Build settings from CVTEX_* environment variables (and .env)."""
        template_dir = os.getenv("CVTEX_TEMPLATE_DIR")
        return cls(
            compiler=os.getenv("CVTEX_LATEX_COMPILER", DEFAULT_LATEX_COMPILER),
            work_dir=Path(os.getenv("CVTEX_WORK_DIR", DEFAULT_WORK_DIR)),
            dist_dir=Path(os.getenv("CVTEX_DIST_DIR", DEFAULT_DIST_DIR)),
            jobname=os.getenv("CVTEX_JOBNAME", DEFAULT_JOBNAME),
            template_dir=Path(template_dir) if template_dir else None,
            escape_text=os.getenv("CVTEX_ESCAPE_TEXT", "false").lower() == "true",
            project_root=Path(os.getenv("PROJECT_ROOT", Path.cwd())),
        )

    def resolve(self, path: Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.project_root / path

    @property
    def resolved_compiler(self) -> str:
        if os.sep in self.compiler or "/" in self.compiler:
            return str(self.resolve(Path(self.compiler)))
        return self.compiler

    @property
    def work_pdf(self) -> Path:
        """Where the compiler writes the PDF."""
        return self.resolve(self.work_dir) / f"{self.jobname}.pdf"

    @property
    def dist_pdf(self) -> Path:
        """Where the finished PDF is published."""
        return self.resolve(self.dist_dir) / f"{self.jobname}.pdf"


# Lines LuaLaTeX marks with "!" are errors
LATEX_ERROR_LINE = re.compile(r"^! (.+)$", re.MULTILINE)

# Fatal messages that can appear without the "!" marker
LATEX_FATAL_MESSAGES = re.compile(
    r"((?:Undefined control sequence|File ended while scanning use of|Emergency stop).*?)$",
    re.MULTILINE,
)

LATEX_WARNING_LINES = [
    re.compile(r"LaTeX Warning: (.+)"),
    re.compile(r"Package \w+ Warning: (.+)"),
    re.compile(r"Overfull \\hbox \((.+)\)"),
    re.compile(r"Underfull \\hbox \((.+)\)"),
]


def _parse_latex_log(log_content: str) -> tuple[List[str], List[str]]:
    """
    Collect errors and warnings from a LuaLaTeX .log file.

    Returns:
        Tuple of (errors, warnings). A fatal message already reported on a
        "!" line is not repeated.
    """
    errors = [match.strip() for match in LATEX_ERROR_LINE.findall(log_content)]
    for message in LATEX_FATAL_MESSAGES.findall(log_content):
        if message not in errors:
            errors.append(message)

    warnings = [
        match.strip() for pattern in LATEX_WARNING_LINES for match in pattern.findall(log_content)
    ]
    return errors, warnings


def ensure_work_dir(work_dir: Path) -> Path:
    """Create the working directory if needed (idempotent)."""
    work_dir = Path(work_dir)
    work_dir.mkdir(parents=True, exist_ok=True)
    return work_dir


def _prepare_compile(work_dir: Path, jobname: str) -> None:
    # Leftovers from an earlier run must never be published or parsed
    for ext in (".pdf", ".log"):
        stale = work_dir / f"{jobname}{ext}"
        if stale.exists():
            stale.unlink()


def _collect_result(
    work_dir: Path, jobname: str, returncode: int, stdout: str, stderr: str
) -> CompilationResult:
    errors = []
    warnings = []

    log_file = work_dir / f"{jobname}.log"
    if log_file.exists():
        log_content = log_file.read_text(encoding="utf-8", errors="replace")
        errors, warnings = _parse_latex_log(log_content)

    pdf_path = work_dir / f"{jobname}.pdf"
    return CompilationResult(
        success=returncode == 0,
        returncode=returncode,
        pdf_path=pdf_path if pdf_path.exists() else None,
        stdout=stdout,
        stderr=stderr,
        errors=errors,
        warnings=warnings,
    )


def compile_latex(
    document: str,
    work_dir: Path,
    compiler: str,
    jobname: str = DEFAULT_JOBNAME,
) -> CompilationResult:
    """
    Compile a LaTeX document read from standard input.

    Runs ``<compiler> --jobname=<jobname>`` inside work_dir, writes the whole
    document to its stdin and closes it. Success means exit status 0.

    Args:
        document: Complete LaTeX source
        work_dir: Directory to run in (must exist)
        compiler: Compiler executable
        jobname: Output base name

    Returns:
        CompilationResult with success status and diagnostic information
    """
    _prepare_compile(work_dir, jobname)
    cmd = [compiler, f"--jobname={jobname}"]

    try:
        result = subprocess.run(
            cmd,
            cwd=work_dir,
            input=document,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",  # Replace invalid UTF-8 bytes instead of crashing
        )
    except OSError as e:
        return CompilationResult(success=False, errors=[f"{compiler}: {e.strerror or e}"])

    return _collect_result(work_dir, jobname, result.returncode, result.stdout, result.stderr)


async def compile_latex_async(
    document: str,
    work_dir: Path,
    compiler: str,
    jobname: str = DEFAULT_JOBNAME,
) -> CompilationResult:
    """Awaitable compile_latex(): runs the compiler as an asyncio subprocess."""
    _prepare_compile(work_dir, jobname)

    try:
        process = await asyncio.create_subprocess_exec(
            compiler,
            f"--jobname={jobname}",
            cwd=work_dir,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        return CompilationResult(success=False, errors=[f"{compiler}: {e.strerror or e}"])

    stdout, stderr = await process.communicate(document.encode("utf-8"))
    return _collect_result(
        work_dir,
        jobname,
        process.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def relocate_artifact(source: Path, destination: Path) -> Path:
    """
    Move the compiled PDF to its published location.

    Filesystem errors propagate to the caller.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(destination))
    return destination


def _finish_render(
    document: str,
    result: CompilationResult,
    settings: RenderSettings,
    elapsed_time: float,
    verbose: bool,
) -> RenderResult:
    log_compilation_result(settings.jobname, result, elapsed_time, verbose=verbose)

    if not result.success:
        return RenderResult(success=False, document=document, compilation=result)

    final_pdf = relocate_artifact(settings.work_pdf, settings.dist_pdf)
    _log_info(f"CV moved to {final_pdf} (LuaLaTeX exited with {result.returncode}).")
    return RenderResult(success=True, document=document, compilation=result, pdf_path=final_pdf)


def render_cv(
    context: CVContext,
    settings: Optional[RenderSettings] = None,
    verbose: bool = False,
) -> RenderResult:
    """
    Render the CV to PDF.

    Builds the LaTeX document, compiles it in the working directory, and on
    a zero exit status moves the PDF to the distribution directory. Returns
    once the compiler has exited and the move has finished.

    A non-zero exit status is logged and reported in the result (the PDF is
    not moved). Errors while moving the PDF propagate.

    Args:
        context: CV data
        settings: Paths and options (default: from environment)
        verbose: Log compiler output even on success

    Returns:
        RenderResult with the outcome, the compiled source and diagnostics
    """
    settings = settings or RenderSettings.from_env()
    options = FormatterOptions(escape_text=settings.escape_text)

    document = build_document(context, options, settings.template_dir)

    work_dir = ensure_work_dir(settings.resolve(settings.work_dir))
    compiler = settings.resolved_compiler
    log_compilation_start(settings.jobname, compiler, work_dir)
    _log_debug(f"  Source length: {len(document)} characters")

    start_time = time.time()
    result = compile_latex(document, work_dir, compiler, settings.jobname)
    elapsed_time = time.time() - start_time

    return _finish_render(document, result, settings, elapsed_time, verbose)


async def render_cv_async(
    context: CVContext,
    settings: Optional[RenderSettings] = None,
    verbose: bool = False,
) -> RenderResult:
    """
    Awaitable render_cv().

    The preamble and postamble are read concurrently and the compiler runs
    as an asyncio subprocess. Resolves after the compiler exits and the PDF
    move (if any) completes.
    """
    settings = settings or RenderSettings.from_env()
    options = FormatterOptions(escape_text=settings.escape_text)

    document = await build_document_async(context, options, settings.template_dir)

    work_dir = ensure_work_dir(settings.resolve(settings.work_dir))
    compiler = settings.resolved_compiler
    log_compilation_start(settings.jobname, compiler, work_dir)

    start_time = time.time()
    result = await compile_latex_async(document, work_dir, compiler, settings.jobname)
    elapsed_time = time.time() - start_time

    return _finish_render(document, result, settings, elapsed_time, verbose)
