"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import List

from loguru import logger

from cvtex.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path, compiler: str, verbose: bool = False) -> Path:
    """
    Setup logger for rendering context.

    Configures loguru with provenance tracking and rendering-specific context.

    Args:
        log_dir: Directory for this rendering session
        compiler: LaTeX compiler executable, recorded in the provenance header
        verbose: Show DEBUG messages on the console too

    Returns:
        Path to log file

    Example:
        from cvtex.contexts.rendering.logger import setup_rendering_logger

        log_file = setup_rendering_logger(log_dir, compiler="lualatex")
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"LaTeX compiler": compiler},
        console_level="DEBUG" if verbose else "INFO",
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_compilation_start(jobname: str, compiler: str, working_dir: Path) -> None:
    """Log start of compilation with context."""
    _log_info(f"Starting compilation: {jobname}")
    _log_info(f"Compiling in {working_dir}")
    _log_debug(f"  Compiler: {compiler}")


def _log_limited(kind: str, items: List[str], limit: int) -> None:
    for i, item in enumerate(items[:limit], 1):
        _log_debug(f"  {kind} {i}: {item}")
    if len(items) > limit:
        _log_debug(f"  ... and {len(items) - limit} more {kind.lower()}s")


def _dump_output(stream: str, text: str) -> None:
    # opt(raw=True) keeps loguru from prefixing every line of multi-line output
    logger.opt(raw=True).debug(f"\n{'=' * 80}\nLUALATEX {stream}:\n{'=' * 80}\n{text}\n")


def log_compilation_result(
    jobname: str,
    result,  # CompilationResult
    elapsed_time: float,
    verbose: bool = False,
) -> None:
    """
    Log compilation result with diagnostics.

    A failed compilation produces exactly one ERROR line; the parsed LaTeX
    errors and the raw compiler output go to DEBUG.

    Args:
        jobname: Output base name
        result: CompilationResult from compile_latex()
        elapsed_time: Time taken to compile
        verbose: Show more diagnostics and always dump compiler output
    """
    if result.success:
        _log_success(f"{jobname}: compilation succeeded ({elapsed_time:.2f}s)")
        if result.pdf_path:
            _log_debug(f"  PDF: {result.pdf_path}")
    elif result.returncode is None:
        _log_error(f"LuaLaTeX process could not be started: {'; '.join(result.errors)}")
    else:
        _log_error(f"LuaLaTeX process exited with code {result.returncode}.")

    if not result.success:
        _log_limited("Error", result.errors, 10 if verbose else 5)

    if result.warnings:
        _log_warning(f"{len(result.warnings)} warnings detected")
        _log_limited("Warning", result.warnings, 10 if verbose else 3)

    if verbose or not result.success:
        if result.stdout:
            _dump_output("STDOUT", result.stdout)
        if result.stderr:
            _dump_output("STDERR", result.stderr)
