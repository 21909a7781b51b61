"""
Rendering Context

Responsibilities:
- Prepares the LuaLaTeX working directory
- Compiles the assembled CV to PDF (LaTeX source fed on stdin)
- Moves the finished PDF to the distribution directory
- Reports compiler errors and warnings

Owns: LaTeX compilation, PDF generation, output management
Never: Modifies template content
"""

from cvtex.contexts.rendering.compiler import (
    CompilationResult,
    RenderResult,
    RenderSettings,
    compile_latex,
    compile_latex_async,
    ensure_work_dir,
    relocate_artifact,
    render_cv,
    render_cv_async,
)

__all__ = [
    "CompilationResult",
    "RenderResult",
    "RenderSettings",
    "compile_latex",
    "compile_latex_async",
    "ensure_work_dir",
    "relocate_artifact",
    "render_cv",
    "render_cv_async",
]
