"""
Unit tests for the rendering context.

Small shell scripts stand in for LuaLaTeX so the subprocess handling,
exit-status checks and PDF relocation run without a TeX installation.
"""

import asyncio
import sys
from pathlib import Path

import pytest
from loguru import logger

from cvtex.contexts.rendering import compiler
from cvtex.contexts.rendering.compiler import (
    RenderSettings,
    _parse_latex_log,
    compile_latex,
    ensure_work_dir,
    relocate_artifact,
    render_cv,
    render_cv_async,
)
from cvtex.contexts.templating.cv_data_structures import CVContext, Profile

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="fake compilers are POSIX shell scripts")

# Saves stdin next to the PDF so tests can check what was piped in
SUCCEEDING_COMPILER = """#!/bin/sh
job="${1#--jobname=}"
cat > "$job.stdin.tex"
printf '%%PDF-1.4 fake\\n' > "$job.pdf"
printf 'LaTeX Warning: Reference undefined on input line 3.\\n' > "$job.log"
exit 0
"""

FAILING_COMPILER = """#!/bin/sh
job="${1#--jobname=}"
cat > /dev/null
printf '! Undefined control sequence.\\nl.12 \\\\foo\\n' > "$job.log"
echo "fatal error occurred" 1>&2
exit 3
"""

# Exits cleanly without producing a PDF
SILENT_COMPILER = """#!/bin/sh
cat > /dev/null
exit 0
"""


def _write_script(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    path.chmod(0o755)
    return path


@pytest.fixture
def context():
    return CVContext(profile=Profile(title="Jane Doe", url="https://jane.example.com"))


@pytest.fixture
def make_settings(tmp_path):
    def _make(script_body: str, jobname: str = "cv") -> RenderSettings:
        script = _write_script(tmp_path / "fake-lualatex", script_body)
        return RenderSettings(
            compiler=str(script),
            work_dir=Path("tmp"),
            dist_dir=Path("dist"),
            jobname=jobname,
            project_root=tmp_path,
        )

    return _make


@pytest.fixture
def error_messages():
    """Collect ERROR-level loguru messages emitted during the test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="ERROR")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def relocations(monkeypatch):
    """Record every call to relocate_artifact (still performing the move)."""
    calls = []

    def _spy(source, destination):
        calls.append((source, destination))
        return relocate_artifact(source, destination)

    monkeypatch.setattr(compiler, "relocate_artifact", _spy)
    return calls


class TestRenderSettings:
    """Tests for path resolution in RenderSettings."""

    @pytest.mark.unit
    def test_relative_paths_resolve_against_project_root(self, tmp_path):
        settings = RenderSettings(project_root=tmp_path)

        assert settings.work_pdf == tmp_path / "tmp" / "cv.pdf"
        assert settings.dist_pdf == tmp_path / "dist" / "cv.pdf"
        assert settings.resolved_compiler == str(
            tmp_path / "tmp" / "vtex" / "bin" / "x86_64-linux" / "lualatex"
        )

    @pytest.mark.unit
    def test_bare_compiler_name_left_for_path_lookup(self, tmp_path):
        settings = RenderSettings(compiler="lualatex", project_root=tmp_path)
        assert settings.resolved_compiler == "lualatex"

    @pytest.mark.unit
    def test_absolute_paths_kept(self, tmp_path):
        settings = RenderSettings(dist_dir=tmp_path / "out", jobname="resume", project_root=Path("/x"))
        assert settings.dist_pdf == tmp_path / "out" / "resume.pdf"

    @pytest.mark.unit
    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CVTEX_LATEX_COMPILER", "lualatex")
        monkeypatch.setenv("CVTEX_WORK_DIR", "build")
        monkeypatch.setenv("CVTEX_DIST_DIR", "public")
        monkeypatch.setenv("CVTEX_JOBNAME", "resume")
        monkeypatch.setenv("CVTEX_ESCAPE_TEXT", "true")
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))

        settings = RenderSettings.from_env()

        assert settings.compiler == "lualatex"
        assert settings.work_dir == Path("build")
        assert settings.dist_pdf == tmp_path / "public" / "resume.pdf"
        assert settings.escape_text is True


@pytest.mark.unit
def test_ensure_work_dir_is_idempotent(tmp_path):
    work_dir = tmp_path / "a" / "tmp"

    assert ensure_work_dir(work_dir) == work_dir
    (work_dir / "keep.txt").write_text("x")
    ensure_work_dir(work_dir)

    assert work_dir.is_dir()
    assert (work_dir / "keep.txt").exists()


@pytest.mark.unit
def test_parse_latex_log():
    log = (
        "! Undefined control sequence.\n"
        "l.12 \\foo\n"
        "LaTeX Warning: Reference `x' undefined on input line 3.\n"
        "Package hyperref Warning: Token not allowed.\n"
        "Overfull \\hbox (3.2pt too wide) in paragraph\n"
    )
    errors, warnings = _parse_latex_log(log)

    assert errors == ["Undefined control sequence."]
    assert warnings == [
        "Reference `x' undefined on input line 3.",
        "Token not allowed.",
        "3.2pt too wide",
    ]


class TestCompileLatex:
    """Tests for compile_latex with fake compilers."""

    @pytest.mark.unit
    def test_document_fed_on_stdin(self, tmp_path):
        script = _write_script(tmp_path / "ok.sh", SUCCEEDING_COMPILER)
        work_dir = ensure_work_dir(tmp_path / "tmp")

        result = compile_latex("\\documentclass{article}\n", work_dir, str(script), "cv")

        assert result.success
        assert result.returncode == 0
        assert result.pdf_path == work_dir / "cv.pdf"
        assert (work_dir / "cv.stdin.tex").read_text() == "\\documentclass{article}\n"
        assert result.warnings == ["Reference undefined on input line 3."]

    @pytest.mark.unit
    def test_nonzero_exit_is_failure(self, tmp_path):
        script = _write_script(tmp_path / "bad.sh", FAILING_COMPILER)
        work_dir = ensure_work_dir(tmp_path / "tmp")

        result = compile_latex("x", work_dir, str(script), "cv")

        assert not result.success
        assert result.returncode == 3
        assert result.pdf_path is None
        assert "Undefined control sequence." in result.errors
        assert "fatal error occurred" in result.stderr

    @pytest.mark.unit
    def test_stale_pdf_removed_before_compiling(self, tmp_path):
        script = _write_script(tmp_path / "bad.sh", FAILING_COMPILER)
        work_dir = ensure_work_dir(tmp_path / "tmp")
        (work_dir / "cv.pdf").write_text("old")

        result = compile_latex("x", work_dir, str(script), "cv")

        assert result.pdf_path is None
        assert not (work_dir / "cv.pdf").exists()

    @pytest.mark.unit
    def test_missing_compiler(self, tmp_path):
        work_dir = ensure_work_dir(tmp_path / "tmp")

        result = compile_latex("x", work_dir, str(tmp_path / "no-such-lualatex"), "cv")

        assert not result.success
        assert result.returncode is None
        assert len(result.errors) == 1


class TestRenderCV:
    """Tests for the full render: compile, check status, relocate."""

    @pytest.mark.unit
    def test_success_relocates_once(self, context, make_settings, relocations, error_messages):
        settings = make_settings(SUCCEEDING_COMPILER)

        result = render_cv(context, settings)

        assert result.success
        assert relocations == [(settings.work_pdf, settings.dist_pdf)]
        assert result.pdf_path == settings.dist_pdf
        assert settings.dist_pdf.read_text().startswith("%PDF")
        assert not settings.work_pdf.exists()
        assert error_messages == []

    @pytest.mark.unit
    def test_compiled_source_is_assembled_document(self, context, make_settings, tmp_path):
        settings = make_settings(SUCCEEDING_COMPILER)

        result = render_cv(context, settings)
        piped = (tmp_path / "tmp" / "cv.stdin.tex").read_text(encoding="utf-8")

        assert piped == result.document
        assert r"\cvsection{Education}" in piped

    @pytest.mark.unit
    def test_failure_skips_relocation_and_logs_once(
        self, context, make_settings, relocations, error_messages
    ):
        settings = make_settings(FAILING_COMPILER)

        result = render_cv(context, settings)

        assert not result.success
        assert result.pdf_path is None
        assert result.compilation.returncode == 3
        assert relocations == []
        assert not settings.dist_pdf.exists()
        assert len(error_messages) == 1
        assert "exited with code 3" in error_messages[0]

    @pytest.mark.unit
    def test_missing_compiler_reported_not_raised(
        self, context, tmp_path, relocations, error_messages
    ):
        settings = RenderSettings(compiler=str(tmp_path / "missing"), project_root=tmp_path)

        result = render_cv(context, settings)

        assert not result.success
        assert relocations == []
        assert len(error_messages) == 1

    @pytest.mark.unit
    def test_relocation_error_propagates(self, context, make_settings):
        settings = make_settings(SILENT_COMPILER)

        with pytest.raises(FileNotFoundError):
            render_cv(context, settings)

    @pytest.mark.unit
    def test_creates_work_dir(self, context, make_settings, tmp_path):
        settings = make_settings(SUCCEEDING_COMPILER, jobname="resume")
        assert not (tmp_path / "tmp").exists()

        result = render_cv(context, settings)

        assert (tmp_path / "tmp").is_dir()
        assert result.pdf_path == tmp_path / "dist" / "resume.pdf"


class TestRenderCVAsync:
    """Tests for the awaitable render."""

    @pytest.mark.unit
    def test_resolves_after_relocation(self, context, make_settings, relocations):
        settings = make_settings(SUCCEEDING_COMPILER)

        result = asyncio.run(render_cv_async(context, settings))

        assert result.success
        assert len(relocations) == 1
        assert settings.dist_pdf.exists()

    @pytest.mark.unit
    def test_failure(self, context, make_settings, relocations, error_messages):
        settings = make_settings(FAILING_COMPILER)

        result = asyncio.run(render_cv_async(context, settings))

        assert not result.success
        assert result.compilation.returncode == 3
        assert "Undefined control sequence." in result.errors
        assert relocations == []
        assert len(error_messages) == 1

    @pytest.mark.unit
    def test_missing_compiler(self, context, tmp_path, relocations):
        settings = RenderSettings(compiler=str(tmp_path / "missing"), project_root=tmp_path)

        result = asyncio.run(render_cv_async(context, settings))

        assert not result.success
        assert result.compilation.returncode is None
        assert relocations == []
