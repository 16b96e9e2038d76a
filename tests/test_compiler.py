"""
Tests for the compilation pipeline.

These tests verify:
    - Both engines compile the same rendered document
    - Working areas are removed on success, failure and escaping exceptions
    - keep_files / cleanup_on_failure / output_dir behave independently
    - Environment and viewer failures are reported, not raised
"""
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest
from pgfdoc import compiler
from pgfdoc.backends.pgf_generator import standalone_string
from pgfdoc.compiler import (
    WorkingArea,
    compile_document,
    compile_figure,
    open_with_default_viewer,
    show,
)
from pgfdoc.config import CompileOptions
from pgfdoc.engines import Embedded, ExternalProcess, Failed, FailureKind, Succeeded
from pgfdoc.examples import build_parabola
from pgfdoc.keys import Custom
from pgfdoc.model import Axis, Picture, Plot2D


@pytest.fixture
def work_root(tmp_path):
    return tmp_path / "work"


def _leftovers(root):
    if not root.exists():
        return []
    return list(root.iterdir())


def _broken_picture():
    plot = Plot2D()
    plot.add_coordinate((0, 0))
    axis = Axis.from_plot(plot)
    axis.add_key(Custom("title", "\\undefinedcontrolsequence"))
    return Picture.from_axis(axis)


class TestWorkingArea:

    def test_removed_on_normal_exit(self, work_root):
        with WorkingArea(CompileOptions(working_root=work_root)) as area:
            path = area.path
            assert path.is_dir()
            assert path.parent == work_root
            assert path.name.startswith("pgfdoc-")
        assert not path.exists()

    def test_removed_when_exception_escapes(self, work_root):
        with pytest.raises(RuntimeError):
            with WorkingArea(CompileOptions(working_root=work_root)) as area:
                path = area.path
                raise RuntimeError("boom")
        assert area.failed
        assert not path.exists()

    def test_keep_files(self, work_root):
        with WorkingArea(CompileOptions(working_root=work_root, keep_files=True)) as area:
            path = area.path
        assert path.is_dir()

    def test_kept_only_on_failure(self, work_root):
        options = CompileOptions(working_root=work_root, cleanup_on_failure=False)
        with WorkingArea(options) as ok_area:
            ok_path = ok_area.path
        with WorkingArea(options) as failed_area:
            failed_path = failed_area.path
            failed_area.failed = True
        assert not ok_path.exists()
        assert failed_path.is_dir()

    def test_areas_are_distinct(self, work_root):
        options = CompileOptions(working_root=work_root)
        with WorkingArea(options) as first, WorkingArea(options) as second:
            assert first.path != second.path


class TestCompileExternal:

    def test_success_cleans_up(self, fake_latex, work_root):
        options = CompileOptions(working_root=work_root)
        result = compile_figure(build_parabola(), ExternalProcess(str(fake_latex)), options)

        assert isinstance(result, Succeeded)
        assert result.data.startswith(b"%PDF-1.5")
        assert result.artifact is None
        assert result.auxiliary == ()
        assert _leftovers(work_root) == []

    def test_default_engine_uses_latex_program(self, fake_latex, work_root):
        options = CompileOptions(working_root=work_root, latex_program=str(fake_latex))
        result = compile_figure(build_parabola(), options=options)
        assert result.ok

    def test_rejected_document_cleans_up(self, fake_latex, work_root):
        options = CompileOptions(working_root=work_root)
        result = compile_figure(_broken_picture(), ExternalProcess(str(fake_latex)), options)

        assert isinstance(result, Failed)
        assert result.kind == FailureKind.PROCESSING
        assert result.status == 1
        assert "Undefined control sequence" in result.diagnostic
        assert result.workdir is None
        assert _leftovers(work_root) == []

    def test_missing_program(self, work_root):
        options = CompileOptions(working_root=work_root)
        result = compile_figure(
            build_parabola(), ExternalProcess("pgfdoc-no-such-latex-program"), options
        )

        assert isinstance(result, Failed)
        assert result.kind == FailureKind.RESOLUTION
        assert _leftovers(work_root) == []

    def test_missing_program_with_keep_files(self, work_root):
        options = CompileOptions(working_root=work_root, keep_files=True)
        result = compile_figure(
            build_parabola(), ExternalProcess("pgfdoc-no-such-latex-program"), options
        )

        assert result.kind == FailureKind.RESOLUTION
        assert result.workdir is not None
        assert (result.workdir / "figure.tex").is_file()
        assert _leftovers(work_root) == [result.workdir]

    def test_keep_files_exposes_working_area(self, fake_latex, work_root):
        options = CompileOptions(working_root=work_root, keep_files=True, jobname="plot")
        result = compile_figure(build_parabola(), ExternalProcess(str(fake_latex)), options)

        assert result.ok
        assert result.artifact.name == "plot.pdf"
        assert result.artifact.is_file()
        assert (result.artifact.parent / "plot.tex").read_text(encoding="utf-8") == standalone_string(
            build_parabola()
        )
        assert {p.name for p in result.auxiliary} >= {"plot.log", "plot.aux"}

    def test_failed_run_kept_for_inspection(self, fake_latex, work_root):
        options = CompileOptions(working_root=work_root, cleanup_on_failure=False)
        engine = ExternalProcess(str(fake_latex))

        good = compile_figure(build_parabola(), engine, options)
        bad = compile_figure(_broken_picture(), engine, options)

        assert good.ok
        assert bad.kind == FailureKind.PROCESSING
        assert bad.workdir is not None
        assert (bad.workdir / "figure.log").is_file()
        assert _leftovers(work_root) == [bad.workdir]

    def test_output_dir_receives_artifact(self, fake_latex, work_root, tmp_path):
        out = tmp_path / "figures"
        options = CompileOptions(working_root=work_root, output_dir=out, jobname="parabola")
        result = compile_figure(build_parabola(), ExternalProcess(str(fake_latex)), options)

        assert result.ok
        assert result.artifact == out / "parabola.pdf"
        assert result.artifact.read_bytes() == result.data
        assert _leftovers(work_root) == []


class TestCompileEmbedded:

    def test_success_cleans_up(self, fake_processor, work_root):
        options = CompileOptions(working_root=work_root)
        result = compile_figure(build_parabola(), Embedded(fake_processor), options)

        assert isinstance(result, Succeeded)
        assert result.data.startswith(b"%PDF-1.5")
        assert result.artifact is None
        assert _leftovers(work_root) == []

    def test_rejected_document(self, fake_processor, work_root):
        options = CompileOptions(working_root=work_root)
        result = compile_figure(_broken_picture(), Embedded(fake_processor), options)

        assert isinstance(result, Failed)
        assert result.kind == FailureKind.PROCESSING
        assert result.status is None
        assert _leftovers(work_root) == []

    def test_unexpected_exception_propagates_after_cleanup(self, work_root):
        def explode(text, jobname):
            raise RuntimeError("processor crashed")

        options = CompileOptions(working_root=work_root)
        with pytest.raises(RuntimeError):
            compile_figure(build_parabola(), Embedded(explode), options)
        assert _leftovers(work_root) == []

    def test_unwritable_artifact_is_environment_failure(self, fake_processor, work_root, monkeypatch):
        write_bytes = Path.write_bytes

        def disk_full(self, data):
            if self.suffix == ".pdf":
                raise OSError(28, "No space left on device")
            return write_bytes(self, data)

        monkeypatch.setattr(Path, "write_bytes", disk_full)
        options = CompileOptions(working_root=work_root)
        result = compile_figure(build_parabola(), Embedded(fake_processor), options)

        assert isinstance(result, Failed)
        assert result.kind == FailureKind.ENVIRONMENT
        assert "No space left on device" in result.diagnostic
        assert _leftovers(work_root) == []


class TestCleanupFailure:
    """A working area that cannot be removed is reported, never hidden."""

    @pytest.fixture
    def busy_rmtree(self, monkeypatch):
        def busy(path, *args, **kwargs):
            raise OSError("busy")

        monkeypatch.setattr(compiler.shutil, "rmtree", busy)

    def test_success_becomes_environment_failure(self, fake_processor, work_root, busy_rmtree):
        options = CompileOptions(working_root=work_root)
        result = compile_figure(build_parabola(), Embedded(fake_processor), options)

        assert isinstance(result, Failed)
        assert result.kind == FailureKind.ENVIRONMENT
        assert "busy" in result.diagnostic
        assert result.workdir is not None
        assert result.workdir.is_dir()

    def test_compile_failure_keeps_its_diagnostic(self, fake_latex, work_root, busy_rmtree):
        options = CompileOptions(working_root=work_root)
        result = compile_figure(_broken_picture(), ExternalProcess(str(fake_latex)), options)

        assert isinstance(result, Failed)
        assert result.kind == FailureKind.PROCESSING
        assert result.status == 1
        assert result.diagnostic.startswith("! Undefined control sequence.")
        assert "Could not remove working area" in result.diagnostic
        assert "busy" in result.diagnostic
        assert result.workdir is not None


def test_both_engines_receive_identical_text(fake_latex, fake_processor, work_root):
    figure = build_parabola()
    options = CompileOptions(working_root=work_root, keep_files=True)

    external = compile_figure(figure, ExternalProcess(str(fake_latex)), options)
    embedded = compile_figure(figure, Embedded(fake_processor), options)

    written = (external.artifact.parent / "figure.tex").read_text(encoding="utf-8")
    assert fake_processor.calls[0][0] == written
    assert written == standalone_string(figure)
    assert embedded.ok


def test_compile_document_accepts_raw_text(fake_processor, work_root):
    text = "\\documentclass{standalone}\n\\begin{document}\nx\n\\end{document}"
    result = compile_document(text, Embedded(fake_processor), CompileOptions(working_root=work_root))
    assert result.ok
    assert fake_processor.calls == [(text, "figure")]


def test_unusable_working_root(fake_processor, tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    result = compile_figure(
        build_parabola(), Embedded(fake_processor), CompileOptions(working_root=blocker)
    )

    assert isinstance(result, Failed)
    assert result.kind == FailureKind.ENVIRONMENT
    assert fake_processor.calls == []


class TestShow:

    def test_opens_persisted_pdf(self, fake_processor, work_root):
        opened = []
        result = show(
            build_parabola(),
            Embedded(fake_processor),
            CompileOptions(working_root=work_root),
            viewer=opened.append,
        )
        try:
            assert result.ok
            assert opened == [result.artifact]
            assert result.artifact.read_bytes() == result.data
            assert _leftovers(work_root) == []
        finally:
            if result.ok:
                result.artifact.unlink()

    def test_reuses_output_dir_copy(self, fake_processor, work_root, tmp_path):
        out = tmp_path / "figures"
        opened = []
        result = show(
            build_parabola(),
            Embedded(fake_processor),
            CompileOptions(working_root=work_root, output_dir=out),
            viewer=opened.append,
        )
        assert opened == [out / "figure.pdf"]
        assert result.artifact == out / "figure.pdf"

    def test_compile_failure_skips_viewer(self, fake_processor, work_root):
        opened = []
        result = show(
            _broken_picture(),
            Embedded(fake_processor),
            CompileOptions(working_root=work_root),
            viewer=opened.append,
        )
        assert result.kind == FailureKind.PROCESSING
        assert opened == []

    def test_viewer_failure(self, fake_processor, work_root, tmp_path):
        def broken_viewer(path):
            raise OSError("no viewer available")

        out = tmp_path / "figures"
        result = show(
            build_parabola(),
            Embedded(fake_processor),
            CompileOptions(working_root=work_root, output_dir=out),
            viewer=broken_viewer,
        )
        assert isinstance(result, Failed)
        assert result.kind == FailureKind.VIEWER
        assert "no viewer available" in result.diagnostic

    def test_viewer_failure_removes_temporary_pdf(self, fake_processor, work_root, tmp_path, monkeypatch):
        temp_dir = tmp_path / "tmp"
        temp_dir.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(temp_dir))
        opened = []

        def broken_viewer(path):
            opened.append(path)
            raise OSError("no viewer available")

        result = show(
            build_parabola(),
            Embedded(fake_processor),
            CompileOptions(working_root=work_root),
            viewer=broken_viewer,
        )
        assert result.kind == FailureKind.VIEWER
        assert opened[0].parent == temp_dir
        assert list(temp_dir.iterdir()) == []


@pytest.mark.skipif(sys.platform == "win32", reason="uses the POSIX opener")
class TestOpenWithDefaultViewer:

    @pytest.fixture
    def runs(self, monkeypatch):
        calls = []
        statuses = []

        def fake_run(args, **kwargs):
            calls.append((args, kwargs))
            return subprocess.CompletedProcess(args, statuses.pop(0))

        monkeypatch.setattr(compiler.platform, "system", lambda: "Linux")
        monkeypatch.setattr(compiler.subprocess, "run", fake_run)
        return calls, statuses

    def test_opener_is_waited_for(self, runs, tmp_path):
        calls, statuses = runs
        statuses.append(0)
        open_with_default_viewer(tmp_path / "figure.pdf")

        args, kwargs = calls[0]
        assert args == ["xdg-open", str(tmp_path / "figure.pdf")]
        assert kwargs["start_new_session"] is True

    def test_opener_error_raises(self, runs, tmp_path):
        calls, statuses = runs
        statuses.append(3)
        with pytest.raises(OSError, match="status 3"):
            open_with_default_viewer(tmp_path / "figure.pdf")


def _has_pgfplots():
    if shutil.which("pdflatex") is None or shutil.which("kpsewhich") is None:
        return False
    found = subprocess.run(["kpsewhich", "pgfplots.sty"], capture_output=True, text=True)
    return bool(found.stdout.strip())


@pytest.mark.skipif(not _has_pgfplots(), reason="pdflatex with pgfplots not installed")
def test_real_pdflatex(work_root):
    result = compile_figure(
        build_parabola(), ExternalProcess("pdflatex"), CompileOptions(working_root=work_root)
    )
    assert result.ok
    assert result.data.startswith(b"%PDF")
    assert _leftovers(work_root) == []
