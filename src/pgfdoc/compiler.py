"""
Compilation pipeline for pgfdoc figures.

Every call gets its own uniquely named working area:

    <tmp>/pgfdoc-XXXXXXXX/
        figure.tex      rendered document
        figure.pdf      primary artifact
        figure.log ...  auxiliary files written by the engine

The working area is removed on every exit path (success, engine failure,
or an exception escaping the call) unless the options ask to keep it.
Since nothing is shared between calls, concurrent compilations need no
locking.
"""
from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional

from pgfdoc.backends.pgf_generator import standalone_string
from pgfdoc.config import CompileOptions
from pgfdoc.engines import (
    CompilationResult,
    Engine,
    ExternalProcess,
    Failed,
    FailureKind,
    Succeeded,
    run_engine,
)
from pgfdoc.model import Figure

logger = logging.getLogger(__name__)


class WorkingAreaError(Exception):
    """Raised when a working area cannot be created."""
    pass


class WorkingArea:
    """
    Context manager owning one working directory.

    Set `failed` inside the block when the compilation did not succeed;
    an exception escaping the block counts as a failure too. On exit the
    directory is removed unless `kept` is true. A removal error does not
    raise; it is stored in `cleanup_error` for the caller to report.
    """

    def __init__(self, options: CompileOptions):
        self.options = options
        self.path: Optional[Path] = None
        self.failed = False
        self.cleanup_error: Optional[OSError] = None

    @property
    def kept(self) -> bool:
        if self.options.keep_files:
            return True
        return self.failed and not self.options.cleanup_on_failure

    def __enter__(self) -> "WorkingArea":
        root = self.options.working_root
        try:
            if root is not None:
                Path(root).mkdir(parents=True, exist_ok=True)
            self.path = Path(tempfile.mkdtemp(prefix="pgfdoc-", dir=root))
        except OSError as e:
            raise WorkingAreaError(f"Could not create working area: {e}") from e
        logger.debug("Created working area %s", self.path)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.failed = True
        if self.kept:
            logger.info("Keeping working area %s", self.path)
            return False
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            self.cleanup_error = e
            logger.warning("Could not remove working area %s: %s", self.path, e)
        else:
            logger.debug("Removed working area %s", self.path)
        return False


def _compile_in(area: WorkingArea, text: str, engine: Engine, options: CompileOptions) -> CompilationResult:
    jobname = options.jobname
    source_path = area.path / f"{jobname}.tex"
    try:
        source_path.write_text(text, encoding="utf-8")
    except OSError as e:
        area.failed = True
        return Failed(FailureKind.ENVIRONMENT, f"Could not write {source_path}: {e}")

    result = run_engine(engine, text, area.path, jobname)
    if not result.ok:
        area.failed = True
        return result

    if options.output_dir is not None:
        destination = Path(options.output_dir) / f"{jobname}.pdf"
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(result.artifact, destination)
        except OSError as e:
            area.failed = True
            return Failed(FailureKind.ENVIRONMENT, f"Could not copy artifact to {destination}: {e}")
        result = replace(result, artifact=destination)

    logger.info("Compiled %s (%d bytes)", jobname, len(result.data))
    return result


def compile_document(
    text: str,
    engine: Optional[Engine] = None,
    options: Optional[CompileOptions] = None,
) -> CompilationResult:
    """
    Compile a rendered LaTeX document.

    Args:
        text: Complete standalone document (see standalone_string)
        engine: ExternalProcess or Embedded. Defaults to
            ExternalProcess(options.latex_program)
        options: CompileOptions, defaults if None

    Returns:
        Succeeded or Failed. Failures are never raised; only unexpected
        exceptions from an embedded processor propagate, after cleanup.
    """
    options = options or CompileOptions()
    if engine is None:
        engine = ExternalProcess(options.latex_program)

    area = WorkingArea(options)
    try:
        with area:
            result = _compile_in(area, text, engine, options)
    except WorkingAreaError as e:
        logger.warning("%s", e)
        return Failed(FailureKind.ENVIRONMENT, str(e))

    if area.cleanup_error is not None:
        message = f"Could not remove working area {area.path}: {area.cleanup_error}"
        if isinstance(result, Failed):
            # The compile failure stays the primary diagnostic
            return replace(result, diagnostic=f"{result.diagnostic}\n{message}", workdir=area.path)
        return Failed(FailureKind.ENVIRONMENT, message, workdir=area.path)

    if isinstance(result, Failed):
        return replace(result, workdir=area.path if area.kept else None)

    if not area.kept:
        artifact = result.artifact if options.output_dir is not None else None
        result = replace(result, artifact=artifact, auxiliary=())
    return result


def compile_figure(
    figure: Figure,
    engine: Optional[Engine] = None,
    options: Optional[CompileOptions] = None,
) -> CompilationResult:
    """Render a figure with standalone_string and compile it."""
    return compile_document(standalone_string(figure), engine=engine, options=options)


def open_with_default_viewer(path: Path) -> None:
    """
    Open a file with the system's default application.

    Raises:
        OSError: If no opener is available or the opener reports an error
    """
    if platform.system() == "Windows":  # pragma: no cover - requires Windows
        os.startfile(path)  # type: ignore[attr-defined]
        return
    try:
        completed = _run_opener("xdg-open", path)
    except FileNotFoundError:
        completed = _run_opener("open", path)
    if completed.returncode != 0:
        raise OSError(f"{completed.args[0]} exited with status {completed.returncode}")


def _run_opener(opener: str, path: Path) -> subprocess.CompletedProcess:
    # xdg-open and open return once the viewer has been launched
    return subprocess.run(
        [opener, str(path)],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def _persist(result: Succeeded) -> Path:
    if result.artifact is not None and result.artifact.is_file():
        return result.artifact
    fd, name = tempfile.mkstemp(prefix="pgfdoc-", suffix=".pdf")
    with os.fdopen(fd, "wb") as f:
        f.write(result.data)
    return Path(name)


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)


def show(
    figure: Figure,
    engine: Optional[Engine] = None,
    options: Optional[CompileOptions] = None,
    viewer: Optional[Callable[[Path], None]] = None,
) -> CompilationResult:
    """
    Compile a figure and open the PDF with the default viewer.

    The PDF is written to a temporary file that is not removed, so the
    viewer can still read it after this call returns. If the viewer fails,
    that temporary file is removed again.

    Returns:
        The compilation result, with `artifact` pointing at the opened
        file on success
    """
    viewer = viewer or open_with_default_viewer

    result = compile_figure(figure, engine=engine, options=options)
    if not result.ok:
        return result

    try:
        path = _persist(result)
    except OSError as e:
        logger.warning("Could not persist artifact: %s", e)
        return Failed(FailureKind.ENVIRONMENT, f"Could not persist artifact: {e}")

    try:
        viewer(path)
    except OSError as e:
        logger.warning("Could not open %s: %s", path, e)
        if path != result.artifact:
            _discard(path)
        return Failed(FailureKind.VIEWER, f"Could not open {path}: {e}")

    return replace(result, artifact=path)


__all__ = [
    "WorkingArea",
    "WorkingAreaError",
    "compile_document",
    "compile_figure",
    "open_with_default_viewer",
    "show",
]
