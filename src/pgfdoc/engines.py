"""
LaTeX engines for pgfdoc.

An Engine turns the rendered document into a PDF. There are exactly two:

    - ExternalProcess: runs an installed LaTeX program (pdflatex, lualatex...)
    - Embedded: calls an in-process routine, no external program involved

Both run against a working directory prepared by pgfdoc.compiler and both
report their outcome as a CompilationResult, so callers never need to know
which engine ran to interpret the result.

Engines are stateless values; pick one per call.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from pgfdoc.config import default_latex_program

logger = logging.getLogger(__name__)

# Lines of the LaTeX log kept in a failure diagnostic
DIAGNOSTIC_LINES = 20


class EmbeddedEngineError(Exception):
    """
    Raised by an embedded processor when the document cannot be compiled.

    The diagnostic text is reported back in Failed.diagnostic.
    """

    def __init__(self, diagnostic: str):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic


@dataclass(frozen=True)
class ExternalProcess:
    """
    Run an external LaTeX program.

    The program is resolved on PATH (or used as given if it is a path),
    run in batch mode and stopped at the first error. When no program is
    given, PGFDOC_LATEX is consulted, then pdflatex.

    Properties:
        program: Program name or path
        extra_args: Additional flags placed before the job argument
    """

    program: str = field(default_factory=default_latex_program)
    extra_args: Tuple[str, ...] = ()

    def arguments(self, jobname: str) -> List[str]:
        return [
            "-interaction=batchmode",
            "-halt-on-error",
            f"-jobname={jobname}",
            *self.extra_args,
            f"{jobname}.tex",
        ]


# processor(document_text, jobname) -> PDF bytes
EmbeddedProcessor = Callable[[str, str], bytes]


@dataclass(frozen=True)
class Embedded:
    """
    Compile with an in-process routine.

    The processor receives the rendered text and the job name and returns
    the PDF bytes, or raises EmbeddedEngineError with a diagnostic.
    """

    processor: EmbeddedProcessor


Engine = Union[ExternalProcess, Embedded]


class FailureKind(Enum):
    """Why a compilation failed."""
    RESOLUTION = "resolution"    # external program not found / not executable
    PROCESSING = "processing"    # the engine rejected the document
    ENVIRONMENT = "environment"  # working area could not be created, written or removed
    VIEWER = "viewer"            # the artifact could not be handed to a viewer


@dataclass(frozen=True)
class Succeeded:
    """
    A complete artifact was produced.

    Properties:
        data: PDF bytes, always available
        artifact: Path to the PDF if it still exists after the call
            (working area kept, or copied to output_dir); None otherwise
        auxiliary: Other files the engine left in the working area
        log: Engine log text, empty for engines that do not write one
    """

    data: bytes
    artifact: Optional[Path] = None
    auxiliary: Tuple[Path, ...] = ()
    log: str = ""

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    """
    No usable artifact was produced.

    Properties:
        kind: FailureKind
        diagnostic: Human-readable explanation (log excerpt for LaTeX errors)
        status: Exit status of the external program, if one ran
        workdir: Working area, if it was kept for inspection
    """

    kind: FailureKind
    diagnostic: str
    status: Optional[int] = None
    workdir: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return False


CompilationResult = Union[Succeeded, Failed]


def _read_log(workdir: Path, jobname: str) -> str:
    log_path = workdir / f"{jobname}.log"
    if not log_path.is_file():
        return ""
    return log_path.read_text(encoding="utf-8", errors="replace")


def _log_excerpt(log: str) -> str:
    """Return the log from the first error line on, or its tail if there is none."""
    lines = log.splitlines()
    for index, line in enumerate(lines):
        if line.startswith("!"):
            return "\n".join(lines[index:index + DIAGNOSTIC_LINES])
    return "\n".join(lines[-DIAGNOSTIC_LINES:])


def _collect(workdir: Path, jobname: str, log: str) -> CompilationResult:
    pdf_path = workdir / f"{jobname}.pdf"
    if not pdf_path.is_file():
        return Failed(
            FailureKind.PROCESSING,
            f"Engine finished without producing {pdf_path.name}",
        )

    source_path = workdir / f"{jobname}.tex"
    try:
        data = pdf_path.read_bytes()
        auxiliary = tuple(
            sorted(p for p in workdir.iterdir() if p.is_file() and p not in (pdf_path, source_path))
        )
    except OSError as e:
        logger.warning("Could not collect artifacts from %s: %s", workdir, e)
        return Failed(FailureKind.ENVIRONMENT, f"Could not read artifacts in {workdir}: {e}")
    if not data:
        return Failed(FailureKind.PROCESSING, f"Engine produced an empty {pdf_path.name}")

    return Succeeded(data=data, artifact=pdf_path, auxiliary=auxiliary, log=log)


def _run_external(engine: ExternalProcess, workdir: Path, jobname: str) -> CompilationResult:
    program = shutil.which(engine.program)
    if program is None:
        logger.warning("LaTeX program %r not found", engine.program)
        return Failed(
            FailureKind.RESOLUTION,
            f"LaTeX program '{engine.program}' was not found or is not executable",
        )

    args = [program, *engine.arguments(jobname)]
    logger.debug("Running %s in %s", " ".join(args), workdir)
    try:
        completed = subprocess.run(
            args,
            cwd=workdir,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            errors="replace",
        )
    except OSError as e:
        logger.warning("Could not execute %s: %s", program, e)
        return Failed(FailureKind.RESOLUTION, f"Could not execute '{program}': {e}")

    try:
        log = _read_log(workdir, jobname)
    except OSError as e:
        logger.warning("Could not read log in %s: %s", workdir, e)
        return Failed(
            FailureKind.ENVIRONMENT,
            f"Could not read {jobname}.log: {e}",
            status=completed.returncode,
        )
    if completed.returncode != 0:
        output = (completed.stdout + completed.stderr).strip()
        diagnostic = _log_excerpt(log) if log else output
        logger.warning("%s exited with status %d", engine.program, completed.returncode)
        return Failed(
            FailureKind.PROCESSING,
            diagnostic or f"'{engine.program}' exited with status {completed.returncode}",
            status=completed.returncode,
        )
    return _collect(workdir, jobname, log)


def _run_embedded(engine: Embedded, text: str, workdir: Path, jobname: str) -> CompilationResult:
    logger.debug("Running embedded processor for job %s", jobname)
    try:
        data = engine.processor(text, jobname)
    except EmbeddedEngineError as e:
        logger.warning("Embedded engine failed: %s", e.diagnostic)
        return Failed(FailureKind.PROCESSING, e.diagnostic)

    pdf_path = workdir / f"{jobname}.pdf"
    try:
        pdf_path.write_bytes(data)
    except OSError as e:
        logger.warning("Could not write %s: %s", pdf_path, e)
        return Failed(FailureKind.ENVIRONMENT, f"Could not write {pdf_path}: {e}")
    return _collect(workdir, jobname, log="")


def run_engine(engine: Engine, text: str, workdir: Path, jobname: str) -> CompilationResult:
    """
    Compile a document inside a prepared working directory.

    Args:
        engine: ExternalProcess or Embedded
        text: Rendered document, already written to <workdir>/<jobname>.tex
        workdir: Working directory owned by the caller
        jobname: Base name of the source and output files

    Returns:
        Succeeded with the PDF bytes, or Failed with a diagnostic.
        The external program's exit status is attached when one ran.

    Raises:
        TypeError: If engine is not one of the two engine types
    """
    if isinstance(engine, ExternalProcess):
        return _run_external(engine, workdir, jobname)
    if isinstance(engine, Embedded):
        return _run_embedded(engine, text, workdir, jobname)
    raise TypeError(f"Unsupported engine type: {type(engine)}")


__all__ = [
    "CompilationResult",
    "Embedded",
    "EmbeddedEngineError",
    "EmbeddedProcessor",
    "Engine",
    "ExternalProcess",
    "Failed",
    "FailureKind",
    "Succeeded",
    "run_engine",
]
