"""
Compilation options for pgfdoc.

Options can be built in code, loaded from a YAML file, or taken from
defaults. The only environment variable consulted is PGFDOC_LATEX, which
overrides the default external program.

Example YAML:

    jobname: figure
    latex_program: lualatex
    keep_files: false
    cleanup_on_failure: true
    output_dir: build/figures
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

LATEX_PROGRAM_ENV = "PGFDOC_LATEX"
DEFAULT_LATEX_PROGRAM = "pdflatex"


class ConfigError(Exception):
    """Raised when configuration content is invalid."""
    pass


def default_latex_program() -> str:
    """Program named by PGFDOC_LATEX, or pdflatex when it is unset or empty."""
    return os.environ.get(LATEX_PROGRAM_ENV) or DEFAULT_LATEX_PROGRAM


@dataclass
class CompileOptions:
    """
    Options for one compilation call.

    Properties:
        jobname:
            Base name of every file in the working area
            (<jobname>.tex, <jobname>.pdf, <jobname>.log, ...)

        latex_program:
            Program used by the default external engine

        keep_files:
            Never remove the working area; for post-mortem debugging

        cleanup_on_failure:
            Remove the working area when compilation fails. Independent of
            keep_files: set it to False to keep only failed runs.

        output_dir:
            If set, the primary artifact is copied here before cleanup

        working_root:
            Parent directory for working areas (system temp dir if None)
    """

    jobname: str = "figure"
    latex_program: str = field(default_factory=default_latex_program)
    keep_files: bool = False
    cleanup_on_failure: bool = True
    output_dir: Optional[Path] = None
    working_root: Optional[Path] = None


_BOOL_OPTIONS = {"keep_files", "cleanup_on_failure"}
_PATH_OPTIONS = {"output_dir", "working_root"}
_STR_OPTIONS = {"jobname", "latex_program"}


def options_from_dict(d: Dict[str, Any] | None) -> CompileOptions:
    """
    Build options from a plain dict, e.g. parsed YAML.

    Raises:
        ConfigError: On unknown options or values of the wrong type
    """
    if d is None:
        return CompileOptions()
    if not isinstance(d, dict):
        raise ConfigError(f"Options must be a mapping, got {type(d).__name__}")

    known = {f.name for f in fields(CompileOptions)}
    unknown = sorted(set(d) - known)
    if unknown:
        raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")

    kwargs: Dict[str, Any] = {}
    for name, value in d.items():
        if name in _BOOL_OPTIONS:
            if not isinstance(value, bool):
                raise ConfigError(f"Option '{name}' must be true or false, got {value!r}")
            kwargs[name] = value
        elif name in _PATH_OPTIONS:
            if value is not None and not isinstance(value, (str, os.PathLike)):
                raise ConfigError(f"Option '{name}' must be a path, got {value!r}")
            kwargs[name] = None if value is None else Path(value)
        elif name in _STR_OPTIONS:
            if not isinstance(value, str) or not value:
                raise ConfigError(f"Option '{name}' must be a non-empty string, got {value!r}")
            kwargs[name] = value
    return CompileOptions(**kwargs)


def options_to_dict(options: CompileOptions) -> Dict[str, Any]:
    return {
        "jobname": options.jobname,
        "latex_program": options.latex_program,
        "keep_files": options.keep_files,
        "cleanup_on_failure": options.cleanup_on_failure,
        "output_dir": None if options.output_dir is None else str(options.output_dir),
        "working_root": None if options.working_root is None else str(options.working_root),
    }


def load_options(path: str | os.PathLike) -> CompileOptions:
    """
    Load options from a YAML file. An empty file yields the defaults.

    Raises:
        ConfigError: If the file is not valid YAML or holds invalid options
        OSError: If the file cannot be read
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            d = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return options_from_dict(d)
