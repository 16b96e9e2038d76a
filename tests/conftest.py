"""
Shared fixtures: stand-in LaTeX engines that behave like the real ones
without needing a TeX installation.

A document containing the marker command \\undefinedcontrolsequence is
rejected by both fakes, the way a real engine rejects an unknown macro.
"""
import stat
import sys

import pytest
from pgfdoc.engines import EmbeddedEngineError

BAD_MARKER = "undefinedcontrolsequence"

FAKE_PDF = b"%PDF-1.5\n% fake document\n%%EOF\n"

FAKE_LATEX_SCRIPT = r"""#!/bin/sh
job=texput
for arg in "$@"; do
    case "$arg" in
        -jobname=*) job="${arg#-jobname=}" ;;
    esac
done
printf '%s\n' "$@" > args.txt
if grep -q undefinedcontrolsequence "$job.tex"; then
    printf 'This is FakeTeX\n! Undefined control sequence.\nl.5 \\undefinedcontrolsequence\n' > "$job.log"
    echo "fatal error" >&2
    exit 1
fi
printf 'This is FakeTeX\nOutput written on %s.pdf (1 page).\n' "$job" > "$job.log"
printf '%%PDF-1.5\n%% fake document\n%%%%EOF\n' > "$job.pdf"
printf '\\relax\n' > "$job.aux"
exit 0
"""


@pytest.fixture
def fake_latex(tmp_path):
    """Path to an executable that imitates pdflatex."""
    if sys.platform == "win32":
        pytest.skip("fake LaTeX program is a POSIX shell script")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    program = bin_dir / "fakelatex"
    program.write_text(FAKE_LATEX_SCRIPT, encoding="utf-8")
    program.chmod(program.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return program


class FakeProcessor:
    """Embedded processor that records what it was given."""

    def __init__(self):
        self.calls = []

    def __call__(self, text, jobname):
        self.calls.append((text, jobname))
        if BAD_MARKER in text:
            raise EmbeddedEngineError("! Undefined control sequence.")
        return FAKE_PDF


@pytest.fixture
def fake_processor():
    return FakeProcessor()
