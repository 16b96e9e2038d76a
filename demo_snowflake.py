#!/usr/bin/env python3
"""
Demo: Koch snowflake, compiled without opening a viewer.

Writes snowflake.tex and figures/snowflake.pdf in the current directory.
On failure the working files, LaTeX log included, are kept for inspection.
"""

import logging
from pathlib import Path

from pgfdoc.backends import save_tex_file
from pgfdoc.compiler import compile_figure
from pgfdoc.config import CompileOptions
from pgfdoc.examples import build_snowflake


def main():
    logging.basicConfig(level=logging.INFO)
    picture = build_snowflake(iterations=5)

    save_tex_file(picture, "snowflake.tex")
    print("Saved to: snowflake.tex")

    options = CompileOptions(
        jobname="snowflake",
        output_dir=Path("figures"),
        cleanup_on_failure=False,
    )
    result = compile_figure(picture, options=options)
    if result.ok:
        print(f"PDF written to: {result.artifact}")
    else:
        print(f"Compilation failed ({result.kind.value}):\n{result.diagnostic}")
        if result.workdir is not None:
            print(f"Working files kept in: {result.workdir}")


if __name__ == "__main__":
    main()
