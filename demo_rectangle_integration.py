#!/usr/bin/env python3
"""
Demo: Rectangle integration of y = x^2.

Prints the generated LaTeX and opens the compiled PDF.
Requires pdflatex (or set PGFDOC_LATEX) with the pgfplots package.
"""

import logging

from pgfdoc.backends import standalone_string
from pgfdoc.compiler import show
from pgfdoc.examples import build_rectangle_integration


def main():
    logging.basicConfig(level=logging.INFO)
    picture = build_rectangle_integration()

    print("=" * 80)
    print("RECTANGLE INTEGRATION")
    print("=" * 80)
    print(standalone_string(picture))

    result = show(picture)
    if result.ok:
        print(f"\nOpened: {result.artifact}")
    else:
        print(f"\nCompilation failed ({result.kind.value}):\n{result.diagnostic}")


if __name__ == "__main__":
    main()
