"""
pgfdoc: publication-quality figures as PGFPlots documents

A typed document model for PGFPlots figures plus a compilation pipeline
that turns them into PDF.

LAYERS:
-------
    pgfdoc.keys        Typed options (and the Custom escape hatch)
    pgfdoc.model       Picture -> Axis -> Plot -> Coordinate tree
    pgfdoc.backends    Pure rendering to LaTeX source
    pgfdoc.engines     External program or embedded processor
    pgfdoc.compiler    Working area, cleanup, show()
    pgfdoc.config      CompileOptions, YAML option files
    pgfdoc.serialization  dict/JSON/YAML round trip of the tree

The model contains ZERO knowledge of LaTeX syntax.
Rendering happens in the backends; engines only ever see rendered text.
"""

__version__ = "0.1.0"
