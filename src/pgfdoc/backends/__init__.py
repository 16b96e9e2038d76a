"""Backends for pgfdoc output generation (PGFPlots/LaTeX source)."""

from .pgf_generator import (
    format_number,
    render_axis,
    render_coordinate,
    render_key,
    render_picture,
    render_plot,
    save_tex_file,
    standalone_string,
)

__all__ = [
    "format_number",
    "render_axis",
    "render_coordinate",
    "render_key",
    "render_picture",
    "render_plot",
    "save_tex_file",
    "standalone_string",
]
