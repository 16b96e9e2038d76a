"""
PGFPlots markup generator for pgfdoc figures.

Converts a Picture (or any part of the document tree) into LaTeX source
that a stock LaTeX installation with the pgfplots package can compile.

Output layout:
    - One option per line, each followed by a comma
    - Pictures and axes without options print no brackets at all
    - Plots always print brackets, empty when there are no options
    - One coordinate per line, in insertion order

The generator is pure: the same tree always renders to the same text,
which is what allows any engine to process it.
"""

import math
from decimal import Decimal
from typing import List

from pgfdoc.keys import (
    ERROR_DIRECTION_KEYS,
    ERROR_KEYS,
    FLAG_KEYS,
    NUMBER_KEYS,
    SCALE_KEYS,
    TEXT_KEYS,
    Custom,
    Draw,
    Fill,
    Key,
    LegendEntries,
    Marker,
    MarkOption,
    MarkScale,
    PlotStyle,
    PlotType,
    Smooth,
    TextMark,
    Type2D,
    XBar,
    YBar,
)
from pgfdoc.model import (
    Axis,
    Coordinate2D,
    Coordinate3D,
    Figure,
    Picture,
    Plot,
    Plot3D,
    as_picture,
)

PREAMBLE = (
    "\\documentclass{standalone}\n"
    "\\usepackage{pgfplots}\n"
    "\\begin{document}\n"
)
POSTAMBLE = "\n\\end{document}"


def format_number(value: float) -> str:
    """
    Format a number the same way on every platform and locale.

    Integral values print without a decimal point, other values print
    their shortest round-trip digits in positional notation (no exponent,
    which TeX arithmetic does not accept in every context).
    """
    value = float(value)
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def _render_plot_style(style: PlotStyle) -> str:
    if isinstance(style, Type2D):
        return style.value
    if isinstance(style, Smooth):
        return f"smooth, tension={format_number(style.tension)}"
    if isinstance(style, XBar):
        return f"xbar, bar width={format_number(style.bar_width)}, bar shift={format_number(style.bar_shift)}"
    if isinstance(style, YBar):
        return f"ybar, bar width={format_number(style.bar_width)}, bar shift={format_number(style.bar_shift)}"
    raise TypeError(f"Unsupported plot style: {type(style)}")


def _render_mark_option(option: MarkOption) -> str:
    if isinstance(option, Fill):
        return f"fill={option.color.value}"
    if isinstance(option, Draw):
        return f"draw={option.color.value}"
    if isinstance(option, MarkScale):
        return f"scale={format_number(option.factor)}"
    raise TypeError(f"Unsupported mark option: {type(option)}")


def _render_marker(marker: Marker) -> str:
    if isinstance(marker.shape, TextMark):
        shape = f"mark=text, text mark={marker.shape.text}"
    else:
        shape = f"mark={marker.shape.value}"
    options = ", ".join(_render_mark_option(o) for o in marker.options)
    return f"{shape}, mark options={{{options}}}"


def render_key(key: Key) -> str:
    """
    Render one key as it appears inside an option list.

    Custom keys are passed through without any re-encoding.
    """
    if isinstance(key, Custom):
        if key.value is None or key.value == "":
            return key.name
        return f"{key.name}={key.value}"
    if isinstance(key, SCALE_KEYS):
        return f"{key.canonical_name}={key.scale.value}"
    if isinstance(key, TEXT_KEYS):
        return f"{key.canonical_name}={{{key.text}}}"
    if isinstance(key, NUMBER_KEYS):
        return f"{key.canonical_name}={format_number(key.value)}"
    if isinstance(key, FLAG_KEYS):
        return key.canonical_name
    if isinstance(key, LegendEntries):
        return f"legend entries={{{','.join(key.entries)}}}"
    if isinstance(key, PlotType):
        return _render_plot_style(key.style)
    if isinstance(key, ERROR_KEYS):
        return f"{key.canonical_name} {key.character.value}"
    if isinstance(key, ERROR_DIRECTION_KEYS):
        return f"{key.canonical_name}={key.direction.value}"
    if isinstance(key, Marker):
        return _render_marker(key)
    raise TypeError(f"Unsupported key type: {type(key)}")


def render_coordinate(coordinate) -> str:
    """Render `(x,y)` or `(x,y,z)`, followed by `\\t+- (...)` if any error is set."""
    if isinstance(coordinate, Coordinate3D):
        point = (coordinate.x, coordinate.y, coordinate.z)
        errors = (coordinate.error_x, coordinate.error_y, coordinate.error_z)
    elif isinstance(coordinate, Coordinate2D):
        point = (coordinate.x, coordinate.y)
        errors = (coordinate.error_x, coordinate.error_y)
    else:
        raise TypeError(f"Unsupported coordinate type: {type(coordinate)}")

    text = "(" + ",".join(format_number(v) for v in point) + ")"
    if coordinate.has_error:
        text += "\t+- (" + ",".join(format_number(e or 0.0) for e in errors) + ")"
    return text


def render_plot(plot: Plot) -> str:
    command = "\\addplot3" if isinstance(plot, Plot3D) else "\\addplot"

    lines: List[str] = []
    if plot.keys:
        lines.append(f"\t{command}[")
        for key in plot.keys:
            lines.append(f"\t\t{render_key(key)},")
        lines.append("\t] coordinates {")
    else:
        lines.append(f"\t{command}[] coordinates {{")

    for coordinate in plot.coordinates:
        lines.append(f"\t\t{render_coordinate(coordinate)}")

    lines.append("\t};")
    return "\n".join(lines)


def _open_environment(name: str, keys) -> List[str]:
    if not keys:
        return [f"\\begin{{{name}}}"]
    lines = [f"\\begin{{{name}}}["]
    for key in keys:
        lines.append(f"\t{render_key(key)},")
    lines.append("]")
    return lines


def render_axis(axis: Axis) -> str:
    lines = _open_environment("axis", axis.keys)
    for plot in axis.plots:
        lines.append(render_plot(plot))
    lines.append("\\end{axis}")
    return "\n".join(lines)


def render_picture(picture: Picture) -> str:
    """
    Render the tikzpicture environment only (no preamble).

    Use this to embed a figure in a larger LaTeX document that already
    loads pgfplots.
    """
    lines = _open_environment("tikzpicture", picture.keys)
    for axis in picture.axes:
        lines.append(render_axis(axis))
    lines.append("\\end{tikzpicture}")
    return "\n".join(lines)


def standalone_string(figure: Figure) -> str:
    """
    Generate a complete LaTeX document for a figure.

    Args:
        figure: Picture, Axis or Plot; smaller parts are wrapped
            with as_picture

    Returns:
        Source that compiles to a standalone PDF cropped to the figure
    """
    return PREAMBLE + render_picture(as_picture(figure)) + POSTAMBLE


def save_tex_file(figure: Figure, filename: str) -> None:
    """
    Generate the standalone document and save it to a file.

    Args:
        figure: Figure to render
        filename: Output file path (.tex extension recommended)
    """
    source = standalone_string(figure)
    with open(filename, "w", encoding="utf-8") as f:
        f.write(source)


__all__ = [
    "format_number",
    "render_key",
    "render_coordinate",
    "render_plot",
    "render_axis",
    "render_picture",
    "standalone_string",
    "save_tex_file",
]
