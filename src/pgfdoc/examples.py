"""
Example figures.

Each builder returns a Picture ready to render or compile:
    - build_parabola: the smallest useful figure, y = x^2 on five points
    - build_fitted_line: a dashed fit and measured points with error bars
    - build_rectangle_integration: bars under y = x^2 plus the curve itself
    - build_snowflake: a filled Koch snowflake without axis lines
"""
import math
from typing import List, Tuple

from pgfdoc.keys import (
    Custom,
    ErrorCharacter,
    ErrorDirection,
    HideAxis,
    LegendEntries,
    PlotType,
    Type2D,
    XError,
    XErrorDirection,
    YError,
    YErrorDirection,
)
from pgfdoc.model import Axis, Picture, Plot2D


def build_parabola() -> Picture:
    plot = Plot2D()
    for x in (-2, -1, 0, 1, 2):
        plot.add_coordinate((x, x * x))
    return Picture.from_axis(Axis.from_plot(plot))


def build_fitted_line() -> Picture:
    line = Plot2D()
    for i in range(11):
        line.add_coordinate((i, 2.0 * math.pi * i))
    line.add_key(Custom("dashed"))

    points = Plot2D()
    measurements = [
        (1.0, 8.0, 0.2, 0.9),
        (3.0, 16.0, 0.4, 1.4),
        (5.0, 33.0, 0.2, 3.4),
        (7.0, 41.0, 0.2, 3.4),
        (9.0, 58.0, 0.5, 1.4),
    ]
    for measurement in measurements:
        points.add_coordinate(measurement)
    points.add_key(PlotType(Type2D.ONLY_MARKS))
    points.add_key(XError(ErrorCharacter.ABSOLUTE))
    points.add_key(XErrorDirection(ErrorDirection.BOTH))
    points.add_key(YError(ErrorCharacter.ABSOLUTE))
    points.add_key(YErrorDirection(ErrorDirection.BOTH))
    points.add_key(Custom("mark size", "1pt"))

    axis = Axis()
    axis.set_title("Slope is $2\\pi$")
    axis.set_x_label("Radius~[m]")
    axis.set_y_label("Circumference~[m]")
    axis.add_plot(line)
    axis.add_plot(points)
    axis.add_key(LegendEntries(("fit", "data")))
    axis.add_key(Custom("legend pos", "north west"))
    return Picture.from_axis(axis)


def build_rectangle_integration() -> Picture:
    line = Plot2D()
    for i in range(101):
        line.add_coordinate((i, i * i))

    rectangles = Plot2D()
    for i in range(0, 101, 10):
        rectangles.add_coordinate((i, i * i))
    # Bar width is in pt until compat=1.7 is set, hence the hand-tuned value
    rectangles.add_key(Custom("ybar, bar width", "19.5"))
    rectangles.add_key(Custom("fill", "gray!20"))
    rectangles.add_key(Custom("draw opacity", "0.5"))

    axis = Axis()
    axis.set_title("Rectangle Integration")
    axis.set_x_label("$x$")
    axis.set_y_label("$y = x^2$")
    axis.add_plot(rectangles)
    axis.add_plot(line)
    axis.add_key(Custom("axis lines", "middle"))
    axis.add_key(Custom("xlabel near ticks"))
    axis.add_key(Custom("ylabel near ticks"))
    return Picture.from_axis(axis)


def _snowflake_step(points: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    result = []
    root = math.sqrt(0.75)
    for i, start in enumerate(points):
        end = points[(i + 1) % len(points)]
        tx, ty = (end[0] - start[0]) / 3.0, (end[1] - start[1]) / 3.0
        sx, sy = tx * 0.5 - ty * root, ty * 0.5 + root * tx
        result.append(start)
        result.append((start[0] + tx, start[1] + ty))
        result.append((start[0] + tx + sx, start[1] + ty + sy))
        result.append((start[0] + tx * 2.0, start[1] + ty * 2.0))
    return result


def build_snowflake(iterations: int = 5) -> Picture:
    vertices = [(0.0, 1.0), (math.sqrt(3.0) / 2.0, -0.5), (-math.sqrt(3.0) / 2.0, -0.5)]
    for _ in range(iterations):
        vertices = _snowflake_step(vertices)
    vertices.append(vertices[0])

    plot = Plot2D()
    for vertex in vertices:
        plot.add_coordinate(vertex)
    plot.add_key(Custom("fill", "gray!20"))

    axis = Axis.from_plot(plot)
    axis.set_title("Koch Snowflake")
    axis.add_key(HideAxis())
    return Picture.from_axis(axis)
