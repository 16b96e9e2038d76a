"""
Core Document Model Objects

Defines the document tree of a figure:
    - Coordinates (data points, optionally with error bars)
    - Plots (2-D and 3-D, an ordered list of coordinates)
    - Axes (an ordered list of plots)
    - Pictures (root container, an ordered list of axes)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about LaTeX syntax or engines
        - Form a strict ownership tree (no back references)
        - Preserve insertion order everywhere
        - Represent structure, not behavior

Ordering is the only thing that determines draw and legend order in the
rendered document. There is no reorder operation; rebuild the list instead.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .keys import AxisKey, KeySet, PictureKey, PlotKey, Title, XLabel, YLabel


@dataclass(frozen=True)
class Coordinate2D:
    """
    A point of a two-dimensional plot.

    Properties:
        x, y: Position
        error_x, error_y: Optional error bar sizes. They are only drawn
            when the plot sets the matching error keys.
    """

    x: float
    y: float
    error_x: Optional[float] = None
    error_y: Optional[float] = None

    @classmethod
    def from_tuple(cls, values: Sequence) -> "Coordinate2D":
        """
        Build from (x, y) or (x, y, error_x, error_y).

        Raises:
            ValueError: If the tuple has any other length
        """
        if len(values) == 2:
            return cls(float(values[0]), float(values[1]))
        if len(values) == 4:
            x, y, error_x, error_y = values
            return cls(float(x), float(y), _optional_float(error_x), _optional_float(error_y))
        raise ValueError(f"2-D coordinate needs 2 or 4 values, got {len(values)}")

    @property
    def has_error(self) -> bool:
        return self.error_x is not None or self.error_y is not None


@dataclass(frozen=True)
class Coordinate3D:
    """
    A point of a three-dimensional plot.

    Properties:
        x, y, z: Position
        error_x, error_y, error_z: Optional error bar sizes
    """

    x: float
    y: float
    z: float
    error_x: Optional[float] = None
    error_y: Optional[float] = None
    error_z: Optional[float] = None

    @classmethod
    def from_tuple(cls, values: Sequence) -> "Coordinate3D":
        """
        Build from (x, y, z) or (x, y, z, error_x, error_y, error_z).

        Raises:
            ValueError: If the tuple has any other length
        """
        if len(values) == 3:
            return cls(float(values[0]), float(values[1]), float(values[2]))
        if len(values) == 6:
            x, y, z, error_x, error_y, error_z = values
            return cls(
                float(x),
                float(y),
                float(z),
                _optional_float(error_x),
                _optional_float(error_y),
                _optional_float(error_z),
            )
        raise ValueError(f"3-D coordinate needs 3 or 6 values, got {len(values)}")

    @property
    def has_error(self) -> bool:
        return self.error_x is not None or self.error_y is not None or self.error_z is not None


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


@dataclass
class Plot2D:
    """
    A two-dimensional plot inside an Axis.

    Equivalent to:

        \\addplot[PlotKeys] coordinates { ... };

    Properties:
        coordinates:
            Points in draw order. Never sorted or deduplicated.
        keys:
            Plot options (see pgfdoc.keys.PlotKey)

    Example:
        plot = Plot2D()
        for i in range(-2, 3):
            plot.add_coordinate((i, i * i))
    """

    coordinates: List[Coordinate2D] = field(default_factory=list)
    keys: KeySet = field(default_factory=KeySet)

    def add_coordinate(self, coordinate: Union[Coordinate2D, Sequence]) -> None:
        if not isinstance(coordinate, Coordinate2D):
            coordinate = Coordinate2D.from_tuple(coordinate)
        self.coordinates.append(coordinate)

    def add_key(self, key: PlotKey) -> None:
        """Add a plot option, replacing any previous option with the same name."""
        self.keys.add(key)


@dataclass
class Plot3D:
    """
    A three-dimensional plot inside an Axis.

    Equivalent to:

        \\addplot3[PlotKeys] coordinates { ... };
    """

    coordinates: List[Coordinate3D] = field(default_factory=list)
    keys: KeySet = field(default_factory=KeySet)

    def add_coordinate(self, coordinate: Union[Coordinate3D, Sequence]) -> None:
        if not isinstance(coordinate, Coordinate3D):
            coordinate = Coordinate3D.from_tuple(coordinate)
        self.coordinates.append(coordinate)

    def add_key(self, key: PlotKey) -> None:
        self.keys.add(key)


Plot = Union[Plot2D, Plot3D]


@dataclass
class Axis:
    """
    An axis environment inside a Picture.

    Equivalent to:

        \\begin{axis}[AxisKeys]
            % plots
        \\end{axis}

    Properties:
        plots:
            Plots in draw order. This order is also the legend order.
        keys:
            Axis options: labels, ranges, legend, scaling...

    An axis without plots is legal and renders an empty environment.
    """

    plots: List[Plot] = field(default_factory=list)
    keys: KeySet = field(default_factory=KeySet)

    @classmethod
    def from_plot(cls, plot: Plot) -> "Axis":
        return cls(plots=[plot])

    def add_plot(self, plot: Plot) -> None:
        self.plots.append(plot)

    def add_key(self, key: AxisKey) -> None:
        """Add an axis option, replacing any previous option with the same name."""
        self.keys.add(key)

    def set_title(self, title: str) -> None:
        self.add_key(Title(title))

    def set_x_label(self, label: str) -> None:
        self.add_key(XLabel(label))

    def set_y_label(self, label: str) -> None:
        self.add_key(YLabel(label))


@dataclass
class Picture:
    """
    Root container of the document tree (a tikzpicture environment).

    Equivalent to:

        \\begin{tikzpicture}[PictureKeys]
            % axis environments
        \\end{tikzpicture}

    This is the unit handed to the generator and to the compiler.
    Most figures hold exactly one Axis; several axes are only needed
    for composite layouts.

    A picture without axes is legal and renders a minimal document.
    """

    axes: List[Axis] = field(default_factory=list)
    keys: KeySet = field(default_factory=KeySet)

    @classmethod
    def from_axis(cls, axis: Axis) -> "Picture":
        return cls(axes=[axis])

    def add_axis(self, axis: Axis) -> None:
        self.axes.append(axis)

    def add_key(self, key: PictureKey) -> None:
        self.keys.add(key)


Figure = Union[Picture, Axis, Plot2D, Plot3D]


def as_picture(figure: Figure) -> Picture:
    """
    Wrap a plot or an axis in the minimal tree around it.

    A Picture is returned unchanged.

    Raises:
        TypeError: If figure is not part of the document model
    """
    if isinstance(figure, Picture):
        return figure
    if isinstance(figure, Axis):
        return Picture.from_axis(figure)
    if isinstance(figure, (Plot2D, Plot3D)):
        return Picture.from_axis(Axis.from_plot(figure))
    raise TypeError(f"Unsupported figure type: {type(figure)}")
