"""
Key System for pgfdoc

Every option passed to a picture, an axis or a plot is a typed Key object.
A closed set of known options is modeled explicitly, and the Custom key
lets callers inject any option the library does not know about.

This ensures:
    - Type safety for the common vocabulary
    - No option is ever blocked
    - Deterministic ordering and duplicate handling (see KeySet)

ARCHITECTURAL RULE:
    Keys are structure only.
    Rendering to markup belongs in the backends.
"""

from abc import ABC
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple, Union


class Key(ABC):
    """
    Base class for all keys.

    Subclasses define `canonical_name`, the identity a KeySet uses to
    detect duplicates. For typed keys it is the markup option name, for
    Custom keys it is whatever name the caller supplied.
    """

    canonical_name: str = ""


class PictureKey(Key):
    """Marker base for options of the tikzpicture environment."""


class AxisKey(Key):
    """Marker base for options of the axis environment."""


class PlotKey(Key):
    """Marker base for options of an addplot command."""


# =============================================================================
# ENUMERATED VALUES
# =============================================================================


class Scale(Enum):
    """Scaling of an axis."""
    LOG = "log"        # natural logarithm applied to each coordinate
    NORMAL = "normal"  # linear


class Type2D(Enum):
    """Plot types that take no parameters. See Smooth, XBar and YBar for the rest."""
    SHARP_PLOT = "sharp plot"
    CONST_LEFT = "const plot mark left"
    CONST_RIGHT = "const plot mark right"
    CONST_MID = "const plot mark mid"
    JUMP_LEFT = "jump mark left"
    JUMP_RIGHT = "jump mark right"
    JUMP_MID = "jump mark mid"
    XCOMB = "xcomb"
    YCOMB = "ycomb"
    ONLY_MARKS = "only marks"


@dataclass(frozen=True)
class Smooth:
    """
    Interpolate smoothly between successive points.

    A higher tension gives rounder curves; 0.55 is a good starting value.
    """

    tension: float = 0.55


@dataclass(frozen=True)
class XBar:
    """
    Horizontal bars between the y = 0 line and each coordinate.

    Width and shift are in pt unless the picture sets compat=1.7 or
    higher, in which case they are in axis units.
    """

    bar_width: float
    bar_shift: float = 0.0


@dataclass(frozen=True)
class YBar:
    """Vertical bars between the x = 0 line and each coordinate. Units as XBar."""

    bar_width: float
    bar_shift: float = 0.0


PlotStyle = Union[Type2D, Smooth, XBar, YBar]


class ErrorCharacter(Enum):
    """Whether error values are absolute or relative to the coordinate."""
    ABSOLUTE = "explicit"
    RELATIVE = "explicit relative"


class ErrorDirection(Enum):
    """Which bounds of an error bar are drawn."""
    NONE = "none"
    PLUS = "plus"
    MINUS = "minus"
    BOTH = "both"


class PredefinedColor(Enum):
    """Colors every xcolor installation knows by name."""
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    CYAN = "cyan"
    MAGENTA = "magenta"
    YELLOW = "yellow"
    BLACK = "black"
    GRAY = "gray"
    WHITE = "white"
    DARK_GRAY = "darkgray"
    LIGHT_GRAY = "lightgray"
    BROWN = "brown"
    LIME = "lime"
    OLIVE = "olive"
    ORANGE = "orange"
    PINK = "pink"
    PURPLE = "purple"
    TEAL = "teal"
    VIOLET = "violet"


@dataclass(frozen=True)
class Color:
    """
    A color specification in xcolor syntax.

    Examples:
        Color.named(PredefinedColor.BLUE)                 -> blue
        Color.from_mix([(PredefinedColor.RED, 255),
                        (PredefinedColor.BLUE, 100)])     -> rgb,255:red,255;blue,100

    Properties:
        value: The xcolor expression, stored verbatim
    """

    value: str

    @classmethod
    def named(cls, color: PredefinedColor) -> "Color":
        return cls(color.value)

    @classmethod
    def from_mix(cls, weighted_colors: Iterable[Tuple[Union["Color", PredefinedColor], int]]) -> "Color":
        parts = []
        for color, weight in weighted_colors:
            parts.append(f"{_as_color(color).value},{weight}")
        return cls("rgb,255:" + ";".join(parts))


def _as_color(color: Union[Color, PredefinedColor]) -> Color:
    if isinstance(color, PredefinedColor):
        return Color.named(color)
    return color


class MarkShape(Enum):
    """Marker shapes from the PGFPlots marker library."""
    O = "o"
    O_FILLED = "*"
    X = "x"
    PLUS = "+"
    MINUS = "-"
    PIPE = "|"
    STAR = "star"
    O_PLUS = "oplus"
    O_PLUS_FILLED = "oplus*"
    O_TIMES = "otimes"
    O_TIMES_FILLED = "otimes*"
    SQUARE = "square"
    SQUARE_FILLED = "square*"
    TRIANGLE = "triangle"
    TRIANGLE_FILLED = "triangle*"
    DIAMOND = "diamond"
    DIAMOND_FILLED = "diamond*"
    PENTAGON = "pentagon"
    PENTAGON_FILLED = "pentagon*"


@dataclass(frozen=True)
class TextMark:
    """Use arbitrary text as the marker."""

    text: str


class MarkOption(ABC):
    """Base for options inside `mark options={...}`."""


@dataclass(frozen=True)
class Fill(MarkOption):
    color: Color


@dataclass(frozen=True)
class Draw(MarkOption):
    color: Color


@dataclass(frozen=True)
class MarkScale(MarkOption):
    factor: float


# =============================================================================
# CUSTOM
# =============================================================================


@dataclass(frozen=True)
class Custom(PictureKey, AxisKey, PlotKey):
    """
    Escape hatch for options that have no typed key.

    Rendered verbatim as `name=value`, or just `name` when value is None
    or empty. Nothing is validated: malformed markup here only fails when
    the LaTeX engine processes the document.

    Examples:
        Custom("samples", "100")      -> samples=100
        Custom("dashed")              -> dashed
        Custom("legend pos", "north west")
    """

    name: str
    value: Optional[str] = None

    @property
    def canonical_name(self) -> str:  # type: ignore[override]
        return self.name


# =============================================================================
# PICTURE KEYS
# =============================================================================


@dataclass(frozen=True)
class ScaleFactor(PictureKey):
    """Scale the whole picture, e.g. scale=2."""

    value: float
    canonical_name = "scale"


@dataclass(frozen=True)
class Baseline(PictureKey):
    """Align the picture baseline with the surrounding text."""

    canonical_name = "baseline"


# =============================================================================
# AXIS KEYS
# =============================================================================


@dataclass(frozen=True)
class XMode(AxisKey):
    scale: Scale
    canonical_name = "xmode"


@dataclass(frozen=True)
class YMode(AxisKey):
    scale: Scale
    canonical_name = "ymode"


@dataclass(frozen=True)
class ZMode(AxisKey):
    scale: Scale
    canonical_name = "zmode"


@dataclass(frozen=True)
class Title(AxisKey):
    """Title of the axis. May contain LaTeX, e.g. inline math."""

    text: str
    canonical_name = "title"


@dataclass(frozen=True)
class XLabel(AxisKey):
    text: str
    canonical_name = "xlabel"


@dataclass(frozen=True)
class YLabel(AxisKey):
    text: str
    canonical_name = "ylabel"


@dataclass(frozen=True)
class ZLabel(AxisKey):
    text: str
    canonical_name = "zlabel"


@dataclass(frozen=True)
class XMin(AxisKey):
    value: float
    canonical_name = "xmin"


@dataclass(frozen=True)
class XMax(AxisKey):
    value: float
    canonical_name = "xmax"


@dataclass(frozen=True)
class YMin(AxisKey):
    value: float
    canonical_name = "ymin"


@dataclass(frozen=True)
class YMax(AxisKey):
    value: float
    canonical_name = "ymax"


@dataclass(frozen=True)
class ZMin(AxisKey):
    value: float
    canonical_name = "zmin"


@dataclass(frozen=True)
class ZMax(AxisKey):
    value: float
    canonical_name = "zmax"


@dataclass(frozen=True)
class LegendEntries(AxisKey):
    """
    One legend entry per plot, in plot order.

    Entries are joined with commas, so an entry containing a comma must
    wrap it in braces itself.
    """

    entries: Tuple[str, ...]
    canonical_name = "legend entries"


@dataclass(frozen=True)
class HideAxis(AxisKey):
    """Draw the plots without axis lines, ticks or labels."""

    canonical_name = "hide axis"


# =============================================================================
# PLOT KEYS
# =============================================================================


@dataclass(frozen=True)
class PlotType(PlotKey):
    """How coordinates are connected (sharp, smooth, bars, marks only...)."""

    style: PlotStyle
    canonical_name = "plot type"


@dataclass(frozen=True)
class XError(PlotKey):
    """Character of x error bars. Nothing is drawn unless XErrorDirection is also set."""

    character: ErrorCharacter
    canonical_name = "error bars/x"


@dataclass(frozen=True)
class XErrorDirection(PlotKey):
    """Direction of x error bars. Nothing is drawn unless XError is also set."""

    direction: ErrorDirection
    canonical_name = "error bars/x dir"


@dataclass(frozen=True)
class YError(PlotKey):
    character: ErrorCharacter
    canonical_name = "error bars/y"


@dataclass(frozen=True)
class YErrorDirection(PlotKey):
    direction: ErrorDirection
    canonical_name = "error bars/y dir"


@dataclass(frozen=True)
class ZError(PlotKey):
    character: ErrorCharacter
    canonical_name = "error bars/z"


@dataclass(frozen=True)
class ZErrorDirection(PlotKey):
    direction: ErrorDirection
    canonical_name = "error bars/z dir"


@dataclass(frozen=True)
class Marker(PlotKey):
    """
    Marker drawn at each coordinate.

    Example:
        Marker(MarkShape.O_FILLED, (Fill(Color.named(PredefinedColor.BLUE)),))
        -> mark=*, mark options={fill=blue}
    """

    shape: Union[MarkShape, TextMark]
    options: Tuple[MarkOption, ...] = ()
    canonical_name = "mark"


# =============================================================================
# KEY SET
# =============================================================================


@dataclass
class KeySet:
    """
    Ordered set of keys with replace-on-duplicate semantics.

    INVARIANT:
        No two keys share a canonical_name.
        Adding a key whose canonical_name is already present removes the
        old key and appends the new one, so the order always reflects
        the sequence in which options were last set.
    """

    _keys: List[Key] = field(default_factory=list)

    def add(self, key: Key) -> None:
        self._keys = [k for k in self._keys if k.canonical_name != key.canonical_name]
        self._keys.append(key)

    def get(self, canonical_name: str) -> Optional[Key]:
        for key in self._keys:
            if key.canonical_name == canonical_name:
                return key
        return None

    def remove(self, canonical_name: str) -> None:
        self._keys = [k for k in self._keys if k.canonical_name != canonical_name]

    def clear(self) -> None:
        self._keys.clear()

    def __iter__(self) -> Iterator[Key]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def __contains__(self, canonical_name: object) -> bool:
        return any(k.canonical_name == canonical_name for k in self._keys)

    def __getitem__(self, index: int) -> Key:
        return self._keys[index]


# Key families sharing one value shape
SCALE_KEYS = (XMode, YMode, ZMode)
TEXT_KEYS = (Title, XLabel, YLabel, ZLabel)
NUMBER_KEYS = (XMin, XMax, YMin, YMax, ZMin, ZMax, ScaleFactor)
FLAG_KEYS = (Baseline, HideAxis)
ERROR_KEYS = (XError, YError, ZError)
ERROR_DIRECTION_KEYS = (XErrorDirection, YErrorDirection, ZErrorDirection)
