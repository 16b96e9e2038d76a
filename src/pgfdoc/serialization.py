"""
Serialization helpers for pgfdoc figures (Picture, Axis, Plot, Key).

Provides lossless JSON/YAML round-trip via intermediate dict representation,
so figure definitions can be stored and rendered again later. A restored
picture renders to exactly the same document as the original.

This is the library's own data format. It does not read LaTeX.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from pgfdoc.keys import (
    ERROR_DIRECTION_KEYS,
    ERROR_KEYS,
    FLAG_KEYS,
    NUMBER_KEYS,
    SCALE_KEYS,
    TEXT_KEYS,
    Color,
    Custom,
    Draw,
    ErrorCharacter,
    ErrorDirection,
    Fill,
    Key,
    KeySet,
    LegendEntries,
    Marker,
    MarkOption,
    MarkScale,
    MarkShape,
    PlotStyle,
    PlotType,
    Scale,
    Smooth,
    TextMark,
    Type2D,
    XBar,
    YBar,
)
from pgfdoc.model import Axis, Coordinate2D, Coordinate3D, Picture, Plot, Plot2D, Plot3D

_KEY_TYPES = {
    cls.__name__: cls
    for cls in (
        Custom, LegendEntries, PlotType, Marker,
        *SCALE_KEYS, *TEXT_KEYS, *NUMBER_KEYS, *FLAG_KEYS,
        *ERROR_KEYS, *ERROR_DIRECTION_KEYS,
    )
}


def style_to_dict(style: PlotStyle) -> Dict[str, Any]:
    if isinstance(style, Type2D):
        return {"kind": "type2d", "value": style.value}
    if isinstance(style, Smooth):
        return {"kind": "smooth", "tension": style.tension}
    if isinstance(style, XBar):
        return {"kind": "xbar", "bar_width": style.bar_width, "bar_shift": style.bar_shift}
    if isinstance(style, YBar):
        return {"kind": "ybar", "bar_width": style.bar_width, "bar_shift": style.bar_shift}
    raise TypeError(f"Unsupported plot style: {type(style)}")


def style_from_dict(d: Dict[str, Any]) -> PlotStyle:
    kind = d.get("kind")
    if kind == "type2d":
        return Type2D(d["value"])
    if kind == "smooth":
        return Smooth(tension=d["tension"])
    if kind == "xbar":
        return XBar(bar_width=d["bar_width"], bar_shift=d.get("bar_shift", 0.0))
    if kind == "ybar":
        return YBar(bar_width=d["bar_width"], bar_shift=d.get("bar_shift", 0.0))
    raise TypeError(f"Unsupported plot style kind: {kind}")


def mark_option_to_dict(option: MarkOption) -> Dict[str, Any]:
    if isinstance(option, Fill):
        return {"fill": option.color.value}
    if isinstance(option, Draw):
        return {"draw": option.color.value}
    if isinstance(option, MarkScale):
        return {"scale": option.factor}
    raise TypeError(f"Unsupported mark option: {type(option)}")


def mark_option_from_dict(d: Dict[str, Any]) -> MarkOption:
    if "fill" in d:
        return Fill(Color(d["fill"]))
    if "draw" in d:
        return Draw(Color(d["draw"]))
    if "scale" in d:
        return MarkScale(d["scale"])
    raise TypeError(f"Unsupported mark option dict: {d}")


def key_to_dict(key: Key) -> Dict[str, Any]:
    t = type(key).__name__
    if _KEY_TYPES.get(t) is not type(key):
        raise TypeError(f"Unsupported Key type: {type(key)}")
    if isinstance(key, Custom):
        return {"type": t, "name": key.name, "value": key.value}
    if isinstance(key, SCALE_KEYS):
        return {"type": t, "scale": key.scale.value}
    if isinstance(key, TEXT_KEYS):
        return {"type": t, "text": key.text}
    if isinstance(key, NUMBER_KEYS):
        return {"type": t, "value": key.value}
    if isinstance(key, FLAG_KEYS):
        return {"type": t}
    if isinstance(key, LegendEntries):
        return {"type": t, "entries": list(key.entries)}
    if isinstance(key, PlotType):
        return {"type": t, "style": style_to_dict(key.style)}
    if isinstance(key, ERROR_KEYS):
        return {"type": t, "character": key.character.value}
    if isinstance(key, ERROR_DIRECTION_KEYS):
        return {"type": t, "direction": key.direction.value}
    # Marker
    if isinstance(key.shape, TextMark):
        shape: Dict[str, Any] = {"text": key.shape.text}
    else:
        shape = {"mark": key.shape.value}
    return {"type": t, "shape": shape, "options": [mark_option_to_dict(o) for o in key.options]}


def key_from_dict(d: Dict[str, Any]) -> Key:
    t = d.get("type")
    cls = _KEY_TYPES.get(t)
    if cls is None:
        raise TypeError(f"Unsupported key dict type: {t}")
    if cls is Custom:
        return Custom(d["name"], d.get("value"))
    if cls in SCALE_KEYS:
        return cls(Scale(d["scale"]))
    if cls in TEXT_KEYS:
        return cls(d["text"])
    if cls in NUMBER_KEYS:
        return cls(d["value"])
    if cls in FLAG_KEYS:
        return cls()
    if cls is LegendEntries:
        return LegendEntries(tuple(d.get("entries", [])))
    if cls is PlotType:
        return PlotType(style_from_dict(d["style"]))
    if cls in ERROR_KEYS:
        return cls(ErrorCharacter(d["character"]))
    if cls in ERROR_DIRECTION_KEYS:
        return cls(ErrorDirection(d["direction"]))
    shape_d = d["shape"]
    shape = TextMark(shape_d["text"]) if "text" in shape_d else MarkShape(shape_d["mark"])
    options = tuple(mark_option_from_dict(o) for o in d.get("options", []))
    return Marker(shape, options)


def keys_to_list(keys: KeySet) -> List[Dict[str, Any]]:
    return [key_to_dict(k) for k in keys]


def keys_from_list(items: List[Dict[str, Any]] | None) -> KeySet:
    keys = KeySet()
    for item in items or []:
        keys.add(key_from_dict(item))
    return keys


def coordinate_to_list(c: Coordinate2D | Coordinate3D) -> List[Any]:
    # Errors are only stored when present: [x, y] or [x, y, ex, ey]
    if isinstance(c, Coordinate3D):
        values = [c.x, c.y, c.z]
        errors = [c.error_x, c.error_y, c.error_z]
    else:
        values = [c.x, c.y]
        errors = [c.error_x, c.error_y]
    return values + errors if c.has_error else values


def plot_to_dict(p: Plot) -> Dict[str, Any]:
    return {
        "type": "plot3d" if isinstance(p, Plot3D) else "plot2d",
        "keys": keys_to_list(p.keys),
        "coordinates": [coordinate_to_list(c) for c in p.coordinates],
    }


def plot_from_dict(d: Dict[str, Any]) -> Plot:
    t = d.get("type", "plot2d")
    if t == "plot2d":
        plot: Plot = Plot2D(keys=keys_from_list(d.get("keys")))
    elif t == "plot3d":
        plot = Plot3D(keys=keys_from_list(d.get("keys")))
    else:
        raise TypeError(f"Unsupported plot dict type: {t}")
    for values in d.get("coordinates", []):
        plot.add_coordinate(values)
    return plot


def axis_to_dict(a: Axis) -> Dict[str, Any]:
    return {"keys": keys_to_list(a.keys), "plots": [plot_to_dict(p) for p in a.plots]}


def axis_from_dict(d: Dict[str, Any]) -> Axis:
    return Axis(
        plots=[plot_from_dict(p) for p in d.get("plots", [])],
        keys=keys_from_list(d.get("keys")),
    )


def picture_to_dict(p: Picture) -> Dict[str, Any]:
    return {"keys": keys_to_list(p.keys), "axes": [axis_to_dict(a) for a in p.axes]}


def picture_from_dict(d: Dict[str, Any]) -> Picture:
    return Picture(
        axes=[axis_from_dict(a) for a in d.get("axes", [])],
        keys=keys_from_list(d.get("keys")),
    )


def picture_to_json(p: Picture) -> str:
    return json.dumps(picture_to_dict(p), sort_keys=True)


def picture_from_json(s: str) -> Picture:
    d = json.loads(s)
    return picture_from_dict(d)


def picture_to_yaml(p: Picture) -> str:
    return yaml.safe_dump(picture_to_dict(p))


def picture_from_yaml(s: str) -> Picture:
    d = yaml.safe_load(s)
    return picture_from_dict(d)
