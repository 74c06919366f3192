from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import math
from pathlib import Path
import re
from typing import Iterator, Optional, TypeAlias
import xml.etree.ElementTree as ET

from .raster_buffer import Color


LOGGER = logging.getLogger(__name__)

Point: TypeAlias = tuple[float, float]

_CURVE_SEGMENTS = 16
_CORNER_SEGMENTS = 8
_PATH_TOKEN = re.compile(r"[MmLlHhVvCcSsQqTtAaZz]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_PATH_ARITY = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "A": 7, "Z": 0}

# Containers whose children are referenced rather than painted in place.
_NON_RENDERED = {
    "defs",
    "clipPath",
    "mask",
    "symbol",
    "pattern",
    "marker",
    "linearGradient",
    "radialGradient",
    "filter",
    "style",
    "script",
    "title",
    "desc",
    "metadata",
}

_NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "lime": (0, 255, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "aqua": (0, 255, 255),
    "magenta": (255, 0, 255),
    "fuchsia": (255, 0, 255),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "silver": (192, 192, 192),
    "maroon": (128, 0, 0),
    "navy": (0, 0, 128),
    "olive": (128, 128, 0),
    "purple": (128, 0, 128),
    "teal": (0, 128, 128),
    "orange": (255, 165, 0),
}


class SvgParseError(ValueError):
    """Raised when bytes cannot be decoded into an SVG document."""


@dataclass(frozen=True)
class SvgRect:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[Color]
    stroke: Optional[Color]
    stroke_width: float


@dataclass(frozen=True)
class SvgEllipse:
    cx: float
    cy: float
    rx: float
    ry: float
    fill: Optional[Color]
    stroke: Optional[Color]
    stroke_width: float


@dataclass(frozen=True)
class SvgSubpath:
    points: tuple[Point, ...]
    closed: bool


@dataclass(frozen=True)
class SvgPath:
    """Flattened outline; line, polyline, polygon and path all end up here."""

    subpaths: tuple[SvgSubpath, ...]
    fill: Optional[Color]
    stroke: Optional[Color]
    stroke_width: float
    fill_rule: str = "nonzero"


SvgShape: TypeAlias = SvgRect | SvgEllipse | SvgPath


@dataclass(frozen=True)
class _Style:
    fill: Optional[Color] = (0, 0, 0, 255)
    stroke: Optional[Color] = None
    stroke_width: float = 1.0
    opacity: float = 1.0
    fill_opacity: float = 1.0
    stroke_opacity: float = 1.0
    fill_rule: str = "nonzero"

    def effective_fill(self) -> Optional[Color]:
        return _scale_alpha(self.fill, self.opacity * self.fill_opacity)

    def effective_stroke(self) -> Optional[Color]:
        if self.stroke_width <= 0:
            return None
        return _scale_alpha(self.stroke, self.opacity * self.stroke_opacity)


@dataclass(frozen=True)
class SvgDocument:
    """Parsed SVG markup: raw sizing attributes plus shapes in paint order."""

    viewbox_attr: Optional[str]
    width_attr: Optional[str]
    height_attr: Optional[str]
    shapes: tuple[SvgShape, ...]

    @classmethod
    def from_file(cls, path: Path) -> "SvgDocument":
        return cls.from_bytes(Path(path).read_bytes())

    @classmethod
    def from_bytes(cls, data: bytes) -> "SvgDocument":
        try:
            markup = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SvgParseError(f"document is not valid UTF-8: {exc}") from exc
        return cls.from_markup(markup)

    @classmethod
    def from_markup(cls, svg_markup: str) -> "SvgDocument":
        try:
            root = ET.fromstring(svg_markup)
        except ET.ParseError as exc:
            raise SvgParseError(f"malformed markup: {exc}") from exc
        return cls._from_root(root)

    @classmethod
    def _from_root(cls, root: ET.Element) -> "SvgDocument":
        tag = _strip_namespace(root.tag)
        if tag != "svg":
            raise SvgParseError(f"root element must be <svg>, got <{tag}>")
        shapes = tuple(_collect_shapes(root, _resolve_style(root, _Style())))
        return cls(
            viewbox_attr=root.attrib.get("viewBox"),
            width_attr=root.attrib.get("width"),
            height_attr=root.attrib.get("height"),
            shapes=shapes,
        )

    @property
    def viewbox(self) -> Optional[tuple[float, float, float, float]]:
        """Lenient viewBox parse used for drawing; sizing goes through the resolver."""
        vb = _parse_viewbox(self.viewbox_attr)
        if vb is None or vb[2] <= 0 or vb[3] <= 0:
            return None
        return vb

    def user_space(self, width: int, height: int) -> tuple[float, float, float, float]:
        """Rectangle in user units that is stretched onto a width x height raster."""
        vb = self.viewbox
        if vb is not None:
            return vb
        doc_w = _parse_length(self.width_attr)
        doc_h = _parse_length(self.height_attr)
        if doc_w and doc_h and doc_w > 0 and doc_h > 0:
            return (0.0, 0.0, doc_w, doc_h)
        return (0.0, 0.0, float(width), float(height))


def _collect_shapes(elem: ET.Element, style: _Style) -> Iterator[SvgShape]:
    # Iterative walk; group nesting depth is unbounded.
    stack: list[tuple[Iterator[ET.Element], _Style]] = [(iter(elem), style)]
    while stack:
        children, parent_style = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            continue
        if not isinstance(child.tag, str):
            continue
        tag = _strip_namespace(child.tag)
        if tag in _NON_RENDERED:
            continue
        child_style = _resolve_style(child, parent_style)
        if tag in ("g", "svg", "a"):
            stack.append((iter(child), child_style))
            continue
        shape = _parse_shape(tag, child, child_style)
        if shape is None:
            LOGGER.debug("skipping unsupported or empty <%s>", tag)
            continue
        yield shape


def _parse_shape(tag: str, elem: ET.Element, style: _Style) -> Optional[SvgShape]:
    fill = style.effective_fill()
    stroke = style.effective_stroke()
    if fill is None and stroke is None:
        return None
    if tag == "rect":
        return _parse_rect(elem, style, fill, stroke)
    if tag == "circle":
        r = _parse_length(elem.attrib.get("r")) or 0.0
        return _ellipse(elem, r, r, style, fill, stroke)
    if tag == "ellipse":
        rx = _parse_length(elem.attrib.get("rx")) or 0.0
        ry = _parse_length(elem.attrib.get("ry")) or 0.0
        return _ellipse(elem, rx, ry, style, fill, stroke)
    if tag == "line":
        x1 = _parse_length(elem.attrib.get("x1")) or 0.0
        y1 = _parse_length(elem.attrib.get("y1")) or 0.0
        x2 = _parse_length(elem.attrib.get("x2")) or 0.0
        y2 = _parse_length(elem.attrib.get("y2")) or 0.0
        if stroke is None:
            return None
        return SvgPath(
            subpaths=(SvgSubpath(points=((x1, y1), (x2, y2)), closed=False),),
            fill=None,
            stroke=stroke,
            stroke_width=style.stroke_width,
        )
    if tag in ("polyline", "polygon"):
        points = _parse_points(elem.attrib.get("points"))
        if len(points) < 2:
            return None
        return SvgPath(
            subpaths=(SvgSubpath(points=tuple(points), closed=tag == "polygon"),),
            fill=fill,
            stroke=stroke,
            stroke_width=style.stroke_width,
            fill_rule=style.fill_rule,
        )
    if tag == "path":
        subpaths = _parse_path_data(elem.attrib.get("d"))
        if not subpaths:
            return None
        return SvgPath(
            subpaths=subpaths,
            fill=fill,
            stroke=stroke,
            stroke_width=style.stroke_width,
            fill_rule=style.fill_rule,
        )
    return None


def _parse_rect(
    elem: ET.Element, style: _Style, fill: Optional[Color], stroke: Optional[Color]
) -> Optional[SvgShape]:
    x = _parse_length(elem.attrib.get("x")) or 0.0
    y = _parse_length(elem.attrib.get("y")) or 0.0
    w = _parse_length(elem.attrib.get("width")) or 0.0
    h = _parse_length(elem.attrib.get("height")) or 0.0
    if w <= 0 or h <= 0:
        return None
    rx = _parse_length(elem.attrib.get("rx"))
    ry = _parse_length(elem.attrib.get("ry"))
    if rx is None:
        rx = ry
    if ry is None:
        ry = rx
    if rx and ry and rx > 0 and ry > 0:
        outline = _rounded_rect_outline(x, y, w, h, min(rx, w / 2.0), min(ry, h / 2.0))
        return SvgPath(
            subpaths=(SvgSubpath(points=outline, closed=True),),
            fill=fill,
            stroke=stroke,
            stroke_width=style.stroke_width,
        )
    return SvgRect(x=x, y=y, width=w, height=h, fill=fill, stroke=stroke, stroke_width=style.stroke_width)


def _ellipse(
    elem: ET.Element,
    rx: float,
    ry: float,
    style: _Style,
    fill: Optional[Color],
    stroke: Optional[Color],
) -> Optional[SvgEllipse]:
    if rx <= 0 or ry <= 0:
        return None
    cx = _parse_length(elem.attrib.get("cx")) or 0.0
    cy = _parse_length(elem.attrib.get("cy")) or 0.0
    return SvgEllipse(cx=cx, cy=cy, rx=rx, ry=ry, fill=fill, stroke=stroke, stroke_width=style.stroke_width)


def _rounded_rect_outline(x: float, y: float, w: float, h: float, rx: float, ry: float) -> tuple[Point, ...]:
    corners = (
        (x + w - rx, y + ry, -math.pi / 2.0),
        (x + w - rx, y + h - ry, 0.0),
        (x + rx, y + h - ry, math.pi / 2.0),
        (x + rx, y + ry, math.pi),
    )
    points: list[Point] = []
    for cx, cy, start in corners:
        for i in range(_CORNER_SEGMENTS + 1):
            angle = start + (math.pi / 2.0) * i / _CORNER_SEGMENTS
            points.append((cx + rx * math.cos(angle), cy + ry * math.sin(angle)))
    return tuple(points)


class _PathBuilder:
    def __init__(self) -> None:
        self.subpaths: list[SvgSubpath] = []
        self.points: list[Point] = []
        self.x = 0.0
        self.y = 0.0
        self.start: Point = (0.0, 0.0)
        self.ctrl: Optional[Point] = None
        self.ctrl_kind = ""

    def apply(self, cmd: str, args: list[float]) -> None:
        op = cmd.upper()
        ox, oy = (self.x, self.y) if cmd.islower() else (0.0, 0.0)
        ctrl: Optional[Point] = None
        if op == "M":
            self._move(ox + args[0], oy + args[1])
        elif op == "L":
            self._line(ox + args[0], oy + args[1])
        elif op == "H":
            self._line(ox + args[0], self.y)
        elif op == "V":
            self._line(self.x, oy + args[0])
        elif op in ("C", "S"):
            if op == "C":
                c1 = (ox + args[0], oy + args[1])
                rest = args[2:]
            else:
                c1 = self._reflected("C")
                rest = args
            c2 = (ox + rest[0], oy + rest[1])
            end = (ox + rest[2], oy + rest[3])
            self._cubic(c1, c2, end)
            ctrl = c2
        elif op in ("Q", "T"):
            if op == "Q":
                c = (ox + args[0], oy + args[1])
                end = (ox + args[2], oy + args[3])
            else:
                c = self._reflected("Q")
                end = (ox + args[0], oy + args[1])
            self._quadratic(c, end)
            ctrl = c
        elif op == "A":
            # Arcs are not tessellated; the chord keeps the outline connected.
            self._line(ox + args[5], oy + args[6])
        self.ctrl = ctrl
        self.ctrl_kind = "C" if op in ("C", "S") else "Q" if op in ("Q", "T") else ""

    def close(self) -> None:
        if self.points:
            self._flush(closed=True)
        self.x, self.y = self.start
        self.ctrl = None
        self.ctrl_kind = ""

    def finish(self) -> tuple[SvgSubpath, ...]:
        self._flush(closed=False)
        return tuple(self.subpaths)

    def _flush(self, closed: bool) -> None:
        if len(self.points) >= 2:
            self.subpaths.append(SvgSubpath(points=tuple(self.points), closed=closed))
        self.points = []

    def _move(self, x: float, y: float) -> None:
        self._flush(closed=False)
        self.x, self.y = x, y
        self.start = (x, y)
        self.points = [(x, y)]

    def _line(self, x: float, y: float) -> None:
        if not self.points:
            self.points = [(self.x, self.y)]
        self.points.append((x, y))
        self.x, self.y = x, y

    def _reflected(self, kind: str) -> Point:
        if self.ctrl is None or self.ctrl_kind != kind:
            return (self.x, self.y)
        return (2.0 * self.x - self.ctrl[0], 2.0 * self.y - self.ctrl[1])

    def _cubic(self, c1: Point, c2: Point, end: Point) -> None:
        x0, y0 = self.x, self.y
        for i in range(1, _CURVE_SEGMENTS + 1):
            t = i / _CURVE_SEGMENTS
            mt = 1.0 - t
            a, b, c, d = mt * mt * mt, 3 * mt * mt * t, 3 * mt * t * t, t * t * t
            self._line(
                a * x0 + b * c1[0] + c * c2[0] + d * end[0],
                a * y0 + b * c1[1] + c * c2[1] + d * end[1],
            )

    def _quadratic(self, c: Point, end: Point) -> None:
        x0, y0 = self.x, self.y
        for i in range(1, _CURVE_SEGMENTS + 1):
            t = i / _CURVE_SEGMENTS
            mt = 1.0 - t
            self._line(
                mt * mt * x0 + 2 * mt * t * c[0] + t * t * end[0],
                mt * mt * y0 + 2 * mt * t * c[1] + t * t * end[1],
            )


def _parse_path_data(value: Optional[str]) -> tuple[SvgSubpath, ...]:
    tokens = _PATH_TOKEN.findall(value or "")
    builder = _PathBuilder()
    cmd: Optional[str] = None
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.isalpha():
            cmd = token
            i += 1
            if cmd in "Zz":
                builder.close()
                cmd = None
                continue
        elif cmd is None:
            # Render up to the first error, as browsers do.
            LOGGER.debug("path data has a stray number `%s`; truncating", token)
            break
        arity = _PATH_ARITY[cmd.upper()]
        args = tokens[i : i + arity]
        if len(args) < arity or any(a.isalpha() for a in args):
            LOGGER.debug("path data has an incomplete `%s` segment; truncating", cmd)
            break
        builder.apply(cmd, [float(a) for a in args])
        i += arity
        if cmd == "M":
            cmd = "L"
        elif cmd == "m":
            cmd = "l"
    return builder.finish()


def _resolve_style(elem: ET.Element, parent: _Style) -> _Style:
    props = dict(elem.attrib)
    for decl in elem.attrib.get("style", "").split(";"):
        if ":" in decl:
            key, value = decl.split(":", 1)
            props[key.strip()] = value.strip()

    style = parent
    fill_raw = _own(props, "fill")
    if fill_raw is not None:
        known, color = _parse_paint(fill_raw)
        if known:
            style = replace(style, fill=color)
    stroke_raw = _own(props, "stroke")
    if stroke_raw is not None:
        known, color = _parse_paint(stroke_raw)
        if known:
            style = replace(style, stroke=color)
    stroke_width = _parse_length(_own(props, "stroke-width"))
    if stroke_width is not None and stroke_width >= 0:
        style = replace(style, stroke_width=stroke_width)
    opacity = _parse_opacity(_own(props, "opacity"))
    if opacity is not None:
        style = replace(style, opacity=parent.opacity * opacity)
    fill_opacity = _parse_opacity(_own(props, "fill-opacity"))
    if fill_opacity is not None:
        style = replace(style, fill_opacity=fill_opacity)
    stroke_opacity = _parse_opacity(_own(props, "stroke-opacity"))
    if stroke_opacity is not None:
        style = replace(style, stroke_opacity=stroke_opacity)
    fill_rule = _own(props, "fill-rule")
    if fill_rule in ("nonzero", "evenodd"):
        style = replace(style, fill_rule=fill_rule)
    return style


def _own(props: dict[str, str], name: str) -> Optional[str]:
    value = props.get(name)
    if value is None:
        return None
    value = value.strip()
    if value in ("", "inherit"):
        return None
    return value


def _strip_namespace(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _parse_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    value = value.strip()
    if value.endswith("px"):
        value = value[:-2]
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_viewbox(value: Optional[str]) -> Optional[tuple[float, float, float, float]]:
    if not value:
        return None
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        vb = tuple(float(p) for p in parts)
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in vb):
        return None
    return vb  # type: ignore[return-value]


def _parse_points(value: Optional[str]) -> list[Point]:
    if not value:
        return []
    parts = value.replace(",", " ").split()
    points: list[Point] = []
    it = iter(parts)
    for x_str, y_str in zip(it, it):
        try:
            points.append((float(x_str), float(y_str)))
        except ValueError:
            break
    return points


def _parse_opacity(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        if value.endswith("%"):
            number = float(value[:-1]) / 100.0
        else:
            number = float(value)
    except ValueError:
        return None
    return max(0.0, min(1.0, number))


def _parse_paint(value: str) -> tuple[bool, Optional[Color]]:
    """Returns ``(known, color)``; unknown paint leaves the inherited value alone.

    Paint servers (gradients, patterns) are not drawn, so ``url(...)`` paints
    as ``none`` unless a fallback colour follows it.
    """
    if value == "none":
        return True, None
    if value.lower().startswith("url("):
        close = value.find(")")
        fallback = value[close + 1 :].strip() if close >= 0 else ""
        if not fallback or fallback == "none":
            return True, None
        return True, _parse_color(fallback)
    color = _parse_color(value)
    return color is not None, color


def _parse_color(value: Optional[str]) -> Optional[Color]:
    if not value:
        return None
    value = value.strip().lower()
    if value in _NAMED_COLORS:
        r, g, b = _NAMED_COLORS[value]
        return (r, g, b, 255)
    if value == "transparent":
        return (0, 0, 0, 0)
    if value.startswith("#"):
        hex_value = value[1:]
        try:
            if len(hex_value) in (3, 4):
                channels = [int(ch * 2, 16) for ch in hex_value]
            elif len(hex_value) in (6, 8):
                channels = [int(hex_value[i : i + 2], 16) for i in range(0, len(hex_value), 2)]
            else:
                return None
        except ValueError:
            return None
        if len(channels) == 3:
            channels.append(255)
        return (channels[0], channels[1], channels[2], channels[3])
    if value.startswith("rgb"):
        numbers = value[value.find("(") + 1 : value.find(")")].split(",")
        if len(numbers) >= 3:
            try:
                r, g, b = (_parse_channel(n) for n in numbers[:3])
            except ValueError:
                return None
            a = 255
            if len(numbers) >= 4:
                opacity = _parse_opacity(numbers[3].strip())
                if opacity is None:
                    return None
                a = int(round(opacity * 255))
            return (r, g, b, a)
    return None


def _parse_channel(raw: str) -> int:
    raw = raw.strip()
    if raw.endswith("%"):
        return max(0, min(255, int(round(float(raw[:-1]) * 2.55))))
    return max(0, min(255, int(round(float(raw)))))


def _scale_alpha(color: Optional[Color], opacity: float) -> Optional[Color]:
    if color is None:
        return None
    r, g, b, a = color
    alpha = max(0, min(255, int(round(a * opacity))))
    if alpha == 0:
        return None
    return (r, g, b, alpha)
