from __future__ import annotations

import logging
import math
from typing import Callable, Iterable, Iterator, Optional

import torch

from vectorpng_core.render.raster_buffer import Color, RasterBuffer
from vectorpng_core.render.svg import (
    Point,
    SvgDocument,
    SvgEllipse,
    SvgParseError,
    SvgPath,
    SvgRect,
    SvgShape,
    SvgSubpath,
)

from .aspect import ResolvedSize
from .background import BackgroundSpec
from .errors import RasterizationFailedError


LOGGER = logging.getLogger(__name__)

_BAND_ROWS = 128

InsideTest = Callable[[torch.Tensor, torch.Tensor], torch.Tensor]


def decode_document(document_bytes: bytes) -> SvgDocument:
    try:
        return SvgDocument.from_bytes(document_bytes)
    except SvgParseError as exc:
        raise RasterizationFailedError(str(exc)) from exc


def rasterize(
    document: SvgDocument,
    size: ResolvedSize,
    background: BackgroundSpec,
    *,
    supersample: int = 2,
) -> RasterBuffer:
    """Render ``document`` stretched onto exactly ``size`` over ``background``.

    The caller has already fitted ``size``; no aspect ratio is re-derived here,
    so the view box maps onto the raster with independent x/y scales.
    """
    buffer: RasterBuffer | None = None
    try:
        buffer = RasterBuffer(width=size.width, height=size.height, background=background.rgba())
        painter = _Painter(buffer, document.user_space(size.width, size.height), supersample)
        painter.paint(document.shapes)
    except (RuntimeError, ValueError, OverflowError, MemoryError) as exc:
        if buffer is not None:
            buffer.release()
        raise RasterizationFailedError(f"failed to render document: {exc}") from exc
    LOGGER.debug("rasterized %d shapes at %dx%d", len(document.shapes), size.width, size.height)
    return buffer


class _Painter:
    def __init__(
        self,
        buffer: RasterBuffer,
        user_space: tuple[float, float, float, float],
        supersample: int,
    ) -> None:
        vb_x, vb_y, vb_w, vb_h = user_space
        if vb_w <= 0 or vb_h <= 0:
            raise ValueError("user space width/height must be > 0")
        self.buffer = buffer
        self.vb_x = vb_x
        self.vb_y = vb_y
        self.sx = buffer.width / vb_w
        self.sy = buffer.height / vb_h
        self.offsets = (torch.arange(supersample, dtype=torch.float64) + 0.5) / supersample

    def paint(self, shapes: Iterable[SvgShape]) -> None:
        for shape in shapes:
            if isinstance(shape, SvgRect):
                self._rect(shape)
            elif isinstance(shape, SvgEllipse):
                self._ellipse(shape)
            elif isinstance(shape, SvgPath):
                self._path(shape)

    def _rect(self, rect: SvgRect) -> None:
        x0, y0 = rect.x, rect.y
        x1, y1 = rect.x + rect.width, rect.y + rect.height
        self._cover((x0, y0, x1, y1), rect.fill, lambda ux, uy: _in_box(ux, uy, x0, y0, x1, y1))
        if rect.stroke is not None:
            hw = rect.stroke_width / 2.0
            self._cover(
                (x0 - hw, y0 - hw, x1 + hw, y1 + hw),
                rect.stroke,
                lambda ux, uy: _in_box(ux, uy, x0 - hw, y0 - hw, x1 + hw, y1 + hw)
                & ~_in_box(ux, uy, x0 + hw, y0 + hw, x1 - hw, y1 - hw),
            )

    def _ellipse(self, ellipse: SvgEllipse) -> None:
        cx, cy, rx, ry = ellipse.cx, ellipse.cy, ellipse.rx, ellipse.ry
        self._cover(
            (cx - rx, cy - ry, cx + rx, cy + ry),
            ellipse.fill,
            lambda ux, uy: _in_ellipse(ux, uy, cx, cy, rx, ry),
        )
        if ellipse.stroke is not None:
            hw = ellipse.stroke_width / 2.0
            self._cover(
                (cx - rx - hw, cy - ry - hw, cx + rx + hw, cy + ry + hw),
                ellipse.stroke,
                lambda ux, uy: _in_ellipse(ux, uy, cx, cy, rx + hw, ry + hw)
                & ~_in_ellipse(ux, uy, cx, cy, rx - hw, ry - hw),
            )

    def _path(self, path: SvgPath) -> None:
        xs = [x for sub in path.subpaths for x, _ in sub.points]
        ys = [y for sub in path.subpaths for _, y in sub.points]
        bounds = (min(xs), min(ys), max(xs), max(ys))
        if path.fill is not None:
            edges = list(_fill_edges(path.subpaths))
            self._cover(bounds, path.fill, lambda ux, uy: _in_outline(ux, uy, edges, path.fill_rule))
        if path.stroke is not None:
            hw = path.stroke_width / 2.0
            segments = list(_stroke_segments(path.subpaths))
            self._cover(
                (bounds[0] - hw, bounds[1] - hw, bounds[2] + hw, bounds[3] + hw),
                path.stroke,
                lambda ux, uy: _near_segments(ux, uy, segments, hw),
            )

    def _cover(
        self,
        bounds: tuple[float, float, float, float],
        color: Optional[Color],
        inside: InsideTest,
    ) -> None:
        if color is None:
            return
        ux0, uy0, ux1, uy1 = bounds
        px0 = max(0, math.floor((ux0 - self.vb_x) * self.sx))
        py0 = max(0, math.floor((uy0 - self.vb_y) * self.sy))
        px1 = min(self.buffer.width, math.ceil((ux1 - self.vb_x) * self.sx) + 1)
        py1 = min(self.buffer.height, math.ceil((uy1 - self.vb_y) * self.sy) + 1)
        if px1 <= px0 or py1 <= py0:
            return
        n = self.offsets.numel()
        cols = px1 - px0
        sample_x = (torch.arange(px0, px1, dtype=torch.float64).unsqueeze(1) + self.offsets).reshape(-1)
        ux = (self.vb_x + sample_x / self.sx).unsqueeze(0)
        for band0 in range(py0, py1, _BAND_ROWS):
            band1 = min(py1, band0 + _BAND_ROWS)
            sample_y = (torch.arange(band0, band1, dtype=torch.float64).unsqueeze(1) + self.offsets).reshape(-1)
            uy = (self.vb_y + sample_y / self.sy).unsqueeze(1)
            mask = inside(ux, uy)
            coverage = mask.to(torch.float32).reshape(band1 - band0, n, cols, n).mean(dim=(1, 3))
            self.buffer.composite(coverage, x=px0, y=band0, color=color)


def _empty(ux: torch.Tensor, uy: torch.Tensor) -> torch.Tensor:
    return torch.zeros((uy.shape[0], ux.shape[1]), dtype=torch.bool)


def _in_box(ux: torch.Tensor, uy: torch.Tensor, x0: float, y0: float, x1: float, y1: float) -> torch.Tensor:
    if x1 <= x0 or y1 <= y0:
        return _empty(ux, uy)
    return ((ux >= x0) & (ux < x1)) & ((uy >= y0) & (uy < y1))


def _in_ellipse(ux: torch.Tensor, uy: torch.Tensor, cx: float, cy: float, rx: float, ry: float) -> torch.Tensor:
    if rx <= 0 or ry <= 0:
        return _empty(ux, uy)
    return ((ux - cx) / rx) ** 2 + ((uy - cy) / ry) ** 2 <= 1.0


def _in_outline(
    ux: torch.Tensor,
    uy: torch.Tensor,
    edges: list[tuple[Point, Point]],
    fill_rule: str,
) -> torch.Tensor:
    rows = uy.reshape(-1).contiguous()
    winding = torch.zeros((rows.numel(), ux.shape[1]), dtype=torch.int32)
    for (xa, ya), (xb, yb) in edges:
        if ya == yb:
            continue
        # An edge only changes the winding of rows with min(ya, yb) <= y < max(ya, yb).
        r0, r1 = _span(rows, min(ya, yb), max(ya, yb))
        if r0 >= r1:
            continue
        crossing_x = xa + (uy[r0:r1] - ya) * ((xb - xa) / (yb - ya))
        left = (ux < crossing_x).to(torch.int32)
        if ya < yb:
            winding[r0:r1] += left
        else:
            winding[r0:r1] -= left
    if fill_rule == "evenodd":
        return (winding % 2) != 0
    return winding != 0


def _near_segments(
    ux: torch.Tensor,
    uy: torch.Tensor,
    segments: list[tuple[Point, Point]],
    half_width: float,
) -> torch.Tensor:
    near = _empty(ux, uy)
    if half_width <= 0:
        return near
    rows = uy.reshape(-1).contiguous()
    cols = ux.reshape(-1).contiguous()
    limit = half_width * half_width
    for (xa, ya), (xb, yb) in segments:
        r0, r1 = _span(rows, min(ya, yb) - half_width, max(ya, yb) + half_width, include_hi=True)
        c0, c1 = _span(cols, min(xa, xb) - half_width, max(xa, xb) + half_width, include_hi=True)
        if r0 >= r1 or c0 >= c1:
            continue
        sx = ux[:, c0:c1]
        sy = uy[r0:r1]
        dx = xb - xa
        dy = yb - ya
        length_sq = dx * dx + dy * dy
        if length_sq == 0:
            dist_sq = (sx - xa) ** 2 + (sy - ya) ** 2
        else:
            t = torch.clamp(((sx - xa) * dx + (sy - ya) * dy) / length_sq, 0.0, 1.0)
            dist_sq = (sx - (xa + t * dx)) ** 2 + (sy - (ya + t * dy)) ** 2
        near[r0:r1, c0:c1] |= dist_sq <= limit
    return near


def _span(axis: torch.Tensor, lo: float, hi: float, *, include_hi: bool = False) -> tuple[int, int]:
    """Index range of the ascending ``axis`` with ``lo <= v < hi`` (``<= hi`` if ``include_hi``)."""
    start = torch.searchsorted(axis, torch.tensor([lo], dtype=axis.dtype))
    end = torch.searchsorted(axis, torch.tensor([hi], dtype=axis.dtype), right=include_hi)
    return int(start[0]), int(end[0])


def _fill_edges(subpaths: Iterable[SvgSubpath]) -> Iterator[tuple[Point, Point]]:
    # Open subpaths are filled as if closed.
    for sub in subpaths:
        pts = sub.points
        yield from zip(pts, pts[1:] + pts[:1])


def _stroke_segments(subpaths: Iterable[SvgSubpath]) -> Iterator[tuple[Point, Point]]:
    for sub in subpaths:
        pts = sub.points
        yield from zip(pts, pts[1:])
        if sub.closed:
            yield (pts[-1], pts[0])
