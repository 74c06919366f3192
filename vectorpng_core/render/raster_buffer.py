from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import torch


Color = tuple[int, int, int, int]


@dataclass
class RasterBuffer:
    """Owned RGBA8 pixel buffer, row-major with a top-left origin.

    Pixels are stored as straight (non-premultiplied) alpha in a
    ``(height, width, 4)`` uint8 tensor. The buffer is single-use: once
    released, any further access raises ``RuntimeError``.
    """

    width: int
    height: int
    background: Color = (0, 0, 0, 0)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("buffer dimensions must be > 0")
        self._pixels: torch.Tensor | None = torch.zeros((self.height, self.width, 4), dtype=torch.uint8)
        self.clear(self.background)

    @property
    def pixels(self) -> torch.Tensor:
        if self._pixels is None:
            raise RuntimeError("raster buffer has been released")
        return self._pixels

    @property
    def released(self) -> bool:
        return self._pixels is None

    def clear(self, color: Color | None = None) -> None:
        if color is None:
            color = self.background
        self.pixels[:, :] = torch.tensor(color, dtype=torch.uint8).view(1, 1, 4)

    def composite(self, coverage: torch.Tensor, *, x: int, y: int, color: Color) -> None:
        """Blend ``color`` over the buffer, weighted by a ``(h, w)`` coverage patch in [0, 1].

        Source-over with straight alpha. Pixels with zero coverage are left
        untouched bit for bit.
        """
        pixels = self.pixels
        h, w = coverage.shape
        x0 = max(0, x)
        y0 = max(0, y)
        x1 = min(self.width, x + w)
        y1 = min(self.height, y + h)
        if x1 <= x0 or y1 <= y0 or color[3] <= 0:
            return
        cov = coverage[y0 - y : y1 - y, x0 - x : x1 - x].to(torch.float32)
        src_alpha = cov * (color[3] / 255.0)
        touched = src_alpha > 0
        if not bool(touched.any()):
            return

        patch = pixels[y0:y1, x0:x1]
        dst_rgb = patch[:, :, :3].to(torch.float32)
        dst_alpha = patch[:, :, 3].to(torch.float32) / 255.0
        src_rgb = torch.tensor(color[:3], dtype=torch.float32).view(1, 1, 3)

        out_alpha = src_alpha + dst_alpha * (1.0 - src_alpha)
        out_rgb_num = src_rgb * src_alpha.unsqueeze(-1) + dst_rgb * (dst_alpha * (1.0 - src_alpha)).unsqueeze(-1)
        safe = torch.where(out_alpha > 1e-6, out_alpha, torch.ones_like(out_alpha))
        out_rgb = torch.clamp(torch.round(out_rgb_num / safe.unsqueeze(-1)), 0, 255).to(torch.uint8)
        out_a = torch.clamp(torch.round(out_alpha * 255.0), 0, 255).to(torch.uint8)

        mask = touched.unsqueeze(-1)
        patch[:, :, :3] = torch.where(mask, out_rgb, patch[:, :, :3])
        patch[:, :, 3] = torch.where(touched, out_a, patch[:, :, 3])

    def to_numpy(self) -> np.ndarray:
        return np.ascontiguousarray(self.pixels.cpu().numpy())

    def release(self) -> None:
        self._pixels = None
