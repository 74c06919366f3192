from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional

from .dimensions import IntrinsicSize


MAX_TARGET_SIZE = 4096
DEFAULT_MAX_SIZE = 2048
DEFAULT_TARGET_WIDTH = 512
DEFAULT_TARGET_HEIGHT = 512


@dataclass(frozen=True)
class TargetBox:
    width: int
    height: int
    maintain_aspect_ratio: bool = True

    def __post_init__(self) -> None:
        for name, value in (("width", self.width), ("height", self.height)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"target {name} must be an integer, got {value!r}")
            if not 1 <= value <= MAX_TARGET_SIZE:
                raise ValueError(f"target {name} must be in [1, {MAX_TARGET_SIZE}], got {value}")


@dataclass(frozen=True)
class ResolvedSize:
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("resolved width/height must be > 0")

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)


def round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def scale_to_fit(width: float, height: float, box_width: float, box_height: float) -> tuple[float, float]:
    """Largest ``width:height`` box that fits inside ``box_width x box_height``.

    Contain policy, kept in floating point; callers round once at the end.
    """
    if width <= 0 or height <= 0 or box_width <= 0 or box_height <= 0:
        raise ValueError("scale_to_fit dimensions must be > 0")
    aspect_ratio = width / height
    if box_width / box_height > aspect_ratio:
        return (box_height * aspect_ratio, float(box_height))
    return (float(box_width), box_width / aspect_ratio)


def fit(intrinsic: Optional[IntrinsicSize], target: TargetBox) -> ResolvedSize:
    if not target.maintain_aspect_ratio or intrinsic is None:
        return ResolvedSize(width=target.width, height=target.height)
    width, height = scale_to_fit(intrinsic.width, intrinsic.height, target.width, target.height)
    return _to_pixels(width, height)


def derive_default_target(
    intrinsic: Optional[IntrinsicSize],
    *,
    max_size: int = DEFAULT_MAX_SIZE,
    default_width: int = DEFAULT_TARGET_WIDTH,
    default_height: int = DEFAULT_TARGET_HEIGHT,
) -> TargetBox:
    """Target proposed before conversion: the document's own size, bounded by ``max_size``."""
    if intrinsic is None:
        return TargetBox(width=default_width, height=default_height, maintain_aspect_ratio=True)
    width, height = intrinsic.width, intrinsic.height
    if width > max_size or height > max_size:
        width, height = scale_to_fit(width, height, max_size, max_size)
    size = _to_pixels(width, height)
    return TargetBox(
        width=min(size.width, MAX_TARGET_SIZE),
        height=min(size.height, MAX_TARGET_SIZE),
        maintain_aspect_ratio=True,
    )


def _to_pixels(width: float, height: float) -> ResolvedSize:
    return ResolvedSize(
        width=max(1, round_half_away_from_zero(width)),
        height=max(1, round_half_away_from_zero(height)),
    )
