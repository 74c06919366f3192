from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from vectorpng_core.render.raster_buffer import Color


@dataclass(frozen=True)
class TransparentBackground:
    def rgba(self) -> Color:
        return (0, 0, 0, 0)

    def token(self) -> str:
        return "transparent"


@dataclass(frozen=True)
class SolidBackground:
    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"background channel must be in [0, 255], got {channel}")

    def rgba(self) -> Color:
        return (self.r, self.g, self.b, 255)

    def token(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"


BackgroundSpec: TypeAlias = TransparentBackground | SolidBackground

TRANSPARENT = TransparentBackground()

PRESET_BACKGROUNDS: dict[str, BackgroundSpec] = {
    "transparent": TRANSPARENT,
    "white": SolidBackground(255, 255, 255),
    "black": SolidBackground(0, 0, 0),
    "gray": SolidBackground(128, 128, 128),
}


def parse_background(token: str) -> BackgroundSpec:
    """Parse ``transparent``, a preset name, or a ``#RRGGBB``/``#RGB`` colour."""
    value = token.strip()
    preset = PRESET_BACKGROUNDS.get(value.lower())
    if preset is not None:
        return preset
    if value.startswith("#"):
        raw = value[1:]
        if len(raw) == 3:
            raw = "".join(ch * 2 for ch in raw)
        if len(raw) == 6:
            try:
                return SolidBackground(int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16))
            except ValueError:
                pass
    raise ValueError(f"background must be `transparent`, a preset name or #RRGGBB, got `{token}`")
