from __future__ import annotations

from dataclasses import dataclass
import os

from .aspect import DEFAULT_MAX_SIZE, DEFAULT_TARGET_HEIGHT, DEFAULT_TARGET_WIDTH, MAX_TARGET_SIZE


@dataclass(frozen=True)
class ConverterConfig:
    max_default_size: int = DEFAULT_MAX_SIZE
    default_width: int = DEFAULT_TARGET_WIDTH
    default_height: int = DEFAULT_TARGET_HEIGHT
    supersample: int = 2
    png_compress_level: int = 6

    def __post_init__(self) -> None:
        for name in ("max_default_size", "default_width", "default_height"):
            value = getattr(self, name)
            if not 1 <= value <= MAX_TARGET_SIZE:
                raise ValueError(f"{name} must be in [1, {MAX_TARGET_SIZE}], got {value}")
        if not 1 <= self.supersample <= 8:
            raise ValueError(f"supersample must be in [1, 8], got {self.supersample}")
        if not 0 <= self.png_compress_level <= 9:
            raise ValueError(f"png_compress_level must be in [0, 9], got {self.png_compress_level}")

    @classmethod
    def from_env(
        cls,
        *,
        max_default_size_env_var: str = "VECTORPNG_MAX_DEFAULT_SIZE",
        supersample_env_var: str = "VECTORPNG_SUPERSAMPLE",
        compress_level_env_var: str = "VECTORPNG_PNG_COMPRESS_LEVEL",
    ) -> "ConverterConfig":
        defaults = cls()
        return cls(
            max_default_size=_env_int(max_default_size_env_var, defaults.max_default_size),
            supersample=_env_int(supersample_env_var, defaults.supersample),
            png_compress_level=_env_int(compress_level_env_var, defaults.png_compress_level),
        )


def _env_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var, "").strip()
    if raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{env_var} must be an integer, got `{raw}`") from None
