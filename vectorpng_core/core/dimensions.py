from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional

from vectorpng_core.render.svg import SvgDocument

from .errors import UnresolvableDimensionsError


@dataclass(frozen=True)
class IntrinsicSize:
    width: float
    height: float

    def __post_init__(self) -> None:
        if not (self.width > 0 and self.height > 0):
            raise ValueError("intrinsic width/height must be > 0")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def resolve_intrinsic_size(document: SvgDocument) -> IntrinsicSize:
    """Size the document declares for itself.

    A ``viewBox`` wins when present and is never second-guessed: an
    ill-formed one fails rather than falling back to ``width``/``height``.
    """
    if document.viewbox_attr is not None:
        tokens = document.viewbox_attr.replace(",", " ").split()
        if len(tokens) != 4:
            raise UnresolvableDimensionsError(
                f"viewBox must have 4 numbers, got {len(tokens)}: `{document.viewbox_attr}`"
            )
        values = [_number(token, "viewBox") for token in tokens]
        width, height = values[2], values[3]
        if width <= 0 or height <= 0:
            raise UnresolvableDimensionsError(f"viewBox width/height must be > 0: `{document.viewbox_attr}`")
        return IntrinsicSize(width=width, height=height)

    width = _attribute_length(document.width_attr, "width")
    height = _attribute_length(document.height_attr, "height")
    if width <= 0 or height <= 0:
        raise UnresolvableDimensionsError(
            f"document declares no usable size (width={document.width_attr!r}, height={document.height_attr!r})"
        )
    return IntrinsicSize(width=width, height=height)


def try_resolve_intrinsic_size(document: SvgDocument) -> Optional[IntrinsicSize]:
    try:
        return resolve_intrinsic_size(document)
    except UnresolvableDimensionsError:
        return None


def _attribute_length(raw: Optional[str], name: str) -> float:
    if raw is None:
        return 0.0
    value = raw.strip()
    if value.endswith("%"):
        raise UnresolvableDimensionsError(f"percentage {name} is not supported: `{raw}`")
    if value.endswith("px"):
        value = value[:-2].strip()
    return _number(value, name)


def _number(token: str, name: str) -> float:
    try:
        value = float(token)
    except ValueError:
        raise UnresolvableDimensionsError(f"{name} token is not a number: `{token}`") from None
    if not math.isfinite(value):
        raise UnresolvableDimensionsError(f"{name} token is not finite: `{token}`")
    return value
