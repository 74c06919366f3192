from __future__ import annotations

from typing import Literal


FailureKind = Literal["UnresolvableDimensions", "RasterizationFailed", "EncodingFailed"]


class ConversionError(RuntimeError):
    """Base class for pipeline stage failures; ``kind`` names the stage."""

    kind: FailureKind = "RasterizationFailed"


class UnresolvableDimensionsError(ConversionError):
    kind: FailureKind = "UnresolvableDimensions"


class RasterizationFailedError(ConversionError):
    kind: FailureKind = "RasterizationFailed"


class EncodingFailedError(ConversionError):
    kind: FailureKind = "EncodingFailed"
