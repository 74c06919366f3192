from .aspect import (
    DEFAULT_MAX_SIZE,
    MAX_TARGET_SIZE,
    ResolvedSize,
    TargetBox,
    derive_default_target,
    fit,
    round_half_away_from_zero,
    scale_to_fit,
)
from .background import (
    PRESET_BACKGROUNDS,
    TRANSPARENT,
    BackgroundSpec,
    SolidBackground,
    TransparentBackground,
    parse_background,
)
from .config import ConverterConfig
from .dimensions import IntrinsicSize, resolve_intrinsic_size, try_resolve_intrinsic_size
from .encoder import encode_png
from .errors import (
    ConversionError,
    EncodingFailedError,
    FailureKind,
    RasterizationFailedError,
    UnresolvableDimensionsError,
)
from .naming import DEFAULT_OUTPUT_NAME, is_svg_source, output_filename
from .pipeline import (
    ConversionFailure,
    ConversionOutcome,
    ConversionRequest,
    ConversionSuccess,
    convert,
    convert_async,
    convert_request,
    inspect_document,
    propose_target,
)
from .rasterizer import decode_document, rasterize

__all__ = [
    "BackgroundSpec",
    "ConversionError",
    "ConversionFailure",
    "ConversionOutcome",
    "ConversionRequest",
    "ConversionSuccess",
    "ConverterConfig",
    "DEFAULT_MAX_SIZE",
    "DEFAULT_OUTPUT_NAME",
    "EncodingFailedError",
    "FailureKind",
    "IntrinsicSize",
    "MAX_TARGET_SIZE",
    "PRESET_BACKGROUNDS",
    "RasterizationFailedError",
    "ResolvedSize",
    "SolidBackground",
    "TRANSPARENT",
    "TargetBox",
    "TransparentBackground",
    "UnresolvableDimensionsError",
    "convert",
    "convert_async",
    "convert_request",
    "decode_document",
    "derive_default_target",
    "encode_png",
    "fit",
    "inspect_document",
    "is_svg_source",
    "output_filename",
    "parse_background",
    "propose_target",
    "rasterize",
    "resolve_intrinsic_size",
    "round_half_away_from_zero",
    "scale_to_fit",
    "try_resolve_intrinsic_size",
]
