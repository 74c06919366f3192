from vectorpng_core.core import (
    ConversionFailure,
    ConversionOutcome,
    ConversionRequest,
    ConversionSuccess,
    ConverterConfig,
    IntrinsicSize,
    ResolvedSize,
    SolidBackground,
    TRANSPARENT,
    TargetBox,
    TransparentBackground,
    convert,
    convert_async,
    convert_request,
    output_filename,
    parse_background,
    propose_target,
)

__all__ = [
    "ConversionFailure",
    "ConversionOutcome",
    "ConversionRequest",
    "ConversionSuccess",
    "ConverterConfig",
    "IntrinsicSize",
    "ResolvedSize",
    "SolidBackground",
    "TRANSPARENT",
    "TargetBox",
    "TransparentBackground",
    "convert",
    "convert_async",
    "convert_request",
    "output_filename",
    "parse_background",
    "propose_target",
]
