from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Literal, Optional, TypeAlias

from vectorpng_core.render.raster_buffer import RasterBuffer

from .aspect import ResolvedSize, TargetBox, derive_default_target, fit
from .background import TRANSPARENT, BackgroundSpec
from .config import ConverterConfig
from .dimensions import IntrinsicSize, try_resolve_intrinsic_size
from .encoder import encode_png
from .errors import ConversionError, EncodingFailedError, FailureKind
from .naming import output_filename
from .rasterizer import decode_document, rasterize


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionRequest:
    """Everything one conversion needs; nothing is remembered between calls."""

    document: bytes
    target: TargetBox
    background: BackgroundSpec = TRANSPARENT
    source_name: Optional[str] = None

    @property
    def output_name(self) -> str:
        return output_filename(self.source_name)


@dataclass(frozen=True)
class ConversionSuccess:
    data: bytes
    final_size: ResolvedSize
    ok: Literal[True] = True


@dataclass(frozen=True)
class ConversionFailure:
    kind: FailureKind
    detail: str
    ok: Literal[False] = False


ConversionOutcome: TypeAlias = ConversionSuccess | ConversionFailure


def convert(
    document_bytes: bytes,
    target: TargetBox,
    background: BackgroundSpec = TRANSPARENT,
    *,
    config: ConverterConfig | None = None,
) -> ConversionOutcome:
    cfg = config or ConverterConfig()
    try:
        buffer, size = _decode_and_rasterize(document_bytes, target, background, cfg)
    except ConversionError as exc:
        return _failure(exc)
    return _encode(buffer, size, cfg)


def convert_request(request: ConversionRequest, *, config: ConverterConfig | None = None) -> ConversionOutcome:
    return convert(request.document, request.target, request.background, config=config)


async def convert_async(
    document_bytes: bytes,
    target: TargetBox,
    background: BackgroundSpec = TRANSPARENT,
    *,
    config: ConverterConfig | None = None,
) -> ConversionOutcome:
    """Awaitable ``convert``; the only suspension point is decode + rasterize.

    Concurrent calls share nothing. Callers that resubmit after changing a
    setting are responsible for discarding stale outcomes.
    """
    cfg = config or ConverterConfig()
    try:
        buffer, size = await asyncio.to_thread(_decode_and_rasterize, document_bytes, target, background, cfg)
    except ConversionError as exc:
        return _failure(exc)
    return _encode(buffer, size, cfg)


def inspect_document(
    document_bytes: bytes, *, config: ConverterConfig | None = None
) -> tuple[Optional[IntrinsicSize], TargetBox]:
    """Intrinsic size (``None`` when unresolvable) and the default target for it.

    Raises ``RasterizationFailedError`` when the bytes are not an SVG document.
    """
    cfg = config or ConverterConfig()
    intrinsic = try_resolve_intrinsic_size(decode_document(document_bytes))
    proposed = derive_default_target(
        intrinsic,
        max_size=cfg.max_default_size,
        default_width=cfg.default_width,
        default_height=cfg.default_height,
    )
    return intrinsic, proposed


def propose_target(document_bytes: bytes, *, config: ConverterConfig | None = None) -> TargetBox:
    """Default target for a document before the user picks one."""
    return inspect_document(document_bytes, config=config)[1]


def _decode_and_rasterize(
    document_bytes: bytes,
    target: TargetBox,
    background: BackgroundSpec,
    cfg: ConverterConfig,
) -> tuple[RasterBuffer, ResolvedSize]:
    document = decode_document(document_bytes)
    intrinsic = try_resolve_intrinsic_size(document)
    if intrinsic is None and target.maintain_aspect_ratio:
        LOGGER.info("intrinsic size unresolvable; using target %dx%d verbatim", target.width, target.height)
    size = fit(intrinsic, target)
    LOGGER.debug("intrinsic=%s target=%s resolved=%s", intrinsic, target, size)
    return rasterize(document, size, background, supersample=cfg.supersample), size


def _encode(buffer: RasterBuffer, size: ResolvedSize, cfg: ConverterConfig) -> ConversionOutcome:
    try:
        data = encode_png(buffer, compress_level=cfg.png_compress_level)
    except EncodingFailedError as exc:
        return _failure(exc)
    finally:
        buffer.release()
    return ConversionSuccess(data=data, final_size=size)


def _failure(exc: ConversionError) -> ConversionFailure:
    LOGGER.warning("conversion failed kind=%s detail=%s", exc.kind, exc)
    return ConversionFailure(kind=exc.kind, detail=str(exc))
