from __future__ import annotations

import io

from PIL import Image

from vectorpng_core.render.raster_buffer import RasterBuffer

from .errors import EncodingFailedError


def encode_png(buffer: RasterBuffer, *, compress_level: int = 6) -> bytes:
    """Serialize ``buffer`` as an 8-bit RGBA PNG and release it.

    Lossless: alpha is written exactly as stored. Output carries no
    timestamps or text chunks, so equal buffers encode to equal bytes.
    """
    try:
        image = Image.fromarray(buffer.to_numpy())
        if image.mode != "RGBA":
            raise ValueError(f"expected an RGBA buffer, got mode {image.mode}")
        out = io.BytesIO()
        image.save(out, format="PNG", compress_level=compress_level)
        return out.getvalue()
    except (OSError, ValueError, TypeError, RuntimeError) as exc:
        raise EncodingFailedError(f"failed to encode PNG: {exc}") from exc
    finally:
        buffer.release()
