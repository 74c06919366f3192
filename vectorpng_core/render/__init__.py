from .raster_buffer import Color, RasterBuffer
from .svg import SvgDocument, SvgEllipse, SvgParseError, SvgPath, SvgRect, SvgShape, SvgSubpath

__all__ = [
    "Color",
    "RasterBuffer",
    "SvgDocument",
    "SvgEllipse",
    "SvgParseError",
    "SvgPath",
    "SvgRect",
    "SvgShape",
    "SvgSubpath",
]
