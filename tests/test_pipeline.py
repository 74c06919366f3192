from __future__ import annotations

import asyncio
import io
import unittest
from unittest import mock

from PIL import Image

from vectorpng_core.core import pipeline
from vectorpng_core.core.aspect import ResolvedSize, TargetBox
from vectorpng_core.core.background import TRANSPARENT, SolidBackground
from vectorpng_core.core.config import ConverterConfig
from vectorpng_core.core.dimensions import IntrinsicSize
from vectorpng_core.core.errors import EncodingFailedError, RasterizationFailedError
from vectorpng_core.core.pipeline import (
    ConversionFailure,
    ConversionRequest,
    ConversionSuccess,
    convert,
    convert_async,
    convert_request,
    inspect_document,
    propose_target,
)


WIDE = b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 100"><rect width="200" height="100" fill="#f00"/></svg>'
UNSIZED = b'<svg xmlns="http://www.w3.org/2000/svg"><rect width="10" height="10"/></svg>'
EMPTY = b'<svg xmlns="http://www.w3.org/2000/svg" width="8" height="4"/>'
MALFORMED = b'<svg xmlns="http://www.w3.org/2000/svg" width="8" height="4"><rect width="1" height="1">'


def _decode(outcome: ConversionSuccess) -> Image.Image:
    return Image.open(io.BytesIO(outcome.data))


class ConvertTests(unittest.TestCase):
    def test_locked_conversion_fits_inside_target(self) -> None:
        outcome = convert(WIDE, TargetBox(512, 512, maintain_aspect_ratio=True))
        self.assertIsInstance(outcome, ConversionSuccess)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.final_size, ResolvedSize(512, 256))
        image = _decode(outcome)
        self.assertEqual(image.size, (512, 256))
        self.assertEqual(image.getpixel((100, 100)), (255, 0, 0, 255))

    def test_unlocked_conversion_uses_target_verbatim(self) -> None:
        outcome = convert(WIDE, TargetBox(300, 400, maintain_aspect_ratio=False))
        self.assertEqual(outcome.final_size, ResolvedSize(300, 400))
        self.assertEqual(_decode(outcome).size, (300, 400))

    def test_unresolvable_dimensions_fall_back_to_target(self) -> None:
        with self.assertLogs("vectorpng_core.core.pipeline", level="INFO") as logs:
            outcome = convert(UNSIZED, TargetBox(40, 30, maintain_aspect_ratio=True))
        self.assertIsInstance(outcome, ConversionSuccess)
        self.assertEqual(outcome.final_size, ResolvedSize(40, 30))
        self.assertTrue(any("unresolvable" in line for line in logs.output))

    def test_white_background_round_trip(self) -> None:
        outcome = convert(EMPTY, TargetBox(8, 4), SolidBackground(255, 255, 255))
        image = _decode(outcome)
        self.assertEqual(image.size, (8, 4))
        self.assertEqual(image.mode, "RGBA")
        self.assertEqual(image.getextrema(), ((255, 255), (255, 255), (255, 255), (255, 255)))

    def test_transparent_background_is_never_white(self) -> None:
        outcome = convert(EMPTY, TargetBox(8, 4), TRANSPARENT)
        self.assertEqual(_decode(outcome).getextrema()[3], (0, 0))

    def test_malformed_markup_is_a_rasterization_failure(self) -> None:
        with self.assertLogs("vectorpng_core.core.pipeline", level="WARNING"):
            outcome = convert(MALFORMED, TargetBox(8, 4))
        self.assertIsInstance(outcome, ConversionFailure)
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.kind, "RasterizationFailed")
        self.assertIn("malformed", outcome.detail)

    def test_deeply_nested_document_converts(self) -> None:
        depth = 3000
        data = (
            b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 8 8">'
            + b"<g>" * depth
            + b'<rect width="8" height="8" fill="#00f"/>'
            + b"</g>" * depth
            + b"</svg>"
        )
        outcome = convert(data, TargetBox(8, 8))
        self.assertIsInstance(outcome, ConversionSuccess)
        self.assertEqual(_decode(outcome).getpixel((4, 4)), (0, 0, 255, 255))

    def test_non_svg_input_is_a_rasterization_failure(self) -> None:
        for data in (b"<html/>", b"\x89PNG\r\n\x1a\n", b""):
            with self.subTest(data=data):
                outcome = convert(data, TargetBox(8, 4))
                self.assertIsInstance(outcome, ConversionFailure)
                self.assertEqual(outcome.kind, "RasterizationFailed")

    def test_encoding_failure_is_reported_and_buffer_released(self) -> None:
        captured = []
        real_rasterize = pipeline.rasterize

        def spy(*args, **kwargs):
            buf = real_rasterize(*args, **kwargs)
            captured.append(buf)
            return buf

        with mock.patch.object(pipeline, "rasterize", side_effect=spy), mock.patch.object(
            pipeline, "encode_png", side_effect=EncodingFailedError("boom")
        ):
            outcome = convert(EMPTY, TargetBox(8, 4))
        self.assertEqual(outcome, ConversionFailure(kind="EncodingFailed", detail="boom"))
        self.assertEqual(len(captured), 1)
        self.assertTrue(captured[0].released)

    def test_config_changes_supersampling_not_size(self) -> None:
        outcome = convert(WIDE, TargetBox(64, 64), config=ConverterConfig(supersample=1, png_compress_level=0))
        self.assertEqual(outcome.final_size, ResolvedSize(64, 32))

    def test_request_object(self) -> None:
        request = ConversionRequest(
            document=WIDE,
            target=TargetBox(100, 100),
            background=SolidBackground(0, 0, 0),
            source_name="banner.svg",
        )
        self.assertEqual(request.output_name, "banner.png")
        outcome = convert_request(request)
        self.assertEqual(outcome.final_size, ResolvedSize(100, 50))


class ConvertAsyncTests(unittest.TestCase):
    def test_async_matches_sync(self) -> None:
        outcome = asyncio.run(convert_async(WIDE, TargetBox(512, 512)))
        self.assertEqual(outcome, convert(WIDE, TargetBox(512, 512)))

    def test_concurrent_calls_do_not_interfere(self) -> None:
        async def run_both():
            return await asyncio.gather(
                convert_async(WIDE, TargetBox(64, 64)),
                convert_async(WIDE, TargetBox(10, 90, maintain_aspect_ratio=False)),
                convert_async(MALFORMED, TargetBox(8, 8)),
            )

        first, second, third = asyncio.run(run_both())
        self.assertEqual(first.final_size, ResolvedSize(64, 32))
        self.assertEqual(second.final_size, ResolvedSize(10, 90))
        self.assertEqual(third.kind, "RasterizationFailed")


class ProposeTargetTests(unittest.TestCase):
    def test_oversized_document(self) -> None:
        doc = b'<svg xmlns="http://www.w3.org/2000/svg" width="4000" height="1000"/>'
        self.assertEqual(propose_target(doc), TargetBox(2048, 512, maintain_aspect_ratio=True))

    def test_unsized_document_uses_configured_default(self) -> None:
        self.assertEqual(propose_target(UNSIZED), TargetBox(512, 512))
        cfg = ConverterConfig(default_width=100, default_height=80)
        self.assertEqual(propose_target(UNSIZED, config=cfg), TargetBox(100, 80))

    def test_malformed_document_raises(self) -> None:
        with self.assertRaises(RasterizationFailedError):
            propose_target(MALFORMED)
        with self.assertRaises(RasterizationFailedError):
            inspect_document(MALFORMED)

    def test_inspect_reports_intrinsic_size_with_proposal(self) -> None:
        doc = b'<svg xmlns="http://www.w3.org/2000/svg" width="4000" height="1000"/>'
        self.assertEqual(inspect_document(doc), (IntrinsicSize(4000, 1000), TargetBox(2048, 512)))
        cfg = ConverterConfig(max_default_size=1000)
        self.assertEqual(inspect_document(doc, config=cfg)[1], TargetBox(1000, 250))
        self.assertEqual(inspect_document(UNSIZED), (None, TargetBox(512, 512)))


if __name__ == "__main__":
    unittest.main()
