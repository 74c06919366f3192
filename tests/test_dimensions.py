from __future__ import annotations

import unittest

from vectorpng_core.core.dimensions import (
    IntrinsicSize,
    resolve_intrinsic_size,
    try_resolve_intrinsic_size,
)
from vectorpng_core.core.errors import UnresolvableDimensionsError
from vectorpng_core.render.svg import SvgDocument


def _doc(attrs: str) -> SvgDocument:
    return SvgDocument.from_markup(f'<svg xmlns="http://www.w3.org/2000/svg" {attrs}/>')


class DimensionResolverTests(unittest.TestCase):
    def test_viewbox_width_height_are_returned_exactly(self) -> None:
        for w, h in ((1.0, 1.0), (200.0, 100.0), (0.5, 4096.25), (1234.5678, 8.75)):
            with self.subTest(w=w, h=h):
                size = resolve_intrinsic_size(_doc(f'viewBox="0 0 {w!r} {h!r}"'))
                self.assertEqual(size, IntrinsicSize(width=w, height=h))

    def test_viewbox_wins_over_width_height(self) -> None:
        size = resolve_intrinsic_size(_doc('width="10" height="10" viewBox="-5 -5 40 20"'))
        self.assertEqual((size.width, size.height), (40.0, 20.0))

    def test_viewbox_accepts_comma_separators(self) -> None:
        size = resolve_intrinsic_size(_doc('viewBox="0,0,30,15"'))
        self.assertEqual((size.width, size.height), (30.0, 15.0))

    def test_width_height_attributes(self) -> None:
        size = resolve_intrinsic_size(_doc('width="300" height="150.5"'))
        self.assertEqual((size.width, size.height), (300.0, 150.5))
        size = resolve_intrinsic_size(_doc('width="64px" height="32px"'))
        self.assertEqual((size.width, size.height), (64.0, 32.0))

    def test_ill_formed_viewbox_fails_without_fallback(self) -> None:
        for vb in ("0 0 10", "0 0 10 10 10", "0 0 ten 10", "0 0 -10 10", "0 0 10 0", "", "0 0 inf 10"):
            with self.subTest(vb=vb):
                with self.assertRaises(UnresolvableDimensionsError):
                    resolve_intrinsic_size(_doc(f'width="10" height="10" viewBox="{vb}"'))

    def test_missing_or_unusable_width_height_fail(self) -> None:
        for attrs in ("", 'width="10"', 'height="10"', 'width="0" height="10"', 'width="100%" height="100%"',
                      'width="10mm" height="10mm"', 'width="-4" height="4"', 'width="abc" height="4"'):
            with self.subTest(attrs=attrs):
                with self.assertRaises(UnresolvableDimensionsError):
                    resolve_intrinsic_size(_doc(attrs))

    def test_failure_kind(self) -> None:
        with self.assertRaises(UnresolvableDimensionsError) as ctx:
            resolve_intrinsic_size(_doc(""))
        self.assertEqual(ctx.exception.kind, "UnresolvableDimensions")

    def test_try_resolve_returns_none(self) -> None:
        self.assertIsNone(try_resolve_intrinsic_size(_doc("")))
        self.assertEqual(try_resolve_intrinsic_size(_doc('viewBox="0 0 2 1"')).aspect_ratio, 2.0)


if __name__ == "__main__":
    unittest.main()
