from __future__ import annotations

import unittest

from vectorpng_core.core.naming import is_svg_source, output_filename


class OutputNamingTests(unittest.TestCase):
    def test_replaces_trailing_svg_suffix(self) -> None:
        self.assertEqual(output_filename("logo.svg"), "logo.png")
        self.assertEqual(output_filename("Icon.SVG"), "Icon.png")
        self.assertEqual(output_filename("my.svg.backup.svg"), "my.svg.backup.png")

    def test_only_the_trailing_suffix_is_touched(self) -> None:
        self.assertEqual(output_filename("a.svgz"), "a.svgz.png")
        self.assertEqual(output_filename("drawing"), "drawing.png")

    def test_defaults_when_no_name(self) -> None:
        self.assertEqual(output_filename(None), "converted.png")
        self.assertEqual(output_filename(""), "converted.png")
        self.assertEqual(output_filename(".svg"), "converted.png")

    def test_svg_source_detection(self) -> None:
        self.assertTrue(is_svg_source("a.svg"))
        self.assertTrue(is_svg_source("A.SVG"))
        self.assertTrue(is_svg_source("blob", "image/svg+xml; charset=utf-8"))
        self.assertFalse(is_svg_source("a.png"))
        self.assertFalse(is_svg_source(None))
        self.assertFalse(is_svg_source("a.png", "image/png"))


if __name__ == "__main__":
    unittest.main()
