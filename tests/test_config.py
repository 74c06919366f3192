from __future__ import annotations

import os
import unittest
from unittest import mock

from vectorpng_core.core.config import ConverterConfig


class ConverterConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = ConverterConfig()
        self.assertEqual(cfg.max_default_size, 2048)
        self.assertEqual((cfg.default_width, cfg.default_height), (512, 512))
        self.assertEqual(cfg.supersample, 2)
        self.assertEqual(cfg.png_compress_level, 6)

    def test_from_env_reads_overrides(self) -> None:
        env = {
            "VECTORPNG_MAX_DEFAULT_SIZE": "1024",
            "VECTORPNG_SUPERSAMPLE": "4",
            "VECTORPNG_PNG_COMPRESS_LEVEL": "9",
        }
        with mock.patch.dict(os.environ, env):
            cfg = ConverterConfig.from_env()
        self.assertEqual((cfg.max_default_size, cfg.supersample, cfg.png_compress_level), (1024, 4, 9))

    def test_from_env_ignores_blank_values(self) -> None:
        with mock.patch.dict(os.environ, {"VECTORPNG_SUPERSAMPLE": "  "}):
            self.assertEqual(ConverterConfig.from_env().supersample, 2)

    def test_from_env_rejects_garbage(self) -> None:
        with mock.patch.dict(os.environ, {"VECTORPNG_SUPERSAMPLE": "lots"}):
            with self.assertRaises(ValueError):
                ConverterConfig.from_env()
        with mock.patch.dict(os.environ, {"VECTORPNG_PNG_COMPRESS_LEVEL": "12"}):
            with self.assertRaises(ValueError):
                ConverterConfig.from_env()

    def test_validates_ranges(self) -> None:
        for kwargs in ({"supersample": 0}, {"supersample": 9}, {"max_default_size": 5000}, {"default_width": 0}):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValueError):
                    ConverterConfig(**kwargs)


if __name__ == "__main__":
    unittest.main()
