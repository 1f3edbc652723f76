import sys
import unittest
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from framestrip_renderer.models import Theme
from framestrip_renderer.themes import PALETTES, classify_theme, dark_fraction, get_palette


def _region_with_dark_fraction(fraction: float, rows: int = 10, cols: int = 10) -> np.ndarray:
    region = np.full((rows, cols, 4), 255, dtype=np.uint8)
    dark = int(round(fraction * rows * cols))
    flat = region.reshape(-1, 4)
    flat[:dark, :3] = 0
    return region


class ThemeClassificationTests(unittest.TestCase):
    def test_below_half_is_light(self):
        region = _region_with_dark_fraction(0.4)
        self.assertAlmostEqual(dark_fraction(region), 0.4)
        self.assertEqual(classify_theme(region), Theme.LIGHT)

    def test_exactly_half_is_light(self):
        region = _region_with_dark_fraction(0.5)
        self.assertAlmostEqual(dark_fraction(region), 0.5)
        self.assertEqual(classify_theme(region), Theme.LIGHT)

    def test_above_half_is_dark(self):
        region = _region_with_dark_fraction(0.6)
        self.assertAlmostEqual(dark_fraction(region), 0.6)
        self.assertEqual(classify_theme(region), Theme.DARK)

    def test_midpoint_gray_counts_as_dark(self):
        region = np.full((4, 4, 4), 128, dtype=np.uint8)
        self.assertEqual(dark_fraction(region), 1.0)
        region[..., :3] = 129
        self.assertEqual(dark_fraction(region), 0.0)

    def test_empty_region_is_light(self):
        region = np.zeros((0, 8, 4), dtype=np.uint8)
        self.assertEqual(dark_fraction(region), 0.0)
        self.assertEqual(classify_theme(region), Theme.LIGHT)


class PaletteTests(unittest.TestCase):
    def test_every_theme_has_palette(self):
        for theme in Theme:
            self.assertIs(get_palette(theme), PALETTES[theme])

    def test_strip_contrasts_with_ambient(self):
        dark = get_palette(Theme.DARK)
        light = get_palette(Theme.LIGHT)
        self.assertEqual(dark.background, (236, 236, 236, 255))
        self.assertEqual(light.background, (60, 63, 65, 255))
        self.assertEqual(light.foreground, (255, 255, 255, 255))


if __name__ == "__main__":
    unittest.main()
