"""Ambient theme detection and the fixed strip palettes."""

from __future__ import annotations

import numpy as np

from .models import Palette, Theme

THRESHOLD = 128
DARK_RATIO = 0.5

# The strip contrasts with what it sits on: dark frames get a light strip.
PALETTES: dict[Theme, Palette] = {
    Theme.DARK: Palette(
        foreground=(60, 63, 65, 255),
        foreground_shading=(200, 200, 200, 255),
        background=(236, 236, 236, 255),
    ),
    Theme.LIGHT: Palette(
        foreground=(255, 255, 255, 255),
        foreground_shading=(130, 130, 130, 255),
        background=(60, 63, 65, 255),
    ),
}


def get_palette(theme: Theme) -> Palette:
    return PALETTES[theme]


def to_gray(region: np.ndarray) -> np.ndarray:
    """BT.601 luma of an RGBA (or RGB) region, as uint8."""
    if region.ndim == 2:
        return region.astype(np.uint8, copy=False)
    rgb = region[..., :3].astype(np.uint32)
    luma = (rgb[..., 0] * 299 + rgb[..., 1] * 587 + rgb[..., 2] * 114 + 500) // 1000
    return luma.astype(np.uint8)


def dark_fraction(region: np.ndarray) -> float:
    gray = to_gray(region)
    if gray.size == 0:
        return 0.0
    binary = np.where(gray > THRESHOLD, 255, 0)
    return float(np.count_nonzero(binary < THRESHOLD)) / float(gray.size)


def classify_theme(region: np.ndarray) -> Theme:
    return Theme.DARK if dark_fraction(region) > DARK_RATIO else Theme.LIGHT
