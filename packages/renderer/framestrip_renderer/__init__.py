"""Renderer package for the theme-adaptive frame status strip."""

from .compositor import BarCompositor
from .icons import ClockIconRenderer, IconRenderer, SignalIconRenderer, format_clock
from .models import IconSlot, Palette, Theme
from .pixels import PATTERN_NAMES, build_test_pattern, normalize_frame, vconcat
from .themes import PALETTES, classify_theme, dark_fraction, get_palette

__all__ = [
    "BarCompositor",
    "ClockIconRenderer",
    "IconRenderer",
    "IconSlot",
    "PALETTES",
    "PATTERN_NAMES",
    "Palette",
    "SignalIconRenderer",
    "Theme",
    "build_test_pattern",
    "classify_theme",
    "dark_fraction",
    "format_clock",
    "get_palette",
    "normalize_frame",
    "vconcat",
]
