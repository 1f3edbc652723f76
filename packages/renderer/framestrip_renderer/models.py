"""Typed renderer models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

Color = tuple[int, int, int, int]


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class Palette:
    foreground: Color
    foreground_shading: Color
    background: Color


@dataclass(frozen=True)
class IconSlot:
    x: int
    y: int
    width: int
    height: int
    renderer: Any = None
