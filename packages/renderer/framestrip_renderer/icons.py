"""Pluggable status strip icons."""

from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from datetime import datetime, tzinfo
from functools import lru_cache
from typing import Callable

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .models import Palette
from .pixels import region_canvas

logger = logging.getLogger("framestrip.renderer.icons")

TEXT_MARGIN_PX = 2
CLOCK_FORMAT = "%H:%M"


class IconRenderer(ABC):
    """One fixed-height icon in the status strip.

    ``check_refresh`` reports staleness without changing committed state;
    ``draw`` renders into ``region`` with palette colors only and returns the
    horizontal width it used. A renderer that gets no slot or draws zero
    width is not polled again until some other change rebuilds the strip.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    def tick(self) -> None:
        """Advance per-frame state. Called once per compositor refresh."""

    @abstractmethod
    def check_refresh(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def draw(self, region: np.ndarray, palette: Palette) -> int:
        raise NotImplementedError


class SignalIconRenderer(IconRenderer):
    """Simulated 0..max_level-1 signal meter drawn as vertical bars."""

    def __init__(self, icon_width: int = 16, max_level: int = 4, step: float = 0.1) -> None:
        if icon_width < 1:
            raise ValueError("icon_width must be positive")
        if max_level < 1:
            raise ValueError("max_level must be positive")
        if step <= 0:
            raise ValueError("step must be positive")
        self.icon_width = icon_width
        self.max_level = max_level
        self.step = step
        self._ticks = 0
        self._level = 0

    @property
    def level(self) -> int:
        return self._level

    @property
    def ticks(self) -> int:
        return self._ticks

    def tick(self) -> None:
        self._ticks += 1

    def peek_level(self) -> int:
        # Absorb float error so a whole number of steps floors to that number.
        accumulated = round(self._ticks * self.step, 9)
        return math.floor(accumulated) % self.max_level

    def check_refresh(self) -> bool:
        return self.peek_level() != self._level

    def draw(self, region: np.ndarray, palette: Palette) -> int:
        level = self.peek_level()
        height = region.shape[0]
        width = min(self.icon_width, region.shape[1])
        spacing = width // self.max_level

        with region_canvas(region[:, :width]) as image:
            draw = ImageDraw.Draw(image)
            for i in range(self.max_level):
                x = 1 + i * spacing
                top = (height - 4) // self.max_level * (self.max_level - i) - 1
                color = palette.foreground if i < level else palette.foreground_shading
                draw.line([(x, max(top, 0)), (x, height - 1)], fill=color, width=2)

        self._level = level
        return width


def format_clock(timestamp: float, tz: tzinfo | None = None) -> str:
    """Zero-padded 24h ``HH:MM``; ``tz=None`` means the local zone."""
    return datetime.fromtimestamp(timestamp, tz).strftime(CLOCK_FORMAT)


@lru_cache(maxsize=8)
def _load_font(path: str | None, size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    if path is None:
        return ImageFont.load_default(size=size_px)
    return ImageFont.truetype(path, size_px)


class ClockIconRenderer(IconRenderer):
    """Wall clock rendered as ``HH:MM`` text, refreshed once per minute."""

    def __init__(
        self,
        dpi: float = 72.0,
        font_size_pt: float = 12.5,
        font_path: str | None = None,
        clock: Callable[[], float] = time.time,
        tz: tzinfo | None = None,
    ) -> None:
        self.dpi = dpi
        self.font_size_pt = font_size_pt
        self.font_path = font_path
        self._clock = clock
        self.tz = tz
        self._minute: int | None = None

    @property
    def minute(self) -> int | None:
        return self._minute

    @property
    def font_size_px(self) -> float:
        return self.font_size_pt * self.dpi / 72.0

    def check_refresh(self) -> bool:
        return int(self._clock() // 60) != self._minute

    def draw(self, region: np.ndarray, palette: Palette) -> int:
        now = self._clock()
        text = format_clock(now, self.tz)

        try:
            font = _load_font(self.font_path, self.font_size_px)
            width = math.ceil(font.getlength(text)) + TEXT_MARGIN_PX
            height = max(1, math.floor(self.font_size_px))

            text_image = Image.new("RGBA", (width, height), palette.background)
            ImageDraw.Draw(text_image).text((0, 0), text, font=font, fill=palette.foreground)
        except (OSError, ValueError):
            logger.exception(
                "clock icon render failed font_path=%s",
                self.font_path,
                extra={"event": "clock_render_failed"},
            )
            return 0

        target = (min(width, region.shape[1]), min(height, region.shape[0]))
        if target != text_image.size:
            text_image = text_image.resize(target, Image.Resampling.BILINEAR)
        region[: target[1], : target[0]] = np.asarray(text_image)

        self._minute = int(now // 60)
        return target[0]
