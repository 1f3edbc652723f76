"""Theme-adaptive status strip compositor.

``refresh`` decides whether the cached strip is stale and rebuilds it;
``draw`` stacks the cached strip above every frame. Rebuilding is the
expensive half and only runs when the theme flips, the frame width changes,
or an icon reports new content.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import numpy as np

from .icons import IconRenderer
from .models import IconSlot, Palette, Theme
from .pixels import normalize_frame, top_region, vconcat
from .themes import classify_theme, get_palette

logger = logging.getLogger("framestrip.renderer.compositor")


class BarCompositor:
    """Owns the cached strip and lays out icon renderers left to right.

    Not thread safe: use one compositor per frame stream.
    """

    def __init__(
        self,
        strip_height: int = 20,
        padding: Sequence[int] = (4, 8),
        renderers: Iterable[IconRenderer] = (),
    ) -> None:
        outer_padding, icon_padding = (int(p) for p in padding)
        if strip_height < 1:
            raise ValueError("strip_height must be positive")
        if outer_padding < 0 or icon_padding < 0:
            raise ValueError("padding must be non-negative")
        if strip_height - 2 * outer_padding < 1:
            raise ValueError("outer padding leaves no room for icons")

        self.strip_height = strip_height
        self.outer_padding = outer_padding
        self.icon_padding = icon_padding
        self.renderers: list[IconRenderer] = list(renderers)

        self._theme: Theme | None = None
        self._strip: np.ndarray | None = None
        self._layout: list[IconSlot] = []
        self._visible: list[IconRenderer] = []
        self._rebuild_count = 0

    @property
    def icon_height(self) -> int:
        return self.strip_height - 2 * self.outer_padding

    @property
    def strip(self) -> np.ndarray | None:
        return self._strip

    @property
    def theme(self) -> Theme | None:
        return self._theme

    @property
    def palette(self) -> Palette | None:
        return get_palette(self._theme) if self._theme is not None else None

    @property
    def layout(self) -> list[IconSlot]:
        return list(self._layout)

    @property
    def rebuild_count(self) -> int:
        return self._rebuild_count

    @property
    def initialized(self) -> bool:
        return self._strip is not None

    def refresh(self, frame: np.ndarray) -> np.ndarray:
        frame = normalize_frame(frame)
        theme = classify_theme(top_region(frame, self.strip_height))

        for renderer in self.renderers:
            self._safe_tick(renderer)

        if not self._needs_rebuild(theme, frame.shape[1]):
            return frame

        if theme != self._theme:
            logger.debug("theme changed %s -> %s", self._theme, theme, extra={"event": "theme_changed"})
        self._theme = theme
        self._rebuild(frame.shape[1], get_palette(theme))
        return frame

    def draw(self, frame: np.ndarray) -> np.ndarray:
        frame = normalize_frame(frame)
        if self._strip is None:
            logger.debug("draw before refresh, frame passed through", extra={"event": "draw_uninitialized"})
            return frame
        if self._strip.shape[1] != frame.shape[1]:
            logger.warning(
                "cached strip width %d does not match frame width %d",
                self._strip.shape[1],
                frame.shape[1],
                extra={"event": "strip_width_mismatch"},
            )
            return frame
        return vconcat(self._strip, frame)

    def compose(self, frame: np.ndarray) -> np.ndarray:
        return self.draw(self.refresh(frame))

    def _needs_rebuild(self, theme: Theme, width: int) -> bool:
        if theme != self._theme:
            return True
        if self._strip is None or self._strip.shape[1] != width:
            return True
        # Poll every visible renderer, no short-circuit. Skipped or failed
        # icons are retried on the next rebuild triggered elsewhere.
        dirty = [self._safe_check(renderer) for renderer in self._visible]
        return any(dirty)

    def _rebuild(self, width: int, palette: Palette) -> None:
        strip = np.empty((self.strip_height, width, 4), dtype=np.uint8)
        strip[...] = palette.background

        top = self.outer_padding
        bottom = top + self.icon_height
        cursor = self.outer_padding
        layout: list[IconSlot] = []

        for renderer in self.renderers:
            if cursor >= width:
                logger.debug(
                    "no room left for %s at x=%d",
                    renderer.name,
                    cursor,
                    extra={"event": "icon_skipped"},
                )
                continue

            region = strip[top:bottom, cursor:]
            used = self._safe_draw(renderer, region, palette)
            layout.append(IconSlot(x=cursor, y=top, width=used, height=self.icon_height, renderer=renderer))
            cursor += used + self.icon_padding

        strip.flags.writeable = False
        self._strip = strip
        self._layout = layout
        self._visible = [slot.renderer for slot in layout if slot.width > 0]
        self._rebuild_count += 1

    def _safe_tick(self, renderer: IconRenderer) -> None:
        try:
            renderer.tick()
        except Exception:
            logger.exception("icon tick failed: %s", renderer.name, extra={"event": "icon_tick_failed"})

    def _safe_check(self, renderer: IconRenderer) -> bool:
        try:
            return bool(renderer.check_refresh())
        except Exception:
            logger.exception("icon check failed: %s", renderer.name, extra={"event": "icon_check_failed"})
            return False

    def _safe_draw(self, renderer: IconRenderer, region: np.ndarray, palette: Palette) -> int:
        try:
            used = int(renderer.draw(region, palette))
        except Exception:
            logger.exception("icon draw failed: %s", renderer.name, extra={"event": "icon_draw_failed"})
            return 0
        return max(0, min(used, region.shape[1]))
