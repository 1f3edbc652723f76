import sys
import unittest
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from framestrip_renderer.compositor import BarCompositor
from framestrip_renderer.icons import ClockIconRenderer, IconRenderer, SignalIconRenderer
from framestrip_renderer.models import Theme
from framestrip_renderer.pixels import build_test_pattern
from framestrip_renderer.themes import get_palette


class FixedIcon(IconRenderer):
    """Fills a fixed width with the foreground and counts draws."""

    def __init__(self, width: int, dirty: bool = False) -> None:
        self.width = width
        self.dirty = dirty
        self.draws = 0
        self.checks = 0

    def check_refresh(self) -> bool:
        self.checks += 1
        return self.dirty

    def draw(self, region, palette) -> int:
        self.draws += 1
        region[:, : self.width] = palette.foreground
        self.dirty = False
        return self.width


class BrokenIcon(IconRenderer):
    def check_refresh(self) -> bool:
        raise RuntimeError("check exploded")

    def draw(self, region, palette) -> int:
        raise RuntimeError("draw exploded")


class TickFailIcon(FixedIcon):
    def tick(self) -> None:
        raise RuntimeError("tick exploded")


class CheckFailIcon(FixedIcon):
    def check_refresh(self) -> bool:
        self.checks += 1
        raise RuntimeError("check exploded")


class BarCompositorTests(unittest.TestCase):
    def test_second_refresh_is_a_noop(self):
        icon = FixedIcon(10)
        comp = BarCompositor(20, (4, 8), [icon])
        frame = build_test_pattern("black", width=64, height=48)

        comp.refresh(frame)
        first = comp.strip
        comp.refresh(frame)

        self.assertIs(comp.strip, first)
        self.assertEqual(comp.rebuild_count, 1)
        self.assertEqual(icon.draws, 1)
        self.assertEqual(icon.checks, 1)

    def test_theme_flip_rebuilds_with_new_palette(self):
        comp = BarCompositor(20, (4, 8), [FixedIcon(10)])

        comp.refresh(build_test_pattern("black", width=64, height=48))
        self.assertEqual(comp.theme, Theme.DARK)
        self.assertEqual(tuple(comp.strip[0, 0]), get_palette(Theme.DARK).background)

        comp.refresh(build_test_pattern("white", width=64, height=48))
        self.assertEqual(comp.theme, Theme.LIGHT)
        self.assertEqual(comp.rebuild_count, 2)
        self.assertEqual(tuple(comp.strip[0, 0]), get_palette(Theme.LIGHT).background)

    def test_theme_uses_only_strip_rows(self):
        comp = BarCompositor(20, (4, 8))
        frame = build_test_pattern("white", width=32, height=100)
        frame[20:, :, :3] = 0
        comp.refresh(frame)
        self.assertEqual(comp.theme, Theme.LIGHT)

    def test_width_change_forces_rebuild(self):
        comp = BarCompositor(20, (4, 8), [FixedIcon(10)])
        comp.refresh(build_test_pattern("black", width=64, height=48))
        comp.refresh(build_test_pattern("black", width=80, height=48))
        self.assertEqual(comp.rebuild_count, 2)
        self.assertEqual(comp.strip.shape, (20, 80, 4))

    def test_dirty_renderer_triggers_rebuild(self):
        icon = FixedIcon(10)
        comp = BarCompositor(20, (4, 8), [icon])
        frame = build_test_pattern("black", width=64, height=48)
        comp.refresh(frame)
        icon.dirty = True
        comp.refresh(frame)
        self.assertEqual(comp.rebuild_count, 2)
        self.assertEqual(icon.draws, 2)

    def test_layout_offsets_do_not_overlap(self):
        widths = [5, 12, 3]
        icons = [FixedIcon(w) for w in widths]
        comp = BarCompositor(20, (4, 8), icons)
        comp.refresh(build_test_pattern("black", width=200, height=48))

        layout = comp.layout
        self.assertEqual([slot.x for slot in layout], [4, 4 + 5 + 8, 4 + 5 + 8 + 12 + 8])
        self.assertEqual([slot.width for slot in layout], widths)
        for slot in layout:
            self.assertEqual(slot.y, 4)
            self.assertEqual(slot.height, 12)
        for left, right in zip(layout, layout[1:]):
            self.assertLessEqual(left.x + left.width, right.x)

        fg = get_palette(Theme.DARK).foreground
        self.assertEqual(tuple(comp.strip[4, 4]), fg)
        self.assertEqual(tuple(comp.strip[4, 9]), get_palette(Theme.DARK).background)
        self.assertEqual(tuple(comp.strip[3, 4]), get_palette(Theme.DARK).background)

    def test_icons_past_right_edge_get_no_slot(self):
        comp = BarCompositor(20, (4, 8), [FixedIcon(30), FixedIcon(30)])
        comp.refresh(build_test_pattern("black", width=40, height=48))
        self.assertEqual(len(comp.layout), 1)
        self.assertEqual(comp.layout[0].width, 30)

    def test_draw_stacks_strip_above_frame(self):
        comp = BarCompositor(20, (4, 8), [SignalIconRenderer()])
        frame = build_test_pattern("quadrants", width=64, height=48)
        expected = frame.copy()

        frame = comp.refresh(frame)
        out = comp.draw(frame)

        self.assertEqual(out.shape, (68, 64, 4))
        np.testing.assert_array_equal(out[:20], comp.strip)
        np.testing.assert_array_equal(out[20:], expected)

    def test_draw_before_refresh_passes_frame_through(self):
        comp = BarCompositor(20, (4, 8))
        frame = build_test_pattern("white", width=16, height=8)
        out = comp.draw(frame)
        self.assertEqual(out.shape, (8, 16, 4))
        self.assertFalse(comp.initialized)

    def test_draw_with_stale_width_passes_frame_through(self):
        comp = BarCompositor(20, (4, 8))
        comp.refresh(build_test_pattern("white", width=16, height=8))
        with self.assertLogs("framestrip.renderer.compositor", level="WARNING"):
            out = comp.draw(build_test_pattern("white", width=24, height=8))
        self.assertEqual(out.shape, (8, 24, 4))

    def test_broken_renderer_is_isolated(self):
        after = FixedIcon(6)
        comp = BarCompositor(20, (4, 8), [BrokenIcon(), after])
        frame = build_test_pattern("black", width=64, height=48)

        with self.assertLogs("framestrip.renderer.compositor", level="ERROR"):
            comp.refresh(frame)
            comp.refresh(frame)

        self.assertEqual([slot.width for slot in comp.layout], [0, 6])
        self.assertEqual(comp.layout[1].x, 4 + 0 + 8)
        self.assertEqual(comp.rebuild_count, 1)
        self.assertEqual(comp.draw(frame).shape, (68, 64, 4))

    def test_tick_failure_is_logged_and_refresh_completes(self):
        icon = TickFailIcon(7)
        comp = BarCompositor(20, (4, 8), [icon, FixedIcon(5)])
        frame = build_test_pattern("black", width=64, height=48)

        with self.assertLogs("framestrip.renderer.compositor", level="ERROR") as logs:
            out = comp.refresh(frame)

        self.assertIs(out, frame)
        self.assertIn("icon tick failed: TickFailIcon", logs.output[0])
        self.assertEqual([slot.width for slot in comp.layout], [7, 5])
        self.assertIs(comp.layout[0].renderer, icon)
        self.assertEqual(comp.draw(frame).shape, (68, 64, 4))

    def test_check_failure_counts_as_clean(self):
        icon = CheckFailIcon(6)
        comp = BarCompositor(20, (4, 8), [icon])
        frame = build_test_pattern("black", width=64, height=48)
        comp.refresh(frame)

        with self.assertLogs("framestrip.renderer.compositor", level="ERROR") as logs:
            comp.refresh(frame)

        self.assertIn("icon check failed: CheckFailIcon", logs.output[0])
        self.assertEqual(icon.checks, 1)
        self.assertEqual(comp.rebuild_count, 1)

    def test_icon_without_room_is_not_polled(self):
        clock = ClockIconRenderer(clock=lambda: 600.0)
        comp = BarCompositor(20, (4, 8), [SignalIconRenderer(), clock])
        frame = build_test_pattern("black", width=24, height=48)

        for _ in range(3):
            comp.refresh(frame)

        self.assertEqual(comp.rebuild_count, 1)
        self.assertEqual([slot.renderer for slot in comp.layout], [comp.renderers[0]])
        self.assertTrue(clock.check_refresh())

    def test_failed_icon_retries_only_on_other_rebuilds(self):
        first = FixedIcon(10)
        clock = ClockIconRenderer(font_path="/nonexistent/fonts/missing.ttf", clock=lambda: 600.0)
        comp = BarCompositor(20, (4, 8), [first, clock])
        frame = build_test_pattern("black", width=200, height=48)

        with self.assertLogs("framestrip.renderer.icons", level="ERROR"):
            for _ in range(3):
                comp.refresh(frame)
        self.assertEqual(comp.rebuild_count, 1)
        self.assertEqual([slot.width for slot in comp.layout], [10, 0])

        first.dirty = True
        with self.assertLogs("framestrip.renderer.icons", level="ERROR"):
            comp.refresh(frame)
        self.assertEqual(comp.rebuild_count, 2)

    def test_strip_is_read_only(self):
        comp = BarCompositor(20, (4, 8))
        comp.refresh(build_test_pattern("black", width=16, height=8))
        with self.assertRaises(ValueError):
            comp.strip[0, 0] = (1, 2, 3, 4)

    def test_compose_matches_refresh_then_draw(self):
        comp = BarCompositor(10, (2, 4))
        out = comp.compose(build_test_pattern("white", width=16, height=8))
        self.assertEqual(out.shape, (18, 16, 4))

    def test_invalid_geometry(self):
        with self.assertRaises(ValueError):
            BarCompositor(0, (0, 0))
        with self.assertRaises(ValueError):
            BarCompositor(8, (4, 2))
        with self.assertRaises(ValueError):
            BarCompositor(20, (-1, 2))


if __name__ == "__main__":
    unittest.main()
