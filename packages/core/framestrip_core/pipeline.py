"""Per-frame processing context and loop around the strip compositor."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from framestrip_renderer import BarCompositor

from .logging_setup import get_logger
from .performance import BudgetStatus, PerformanceController

FrameSource = Callable[[], Optional[np.ndarray]]
FrameSink = Callable[[np.ndarray], None]
FrameAnnotator = Callable[[np.ndarray], np.ndarray]

logger = get_logger("pipeline")


@dataclass
class FrameContext:
    """Everything one frame stream needs, passed explicitly into the loop."""

    compositor: BarCompositor
    source: FrameSource
    sink: FrameSink
    annotate: FrameAnnotator | None = None
    performance: PerformanceController | None = None


@dataclass
class LoopStats:
    frames: int = 0
    elapsed_s: float = 0.0
    fps: float = 0.0
    rebuilds: int = 0
    delay_ms: int = 0
    last_budget: BudgetStatus | None = None


def process_frame(ctx: FrameContext, frame: np.ndarray) -> np.ndarray:
    frame = ctx.compositor.refresh(frame)
    frame = ctx.compositor.draw(frame)
    if ctx.annotate is not None:
        frame = ctx.annotate(frame)
    return frame


class FrameLoop:
    def __init__(self, ctx: FrameContext, sleep: Callable[[float], None] = time.sleep) -> None:
        self.ctx = ctx
        self._sleep = sleep
        self._stats = LoopStats()

    @property
    def stats(self) -> LoopStats:
        return self._stats

    def run(self, max_frames: int | None = None, budget_every: int = 30) -> LoopStats:
        stats = self._stats
        start = time.perf_counter()
        rebuilds_before = self.ctx.compositor.rebuild_count
        logger.info("frame loop started", extra={"event": "loop_start"})

        while max_frames is None or stats.frames < max_frames:
            frame = self.ctx.source()
            if frame is None:
                logger.info("frame source exhausted", extra={"event": "source_exhausted"})
                break

            self.ctx.sink(process_frame(self.ctx, frame))
            stats.frames += 1

            elapsed = max(time.perf_counter() - start, 1e-9)
            stats.elapsed_s = elapsed
            stats.fps = stats.frames / elapsed
            stats.rebuilds = self.ctx.compositor.rebuild_count - rebuilds_before

            if self.ctx.performance is not None and budget_every > 0 and stats.frames % budget_every == 0:
                self._apply_budget(self.ctx.performance.sample(stats.fps, stats.delay_ms))

            if stats.delay_ms > 0:
                self._sleep(stats.delay_ms / 1000.0)

        logger.info(
            "frame loop stopped frames=%d fps=%.1f rebuilds=%d",
            stats.frames,
            stats.fps,
            stats.rebuilds,
            extra={"event": "loop_stop"},
        )
        return stats

    def _apply_budget(self, budget: BudgetStatus) -> None:
        self._stats.last_budget = budget
        self._stats.delay_ms = max(0, min(1000, int(budget.recommended_delay_ms)))
        if budget.warning is not None:
            logger.warning(
                "performance budget %s cpu=%.1f rss_mb=%.1f fps=%.1f",
                budget.warning,
                budget.cpu_percent,
                budget.rss_mb,
                budget.fps,
                extra={"event": "budget_warning"},
            )
