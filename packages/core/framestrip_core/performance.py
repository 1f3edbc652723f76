"""Runtime performance budgeting and frame pacing hints."""

from __future__ import annotations

from dataclasses import dataclass

import psutil


@dataclass(frozen=True)
class PerformanceTargets:
    cpu_percent_max: float = 25.0
    rss_mb_max: float = 300.0
    fps_min: float = 10.0
    fps_max: float = 60.0


@dataclass(frozen=True)
class BudgetStatus:
    cpu_percent: float
    rss_mb: float
    fps: float
    overloaded: bool
    warning: str | None
    recommended_delay_ms: int


class PerformanceController:
    def __init__(self, targets: PerformanceTargets | None = None) -> None:
        self.targets = targets or PerformanceTargets()
        try:
            self._process: psutil.Process | None = psutil.Process()
            # Prime non-blocking CPU measurement.
            self._process.cpu_percent(interval=None)
        except psutil.Error:
            self._process = None

    def sample(self, fps: float, delay_ms: int = 0) -> BudgetStatus:
        cpu = 0.0
        rss_mb = 0.0
        if self._process is not None:
            try:
                cpu = float(self._process.cpu_percent(interval=None))
                rss_mb = float(self._process.memory_info().rss) / (1024 * 1024)
            except psutil.Error:
                cpu = 0.0
                rss_mb = 0.0
        overloaded = cpu > self.targets.cpu_percent_max or rss_mb > self.targets.rss_mb_max

        warning = None
        rec_delay = delay_ms

        if overloaded:
            warning = "resource_overload"
            rec_delay = min(1000, int(delay_ms * 1.25) + 5)
        elif fps < self.targets.fps_min:
            warning = "below_fps_target"
            rec_delay = max(0, delay_ms - 5)
        elif fps > self.targets.fps_max:
            warning = "above_fps_target"
            rec_delay = min(1000, delay_ms + 5)

        return BudgetStatus(
            cpu_percent=cpu,
            rss_mb=rss_mb,
            fps=float(fps),
            overloaded=overloaded,
            warning=warning,
            recommended_delay_ms=rec_delay,
        )
