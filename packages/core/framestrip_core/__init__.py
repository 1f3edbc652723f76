"""Core services for strip settings, logging, performance budgets and the frame loop."""

from .config import AppConfig, build_compositor, build_renderers, load_config, save_config
from .performance import BudgetStatus, PerformanceController, PerformanceTargets
from .pipeline import FrameContext, FrameLoop, LoopStats, process_frame

__all__ = [
    "AppConfig",
    "BudgetStatus",
    "FrameContext",
    "FrameLoop",
    "LoopStats",
    "PerformanceController",
    "PerformanceTargets",
    "build_compositor",
    "build_renderers",
    "load_config",
    "process_frame",
    "save_config",
]
