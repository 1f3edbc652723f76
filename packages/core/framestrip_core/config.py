"""Persistent strip settings schema, load/save helpers and compositor wiring."""

from __future__ import annotations

import json
import math
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from framestrip_renderer import BarCompositor, ClockIconRenderer, IconRenderer, SignalIconRenderer


CONFIG_VERSION = 2


@dataclass
class StripConfig:
    height: int = 20
    outer_padding: int = 4
    icon_padding: int = 8


@dataclass
class SignalConfig:
    enabled: bool = True
    icon_width: int = 16
    max_level: int = 4
    step: float = 0.1


@dataclass
class ClockConfig:
    enabled: bool = True
    dpi: float = 72.0
    font_size_pt: float = 12.5
    font_path: str | None = None


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7


@dataclass
class PerformanceConfig:
    cpu_percent_max: float = 25.0
    rss_mb_max: float = 300.0
    fps_min: float = 10.0
    fps_max: float = 60.0


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    strip: StripConfig = field(default_factory=StripConfig)
    signal: SignalConfig = field(default_factory=SignalConfig)
    clock: ClockConfig = field(default_factory=ClockConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)


DEFAULT_CONFIG = AppConfig()


def config_path() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "FrameStrip" / "config.json"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "FrameStrip" / "config.json"
    return Path.home() / ".config" / "framestrip" / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _coerce(section: Any, name: str, cast) -> Any:
    """Cast one field in place, falling back to its dataclass default."""
    default = getattr(type(section)(), name)
    value = getattr(section, name)
    try:
        if cast is bool:
            if not isinstance(value, bool):
                raise TypeError(f"{name} must be a boolean")
            coerced = value
        else:
            coerced = cast(value)
            if isinstance(coerced, float) and not math.isfinite(coerced):
                raise ValueError(f"{name} must be finite")
    except (TypeError, ValueError, OverflowError):
        coerced = default
    setattr(section, name, coerced)
    return coerced


def _normalize_strip(cfg: AppConfig) -> None:
    cfg.strip.height = max(1, _coerce(cfg.strip, "height", int))
    cfg.strip.icon_padding = max(0, _coerce(cfg.strip, "icon_padding", int))
    # Icons need at least one row between the vertical insets.
    max_outer = (cfg.strip.height - 1) // 2
    cfg.strip.outer_padding = max(0, min(max_outer, _coerce(cfg.strip, "outer_padding", int)))


def _normalize_signal(cfg: AppConfig) -> None:
    _coerce(cfg.signal, "enabled", bool)
    cfg.signal.icon_width = max(1, _coerce(cfg.signal, "icon_width", int))
    cfg.signal.max_level = max(1, _coerce(cfg.signal, "max_level", int))
    if _coerce(cfg.signal, "step", float) <= 0:
        cfg.signal.step = SignalConfig.step


def _normalize_clock(cfg: AppConfig) -> None:
    _coerce(cfg.clock, "enabled", bool)
    cfg.clock.dpi = max(1.0, _coerce(cfg.clock, "dpi", float))
    cfg.clock.font_size_pt = max(1.0, _coerce(cfg.clock, "font_size_pt", float))
    if not isinstance(cfg.clock.font_path, str) or not cfg.clock.font_path:
        cfg.clock.font_path = None


def _normalize_diagnostics(cfg: AppConfig) -> None:
    cfg.diagnostics.keep_log_files = max(2, _coerce(cfg.diagnostics, "keep_log_files", int))


def _normalize_performance(cfg: AppConfig) -> None:
    cfg.performance.cpu_percent_max = max(1.0, _coerce(cfg.performance, "cpu_percent_max", float))
    cfg.performance.rss_mb_max = max(64.0, _coerce(cfg.performance, "rss_mb_max", float))
    cfg.performance.fps_min = max(1.0, _coerce(cfg.performance, "fps_min", float))
    cfg.performance.fps_max = max(cfg.performance.fps_min, _coerce(cfg.performance, "fps_max", float))


def _version(raw: dict[str, Any], default: int) -> int:
    try:
        return int(raw.get("config_version", default))
    except (TypeError, ValueError):
        return default


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = _version(raw, 1)
    data = dict(raw)

    if version < 2:
        # v1 kept strip geometry as flat keys: strip_height and padding [outer, icon].
        strip = dict(data["strip"]) if isinstance(data.get("strip"), dict) else {}
        if "strip_height" in data:
            strip.setdefault("height", data.pop("strip_height"))
        padding = data.pop("padding", None)
        if isinstance(padding, (list, tuple)) and len(padding) == 2:
            strip.setdefault("outer_padding", padding[0])
            strip.setdefault("icon_padding", padding[1])
        data["strip"] = strip
        data.setdefault("diagnostics", {})
        data.setdefault("performance", {})
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=_version(data, CONFIG_VERSION),
        strip=_merge(StripConfig, data.get("strip", {})),
        signal=_merge(SignalConfig, data.get("signal", {})),
        clock=_merge(ClockConfig, data.get("clock", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
        performance=_merge(PerformanceConfig, data.get("performance", {})),
    )

    _normalize_strip(cfg)
    _normalize_signal(cfg)
    _normalize_clock(cfg)
    _normalize_diagnostics(cfg)
    _normalize_performance(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path


def build_renderers(cfg: AppConfig) -> list[IconRenderer]:
    renderers: list[IconRenderer] = []
    if cfg.signal.enabled:
        renderers.append(
            SignalIconRenderer(
                icon_width=cfg.signal.icon_width,
                max_level=cfg.signal.max_level,
                step=cfg.signal.step,
            )
        )
    if cfg.clock.enabled:
        renderers.append(
            ClockIconRenderer(
                dpi=cfg.clock.dpi,
                font_size_pt=cfg.clock.font_size_pt,
                font_path=cfg.clock.font_path,
            )
        )
    return renderers


def build_compositor(cfg: AppConfig) -> BarCompositor:
    return BarCompositor(
        strip_height=cfg.strip.height,
        padding=(cfg.strip.outer_padding, cfg.strip.icon_padding),
        renderers=build_renderers(cfg),
    )
