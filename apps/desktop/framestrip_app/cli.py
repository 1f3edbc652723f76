"""CLI entrypoints for strip previews and frame loop benchmarks."""

from __future__ import annotations

import argparse
import itertools
import json
import time
from dataclasses import asdict
from pathlib import Path

from PIL import Image

from framestrip_core import (
    FrameContext,
    FrameLoop,
    PerformanceController,
    PerformanceTargets,
    build_compositor,
    load_config,
)
from framestrip_core.logging_setup import configure_logging, install_crash_hooks
from framestrip_renderer import PATTERN_NAMES, build_test_pattern


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _load(args: argparse.Namespace):
    """Load the config once per invocation and keep it on ``args``."""
    cfg = getattr(args, "cfg", None)
    if cfg is None:
        cfg = load_config(Path(args.config).expanduser() if args.config else None)
        args.cfg = cfg
    return cfg


def cmd_render(args: argparse.Namespace) -> int:
    cfg = _load(args)
    compositor = build_compositor(cfg)

    frame = build_test_pattern(args.pattern, width=args.width, height=args.height)
    out = compositor.compose(frame)

    out_path = Path(args.out).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(out).save(out_path, format="PNG")

    _print_json(
        {
            "success": True,
            "pattern": args.pattern,
            "out": str(out_path),
            "size": {"width": int(out.shape[1]), "height": int(out.shape[0])},
            "theme": compositor.theme.value if compositor.theme else None,
            "layout": [
                {"icon": slot.renderer.name, "x": slot.x, "y": slot.y, "width": slot.width, "height": slot.height}
                for slot in compositor.layout
            ],
        }
    )
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    cfg = _load(args)
    compositor = build_compositor(cfg)
    perf = PerformanceController(
        PerformanceTargets(
            cpu_percent_max=cfg.performance.cpu_percent_max,
            rss_mb_max=cfg.performance.rss_mb_max,
            fps_min=cfg.performance.fps_min,
            fps_max=cfg.performance.fps_max,
        )
    )

    names = [args.pattern] if args.pattern else ["checkerboard", "quadrants", "h-gradient", "v-gradient", "black", "white"]
    frames = {name: build_test_pattern(name, width=args.width, height=args.height) for name in names}
    cycle = itertools.cycle(names)
    deadline = time.perf_counter() + args.seconds

    def source():
        if time.perf_counter() >= deadline:
            return None
        return frames[next(cycle)].copy()

    ctx = FrameContext(compositor=compositor, source=source, sink=lambda _frame: None, performance=perf)
    stats = FrameLoop(ctx).run(budget_every=args.budget_every)

    payload = asdict(stats)
    payload["seconds"] = args.seconds
    payload["pass"] = bool(
        stats.last_budget is None or (not stats.last_budget.overloaded and stats.fps >= cfg.performance.fps_min)
    )
    _print_json(payload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="framestrip", description="Status strip overlay previews and tools")
    parser.add_argument("--config", default=None, help="Optional path to a config JSON file")
    sub = parser.add_subparsers(dest="command", required=True)

    render_cmd = sub.add_parser("render", help="Compose one synthetic frame and save it as PNG")
    render_cmd.add_argument("--pattern", default="quadrants", choices=list(PATTERN_NAMES))
    render_cmd.add_argument("--width", type=int, default=640)
    render_cmd.add_argument("--height", type=int, default=480)
    render_cmd.add_argument("--out", default="framestrip-preview.png", help="Output PNG path")
    render_cmd.set_defaults(func=cmd_render)

    bench_cmd = sub.add_parser("benchmark", help="Run the frame loop over synthetic frames")
    bench_cmd.add_argument("--seconds", type=int, default=10)
    bench_cmd.add_argument("--pattern", default=None, choices=list(PATTERN_NAMES))
    bench_cmd.add_argument("--width", type=int, default=640)
    bench_cmd.add_argument("--height", type=int, default=480)
    bench_cmd.add_argument("--budget-every", type=int, default=30)
    bench_cmd.set_defaults(func=cmd_benchmark)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = _load(args)
    configure_logging(keep_files=cfg.diagnostics.keep_log_files, console=False)
    install_crash_hooks()
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
