from __future__ import annotations

import argparse
import time
from typing import Dict, List, Optional

import numpy as np
from tqdm import tqdm

from mandelview.autozoom import DEFAULT_FACTOR, AutoZoom
from mandelview.color import ColorMode
from mandelview.config import ViewerSettings, load_config, normalise_config
from mandelview.errors import ConfigError
from mandelview.preview import frame_to_image
from mandelview.status import status_lines
from mandelview.util.logging_setup import configure_root_logging, get_logger

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelview", description="Multi-threaded Mandelbrot set rasterizer.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, built-in defaults are used.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG","INFO","WARNING","ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="", help="Log file path (rotating). Empty disables file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Compute one frame and print the status readout.")
    _add_view_overrides(r)
    r.add_argument("--show", action="store_true", help="Open the frame in the default image viewer.")
    r.add_argument("--autozoom", type=float, default=None, metavar="SECONDS", help="Render the auto zoom state after SECONDS.")
    r.add_argument("--autozoom-fac", type=float, default=DEFAULT_FACTOR, help="Auto zoom factor per second.")

    b = sub.add_parser("bench", help="Time the same frame for several worker counts.")
    _add_view_overrides(b)
    b.add_argument("--workers", type=int, nargs="+", default=[1, 2, 4], help="Worker counts to compare.")
    b.add_argument("--repeat", type=int, default=3, help="Recomputes per worker count.")

    return p

def _add_view_overrides(p: argparse.ArgumentParser) -> None:
    p.add_argument("--width", type=int, default=None)
    p.add_argument("--height", type=int, default=None)
    p.add_argument("--iter-max", type=int, default=None)
    p.add_argument("--center", type=float, nargs=2, default=None, metavar=("RE", "IM"))
    p.add_argument("--zoom", type=float, default=None)
    p.add_argument("--color-mode", type=str, default=None, choices=[m.name.lower() for m in ColorMode])
    p.add_argument("--threads", type=int, default=None, help="Worker thread count.")

def _settings(args: argparse.Namespace) -> ViewerSettings:
    cfg = load_config(args.config)
    overrides = {
        "width": args.width,
        "height": args.height,
        "iter_max": args.iter_max,
        "center": args.center,
        "zoom": args.zoom,
        "color_mode": args.color_mode,
        "worker_count": args.threads,
    }
    cfg.update({k: v for k, v in overrides.items() if v is not None})
    # an explicit --threads wins over the environment override
    return normalise_config(cfg, env={} if args.threads is not None else None)

def _render(settings: ViewerSettings, show: bool, autozoom_seconds: Optional[float] = None,
            autozoom_fac: float = DEFAULT_FACTOR) -> int:
    logger = get_logger()
    mb = settings.build_rasterizer()
    az = None
    if autozoom_seconds is not None:
        az = AutoZoom(autozoom_fac)
        az.toggle(mb)
        az.apply_at(mb, autozoom_seconds)
    start = time.perf_counter()
    buf = mb.compute()
    elapsed = time.perf_counter() - start
    for line in status_lines(mb, az):
        logger.info(line)
    logger.info("Computed %sx%s in %.3fs (%s pixels evaluated)", mb.width, mb.height, elapsed, mb.evaluator.pixels_evaluated)
    if show:
        frame_to_image(buf, mb.width, mb.height).show(title="mandelview")
    return 0

def _bench(settings: ViewerSettings, workers: List[int], repeat: int) -> int:
    logger = get_logger()
    if repeat < 1:
        raise ConfigError("--repeat must be >= 1")
    mb = settings.build_rasterizer()
    timings: Dict[int, float] = {}
    reference: Optional[bytes] = None
    mismatched = []

    for n in tqdm(workers, desc="workers"):
        mb.set_worker_count(n)
        best = float("inf")
        for _ in range(repeat):
            # re-setting iter_max marks the frame dirty without changing it
            mb.set_iter_max(mb.iter_max)
            start = time.perf_counter()
            buf = mb.compute()
            best = min(best, time.perf_counter() - start)
        timings[n] = best
        data = buf.tobytes()
        if reference is None:
            reference = data
        elif data != reference:
            mismatched.append(n)

    base = timings[workers[0]]
    for n, t in timings.items():
        logger.info("workers=%s best=%.3fs speedup=%.2fx", n, t, base / t if t > 0 else np.inf)
    if mismatched:
        logger.error("Output differs from workers=%s for worker counts %s", workers[0], mismatched)
        return 1
    return 0

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    configure_root_logging(level=args.log_level, console=True, log_file=log_file)
    logger = get_logger()

    try:
        settings = _settings(args)

        if args.cmd == "render":
            return _render(settings, args.show, args.autozoom, args.autozoom_fac)

        if args.cmd == "bench":
            return _bench(settings, args.workers, args.repeat)

        raise RuntimeError("Unknown command.")
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

if __name__ == "__main__":
    raise SystemExit(main())
