# farmlink/cli/commands.py
from __future__ import annotations

import json
import logging
import sys
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from farmlink.app.config import FarmLinkConfig
from farmlink.app.runner import AppRun, load_farms, start_run
from farmlink.core.errors import ConfigDocumentError
from farmlink.core.recording.telemetry import CsvTelemetrySink
from farmlink.model.channels import CHANNEL_NAMES, CHANNELS, channel_index
from farmlink.model.command import COMMAND_LABELS, COMMAND_NAMES
from farmlink.model.telemetry import TelemetrySeries, TimeRange
from farmlink.runtime.state import OperationResult

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_WINDOW_S = 24 * 3600
# watch windows without an explicit end stay open this long
OPEN_WATCH_S = 365 * 24 * 3600


# ---------------- Logging ----------------

def configure_file_logging(app_log_path: Path, *, verbose: bool = False) -> None:
    """
    Add a file handler (and with verbose, a stderr handler) to the root logger.
    Idempotent per target.
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    has_file = any(
        isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target
        for h in root.handlers
    )
    if not has_file:
        fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
        fh.setLevel(logging.INFO)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(fh)

    if verbose and not any(getattr(h, "_farmlink_console", False) for h in root.handlers):
        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(logging.INFO)
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        sh._farmlink_console = True  # type: ignore[attr-defined]
        root.addHandler(sh)

    if root.level > logging.INFO or root.level == logging.NOTSET:
        root.setLevel(logging.INFO)


# ---------------- Printing ----------------

def print_result(result: OperationResult) -> int:
    if result.ok:
        print(f"OK: {result.describe()} (port {result.port}, {result.elapsed_s * 1000.0:.0f} ms)")
        return 0
    print(f"FAILED [{result.error_code}]: {result.error.message if result.error else result.status}")
    if result.error is not None and result.error.hint:
        print(f"Hint: {result.error.hint}")
    return 1


def _fmt_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def print_series(
    series: TelemetrySeries,
    *,
    channel: Optional[str] = None,
    after: Optional[int] = None,
) -> Optional[int]:
    """Print records (newer than `after`, if given); returns the last timestamp printed or `after`."""
    if channel is not None:
        idx = channel_index(int(channel) if channel.strip().isdigit() else channel)
        header = ["time_utc", CHANNELS[idx].name]
    else:
        idx = None
        header = ["time_utc", *CHANNEL_NAMES]

    last = after
    rows = [r for r in series.records() if after is None or r.timestamp > after]
    if not rows:
        return last

    print("  ".join(header))
    for r in rows:
        values = [r.values[idx]] if idx is not None else list(r.values)
        print("  ".join([_fmt_ts(r.timestamp), *(f"{v:g}" for v in values)]))
        last = r.timestamp
    return last


# ---------------- Commands ----------------

def cmd_farms(args) -> int:
    loader = load_farms(args.farms_file)
    if args.json:
        print(json.dumps([loader.endpoints[fid].as_dict() for fid in sorted(loader.endpoints)], indent=2))
        return 0

    print(f"Farms ({args.farms_file}):")
    for fid in sorted(loader.endpoints):
        ep = loader.endpoints[fid]
        print(f"  {fid:>3}  {ep.label:<12} {ep.host} driver={ep.driver}")
    d = loader.defaults
    print(
        f"Defaults: poll_period_s={d['poll_period_s']} max_workers={d['max_workers']} "
        f"connect_timeout_s={d['connect_timeout_s']}"
    )
    return 0


def cmd_commands() -> int:
    print("Commands (name or index; out-of-range indices are clamped):")
    for i, (name, label) in enumerate(zip(COMMAND_NAMES, COMMAND_LABELS)):
        print(f"  {i}  {name:<14} {label}")
    return 0


def _start_app_run(args) -> AppRun:
    cfg = FarmLinkConfig(
        farms_file=args.farms_file,
        farm_id=int(args.farm),
        max_workers=getattr(args, "workers", None),
        connect_timeout_s=getattr(args, "timeout", None),
        poll_period_s=getattr(args, "period", None),
        trace_path=args.trace,
        state_dir=args.state_dir,
    )
    return start_run(cfg)


def cmd_command(args) -> int:
    run = _start_app_run(args)
    try:
        return print_result(run.controller.send_command(args.action).result())
    finally:
        run.close()


def read_config_file(path: str | Path) -> dict:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
    except OSError as e:
        raise ConfigDocumentError(f"Cannot read config file {path}.", hint=str(e)) from None
    except json.JSONDecodeError as e:
        raise ConfigDocumentError(f"Config file {path} is not valid JSON.", hint=str(e)) from None
    if not isinstance(doc, dict):
        raise ConfigDocumentError(f"Config file {path} must contain a JSON object.")
    return doc


def cmd_config(args) -> int:
    document = read_config_file(args.file) if args.file else None

    run = _start_app_run(args)
    try:
        if document is None:
            print(f"Resending last config of {run.endpoint}")
            future = run.controller.resend_last_config()
        else:
            future = run.controller.apply_config(document)
        return print_result(future.result())
    finally:
        run.close()


def _time_range(args, now: Optional[float] = None) -> TimeRange:
    now = int(time.time() if now is None else now)
    if args.time_from is not None:
        return TimeRange(args.time_from, args.time_to)

    start = now - int((args.hours or DEFAULT_WINDOW_S / 3600) * 3600)
    if args.watch:
        # keep the window open so later ticks see new records
        end = now + int(args.secs if args.secs is not None else OPEN_WATCH_S)
        return TimeRange(start, end)
    return TimeRange(start, now)


def cmd_telemetry(args) -> int:
    time_range = _time_range(args)
    run = _start_app_run(args)
    try:
        if args.csv:
            run.controller.add_sink(CsvTelemetrySink(Path(args.csv)))
            print(f"Recording: {args.csv}")

        print(f"Telemetry {run.endpoint}: {_fmt_ts(time_range.start)} .. {_fmt_ts(time_range.end)} UTC")

        if not args.watch:
            result = run.controller.fetch_telemetry(time_range).result()
            rc = print_result(result)
            if result.series is not None:
                print_series(result.series, channel=args.channel)
            return rc

        return _watch(run, time_range, args)
    finally:
        run.close()


def _watch(run: AppRun, time_range: TimeRange, args) -> int:
    lock = threading.Lock()
    state = {"last": None, "failures": 0}

    def _on_tick(result: OperationResult) -> None:
        with lock:
            if not result.ok:
                state["failures"] += 1
                print_result(result)
                return
            if result.series is not None:
                state["last"] = print_series(result.series, channel=args.channel, after=state["last"])

    session = run.controller.watch_telemetry(time_range, _on_tick, period_s=args.period)
    print(f"Watching every {session.period_s:g}s (Ctrl-C to stop)")

    t0 = time.monotonic()
    try:
        while args.secs is None or time.monotonic() - t0 < args.secs:
            time.sleep(0.2)
    except KeyboardInterrupt:
        print()
    finally:
        session.cancel()

    st = session.status()
    print(f"Stopped after {st.ticks} tick(s), {st.failures} failed.")
    return 0
