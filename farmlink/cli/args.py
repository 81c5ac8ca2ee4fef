# farmlink/cli/args.py
from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from farmlink.model.channels import channel_index

DEFAULT_FARMS_FILE = Path(__file__).resolve().parents[1] / "metadata" / "farms.yml"
DATA_DIR = Path("data")
DEFAULT_STATE_DIR = DATA_DIR / "state"
DEFAULT_LOG_FILE = DATA_DIR / "farmlink.log"


def parse_timestamp(value: str) -> int:
    """
    UNIX seconds, or an ISO-8601 date/time (naive values are taken as UTC).
    """
    s = str(value).strip()
    try:
        return int(s)
    except ValueError:
        pass
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid time '{value}' (use UNIX seconds or ISO-8601)") from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def _positive_float(value: str) -> float:
    try:
        f = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a number: '{value}'") from None
    if f <= 0:
        raise argparse.ArgumentTypeError(f"Must be > 0 (got {value})")
    return f


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="farmlink", description="Remote control client for farm controllers.")
    parser.add_argument("--farms-file", default=str(DEFAULT_FARMS_FILE), help="Farms YAML file.")
    parser.add_argument("--log-file", default=str(DEFAULT_LOG_FILE), help="Application log file.")
    parser.add_argument("--trace", default=None, help="Write operation events to this .jsonl file.")
    parser.add_argument("--state-dir", default=str(DEFAULT_STATE_DIR), help="Where last applied configs are kept.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Also log to stderr.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    pfarms = sub.add_parser("farms", help="List configured farms.")
    pfarms.add_argument("--json", action="store_true", help="Print farms as a JSON list.")
    sub.add_parser("commands", help="List actuator commands.")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--farm", type=int, required=True, help="Farm id (see: farmlink farms).")
    common.add_argument("--workers", type=int, default=None, help="Override max_workers.")
    common.add_argument("--timeout", type=_positive_float, default=None, help="Override connect_timeout_s.")

    pc = sub.add_parser("command", parents=[common], help="Send one actuator command.")
    pc.add_argument("action", help="Command name (e.g. PUMP_ON) or index (clamped to 0..8).")

    pf = sub.add_parser("config", parents=[common], help="Apply a JSON config document.")
    pf.add_argument("file", nargs="?", default=None, help="JSON file; omitted = resend the last applied config.")

    pt = sub.add_parser("telemetry", parents=[common], help="Fetch telemetry.")
    pt.add_argument("--from", dest="time_from", type=parse_timestamp, default=None)
    pt.add_argument("--to", dest="time_to", type=parse_timestamp, default=None)
    pt.add_argument("--hours", type=_positive_float, default=None, help="Window ending now (default 24).")
    pt.add_argument("--watch", action="store_true", help="Keep polling until --secs elapse or Ctrl-C.")
    pt.add_argument("--period", type=_positive_float, default=None, help="Polling period in seconds.")
    pt.add_argument("--secs", type=_positive_float, default=None, help="How long to watch.")
    pt.add_argument("--csv", default=None, help="Append received records to CSV files under this directory.")
    pt.add_argument("--channel", default=None, help="Only print this channel (name or index).")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "cmd", None) == "telemetry":
        explicit = args.time_from is not None or args.time_to is not None
        if explicit and args.hours is not None:
            parser.error("--hours cannot be combined with --from/--to")
        if explicit and (args.time_from is None or args.time_to is None):
            parser.error("--from and --to must be given together")
        if explicit and args.time_from > args.time_to:
            parser.error("--from must not be after --to")
        if not args.watch and (args.period is not None or args.secs is not None):
            parser.error("--period/--secs require --watch")
        if args.channel is not None:
            ch = args.channel.strip()
            try:
                channel_index(int(ch) if ch.isdigit() else ch)
            except (IndexError, KeyError) as e:
                parser.error(str(e).strip("'\""))

    return args
