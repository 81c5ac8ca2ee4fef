# farmlink/cli/main.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from farmlink.core.errors import FarmLinkError

from farmlink.cli.args import parse_args
from farmlink.cli.commands import (
    cmd_command,
    cmd_commands,
    cmd_config,
    cmd_farms,
    cmd_telemetry,
    configure_file_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    try:
        configure_file_logging(Path(args.log_file), verbose=args.verbose)

        if args.cmd == "farms":
            return cmd_farms(args)
        if args.cmd == "commands":
            return cmd_commands()
        if args.cmd == "command":
            return cmd_command(args)
        if args.cmd == "config":
            return cmd_config(args)
        if args.cmd == "telemetry":
            return cmd_telemetry(args)

        return 2
    except FarmLinkError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
