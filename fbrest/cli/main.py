from __future__ import annotations

import argparse
import logging
from typing import List

from fbrest.cli.client_cmds import register_client_commands


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fbrest", description="Signed REST API client")
    p.add_argument("--log-level", default="WARNING", help="Python logging level")
    sub = p.add_subparsers(dest="cmd", required=True)
    register_client_commands(sub)
    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    level = "DEBUG" if getattr(args, "debug", False) else str(args.log_level).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
