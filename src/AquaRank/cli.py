from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from . import config
from .SwimProfile import AquaRankError, lookupSwimmer
from .swimmer_api import serve


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m AquaRank", description="SwimCloud swimmer lookup service")
    sub = parser.add_subparsers(dest="cmd", required=True)

    web = sub.add_parser("serve", help="Start the HTTP server (API + static page)")
    web.add_argument("--host", type=str, default=config.default_host(), help="Host, e.g. 127.0.0.1 (env HOST)")
    web.add_argument("--port", type=int, default=config.default_port(), help="Port, e.g. 3000 (env PORT)")
    web.add_argument("--static-dir", type=Path, default=config.default_static_dir(), help="Directory served at /")

    lookup = sub.add_parser("lookup", help="Look up one swimmer and print the record as JSON")
    lookup.add_argument("name", help="Swimmer name, e.g. 'Katie Ledecky'")
    lookup.add_argument("--timeout", type=float, default=config.SEARCH_RESULT_TIMEOUT, help="Seconds to wait for search results")
    lookup.add_argument("--screenshot", type=Path, default=Path(config.ERROR_SCREENSHOT_PATH), help="Where to save a screenshot on failure")

    args = parser.parse_args(argv)

    if args.cmd == "serve":
        serve(host=args.host, port=args.port, static_dir=args.static_dir)
        return 0

    if args.cmd == "lookup":
        try:
            record = lookupSwimmer(args.name, timeout=args.timeout, screenshot_path=args.screenshot)
        except AquaRankError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
        return 0

    parser.error(f"Unknown command: {args.cmd}")
    return 2
