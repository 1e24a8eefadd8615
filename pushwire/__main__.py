from __future__ import annotations

import argparse
import json
import sys

import uvicorn

from pushwire.vapid import export_vapid_keys, generate_vapid_keys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pushwire", description="Web Push dispatch service")
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=7871)
    serve.add_argument("--log-level", default="info")

    commands.add_parser("generate-keys", help="print a new VAPID key pair as JSON")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.command == "generate-keys":
        keys = export_vapid_keys(generate_vapid_keys())
        json.dump(
            {
                **keys,
                "instructions": "Set VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY to these values",
            },
            sys.stdout,
            indent=2,
        )
        sys.stdout.write("\n")
        return

    uvicorn.run(
        "pushwire.app:create_app",
        factory=True,
        host=getattr(args, "host", "0.0.0.0"),
        port=getattr(args, "port", 7871),
        log_level=getattr(args, "log_level", "info"),
    )


if __name__ == "__main__":
    main()
