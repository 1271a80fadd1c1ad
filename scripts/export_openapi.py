from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from checkout_api.api.app import create_app

DEFAULT_OUTPUT = Path("docs/openapi.json")


def render_openapi() -> str:
    """Checkout API schema as stable, diff-friendly JSON."""
    document = create_app().openapi()
    return json.dumps(document, indent=2, ensure_ascii=False, sort_keys=True) + "\n"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export the checkout API OpenAPI document.")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    parser.add_argument(
        "--check",
        action="store_true",
        help="exit with status 1 when the file on disk differs from the current schema",
    )
    args = parser.parse_args(argv)

    rendered = render_openapi()
    if args.check:
        current = args.output.read_text(encoding="utf-8") if args.output.exists() else ""
        if current != rendered:
            print(f"{args.output} is out of date, run scripts/export_openapi.py", file=sys.stderr)
            return 1
        print(f"{args.output} is up to date")
        return 0

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(rendered, encoding="utf-8")
    print(f"OpenAPI exported to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
