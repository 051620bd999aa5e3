"""Generate and persist the OpenAPI schema for the AI Code Reviewer service."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from fastapi.openapi.utils import get_openapi

from app.core.config import settings
from app.main import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate the AI Code Reviewer OpenAPI schema")
    parser.add_argument(
        "--output",
        default="openapi.json",
        help="Path to write the OpenAPI schema (default: openapi.json)",
    )
    parser.add_argument(
        "--server-url",
        default=settings.service_base_url,
        help="Base URL advertised in the schema's servers list",
    )
    args = parser.parse_args()

    app = create_app()
    schema = get_openapi(
        title=app.title,
        version=app.version,
        routes=app.routes,
        description=app.description,
        servers=[{"url": args.server_url}],
    )
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(schema, indent=2), encoding="utf-8")
    print(f"OpenAPI schema written to {output_path}")


if __name__ == "__main__":
    main()
