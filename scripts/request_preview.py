#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from docpreview.application import build_coordinator
from docpreview.core.config import Settings, configure_logging
from docpreview.domain import PreviewError

logger = logging.getLogger("request_preview")


def _log_level(verbose: bool) -> str:
    return "DEBUG" if verbose else Settings.from_env().log_level


async def _run(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    if args.url:
        settings = replace(settings, service_url=args.url.rstrip("/"))
    if args.token:
        settings = replace(settings, service_token=args.token)

    with Path(args.content).open("r", encoding="utf-8") as fp:
        content = json.load(fp)

    coordinator, generator = build_coordinator(settings)
    try:
        result = await coordinator.request_preview(args.document_id, content)
    except PreviewError as exc:
        logger.error("Preview failed (%s): %s", exc.error_code, exc)
        return 1
    finally:
        await generator.aclose()

    if result.url:
        print(result.url)
        return 0

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.data or b"")
    print(f"Preview written to {output} ({result.size} bytes)")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Request a PDF preview for a document from the preview API")
    parser.add_argument("document_id", help="Document identifier")
    parser.add_argument("--content", required=True, help="Path to the Tiptap JSON content")
    parser.add_argument("--output", default="preview.pdf", help="Where to write the PDF")
    parser.add_argument("--url", help="Preview API base URL (defaults to PREVIEW_SERVICE_URL)")
    parser.add_argument("--token", help="Session token (defaults to PREVIEW_SERVICE_TOKEN)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging (defaults to LOG_LEVEL)")
    args = parser.parse_args()

    configure_logging(_log_level(args.verbose))
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
