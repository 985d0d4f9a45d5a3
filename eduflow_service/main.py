from __future__ import annotations

import json
import logging
import mimetypes
import sys
from pathlib import Path

from eduflow_service.cli import build_parser
from eduflow_service.errors import ContentPipelineError
from eduflow_service.export.dispatcher import serialize
from eduflow_service.ingestion.dispatcher import (
    DOCX_MEDIA_TYPE,
    PPTX_MEDIA_TYPE,
    extract,
)
from eduflow_service.logging_config import setup_logging

_EXT_MEDIA_TYPES = {
    ".pptx": PPTX_MEDIA_TYPE,
    ".docx": DOCX_MEDIA_TYPE,
}


def _guess_media_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _EXT_MEDIA_TYPES:
        return _EXT_MEDIA_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def _run_extract(path: Path, media_type: str | None) -> int:
    outcome = extract(media_type or _guess_media_type(path), path.read_bytes())
    for w in outcome.warnings:
        print(f"warning: {w}", file=sys.stderr)
    sys.stdout.write(outcome.text)
    if outcome.text:
        sys.stdout.write("\n")
    return 0


def _run_export(
    input_path: str,
    kind: str,
    target_format: str,
    title: str | None,
    output: str | None,
) -> int:
    raw = sys.stdin.read() if input_path == "-" else Path(input_path).read_text(encoding="utf-8")
    content = json.loads(raw)
    out = serialize(kind, target_format, content, title=title)
    dest = Path(output) if output else Path(out.file_name)
    dest.write_bytes(out.buffer)
    logging.getLogger("eduflow_service.export").info(
        "Wrote %s (%s, %d bytes)", dest, out.mime_type, len(out.buffer)
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level.upper())
    logger = logging.getLogger("eduflow_service.cli")

    try:
        if args.command == "extract":
            return _run_extract(Path(args.path), args.media_type)
        return _run_export(args.input, args.kind, args.target_format, args.title, args.output)
    except ContentPipelineError as e:
        logger.error("%s: %s", e.error_code, e.message)
        return 2
    except (OSError, json.JSONDecodeError) as e:
        logger.error("%s", e)
        return 1


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
