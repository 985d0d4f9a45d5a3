from __future__ import annotations

import argparse

from eduflow_service.export.types import ArtifactKind, ExportFormat


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="eduflow-transcode",
        description="Extract text from documents or export study artifacts, offline",
    )
    p.add_argument("--log-level", default="INFO", help="Python logging level (INFO, DEBUG, ...)")
    sub = p.add_subparsers(dest="command", required=True)

    ex = sub.add_parser("extract", help="Print normalized text extracted from a local file")
    ex.add_argument("path", help="Local PPTX, DOCX or PDF file")
    ex.add_argument(
        "--media-type",
        default=None,
        help="Declared media type (default: guessed from the file extension)",
    )

    out = sub.add_parser("export", help="Serialize artifact content (JSON) to a file")
    out.add_argument("input", help="JSON file holding the artifact content ('-' for stdin)")
    out.add_argument("--kind", required=True, choices=[k.value for k in ArtifactKind])
    out.add_argument("--format", dest="target_format", required=True, choices=[f.value for f in ExportFormat])
    out.add_argument("--title", default=None, help="Document title (also used for the file name)")
    out.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output path (default: generated file name in the current directory)",
    )
    return p
