"""Summarise material and patch consumption from a retreading oven sheet PDF.

Pipeline:
  1. read_pages      – pdfplumber words with bottom-up baseline positions
  2. cluster_rows    – fragments within a y tolerance form one printed row
  3. parse_row       – size, width, tread code, customer, patches, scrap flag
  4. aggregate       – material groups (size + tread + width) and patch counts
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from sheet_pipeline import DocumentDecodeError, extract_worksheet, print_report
from sheet_policy import ParsingPolicy, load_policy


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Summarise material and patch usage from an oven sheet PDF.",
    )
    parser.add_argument("pdf", help="Path to the PDF file")
    parser.add_argument("--size", default="", help="Only show tire sizes containing this text")
    parser.add_argument("--tread", default="", help="Only show tread codes containing this text")
    parser.add_argument("--width", default="", help="Only show widths containing this text")
    parser.add_argument(
        "--tolerance",
        type=float, default=None, metavar="Y",
        help="Row grouping tolerance in document units (default: 5)",
    )
    parser.add_argument(
        "--policy",
        metavar="FILE",
        help="JSON file overriding keyword lists and other parsing settings",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show every parsed row and debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    path = Path(args.pdf)
    if not path.exists():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    try:
        policy = load_policy(args.policy) if args.policy else ParsingPolicy()
        if args.tolerance is not None:
            policy = replace(policy, row_tolerance=args.tolerance)
    except (OSError, ValueError) as exc:
        print(f"Error: bad parsing settings: {exc}", file=sys.stderr)
        return 1

    try:
        result = extract_worksheet(path.read_bytes(), policy)
    except DocumentDecodeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if not result.records:
        print("No table rows found in the document. Check the file format.")
        return 0

    print_report(result, args.size, args.tread, args.width, verbose=args.verbose)
    return 0


if __name__ == "__main__":
    sys.exit(main())
