from __future__ import annotations

import io
import logging
import warnings
from collections.abc import Callable, Iterable, Iterator

import pdfplumber
from pdfminer.psparser import PSException
from pdfplumber.utils.exceptions import PdfminerException

from sheet_fields import parse_row
from sheet_models import ExtractionResult, LogicalRow, Record, TextFragment
from sheet_policy import ParsingPolicy
from sheet_rows import cluster_rows, page_fragments
from sheet_summary import aggregate, filter_material_groups, filter_records, summarize

logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", module="pdfminer")

logger = logging.getLogger(__name__)

Decoder = Callable[[bytes], Iterable[list[TextFragment]]]

_DECODE_ERRORS = (PdfminerException, PSException)


class DocumentDecodeError(Exception):
    """The document could not be opened or read as a paginated PDF."""


def read_pages(data: bytes) -> Iterator[list[TextFragment]]:
    """Yield each page's fragments in page order."""
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            if not pdf.pages:
                raise DocumentDecodeError("document has no pages")
            for page in pdf.pages:
                yield page_fragments(page)
    except _DECODE_ERRORS as exc:
        raise DocumentDecodeError(f"unable to read document: {exc}") from exc


def parse_page(
    rows: list[LogicalRow],
    next_sequence: int,
    policy: ParsingPolicy,
) -> tuple[list[Record], int]:
    """Parse a page's rows top to bottom; return the records and the next free number."""
    records: list[Record] = []
    for row in rows:
        rec = parse_row(row.text, next_sequence, policy)
        if rec is not None:
            records.append(rec)
            next_sequence += 1
    return records, next_sequence


def extract_worksheet(
    data: bytes,
    policy: ParsingPolicy | None = None,
    decoder: Decoder = read_pages,
) -> ExtractionResult:
    """Run the whole document through clustering, parsing and aggregation."""
    policy = policy or ParsingPolicy()
    records: list[Record] = []
    next_sequence = 1

    for page_number, fragments in enumerate(decoder(data), 1):
        rows = cluster_rows(fragments, policy.row_tolerance)
        page_records, next_sequence = parse_page(rows, next_sequence, policy)
        logger.debug(
            "page %d: %d fragments, %d rows, %d records",
            page_number, len(fragments), len(rows), len(page_records),
        )
        records.extend(page_records)

    return aggregate(records)


def print_report(
    result: ExtractionResult,
    size: str = "",
    tread: str = "",
    width: str = "",
    verbose: bool = False,
) -> None:
    summary = summarize(result)

    print("=" * 64)
    print("OVEN SHEET")
    print("=" * 64)
    print(f"\n  Rows:        {summary.total_rows}")
    print(f"  Production:  {summary.production_rows}")
    print(f"  Scrap:       {summary.scrap_rows}")
    print(f"  Materials:   {summary.distinct_materials} combinations")

    groups = filter_material_groups(result.material_groups, size, tread, width)
    print(f"\nMaterial usage ({sum(g.count for g in groups)} pcs):\n")
    if not groups:
        print("  (no matching materials)")
    for g in groups:
        print(f"  {g.tire_size:<12} {g.tread_code:<8} {g.width:>5}  {g.count:>4}")

    print("\nPatch usage:\n")
    if not result.patch_groups:
        print("  (no patches)")
    for p in result.patch_groups:
        print(f"  {p.patch_code:<8} {p.count:>4}")

    if verbose:
        rows = filter_records(result.records, size, tread, width)
        print(f"\nDetail ({len(rows)} rows):\n")
        for rec in rows:
            flags = " SCRAP" if rec.is_scrap else ""
            if rec.ambiguous:
                flags += " ?"
            print(
                f"  {rec.sequence_number:>4}  {rec.customer[:24]:<24} {rec.tire_size:<12} "
                f"{rec.tread_code:<8} {rec.width:>5}  {rec.patches}{flags}"
            )

    print()
