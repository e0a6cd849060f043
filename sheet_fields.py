from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sheet_models import UNKNOWN, UNSPECIFIED_CUSTOMER, Record
from sheet_policy import ParsingPolicy

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_THREE_DIGIT_RE = re.compile(r"\b\d{3}\b")
_WORD_RE = re.compile(r"\S+")
_LEADING_INDEX_RE = re.compile(r"^\d+\s+")
_HAS_LETTER_RE = re.compile(r"[^\W\d_]")

DEFAULT_POLICY = ParsingPolicy()


@dataclass
class _WidthMatch:
    value: str
    start: int
    distinct_candidates: int


def normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _is_header(text: str, policy: ParsingPolicy) -> bool:
    lowered = text.lower()
    return any(
        customer.lower() in lowered and size.lower() in lowered
        for customer, size in policy.header_markers
    )


def _rejection_reason(text: str, policy: ParsingPolicy) -> str | None:
    if _is_header(text, policy):
        return "header"
    if len(text) < policy.min_row_length:
        return "too short"
    if policy.pagination_marker and policy.pagination_marker.lower() in text.lower():
        return "pagination"
    return None


def _find_width(after_size: str, size: str, policy: ParsingPolicy) -> _WidthMatch | None:
    """Pick the last three-digit token in the width range that is not part of *size*."""
    candidates = [
        m
        for m in _THREE_DIGIT_RE.finditer(after_size)
        if policy.width_min <= int(m.group()) <= policy.width_max and m.group() not in size
    ]
    if not candidates:
        return None
    last = candidates[-1]
    return _WidthMatch(
        value=last.group(),
        start=last.start(),
        distinct_candidates=len({m.group() for m in candidates}),
    )


def _tread_before(after_size: str, width_start: int, policy: ParsingPolicy) -> str | None:
    words = _WORD_RE.findall(after_size[:width_start])
    if not words:
        return None
    word = words[-1].strip(",;:.")
    if len(word) < 2 or not _HAS_LETTER_RE.search(word):
        return None
    if word.lower() in policy.denylist:
        return None
    return word.upper()


def _known_tread(text: str, policy: ParsingPolicy) -> str | None:
    if policy.known_tread_re is None:
        return None
    m = policy.known_tread_re.search(text)
    return m.group(1).upper() if m else None


def _customer(before_size: str) -> str:
    customer = _LEADING_INDEX_RE.sub("", before_size.strip()).replace(",", "").strip()
    return customer or UNSPECIFIED_CUSTOMER


def _patches(text: str, policy: ParsingPolicy) -> str:
    codes = [m.group() for m in policy.patch_re.finditer(text)]
    return ", ".join(codes) if codes else UNKNOWN


def classify_scrap(text: str, policy: ParsingPolicy = DEFAULT_POLICY) -> bool:
    """Return True when *text* names a defect and no "still fit" phrase overrides it.

    Callers pass the part of the row after the tire size so a customer name
    can never trigger the flag.
    """
    if policy.reject_re is None or not policy.reject_re.search(text):
        return False
    if policy.exception_re is not None and policy.exception_re.search(text):
        return False
    return True


def parse_row(
    text: str,
    sequence_number: int,
    policy: ParsingPolicy = DEFAULT_POLICY,
) -> Record | None:
    """Turn one row's text into a Record, or None when it is not a data row."""
    clean = normalize(text)

    reason = _rejection_reason(clean, policy)
    if reason is not None:
        logger.debug("dropping row (%s): %r", reason, clean)
        return None

    size_match = policy.size_re.search(clean)
    if size_match is None:
        if policy.reject_re is not None and policy.reject_re.search(clean):
            logger.debug("dropping scrap remark without size: %r", clean)
        else:
            logger.debug("dropping row without size: %r", clean)
        return None

    size = size_match.group()
    before_size = clean[: size_match.start()]
    after_size = clean[size_match.end():]

    width = _find_width(after_size, size, policy)
    ambiguous = False
    tread = None
    if width is not None:
        tread = _tread_before(after_size, width.start, policy)
        ambiguous = width.distinct_candidates > 1
    if tread is None:
        tread = _known_tread(after_size, policy) or _known_tread(clean, policy)
        if tread is not None:
            ambiguous = True

    return Record(
        sequence_number=sequence_number,
        customer=_customer(before_size),
        tire_size=size,
        tread_code=tread or UNKNOWN,
        width=width.value if width is not None else UNKNOWN,
        patches=_patches(clean, policy),
        is_scrap=classify_scrap(after_size, policy),
        ambiguous=ambiguous,
    )
