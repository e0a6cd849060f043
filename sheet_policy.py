from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields
from pathlib import Path


@dataclass
class ParsingPolicy:
    """Tunables for row reconstruction and field heuristics."""

    # Max y distance (document units) between a fragment and a row's anchor.
    row_tolerance: float = 5.0
    # Rows shorter than this after whitespace normalisation are noise.
    min_row_length: int = 10
    pagination_marker: str = "page"
    # A row containing both labels of any pair is the table header.
    header_markers: list[tuple[str, str]] = field(
        default_factory=lambda: [("Klient", "Mõõt"), ("Customer", "Size")]
    )
    size_pattern: str = r"\b\d{3}/\d{2,3}(?:/\d{2,3})?\b"
    width_min: int = 101
    width_max: int = 499
    # Fallback when no width anchors the tread code. Order matters.
    known_tread_codes: list[str] = field(
        default_factory=lambda: [
            "nrd", "wts", "wmp", "kdy", "mix", "kzy", "ipd", "za", "v", "bus100", "bus400",
        ]
    )
    tread_denylist: list[str] = field(
        default_factory=lambda: [
            "original", "originaal", "retreading", "taastamine", "pealetõmme",
            "michelin", "continental", "bridgestone", "goodyear", "hankook",
        ]
    )
    patch_pattern: str = r"\b(?:Ct\d+|C\d+|[a-z]{2}\d+)\b"
    reject_keywords: list[str] = field(
        default_factory=lambda: [
            "scrap", "reject", "cut", "damaged", "crack", "hole", "bulge",
            "wire exposed", "separation",
            "utiil", "praak", "lõige", "vigastus", "pragu", "auk", "mull",
            "traat väljas", "eraldumine",
        ]
    )
    # Defect noted, but the tire still goes into the oven.
    exception_phrases: list[str] = field(
        default_factory=lambda: ["fit for oven", "sobib ahju", "ahju sobib"]
    )

    def __post_init__(self) -> None:
        if self.row_tolerance < 0:
            raise ValueError("row_tolerance must not be negative")
        if self.width_min > self.width_max:
            raise ValueError("width_min must not exceed width_max")
        self.header_markers = [tuple(pair) for pair in self.header_markers]
        self.size_re = re.compile(self.size_pattern)
        self.patch_re = re.compile(self.patch_pattern, re.IGNORECASE)
        self.reject_re = _keyword_regex(self.reject_keywords)
        self.exception_re = _keyword_regex(self.exception_phrases)
        self.known_tread_re = _code_regex(self.known_tread_codes)
        self.denylist = frozenset(word.lower() for word in self.tread_denylist)


def _keyword_regex(words: list[str]) -> re.Pattern | None:
    words = [w for w in words if w]
    if not words:
        return None
    alternatives = "|".join(re.escape(w) for w in words)
    return re.compile(r"\b(?:" + alternatives + r")", re.IGNORECASE)


def _code_regex(codes: list[str]) -> re.Pattern | None:
    codes = [c for c in codes if c]
    if not codes:
        return None
    alternatives = "|".join(re.escape(c) for c in codes)
    return re.compile(r"\b(" + alternatives + r")\b", re.IGNORECASE)


def load_policy(path: str | Path) -> ParsingPolicy:
    """Build a policy from a JSON file whose keys override the defaults."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"policy file {path} must hold a JSON object")

    known = {f.name for f in fields(ParsingPolicy)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"unknown policy keys: {', '.join(unknown)}")
    try:
        return ParsingPolicy(**raw)
    except TypeError as exc:
        raise ValueError(f"invalid value in policy file {path}: {exc}") from exc
