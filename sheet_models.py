from __future__ import annotations

from dataclasses import dataclass, field

UNKNOWN = "—"
UNSPECIFIED_CUSTOMER = "Unspecified"


@dataclass(frozen=True)
class TextFragment:
    """One run of text with its baseline position (bottom-up y)."""

    text: str
    x: float
    y: float


@dataclass
class LogicalRow:
    """One printed table row, reconstructed from fragments sharing a y band."""

    y: float
    fragments: list[TextFragment]
    text: str


@dataclass(frozen=True)
class Record:
    """A single production row from the oven sheet."""

    sequence_number: int
    customer: str
    tire_size: str
    tread_code: str = UNKNOWN
    width: str = UNKNOWN
    patches: str = UNKNOWN
    is_scrap: bool = False
    ambiguous: bool = False


@dataclass
class MaterialGroup:
    tire_size: str
    tread_code: str
    width: str
    count: int = 0

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.tire_size, self.tread_code, self.width)


@dataclass
class PatchGroup:
    patch_code: str
    count: int = 0


@dataclass
class ExtractionResult:
    records: list[Record] = field(default_factory=list)
    material_groups: list[MaterialGroup] = field(default_factory=list)
    patch_groups: list[PatchGroup] = field(default_factory=list)


@dataclass
class WorksheetSummary:
    """Headline counts shown above the material tables."""

    total_rows: int
    production_rows: int
    scrap_rows: int
    distinct_materials: int
    material_pieces: int
