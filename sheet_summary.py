from __future__ import annotations

from sheet_models import (
    UNKNOWN,
    ExtractionResult,
    MaterialGroup,
    PatchGroup,
    Record,
    WorksheetSummary,
)


def material_groups(records: list[Record]) -> list[MaterialGroup]:
    """Count non-scrap records per (size, tread, width), most used first."""
    groups: dict[tuple[str, str, str], MaterialGroup] = {}
    for rec in records:
        if rec.is_scrap or rec.tread_code in (UNKNOWN, ""):
            continue
        key = (rec.tire_size, rec.tread_code, rec.width)
        group = groups.get(key)
        if group is None:
            group = groups[key] = MaterialGroup(rec.tire_size, rec.tread_code, rec.width)
        group.count += 1
    # sorted() is stable, so ties keep first-seen order
    return sorted(groups.values(), key=lambda g: g.count, reverse=True)


def patch_groups(records: list[Record]) -> list[PatchGroup]:
    counts: dict[str, int] = {}
    for rec in records:
        if rec.is_scrap or rec.patches in (UNKNOWN, ""):
            continue
        for code in rec.patches.split(","):
            code = code.strip()
            if code:
                counts[code] = counts.get(code, 0) + 1
    return [
        PatchGroup(patch_code=code, count=n)
        for code, n in sorted(counts.items(), key=lambda item: item[1], reverse=True)
    ]


def aggregate(records: list[Record]) -> ExtractionResult:
    return ExtractionResult(
        records=list(records),
        material_groups=material_groups(records),
        patch_groups=patch_groups(records),
    )


def summarize(result: ExtractionResult) -> WorksheetSummary:
    scrap = sum(1 for rec in result.records if rec.is_scrap)
    return WorksheetSummary(
        total_rows=len(result.records),
        production_rows=len(result.records) - scrap,
        scrap_rows=scrap,
        distinct_materials=len(result.material_groups),
        material_pieces=sum(g.count for g in result.material_groups),
    )


def _matches(value: str, needle: str) -> bool:
    return not needle or needle.lower() in value.lower()


def filter_records(
    records: list[Record],
    size: str = "",
    tread: str = "",
    width: str = "",
) -> list[Record]:
    """Case-insensitive substring filter on the material columns."""
    return [
        rec
        for rec in records
        if _matches(rec.tire_size, size) and _matches(rec.tread_code, tread) and _matches(rec.width, width)
    ]


def filter_material_groups(
    groups: list[MaterialGroup],
    size: str = "",
    tread: str = "",
    width: str = "",
) -> list[MaterialGroup]:
    return [
        g
        for g in groups
        if _matches(g.tire_size, size) and _matches(g.tread_code, tread) and _matches(g.width, width)
    ]
