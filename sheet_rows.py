from __future__ import annotations

import pdfplumber

from sheet_models import LogicalRow, TextFragment

DEFAULT_ROW_TOLERANCE = 5.0


def cluster_rows(
    fragments: list[TextFragment],
    tolerance: float = DEFAULT_ROW_TOLERANCE,
) -> list[LogicalRow]:
    """Group a page's fragments into rows, top of page first.

    Each fragment joins the first open row whose anchor y is within
    *tolerance*; otherwise it opens a new row and becomes its anchor.
    Anchors are never re-centred, so arrival order can matter when the
    decoder does not emit fragments in reading order.
    """
    anchors: list[float] = []
    buckets: list[list[TextFragment]] = []

    for frag in fragments:
        for i, anchor in enumerate(anchors):
            delta = abs(anchor - frag.y)
            # zero tolerance still groups identical baselines
            if delta < tolerance or delta == 0:
                buckets[i].append(frag)
                break
        else:
            anchors.append(frag.y)
            buckets.append([frag])

    order = sorted(range(len(anchors)), key=lambda i: anchors[i], reverse=True)
    rows: list[LogicalRow] = []
    for i in order:
        row = sorted(buckets[i], key=lambda f: f.x)
        rows.append(
            LogicalRow(y=anchors[i], fragments=row, text=" ".join(f.text for f in row))
        )
    return rows


def page_fragments(page: pdfplumber.page.Page) -> list[TextFragment]:
    """Turn a pdfplumber page into fragments with bottom-up y coordinates."""
    fragments: list[TextFragment] = []
    for word in page.extract_words():
        text = word["text"]
        if not text.strip():
            continue
        fragments.append(
            TextFragment(text=text, x=float(word["x0"]), y=float(page.height - word["bottom"]))
        )
    return fragments
