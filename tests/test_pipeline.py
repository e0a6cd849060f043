import pytest

from sheet_models import TextFragment
from sheet_pipeline import DocumentDecodeError, extract_worksheet, print_report, read_pages
from sheet_policy import ParsingPolicy


def _row(y, *words):
    return [TextFragment(text=w, x=40.0 * i, y=y) for i, w in enumerate(words)]


PAGE_ONE = (
    _row(780, "Nr", "Klient", "Mõõt", "Lint", "Laius", "Paigad")
    + _row(750, "1", "Acme", "Ltd", "315/80/225", "NRD", "260", "Ct20,", "Ct22")
    + _row(730.5, "2", "Acme", "Ltd", "315/80/225", "NRD", "260")
    + _row(710, "3", "Veod", "OÜ", "315/80/225", "NRD", "260", "crack", "detected")
    + _row(20, "Page", "1", "/", "2")
)
PAGE_TWO = (
    _row(780, "4", "Veod", "OÜ", "385/65/225", "WMP", "270", "Ct22")
    + _row(760, "utiil,", "rehv", "katki")
)


def _decoder(*pages):
    def decode(data):
        assert data == b"%PDF-fake"
        yield from pages
    return decode


def test_records_are_numbered_across_pages():
    result = extract_worksheet(b"%PDF-fake", decoder=_decoder(PAGE_ONE, PAGE_TWO))
    assert [r.sequence_number for r in result.records] == [1, 2, 3, 4]
    assert [r.customer for r in result.records] == ["Acme Ltd", "Acme Ltd", "Veod OÜ", "Veod OÜ"]
    assert [r.is_scrap for r in result.records] == [False, False, True, False]


def test_groups_skip_scrap_rows():
    result = extract_worksheet(b"%PDF-fake", decoder=_decoder(PAGE_ONE, PAGE_TWO))
    assert [(g.tire_size, g.tread_code, g.width, g.count) for g in result.material_groups] == [
        ("315/80/225", "NRD", "260", 2),
        ("385/65/225", "WMP", "270", 1),
    ]
    assert [(p.patch_code, p.count) for p in result.patch_groups] == [("Ct22", 2), ("Ct20", 1)]


def test_unordered_fragments_still_form_rows():
    page = list(reversed(PAGE_ONE))
    result = extract_worksheet(b"%PDF-fake", decoder=_decoder(page))
    assert [r.tread_code for r in result.records] == ["NRD", "NRD", "NRD"]


def test_tight_tolerance_splits_jittered_rows():
    jittered = [
        TextFragment("1 Acme Ltd", 0, 500),
        TextFragment("315/80/225 NRD 260", 120, 502),
    ]
    loose = extract_worksheet(b"%PDF-fake", decoder=_decoder(jittered))
    assert len(loose.records) == 1

    tight = extract_worksheet(
        b"%PDF-fake", ParsingPolicy(row_tolerance=1.0), decoder=_decoder(jittered)
    )
    assert tight.records[0].customer == "Unspecified"


def test_document_without_table_is_empty_not_an_error():
    result = extract_worksheet(b"%PDF-fake", decoder=_decoder(_row(500, "Hello", "there", "world")))
    assert result.records == []
    assert result.material_groups == []
    assert result.patch_groups == []


def test_decode_failure_is_fatal():
    def failing(data):
        yield PAGE_ONE
        raise DocumentDecodeError("page 2 is corrupt")

    with pytest.raises(DocumentDecodeError):
        extract_worksheet(b"%PDF-fake", decoder=failing)


def test_read_pages_rejects_garbage():
    with pytest.raises(DocumentDecodeError):
        list(read_pages(b"this is not a pdf at all"))


def _empty_pdf():
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [] /Count 0 >>",
    ]
    out = b"%PDF-1.4\n"
    offsets = []
    for num, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%EOF\n" % xref_at
    return out


def test_read_pages_rejects_document_without_pages():
    with pytest.raises(DocumentDecodeError, match="no pages"):
        list(read_pages(_empty_pdf()))


def test_print_report(capsys):
    result = extract_worksheet(b"%PDF-fake", decoder=_decoder(PAGE_ONE, PAGE_TWO))
    print_report(result, tread="wmp", verbose=True)
    out = capsys.readouterr().out
    assert "Scrap:       1" in out
    assert "385/65/225" in out
    assert "Material usage (1 pcs)" in out
    assert "Detail (1 rows)" in out
