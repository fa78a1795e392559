# tests/test_layout.py
import pytest

from companies import default_invoice
from hydration import dumps, hydrate
from invoice import Invoice, LineItem, SectionLabels, SetField, apply
from layout import (
    DEFAULT_BILL_TO_LABEL, DEFAULT_DETAILS_LABEL, DEFAULT_THEME_COLOR, FOOTER_TEXT, ITEM_COLUMNS,
    HeaderBlock, InfoBlock, ItemTable, NotesBlock, SignatureBlock, SummaryBlock,
    display_date, layout, money, quantity_text, resolve_theme_color,
)


def _block(doc, kind):
    return next(b for b in doc.blocks if isinstance(b, kind))


def test_block_order():
    doc = layout(default_invoice("ROYAL_TURBAN"))
    assert [type(b) for b in doc.blocks] == [
        HeaderBlock, InfoBlock, ItemTable, SummaryBlock, NotesBlock, SignatureBlock,
    ]
    assert doc.footer == FOOTER_TEXT
    assert doc.title == "Invoice #101"


def test_equal_invoices_give_equal_documents():
    inv = default_invoice("ESCALADE_RIDE")
    copy = hydrate(dumps(inv), Invoice())
    assert copy == inv
    assert layout(copy) == layout(inv)


def test_item_rows_and_summary():
    doc = layout(default_invoice("ESCALADE_RIDE"))
    table = _block(doc, ItemTable)
    assert table.columns == ITEM_COLUMNS
    assert table.rows[0] == ("Luxury Limo Service (Hours)", "3", "$120.00", "$360.00")
    assert table.numeric_columns == frozenset({1, 2, 3})
    assert abs(sum(table.column_widths) - 1.0) < 1e-9

    summary = _block(doc, SummaryBlock)
    assert [(r.label, r.value) for r in summary.rows] == [
        ("Subtotal:", "$477.00"),
        ("Deposit:", "$100.00"),
        ("Total Due:", "$377.00"),
    ]
    assert [r.emphasized for r in summary.rows] == [False, False, True]


def test_empty_items_still_lay_out():
    doc = layout(Invoice(items=(), deposit=50))
    assert _block(doc, ItemTable).rows == ()
    values = [r.value for r in _block(doc, SummaryBlock).rows]
    assert values == ["$0.00", "$50.00", "$-50.00"]


def test_logo_only_when_present(logo):
    inv = Invoice(title="T")
    assert _block(layout(inv), HeaderBlock).logo is None
    header = _block(layout(apply(inv, SetField("logo_image", logo))), HeaderBlock)
    assert header.logo.image == logo
    assert (header.logo.max_width, header.logo.max_height) == (80.0, 80.0)


def test_signature_boxes(signature):
    inv = Invoice(issuer_name="Escalade Ride Inc.", signature_date="2025-11-02")
    sigs = _block(layout(inv), SignatureBlock)
    assert sigs.client.caption == "Client's Signature"
    assert sigs.client.image is None
    assert sigs.issuer.caption == "Escalade Ride Inc. Signature"
    assert sigs.issuer.image is None
    assert sigs.issuer.date_line == "Date: November 2, 2025"

    sigs = _block(layout(apply(inv, SetField("signature_image", signature))), SignatureBlock)
    assert sigs.issuer.image.image == signature


def test_blank_issuer_name_caption():
    assert _block(layout(Invoice()), SignatureBlock).issuer.caption == "Signature"


def test_section_labels_fall_back():
    info = _block(layout(Invoice()), InfoBlock)
    assert info.left.heading == DEFAULT_BILL_TO_LABEL
    assert info.right.heading == DEFAULT_DETAILS_LABEL

    inv = Invoice(section_labels=SectionLabels(bill_to="Passenger", details="Trip"))
    info = _block(layout(inv), InfoBlock)
    assert (info.left.heading, info.right.heading) == ("Passenger", "Trip")


def test_bill_to_skips_blank_lines():
    inv = apply(Invoice(), SetField("bill_to.name", "Ann"))
    inv = apply(inv, SetField("bill_to.email", "ann@example.com"))
    info = _block(layout(inv), InfoBlock)
    assert info.left.lines == ("Ann", "ann@example.com")


def test_details_lines():
    inv = apply(Invoice(), SetField("event_details.date", "2025-11-02"))
    inv = apply(inv, SetField("event_details.location", "JFK"))
    info = _block(layout(inv), InfoBlock)
    assert info.right.lines == ("Date: November 2, 2025", "Time: ", "Location: JFK")


@pytest.mark.parametrize("value, expected", [
    (0, "$0.00"),
    (150, "$150.00"),
    (1234.5, "$1,234.50"),
    (-50, "$-50.00"),
])
def test_money(value, expected):
    assert money(value) == expected


def test_quantity_text():
    assert quantity_text(3.0) == "3"
    assert quantity_text(1.5) == "1.5"


@pytest.mark.parametrize("value, expected", [
    ("2025-11-02", "November 2, 2025"),
    ("2025-01-31", "January 31, 2025"),
    ("", ""),
    ("next Tuesday", "next Tuesday"),
    ("2025-13-40", "2025-13-40"),
])
def test_display_date(value, expected):
    assert display_date(value) == expected


@pytest.mark.parametrize("value, expected", [
    ("", DEFAULT_THEME_COLOR),
    (None, DEFAULT_THEME_COLOR),
    ("not a colour", DEFAULT_THEME_COLOR),
    ("#F97316", "#f97316"),
    ("red", "red"),
])
def test_resolve_theme_color(value, expected):
    assert resolve_theme_color(value) == expected


def test_document_theme_color_comes_from_invoice():
    assert layout(default_invoice("ROYAL_TURBAN")).theme_color == "#f97316"
    assert layout(Invoice()).theme_color == DEFAULT_THEME_COLOR


def test_long_item_list_is_not_truncated():
    items = tuple(LineItem(f"Item {n}", 1, n) for n in range(150))
    assert len(_block(layout(Invoice(items=items)), ItemTable).rows) == 150


@pytest.mark.parametrize("value, expected", [
    (1234567.0, "1234567"),
    (0.0, "0"),
    (2.5, "2.5"),
    (0.1, "0.1"),
])
def test_quantity_text_never_uses_exponents(value, expected):
    assert quantity_text(value) == expected


def test_large_quantity_row_matches_its_total():
    table = _block(layout(Invoice(items=(LineItem("Bulk", 1234567, 1),))), ItemTable)
    assert table.rows[0] == ("Bulk", "1234567", "$1.00", "$1,234,567.00")
