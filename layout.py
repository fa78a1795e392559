# layout.py
"""
Pure transformation from an Invoice to a Document.

A Document is a tree of frozen dataclasses describing what goes on the page
and in which order. It carries no reportlab objects, so two structurally
equal invoices always give structurally equal documents; pdf_service turns
the tree into flowables and lets platypus handle page breaks.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from reportlab.lib import colors

from invoice import EmbeddedImage, Invoice, line_total, subtotal, total_due

DEFAULT_THEME_COLOR = "#0f172a"
DEFAULT_BILL_TO_LABEL = "Bill To"
DEFAULT_DETAILS_LABEL = "Event Details"
FOOTER_TEXT = "Thank You For Your Business!"
PAGE_SIZE = "A4"

ITEM_COLUMNS = ("DETAILS", "QUANTITY", "PRICE", "TOTAL")
ITEM_COLUMN_WIDTHS = (0.55, 0.15, 0.15, 0.15)


# -----------------------------
# Document tree
# -----------------------------
@dataclass(frozen=True)
class ImageElement:
    image: EmbeddedImage
    max_width: float
    max_height: float


@dataclass(frozen=True)
class HeaderBlock:
    logo: Optional[ImageElement]
    issuer_name: str
    title: str


@dataclass(frozen=True)
class InfoColumn:
    heading: str
    lines: tuple[str, ...]


@dataclass(frozen=True)
class InfoBlock:
    left: InfoColumn
    right: InfoColumn


@dataclass(frozen=True)
class ItemTable:
    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    column_widths: tuple[float, ...]  # fractions of the frame width
    numeric_columns: frozenset[int]


@dataclass(frozen=True)
class SummaryRow:
    label: str
    value: str
    emphasized: bool = False


@dataclass(frozen=True)
class SummaryBlock:
    rows: tuple[SummaryRow, ...]


@dataclass(frozen=True)
class NotesBlock:
    notes: str
    payment_instructions: str


@dataclass(frozen=True)
class SignatureBox:
    caption: str
    image: Optional[ImageElement]
    date_line: str


@dataclass(frozen=True)
class SignatureBlock:
    client: SignatureBox
    issuer: SignatureBox


Block = Union[HeaderBlock, InfoBlock, ItemTable, SummaryBlock, NotesBlock, SignatureBlock]


@dataclass(frozen=True)
class Document:
    title: str
    page_size: str
    theme_color: str
    blocks: tuple[Block, ...]
    footer: str


# -----------------------------
# Formatting helpers
# -----------------------------
def money(value) -> str:
    """The only money formatter: "$1,234.50", "$-50.00"."""
    return f"${float(value):,.2f}"


def quantity_text(value: float) -> str:
    # "1234567", "2.5": never exponent notation
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def display_date(value: str) -> str:
    """
    "2025-11-02" -> "November 2, 2025". The stored value is read as a plain
    calendar date (no UTC instant), so the day never shifts with the timezone.
    Anything that isn't an ISO date is shown as typed.
    """
    raw = (value or "").strip()
    if not raw:
        return ""
    try:
        d = date.fromisoformat(raw[:10]) if re.match(r"^\d{4}-\d{2}-\d{2}", raw) else None
    except ValueError:
        d = None
    if d is None:
        return raw
    return f"{d:%B} {d.day}, {d.year}"


def resolve_theme_color(value: Optional[str]) -> str:
    raw = (value or "").strip()
    if not raw:
        return DEFAULT_THEME_COLOR
    try:
        parsed = colors.toColor(raw)
    except ValueError:
        return DEFAULT_THEME_COLOR
    if not isinstance(parsed, colors.Color):
        return DEFAULT_THEME_COLOR
    return raw.lower()


# -----------------------------
# Blocks
# -----------------------------
def _header(inv: Invoice) -> HeaderBlock:
    logo = None
    if inv.logo_image is not None:
        logo = ImageElement(image=inv.logo_image, max_width=80.0, max_height=80.0)
    return HeaderBlock(logo=logo, issuer_name=inv.issuer_name, title=inv.title)


def _info(inv: Invoice) -> InfoBlock:
    bill_to_lines = tuple(
        ln for ln in (inv.bill_to.name, inv.bill_to.phone, inv.bill_to.email) if ln.strip()
    )
    left = InfoColumn(
        heading=inv.section_labels.bill_to or DEFAULT_BILL_TO_LABEL,
        lines=bill_to_lines,
    )
    right = InfoColumn(
        heading=inv.section_labels.details or DEFAULT_DETAILS_LABEL,
        lines=(
            f"Date: {display_date(inv.event_details.date)}",
            f"Time: {inv.event_details.time}",
            f"Location: {inv.event_details.location}",
        ),
    )
    return InfoBlock(left=left, right=right)


def _items(inv: Invoice) -> ItemTable:
    rows = tuple(
        (item.description, quantity_text(item.quantity), money(item.unit_price), money(line_total(item)))
        for item in inv.items
    )
    return ItemTable(
        columns=ITEM_COLUMNS,
        rows=rows,
        column_widths=ITEM_COLUMN_WIDTHS,
        numeric_columns=frozenset({1, 2, 3}),
    )


def _summary(inv: Invoice) -> SummaryBlock:
    return SummaryBlock(rows=(
        SummaryRow("Subtotal:", money(subtotal(inv))),
        SummaryRow("Deposit:", money(inv.deposit)),
        SummaryRow("Total Due:", money(total_due(inv)), emphasized=True),
    ))


def _signatures(inv: Invoice) -> SignatureBlock:
    client = SignatureBox(
        caption="Client's Signature",
        image=None,
        date_line="Date: ________________",
    )
    sig = None
    if inv.signature_image is not None:
        sig = ImageElement(image=inv.signature_image, max_width=120.0, max_height=40.0)
    issuer_caption = f"{inv.issuer_name} Signature" if inv.issuer_name.strip() else "Signature"
    issuer = SignatureBox(
        caption=issuer_caption,
        image=sig,
        date_line=f"Date: {display_date(inv.signature_date)}",
    )
    return SignatureBlock(client=client, issuer=issuer)


def layout(invoice: Invoice) -> Document:
    blocks = (
        _header(invoice),
        _info(invoice),
        _items(invoice),
        _summary(invoice),
        NotesBlock(notes=invoice.notes, payment_instructions=invoice.payment_instructions),
        _signatures(invoice),
    )
    return Document(
        title=invoice.title,
        page_size=PAGE_SIZE,
        theme_color=resolve_theme_color(invoice.theme_color),
        blocks=blocks,
        footer=FOOTER_TEXT,
    )
