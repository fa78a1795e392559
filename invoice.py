# invoice.py
from __future__ import annotations

import base64
import math
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union


class InvalidEdit(ValueError):
    pass


# -----------------------------
# Value types
# -----------------------------
@dataclass(frozen=True)
class EmbeddedImage:
    """
    Image bytes plus their MIME type. Only built by images.py, so an instance
    always holds data that decodes as an image.
    """
    mime_type: str
    data: bytes = field(repr=False)

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class BillTo:
    name: str = ""
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class EventDetails:
    date: str = ""
    time: str = ""
    location: str = ""


@dataclass(frozen=True)
class SectionLabels:
    # None -> the layout falls back to "Bill To" / "Event Details"
    bill_to: Optional[str] = None
    details: Optional[str] = None


@dataclass(frozen=True)
class LineItem:
    description: str = ""
    quantity: float = 1.0
    unit_price: float = 0.0


@dataclass(frozen=True)
class Invoice:
    title: str = ""
    issuer_name: str = ""
    bill_to: BillTo = BillTo()
    event_details: EventDetails = EventDetails()
    items: tuple[LineItem, ...] = ()
    notes: str = ""
    payment_instructions: str = ""
    signature_date: str = ""
    deposit: float = 0.0
    logo_image: Optional[EmbeddedImage] = None
    signature_image: Optional[EmbeddedImage] = None
    section_labels: SectionLabels = SectionLabels()
    theme_color: str = ""


# -----------------------------
# Arithmetic (computed, never stored)
# -----------------------------
def coerce_amount(raw: Any) -> float:
    """
    Permissive numeric parse: anything that isn't a finite, non-negative
    number becomes 0.0.
    """
    if isinstance(raw, bool):
        return 0.0
    try:
        if isinstance(raw, str):
            raw = raw.strip()
            if not raw:
                return 0.0
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def line_total(item: LineItem) -> float:
    return item.quantity * item.unit_price


def subtotal(invoice: Invoice) -> float:
    return sum((line_total(i) for i in invoice.items), 0.0)


def total_due(invoice: Invoice) -> float:
    # Not clamped: an overpaid deposit shows up as a negative amount due.
    return subtotal(invoice) - invoice.deposit


# -----------------------------
# Edits
# -----------------------------
@dataclass(frozen=True)
class SetField:
    path: str
    value: Any


@dataclass(frozen=True)
class AddItem:
    description: str = ""
    quantity: float = 1.0
    unit_price: float = 0.0


@dataclass(frozen=True)
class RemoveItem:
    index: int


@dataclass(frozen=True)
class UpdateItem:
    index: int
    field: str
    raw_value: Any


Edit = Union[SetField, AddItem, RemoveItem, UpdateItem]

_TEXT_FIELDS = {"title", "issuer_name", "notes", "payment_instructions", "signature_date", "theme_color"}
_AMOUNT_FIELDS = {"deposit"}
_IMAGE_FIELDS = {"logo_image", "signature_image"}
_NESTED_FIELDS = {
    "bill_to": {"name", "phone", "email"},
    "event_details": {"date", "time", "location"},
    "section_labels": {"bill_to", "details"},
}
_ITEM_FIELDS = {"description", "quantity", "unit_price"}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def set_field(invoice: Invoice, path: str, value: Any) -> Invoice:
    if not isinstance(path, str):
        raise InvalidEdit(f"Unknown field: {path!r}")
    head, _, leaf = path.partition(".")

    if leaf:
        allowed = _NESTED_FIELDS.get(head)
        if not allowed or leaf not in allowed:
            raise InvalidEdit(f"Unknown field: {path!r}")
        if head == "section_labels":
            new_value = None if value is None else str(value)
        else:
            new_value = _text(value)
        nested = replace(getattr(invoice, head), **{leaf: new_value})
        return replace(invoice, **{head: nested})

    if head in _TEXT_FIELDS:
        return replace(invoice, **{head: _text(value)})
    if head in _AMOUNT_FIELDS:
        return replace(invoice, **{head: coerce_amount(value)})
    if head in _IMAGE_FIELDS:
        if value is not None and not isinstance(value, EmbeddedImage):
            raise InvalidEdit(f"{head} expects an EmbeddedImage or None")
        return replace(invoice, **{head: value})
    raise InvalidEdit(f"Unknown field: {path!r}")


def add_item(invoice: Invoice, description: str = "", quantity: Any = 1, unit_price: Any = 0) -> Invoice:
    item = LineItem(
        description=_text(description),
        quantity=coerce_amount(quantity),
        unit_price=coerce_amount(unit_price),
    )
    return replace(invoice, items=invoice.items + (item,))


def remove_item(invoice: Invoice, index: int) -> Invoice:
    if not 0 <= index < len(invoice.items):
        return invoice
    return replace(invoice, items=invoice.items[:index] + invoice.items[index + 1:])


def update_item(invoice: Invoice, index: int, field_name: str, raw_value: Any) -> Invoice:
    if not isinstance(field_name, str) or field_name not in _ITEM_FIELDS:
        raise InvalidEdit(f"Unknown item field: {field_name!r}")
    if not 0 <= index < len(invoice.items):
        return invoice

    if field_name == "description":
        value = _text(raw_value)
    else:
        value = coerce_amount(raw_value)

    items = list(invoice.items)
    items[index] = replace(items[index], **{field_name: value})
    return replace(invoice, items=tuple(items))


def apply(invoice: Invoice, edit: Edit) -> Invoice:
    """Apply one edit and return the new invoice. The input is never modified."""
    if isinstance(edit, SetField):
        return set_field(invoice, edit.path, edit.value)
    if isinstance(edit, AddItem):
        return add_item(invoice, edit.description, edit.quantity, edit.unit_price)
    if isinstance(edit, RemoveItem):
        return remove_item(invoice, edit.index)
    if isinstance(edit, UpdateItem):
        return update_item(invoice, edit.index, edit.field, edit.raw_value)
    raise InvalidEdit(f"Unsupported edit: {edit!r}")
