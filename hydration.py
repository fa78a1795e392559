# hydration.py
"""
Reconcile a persisted draft with a company's default invoice.

Persisted drafts use the wire names below (the same camelCase keys older
records were written with). Each field is read through a parser that either
returns ``Present(value)`` or ``ABSENT``; absent or malformed fields keep the
default's value, so a partially corrupt record never blocks editing and a
record written before a field existed still gets a sane value for it.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar, Union

from images import parse_data_url
from invoice import BillTo, EventDetails, Invoice, LineItem, SectionLabels

T = TypeVar("T")


@dataclass(frozen=True)
class Present(Generic[T]):
    value: T


class _Absent:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

Parsed = Union[Present[T], _Absent]
Parser = Callable[[Any], Parsed]


# -----------------------------
# Field parsers
# -----------------------------
def _parse_text(raw: Any) -> Parsed:
    return Present(raw) if isinstance(raw, str) else ABSENT


def _parse_label(raw: Any) -> Parsed:
    # null is a valid persisted value: "use the built-in label"
    if raw is None or isinstance(raw, str):
        return Present(raw)
    return ABSENT


def _parse_amount(raw: Any) -> Parsed:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return ABSENT
    try:
        value = float(raw)
    except OverflowError:
        return ABSENT
    if not math.isfinite(value) or value < 0:
        return ABSENT
    return Present(value)


def _parse_image(raw: Any) -> Parsed:
    image = parse_data_url(raw)
    return Present(image) if image is not None else ABSENT


def _parse_item(raw: Any) -> Parsed:
    if not isinstance(raw, Mapping):
        return ABSENT
    desc = _parse_text(raw.get("description"))
    qty = _parse_amount(raw.get("quantity"))
    price = _parse_amount(raw.get("price"))
    if ABSENT in (desc, qty, price):
        return ABSENT
    return Present(LineItem(description=desc.value, quantity=qty.value, unit_price=price.value))


def _parse_items(raw: Any) -> Parsed:
    # Atomic: one bad element and the whole list is treated as absent.
    if not isinstance(raw, list):
        return ABSENT
    items = []
    for element in raw:
        parsed = _parse_item(element)
        if parsed is ABSENT:
            return ABSENT
        items.append(parsed.value)
    return Present(tuple(items))


# -----------------------------
# Schema: wire key -> (attribute, parser)
# -----------------------------
_BILL_TO_FIELDS = {"name": ("name", _parse_text), "phone": ("phone", _parse_text), "email": ("email", _parse_text)}
_EVENT_FIELDS = {"date": ("date", _parse_text), "time": ("time", _parse_text), "location": ("location", _parse_text)}
_LABEL_FIELDS = {"billTo": ("bill_to", _parse_label), "details": ("details", _parse_label)}

_SCALAR_FIELDS = {
    "invoiceTitle": ("title", _parse_text),
    "companyName": ("issuer_name", _parse_text),
    "items": ("items", _parse_items),
    "notes": ("notes", _parse_text),
    "paymentDetails": ("payment_instructions", _parse_text),
    "signatureDate": ("signature_date", _parse_text),
    "deposit": ("deposit", _parse_amount),
    "logoBase64": ("logo_image", _parse_image),
    "signatureBase64": ("signature_image", _parse_image),
    "themeColor": ("theme_color", _parse_text),
}

_NESTED_FIELDS = {
    "billTo": ("bill_to", _BILL_TO_FIELDS),
    "eventDetails": ("event_details", _EVENT_FIELDS),
    "labels": ("section_labels", _LABEL_FIELDS),
}


def _present_fields(record: Mapping, schema: Mapping[str, tuple[str, Parser]]) -> dict:
    out = {}
    for wire_key, (attr, parser) in schema.items():
        if wire_key not in record:
            continue
        parsed = parser(record[wire_key])
        if parsed is not ABSENT:
            out[attr] = parsed.value
    return out


def _decode(persisted: Any) -> Optional[Mapping]:
    if isinstance(persisted, (bytes, bytearray)):
        try:
            persisted = persisted.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(persisted, str):
        try:
            persisted = json.loads(persisted)
        except ValueError:
            return None
    return persisted if isinstance(persisted, Mapping) else None


# -----------------------------
# Public API
# -----------------------------
def hydrate(persisted: Any, default: Invoice) -> Invoice:
    record = _decode(persisted)
    if record is None:
        return default

    overrides = _present_fields(record, _SCALAR_FIELDS)

    for wire_key, (attr, schema) in _NESTED_FIELDS.items():
        nested = record.get(wire_key)
        if not isinstance(nested, Mapping):
            continue
        nested_overrides = _present_fields(nested, schema)
        if nested_overrides:
            overrides[attr] = replace(getattr(default, attr), **nested_overrides)

    return replace(default, **overrides) if overrides else default


def serialize(invoice: Invoice) -> dict:
    """JSON-compatible form of the invoice, keyed by wire names."""
    data = {
        "invoiceTitle": invoice.title,
        "companyName": invoice.issuer_name,
        "billTo": {
            "name": invoice.bill_to.name,
            "phone": invoice.bill_to.phone,
            "email": invoice.bill_to.email,
        },
        "eventDetails": {
            "date": invoice.event_details.date,
            "time": invoice.event_details.time,
            "location": invoice.event_details.location,
        },
        "items": [
            {"description": i.description, "quantity": i.quantity, "price": i.unit_price}
            for i in invoice.items
        ],
        "notes": invoice.notes,
        "paymentDetails": invoice.payment_instructions,
        "signatureDate": invoice.signature_date,
        "deposit": invoice.deposit,
        "labels": {
            "billTo": invoice.section_labels.bill_to,
            "details": invoice.section_labels.details,
        },
        "themeColor": invoice.theme_color,
    }
    if invoice.logo_image is not None:
        data["logoBase64"] = invoice.logo_image.to_data_url()
    if invoice.signature_image is not None:
        data["signatureBase64"] = invoice.signature_image.to_data_url()
    return data


def dumps(invoice: Invoice) -> str:
    return json.dumps(serialize(invoice))
