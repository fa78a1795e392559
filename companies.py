# companies.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from invoice import BillTo, EventDetails, Invoice, LineItem, SectionLabels


class UnknownCompanyError(LookupError):
    pass


class CompanyId(str, Enum):
    ROYAL_TURBAN = "ROYAL_TURBAN"
    ESCALADE_RIDE = "ESCALADE_RIDE"


@dataclass(frozen=True)
class CompanyProfile:
    company_id: CompanyId
    display_name: str
    tagline: str
    defaults: Invoice


# Evaluated once at import, like the rest of the registry.
TODAY = date.today().isoformat()


# -----------------------------
# Profile data (one entry per company; adding a company is a data change)
# -----------------------------
_PROFILE_DATA = {
    CompanyId.ROYAL_TURBAN: {
        "display_name": "Royal Turban NYC",
        "tagline": "Turban Tying Services",
        "title": "Invoice #101",
        "issuer_name": "ROYAL TURBAN NYC",
        "event_time": "10:30 AM to 12:30 PM",
        "event_location": "",
        "items": [
            ("Turban Tying Service", 1, 150),
            ("Travel Charge", 1, 50),
        ],
        "notes": (
            "Terms & Conditions:\n"
            "- The client will provide turban material on the day of the event.\n"
            "- The event planner is responsible for the timing of turban tying.\n"
            "- All deposits are non-refundable."
        ),
        "payment_instructions": "Payment Methods: Cash or Zelle (929-247-6814).",
        "deposit": 0,
        "labels": ("Bill To", "Event Details"),
        "theme_color": "#f97316",
    },
    CompanyId.ESCALADE_RIDE: {
        "display_name": "Escalade Ride Inc.",
        "tagline": "Limo & Transportation",
        "title": "Trip Receipt #001",
        "issuer_name": "Escalade Ride Inc.",
        "event_time": "Pickup: 10:00 AM",
        "event_location": "JFK Airport to Manhattan",
        "items": [
            ("Luxury Limo Service (Hours)", 3, 120),
            ("Tolls & Surcharges", 1, 45),
            ("Gratuity (20%)", 1, 72),
        ],
        "notes": (
            "Terms & Conditions:\n"
            "- Overtime charges apply after the booked duration.\n"
            "- No smoking or food allowed inside the vehicle.\n"
            "- Cancellations within 24 hours are non-refundable."
        ),
        "payment_instructions": "Payment Methods: Credit Card, Cash, or Corporate Account.",
        "deposit": 100,
        "labels": ("Passenger / Bill To", "Trip Information"),
        "theme_color": "#1f2937",
    },
}


def _build_profile(company_id: CompanyId, data: dict, today: str) -> CompanyProfile:
    bill_to_label, details_label = data["labels"]
    defaults = Invoice(
        title=data["title"],
        issuer_name=data["issuer_name"],
        bill_to=BillTo(),
        event_details=EventDetails(
            date=today,
            time=data["event_time"],
            location=data["event_location"],
        ),
        items=tuple(
            LineItem(description=desc, quantity=float(qty), unit_price=float(price))
            for desc, qty, price in data["items"]
        ),
        notes=data["notes"],
        payment_instructions=data["payment_instructions"],
        signature_date=today,
        deposit=float(data["deposit"]),
        section_labels=SectionLabels(bill_to=bill_to_label, details=details_label),
        theme_color=data["theme_color"],
    )
    return CompanyProfile(
        company_id=company_id,
        display_name=data["display_name"],
        tagline=data["tagline"],
        defaults=defaults,
    )


COMPANY_PROFILES: Mapping[CompanyId, CompanyProfile] = MappingProxyType(
    {cid: _build_profile(cid, data, TODAY) for cid, data in _PROFILE_DATA.items()}
)


# -----------------------------
# Lookups
# -----------------------------
def is_known_company(value) -> bool:
    try:
        CompanyId(value)
    except ValueError:
        return False
    return True


def get_profile(company_id) -> CompanyProfile:
    try:
        return COMPANY_PROFILES[CompanyId(company_id)]
    except (ValueError, KeyError):
        raise UnknownCompanyError(f"Unknown company: {company_id!r}") from None


def default_invoice(company_id) -> Invoice:
    """
    The company's starting invoice. Invoice values are frozen, so handing out
    the canonical template is safe: every edit builds a new value.
    """
    return get_profile(company_id).defaults
