# drafts.py
from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from companies import default_invoice, get_profile
from hydration import dumps, hydrate
from invoice import Edit, Invoice, apply
from models import load_draft_payload, save_draft_payload


def _key_id(company_id) -> str:
    # Validates against the registry (unknown ids raise UnknownCompanyError).
    return get_profile(company_id).company_id.value


def load_invoice(session_factory, company_id) -> Invoice:
    """
    The company's current invoice: its default with any saved draft merged
    over it. A storage read failure falls back to the default.
    """
    cid = _key_id(company_id)
    default = default_invoice(cid)
    try:
        with session_factory() as s:
            payload = load_draft_payload(s, cid)
    except SQLAlchemyError as exc:
        print(f"[DRAFTS] Load failed for company={cid}: {exc!r}", flush=True)
        return default
    return hydrate(payload, default)


def save_invoice(session_factory, company_id, invoice: Invoice) -> bool:
    """
    Best-effort write. Returns False instead of raising so a storage problem
    never costs the user their in-memory edits.
    """
    cid = _key_id(company_id)
    payload = dumps(invoice)
    try:
        with session_factory() as s:
            save_draft_payload(s, cid, payload)
            s.commit()
    except SQLAlchemyError as exc:
        print(f"[DRAFTS] Save failed for company={cid}: {exc!r}", flush=True)
        return False
    return True


def apply_edit(session_factory, company_id, edit: Edit) -> tuple[Invoice, bool]:
    """Load, apply one edit, persist. Returns (new invoice, saved?)."""
    current = load_invoice(session_factory, company_id)
    updated = apply(current, edit)
    return updated, save_invoice(session_factory, company_id, updated)


def reset_invoice(session_factory, company_id) -> tuple[Invoice, bool]:
    fresh = default_invoice(company_id)
    return fresh, save_invoice(session_factory, company_id, fresh)
