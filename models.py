# models.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    create_engine,
    String,
    Integer,
    Text,
    DateTime,
    select,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    sessionmaker,
)

DRAFT_KEY_PREFIX = "invoice_data_"


# -----------------------------
# SQLAlchemy base
# -----------------------------
class Base(DeclarativeBase):
    pass


# -----------------------------
# Tables
# -----------------------------
class InvoiceDraft(Base):
    """
    Latest serialized invoice per company, keyed like: invoice_data_<COMPANY>.
    The payload is JSON text; there is no schema version column, older
    payloads are reconciled field by field on load (see hydration.py).
    """
    __tablename__ = "invoice_drafts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    storage_key: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# -----------------------------
# Engine / Session factory
# -----------------------------
def make_engine(db_url: str, echo: bool = False):
    """
    Create SQLAlchemy engine.
    Note: SQLite path must exist (instance/ folder). db_init.py creates it.
    """
    return create_engine(db_url, echo=echo, future=True)


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


# -----------------------------
# Draft key/value access
# -----------------------------
def draft_key(company_id: str) -> str:
    return f"{DRAFT_KEY_PREFIX}{company_id}"


def load_draft_payload(session, company_id: str) -> Optional[str]:
    row = session.execute(
        select(InvoiceDraft).where(InvoiceDraft.storage_key == draft_key(company_id))
    ).scalar_one_or_none()
    return row.payload if row is not None else None


def save_draft_payload(session, company_id: str, payload: str) -> None:
    """Upsert the payload for a company. Caller commits."""
    key = draft_key(company_id)
    row = session.execute(
        select(InvoiceDraft).where(InvoiceDraft.storage_key == key)
    ).scalar_one_or_none()

    if row is None:
        row = InvoiceDraft(storage_key=key, payload=payload)
        session.add(row)
    else:
        row.payload = payload
    session.flush()
