# export_pdfs.py
import argparse
from pathlib import Path

from companies import COMPANY_PROFILES, is_known_company
from config import Config
from drafts import load_invoice
from models import Base, make_engine, make_session_factory
from pdf_service import store_invoice_pdf


def main(argv=None):
    parser = argparse.ArgumentParser(description="Export each company's saved invoice draft as a PDF.")
    parser.add_argument("--company", type=str, default="", help="Only export one company (e.g. ROYAL_TURBAN).")
    parser.add_argument("--out", type=str, default="", help="Exports directory (defaults to EXPORTS_DIR).")
    args = parser.parse_args(argv)

    exports_dir = (args.out or "").strip() or Config.EXPORTS_DIR
    Path(exports_dir).mkdir(parents=True, exist_ok=True)

    target = (args.company or "").strip().upper()
    if target and not is_known_company(target):
        known = ", ".join(p.company_id.value for p in COMPANY_PROFILES.values())
        raise SystemExit(f"Unknown company {target!r}. Choose one of: {known}")

    engine = make_engine(Config.SQLALCHEMY_DATABASE_URI, echo=Config.SQLALCHEMY_ECHO)
    Base.metadata.create_all(engine)
    SessionLocal = make_session_factory(engine)

    company_ids = [target] if target else [p.company_id.value for p in COMPANY_PROFILES.values()]

    total = len(company_ids)
    generated = 0
    failed = 0

    for i, cid in enumerate(company_ids, start=1):
        try:
            inv = load_invoice(SessionLocal, cid)
            path = store_invoice_pdf(inv, cid, exports_dir)
            generated += 1
            print(f"[{i}/{total}] DONE  {cid} -> {path}")
        except Exception as e:
            failed += 1
            print(f"[{i}/{total}] FAIL  {cid}  ({e})")

    print("\n✅ PDF export complete.")
    print(f"Generated: {generated}")
    print(f"Failed:    {failed}")
    print(f"Exports:   {exports_dir}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
