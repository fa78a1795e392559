# app.py
import io
from pathlib import Path

from flask import (
    Flask, jsonify, request, redirect, url_for, send_file, abort
)

from companies import COMPANY_PROFILES, is_known_company
from config import Config
from drafts import apply_edit, load_invoice, reset_invoice, save_invoice
from hydration import serialize
from images import ImageRejected, validate_image_upload
from invoice import (
    AddItem, InvalidEdit, Invoice, RemoveItem, SetField, UpdateItem,
    apply, line_total, subtotal, total_due,
)
from models import Base, make_engine, make_session_factory
from pdf_service import download_filename, generate_invoice_pdf, store_invoice_pdf

IMAGE_FIELDS = {"logo": "logo_image", "signature": "signature_image"}

PDF_ERROR = "Error generating PDF. Please try again."


# -----------------------------
# Helpers
# -----------------------------
def _company_or_404(company: str) -> str:
    if not is_known_company(company):
        abort(404)
    return company


def _to_index(raw) -> int:
    if isinstance(raw, bool):
        raise InvalidEdit("index must be an integer")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidEdit("index must be an integer") from None


def _edit_from_json(payload):
    """
    {"op": "set_field", "path": "bill_to.name", "value": "..."}
    {"op": "add_item"}
    {"op": "remove_item", "index": 1}
    {"op": "update_item", "index": 0, "field": "quantity", "value": "3"}
    """
    if not isinstance(payload, dict):
        raise InvalidEdit("Edit must be a JSON object.")
    op = (payload.get("op") or "").strip() if isinstance(payload.get("op"), str) else ""

    if op == "set_field":
        path = payload.get("path") or ""
        if path in ("logo_image", "signature_image"):
            raise InvalidEdit("Images are set through the upload endpoint.")
        return SetField(path=path, value=payload.get("value"))
    if op == "add_item":
        return AddItem(
            description=payload.get("description", ""),
            quantity=payload.get("quantity", 1),
            unit_price=payload.get("unit_price", 0),
        )
    if op == "remove_item":
        return RemoveItem(index=_to_index(payload.get("index")))
    if op == "update_item":
        return UpdateItem(
            index=_to_index(payload.get("index")),
            field=payload.get("field") or "",
            raw_value=payload.get("value"),
        )
    raise InvalidEdit(f"Unknown edit op: {op!r}")


def _invoice_json(company: str, inv: Invoice, saved=None):
    body = {
        "company": company,
        "invoice": serialize(inv),
        "line_totals": [line_total(i) for i in inv.items],
        "subtotal": subtotal(inv),
        "total_due": total_due(inv),
    }
    if saved is not None:
        body["saved"] = saved
    return jsonify(body)


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _ensure_dirs(app):
    # SQLite file databases need their folder (instance/ by default)
    db_url = app.config["SQLALCHEMY_DATABASE_URI"]
    if db_url.startswith("sqlite:///") and ":memory:" not in db_url:
        Path(db_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
    Path(app.config["EXPORTS_DIR"]).mkdir(parents=True, exist_ok=True)


# -----------------------------
# App factory
# -----------------------------
def create_app(overrides: dict | None = None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    _ensure_dirs(app)

    engine = make_engine(app.config["SQLALCHEMY_DATABASE_URI"], echo=app.config["SQLALCHEMY_ECHO"])
    Base.metadata.create_all(engine)

    SessionLocal = make_session_factory(engine)

    # -----------------------------
    # Index / company picker
    # -----------------------------
    @app.route("/")
    def index():
        return redirect(url_for("companies"))

    @app.route("/companies")
    def companies():
        return jsonify([
            {
                "id": p.company_id.value,
                "name": p.display_name,
                "tagline": p.tagline,
                "theme_color": p.defaults.theme_color,
            }
            for p in COMPANY_PROFILES.values()
        ])

    # -----------------------------
    # Invoice editing
    # -----------------------------
    @app.route("/invoices/<company>")
    def invoice_view(company):
        company = _company_or_404(company)
        return _invoice_json(company, load_invoice(SessionLocal, company))

    @app.route("/invoices/<company>/edits", methods=["POST"])
    def invoice_edit(company):
        company = _company_or_404(company)
        try:
            edit = _edit_from_json(request.get_json(silent=True))
            inv, saved = apply_edit(SessionLocal, company, edit)
        except InvalidEdit as e:
            return _error(str(e), 400)
        return _invoice_json(company, inv, saved)

    @app.route("/invoices/<company>/reset", methods=["POST"])
    def invoice_reset(company):
        company = _company_or_404(company)
        inv, saved = reset_invoice(SessionLocal, company)
        return _invoice_json(company, inv, saved)

    # -----------------------------
    # Logo / signature images
    # -----------------------------
    @app.route("/invoices/<company>/images/<kind>", methods=["POST"])
    def invoice_image_upload(company, kind):
        company = _company_or_404(company)
        if kind not in IMAGE_FIELDS:
            abort(404)

        upload = request.files.get("file")
        if upload is None:
            return _error("Please choose an image file.", 400)
        try:
            image = validate_image_upload(upload.read(), upload.mimetype, app.config["MAX_IMAGE_BYTES"])
        except ImageRejected as e:
            return _error(str(e), 400)

        inv = apply(load_invoice(SessionLocal, company), SetField(IMAGE_FIELDS[kind], image))
        saved = save_invoice(SessionLocal, company, inv)
        return _invoice_json(company, inv, saved)

    @app.route("/invoices/<company>/images/<kind>", methods=["DELETE"])
    def invoice_image_remove(company, kind):
        company = _company_or_404(company)
        if kind not in IMAGE_FIELDS:
            abort(404)
        inv, saved = apply_edit(SessionLocal, company, SetField(IMAGE_FIELDS[kind], None))
        return _invoice_json(company, inv, saved)

    # -----------------------------
    # PDF routes
    # -----------------------------
    @app.route("/invoices/<company>/pdf")
    def invoice_pdf(company):
        company = _company_or_404(company)
        inv = load_invoice(SessionLocal, company)
        try:
            pdf_bytes = generate_invoice_pdf(inv, app.config["PDF_PAGE_SIZE"])
        except Exception as e:
            print(f"[PDF] Generation failed for company={company}: {e!r}", flush=True)
            return _error(PDF_ERROR, 500)

        inline = (request.args.get("inline") or "").strip() == "1"
        return send_file(
            io.BytesIO(pdf_bytes),
            as_attachment=not inline,
            download_name=download_filename(),
            mimetype="application/pdf"
        )

    @app.route("/invoices/<company>/pdf/store", methods=["POST"])
    def invoice_pdf_store(company):
        company = _company_or_404(company)
        inv = load_invoice(SessionLocal, company)
        try:
            path = store_invoice_pdf(inv, company, app.config["EXPORTS_DIR"])
        except Exception as e:
            print(f"[PDF] Store failed for company={company}: {e!r}", flush=True)
            return _error(PDF_ERROR, 500)
        return jsonify({"company": company, "pdf_path": path})

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
