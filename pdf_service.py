# pdf_service.py
import io
import os
import re
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    HRFlowable, Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
)
from svglib.svglib import svg2rlg

from config import Config
from invoice import Invoice
from layout import (
    Document, HeaderBlock, ImageElement, InfoBlock, ItemTable, NotesBlock,
    SignatureBlock, SignatureBox, SummaryBlock, layout,
)

PAGE_SIZES = {"A4": A4, "LETTER": LETTER}

M = 40  # page margin, points
FOOTER_Y = 30

TEXT_COLOR = colors.HexColor("#333333")
MUTED = colors.HexColor("#888888")
NOTES_COLOR = colors.HexColor("#555555")
LINE_COLOR = colors.HexColor("#e0e0e0")
SOFT_BG = colors.HexColor("#f0f0f0")


def _safe_filename(name: str) -> str:
    # strip characters not allowed on Windows/mac paths
    return re.sub(r'[\\/*?:"<>|]', "", (name or "")).strip() or "Invoice"


def _text(value: str) -> str:
    """Escape for Paragraph markup, keeping the user's line breaks."""
    return escape(value or "").replace("\r\n", "\n").replace("\n", "<br/>")


# -----------------------------
# Styles
# -----------------------------
def _styles(accent):
    base = ParagraphStyle("base", fontName="Helvetica", fontSize=11, leading=14, textColor=TEXT_COLOR)
    return {
        "body": base,
        "company_name": ParagraphStyle(
            "company_name", parent=base, fontName="Helvetica-Bold", fontSize=28, leading=32,
            textColor=accent, alignment=TA_RIGHT,
        ),
        "doc_title": ParagraphStyle(
            "doc_title", parent=base, fontSize=16, leading=20, textColor=accent, alignment=TA_RIGHT,
        ),
        "sub_header": ParagraphStyle(
            "sub_header", parent=base, fontName="Helvetica-Bold", fontSize=12, leading=15,
            backColor=SOFT_BG, borderPadding=(4, 6, 4, 6), spaceAfter=8,
        ),
        "table_head": ParagraphStyle(
            "table_head", parent=base, fontName="Helvetica-Bold", fontSize=10, textColor=colors.white,
        ),
        "table_head_num": ParagraphStyle(
            "table_head_num", parent=base, fontName="Helvetica-Bold", fontSize=10, textColor=colors.white,
            alignment=TA_RIGHT,
        ),
        "cell": ParagraphStyle("cell", parent=base, fontSize=10, leading=13),
        "cell_num": ParagraphStyle("cell_num", parent=base, fontSize=10, leading=13, alignment=TA_RIGHT),
        "notes": ParagraphStyle(
            "notes", parent=base, fontSize=9, leading=13.5, textColor=NOTES_COLOR,
        ),
    }


# -----------------------------
# Block -> flowables
# -----------------------------
def _svg_image(el: ImageElement):
    drawing = svg2rlg(io.BytesIO(el.image.data))
    scale = min(el.max_width / drawing.width, el.max_height / drawing.height, 1.0)
    drawing.scale(scale, scale)
    drawing.width, drawing.height = drawing.width * scale, drawing.height * scale
    drawing.hAlign = "LEFT"
    return drawing


def _image(el: ImageElement):
    if el.image.mime_type == "image/svg+xml":
        return _svg_image(el)
    reader = ImageReader(io.BytesIO(el.image.data))
    iw, ih = reader.getSize()
    scale = min(el.max_width / float(iw), el.max_height / float(ih), 1.0)
    img = Image(io.BytesIO(el.image.data), width=iw * scale, height=ih * scale)
    img.hAlign = "LEFT"
    return img


def _header_flowables(block: HeaderBlock, st, frame_w):
    details = [
        Paragraph(_text(block.issuer_name), st["company_name"]),
        Paragraph(_text(block.title), st["doc_title"]),
    ]
    if block.logo is None:
        row = [details]
        widths = [frame_w]
    else:
        row = [_image(block.logo), details]
        widths = [block.logo.max_width + 10, frame_w - block.logo.max_width - 10]

    t = Table([row], colWidths=widths)
    t.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
    ]))
    return [t, Spacer(1, 20)]


def _info_flowables(block: InfoBlock, st, frame_w):
    def column(col):
        cells = [Paragraph(_text(col.heading), st["sub_header"])]
        cells.extend(Paragraph(_text(ln), st["body"]) for ln in col.lines)
        return cells

    gap = 0.1 * frame_w
    col_w = (frame_w - gap) / 2
    t = Table([[column(block.left), "", column(block.right)]], colWidths=[col_w, gap, col_w])
    t.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
    ]))
    return [t, Spacer(1, 20)]


def _items_flowables(block: ItemTable, st, frame_w, accent):
    numeric = block.numeric_columns
    header = [
        Paragraph(_text(h), st["table_head_num"] if i in numeric else st["table_head"])
        for i, h in enumerate(block.columns)
    ]
    data = [header]
    for row in block.rows:
        data.append([
            Paragraph(_text(cell), st["cell_num"] if i in numeric else st["cell"])
            for i, cell in enumerate(row)
        ])

    t = Table(data, colWidths=[frame_w * w for w in block.column_widths], repeatRows=1)
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), accent),
        ("BOX", (0, 0), (-1, -1), 1, LINE_COLOR),
        ("INNERGRID", (0, 0), (-1, -1), 1, LINE_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ("LEFTPADDING", (0, 0), (-1, -1), 8),
        ("RIGHTPADDING", (0, 0), (-1, -1), 8),
    ]))
    return [t, Spacer(1, 20)]


def _summary_flowables(block: SummaryBlock, st, frame_w, accent):
    data = []
    style = [
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 11),
        ("TEXTCOLOR", (0, 0), (-1, -1), TEXT_COLOR),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEBELOW", (0, 0), (-1, -1), 1, LINE_COLOR),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]
    for r, row in enumerate(block.rows):
        data.append([row.label, row.value])
        if row.emphasized:
            style += [
                ("BACKGROUND", (0, r), (-1, r), accent),
                ("TEXTCOLOR", (0, r), (-1, r), colors.white),
                ("FONTNAME", (0, r), (-1, r), "Helvetica-Bold"),
            ]

    t = Table(data, colWidths=[frame_w * 0.2, frame_w * 0.2])
    t.hAlign = "RIGHT"
    t.setStyle(TableStyle(style))
    return [t]


def _notes_flowables(block: NotesBlock, st, frame_w):
    out = [
        Spacer(1, 20),
        HRFlowable(width="100%", thickness=1, color=LINE_COLOR, spaceAfter=10),
    ]
    if block.notes.strip():
        out.append(Paragraph(_text(block.notes), st["notes"]))
    if block.payment_instructions.strip():
        out.append(Spacer(1, 8))
        out.append(Paragraph(_text(block.payment_instructions), st["notes"]))
    return out


def _signature_flowables(block: SignatureBlock, st, frame_w):
    def box(sig: SignatureBox):
        cells = [Paragraph(_text(sig.caption), st["body"])]
        if sig.image is not None:
            cells.append(Spacer(1, 8))
            cells.append(_image(sig.image))
        else:
            cells.append(Spacer(1, 40))
            cells.append(HRFlowable(width="100%", thickness=1, color=TEXT_COLOR, spaceAfter=0))
        cells.append(Spacer(1, 8))
        cells.append(Paragraph(_text(sig.date_line), st["body"]))
        return cells

    gap = 0.1 * frame_w
    col_w = (frame_w - gap) / 2
    t = Table([[box(block.client), "", box(block.issuer)]], colWidths=[col_w, gap, col_w])
    t.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
    ]))
    return [Spacer(1, 40), t]


def _story(document: Document, frame_w: float):
    accent = colors.toColor(document.theme_color)
    st = _styles(accent)
    story = []
    for block in document.blocks:
        if isinstance(block, HeaderBlock):
            story += _header_flowables(block, st, frame_w)
        elif isinstance(block, InfoBlock):
            story += _info_flowables(block, st, frame_w)
        elif isinstance(block, ItemTable):
            story += _items_flowables(block, st, frame_w, accent)
        elif isinstance(block, SummaryBlock):
            story += _summary_flowables(block, st, frame_w, accent)
        elif isinstance(block, NotesBlock):
            story += _notes_flowables(block, st, frame_w)
        elif isinstance(block, SignatureBlock):
            story += _signature_flowables(block, st, frame_w)
        else:
            raise TypeError(f"Unknown document block: {type(block).__name__}")
    return story


# -----------------------------
# Rendering
# -----------------------------
def render_pdf(document: Document, page_size: str | None = None) -> bytes:
    """
    Serializes a laid-out Document to PDF bytes. Platypus flows the story
    over as many pages as it needs; the footer is drawn on every page.
    """
    pagesize = PAGE_SIZES.get((page_size or document.page_size or "A4").upper(), A4)
    page_w, _ = pagesize

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=pagesize,
        leftMargin=M,
        rightMargin=M,
        topMargin=M,
        bottomMargin=M + 0.4 * inch,
        title=document.title,
    )

    def footer(pdf, _doc):
        pdf.saveState()
        pdf.setFont("Helvetica", 10)
        pdf.setFillColor(MUTED)
        pdf.drawCentredString(page_w / 2, FOOTER_Y, document.footer)
        pdf.restoreState()

    doc.build(_story(document, doc.width), onFirstPage=footer, onLaterPages=footer)
    return buf.getvalue()


def generate_invoice_pdf(invoice: Invoice, page_size: str | None = None) -> bytes:
    return render_pdf(layout(invoice), page_size=page_size or Config.PDF_PAGE_SIZE)


def download_filename() -> str:
    return f"invoice-{int(datetime.now().timestamp() * 1000)}.pdf"


def store_invoice_pdf(invoice: Invoice, company_id: str, exports_dir: str | None = None) -> str:
    """
    Renders the invoice and saves it under EXPORTS_DIR/<company>/<title>.pdf.

    Returns: absolute pdf path on disk.
    """
    pdf_bytes = generate_invoice_pdf(invoice)

    company_dir = os.path.join(exports_dir or Config.EXPORTS_DIR, _safe_filename(company_id))
    os.makedirs(company_dir, exist_ok=True)

    pdf_path = os.path.abspath(os.path.join(company_dir, f"{_safe_filename(invoice.title)}.pdf"))
    with open(pdf_path, "wb") as f:
        f.write(pdf_bytes)

    print(f"[PDF] Stored {company_id} -> {pdf_path}", flush=True)
    return pdf_path
