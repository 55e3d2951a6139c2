"""
Raise Lab Quotation PDF Generator
==================================
Technical & commercial offer sheets, one page-sequence per catalog item.

Features:
  - Blue/orange double-border frame with logo + company block on every page
  - Bill-to / quote metadata box on page 1 only
  - Two per-item layouts: "wide" (image above features) and "tall"
    (features left, image right, kept together as one block)
  - Dynamic page breaks: every block is measured and space-checked first
  - Commercial table with add-ons, INR (Rs. x/-) or USD pricing
  - Terms & Conditions page with signature block
  - "Page i of N" stamped on every page once N is known
"""

import io
import os
import time
import logging
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, Table, TableStyle

from raisequote.core.paths import find_logo
from raisequote.forms.assets import prefetch_assets, item_key
from raisequote.forms.formatting import (
    CURRENCIES, normalize_currency, format_price, item_total, selected_addons,
    created_date, resolve_validity_date, format_date, normalize_specs,
)
from raisequote.forms.page_frame import (
    PAGE_W, MARGIN, CONTENT_W, CONTENT_TOP, CONTENT_BOTTOM, PAGE_ROOM,
    RAISE_BLUE, BLACK, WHITE, NumberedCanvas, PageFlow,
    Y, text, image, fit_image, wrap, draw_lines,
)
from raisequote.forms.terms import draw_terms, draw_signature, DEFAULT_COMPANY_NAME

log = logging.getLogger("quote_gen")

# Shown when a catalog item carries no feature list of its own.
DEFAULT_FEATURES = [
    "Accurate method for determining the strength of antibiotic material",
    "Microprocessor based design",
    "Average of Vertical diameter & Horizontal diameter of inhibited zone",
    "Magnified image of inhibited zone is clearly visible on the prism Screen",
    "Calibration facility with certified coins",
    "Inbuilt thermal printer",
    "Parallel printer port & RS 232 port for taking Test Printer Report",
    "Password protection for Real Time Clock",
    "Membrane Keypad for easy operation",
    "Complies to cGMP (MOC-stainless steel -304 & Stainless Steel-316)",
    "IQ/OQ Documentation",
]

# ── Block metrics (mm) ────────────────────────────────────────────────────────
DESC_LINE_H = 5
FEATURE_LINE_H = 4.5
SPEC_LINE_H = 5
SECTION_HEADER_H = 20        # reserved before any section heading
IMAGE_MAX_H = 80
WIDE_IMAGE_MAX_W = CONTENT_W - 10
TALL_FEATURE_W = CONTENT_W * 0.50
TALL_IMAGE_W = CONTENT_W * 0.40
SPEC_VALUE_X = MARGIN + 55
BILL_TO_MIN_H = 30
COMMERCIAL_MIN_H = 40

LAYOUT_MODES = ("wide", "tall")

_CELL = ParagraphStyle("cell", fontName="Helvetica", fontSize=10, leading=12,
                       alignment=TA_LEFT, textColor=BLACK)
_CELL_BOLD = ParagraphStyle("cell_bold", parent=_CELL, fontName="Helvetica-Bold")
_CELL_CENTER = ParagraphStyle("cell_center", parent=_CELL, alignment=TA_CENTER)
_HEAD = ParagraphStyle("head", parent=_CELL_BOLD, alignment=TA_CENTER, textColor=WHITE)
_PRICE = ParagraphStyle("price", parent=_CELL_BOLD, fontSize=11, leading=13,
                        alignment=TA_CENTER)


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def quotation_filename(quotation: dict) -> str:
    """<quotation_number>_Quotation.pdf - the name offered for download."""
    qn = str(quotation.get("quotation_number") or quotation.get("id") or "DRAFT")
    safe = qn.replace("/", "-").replace("\\", "-").strip() or "DRAFT"
    return f"{safe}_Quotation.pdf"


def normalize_features(item: dict) -> list:
    feats = [str(f).strip() for f in (item.get("features") or []) if str(f or "").strip()]
    return feats if feats else list(DEFAULT_FEATURES)


def layout_mode(item: dict) -> str:
    mode = str(item.get("image_format") or "wide").lower()
    return mode if mode in LAYOUT_MODES else "wide"


def _para(markup: str, style) -> Paragraph:
    return Paragraph(markup, style)


def _place_table(flow, table):
    """
    Draw a platypus table at the cursor. A table that fits on one page is
    space-checked as a block; a taller one is split (between rows or inside
    a row) and continued on the following pages.
    """
    avail_w = CONTENT_W * mm
    _, th = table.wrapOn(flow.c, avail_w, PAGE_ROOM * mm)
    if th <= PAGE_ROOM * mm:
        flow.ensure_space(th / mm)
        table.drawOn(flow.c, MARGIN * mm, Y(flow.y) - th)
        flow.y += th / mm
        return

    remaining = table
    while True:
        avail_h = (CONTENT_BOTTOM - flow.y) * mm
        _, th = remaining.wrapOn(flow.c, avail_w, avail_h)
        if th <= avail_h:
            remaining.drawOn(flow.c, MARGIN * mm, Y(flow.y) - th)
            flow.y += th / mm
            return
        parts = remaining.split(avail_w, avail_h)
        if len(parts) < 2:
            if flow.y <= CONTENT_TOP:
                raise ValueError("table row cannot be split to fit a page")
            flow.new_page()
            continue
        head, remaining = parts[0], parts[1]
        _, hh = head.wrapOn(flow.c, avail_w, avail_h)
        head.drawOn(flow.c, MARGIN * mm, Y(flow.y) - hh)
        flow.new_page()


def _draw_paragraph(flow, lines, x, step, font="Helvetica", size=9):
    """
    Draw wrapped lines as one unit when they fit on a page; a paragraph taller
    than a whole page falls back to line-by-line breaks.
    """
    block_h = len(lines) * step
    if block_h <= PAGE_ROOM:
        flow.ensure_space(block_h)
        draw_lines(flow.c, x, flow.y, lines, step, font, size)
        flow.y += block_h
        return
    for line in lines:
        flow.ensure_space(step)
        text(flow.c, x, flow.y, line, font, size)
        flow.y += step


def _section_header(flow, label, size=10):
    flow.ensure_space(SECTION_HEADER_H)
    text(flow.c, MARGIN, flow.y, label, "Helvetica-Bold", size, BLACK)
    flow.y += 6


# ═══════════════════════════════════════════════════════════════════════════════
# PAGE 1 - BILL TO
# ═══════════════════════════════════════════════════════════════════════════════

def _bill_to_table(quotation: dict, validity_str: str):
    """
    Two-column grid: customer on the left, quote metadata on the right.
    Each address line is its own row so a long address can break across pages.
    """
    head = ["To", escape(str(quotation.get("customer_name") or ""))]
    address = str(quotation.get("customer_address") or "").strip()
    address_lines = [escape(ln) for ln in address.splitlines() if ln.strip()]
    meta = [
        f"Quote No : {escape(str(quotation.get('quotation_number') or ''))}",
        f"Date : {format_date(created_date(quotation))}",
        f"Validity : {validity_str}",
    ]
    data = [[_para("<br/>".join(head), _CELL_BOLD), _para("<br/>".join(meta), _CELL_BOLD)]]
    data.extend([_para(ln, _CELL_BOLD), ""] for ln in address_lines)

    def build(pad_h=0):
        rows = data + ([["", ""]] if pad_h else [])
        heights = [None] * len(data) + ([pad_h] if pad_h else [])
        t = Table(rows, colWidths=[(CONTENT_W - 80) * mm, 80 * mm],
                  rowHeights=heights)
        t.setStyle(TableStyle([
            ("BOX", (0, 0), (-1, -1), 0.3 * mm, BLACK),
            ("LINEAFTER", (0, 0), (0, -1), 0.3 * mm, BLACK),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), 5 * mm),
            ("RIGHTPADDING", (0, 0), (-1, -1), 5 * mm),
            ("TOPPADDING", (0, 0), (-1, -1), 0),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
            ("TOPPADDING", (0, 0), (-1, 0), 4 * mm),
            ("BOTTOMPADDING", (0, -1), (-1, -1), 4 * mm),
        ]))
        return t

    table = build()
    _, th = table.wrap(CONTENT_W * mm, PAGE_ROOM * mm)
    if th < BILL_TO_MIN_H * mm:
        table = build(BILL_TO_MIN_H * mm - th)
    return table


def _draw_bill_to(flow, quotation: dict, validity_str: str):
    """Customer / quote metadata grid; drawn only while still on page 1."""
    if not flow.first_page:
        log.warning("Bill-to block skipped: cursor is past page 1")
        return
    _place_table(flow, _bill_to_table(quotation, validity_str))
    flow.y += 12

# ═══════════════════════════════════════════════════════════════════════════════
# ITEM BLOCKS
# ═══════════════════════════════════════════════════════════════════════════════

def _draw_title(flow, item):
    flow.ensure_space(SECTION_HEADER_H)
    center = PAGE_W / 2
    text(flow.c, center, flow.y, "Technical & Commercial Offer",
         "Helvetica-Bold", 14, RAISE_BLUE, "center")
    flow.y += 7
    text(flow.c, center, flow.y, f"For {item.get('name', '')}",
         "Helvetica-Bold", 12, BLACK, "center")
    flow.y += 12


def _draw_description(flow, item):
    _section_header(flow, "Description:")
    lines = wrap(item.get("description"), "Helvetica", 9, CONTENT_W)
    _draw_paragraph(flow, lines, MARGIN, DESC_LINE_H)
    flow.y += 5


def _draw_bullets(flow, wrapped):
    """Pre-wrapped bullet entries, each one space-checked as it is drawn."""
    for lines in wrapped:
        h = len(lines) * FEATURE_LINE_H
        flow.ensure_space(h + 2)
        text(flow.c, MARGIN + 3, flow.y, "•", "Helvetica", 9)
        draw_lines(flow.c, MARGIN + 8, flow.y, lines, FEATURE_LINE_H)
        flow.y += h


def _draw_feature_list(flow, features):
    """Full-width bullets; an empty list leaves just the heading and a spacer."""
    _section_header(flow, "FEATURES:")
    _draw_bullets(flow, [wrap(f, "Helvetica", 9, CONTENT_W - 10) for f in features])
    flow.y += 5


def _layout_wide(flow, features, img):
    """Image centred under the description, features full width below it."""
    if img:
        w, h = fit_image(img, WIDE_IMAGE_MAX_W, IMAGE_MAX_H)
        flow.ensure_space(h + 10)
        image(flow.c, img, (PAGE_W - w) / 2, flow.y, w, h)
        flow.y += h + 10
    _draw_feature_list(flow, features)


def _layout_tall(flow, features, img):
    """
    Features in a left column, image in a right column, kept together as one
    block. The column widths are fixed whether or not there is an image.

    A block taller than a whole page cannot be kept together: the image goes
    first and the feature column then breaks per bullet.
    """
    wrapped = [wrap(f, "Helvetica", 9, TALL_FEATURE_W) for f in features]
    feature_h = 6 + sum(len(lines) * FEATURE_LINE_H for lines in wrapped)
    img_w, img_h = fit_image(img, TALL_IMAGE_W, IMAGE_MAX_H) if img else (0, 0)

    if max(feature_h, img_h) + 10 > PAGE_ROOM:
        if img:
            flow.ensure_space(img_h + 10)
            image(flow.c, img, PAGE_W - MARGIN - img_w, flow.y, img_w, img_h)
            flow.y += img_h + 10
        _section_header(flow, "FEATURES:")
        _draw_bullets(flow, wrapped)
        flow.y += 5
        return

    flow.ensure_space(max(feature_h, img_h) + 10)
    text(flow.c, MARGIN, flow.y, "FEATURES:", "Helvetica-Bold", 10)
    flow.y += 6

    start_y = flow.y
    for lines in wrapped:
        text(flow.c, MARGIN + 3, flow.y, "•", "Helvetica", 9)
        draw_lines(flow.c, MARGIN + 8, flow.y, lines, FEATURE_LINE_H)
        flow.y += len(lines) * FEATURE_LINE_H
    features_end = flow.y

    image_end = start_y
    if img:
        image(flow.c, img, PAGE_W - MARGIN - img_w, start_y, img_w, img_h)
        image_end = start_y + img_h + 10

    flow.y = max(features_end, image_end) + 5


_LAYOUTS = {
    "wide": _layout_wide,
    "tall": _layout_tall,
}


def _draw_specs(flow, specs):
    _section_header(flow, "Specifications:")
    key_w = SPEC_VALUE_X - (MARGIN + 8) - 2
    value_w = PAGE_W - MARGIN - SPEC_VALUE_X
    for key, value in specs:
        shown = value if value.startswith(":") else f": {value}"
        key_lines = wrap(key, "Helvetica-Bold", 9, key_w)
        value_lines = wrap(shown, "Helvetica", 9, value_w)
        h = max(len(key_lines), len(value_lines), 1) * SPEC_LINE_H
        flow.ensure_space(h + 1)
        text(flow.c, MARGIN + 3, flow.y, "•", "Helvetica", 9)
        draw_lines(flow.c, MARGIN + 8, flow.y, key_lines, SPEC_LINE_H, "Helvetica-Bold", 9)
        draw_lines(flow.c, SPEC_VALUE_X, flow.y, value_lines, SPEC_LINE_H, "Helvetica", 9)
        flow.y += h
    flow.y += 5


def _commercial_table(item, currency):
    """
    Header row, the item row, then one row per add-on under "Standard
    Accessories:". Add-on rows carry no inner rules so the description column
    reads as one cell, but the table can still break between them.
    """
    label = CURRENCIES[currency]["label"]
    addons = selected_addons(item)

    data = [
        [_para("S.No", _HEAD), _para("Description", _HEAD),
         _para("Qty", _HEAD), _para(f"Price ({label})", _HEAD)],
        [_para("01", _CELL_CENTER), _para(escape(str(item.get("name", ""))), _CELL),
         _para("1", _CELL_CENTER), _para(escape(format_price(item_total(item), currency)), _PRICE)],
    ]
    if addons:
        data.append(["", _para("Standard Accessories:", _CELL), "", ""])
        data.extend(["", _para(f"• {escape(str(a.get('name', '')))}", _CELL), "", ""]
                    for a in addons)

    t = Table(data, colWidths=[15 * mm, (CONTENT_W - 80) * mm, 15 * mm, 50 * mm],
              repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), RAISE_BLUE),
        ("BOX", (0, 0), (-1, -1), 0.2 * mm, BLACK),
        ("LINEAFTER", (0, 0), (-2, -1), 0.2 * mm, BLACK),
        ("LINEBELOW", (0, 0), (-1, 0), 0.2 * mm, BLACK),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 2 * mm),
        ("RIGHTPADDING", (0, 0), (-1, -1), 2 * mm),
        ("TOPPADDING", (0, 0), (-1, 0), 2 * mm),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 2 * mm),
        ("TOPPADDING", (0, 1), (-1, -1), 0.5 * mm),
        ("BOTTOMPADDING", (0, 1), (-1, -1), 0.5 * mm),
        ("TOPPADDING", (0, 1), (-1, 1), 4 * mm),
        ("BOTTOMPADDING", (0, -1), (-1, -1), 4 * mm),
    ]
    if addons:
        style.append(("TOPPADDING", (0, 2), (-1, 2), 4 * mm))
    t.setStyle(TableStyle(style))
    return t


def _draw_commercial(flow, item, currency):
    table = _commercial_table(item, currency)
    _, th = table.wrap(CONTENT_W * mm, PAGE_ROOM * mm)
    block_h = 6 + th / mm
    # heading and table move together unless the table needs more than a page
    flow.ensure_space(max(COMMERCIAL_MIN_H, block_h) if block_h <= PAGE_ROOM else COMMERCIAL_MIN_H)
    text(flow.c, MARGIN, flow.y, "Commercial Offer:", "Helvetica-Bold", 11, BLACK)
    flow.y += 6
    _place_table(flow, table)
    flow.y += 10


def _draw_item(flow, item, img, currency):
    _draw_title(flow, item)
    _draw_description(flow, item)
    _LAYOUTS[layout_mode(item)](flow, normalize_features(item), img)
    # absent specs skip the block; a given but empty list keeps its heading
    if item.get("specs") is not None:
        _draw_specs(flow, normalize_specs(item.get("specs")))
    _draw_commercial(flow, item, currency)


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN PDF GENERATOR
# ═══════════════════════════════════════════════════════════════════════════════

def generate_quotation_pdf(
    quotation: dict,
    items: list,
    settings: Optional[dict] = None,
    user: Optional[dict] = None,
    selected_terms: Optional[list] = None,
    currency: Optional[str] = None,
    validity: Optional[dict] = None,
    output_path: Optional[str] = None,
    logo_ref: Optional[str] = None,
) -> dict:
    """
    Generate a Raise Lab quotation PDF.

    quotation keys:
        quotation_number, customer_name, customer_address?, created_at?,
        validity_date?, validity_days?, currency?
    items (ordered, one page-sequence each):
        [{id, name, description, price, selectedAddons?[{name, price}],
          image_url?, image_format? ("wide"|"tall"), features?[str],
          specs?[{key, value}]}]
    validity: {"validity_date"?, "validity_days"?} override for the printed date.
    output_path: file or directory; when given the PDF is also written there.

    Returns {ok, pdf, filename, path, quotation_number, pages, items_count,
             grand_total, currency, validity_date, missing_images}.
    """
    items = list(items or [])
    settings = settings or {}
    currency = normalize_currency(currency or quotation.get("currency"))
    qn = str(quotation.get("quotation_number") or "")
    started = time.time()

    log.info("Generating quotation %s for %s (%d items, %s)",
             qn or "?", str(quotation.get("customer_name", "?"))[:40], len(items), currency,
             extra={"quotation_number": qn, "items": len(items), "currency": currency})

    # ── Prefetch: every image settles before layout starts ────────────────────
    assets = prefetch_assets(items, find_logo() if logo_ref is None else logo_ref)

    buf = io.BytesIO()
    c = NumberedCanvas(buf, pagesize=A4, invariant=1)
    c.setTitle(f"Quotation {qn}")
    c.setAuthor(settings.get("company_name") or DEFAULT_COMPANY_NAME)

    # ── Page 1 header + bill-to ───────────────────────────────────────────────
    flow = PageFlow(c, assets["logo"])
    validity_str = format_date(resolve_validity_date(quotation, validity))
    _draw_bill_to(flow, quotation, validity_str)

    # ── One page-sequence per item ────────────────────────────────────────────
    for index, item in enumerate(items):
        if index > 0:
            flow.new_page()
        img = assets["images"].get(item_key(item, index))
        _draw_item(flow, item, img, currency)

    # ── Terms, signature, numbering pass ──────────────────────────────────────
    draw_terms(flow, selected_terms)
    draw_signature(flow, settings, user)
    pages = flow.finish()
    pdf = buf.getvalue()

    filename = quotation_filename(quotation)
    path = ""
    if output_path:
        path = os.path.join(output_path, filename) if os.path.isdir(output_path) else output_path
        with open(path, "wb") as f:
            f.write(pdf)

    result = {
        "ok": True,
        "pdf": pdf,
        "filename": filename,
        "path": path,
        "quotation_number": qn,
        "pages": pages,
        "items_count": len(items),
        "grand_total": round(sum(item_total(it) for it in items), 2),
        "currency": currency,
        "validity_date": validity_str,
        "missing_images": assets["failed"],
    }
    duration_ms = int((time.time() - started) * 1000)
    log.info("Quotation %s generated: %d pages, %s total, %d items in %dms%s",
             qn or "?", pages, format_price(result["grand_total"], currency), len(items),
             duration_ms, f" -> {path}" if path else "",
             extra={"quotation_number": qn, "pages": pages, "items": len(items),
                    "currency": currency, "duration_ms": duration_ms})
    return result
