"""
Terms & Conditions page and signature block.

Always starts on a fresh page after the last item. Entries are bulleted,
word-wrapped, and space-checked one at a time; the signature block reserves
its own fixed height.
"""

import re
import logging

from raisequote.forms.page_frame import (
    MARGIN, CONTENT_W, PAGE_W, BLACK, text, wrap, draw_lines,
)

log = logging.getLogger("quote_gen")

DEFAULT_TERMS = [
    {"title": "Packaging & Forwarding", "text": "Extra As Applicable"},
    {"title": "Freight", "text": "To Pay / Extra as applicable"},
    {"title": "DELIVERY", "text": "We deliver the order in 3-4 Weeks from the date of receipt of purchase order"},
    {"title": "INSTALLATION", "text": "Fees extra as applicable"},
    {"title": "PAYMENT", "text": "100% payment at the time of proforma invoice prior to dispatch."},
    {"title": "WARRANTY", "text": "One year warranty from the date of dispatch"},
    {"title": "GOVERNING LAW", "text": "These Terms and Conditions and any action related hereto shall be governed, controlled, interpreted and defined by and under the laws of the State of Telangana"},
    {"title": "MODIFICATION", "text": "Any modification of these Terms and Conditions shall be valid only if it is in writing and signed by the authorized representatives of both Supplier and Customer."},
]

DEFAULT_COMPANY_NAME = "Raise Lab Equipment"
DEFAULT_SIGNATORY = "SALES TEAM"
DEFAULT_CONTACT = "+91 91777 70365"

TERMS_TOP = 55
TERM_LINE_H = 5
TERM_GAP = 3
SIGNATURE_H = 40

_NUMBER_PREFIX = re.compile(r"^\d+\.\s*")


def clean_title(title) -> str:
    """'3. DELIVERY' -> 'DELIVERY'"""
    return _NUMBER_PREFIX.sub("", str(title or ""))


def terms_to_display(selected_terms) -> list:
    """Caller's terms when any were chosen, else the built-in set."""
    chosen = [t for t in (selected_terms or []) if isinstance(t, dict)]
    return chosen if chosen else DEFAULT_TERMS


def draw_terms(flow, selected_terms=None):
    """Terms And Conditions on a new page, one space check per entry."""
    c = flow.c
    terms = terms_to_display(selected_terms)
    if terms is DEFAULT_TERMS:
        log.debug("No terms selected, using the %d default terms", len(terms))
    flow.new_page(top=TERMS_TOP)

    text(c, MARGIN, flow.y, "Terms And Conditions:", "Helvetica-Bold", 12, BLACK)
    flow.y += 10

    for t in terms:
        full = f"{clean_title(t.get('title'))}: {t.get('text', '')}"
        lines = wrap(full, "Helvetica", 9, CONTENT_W - 5)
        block_h = len(lines) * TERM_LINE_H + TERM_GAP

        flow.ensure_space(block_h)
        text(c, MARGIN, flow.y, "•", "Helvetica", 9, BLACK)
        draw_lines(c, MARGIN + 5, flow.y, lines, TERM_LINE_H, "Helvetica", 9, BLACK)
        flow.y += block_h


def draw_signature(flow, settings=None, user=None):
    """Right-aligned sign-off: company, author name, author phone."""
    c = flow.c
    settings = settings or {}
    user = user or {}
    right = PAGE_W - MARGIN

    flow.ensure_space(SIGNATURE_H)
    flow.y += 15
    company = settings.get("company_name") or DEFAULT_COMPANY_NAME
    text(c, right, flow.y, f"From {company}", "Helvetica-Bold", 10, BLACK, "right")
    flow.y += 6
    name = str(user.get("full_name") or "").strip()
    text(c, right, flow.y, name.upper() if name else DEFAULT_SIGNATORY,
         "Helvetica-Bold", 10, BLACK, "right")
    flow.y += 6
    phone = user.get("phone") or DEFAULT_CONTACT
    text(c, right, flow.y, f"Contact: {phone}", "Helvetica", 9, BLACK, "right")
    flow.y += 6
