"""
Page chrome for Raise Lab quotation PDFs.

Every page gets the same frame: blue/orange double border, logo top-left,
company block top-right over a double rule, and the contact box at the
bottom. Page numbers are stamped afterwards by NumberedCanvas, once the total
page count is known.

All positions here are top-origin millimetres (A4 portrait, 210 x 297), the
way the layout is specified; text() / image() convert to reportlab points.
"""

import io

from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

# ═══════════════════════════════════════════════════════════════════════════════
# GEOMETRY (mm)
# ═══════════════════════════════════════════════════════════════════════════════
PAGE_W = A4[0] / mm            # 210
PAGE_H = A4[1] / mm            # 297
MARGIN = 15
CONTENT_W = PAGE_W - 2 * MARGIN
FOOTER_H = 20
CONTENT_BOTTOM = PAGE_H - FOOTER_H - 5   # nothing is placed below this line
CONTENT_TOP = 50                         # cursor after the header on every page
PAGE_ROOM = CONTENT_BOTTOM - CONTENT_TOP   # usable height of a fresh page

# ═══════════════════════════════════════════════════════════════════════════════
# BRAND COLORS
# ═══════════════════════════════════════════════════════════════════════════════
RAISE_BLUE   = Color(0 / 255, 82 / 255, 156 / 255)    # #00529C
RAISE_ORANGE = Color(255 / 255, 102 / 255, 0 / 255)   # #FF6600
BLACK        = Color(0, 0, 0)
WHITE        = Color(1, 1, 1)
ADDR_GRAY    = Color(60 / 255, 60 / 255, 60 / 255)

# ═══════════════════════════════════════════════════════════════════════════════
# COMPANY INFO
# ═══════════════════════════════════════════════════════════════════════════════
COMPANY = {
    "name":     "Raise Lab Equipment",
    "header":   "RAISE LAB EQUIPMENT",
    "address":  ["C-6, B1, Industrial Park, Moula Ali,",
                 "Hyderabad, Secunderabad,",
                 "Telangana 500040"],
    "emails":   "info@raiselabequip.com / sales@raiselabequip.com",
    "phone":    "+91 91777 70365",
}

LOGO_BOX = (MARGIN, 12, 70, 25)  # x, top, max width, max height


def Y(top_mm: float) -> float:
    """Top-origin mm -> reportlab bottom-origin points."""
    return (PAGE_H - top_mm) * mm


def text(c, x, y, txt, font="Helvetica", size=9, color=BLACK, align="left"):
    """Draw one line with its baseline at top-origin (x, y) mm."""
    c.setFont(font, size)
    c.setFillColor(color)
    s = str(txt) if txt is not None else ""
    if align == "right":
        c.drawRightString(x * mm, Y(y), s)
    elif align == "center":
        c.drawCentredString(x * mm, Y(y), s)
    else:
        c.drawString(x * mm, Y(y), s)


def image(c, resolved: dict, x, top, w, h):
    """Draw a prefetched image with its top-left corner at (x, top) mm."""
    reader = ImageReader(io.BytesIO(resolved["data"]))
    c.drawImage(reader, x * mm, Y(top + h), width=w * mm, height=h * mm)


def fit_image(resolved: dict, max_w: float, max_h: float):
    """Aspect-preserving (w, h) in mm inside a max_w x max_h envelope."""
    ratio = min(max_w / resolved["width"], max_h / resolved["height"])
    return resolved["width"] * ratio, resolved["height"] * ratio


def _draw_borders(c):
    # Outer blue border
    c.setStrokeColor(RAISE_BLUE)
    c.setLineWidth(1.2 * mm)
    c.rect(5 * mm, 5 * mm, (PAGE_W - 10) * mm, (PAGE_H - 10) * mm, fill=0, stroke=1)

    # Inner orange border
    c.setStrokeColor(RAISE_ORANGE)
    c.setLineWidth(0.8 * mm)
    c.rect(7 * mm, 7 * mm, (PAGE_W - 14) * mm, (PAGE_H - 14) * mm, fill=0, stroke=1)


def _draw_footer(c):
    box_x, box_top, box_w, box_h = MARGIN + 10, PAGE_H - 20, CONTENT_W - 20, 8
    c.setStrokeColor(BLACK)
    c.setLineWidth(0.3 * mm)
    c.rect(box_x * mm, Y(box_top + box_h), box_w * mm, box_h * mm, fill=0, stroke=1)
    text(c, PAGE_W / 2, PAGE_H - 14.5,
         f"Write us: {COMPANY['emails']} | Contact: {COMPANY['phone']}",
         "Helvetica-Bold", 8, BLACK, "center")


def _draw_header(c, logo):
    if logo:
        x, top, max_w, max_h = LOGO_BOX
        w, h = fit_image(logo, max_w, max_h)
        image(c, logo, x, top, w, h)

    right = PAGE_W - MARGIN
    text(c, right, 18, COMPANY["header"], "Helvetica-Bold", 11, RAISE_BLUE, "right")
    line_step = 9 * 1.4 / mm  # 9pt font at 1.4 line height, in mm
    for i, line in enumerate(COMPANY["address"]):
        text(c, right, 24 + i * line_step, line, "Helvetica", 9, ADDR_GRAY, "right")

    c.setStrokeColor(RAISE_BLUE)
    c.setLineWidth(0.5 * mm)
    c.line(MARGIN * mm, Y(42), right * mm, Y(42))
    c.setStrokeColor(RAISE_ORANGE)
    c.setLineWidth(0.3 * mm)
    c.line(MARGIN * mm, Y(43), right * mm, Y(43))


def draw_page_frame(c, logo=None):
    """Border, header and footer for the current page. Safe to call on any page."""
    c.saveState()
    _draw_borders(c)
    _draw_footer(c)
    _draw_header(c, logo)
    c.restoreState()


# ═══════════════════════════════════════════════════════════════════════════════
# PAGE NUMBERING PASS
# ═══════════════════════════════════════════════════════════════════════════════

class NumberedCanvas(canvas.Canvas):
    """
    Canvas that holds back every finished page until save(), then replays
    them stamping "Page i of N" now that N is known.
    """

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []
        self.page_count = 0

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_page_number(total)
            canvas.Canvas.showPage(self)
        self.page_count = total
        canvas.Canvas.save(self)

    def draw_page_number(self, total):
        text(self, PAGE_W - MARGIN, PAGE_H - 8,
             f"Page {self._pageNumber} of {total}", "Helvetica", 8, BLACK, "right")


# ═══════════════════════════════════════════════════════════════════════════════
# FLOW CURSOR
# ═══════════════════════════════════════════════════════════════════════════════

def wrap(txt, font, size, width_mm):
    """Split text into lines exactly as they will be drawn at width_mm."""
    return simpleSplit(str(txt or ""), font, size, width_mm * mm)


def draw_lines(c, x, y, lines, step, font="Helvetica", size=9, color=BLACK):
    """Draw pre-wrapped lines from baseline y, step mm apart. Returns block height."""
    for i, line in enumerate(lines):
        text(c, x, y + i * step, line, font, size, color)
    return len(lines) * step


class PageFlow:
    """
    Vertical cursor over a NumberedCanvas.

    ensure_space() is the only place a page break is decided: if the next
    block would cross CONTENT_BOTTOM the page is closed, a fresh frame drawn
    and the cursor reset to CONTENT_TOP. first_page stays True until the
    first break.
    """

    def __init__(self, c, logo=None):
        self.c = c
        self.logo = logo
        self.page = 1
        self.first_page = True
        self.y = CONTENT_TOP
        draw_page_frame(c, logo)

    def new_page(self, top=CONTENT_TOP):
        self.c.showPage()
        self.page += 1
        self.first_page = False
        draw_page_frame(self.c, self.logo)
        self.y = top

    def ensure_space(self, height) -> bool:
        """Start a new page unless `height` mm still fits. True if a page was added."""
        if self.y + height > CONTENT_BOTTOM:
            self.new_page()
            return True
        return False

    def finish(self) -> int:
        """Close the last page, run the numbering pass, return the page count."""
        self.c.showPage()
        self.c.save()
        return self.c.page_count
