"""
PDF Quote Generator.

Renders a quote session and its already-computed totals to a PDF document.
Uses fpdf2 (pure Python, no system dependencies).

Nothing here recomputes costs: amounts come from each line item's stored
total and from the GrandTotal passed in, so the document always matches
what was on screen.

Sections:
1. Letterhead (modern / corporate / minimal)
2. Bill-to + quote details
3. Item table (signs, manual items, services, discount, total)
4. Terms, signatures, footer
"""

import logging
import re
from pathlib import Path

from fpdf import FPDF

from .config import settings
from .models import DiscountType, PdfTemplate, SignCategory

logger = logging.getLogger(__name__)


TEMPLATES = {
    PdfTemplate.MODERN: {
        "primary": (59, 130, 246),
        "secondary": (30, 41, 59),
        "header_bg": (241, 245, 249),
        "text": (51, 65, 85),
        "font": "Helvetica",
    },
    PdfTemplate.CORPORATE: {
        "primary": (15, 23, 42),
        "secondary": (51, 65, 85),
        "header_bg": (255, 255, 255),
        "text": (30, 41, 59),
        "font": "Times",
    },
    PdfTemplate.MINIMAL: {
        "primary": (0, 0, 0),
        "secondary": (80, 80, 80),
        "header_bg": (255, 255, 255),
        "text": (0, 0, 0),
        "font": "Courier",
    },
}

THREE_D_CATEGORIES = (SignCategory.THREE_D_SS, SignCategory.THREE_D_DS)
LIGHT_BOARD_CATEGORIES = (SignCategory.SSWL, SignCategory.DSWL)

TERMS = [
    "1. 50% Advance payment required to commence work.",
    "2. Balance payment to be settled upon completion/delivery.",
    f"3. Quotation valid for {settings.QUOTE_VALID_DAYS} days.",
    "4. Goods once sold are not returnable.",
]

# Item table column widths (mm); description takes the rest
NUM_COL_W = 15
AMOUNT_COL_W = 40
ROW_LINE_H = 5


def _safe(text: str) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        text
        .replace("•", "-")    # bullet
        .replace("—", " - ")  # em dash
        .replace("–", "-")    # en dash
        .replace("“", '"')
        .replace("”", '"')
        .replace("‘", "'")
        .replace("’", "'")
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


def _money(amount, symbol: str) -> str:
    try:
        return f"{symbol} {float(amount):,.2f}"
    except (ValueError, TypeError):
        return f"{symbol} 0.00"


def _num(value) -> str:
    """10.0 -> '10', 2.5 -> '2.5'"""
    return f"{float(value):g}"


def describe_line_item(item, show_area: bool = True, currency: str = "Rs.") -> str:
    """Customer-facing description for one line item."""
    if item.kind == "manual":
        return (f"{item.description}\n"
                f"Qty: {_num(item.quantity)} x Rate: {currency}{item.rate:,.2f}")

    spec = item.spec
    result = item.breakdown
    headline = [
        f"{_num(spec.width)}' x {_num(spec.height)}' {spec.category.value}",
        f"Type: {spec.sub_type}",
    ]

    details = []
    if spec.category in THREE_D_CATEGORIES:
        details += [
            "- 4mm Outdoor ACP Backing Sheet",
            "- High-quality Acrylic Face",
            "- Premium LED Illumination (Modules/Pixel)",
            "- Weather-resistant construction",
        ]
    elif spec.category in LIGHT_BOARD_CATEGORIES:
        details += [
            "- Heavy Duty Steel Box Frame (Zinc Coated)",
            "- Translucent Face Material",
            "- Box Depth: 6-8 inches",
            "- Weather-proof Backing (Zinc/ACP)",
        ]
        if result.light_qty > 0:
            details.append(f"- {result.light_qty}x LED Tube Lights")
    else:
        details += [
            "- Heavy Duty Steel Frame",
            "- Rust-proof primer finish",
            "- High-resolution print",
        ]

    if show_area:
        details.append(f"- Total Area: {result.area:.2f} sq.ft")
    if spec.gi_stand_qty > 0:
        details.append(f"- {spec.gi_stand_qty}x GI Stands ({spec.gi_pipe_size})")
    if spec.concrete_base_qty > 0:
        details.append(f"- {spec.concrete_base_qty}x Concrete Bases")

    return "\n".join(headline) + "\n\n" + "\n".join(details)


def quote_filename(client_name: str, serial_number: str) -> str:
    clean = re.sub(r"[^a-zA-Z0-9]", "_", client_name or "") or "Quote"
    return f"{clean}_{serial_number}.pdf"


class QuotePDF(FPDF):
    """Quote document with a swappable visual template."""

    def __init__(self, template=PdfTemplate.MODERN, company: dict = None, year: int = None):
        super().__init__()
        self.template = PdfTemplate(template)
        self.theme = TEMPLATES[self.template]
        self.company = company or {}
        self.year = year
        self.set_margins(20, 20, 20)
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        pass  # Letterhead is drawn once on the first page

    def footer(self):
        self.set_y(-15)
        self.set_font(self.theme["font"], "", 8)
        self.set_text_color(150, 150, 150)
        owner = self.company.get("name", "")
        year = f"{self.year} " if self.year else ""
        self.cell(0, 10, _safe(f"(c) {year}{owner}. All rights reserved  |  Page {self.page_no()}/{{nb}}"),
                  align="C")

    def text_rgb(self, rgb):
        self.set_text_color(*rgb)

    def letterhead(self) -> float:
        """Draw the company header. Returns the y where content starts."""
        t = self.theme
        name = _safe(self.company.get("name", ""))
        address_lines = [_safe(line) for line in self.company.get("address", "").split("\n") if line]
        contact = _safe(self.company.get("contact", ""))

        if self.template == PdfTemplate.MODERN:
            self.set_fill_color(*t["primary"])
            self.rect(0, 0, self.w, 5, "F")
            self.set_xy(self.l_margin, 12)
            self.set_font(t["font"], "B", 18)
            self.text_rgb(t["secondary"])
            self.cell(0, 8, name)
            self.set_xy(self.l_margin, 20)
            self.set_font(t["font"], "B", 24)
            self.text_rgb(t["primary"])
            self.cell(0, 10, "QUOTATION", align="R")
            self.set_xy(self.l_margin, 21)
            self._address_block(address_lines, contact, align="L")
            y = max(self.get_y(), 32) + 4
            self.set_draw_color(226, 232, 240)
            self.set_line_width(0.5)
            self.line(self.l_margin, y, self.w - self.r_margin, y)
            return y + 8

        if self.template == PdfTemplate.CORPORATE:
            self.set_fill_color(*t["primary"])
            self.rect(0, 0, self.w, 45, "F")
            self.set_xy(self.l_margin, 10)
            self.set_font(t["font"], "B", 24)
            self.set_text_color(255, 255, 255)
            self.cell(0, 10, name)
            self.set_xy(self.l_margin, 21)
            self.set_font(t["font"], "", 10)
            for line in address_lines[:2] + [contact]:
                self.cell(0, 5, line, new_x="LMARGIN", new_y="NEXT")
            self.set_xy(self.l_margin, 32)
            self.set_font(t["font"], "B", 26)
            self.cell(0, 10, "QUOTATION", align="R")
            return 55

        # Minimal
        self.set_xy(self.l_margin, 14)
        self.set_font(t["font"], "B", 18)
        self.text_rgb(t["primary"])
        self.cell(0, 8, name.upper(), align="C")
        self.set_draw_color(0, 0, 0)
        self.set_line_width(1)
        self.line(self.w / 2 - 20, 24, self.w / 2 + 20, 24)
        self.set_xy(self.l_margin, 28)
        self._address_block(address_lines, contact, align="C")
        return self.get_y() + 8

    def _address_block(self, lines, contact, align="L"):
        self.set_font(self.theme["font"], "", 9)
        self.text_rgb(self.theme["secondary"])
        for line in lines + ([f"Tel: {contact}"] if contact else []):
            self.cell(0, 4.5, line, align=align, new_x="LMARGIN", new_y="NEXT")

    def detail_row(self, label, value, x, y):
        self.set_xy(x, y)
        self.set_font(self.theme["font"], "B", 10)
        self.cell(28, 5, label)
        self.set_font(self.theme["font"], "", 10)
        self.cell(self.w - self.r_margin - x - 28, 5, _safe(value), align="R")

    def table_header(self, desc_w):
        t = self.theme
        minimal = self.template == PdfTemplate.MINIMAL
        self.set_font(t["font"], "B", 11)
        if minimal:
            self.set_fill_color(255, 255, 255)
            self.set_text_color(0, 0, 0)
        else:
            self.set_fill_color(*t["primary"])
            self.set_text_color(255, 255, 255)
        self.cell(NUM_COL_W, 8, "#", fill=True, align="C")
        self.cell(desc_w, 8, "Description", fill=True)
        self.cell(AMOUNT_COL_W, 8, "Amount", fill=True, align="R", new_x="LMARGIN", new_y="NEXT")

    def table_row(self, number, description, amount, desc_w, style="", size=10,
                  fill=None, color=None, desc_align="L"):
        """One item row; the description wraps and sets the row height."""
        t = self.theme
        self.set_font(t["font"], style, size)
        text = _safe(description)
        line_h = ROW_LINE_H if size <= 10 else 7
        lines = self.multi_cell(desc_w - 4, line_h, text, dry_run=True, output="LINES")
        row_h = max(len(lines), 1) * line_h + 4
        if self.will_page_break(row_h):
            self.add_page()

        x0, y0 = self.l_margin, self.get_y()
        if fill is not None:
            self.set_fill_color(*fill)
            self.rect(x0, y0, NUM_COL_W + desc_w + AMOUNT_COL_W, row_h, "F")
        self.text_rgb(color or t["text"])

        self.set_xy(x0, y0 + 2)
        self.cell(NUM_COL_W, line_h, str(number), align="C")
        self.set_xy(x0 + NUM_COL_W + 2, y0 + 2)
        self.multi_cell(desc_w - 4, line_h, text, align=desc_align)
        self.set_xy(x0 + NUM_COL_W + desc_w, y0 + 2)
        self.cell(AMOUNT_COL_W, line_h, _safe(amount), align="R")

        if self.template != PdfTemplate.MINIMAL:
            self.set_draw_color(230, 230, 230)
            self.set_line_width(0.2)
            self.line(x0, y0 + row_h, x0 + NUM_COL_W + desc_w + AMOUNT_COL_W, y0 + row_h)
        self.set_xy(x0, y0 + row_h)


def generate_quote_pdf(session, totals, prices) -> bytes:
    """
    Render a quote to PDF.

    Args:
        session: QuoteSession (client, items, services, discount, export options)
        totals: GrandTotal already computed for that session
        prices: PriceBook in effect (currency symbol)

    Returns:
        PDF bytes
    """
    client = session.client
    options = session.export_options
    currency = prices.currency_symbol
    company = {
        "name": settings.COMPANY_NAME,
        "address": settings.COMPANY_ADDRESS,
        "contact": settings.COMPANY_CONTACT,
        "email": settings.COMPANY_EMAIL,
    }

    pdf = QuotePDF(template=options.template, company=company, year=client.issue_date.year)
    pdf.add_page()
    t = pdf.theme
    pw = pdf.w - pdf.l_margin - pdf.r_margin
    desc_w = pw - NUM_COL_W - AMOUNT_COL_W

    # ── Letterhead ──
    box_y = pdf.letterhead()

    # ── Bill to ──
    pdf.set_xy(pdf.l_margin, box_y)
    pdf.set_font(t["font"], "B", 10)
    pdf.text_rgb(t["primary"])
    pdf.cell(0, 5, "BILL TO:", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font(t["font"], "", 10)
    pdf.text_rgb(t["text"])
    for line in [client.client_name or settings.DEFAULT_CLIENT_NAME,
                 client.client_address, client.client_contact]:
        if line:
            pdf.cell(90, 5, _safe(line), new_x="LMARGIN", new_y="NEXT")
    bill_bottom = pdf.get_y()

    # ── Quote details ──
    right_x = pdf.w - pdf.r_margin - 70
    pdf.set_xy(right_x, box_y)
    pdf.set_font(t["font"], "B", 10)
    pdf.text_rgb(t["primary"])
    pdf.cell(70, 5, "DETAILS:")
    pdf.text_rgb(t["text"])
    rows = [
        ("Date:", client.issue_date.isoformat()),
        ("Ref #:", client.serial_number),
        ("Valid Until:", client.expire_date.isoformat()),
    ]
    if client.quote_by:
        rows.append(("Prepared By:", client.quote_by))
    for i, (label, value) in enumerate(rows, start=1):
        pdf.detail_row(label, value, right_x, box_y + i * 5)

    pdf.set_xy(pdf.l_margin, max(bill_bottom, box_y + (len(rows) + 1) * 5) + 6)

    if client.subject:
        pdf.set_font(t["font"], "B", 10)
        pdf.text_rgb(t["secondary"])
        pdf.multi_cell(pw, 5, _safe(f"Subject: {client.subject}"), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(3)

    # ── Item table ──
    pdf.table_header(desc_w)
    for index, item in enumerate(session.items, start=1):
        pdf.table_row(
            index,
            describe_line_item(item, show_area=options.show_area, currency=currency),
            _money(item.total, currency),
            desc_w,
        )

    services = [
        ("Installation Services", "Professional mounting, alignment & safety compliance",
         totals.installation_cost),
        ("Transportation", "Safe delivery to site, loading & unloading",
         totals.transportation_cost),
        ("Artwork & Design", "Custom design as per client requirements",
         totals.artwork_cost),
    ]
    for name, desc, cost in services:
        if cost > 0:
            pdf.table_row("", f"{name}\n{desc}", _money(cost, currency), desc_w)

    discount = session.discount
    if discount.amount > 0:
        pdf.table_row("", "Subtotal", _money(totals.sub_total_before_discount, currency),
                      desc_w, style="B", desc_align="R")
        label = (f"Discount ({_num(discount.amount)}%)" if discount.kind == DiscountType.PERCENTAGE
                 else "Discount")
        pdf.table_row("", label, f"-{_money(totals.discount_amount, currency)}",
                      desc_w, desc_align="R", color=(220, 50, 50))

    total_color = t["primary"] if pdf.template == PdfTemplate.MODERN else t["text"]
    pdf.table_row("", "TOTAL AMOUNT", _money(totals.final_total, currency), desc_w,
                  style="B", size=14, fill=t["header_bg"], color=total_color, desc_align="R")

    # ── Terms & signatures ──
    if pdf.will_page_break(75):
        pdf.add_page()
    pdf.ln(20)
    pdf.set_font(t["font"], "B", 8)
    pdf.text_rgb(t["secondary"])
    pdf.cell(0, 5, "TERMS & CONDITIONS:", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font(t["font"], "", 8)
    for term in TERMS:
        pdf.cell(0, 4, term, new_x="LMARGIN", new_y="NEXT")

    sig_y = pdf.get_y() + 20
    pdf.set_draw_color(150, 150, 150)
    pdf.set_line_width(0.5)
    pdf.line(pdf.l_margin, sig_y, pdf.l_margin + 60, sig_y)
    pdf.line(pdf.w - pdf.r_margin - 60, sig_y, pdf.w - pdf.r_margin, sig_y)
    pdf.set_font(t["font"], "", 9)
    pdf.set_xy(pdf.l_margin, sig_y + 2)
    pdf.cell(60, 5, "Customer Signature")
    pdf.set_xy(pdf.w - pdf.r_margin - 60, sig_y + 2)
    pdf.cell(60, 5, "Authorized Signature", new_x="LEFT", new_y="NEXT")
    pdf.cell(60, 5, _safe(company["name"]))

    logger.info("Rendered quote %s (%d items, %s template)",
                client.serial_number, len(session.items), pdf.template.value)
    return bytes(pdf.output())


def save_quote_pdf(session, totals, prices, directory=".") -> Path:
    """Render and write the quote as <client>_<serial>.pdf in `directory`."""
    path = Path(directory) / quote_filename(session.client.client_name, session.client.serial_number)
    path.write_bytes(generate_quote_pdf(session, totals, prices))
    logger.info("Saved quote to %s", path)
    return path
