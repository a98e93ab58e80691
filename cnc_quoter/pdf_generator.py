"""
PDF exports: customer quote and material request (RFQ).

Uses fpdf2 (pure Python, no system dependencies).
Consumes QuoteSpec + CalculatedQuote + MaterialDefinition; the pricing
engine knows nothing about formatting. All rounding happens here.

Quote sections:
1. Header + part summary
2. Material & stock
3. Production operations
4. Cost breakdown
5. Quote total
6. Notices & notes
"""

import unicodedata
from datetime import date
from typing import Optional

from fpdf import FPDF

from .config import settings
from .schemas import CalculatedQuote, CrossSection, MaterialDefinition, QuoteSpec


CROSS_SECTION_NAMES = {
    CrossSection.RECTANGULAR: "Rectangular bar",
    CrossSection.ROUND: "Round bar",
    CrossSection.HEX: "Hex bar",
    CrossSection.SHEET: "Sheet",
}


def _fmt(amount, currency: str = "CZK") -> str:
    """Format a number as 1,234.50 CZK"""
    try:
        return f"{float(amount):,.2f} {currency}"
    except (ValueError, TypeError):
        return f"0.00 {currency}"


def format_czk(amount) -> str:
    return _fmt(amount, "CZK")


def format_native(amount, currency) -> str:
    return _fmt(amount, getattr(currency, "value", currency))


def _fmt_num(value, digits: int = 2) -> str:
    """Format a dimension without trailing zeros: 20.0 -> 20, 12.50 -> 12.5"""
    try:
        return f"{float(value):.{digits}f}".rstrip("0").rstrip(".")
    except (ValueError, TypeError):
        return "0"


def _safe(text: str) -> str:
    """Strip accents and anything else the built-in PDF fonts (latin-1) can't render."""
    if not text:
        return ""
    text = (
        text
        .replace("•", "-")    # bullet
        .replace("—", " - ")  # em dash
        .replace("–", "-")    # en dash
        .replace("„", '"')    # low double quote
        .replace("“", '"')    # left double quote
        .replace("”", '"')    # right double quote
        .replace("³", "3")    # superscript three
    )
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return text.encode("latin-1", errors="replace").decode("latin-1")


def describe_stock(spec: QuoteSpec) -> str:
    """Stock profile as a buyer would write it, e.g. 'D 20mm' or '50x25mm'."""
    dims = spec.dimensions
    unit = dims.unit.value
    if spec.cross_section == CrossSection.SHEET:
        return f"Sheet t={_fmt_num(dims.height)}{unit} ({spec.sheet_format.value})"
    if spec.cross_section == CrossSection.ROUND:
        return f"D {_fmt_num(dims.width)}{unit}"
    if spec.cross_section == CrossSection.HEX:
        return f"HEX {_fmt_num(dims.width)}{unit}"
    return f"{_fmt_num(dims.width)}x{_fmt_num(dims.height)}{unit}"


def describe_order_quantity(spec: QuoteSpec, calculated: CalculatedQuote) -> str:
    """How much stock to order: sheets, or 6 m / 3 m bars, or total metres as a last resort."""
    if spec.cross_section == CrossSection.SHEET:
        if calculated.sheet_count > 0:
            return f"{calculated.sheet_count} pcs (format {spec.sheet_format.value})"
        return "0 pcs"

    parts = []
    if calculated.bar_count_6m > 0:
        parts.append(f"{calculated.bar_count_6m}x 6m bar")
    if calculated.bar_count_3m > 0:
        parts.append(f"{calculated.bar_count_3m}x 3m bar")
    if parts:
        return ", ".join(parts)

    total_m = calculated.total_length_needed / 1000.0
    return f"Total: {total_m:.1f}m ({calculated.material_weight:.1f}kg)"


class QuotePDF(FPDF):
    """Custom PDF class for quote and RFQ documents."""

    def __init__(self, shop_name="", shop_info=""):
        super().__init__()
        self.shop_name = shop_name
        self.shop_info = shop_info
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        pass  # Headers are drawn per document

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        """Render a section header bar."""
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(45, 55, 72)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {title}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """Render a table header row. cols: [(label, width), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width in cols:
            align = "R" if label in ("Qty", "Hours", "Rate", "Total", "Weight") else "L"
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, widths):
        """Render a table data row. The last two columns are right-aligned."""
        self.set_font("Helvetica", "", 8)
        for i, (val, width) in enumerate(zip(values, widths)):
            align = "R" if i >= len(widths) - 2 else "L"
            self.cell(width, 5.5, _safe(str(val)), align=align)
        self.ln()

    def amount_row(self, label, amount, bold=False):
        self.set_font("Helvetica", "B" if bold else "", 10)
        self.cell(130, 6, _safe(label))
        self.cell(60, 6, format_czk(amount), align="R")
        self.ln()

    def line_pair(self, label, value):
        self.set_font("Helvetica", "", 9)
        self.cell(50, 5, _safe(label))
        self.cell(0, 5, _safe(str(value)), new_x="LMARGIN", new_y="NEXT")


def generate_quote_pdf(spec: QuoteSpec, calculated: CalculatedQuote,
                       material: Optional[MaterialDefinition] = None,
                       shop_name: str = "") -> bytes:
    """
    Generate the customer quote.

    Returns:
        PDF bytes
    """
    shop_name = shop_name or settings.COMPANY_NAME
    pdf = QuotePDF(shop_name=shop_name, shop_info=settings.COMPANY_ADDRESS)
    pdf.alias_nb_pages()
    pdf.add_page()

    # ── SECTION 1: Header ──
    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 10, _safe(shop_name), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 9)
    pdf.set_text_color(100, 100, 100)
    pdf.cell(0, 5, _safe(pdf.shop_info), new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(4)

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, "PRICE QUOTE", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, f"Date: {date.today().strftime('%d.%m.%Y')}", new_x="LMARGIN", new_y="NEXT")
    if spec.customer_name:
        pdf.cell(0, 5, _safe(f"Customer: {spec.customer_name}"), new_x="LMARGIN", new_y="NEXT")
    if spec.part_name:
        pdf.cell(0, 5, _safe(f"Part: {spec.part_name}"), new_x="LMARGIN", new_y="NEXT")
    pdf.cell(
        0, 5,
        f"Quantity: {spec.quantity_good} pcs (+{spec.quantity_scrap} scrap allowance)",
        new_x="LMARGIN", new_y="NEXT",
    )
    pdf.ln(6)

    # ── SECTION 2: Material & stock ──
    pdf.section_header("MATERIAL")
    material_name = material.name if material else spec.material_id
    pdf.line_pair("Material", material_name)
    pdf.line_pair("Profile", f"{CROSS_SECTION_NAMES[spec.cross_section]}, {describe_stock(spec)}")
    dims = spec.dimensions
    pdf.line_pair(
        "Part size",
        f"{_fmt_num(dims.length)} x {_fmt_num(dims.width)} x {_fmt_num(dims.height)} {dims.unit.value}",
    )
    pdf.line_pair("Weight per part", f"{calculated.material_weight_per_part:.3f} kg (gross)")
    pdf.line_pair("Total weight", f"{calculated.material_weight:.3f} kg")
    pdf.line_pair("Stock to order", describe_order_quantity(spec, calculated))
    if calculated.sheet_nesting is not None:
        nesting = calculated.sheet_nesting
        layout = "rotated" if nesting.rotated else "standard"
        pdf.line_pair(
            "Sheet layout",
            f"{nesting.columns} x {nesting.rows} = {nesting.parts_per_sheet} pcs/sheet ({layout})",
        )
    for bar in calculated.bar_nesting:
        pdf.line_pair(
            f"{bar.stock_length_mm / 1000:.0f} m bar",
            f"{bar.pieces_per_bar} pcs/bar, {bar.utilization * 100:.1f}% used",
        )
    pdf.ln(4)

    # ── SECTION 3: Operations ──
    pdf.section_header("PRODUCTION")
    cols = [("Operation", 90), ("Hours", 30), ("Rate", 30), ("Total", 40)]
    widths = [c[1] for c in cols]
    pdf.table_header(cols)
    rates = {op.id: op.hourly_rate for op in spec.operations}
    for op in calculated.operation_costs:
        pdf.table_row(
            [op.name or op.id, f"{op.hours:.2f}", f"{rates.get(op.id, 0):,.0f}/h", format_czk(op.cost)],
            widths,
        )
    pdf.ln(4)

    # ── SECTION 4: Cost breakdown ──
    pdf.section_header("COST BREAKDOWN")
    pdf.amount_row("Material", calculated.material_cost_total_czk)
    pdf.amount_row("Shipping", calculated.shipping_cost_czk)
    pdf.amount_row(f"Preparation & setup ({calculated.setup_hours_total:.1f} h)", calculated.setup_cost_total)
    pdf.amount_row(f"Machining ({calculated.total_machining_hours:.1f} h)", calculated.machining_cost_total)
    pdf.amount_row("Post-processing", calculated.post_process_total)

    pdf.set_draw_color(200, 200, 200)
    pdf.line(pdf.l_margin, pdf.get_y(), pdf.w - pdf.r_margin, pdf.get_y())
    pdf.ln(1)
    pdf.amount_row("Subtotal", calculated.subtotal, bold=True)
    if calculated.markup_amount:
        pdf.amount_row(f"Markup ({_fmt_num(spec.factors.markup_percentage)}%)", calculated.markup_amount)

    # ── SECTION 5: Total ──
    pdf.ln(1)
    pdf.set_fill_color(45, 55, 72)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(130, 10, "  QUOTE TOTAL", fill=True)
    pdf.cell(60, 10, f"{format_czk(calculated.total_price)}  ", fill=True, align="R")
    pdf.ln()
    pdf.set_font("Helvetica", "B", 10)
    pdf.set_text_color(0, 0, 0)
    pdf.cell(130, 7, "  Price per part")
    pdf.cell(60, 7, f"{format_czk(calculated.price_per_part)}  ", align="R")
    pdf.ln(12)

    # ── SECTION 6: Notices & notes ──
    pw = pdf.w - pdf.l_margin - pdf.r_margin
    if calculated.notices:
        pdf.section_header("NOTICES")
        pdf.set_font("Helvetica", "", 8)
        for notice in calculated.notices:
            pdf.set_x(pdf.l_margin)
            pdf.multi_cell(pw, 4.5, _safe(f"  - {notice}"), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(3)

    if spec.notes:
        pdf.section_header("NOTES")
        pdf.set_font("Helvetica", "", 9)
        pdf.multi_cell(pw, 4.5, _safe(spec.notes), new_x="LMARGIN", new_y="NEXT")

    return bytes(pdf.output())


def generate_material_rfq(spec: QuoteSpec, calculated: CalculatedQuote,
                          material: Optional[MaterialDefinition] = None) -> bytes:
    """
    Generate a material request (RFQ) for the stock supplier.

    Returns:
        PDF bytes
    """
    material_name = material.name if material else spec.material_id

    pdf = QuotePDF(shop_name=settings.COMPANY_NAME, shop_info=settings.COMPANY_ADDRESS)
    pdf.alias_nb_pages()
    pdf.add_page()
    pw = pdf.w - pdf.l_margin - pdf.r_margin

    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 10, "Material request (RFQ)", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, f"Date: {date.today().strftime('%d.%m.%Y')}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(8)

    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 6, "Buyer:", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, _safe(pdf.shop_name), new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, _safe(pdf.shop_info), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(8)

    pdf.set_font("Helvetica", "", 11)
    pdf.cell(0, 6, "Hello,", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(
        0, 6, "please send us a price and delivery date for the following material:",
        new_x="LMARGIN", new_y="NEXT",
    )
    pdf.ln(4)

    cols = [("Material", 55), ("Dimension", 45), ("Quantity", 60), ("Weight", 30)]
    widths = [c[1] for c in cols]
    pdf.table_header(cols)
    pdf.table_row(
        [
            material_name,
            describe_stock(spec),
            describe_order_quantity(spec, calculated),
            f"{calculated.material_weight:.1f} kg",
        ],
        widths,
    )
    pdf.ln(8)

    if spec.notes:
        pdf.set_font("Helvetica", "B", 10)
        pdf.cell(0, 5, "Notes:", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", "", 10)
        pdf.multi_cell(pw, 5, _safe(spec.notes), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(4)

    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, "Please include shipping in your offer.", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(5)
    pdf.cell(0, 5, "Thank you,", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, "Purchasing", new_x="LMARGIN", new_y="NEXT")

    return bytes(pdf.output())


def rfq_filename(spec: QuoteSpec, material: Optional[MaterialDefinition] = None) -> str:
    """e.g. RFQ_Ocel_4140_17.10.2026.pdf"""
    name = _safe(material.name if material else spec.material_id)
    return f"RFQ_{'_'.join(name.split())}_{date.today().strftime('%d.%m.%Y')}.pdf"
