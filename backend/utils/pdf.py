# backend/utils/pdf.py

from pathlib import Path
from typing import List, Tuple, Union

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from config import settings
from schemas.reports import SellerSalesReport, UserPurchaseReport

FONT_REGULAR_NAME = "Helvetica"
FONT_BOLD_NAME = "Helvetica-Bold"

Report = Union[UserPurchaseReport, SellerSalesReport]


def ensure_storage_dir() -> Path:
    storage = Path(settings.REPORT_STORAGE_DIR)
    storage.mkdir(parents=True, exist_ok=True)
    return storage


def get_report_pdf_path(kind: str, owner_id: int, month: str) -> Path:
    """Returns the file path for a monthly report, e.g. sales-3-2024-05.pdf"""
    return ensure_storage_dir() / f"{kind}-{owner_id}-{month}.pdf"


def _fmt(value) -> str:
    return f"{value:.2f}"


def _summary_lines(report: Report) -> Tuple[str, List[Tuple[str, str]]]:
    details = report.carbon_impact_details
    if isinstance(report, SellerSalesReport):
        title = f"Sales report: {report.seller_name}"
        lines = [
            ("Orders", str(report.total_orders)),
            ("Items sold", str(report.total_items_sold)),
            ("Revenue", _fmt(report.total_revenue)),
            ("Carbon impact (kg CO2e)", _fmt(report.total_carbon_impact)),
        ]
    else:
        title = f"Purchase report: {report.user_name}"
        lines = [
            ("Orders", str(report.total_orders)),
            ("Items bought", str(report.total_items_bought)),
            ("Total spent", _fmt(report.total_spent)),
            ("Carbon emitted (kg CO2e)", _fmt(report.total_carbon_emitted)),
        ]
    lines += [
        ("Estimated carbon saved (kg CO2e)", _fmt(details.estimated_carbon_saved)),
        ("Average carbon per item", _fmt(details.average_carbon_per_item)),
        ("Eco-friendly / moderate / high impact items",
         f"{details.eco_friendly_item_count} / {details.moderate_impact_item_count} / "
         f"{details.high_impact_item_count}"),
    ]
    return title, lines


def generate_report_pdf(report: Report, out_path: Path) -> None:
    """
    Renders a monthly report:
    - header with owner and month
    - summary block with totals and carbon details
    - category breakdown table
    - line listing, continued on new pages as needed
    """
    c = canvas.Canvas(str(out_path), pagesize=A4)
    width, height = A4

    def draw_text(x, y, text, font=FONT_REGULAR_NAME, size=10, align="left"):
        c.setFont(font, size)
        text_str = str(text) if text is not None else ""
        if align == "right":
            c.drawRightString(x, y, text_str)
        else:
            c.drawString(x, y, text_str)

    def next_page_if_needed(current_y):
        if current_y < 30 * mm:
            c.showPage()
            return height - 20 * mm
        return current_y

    def table_header(current_y, columns):
        c.setFillColorRGB(0.9, 0.95, 0.9)
        c.rect(20 * mm, current_y - 2 * mm, 170 * mm, 8 * mm, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        for x, label, align in columns:
            draw_text(x, current_y, label, font=FONT_BOLD_NAME, size=9, align=align)
        return current_y - 8 * mm

    title, lines = _summary_lines(report)

    # --- Header ---
    y = height - 20 * mm
    draw_text(20 * mm, y, title, font=FONT_BOLD_NAME, size=16)
    draw_text(190 * mm, y, report.month, font=FONT_BOLD_NAME, size=12, align="right")
    y -= 6 * mm
    c.setLineWidth(0.5)
    c.line(20 * mm, y, 190 * mm, y)
    y -= 10 * mm

    # --- Summary ---
    for label, value in lines:
        draw_text(20 * mm, y, label)
        draw_text(190 * mm, y, value, font=FONT_BOLD_NAME, align="right")
        y -= 6 * mm
    y -= 6 * mm

    # --- Category breakdown ---
    draw_text(20 * mm, y, "By category", font=FONT_BOLD_NAME, size=11)
    y -= 8 * mm
    y = table_header(y, [
        (22 * mm, "Category", "left"),
        (110 * mm, "Items", "right"),
        (130 * mm, "Orders", "right"),
        (160 * mm, "Amount", "right"),
        (188 * mm, "kg CO2e", "right"),
    ])
    is_sales = isinstance(report, SellerSalesReport)
    for row in report.category_breakdown:
        amount = row.total_revenue if is_sales else row.total_spent
        draw_text(22 * mm, y, row.category[:40], size=9)
        draw_text(110 * mm, y, row.item_count, size=9, align="right")
        draw_text(130 * mm, y, row.order_count, size=9, align="right")
        draw_text(160 * mm, y, _fmt(amount), size=9, align="right")
        draw_text(188 * mm, y, _fmt(row.total_carbon_emitted), size=9, align="right")
        y = next_page_if_needed(y - 6 * mm)
    y -= 8 * mm

    # --- Lines ---
    y = next_page_if_needed(y)
    draw_text(20 * mm, y, "Items sold" if is_sales else "Items bought", font=FONT_BOLD_NAME, size=11)
    y -= 8 * mm
    y = table_header(y, [
        (22 * mm, "Order", "left"),
        (40 * mm, "Product", "left"),
        (110 * mm, "Rating", "left"),
        (145 * mm, "Qty", "right"),
        (165 * mm, "Amount", "right"),
        (188 * mm, "kg CO2e", "right"),
    ])
    lines_list = report.items_sold if is_sales else report.items_bought
    for it in lines_list:
        qty = it.quantity_sold if is_sales else it.quantity_bought
        amount = it.total_revenue if is_sales else it.total_cost
        carbon = it.total_carbon_impact if is_sales else it.total_carbon_emitted
        draw_text(22 * mm, y, f"#{it.order_id}", size=9)
        draw_text(40 * mm, y, it.product_name[:38], size=9)
        draw_text(110 * mm, y, it.eco_rating, size=9)
        draw_text(145 * mm, y, qty, size=9, align="right")
        draw_text(165 * mm, y, _fmt(amount), size=9, align="right")
        draw_text(188 * mm, y, _fmt(carbon), size=9, align="right")
        c.setLineWidth(0.1)
        c.line(20 * mm, y - 2 * mm, 190 * mm, y - 2 * mm)
        y = next_page_if_needed(y - 6 * mm)

    c.showPage()
    c.save()
