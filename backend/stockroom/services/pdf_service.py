# Overview: Fixed-layout PDF documents (sales invoice, purchase order, sales voucher).

"""
PDF generation with reportlab.

Layouts are written in millimetres measured from the top-left corner of an
A4 page; _Page converts to reportlab's bottom-left points. Each builder
returns (filename, pdf_bytes).

The default currency prefix is "Tk": the taka sign is not in the built-in
Helvetica font.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from io import BytesIO

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ..models import Purchase, Sale, SalesVoucher
from ..models.common import money_str
from ..time_utils import to_iso_date

FONT = "Helvetica"
BOTTOM_MARGIN_MM = 280


@dataclass(frozen=True)
class CompanyInfo:
    name: str
    address: str
    phone: str


class _Page:
    """Thin wrapper so layout code can use jsPDF-style (x, y) in mm from the top."""

    def __init__(self, title: str):
        self.buffer = BytesIO()
        self.canvas = canvas.Canvas(self.buffer, pagesize=A4)
        self.canvas.setTitle(title)
        self.width, self.height = A4
        self.font_size = 12
        self.canvas.setFont(FONT, self.font_size)

    def _y(self, y_mm: float) -> float:
        return self.height - y_mm * mm

    def font(self, size: int) -> None:
        self.font_size = size
        self.canvas.setFont(FONT, size)

    def text(self, value: str, x_mm: float, y_mm: float, align: str = "left") -> None:
        if align == "center":
            self.canvas.drawCentredString(x_mm * mm, self._y(y_mm), value)
        else:
            self.canvas.drawString(x_mm * mm, self._y(y_mm), value)

    def line(self, x1_mm: float, y1_mm: float, x2_mm: float, y2_mm: float) -> None:
        self.canvas.line(x1_mm * mm, self._y(y1_mm), x2_mm * mm, self._y(y2_mm))

    def ensure_room(self, y_mm: float, restart_at: float = 20) -> float:
        if y_mm <= BOTTOM_MARGIN_MM:
            return y_mm
        self.canvas.showPage()
        self.canvas.setFont(FONT, self.font_size)
        return restart_at

    def finish(self) -> bytes:
        self.canvas.showPage()
        self.canvas.save()
        return self.buffer.getvalue()


def _money(value, currency: str) -> str:
    return f"{currency}{money_str(Decimal(value or 0))}"


def _item_header(page: _Page, y: float, columns: tuple[tuple[str, float], ...]) -> float:
    page.font(10)
    for label, x in columns:
        page.text(label, x, y)
    page.line(20, y + 2, 190, y + 2)
    return y + 10


def sales_invoice_pdf(sale: Sale, *, currency: str = "Tk") -> tuple[str, bytes]:
    page = _Page("Sales Invoice")

    page.font(20)
    page.text("Sales Invoice", 20, 30)

    page.font(12)
    page.text(f"Invoice ID: {sale.id}", 20, 50)
    page.text(f"Customer: {sale.customer_name or 'Walk-in Customer'}", 20, 60)
    page.text(f"Date: {to_iso_date(sale.date)}", 20, 70)
    page.text(f"Status: {sale.status}", 20, 80)
    if sale.notes:
        page.text(f"Notes: {sale.notes}", 20, 90)

    y = _item_header(
        page, 110,
        (("Product Name", 20), ("Quantity", 80), ("Unit Price", 120), ("Total Amount", 160)),
    )
    page.text(sale.product_name, 20, y)
    page.text(str(sale.quantity), 80, y)
    page.text(_money(sale.unit_price, currency), 120, y)
    page.text(_money(sale.total_amount, currency), 160, y)

    y += 20
    page.font(12)
    page.text(f"Total: {_money(sale.total_amount, currency)}", 160, y)

    return f"sales-invoice-{sale.id}.pdf", page.finish()


def purchase_order_pdf(purchase: Purchase, lines: list[Purchase] | None = None, *, currency: str = "Tk") -> tuple[str, bytes]:
    """
    Purchase order for one purchase, or for every line of its order when
    lines holds more than the purchase itself.
    """
    order_id = purchase.purchase_order_id or purchase.id
    page = _Page("Purchase Order")

    page.font(20)
    page.text("Purchase Order", 20, 30)

    page.font(12)
    page.text(f"Order ID: {order_id}", 20, 50)
    page.text(f"Supplier: {purchase.supplier}", 20, 60)
    page.text(f"Date: {to_iso_date(purchase.date)}", 20, 70)
    page.text(f"Status: {purchase.status}", 20, 80)
    if purchase.notes:
        page.text(f"Notes: {purchase.notes}", 20, 90)

    y = _item_header(
        page, 110,
        (("Product Name", 20), ("Quantity", 80), ("Unit Price", 120), ("Total Amount", 160)),
    )

    if lines and len(lines) > 1:
        for line in lines:
            y = page.ensure_room(y)
            page.text(line.product_name, 20, y)
            page.text(str(line.quantity), 80, y)
            page.text(_money(line.unit_price, currency), 120, y)
            page.text(_money(line.total_amount, currency), 160, y)
            y += 10

        grand_total = sum((Decimal(line.total_amount or 0) for line in lines), Decimal("0"))
        page.line(20, y, 190, y)
        y += 10
        page.font(12)
        page.text(f"Grand Total: {_money(grand_total, currency)}", 160, y)
    else:
        page.text(purchase.product_name, 20, y)
        page.text(str(purchase.quantity), 80, y)
        page.text(_money(purchase.unit_price, currency), 120, y)
        page.text(_money(purchase.total_amount, currency), 160, y)

        y += 20
        page.font(12)
        page.text(f"Total: {_money(purchase.total_amount, currency)}", 160, y)

    return f"purchase-order-{order_id}.pdf", page.finish()


def sales_voucher_pdf(voucher: SalesVoucher, company: CompanyInfo, *, currency: str = "Tk") -> tuple[str, bytes]:
    page = _Page("Sales Voucher")

    page.font(20)
    page.text("SALES VOUCHER", 105, 20, align="center")

    page.font(12)
    page.text(company.name, 20, 40)
    page.text(company.address, 20, 50)
    page.text(f"Phone: {company.phone}", 20, 60)

    page.text(f"Voucher No: {voucher.voucher_number}", 120, 40)
    page.text(f"Date: {to_iso_date(voucher.date)}", 120, 50)
    page.text(f"Customer: {voucher.customer_name or 'Walk-in Customer'}", 120, 60)
    page.text(f"Payment: {voucher.payment_method}", 120, 70)

    y = 90
    page.font(10)
    for label, x in (("Product", 20), ("Qty", 120), ("Unit Price", 140), ("Total", 170)):
        page.text(label, x, y)
    page.line(20, y + 2, 190, y + 2)
    y += 10

    for item in voucher.items:
        y = page.ensure_room(y)
        page.text(item.product_name, 20, y)
        page.text(str(item.quantity), 120, y)
        page.text(_money(item.unit_price, currency), 140, y)
        page.text(_money(item.total_amount, currency), 170, y)
        y += 8

    y = page.ensure_room(y + 10)
    page.line(120, y, 190, y)
    y += 10

    page.text(f"Subtotal: {_money(voucher.total_amount, currency)}", 120, y)
    y += 8
    if Decimal(voucher.discount_amount or 0) > 0:
        page.text(f"Discount: {_money(voucher.discount_amount, currency)}", 120, y)
        y += 8

    page.font(12)
    page.text(f"Total: {_money(voucher.final_amount, currency)}", 120, y)

    y = page.ensure_room(y + 30)
    page.font(10)
    page.text("Thank you for your business!", 105, y, align="center")

    return f"sales-voucher-{voucher.voucher_number}.pdf", page.finish()
