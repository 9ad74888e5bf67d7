"""PDF layout smoke tests: valid documents with the expected file names."""

import re
from datetime import date
from decimal import Decimal

from stockroom.models import Purchase, Sale, SalesVoucher, SalesVoucherItem
from stockroom.services import pdf_service

COMPANY = pdf_service.CompanyInfo(name="Acme Trading", address="1 Market Road", phone="555-0100")


def _page_count(data: bytes) -> int:
    return len(re.findall(rb"/Type /Page[^s]", data))


def _voucher(item_count: int, discount: str = "0.00") -> SalesVoucher:
    items = [
        SalesVoucherItem(
            product_id=f"p-{i}",
            product_name=f"Item {i}",
            quantity=1,
            unit_price=Decimal("2.00"),
            total_amount=Decimal("2.00"),
        )
        for i in range(item_count)
    ]
    total = Decimal("2.00") * item_count
    return SalesVoucher(
        voucher_number="SV1700000000000123",
        customer_name=None,
        payment_method="Cash",
        date=date(2024, 5, 1),
        total_amount=total,
        discount_amount=Decimal(discount),
        final_amount=total - Decimal(discount),
        items=items,
    )


def test_sales_invoice():
    sale = Sale(
        id="sale-1",
        product_id="p-1",
        product_name="Hammer",
        quantity=2,
        unit_price=Decimal("7.50"),
        total_amount=Decimal("15.00"),
        date=date(2024, 5, 1),
        status="Completed",
        notes="Gift wrap",
    )
    filename, data = pdf_service.sales_invoice_pdf(sale, currency="Tk")

    assert filename == "sales-invoice-sale-1.pdf"
    assert data.startswith(b"%PDF")
    assert _page_count(data) == 1


def test_purchase_order_uses_order_id():
    purchase = Purchase(
        id="purchase-1",
        purchase_order_id="PO-77",
        product_id="p-1",
        product_name="Nails",
        supplier="Fasteners Ltd",
        quantity=100,
        unit_price=Decimal("0.10"),
        total_amount=Decimal("10.00"),
        date=date(2024, 5, 1),
        status="Ordered",
    )
    second = Purchase(
        id="purchase-2",
        purchase_order_id="PO-77",
        product_id="p-2",
        product_name="Screws",
        supplier="Fasteners Ltd",
        quantity=50,
        unit_price=Decimal("0.20"),
        total_amount=Decimal("10.00"),
        date=date(2024, 5, 1),
        status="Ordered",
    )

    filename, data = pdf_service.purchase_order_pdf(purchase, [purchase, second])
    assert filename == "purchase-order-PO-77.pdf"
    assert data.startswith(b"%PDF")


def test_purchase_order_falls_back_to_id():
    purchase = Purchase(
        id="purchase-9",
        product_id="p-1",
        product_name="Nails",
        supplier="Fasteners Ltd",
        quantity=1,
        unit_price=Decimal("1.00"),
        total_amount=Decimal("1.00"),
        date=date(2024, 5, 1),
        status="Received",
    )
    filename, _ = pdf_service.purchase_order_pdf(purchase)
    assert filename == "purchase-order-purchase-9.pdf"


def test_sales_voucher():
    filename, data = pdf_service.sales_voucher_pdf(_voucher(3, discount="1.00"), COMPANY)

    assert filename == "sales-voucher-SV1700000000000123.pdf"
    assert data.startswith(b"%PDF")


def test_long_voucher_paginates():
    _, data = pdf_service.sales_voucher_pdf(_voucher(60), COMPANY, currency="$")
    assert _page_count(data) >= 2
