from __future__ import annotations

import random
import time

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z, today, utcnow
from .common import money_str, new_uuid


PURCHASE_STATUSES = ("Received", "Pending", "Ordered", "Cancelled")
PURCHASE_VOUCHER_STATUSES = ("Ordered", "Received", "Pending", "Cancelled")


def new_purchase_return_id() -> str:
    """Return ids read "PR<epoch millis><3 random digits>", e.g. PR1718000000000042."""
    return f"PR{int(time.time() * 1000)}{random.randint(0, 999):03d}"


class Purchase(db.Model):
    """
    A purchase line from a supplier.

    purchase_order_id groups lines that belong to the same order; the
    purchase-order PDF is named after it.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_date", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    purchase_order_id = db.Column(db.String(64), nullable=True, index=True)
    product_id = db.Column(db.String(36), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    supplier = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    date = db.Column(db.Date, nullable=False, default=today)
    status = db.Column(db.String(32), nullable=False, default="Received")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_order_id": self.purchase_order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "supplier": self.supplier,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "total_amount": money_str(self.total_amount),
            "date": to_iso_date(self.date),
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseReturn(db.Model):
    """
    Return of purchased goods to the supplier.

    Status: Pending -> Approved | Rejected | Processed. Leaving Pending stamps
    processed_by and processed_date.
    """
    __tablename__ = "purchase_returns"
    __table_args__ = (
        db.CheckConstraint("return_quantity > 0", name="ck_purchase_returns_qty_positive"),
        db.Index("ix_purchase_returns_status", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_purchase_return_id)
    purchase_order_id = db.Column(db.String(64), nullable=False, index=True)
    purchase_item_id = db.Column(db.String(64), nullable=False)
    product_id = db.Column(db.String(36), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    supplier = db.Column(db.String(255), nullable=False)

    original_quantity = db.Column(db.Integer, nullable=False)
    return_quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_refund = db.Column(db.Numeric(12, 2), nullable=False)

    return_date = db.Column(db.Date, nullable=False, default=today)
    reason = db.Column(db.String(255), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(32), nullable=False, default="Pending")

    processed_by = db.Column(db.String(255), nullable=True)
    processed_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_order_id": self.purchase_order_id,
            "purchase_item_id": self.purchase_item_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "supplier": self.supplier,
            "original_quantity": self.original_quantity,
            "return_quantity": self.return_quantity,
            "unit_price": money_str(self.unit_price),
            "total_refund": money_str(self.total_refund),
            "return_date": to_iso_date(self.return_date),
            "reason": self.reason,
            "notes": self.notes,
            "status": self.status,
            "processed_by": self.processed_by,
            "processed_date": to_iso_date(self.processed_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseVoucher(db.Model):
    """Multi-line purchase voucher (header). Items are deleted with the voucher."""
    __tablename__ = "purchase_vouchers"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    voucher_number = db.Column(db.String(64), nullable=False, unique=True)
    supplier_name = db.Column(db.String(255), nullable=False)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    final_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False, default="Cash")
    status = db.Column(db.String(32), nullable=False, default="Ordered")
    notes = db.Column(db.Text, nullable=True)
    date = db.Column(db.Date, nullable=False, default=today)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    items = db.relationship(
        "PurchaseVoucherItem",
        backref="voucher",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PurchaseVoucherItem.position",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "voucher_number": self.voucher_number,
            "supplier_name": self.supplier_name,
            "total_amount": money_str(self.total_amount),
            "discount_amount": money_str(self.discount_amount),
            "final_amount": money_str(self.final_amount),
            "payment_method": self.payment_method,
            "status": self.status,
            "notes": self.notes,
            "date": to_iso_date(self.date),
            "items": [item.to_dict() for item in self.items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseVoucherItem(db.Model):
    __tablename__ = "purchase_voucher_items"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    voucher_id = db.Column(
        db.String(36),
        db.ForeignKey("purchase_vouchers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.String(36), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    supplier = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "voucher_id": self.voucher_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "supplier": self.supplier,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "total_amount": money_str(self.total_amount),
        }
