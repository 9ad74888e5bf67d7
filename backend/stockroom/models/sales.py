from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z, today, utcnow
from .common import money_str, new_uuid


SALE_STATUSES = ("Completed", "Pending", "Cancelled")
RETURN_STATUSES = ("Pending", "Approved", "Rejected", "Processed")
VOUCHER_PAYMENT_METHODS = ("Cash", "Card", "Bank Transfer", "Mobile Banking", "Credit")


class Sale(db.Model):
    """
    A single-product sale.

    product_id is a plain reference (no FK) with product_name as a snapshot,
    so sales survive product deletion and backup restores in any order.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_date", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    product_id = db.Column(db.String(36), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    date = db.Column(db.Date, nullable=False, default=today)
    status = db.Column(db.String(32), nullable=False, default="Completed")
    customer_name = db.Column(db.String(255), nullable=True)
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
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "total_amount": money_str(self.total_amount),
            "date": to_iso_date(self.date),
            "status": self.status,
            "customer_name": self.customer_name,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SalesReturn(db.Model):
    """
    Customer return against an earlier sale.

    processed_by / processed_date are stamped when the status leaves Pending.
    """
    __tablename__ = "sales_returns"
    __table_args__ = (
        db.CheckConstraint("return_quantity > 0", name="ck_sales_returns_qty_positive"),
        db.Index("ix_sales_returns_status", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    original_sale_id = db.Column(db.String(36), nullable=False, index=True)
    product_id = db.Column(db.String(36), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)

    return_quantity = db.Column(db.Integer, nullable=False)
    original_quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_refund = db.Column(db.Numeric(12, 2), nullable=False)

    return_date = db.Column(db.Date, nullable=False, default=today)
    reason = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="Pending")
    customer_name = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

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
            "original_sale_id": self.original_sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "return_quantity": self.return_quantity,
            "original_quantity": self.original_quantity,
            "unit_price": money_str(self.unit_price),
            "total_refund": money_str(self.total_refund),
            "return_date": to_iso_date(self.return_date),
            "reason": self.reason,
            "status": self.status,
            "customer_name": self.customer_name,
            "notes": self.notes,
            "processed_by": self.processed_by,
            "processed_date": to_iso_date(self.processed_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SalesVoucher(db.Model):
    """Multi-line sales voucher (header). Items are deleted with the voucher."""
    __tablename__ = "sales_vouchers"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    voucher_number = db.Column(db.String(64), nullable=False, unique=True)
    customer_name = db.Column(db.String(255), nullable=True)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    final_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False, default="Cash")
    status = db.Column(db.String(32), nullable=False, default="Completed")
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
        "SalesVoucherItem",
        backref="voucher",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SalesVoucherItem.position",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "voucher_number": self.voucher_number,
            "customer_name": self.customer_name,
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


class SalesVoucherItem(db.Model):
    __tablename__ = "sales_voucher_items"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    voucher_id = db.Column(
        db.String(36),
        db.ForeignKey("sales_vouchers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.String(36), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "voucher_id": self.voucher_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "total_amount": money_str(self.total_amount),
        }
