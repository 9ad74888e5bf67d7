from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .common import money_str, new_uuid


STOCK_STATUS_IN_STOCK = "In Stock"
STOCK_STATUS_LOW_STOCK = "Low Stock"
STOCK_STATUS_OUT_OF_STOCK = "Out of Stock"


class _NamedLookup:
    """Columns shared by categories and units: a unique, non-blank name."""

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(128), nullable=False, unique=True)

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
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Category(_NamedLookup, db.Model):
    """
    Product category.

    Names are unique (database constraint). A category referenced by a product
    cannot be deleted: products.category_id is ON DELETE RESTRICT.
    """
    __tablename__ = "categories"

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"


class Unit(_NamedLookup, db.Model):
    """Unit of measure (pcs, kg, box). Same rules as Category."""
    __tablename__ = "units"

    def __repr__(self) -> str:
        return f"<Unit id={self.id} name={self.name!r}>"


class Product(db.Model):
    """
    Product master data with its current stock level.

    status and ai_recommendation are derived from stock on create and
    whenever stock changes (see products_service.derive_stock_fields).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False, unique=True)
    barcode = db.Column(db.String(64), nullable=True)

    category_id = db.Column(
        db.String(36),
        db.ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    unit_id = db.Column(
        db.String(36),
        db.ForeignKey("units.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    purchase_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sell_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    opening_stock = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    reorder_point = db.Column(db.Integer, nullable=False, default=10)

    status = db.Column(db.String(32), nullable=False, default=STOCK_STATUS_OUT_OF_STOCK)
    ai_recommendation = db.Column(db.String(255), nullable=True)
    image = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True, passive_deletes="all"))
    unit = db.relationship("Unit", backref=db.backref("products", lazy=True, passive_deletes="all"))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "category_id": self.category_id,
            "unit_id": self.unit_id,
            "price": money_str(self.price),
            "purchase_price": money_str(self.purchase_price),
            "sell_price": money_str(self.sell_price),
            "opening_stock": self.opening_stock,
            "stock": self.stock,
            "reorder_point": self.reorder_point,
            "status": self.status,
            "ai_recommendation": self.ai_recommendation,
            "image": self.image,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
