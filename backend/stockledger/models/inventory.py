from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from stockledger.time_utils import to_utc_z


CAPACITY_UNITS = ("GB", "TB")
DEFAULT_CAPACITY_UNIT = "GB"

STATUS_IN_STOCK = "in_stock"
STATUS_OUT_OF_STOCK = "out_of_stock"
CONDITION_STATUSES = (STATUS_IN_STOCK, STATUS_OUT_OF_STOCK)


def status_for_quantity(quantity: int) -> str:
    return STATUS_IN_STOCK if quantity > 0 else STATUS_OUT_OF_STOCK


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


class Product(db.Model):
    """
    Catalog entry for one stock-keeping unit.

    IDENTITY TUPLE:
    (brand, model, capacity, capacity_unit, interface, form_factor) decides whether
    an inbound delivery merges into an existing row. interface and form_factor are
    nullable; lookups compare NULL to NULL exactly (see stock_service.find_by_identity)
    instead of relying on the unique index, whose NULL handling differs per engine.

    STATUS:
    condition_status follows quantity on every stock movement. A manual edit may
    still set it directly; that override lasts until the next movement.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint(
            "brand", "model", "capacity", "capacity_unit", "interface", "form_factor",
            name="uq_products_identity",
        ),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.Index("ix_products_brand_model", "brand", "model"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    brand = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(200), nullable=False)
    capacity = db.Column(db.Numeric(10, 2), nullable=False)
    capacity_unit = db.Column(db.String(2), nullable=False, default=DEFAULT_CAPACITY_UNIT)
    interface = db.Column(db.String(50), nullable=True)
    form_factor = db.Column(db.String(50), nullable=True)

    # Descriptive only, not part of the identity tuple
    read_speed = db.Column(db.Integer, nullable=True)
    write_speed = db.Column(db.Integer, nullable=True)
    nand_type = db.Column(db.String(50), nullable=True)
    warranty_period = db.Column(db.String(50), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    condition_status = db.Column(db.String(16), nullable=False, default=STATUS_IN_STOCK)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    inbound_transactions = db.relationship(
        "InboundTransaction",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy=True,
    )
    outbound_transactions = db.relationship(
        "OutboundTransaction",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Product id={self.id} brand={self.brand!r} model={self.model!r} "
            f"capacity={self.capacity}{self.capacity_unit} qty={self.quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brand": self.brand,
            "model": self.model,
            "capacity": _money(self.capacity),
            "capacity_unit": self.capacity_unit,
            "interface": self.interface,
            "form_factor": self.form_factor,
            "read_speed": self.read_speed,
            "write_speed": self.write_speed,
            "nand_type": self.nand_type,
            "warranty_period": self.warranty_period,
            "quantity": self.quantity,
            "unit_price": _money(self.unit_price),
            "condition_status": self.condition_status,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InboundTransaction(db.Model):
    """Restock event. Append-only: rows are never updated."""
    __tablename__ = "inbound_transactions"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_inbound_quantity_positive"),
        db.Index("ix_inbound_product_date", "product_id", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity = db.Column(db.Integer, nullable=False)
    # Acquisition cost per unit at the time of delivery
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    transaction_date = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )
    notes = db.Column(db.Text, nullable=True)

    product = db.relationship("Product", back_populates="inbound_transactions")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": _money(self.unit_price),
            "transaction_date": to_utc_z(self.transaction_date),
            "notes": self.notes,
        }


class OutboundTransaction(db.Model):
    """Sale event. Append-only: rows are never updated."""
    __tablename__ = "outbound_transactions"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_outbound_quantity_positive"),
        db.Index("ix_outbound_product_date", "product_id", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity = db.Column(db.Integer, nullable=False)
    # Sale price per unit
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    transaction_date = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )
    notes = db.Column(db.Text, nullable=True)

    product = db.relationship("Product", back_populates="outbound_transactions")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": _money(self.unit_price),
            "transaction_date": to_utc_z(self.transaction_date),
            "notes": self.notes,
        }


LEDGER_MODELS = {
    "inbound": InboundTransaction,
    "outbound": OutboundTransaction,
}
