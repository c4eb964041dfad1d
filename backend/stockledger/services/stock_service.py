# Overview: Service-layer operations for stock movements; encapsulates business logic and database work.

# backend/stockledger/services/stock_service.py
"""
Stock Invariants (authoritative)

Catalog model:
- Product.quantity is the stored on-hand count; it is only changed here.
- Every quantity change appends exactly one ledger row (inbound or outbound)
  in the same unit of work. Ledger rows record the event's own quantity and
  price, never running totals.
- quantity never goes below zero: outbound decrements are guarded UPDATEs
  (WHERE quantity >= requested), backed by a CHECK constraint.

Status:
- Stock movements set condition_status from the resulting quantity
  (in_stock iff quantity > 0). RecordInbound on an existing row takes the
  caller's status (default in_stock) instead.
- edit_product may set condition_status directly; the override holds until
  the next movement recomputes it.

Outcomes:
- Not-found, insufficient-stock and no-fields results come back as
  StockOutcome values. Database errors raise PersistenceFailure after
  rollback (see concurrency.unit_of_work).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..models import (
    Product,
    InboundTransaction,
    OutboundTransaction,
    DEFAULT_CAPACITY_UNIT,
    STATUS_IN_STOCK,
    status_for_quantity,
)
from .concurrency import lock_for_update, unit_of_work

NOT_FOUND = "not_found"
INSUFFICIENT_STOCK = "insufficient_stock"
NO_FIELDS_TO_UPDATE = "no_fields_to_update"

PRODUCT_EDITABLE_FIELDS = {"unit_price", "condition_status", "is_active"}


@dataclass(frozen=True)
class StockOutcome:
    ok: bool
    message: str
    product_id: int | None = None
    quantity: int | None = None
    created: bool = False
    reason: str | None = None

    @classmethod
    def failure(cls, reason: str, message: str, product_id: int | None = None) -> "StockOutcome":
        return cls(ok=False, message=message, product_id=product_id, reason=reason)


def _null_safe_eq(column, value):
    # NULL matches only NULL; never a wildcard
    return column.is_(None) if value is None else column == value


def find_by_identity(
    session: Session,
    *,
    brand: str,
    model: str,
    capacity: Decimal,
    capacity_unit: str = DEFAULT_CAPACITY_UNIT,
    interface: str | None = None,
    form_factor: str | None = None,
    lock: bool = False,
) -> Product | None:
    query = session.query(Product).filter(
        Product.brand == brand,
        Product.model == model,
        Product.capacity == capacity,
        Product.capacity_unit == capacity_unit,
        _null_safe_eq(Product.interface, interface),
        _null_safe_eq(Product.form_factor, form_factor),
    )
    if lock:
        query = lock_for_update(query)
    return query.order_by(Product.id.asc()).first()


def _load_product(session: Session, product_id: int, *, lock: bool = False) -> Product | None:
    query = session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def _apply_quantity_delta(session: Session, product: Product, delta: int) -> bool:
    """
    Change product.quantity by delta in a single guarded UPDATE.

    Decrements only match while enough stock remains, so the availability
    check and the write cannot be split by a concurrent sale. Returns False
    when the guard rejected the update.
    """
    stmt = (
        update(Product)
        .where(Product.id == product.id)
        .values(quantity=Product.quantity + delta)
        .execution_options(synchronize_session=False)
    )
    if delta < 0:
        stmt = stmt.where(Product.quantity >= -delta)

    result = session.execute(stmt)
    if result.rowcount == 0:
        return False

    session.refresh(product, attribute_names=["quantity"])
    return True


def list_products(session: Session) -> list[dict]:
    products = (
        session.query(Product)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )
    return [p.to_dict() for p in products]


def get_product(session: Session, product_id: int) -> Product | None:
    return _load_product(session, product_id)


def record_inbound(
    session: Session,
    *,
    brand: str,
    model: str,
    capacity: Decimal,
    quantity: int,
    unit_price: Decimal,
    capacity_unit: str = DEFAULT_CAPACITY_UNIT,
    interface: str | None = None,
    form_factor: str | None = None,
    warranty_period: str | None = None,
    read_speed: int | None = None,
    write_speed: int | None = None,
    nand_type: str | None = None,
    condition_status: str | None = None,
    is_active: bool | None = None,
    notes: str | None = None,
) -> StockOutcome:
    """
    Receive a delivery, merging into the catalog row with the same identity tuple.

    Existing row: quantity grows by the delivered amount, unit_price is replaced
    (not averaged), status/active take the supplied values or their defaults.
    New row: created with the delivered quantity.

    Either way one InboundTransaction is appended with this delivery's own
    quantity and unit_price.
    """
    status = condition_status or STATUS_IN_STOCK
    active = True if is_active is None else is_active

    with unit_of_work(session):
        product = find_by_identity(
            session,
            brand=brand,
            model=model,
            capacity=capacity,
            capacity_unit=capacity_unit,
            interface=interface,
            form_factor=form_factor,
            lock=True,
        )

        created = product is None
        if created:
            product = Product(
                brand=brand,
                model=model,
                capacity=capacity,
                capacity_unit=capacity_unit,
                interface=interface,
                form_factor=form_factor,
                warranty_period=warranty_period,
                read_speed=read_speed,
                write_speed=write_speed,
                nand_type=nand_type,
                quantity=quantity,
                unit_price=unit_price,
                condition_status=status,
                is_active=active,
            )
            session.add(product)
            session.flush()  # ensure product.id exists before ledger append
        else:
            _apply_quantity_delta(session, product, quantity)
            product.unit_price = unit_price
            product.condition_status = status
            product.is_active = active

        session.add(
            InboundTransaction(
                product_id=product.id,
                quantity=quantity,
                unit_price=unit_price,
                notes=notes,
            )
        )
        session.flush()

        outcome = StockOutcome(
            ok=True,
            message="New product added" if created else "Stock added to existing product",
            product_id=product.id,
            quantity=product.quantity,
            created=created,
        )

    return outcome


def add_quantity(
    session: Session,
    *,
    product_id: int,
    quantity: int,
    unit_price: Decimal | None = None,
    notes: str | None = None,
) -> StockOutcome:
    """
    Restock an existing product by id.

    The catalog unit_price is left alone; the ledger row records unit_price, or
    the catalog price when none is given.
    """
    with unit_of_work(session):
        product = _load_product(session, product_id, lock=True)
        if product is None:
            return StockOutcome.failure(NOT_FOUND, "Product not found", product_id)

        _apply_quantity_delta(session, product, quantity)
        product.condition_status = status_for_quantity(product.quantity)

        session.add(
            InboundTransaction(
                product_id=product.id,
                quantity=quantity,
                unit_price=unit_price if unit_price is not None else product.unit_price,
                notes=notes,
            )
        )
        session.flush()

        outcome = StockOutcome(
            ok=True,
            message="Quantity added successfully",
            product_id=product.id,
            quantity=product.quantity,
        )

    return outcome


def record_outbound(
    session: Session,
    *,
    product_id: int,
    quantity: int,
    unit_price: Decimal | None = None,
    notes: str | None = None,
) -> StockOutcome:
    """
    Record a sale.

    Fails with INSUFFICIENT_STOCK, writing nothing, when quantity exceeds what
    is on hand at the moment of the guarded decrement.
    """
    with unit_of_work(session):
        product = _load_product(session, product_id, lock=True)
        if product is None:
            return StockOutcome.failure(NOT_FOUND, "Product not found", product_id)

        if not _apply_quantity_delta(session, product, -quantity):
            return StockOutcome.failure(INSUFFICIENT_STOCK, "Insufficient quantity in stock", product_id)

        product.condition_status = status_for_quantity(product.quantity)

        session.add(
            OutboundTransaction(
                product_id=product.id,
                quantity=quantity,
                unit_price=unit_price if unit_price is not None else product.unit_price,
                notes=notes,
            )
        )
        session.flush()

        outcome = StockOutcome(
            ok=True,
            message="Outbound transaction recorded",
            product_id=product.id,
            quantity=product.quantity,
        )

    return outcome


def edit_product(session: Session, *, product_id: int, patch: dict) -> StockOutcome:
    """
    Partial update of unit_price / condition_status / is_active.

    condition_status is accepted as a manual override even when it disagrees
    with quantity.
    """
    fields = {k: v for k, v in patch.items() if k in PRODUCT_EDITABLE_FIELDS}
    if not fields:
        return StockOutcome.failure(NO_FIELDS_TO_UPDATE, "No fields to update", product_id)

    with unit_of_work(session):
        product = _load_product(session, product_id, lock=True)
        if product is None:
            return StockOutcome.failure(NOT_FOUND, "Product not found", product_id)

        for k, v in fields.items():
            setattr(product, k, v)
        session.flush()

        outcome = StockOutcome(
            ok=True,
            message="Product updated",
            product_id=product.id,
            quantity=product.quantity,
        )

    return outcome


def delete_product(session: Session, *, product_id: int) -> StockOutcome:
    """Hard-delete a product together with its inbound and outbound rows."""
    with unit_of_work(session):
        product = _load_product(session, product_id)
        if product is None:
            return StockOutcome.failure(NOT_FOUND, "Product not found", product_id)

        session.delete(product)
        session.flush()

    return StockOutcome(ok=True, message="Product deleted successfully", product_id=product_id)
