# Overview: Service-layer profit reporting; read-only, derived from the ledgers.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy import Numeric, func
from sqlalchemy.orm import Session

from ..models import Product, InboundTransaction, OutboundTransaction
from stockledger.time_utils import to_utc_z
"""
Profit Attribution (authoritative)

Cost basis:
- cost of a product = plain mean of unit_price over ALL its inbound rows,
  not weighted by quantity; no FIFO/LIFO lots.
- A product without inbound rows falls back to its current catalog unit_price.
- An edited catalog price is never blended into a product that has inbound rows.

Per sale:
- revenue = sale_price * quantity
- profit  = (sale_price - cost_basis) * quantity
- Missing or non-numeric prices count as 0.

Rounding:
- Arithmetic runs on full-precision Decimals; values are quantized to cents
  (half-up) only when serialized. Totals are summed before quantizing.
"""

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _to_decimal(value) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    return dec if dec.is_finite() else ZERO


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money(value: Decimal) -> float:
    """JSON form of a monetary Decimal: cents, half-up."""
    return float(_cents(value))


@dataclass(frozen=True)
class ProfitLine:
    transaction_id: int
    product_id: int
    sold_quantity: int
    sale_price: Decimal
    cost_basis: Decimal
    product_price: Decimal
    transaction_date: datetime | None
    brand: str
    model: str
    capacity: Decimal
    capacity_unit: str
    notes: str | None = None

    @property
    def revenue(self) -> Decimal:
        return self.sale_price * self.sold_quantity

    @property
    def profit(self) -> Decimal:
        return (self.sale_price - self.cost_basis) * self.sold_quantity

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "sold_quantity": self.sold_quantity,
            "sale_price": money(self.sale_price),
            "transaction_date": to_utc_z(self.transaction_date),
            "notes": self.notes,
            "brand": self.brand,
            "model": self.model,
            "capacity": float(self.capacity),
            "capacity_unit": self.capacity_unit,
            "product_price": money(self.product_price),
            "avg_cost": money(self.cost_basis),
            "revenue": money(self.revenue),
            "profit": money(self.profit),
        }


@dataclass(frozen=True)
class ProfitReport:
    lines: list[ProfitLine] = field(default_factory=list)

    @property
    def total_profit(self) -> Decimal:
        return sum((line.profit for line in self.lines), ZERO)

    @property
    def total_revenue(self) -> Decimal:
        return sum((line.revenue for line in self.lines), ZERO)

    @property
    def transaction_count(self) -> int:
        return len(self.lines)

    def to_dict(self) -> dict:
        return {
            "transactions": [line.to_dict() for line in self.lines],
            "totalProfit": money(self.total_profit),
            "totalRevenue": money(self.total_revenue),
            "transactionCount": self.transaction_count,
        }


def average_inbound_costs(session: Session, product_ids: set[int] | None = None) -> dict[int, Decimal]:
    """
    Unweighted mean inbound unit_price per product.

    Products with no inbound rows are absent from the result.
    """
    q = session.query(
        InboundTransaction.product_id,
        func.sum(InboundTransaction.unit_price).label("price_total"),
        func.count(InboundTransaction.id).label("row_count"),
    )
    if product_ids is not None:
        if not product_ids:
            return {}
        q = q.filter(InboundTransaction.product_id.in_(product_ids))

    costs: dict[int, Decimal] = {}
    for row in q.group_by(InboundTransaction.product_id).all():
        if row.row_count:
            costs[row.product_id] = _to_decimal(row.price_total) / row.row_count
    return costs


def get_cost_basis(session: Session, product_id: int) -> Decimal | None:
    """Cost basis for one product, or None if the product does not exist."""
    product = session.query(Product).filter_by(id=product_id).first()
    if product is None:
        return None
    costs = average_inbound_costs(session, {product_id})
    return costs.get(product_id, _to_decimal(product.unit_price))


def compute_profit_report(session: Session) -> ProfitReport:
    """One line per outbound transaction, newest first, plus totals."""
    rows = (
        session.query(OutboundTransaction, Product)
        .join(Product, Product.id == OutboundTransaction.product_id)
        .order_by(OutboundTransaction.transaction_date.desc(), OutboundTransaction.id.desc())
        .all()
    )
    costs = average_inbound_costs(session, {product.id for _, product in rows})

    lines = []
    for sale, product in rows:
        catalog_price = _to_decimal(product.unit_price)
        lines.append(
            ProfitLine(
                transaction_id=sale.id,
                product_id=product.id,
                sold_quantity=int(sale.quantity or 0),
                sale_price=_to_decimal(sale.unit_price),
                cost_basis=costs.get(product.id, catalog_price),
                product_price=catalog_price,
                transaction_date=sale.transaction_date,
                brand=product.brand,
                model=product.model,
                capacity=_to_decimal(product.capacity),
                capacity_unit=product.capacity_unit,
                notes=sale.notes,
            )
        )
    return ProfitReport(lines=lines)


def compute_profit_summary(session: Session) -> Decimal:
    """
    Total profit without materializing the report.

    Sales are aggregated per product in the database (revenue and units sold);
    each group then pays its cost basis once: revenue - cost_basis * units.
    Same Decimal arithmetic as compute_profit_report, quantized to cents at
    the end.
    """
    rows = (
        session.query(
            OutboundTransaction.product_id,
            Product.unit_price.label("catalog_price"),
            func.sum(
                OutboundTransaction.unit_price * OutboundTransaction.quantity,
                type_=Numeric(20, 2),
            ).label("revenue"),
            func.sum(OutboundTransaction.quantity).label("units"),
        )
        .join(Product, Product.id == OutboundTransaction.product_id)
        .group_by(OutboundTransaction.product_id, Product.unit_price)
        .all()
    )
    costs = average_inbound_costs(session, {row.product_id for row in rows})

    total = ZERO
    for row in rows:
        cost_basis = costs.get(row.product_id, _to_decimal(row.catalog_price))
        total += _to_decimal(row.revenue) - cost_basis * int(row.units or 0)
    return _cents(total)
