# Overview: Service-layer reads over the inbound/outbound ledgers.

from __future__ import annotations

from sqlalchemy.orm import Session

from ..models import Product, InboundTransaction, OutboundTransaction, LEDGER_MODELS
"""
Ledger Invariants (authoritative)

- Inbound and outbound rows are append-only; stock_service is the only writer.
- Listings are newest first: transaction_date desc, then id desc so rows
  written within the same second keep their insertion order.
- Rows are only removed by product deletion (cascade) or the admin endpoints.
"""


def _list_ledger(session: Session, model) -> list[dict]:
    rows = (
        session.query(model, Product.brand, Product.model, Product.capacity, Product.capacity_unit)
        .join(Product, Product.id == model.product_id)
        .order_by(model.transaction_date.desc(), model.id.desc())
        .all()
    )
    items = []
    for tx, brand, model_name, capacity, capacity_unit in rows:
        item = tx.to_dict()
        item.update(
            {
                "brand": brand,
                "model": model_name,
                "capacity": float(capacity) if capacity is not None else None,
                "capacity_unit": capacity_unit,
            }
        )
        items.append(item)
    return items


def list_inbound(session: Session) -> list[dict]:
    return _list_ledger(session, InboundTransaction)


def list_outbound(session: Session) -> list[dict]:
    return _list_ledger(session, OutboundTransaction)


def delete_ledger_row(session: Session, *, ledger_type: str, transaction_id: int) -> bool:
    """
    Remove one ledger row (admin correction). Product quantity is NOT adjusted.

    Returns False when the type is unknown or the row does not exist.
    """
    model = LEDGER_MODELS.get(ledger_type)
    if model is None:
        return False
    deleted = session.query(model).filter(model.id == transaction_id).delete(synchronize_session=False)
    return deleted > 0


def wipe_all(session: Session) -> dict:
    """Delete every ledger row, then every product. Returns per-table counts."""
    counts = {
        "outbound": session.query(OutboundTransaction).delete(synchronize_session=False),
        "inbound": session.query(InboundTransaction).delete(synchronize_session=False),
        "products": session.query(Product).delete(synchronize_session=False),
    }
    return counts


def dump_tables(session: Session) -> dict:
    products = session.query(Product).order_by(Product.id).all()
    inbound = session.query(InboundTransaction).order_by(InboundTransaction.id).all()
    outbound = session.query(OutboundTransaction).order_by(OutboundTransaction.id).all()
    return {
        "products": [p.to_dict() for p in products],
        "inbound_transactions": [tx.to_dict() for tx in inbound],
        "outbound_transactions": [tx.to_dict() for tx in outbound],
        "counts": {
            "products": len(products),
            "inbound": len(inbound),
            "outbound": len(outbound),
        },
    }
