"""
Concurrent sale tests.

Two independent sessions on a file-backed SQLite database, so each one has
its own connection and identity map:
- Both read the same product before either sells
- Their combined sales exceed stock
- Exactly one sale commits; stock never goes negative
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from stockledger import create_app
from stockledger.extensions import db
from stockledger.models import Product, OutboundTransaction
from stockledger.services import stock_service
from stockledger.services.stock_service import INSUFFICIENT_STOCK


@pytest.fixture
def engine(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'sales.sqlite3'}",
        "AUTO_CREATE_TABLES": True,
        "DEBUG_ROUTES_ENABLED": False,
    })
    with app.app_context():
        yield db.engine
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def product_id(engine):
    with Session(engine) as session:
        outcome = stock_service.record_inbound(
            session,
            brand="A",
            model="X",
            capacity=Decimal("500"),
            quantity=3,
            unit_price=Decimal("50.00"),
        )
    return outcome.product_id


def test_stale_reads_cannot_both_sell(engine, product_id):
    with Session(engine) as first, Session(engine) as second:
        seen_by_first = first.get(Product, product_id)
        seen_by_second = second.get(Product, product_id)
        assert seen_by_first.quantity == seen_by_second.quantity == 3

        sold = stock_service.record_outbound(first, product_id=product_id, quantity=2)

        # second still holds the pre-sale row in its identity map
        assert second.get(Product, product_id).quantity == 3
        rejected = stock_service.record_outbound(second, product_id=product_id, quantity=2)

    assert sold.ok
    assert sold.quantity == 1
    assert not rejected.ok
    assert rejected.reason == INSUFFICIENT_STOCK

    with Session(engine) as check:
        assert check.get(Product, product_id).quantity == 1
        assert check.query(OutboundTransaction).filter_by(product_id=product_id).count() == 1


def test_interleaved_sales_never_go_negative(engine, product_id):
    with Session(engine) as first, Session(engine) as second:
        first.get(Product, product_id)
        second.get(Product, product_id)

        results = [
            stock_service.record_outbound(first, product_id=product_id, quantity=1),
            stock_service.record_outbound(second, product_id=product_id, quantity=2),
            stock_service.record_outbound(first, product_id=product_id, quantity=1),
            stock_service.record_outbound(second, product_id=product_id, quantity=1),
        ]

    assert [r.ok for r in results] == [True, True, False, False]
    assert [r.quantity for r in results if r.ok] == [2, 0]

    with Session(engine) as check:
        product = check.get(Product, product_id)
        assert product.quantity == 0
        assert product.condition_status == "out_of_stock"
        sold = sum(tx.quantity for tx in check.query(OutboundTransaction).all())
        assert sold == 3
