"""
Pytest fixtures for stockledger backend tests.

Provides test database setup, a test client, and small data builders.
"""

from decimal import Decimal

import pytest
from stockledger import create_app
from stockledger.extensions import db
from stockledger.services import stock_service


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'AUTO_CREATE_TABLES': False,
    'DEBUG_ROUTES_ENABLED': True,
    'EXPOSE_ERROR_DETAILS': False,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def inbound_fields(**overrides) -> dict:
    """Service-level kwargs for a 500 GB drive delivery."""
    fields = {
        "brand": "A",
        "model": "X",
        "capacity": Decimal("500"),
        "capacity_unit": "GB",
        "quantity": 10,
        "unit_price": Decimal("50.00"),
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def receive(db_session):
    """Record an inbound delivery through the service and return the outcome."""
    def _receive(**overrides):
        return stock_service.record_inbound(db_session, **inbound_fields(**overrides))
    return _receive
