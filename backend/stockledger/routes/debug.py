# Overview: Administrative/test endpoints (raw dumps, single-row and bulk deletes).

# backend/stockledger/routes/debug.py
"""
Debug routes.

Registered only when DEBUG_ROUTES_ENABLED is true. These bypass the stock
invariants on purpose: deleting a single ledger row does not touch product
quantity.
"""
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import LEDGER_MODELS
from ..services import ledger_service
from ..services.concurrency import unit_of_work

debug_bp = Blueprint("debug", __name__, url_prefix="/api/debug")


@debug_bp.get("/test-connection")
def test_connection():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        current_app.logger.exception("Database connection test failed")
        db.session.rollback()
        body = {"error": "Database connection failed"}
        if current_app.config.get("EXPOSE_ERROR_DETAILS"):
            body["details"] = str(e)
        return body, 500
    return {"success": True, "message": "Database connection is working"}


@debug_bp.get("/data")
def dump_data():
    """All rows of all three tables, ordered by id, with counts."""
    return ledger_service.dump_tables(db.session)


@debug_bp.delete("/transaction/<ledger_type>/<int:transaction_id>")
def delete_transaction(ledger_type: str, transaction_id: int):
    if ledger_type not in LEDGER_MODELS:
        return {"error": f"Unknown transaction type: {ledger_type}"}, 400

    with unit_of_work(db.session):
        deleted = ledger_service.delete_ledger_row(
            db.session, ledger_type=ledger_type, transaction_id=transaction_id
        )

    if not deleted:
        return {"error": "Transaction not found"}, 404

    current_app.logger.warning("Deleted %s transaction %s via debug endpoint", ledger_type, transaction_id)
    return {"success": True, "message": "Transaction deleted successfully"}


@debug_bp.delete("/delete-all")
def delete_all():
    with unit_of_work(db.session):
        counts = ledger_service.wipe_all(db.session)

    current_app.logger.warning("All data deleted via debug endpoint: %s", counts)
    return {"success": True, "message": "All data deleted successfully", "deleted": counts}
