# Overview: Flask API routes for sales (outbound ledger); parses input and returns JSON responses.

# backend/stockledger/routes/outbound.py
from flask import Blueprint, current_app, request

from ..extensions import db
from ..models import OutboundTransaction
from ..services import ledger_service, stock_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    drop_blank,
    enforce_rules_stock_movement,
    ValidationError,
)
from .responses import failure_response, success_response


outbound_bp = Blueprint("outbound", __name__, url_prefix="/api/outbound")

OUTBOUND_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "unit_price", "notes"},
    required_on_create={"product_id", "quantity"},
)


@outbound_bp.get("")
def list_outbound():
    """Outbound ledger, newest first, with product identity fields."""
    return ledger_service.list_outbound(db.session)


@outbound_bp.post("")
def record_outbound_route():
    """
    Record a sale.

    unit_price defaults to the product's current price. Selling more than is
    on hand returns 400 and leaves stock untouched.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=OutboundTransaction,
            payload=drop_blank(payload, "unit_price", "notes"),
            policy=OUTBOUND_POLICY,
            partial=False,
        )
        enforce_rules_stock_movement(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = stock_service.record_outbound(
        db.session,
        product_id=patch["product_id"],
        quantity=patch["quantity"],
        unit_price=patch.get("unit_price"),
        notes=patch.get("notes"),
    )
    if not outcome.ok:
        current_app.logger.info(
            "Outbound rejected for product %s: %s", patch["product_id"], outcome.message
        )
        return failure_response(outcome)

    current_app.logger.info(
        "Outbound recorded: product %s -%s -> %s", outcome.product_id, patch["quantity"], outcome.quantity
    )
    return success_response(outcome, remainingQuantity=outcome.quantity)
