# Overview: Flask API routes for deliveries (inbound ledger); parses input and returns JSON responses.

# backend/stockledger/routes/inbound.py
"""
Inbound routes.

- POST /api/inbound merges a delivery into the catalog by identity tuple,
  creating the product when the tuple is new.
- POST /api/inbound/add-quantity restocks a known product id.
"""
from flask import Blueprint, current_app, request

from ..extensions import db
from ..models import Product, InboundTransaction
from ..services import ledger_service, stock_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    split_inbound_payload,
    drop_blank,
    enforce_rules_inbound,
    enforce_rules_stock_movement,
    ValidationError,
)
from .responses import failure_response, success_response


inbound_bp = Blueprint("inbound", __name__, url_prefix="/api/inbound")

INBOUND_PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "brand",
        "model",
        "capacity",
        "capacity_unit",
        "interface",
        "form_factor",
        "warranty_period",
        "read_speed",
        "write_speed",
        "nand_type",
        "quantity",
        "unit_price",
        "condition_status",
        "is_active",
    },
    required_on_create={"brand", "model", "capacity", "quantity", "unit_price"},
)

INBOUND_NOTES_POLICY = ModelValidationPolicy(writable_fields={"notes"})

ADD_QUANTITY_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "unit_price", "notes"},
    required_on_create={"product_id", "quantity"},
)


@inbound_bp.get("")
def list_inbound():
    """Inbound ledger, newest first, with product identity fields."""
    return ledger_service.list_inbound(db.session)


@inbound_bp.post("")
def record_inbound_route():
    payload = request.get_json(silent=True) or {}

    try:
        product_fields, ledger_fields = split_inbound_payload(payload)
        patch = validate_payload(
            model=Product,
            payload=product_fields,
            policy=INBOUND_PRODUCT_POLICY,
            partial=False,
        )
        enforce_rules_inbound(patch)
        extra = validate_payload(
            model=InboundTransaction,
            payload=ledger_fields,
            policy=INBOUND_NOTES_POLICY,
            partial=True,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = stock_service.record_inbound(db.session, **patch, notes=extra.get("notes"))

    current_app.logger.info(
        "Inbound recorded: product %s +%s -> %s (%s)",
        outcome.product_id,
        patch["quantity"],
        outcome.quantity,
        "created" if outcome.created else "merged",
    )
    return success_response(outcome, productId=outcome.product_id, newQuantity=outcome.quantity)


@inbound_bp.post("/add-quantity")
def add_quantity_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=InboundTransaction,
            payload=drop_blank(payload, "unit_price", "notes"),
            policy=ADD_QUANTITY_POLICY,
            partial=False,
        )
        enforce_rules_stock_movement(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = stock_service.add_quantity(
        db.session,
        product_id=patch["product_id"],
        quantity=patch["quantity"],
        unit_price=patch.get("unit_price"),
        notes=patch.get("notes"),
    )
    if not outcome.ok:
        return failure_response(outcome)

    current_app.logger.info(
        "Quantity added: product %s +%s -> %s", outcome.product_id, patch["quantity"], outcome.quantity
    )
    return success_response(outcome, newQuantity=outcome.quantity)
