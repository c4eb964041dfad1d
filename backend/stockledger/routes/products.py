# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

# backend/stockledger/routes/products.py
"""
Product catalog routes.

Products are created only through inbound deliveries (see routes/inbound.py);
this blueprint reads, edits and deletes them.
"""
from flask import Blueprint, current_app, request

from ..extensions import db
from ..models import Product
from ..services import profit_service, stock_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product_edit,
    ValidationError,
)
from .responses import failure_response, success_response

PRODUCT_EDIT_POLICY = ModelValidationPolicy(
    writable_fields={"unit_price", "condition_status", "is_active"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """All products, newest first."""
    return stock_service.list_products(db.session)


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    """One product plus avg_cost, the cost basis its sales are charged against."""
    product = stock_service.get_product(db.session, product_id)
    if product is None:
        return {"error": "Product not found"}, 404

    body = product.to_dict()
    body["avg_cost"] = profit_service.money(profit_service.get_cost_basis(db.session, product_id))
    return body


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    """
    Edit unit_price, condition_status and/or is_active.

    condition_status is taken as given, even if it contradicts quantity.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_EDIT_POLICY, partial=True)
        enforce_rules_product_edit(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = stock_service.edit_product(db.session, product_id=product_id, patch=patch)
    if not outcome.ok:
        return failure_response(outcome)

    current_app.logger.info("Product %s updated: %s", product_id, ", ".join(sorted(patch)))
    return success_response(outcome)


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """Delete a product and, by cascade, all of its ledger rows."""
    outcome = stock_service.delete_product(db.session, product_id=product_id)
    if not outcome.ok:
        return failure_response(outcome)

    current_app.logger.info("Product %s deleted with its ledger rows", product_id)
    return success_response(outcome)
