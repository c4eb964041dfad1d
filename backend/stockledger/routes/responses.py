# Overview: Shared JSON response shapes for the stock routes.

from __future__ import annotations

from ..services.stock_service import (
    StockOutcome,
    NOT_FOUND,
    INSUFFICIENT_STOCK,
    NO_FIELDS_TO_UPDATE,
)

OUTCOME_STATUS = {
    NOT_FOUND: 404,
    INSUFFICIENT_STOCK: 400,
    NO_FIELDS_TO_UPDATE: 400,
}


def failure_response(outcome: StockOutcome):
    return {"error": outcome.message}, OUTCOME_STATUS.get(outcome.reason, 400)


def success_response(outcome: StockOutcome, **fields):
    body = {"success": True, "message": outcome.message}
    body.update(fields)
    return body, 200
