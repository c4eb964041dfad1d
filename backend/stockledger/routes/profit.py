# Overview: Flask API routes for profit reporting; read-only JSON responses.

from flask import Blueprint

from ..extensions import db
from ..services import profit_service


profit_bp = Blueprint("profit", __name__, url_prefix="/api/profit")


@profit_bp.get("")
def profit_report():
    """
    Per-sale profit against average inbound cost, newest first.

    Response: {transactions: [...], totalProfit, totalRevenue, transactionCount}
    """
    return profit_service.compute_profit_report(db.session).to_dict()


@profit_bp.get("/summary")
def profit_summary():
    total = profit_service.compute_profit_summary(db.session)
    return {"totalProfit": float(total)}
