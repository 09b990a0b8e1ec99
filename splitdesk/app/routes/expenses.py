"""
routes/expenses.py — Expense submission route.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - The caller's Authorization header is forwarded to the backend as-is;
    this service does not authenticate anyone.

Endpoints (base url_prefix=/api/v1):
  POST /groups/:id/expenses   → 201  expense accepted by the backend
                              → 422  draft blocked by a share rule
                              → 502  backend rejected or unreachable
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from splitdesk.app.extensions import expenses_api
from splitdesk.app.schemas.expense_schema import CreateExpenseSchema
from splitdesk.app.services import expense_service

expenses_bp = Blueprint("expenses", __name__)


@expenses_bp.route("/groups/<group_id>/expenses", methods=["POST"])
def create_expense(group_id: str):
    """POST /groups/:id/expenses — Resolve shares and submit the expense."""
    data = CreateExpenseSchema().load(request.get_json(force=True) or {})
    result = expense_service.create_expense(
        group_id=group_id,
        data=data,
        client=expenses_api.client,
        auth_header=request.headers.get("Authorization"),
        default_currency=current_app.config.get("DEFAULT_CURRENCY"),
    )
    return jsonify({"data": result, "warnings": []}), 201
