"""
services/expense_service.py — Expense submission.

Flow for create_expense():
  1. Evaluate the draft with the allocation engine (share_rules.evaluate_shares).
  2. Blocked draft → SHARES_NOT_SUBMITTABLE (422); every failing rule is
     listed in `details`, the first one becomes the message.
  3. Build the outbound body from the RESOLVED shares (never the raw draft).
  4. Submit once through the ExpensesClient. No retry.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Receives validated dicts (CreateExpenseSchema) and a client; returns the
    backend's response or raises AppError.
"""

from __future__ import annotations

import logging

from splitdesk.app.clients.expenses_client import ExpensesClient
from splitdesk.app.errors import AppError, ErrorCode
from splitdesk.app.schemas.expense_schema import ExpenseRequestSchema
from splitdesk.app.services.share_rules import (
    RULE_MESSAGES,
    ShareCheck,
    ShareRule,
    evaluate_shares,
)


logger = logging.getLogger(__name__)

_OPTIONAL_FIELDS = ("description", "currency", "notes", "date", "location")


def _evaluate_draft(data: dict) -> ShareCheck:
    return evaluate_shares(
        data["amount"],
        data.get("shares") or [],
        paid_by_id=data.get("paid_by_id"),
        member_count=data.get("member_count"),
    )


def _raise_if_blocked(check: ShareCheck) -> None:
    """Raises SHARES_NOT_SUBMITTABLE (422) when any share rule fails."""
    if check.can_submit:
        return

    first = check.violations[0]
    raise AppError(
        ErrorCode.SHARES_NOT_SUBMITTABLE,
        RULE_MESSAGES[first],
        422,
        field="paid_by_id" if first == ShareRule.PAYER_MISSING else "shares",
        details=check.to_dict()["violations"],
    )


def build_expense_request(
        group_id: str,
        data: dict,
        check: ShareCheck,
        default_currency: str | None = None,
) -> dict:
    """
    Builds the camelCase body for POST /api/expenses.

    The total is sent rounded to 2 dp; shares are the resolved ones from
    `check`.
    """
    body = {
        "amount":     check.total,
        "group_id":   group_id,
        "paid_by_id": data.get("paid_by_id"),
        "shares":     check.resolved,
    }
    for name in _OPTIONAL_FIELDS:
        body[name] = data.get(name)

    if body["currency"] is None:
        body["currency"] = default_currency

    return ExpenseRequestSchema().dump(body)


def create_expense(
        group_id: str,
        data: dict,
        client: ExpensesClient,
        auth_header: str | None = None,
        default_currency: str | None = None,
) -> dict:
    """
    Submits a validated draft to the expenses backend.

    Args:
        group_id:         Group the expense belongs to (path parameter).
        data:             Validated dict from CreateExpenseSchema.
        client:           Configured ExpensesClient.
        auth_header:      Caller's Authorization header, forwarded untouched.
        default_currency: Used when the draft names no currency.

    Returns:
        The backend's JSON response.

    Raises:
        AppError(SHARES_NOT_SUBMITTABLE, 422) — a share rule fails.
        AppError(UPSTREAM_*, 502)             — raised by the client.
    """
    check = _evaluate_draft(data)
    _raise_if_blocked(check)

    body = build_expense_request(group_id, data, check, default_currency)
    logger.info(
        "Submitting expense for group %s: amount=%s shares=%d",
        group_id,
        check.total,
        len(check.resolved),
    )
    return client.create_expense(body, auth_header=auth_header)
