"""
schemas/expense_schema.py — Marshmallow schemas for expense submission.

Two directions:
  - CreateExpenseSchema  (load) — inbound POST /groups/:id/expenses body,
                                  snake_case, same share rules as a preview.
  - ExpenseRequestSchema (dump) — outbound body for the expenses backend,
                                  camelCase, amounts as JSON numbers.

Share rules are NOT checked here; expense_service.create_expense() runs the
allocation engine and refuses a blocked draft with SHARES_NOT_SUBMITTABLE.

IMPORTANT: Inherits from marshmallow.Schema directly — never a Flask-bound
schema class.
"""

from __future__ import annotations

from marshmallow import Schema, fields, post_dump, validate

from splitdesk.app.models.share import ShareKind
from splitdesk.app.schemas.share_schema import SharePreviewSchema


# ── Create expense (inbound) ───────────────────────────────────────────────

class CreateExpenseSchema(SharePreviewSchema):
    """
    POST /groups/:id/expenses

    Inherits amount, shares, paid_by_id and member_count from the preview so
    a draft that previews as submittable submits unchanged.
    """

    description = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=255, error="Description must be at most 255 characters."),
    )

    # ISO 4217 code; the configured default is used when absent.
    currency = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(equal=3, error="currency must be a 3-letter code."),
    )

    notes = fields.Str(load_default=None, allow_none=True)

    date = fields.Date(load_default=None, allow_none=True)

    location = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=255, error="location must be at most 255 characters."),
    )


# ── Outbound request body ──────────────────────────────────────────────────

class ShareRequestSchema(Schema):
    """One resolved share as the expenses backend expects it."""

    userId = fields.Str(attribute="member_id")
    amount = fields.Float()
    type = fields.Enum(ShareKind, attribute="kind", by_value=True)


class ExpenseRequestSchema(Schema):
    """
    Body of POST {EXPENSES_API_URL}/api/expenses.

    Dumped from a plain dict with snake_case keys; optional keys that are
    None are left out of the payload.
    """

    amount = fields.Float()
    groupId = fields.Str(attribute="group_id")
    paidById = fields.Str(attribute="paid_by_id")
    shares = fields.List(fields.Nested(ShareRequestSchema))
    description = fields.Str()
    currency = fields.Str()
    notes = fields.Str()
    date = fields.Date()
    location = fields.Str()

    @post_dump
    def drop_empty_optionals(self, data: dict, **kwargs) -> dict:
        return {key: value for key, value in data.items() if value is not None}
