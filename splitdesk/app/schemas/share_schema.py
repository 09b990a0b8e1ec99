"""
schemas/share_schema.py — Marshmallow schemas for share draft endpoints.

Validation responsibility:
  - This file:
      - Field types, enum values, amounts within 0..MAX_AMOUNT
      - Percentage points within 0–100 on a single share
  - services/share_rules.py:
      - Every cross-share rule (percent sum, kind compatibility, duplicates,
        fixed vs total, member limit, payer). These are reported, not raised,
        so a draft with duplicate members still loads here.

Loaded shares come out as ShareDeclaration objects (post_load), ready for the
allocation engine.

IMPORTANT: Inherits from marshmallow.Schema directly. Schemas must load in
unit tests without a Flask application context.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import (
    Schema,
    ValidationError,
    fields,
    post_load,
    validate,
    validates_schema,
)

from splitdesk.app.errors import ErrorCode
from splitdesk.app.models.share import ShareDeclaration, ShareKind


# Largest total or share amount accepted over HTTP (10^15).
MAX_AMOUNT = Decimal("1000000000000000")


def _validate_amount_range(value: Decimal) -> None:
    """Amounts and totals may be zero while a draft is being edited, never negative or above MAX_AMOUNT."""
    if value < Decimal("0") or value > MAX_AMOUNT:
        raise ValidationError(ErrorCode.INVALID_AMOUNT)


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


# ── Sub-schema: one entry in the `shares` array ───────────────────────────

class ShareInputSchema(Schema):
    """
    A single share declaration.

    `amount` may be omitted or null; it then counts as 0 (EQUAL shares never
    need one).
    """

    user_id = fields.Str(
        required=True,
        validate=_validate_non_empty_after_trim,
    )

    amount = fields.Decimal(
        load_default=Decimal("0"),
        allow_none=True,
        validate=_validate_amount_range,
    )

    type = fields.Enum(
        ShareKind,
        required=True,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_SHARE_TYPE},
    )

    @validates_schema
    def validate_percentage_range(self, data: dict, **kwargs) -> None:
        """A single PERCENTAGE share cannot exceed 100 points."""
        amount = data.get("amount")
        if data.get("type") == ShareKind.PERCENTAGE and amount is not None:
            if amount > Decimal("100"):
                raise ValidationError({"amount": [ErrorCode.INVALID_PERCENTAGE]})

    @post_load
    def make_declaration(self, data: dict, **kwargs) -> ShareDeclaration:
        amount = data.get("amount")
        return ShareDeclaration(
            member_id=data["user_id"],
            kind=data["type"],
            amount=amount if amount is not None else Decimal("0"),
        )


# ── Preview ────────────────────────────────────────────────────────────────

class SharePreviewSchema(Schema):
    """
    POST /shares/preview

    The payer and member count are optional here: a draft without them is
    still previewed, with PAYER_MISSING reported and the member limit skipped.
    """

    amount = fields.Decimal(
        required=True,
        validate=_validate_amount_range,
    )

    shares = fields.List(
        fields.Nested(ShareInputSchema),
        load_default=list,
    )

    paid_by_id = fields.Str(
        load_default=None,
        allow_none=True,
    )

    member_count = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        validate=validate.Range(min=0, error="member_count must not be negative."),
    )


# ── Divide equally ─────────────────────────────────────────────────────────

class DivideEquallySchema(Schema):
    """POST /shares/divide-equally"""

    member_ids = fields.List(
        fields.Str(validate=_validate_non_empty_after_trim),
        required=True,
        validate=validate.Length(min=1, error="member_ids must not be empty."),
    )

    paid_by_id = fields.Str(
        load_default=None,
        allow_none=True,
    )

    include_payer = fields.Bool(load_default=True)

    # Group size; caps how many members receive a share.
    member_count = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        validate=validate.Range(min=0, error="member_count must not be negative."),
    )

    # Current draft; divide-equally is refused while it holds percentages.
    shares = fields.List(
        fields.Nested(ShareInputSchema),
        load_default=list,
    )
