"""
routes/shares.py — Share draft route handlers.

Called on every edit of the expense form, so both endpoints are pure
computations: no backend call, no state.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - No business logic.

Endpoints (base url_prefix=/api/v1/shares):
  POST /preview          → 200  resolved shares + rule report
  POST /divide-equally   → 200  EQUAL draft for the given members
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from splitdesk.app.schemas.share_schema import DivideEquallySchema, SharePreviewSchema
from splitdesk.app.services import draft_service, share_rules

shares_bp = Blueprint("shares", __name__)


@shares_bp.route("/preview", methods=["POST"])
def preview_shares():
    """
    POST /shares/preview — Resolve a draft and report every share rule.

    Always 200 for a well-formed body, even when the draft is blocked:
    `can_submit` and `violations` tell the caller why.
    """
    data = SharePreviewSchema().load(request.get_json(force=True) or {})
    check = share_rules.evaluate_shares(
        data["amount"],
        data["shares"],
        paid_by_id=data["paid_by_id"],
        member_count=data["member_count"],
    )
    return jsonify({"data": check.to_dict(), "warnings": []}), 200


@shares_bp.route("/divide-equally", methods=["POST"])
def divide_equally():
    """
    POST /shares/divide-equally — Replace the draft with EQUAL shares.

    If the current draft holds percentages it is returned unchanged and an
    EQUAL_WITH_PERCENTAGE warning is attached.
    """
    data = DivideEquallySchema().load(request.get_json(force=True) or {})
    shares = draft_service.divide_equally(
        data["member_ids"],
        paid_by_id=data["paid_by_id"],
        include_payer=data["include_payer"],
        shares=data["shares"],
        member_count=data["member_count"],
    )

    warnings = []
    if not share_rules.equal_allowed(data["shares"]):
        warnings.append(share_rules.ShareRule.EQUAL_WITH_PERCENTAGE)

    return jsonify({
        "data": {"shares": [s.to_dict() for s in shares]},
        "warnings": warnings,
    }), 200
