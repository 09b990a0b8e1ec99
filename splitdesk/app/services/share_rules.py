"""
services/share_rules.py — Validation predicates for a share draft.

All predicates are pure and read the *unresolved* declarations, except
resolved_sum_within_total which reads the output of resolve_shares().

A draft is submittable when every rule holds and a payer is selected.
Failing rules never raise; they are collected as ShareRule codes so the
caller can block submission and show every message at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from splitdesk.app.models.share import ShareDeclaration, ShareKind
from splitdesk.app.services.allocation import (
    DEFAULT_TIE_BREAK,
    HUNDRED,
    TieBreakStrategy,
    as_decimal,
    has_kind,
    remainder,
    resolve_shares,
    sum_fixed,
    sum_percent,
    sum_shares,
    to2,
    unique_by_member,
)


class ShareRule:
    """Codes for failing share rules. Sent to clients in `violations`."""

    PERCENT_SUM_NOT_100    = "PERCENT_SUM_NOT_100"
    EQUAL_WITH_PERCENTAGE  = "EQUAL_WITH_PERCENTAGE"
    FIXED_EXCEEDS_TOTAL    = "FIXED_EXCEEDS_TOTAL"
    DUPLICATE_MEMBER       = "DUPLICATE_MEMBER"
    RESOLVED_EXCEEDS_TOTAL = "RESOLVED_EXCEEDS_TOTAL"
    TOO_MANY_PARTICIPANTS  = "TOO_MANY_PARTICIPANTS"
    PAYER_MISSING          = "PAYER_MISSING"


RULE_MESSAGES: dict[str, str] = {
    ShareRule.PERCENT_SUM_NOT_100:    "Percentages must sum to 100% of the remainder.",
    ShareRule.EQUAL_WITH_PERCENTAGE:  "Equal shares are not allowed when percentages are present.",
    ShareRule.FIXED_EXCEEDS_TOTAL:    "Fixed amounts exceed the expense total.",
    ShareRule.DUPLICATE_MEMBER:       "Duplicate participants are not allowed.",
    ShareRule.RESOLVED_EXCEEDS_TOTAL: "Resolved shares exceed the expense total.",
    ShareRule.TOO_MANY_PARTICIPANTS:  "There are more participants than group members.",
    ShareRule.PAYER_MISSING:          "A payer must be selected.",
}


# ── Predicates ─────────────────────────────────────────────────────────────

def percent_sum_is_100(shares: Sequence[ShareDeclaration]) -> bool:
    """True when there are no percentages, or their sum rounds to 100."""
    if not has_kind(shares, ShareKind.PERCENTAGE):
        return True
    rounded = sum_percent(shares).to_integral_value(rounding=ROUND_HALF_UP)
    return rounded == HUNDRED


def equal_allowed(shares: Sequence[ShareDeclaration]) -> bool:
    """EQUAL shares may only be added while no PERCENTAGE share exists."""
    return not has_kind(shares, ShareKind.PERCENTAGE)


def kinds_compatible(shares: Sequence[ShareDeclaration]) -> bool:
    """False when PERCENTAGE and EQUAL shares coexist."""
    return equal_allowed(shares) or not has_kind(shares, ShareKind.EQUAL)


def fixed_within_total(total, shares: Sequence[ShareDeclaration]) -> bool:
    return sum_fixed(shares) <= to2(total)


def has_duplicate_members(shares: Sequence[ShareDeclaration]) -> bool:
    seen: set[str] = set()
    for share in shares:
        if share.member_id in seen:
            return True
        seen.add(share.member_id)
    return False


def resolved_sum_within_total(total, resolved: Sequence[ShareDeclaration]) -> bool:
    """Reads resolved shares. Equality is the goal; a small shortfall is tolerated."""
    return sum_shares(resolved) <= to2(total)


def within_member_limit(
        shares: Sequence[ShareDeclaration],
        member_count: int | None,
) -> bool:
    """Unique participants must not outnumber the group. Unknown count → True."""
    if member_count is None:
        return True
    return len(unique_by_member(shares)) <= member_count


# ── Evaluation report ──────────────────────────────────────────────────────

@dataclass
class ShareCheck:
    """Everything the caller needs after one evaluation of a draft."""

    total: Decimal
    shares: list[ShareDeclaration]
    resolved: list[ShareDeclaration]
    fixed_total: Decimal
    remainder: Decimal
    percent_total: Decimal
    resolved_total: Decimal
    percent_ok: bool
    equal_allowed: bool
    fixed_ok: bool
    has_duplicates: bool
    totals_close: bool
    within_member_limit: bool
    payer_selected: bool
    violations: list[str] = field(default_factory=list)

    @property
    def can_submit(self) -> bool:
        return not self.violations

    @property
    def messages(self) -> list[str]:
        return [RULE_MESSAGES[code] for code in self.violations]

    def to_dict(self) -> dict:
        return {
            "total":           self.total,
            "fixed_total":     self.fixed_total,
            "remainder":       self.remainder,
            "percent_total":   self.percent_total,
            "resolved_total":  self.resolved_total,
            "shares":          [s.to_dict() for s in self.resolved],
            "checks": {
                "percent_ok":          self.percent_ok,
                "equal_allowed":       self.equal_allowed,
                "fixed_ok":            self.fixed_ok,
                "has_duplicates":      self.has_duplicates,
                "totals_close":        self.totals_close,
                "within_member_limit": self.within_member_limit,
                "payer_selected":      self.payer_selected,
            },
            "violations": [
                {"code": code, "message": RULE_MESSAGES[code]}
                for code in self.violations
            ],
            "can_submit": self.can_submit,
        }


def evaluate_shares(
        total,
        shares: Sequence[ShareDeclaration],
        paid_by_id: str | None = None,
        member_count: int | None = None,
        tie_break: TieBreakStrategy = DEFAULT_TIE_BREAK,
) -> ShareCheck:
    """
    Resolves `shares` against `total` and runs every rule.

    Violations are listed in a fixed order so the first one is always the
    most fundamental (percentages, kinds, fixed, duplicates, totals, limit,
    payer).
    """
    total = as_decimal(total)
    resolved = resolve_shares(total, shares, tie_break)

    check = ShareCheck(
        total=to2(total),
        shares=list(shares),
        resolved=resolved,
        fixed_total=sum_fixed(shares),
        remainder=remainder(total, shares),
        percent_total=sum_percent(shares),
        resolved_total=sum_shares(resolved),
        percent_ok=percent_sum_is_100(shares),
        equal_allowed=equal_allowed(shares),
        fixed_ok=fixed_within_total(total, shares),
        has_duplicates=has_duplicate_members(shares),
        totals_close=resolved_sum_within_total(total, resolved),
        within_member_limit=within_member_limit(shares, member_count),
        payer_selected=bool(paid_by_id),
    )

    if not check.percent_ok:
        check.violations.append(ShareRule.PERCENT_SUM_NOT_100)
    if not kinds_compatible(shares):
        check.violations.append(ShareRule.EQUAL_WITH_PERCENTAGE)
    if not check.fixed_ok:
        check.violations.append(ShareRule.FIXED_EXCEEDS_TOTAL)
    if check.has_duplicates:
        check.violations.append(ShareRule.DUPLICATE_MEMBER)
    if not check.totals_close:
        check.violations.append(ShareRule.RESOLVED_EXCEEDS_TOTAL)
    if not check.within_member_limit:
        check.violations.append(ShareRule.TOO_MANY_PARTICIPANTS)
    if not check.payer_selected:
        check.violations.append(ShareRule.PAYER_MISSING)

    return check
