"""
services/allocation.py — Share allocation engine.

Turns a total plus a list of heterogeneous share declarations into concrete
monetary amounts.

Resolution order (resolve_shares):
  1. De-duplicate by member — the first declaration for a member wins.
  2. PERCENTAGE shares → (pct / 100) * remainder, 2 dp.
  3. EQUAL shares      → remainder / count, 2 dp, rounding slack to one share.
  4. Final re-round per kind (SHARE_PRECISION): FIXED/PERCENTAGE 2 dp,
     EQUAL 3 dp. The expenses backend closes the total on its side.

The remainder is always `total - sum(FIXED)`. PERCENTAGE and EQUAL are never
valid together (share_rules.py), so both steps share the same base.

Layer rules:
  - No Flask imports, no I/O, no shared state.
  - Never raises on infeasible input; share_rules.py reports those.
  - Decimal only. Inputs given as int/float/str are converted through str();
    NaN and infinities count as zero.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, Sequence

from splitdesk.app.models.share import ShareDeclaration, ShareKind


ZERO = Decimal("0")
HUNDRED = Decimal("100")

MONEY_PLACES = 2

# EQUAL shares keep one extra decimal. Harmonising with MONEY_PLACES is a
# one-line change here.
EQUAL_SHARE_PLACES = 3

SHARE_PRECISION: dict[ShareKind, int] = {
    ShareKind.FIXED:      MONEY_PLACES,
    ShareKind.PERCENTAGE: MONEY_PLACES,
    ShareKind.EQUAL:      EQUAL_SHARE_PLACES,
}


# ── Numeric helpers ────────────────────────────────────────────────────────

def as_decimal(value) -> Decimal:
    """
    Converts int/float/str/None to Decimal.

    None, NaN and infinities count as zero, so no comparison downstream can
    trap on a non-finite operand.
    """
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value if value.is_finite() else ZERO


def round_to(value, places: int) -> Decimal:
    """
    Rounds half away from zero to `places` decimals (never banker's rounding).

    Precision is widened locally to fit the rounded result, so totals beyond
    the default 28 digits quantize instead of raising InvalidOperation.
    """
    value = as_decimal(value)
    quant = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return value.quantize(quant, rounding=ROUND_HALF_UP)


def to2(value) -> Decimal:
    return round_to(value, 2)


def to3(value) -> Decimal:
    return round_to(value, 3)


def sum_by_kind(shares: Iterable[ShareDeclaration], kind: ShareKind) -> Decimal:
    """Unrounded sum of the amounts of every share of `kind`."""
    return sum((as_decimal(s.amount) for s in shares if s.kind == kind), ZERO)


def sum_fixed(shares: Iterable[ShareDeclaration]) -> Decimal:
    return to2(sum_by_kind(shares, ShareKind.FIXED))


def sum_percent(shares: Iterable[ShareDeclaration]) -> Decimal:
    # Left unrounded: percent_sum_is_100 rounds it itself.
    return sum_by_kind(shares, ShareKind.PERCENTAGE)


def sum_shares(shares: Iterable[ShareDeclaration]) -> Decimal:
    return to2(sum((as_decimal(s.amount) for s in shares), ZERO))


def remainder(total, shares: Iterable[ShareDeclaration]) -> Decimal:
    """total − sum(FIXED), 2 dp. May be negative when FIXED exceeds the total."""
    return to2(as_decimal(total) - sum_fixed(shares))


def has_kind(shares: Iterable[ShareDeclaration], kind: ShareKind) -> bool:
    return any(s.kind == kind for s in shares)


def unique_by_member(shares: Iterable[ShareDeclaration]) -> list[ShareDeclaration]:
    """Drops every declaration whose member already appeared earlier."""
    seen: set[str] = set()
    out: list[ShareDeclaration] = []
    for share in shares:
        if share.member_id not in seen:
            seen.add(share.member_id)
            out.append(share)
    return out


# ── Rounding slack strategies ──────────────────────────────────────────────

class TieBreakStrategy(ABC):
    """
    Decides which parts absorb the rounding slack when a target amount is
    split into individually rounded parts.

    distribute() must return parts that sum exactly to `target` (both at
    `places` decimals), in the same order as given.
    """

    name: str = "base"

    @abstractmethod
    def distribute(
            self,
            parts: Sequence[Decimal],
            target: Decimal,
            places: int,
    ) -> list[Decimal]:
        raise NotImplementedError


class LastElementAbsorbsRemainder(TieBreakStrategy):
    """
    The whole slack goes to the last part.

    $10.00 / 3 → [3.33, 3.33, 3.34]
    """

    name = "last-element"

    def distribute(
            self,
            parts: Sequence[Decimal],
            target: Decimal,
            places: int,
    ) -> list[Decimal]:
        adjusted = list(parts)
        if not adjusted:
            return adjusted

        slack = round_to(as_decimal(target) - sum(adjusted, ZERO), places)
        adjusted[-1] = round_to(adjusted[-1] + slack, places)
        return adjusted


DEFAULT_TIE_BREAK: TieBreakStrategy = LastElementAbsorbsRemainder()


# ── Resolution steps ───────────────────────────────────────────────────────

def _indexes_of(shares: Sequence[ShareDeclaration], kind: ShareKind) -> list[int]:
    return [i for i, s in enumerate(shares) if s.kind == kind]


def resolve_percentage_shares(
        total,
        shares: Sequence[ShareDeclaration],
        tie_break: TieBreakStrategy = DEFAULT_TIE_BREAK,
) -> list[ShareDeclaration]:
    """
    Resolves every PERCENTAGE share to `(pct / 100) * remainder`, 2 dp.

    The percentage subset is reconciled to `remainder * sum(pct) / 100`
    through `tie_break`, so [33.33, 33.33, 33.34] of 10.00 resolves to
    [3.33, 3.33, 3.34] rather than drifting to 9.99.

    FIXED and EQUAL shares pass through untouched. The amounts are always
    read as percentage points, so feeding the same declarations twice gives
    the same result.
    """
    resolved = list(shares)
    indexes = _indexes_of(resolved, ShareKind.PERCENTAGE)
    if not indexes:
        return resolved

    rem = remainder(total, resolved)
    parts = [to2(as_decimal(resolved[i].amount) / HUNDRED * rem) for i in indexes]
    target = to2(sum_percent(resolved) / HUNDRED * rem)
    parts = tie_break.distribute(parts, target, MONEY_PLACES)

    for i, part in zip(indexes, parts):
        resolved[i] = resolved[i].with_amount(part)
    return resolved


def resolve_equal_shares(
        total,
        shares: Sequence[ShareDeclaration],
        tie_break: TieBreakStrategy = DEFAULT_TIE_BREAK,
) -> list[ShareDeclaration]:
    """
    Splits the remainder evenly across EQUAL shares.

    Each share gets `remainder / count` rounded to 2 dp; the discrepancy is
    handed to `tie_break` (by default the last EQUAL share in list order
    absorbs it), so the EQUAL subset sums exactly to the remainder.
    List order is preserved.
    """
    resolved = list(shares)
    indexes = _indexes_of(resolved, ShareKind.EQUAL)
    if not indexes:
        return resolved

    rem = remainder(total, resolved)
    base = to2(rem / Decimal(len(indexes)))
    parts = tie_break.distribute([base] * len(indexes), rem, MONEY_PLACES)

    for i, part in zip(indexes, parts):
        resolved[i] = resolved[i].with_amount(part)
    return resolved


def resolve_shares(
        total,
        shares: Iterable[ShareDeclaration],
        tie_break: TieBreakStrategy = DEFAULT_TIE_BREAK,
) -> list[ShareDeclaration]:
    """
    Full pipeline run on every draft change. See module docstring for order.

    Returns:
        New list of resolved shares, one per member, in first-seen order.
    """
    current = unique_by_member(shares)

    if has_kind(current, ShareKind.PERCENTAGE):
        current = resolve_percentage_shares(total, current, tie_break)

    if has_kind(current, ShareKind.EQUAL):
        current = resolve_equal_shares(total, current, tie_break)

    return [
        s.with_amount(round_to(s.amount, SHARE_PRECISION[s.kind]))
        for s in current
    ]
