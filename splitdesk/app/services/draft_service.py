"""
services/draft_service.py — Editing operations on a share draft.

The draft is the working list of ShareDeclarations behind the expense form.
Every function returns a NEW list; the input is never modified. A refused
edit returns the current list unchanged rather than raising, so callers can
apply edits speculatively.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence

from splitdesk.app.models.share import ShareDeclaration, ShareKind
from splitdesk.app.services.allocation import unique_by_member
from splitdesk.app.services.share_rules import equal_allowed


def can_add_more(shares: Sequence[ShareDeclaration], member_count: int) -> bool:
    """True while fewer unique members than the group size hold a share."""
    return len(unique_by_member(shares)) < member_count


def add_share(
        shares: Sequence[ShareDeclaration],
        member_id: str,
        kind: ShareKind,
        member_count: int,
) -> list[ShareDeclaration]:
    """
    Appends a zero-amount share for `member_id`.

    Refused when:
      - the draft already covers as many members as the group has
      - `member_id` already has a share
      - `kind` is EQUAL and a PERCENTAGE share exists
    """
    current = list(shares)
    if not can_add_more(current, member_count):
        return current
    if any(s.member_id == member_id for s in current):
        return current
    if kind == ShareKind.EQUAL and not equal_allowed(current):
        return current

    current.append(ShareDeclaration(member_id=member_id, kind=kind, amount=Decimal("0")))
    return current


def remove_share(
        shares: Sequence[ShareDeclaration],
        member_id: str,
) -> list[ShareDeclaration]:
    return [s for s in shares if s.member_id != member_id]


def divide_equally(
        member_ids: Iterable[str],
        paid_by_id: str | None = None,
        include_payer: bool = True,
        shares: Sequence[ShareDeclaration] = (),
        member_count: int | None = None,
) -> list[ShareDeclaration]:
    """
    Replaces the draft with one EQUAL share per group member.

    Args:
        member_ids:    All members of the group, in display order.
        paid_by_id:    The payer; dropped from the result when include_payer
                       is False.
        include_payer: Whether the payer takes part in the split.
        shares:        The current draft. Returned unchanged when it holds a
                       PERCENTAGE share (EQUAL is not allowed alongside it).
        member_count:  Group size. When given, only the first `member_count`
                       members get a share.
    """
    if not equal_allowed(shares):
        return list(shares)

    members = list(member_ids)
    ids = members if include_payer else [m for m in members if m != paid_by_id]

    picks: list[str] = []
    for member_id in ids:
        if member_id not in picks:
            picks.append(member_id)

    if member_count is not None:
        picks = picks[:member_count]

    return [
        ShareDeclaration(member_id=member_id, kind=ShareKind.EQUAL, amount=Decimal("0"))
        for member_id in picks
    ]
