"""
models/share.py — Share declaration value types.

No business logic. No imports from services or routes.

Key design points:
  - Declarations are never persisted here; the expenses backend owns storage.
    They are immutable values so the engine can be re-run on every edit
    without the caller's list changing underneath it.
  - `amount` is a Decimal. Its meaning depends on `kind`:
      FIXED       → currency amount
      PERCENTAGE  → percentage points (0–100)
      EQUAL       → ignored on input; always computed by the engine
  - ShareKind is a str enum so wire values ("FIXED", ...) compare equal to
    members and serialise without conversion.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from decimal import Decimal


class ShareKind(str, enum.Enum):
    """Allocation strategy of a single share."""
    FIXED      = "FIXED"
    PERCENTAGE = "PERCENTAGE"
    EQUAL      = "EQUAL"


@dataclass(frozen=True)
class ShareDeclaration:
    """One member's stated participation in an expense."""

    member_id: str
    kind: ShareKind
    amount: Decimal = field(default_factory=lambda: Decimal("0"))

    def with_amount(self, amount: Decimal) -> "ShareDeclaration":
        """Returns a copy carrying `amount`; member and kind are kept."""
        return replace(self, amount=amount)

    def to_dict(self) -> dict:
        return {
            "user_id": self.member_id,
            "amount":  self.amount,
            "type":    self.kind.value,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ShareDeclaration member_id={self.member_id!r} "
            f"kind={self.kind.value} "
            f"amount={self.amount}>"
        )


# A resolved share has the same shape; only the meaning of `amount` changes.
ResolvedShare = ShareDeclaration
