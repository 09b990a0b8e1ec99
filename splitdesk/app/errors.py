"""
errors.py — AppError base class and error code registry.

Every error returned by the SplitDesk API must use a code defined here.
Do not raise strings or generic exceptions from service or route code.

The allocation engine itself never raises: blocked drafts are reported through
ShareRule codes (services/share_rules.py). AppError is only raised at the
service and client boundary, when a draft is submitted.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
            details: list | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field    # which request field caused the error
        self.details     = details  # failing share rules, when relevant

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        if self.details:
            payload["details"] = self.details
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_SHARE_TYPE         = "INVALID_SHARE_TYPE"
    INVALID_AMOUNT             = "INVALID_AMOUNT"
    INVALID_PERCENTAGE         = "INVALID_PERCENTAGE"

    # ── Business Rule Violations (422) ────────────────────────────────────
    # The draft failed one or more share rules; details lists them all.
    SHARES_NOT_SUBMITTABLE     = "SHARES_NOT_SUBMITTABLE"

    # ── Upstream Errors (502) ─────────────────────────────────────────────
    # The expenses backend answered with a non-2xx status.
    UPSTREAM_REJECTED          = "UPSTREAM_REJECTED"
    # The expenses backend could not be reached at all.
    UPSTREAM_UNAVAILABLE       = "UPSTREAM_UNAVAILABLE"

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"
