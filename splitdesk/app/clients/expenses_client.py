"""
clients/expenses_client.py — HTTP client for the external expenses backend.

The backend is authoritative for storage. This client sends exactly one
request per submission: no retry, no rollback. Failures become AppError so
the global error handler renders them like any other API error.

Error mapping:
  transport failure (DNS, refused, timeout) → UPSTREAM_UNAVAILABLE (502)
  non-2xx response                          → UPSTREAM_REJECTED    (502)
                                              message taken from the body
"""

from __future__ import annotations

import logging
from typing import Mapping

import requests

from splitdesk.app.errors import AppError, ErrorCode


logger = logging.getLogger(__name__)


def extract_error_message(response: requests.Response) -> str:
    """
    Pulls a human message out of a failed response.

    Accepts {"message": "..."}, {"error": "..."} and
    {"error": {"message": "..."}}. Falls back to a generic status line when
    the body is missing, not JSON, or has none of these.
    """
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message

        error = payload.get("error")
        if isinstance(error, dict):
            nested = error.get("message")
            if isinstance(nested, str) and nested.strip():
                return nested
        elif isinstance(error, str) and error.strip():
            return error

    return f"Request failed with status code {response.status_code}"


class ExpensesClient:

    EXPENSES_PATH = "/api/expenses"

    def __init__(
            self,
            base_url: str,
            timeout: int = 10,
            session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout  = timeout
        self.session  = session if session is not None else requests.Session()

    @classmethod
    def from_config(cls, config: Mapping) -> "ExpensesClient":
        return cls(
            base_url=config["EXPENSES_API_URL"],
            timeout=config.get("EXPENSES_API_TIMEOUT", 10),
        )

    def create_expense(self, body: dict, auth_header: str | None = None) -> dict:
        """
        POSTs an expense request body.

        Args:
            body:        Output of ExpenseRequestSchema().dump().
            auth_header: Caller's Authorization header, forwarded untouched.

        Returns:
            The backend's JSON response, or {} when the body is empty.
        """
        url = f"{self.base_url}{self.EXPENSES_PATH}"
        headers = {"Accept": "application/json"}
        if auth_header:
            headers["Authorization"] = auth_header

        try:
            response = self.session.post(
                url,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Expenses backend unreachable at %s: %s", url, exc)
            raise AppError(
                ErrorCode.UPSTREAM_UNAVAILABLE,
                "The expenses service is unavailable. Please try again later.",
                502,
            ) from exc

        if not 200 <= response.status_code < 300:
            message = extract_error_message(response)
            logger.warning(
                "Expenses backend rejected expense (status %s): %s",
                response.status_code,
                message,
            )
            raise AppError(
                ErrorCode.UPSTREAM_REJECTED,
                message,
                502,
                details=[{"upstream_status": response.status_code}],
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            logger.warning("Expenses backend returned a non-JSON success body.")
            return {}
