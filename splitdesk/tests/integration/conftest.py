"""
tests/integration/conftest.py — Fixtures for all integration tests.

Design:
  - The app is created once per session using create_app("testing").
  - Requests go through the Flask test client, so routing, schemas, the
    allocation engine and the error handlers all run for real.
  - The external expenses backend is replaced per test by a MagicMock bound
    to app.extensions["expenses_api"]; nothing leaves the process.

Helpers are exposed as fixtures (post_json, share) so tests can call them
with arbitrary arguments.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from splitdesk.app import create_app
from splitdesk.app.clients.expenses_client import ExpensesClient
from splitdesk.app.extensions import expenses_api as _expenses_api


@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the session."""
    return create_app("testing")


@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


@pytest.fixture
def expenses_backend(app):
    """
    Swaps the configured ExpensesClient for a MagicMock for one test.

    Default behaviour: every create_expense() call succeeds with {"id": "exp-1"}.
    Override with expenses_backend.create_expense.side_effect / return_value.
    """
    name = _expenses_api.extension_name
    original = app.extensions[name]

    mock = MagicMock(spec=ExpensesClient)
    mock.create_expense.return_value = {"id": "exp-1"}
    app.extensions[name] = mock

    yield mock

    app.extensions[name] = original


@pytest.fixture
def post_json(client):
    """Returns post(path, payload, **kwargs) → (status_code, json_body)."""

    def _post(path: str, payload, **kwargs):
        resp = client.post(path, json=payload, **kwargs)
        return resp.status_code, resp.get_json()

    return _post


@pytest.fixture
def share():
    """Returns share(user_id, type, amount=None) → share dict for a request body."""

    def _share(user_id: str, share_type: str, amount=None) -> dict:
        payload = {"user_id": user_id, "type": share_type}
        if amount is not None:
            payload["amount"] = amount
        return payload

    return _share
