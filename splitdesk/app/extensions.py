"""
extensions.py — Flask extension singletons.

Creates extension objects at module level so they can be imported anywhere
without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import the object from here wherever needed.

    from splitdesk.app.extensions import expenses_api

Do not build the client at import time — that would prevent running tests
with a separate test app instance (and a mocked client).
"""

from __future__ import annotations

from flask import Flask, current_app

from splitdesk.app.clients.expenses_client import ExpensesClient


class ExpensesAPI:
    """Holds one ExpensesClient per app, built from that app's config."""

    extension_name = "expenses_api"

    def __init__(self, app: Flask | None = None) -> None:
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.extensions[self.extension_name] = ExpensesClient.from_config(app.config)

    @property
    def client(self) -> ExpensesClient:
        """The client bound to the current app. Requires an app context."""
        return current_app.extensions[self.extension_name]


expenses_api = ExpensesAPI()
