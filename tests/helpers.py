"""
tests/helpers.py -- Constants and request helpers shared by the test modules.

The fixtures in conftest.py seed exactly one user with these credentials.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

TEST_USERNAME = "webadmin"
TEST_PASSWORD = "webpass123"


def login(client: TestClient, username: str = TEST_USERNAME, password: str = TEST_PASSWORD):
    """POST the login form and return the response (302 on success)."""
    return client.post("/login", data={"username": username, "password": password})
