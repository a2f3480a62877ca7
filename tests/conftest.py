"""
Test configuration - ensures repo root is in sys.path + determinism guards.

This allows tests to import from top-level packages (api, engine, erplib).
Enforces determinism by blocking live HTTP calls: every test talks to a
mocked FrappeClient or a mocked requests.Session.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

# Add repo root to sys.path so tests can import api.*, engine.*, erplib.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from api.server import create_app  # noqa: E402
from engine.frappe_client import FrappeClient  # noqa: E402
from erplib.config import Settings  # noqa: E402

# =============================================================================
# DETERMINISM GUARD: Block live ERP access
# =============================================================================


def _blocked_send(self, request, **kwargs):
    raise RuntimeError(
        f"DETERMINISM VIOLATION: live HTTP call to {request.url}\n"
        "Tests must mock FrappeClient or pass a mocked session."
    )


@pytest.fixture(autouse=True)
def guard_live_http(monkeypatch):
    """Automatically guard all tests against live HTTP calls."""
    monkeypatch.setattr(requests.Session, "send", _blocked_send)


# =============================================================================
# APP FIXTURES
# =============================================================================


@pytest.fixture
def settings():
    return Settings(
        erp_api_url="https://erp.example.com",
        erp_api_key="key",
        erp_api_secret="secret",
    )


@pytest.fixture
def frappe():
    """A FrappeClient double; tests set return values per call."""
    return MagicMock(spec=FrappeClient)


@pytest.fixture
def client(settings, frappe):
    return TestClient(create_app(settings=settings, client=frappe))
