"""
FastAPI dependencies for objects created once at start-up.

The app factory stores the settings and the Frappe client on app.state;
routes receive them through Depends() rather than module globals.
"""

from fastapi import Request

from engine.frappe_client import FrappeClient
from erplib.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_frappe_client(request: Request) -> FrappeClient:
    return request.app.state.frappe
