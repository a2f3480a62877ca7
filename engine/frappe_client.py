"""Frappe/ERPNext REST client with token authentication."""

import html
import json
import logging
import re
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import requests

from erplib.config import Settings

logger = logging.getLogger(__name__)

RESOURCE_PATH = "/api/resource"
METHOD_PATH = "/api/method"

GENERIC_ERROR_MESSAGE = "An unexpected error occurred."

_TAG_RE = re.compile(r"<[^>]+>")

# Filters are Frappe's list form: [field, operator, value], or a nested
# list of such triples meaning OR.
Filters = Sequence[Any]


class FrappeError(RuntimeError):
    """An error returned by (or while reaching) the Frappe server."""

    def __init__(
        self,
        message: str,
        http_status: int | None = None,
        exc_type: str | None = None,
        exception: str | None = None,
        server_messages: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.exc_type = exc_type
        self.exception = exception
        self.server_messages = server_messages

    @classmethod
    def from_response(cls, resp: requests.Response) -> "FrappeError":
        """Build an error from a non-2xx Frappe response."""
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("exception") or body.get("message")
        if not isinstance(message, str) or not message:
            message = f"{resp.status_code} {resp.reason or 'Error'}"

        return cls(
            message=message,
            http_status=resp.status_code,
            exc_type=body.get("exc_type"),
            exception=body.get("exception"),
            server_messages=body.get("_server_messages"),
        )


def strip_html(text: str) -> str:
    """Remove markup from server messages (e.g. <strong>P-004</strong>)."""
    return html.unescape(_TAG_RE.sub("", text)).strip()


def _first_server_message(raw: str | None) -> str | None:
    """Pull the first message out of Frappe's doubly-encoded _server_messages."""
    if not raw:
        return None
    try:
        messages = json.loads(raw)
        if isinstance(messages, list) and messages:
            first = messages[0]
            parsed = json.loads(first) if isinstance(first, str) else first
            if isinstance(parsed, dict) and parsed.get("message"):
                return strip_html(str(parsed["message"]))
    except (TypeError, ValueError):
        logger.warning("Failed to parse _server_messages, falling back to default message")
    return None


def describe_error(error: FrappeError) -> tuple[int, str]:
    """
    Turn a Frappe error into (HTTP status, user-facing message).

    The first server message wins. Otherwise the exception text is matched
    against known Frappe exception types.
    """
    status = error.http_status or 500

    message = _first_server_message(error.server_messages)
    if message:
        return status, message

    raw = " ".join(part for part in (error.exc_type, error.exception) if part)
    if "DuplicateEntryError" in raw or "already exists" in raw:
        return 409, "A record with these details already exists."
    if "PermissionError" in raw:
        return 403, "You do not have permission to perform this action."
    if "DoesNotExistError" in raw or "not found" in raw:
        return 404, "The requested resource was not found."
    if "MandatoryError" in raw or "required" in raw:
        return 400, "Required fields are missing."
    return status, error.message or GENERIC_ERROR_MESSAGE


class FrappeClient:
    """
    Thin client over Frappe's generic document and method APIs.

    Construct once at start-up and share; the underlying requests.Session
    pools connections.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"token {api_key}:{api_secret}",
                "Accept": "application/json",
            }
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "FrappeClient":
        return cls(
            settings.erp_api_url,
            settings.erp_api_key,
            settings.erp_api_secret,
            timeout=settings.timeout,
        )

    def close(self) -> None:
        self.session.close()

    # ==== Transport ====

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        payload: Any = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug(f"Frappe {method} {path}")
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Frappe {method} {path} failed: {e}")
            raise FrappeError(f"ERP system unavailable: {e}", http_status=503) from e

        if not resp.ok:
            error = FrappeError.from_response(resp)
            logger.warning(
                f"Frappe {method} {path} returned {resp.status_code}: {error.message}",
                extra={"exc_type": error.exc_type},
            )
            raise error

        if not resp.content:
            return {}
        try:
            body = resp.json()
        except ValueError as e:
            raise FrappeError(
                f"Invalid JSON from ERP: {resp.text[:200]}", http_status=502
            ) from e
        return body if isinstance(body, dict) else {"data": body}

    @staticmethod
    def _resource_path(doctype: str, name: str | None = None) -> str:
        path = f"{RESOURCE_PATH}/{quote(doctype, safe='')}"
        if name is not None:
            path += f"/{quote(name, safe='')}"
        return path

    # ==== Documents ====

    def get_doc_list(
        self,
        doctype: str,
        *,
        fields: Sequence[str] | None = None,
        filters: Filters | None = None,
        order_by: tuple[str, str] | None = None,
        limit: int | None = None,
        limit_start: int = 0,
    ) -> list[dict[str, Any]]:
        """
        List documents of a doctype.

        order_by is (field, "asc" | "desc"). Without a limit Frappe applies
        its own page size.
        """
        params: dict[str, Any] = {}
        if fields:
            params["fields"] = json.dumps(list(fields))
        if filters:
            params["filters"] = json.dumps(list(filters))
        if order_by:
            field_name, direction = order_by
            params["order_by"] = f"{field_name} {direction}"
        if limit is not None:
            params["limit_page_length"] = limit
        if limit_start:
            params["limit_start"] = limit_start

        data = self._request("GET", self._resource_path(doctype), params=params)
        return data.get("data", [])

    def get_doc(self, doctype: str, name: str) -> dict[str, Any]:
        data = self._request("GET", self._resource_path(doctype, name))
        return data.get("data", {})

    def create_doc(self, doctype: str, doc: dict[str, Any]) -> dict[str, Any]:
        data = self._request("POST", self._resource_path(doctype), payload=doc)
        return data.get("data", {})

    def update_doc(self, doctype: str, name: str, doc: dict[str, Any]) -> dict[str, Any]:
        data = self._request("PUT", self._resource_path(doctype, name), payload=doc)
        return data.get("data", {})

    def delete_doc(self, doctype: str, name: str) -> None:
        self._request("DELETE", self._resource_path(doctype, name))

    # ==== Whitelisted methods ====

    def call_get(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """GET /api/method/<method>. Non-string params are JSON-encoded."""
        encoded = {
            key: value if isinstance(value, str) else json.dumps(value)
            for key, value in (params or {}).items()
        }
        data = self._request("GET", f"{METHOD_PATH}/{method}", params=encoded)
        return data.get("message")

    def call_post(self, method: str, payload: dict[str, Any] | None = None) -> Any:
        """POST /api/method/<method> with a JSON body."""
        data = self._request("POST", f"{METHOD_PATH}/{method}", payload=payload or {})
        return data.get("message")

    def get_document(self, doctype: str, name: str) -> dict[str, Any] | None:
        """Full document with child tables via frappe.client.get."""
        return self.call_get("frappe.client.get", {"doctype": doctype, "name": name})

    def insert(self, doc: dict[str, Any]) -> dict[str, Any] | None:
        """Insert a document (doc must carry its doctype) via frappe.client.insert."""
        return self.call_post("frappe.client.insert", {"doc": doc})

    def submit(self, doc: dict[str, Any]) -> dict[str, Any] | None:
        """Submit a saved document via frappe.client.submit."""
        return self.call_post("frappe.client.submit", {"doc": doc})

    def ping(self) -> str | None:
        """Return the authenticated ERP user; raises FrappeError if unreachable."""
        return self.call_get("frappe.auth.get_logged_user")
