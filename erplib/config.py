"""
Centralized configuration for the ERP gateway.

All values that vary by deployment belong here and are read from
environment variables once, at start-up. The resulting Settings object
is passed explicitly to the app factory and the Frappe client.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

# ============================================================
# Defaults
# ============================================================

DEFAULT_COMPANY = "Pana ERP"
"""Company used for new documents when the caller does not name one."""

DEFAULT_TIMEOUT_SECONDS = 30.0
"""Timeout for every outbound call to the ERP."""

DEFAULT_PORT = 8420

REPORT_FETCH_LIMIT = 5000
"""Upper bound on rows fetched for the aging and ledger reports."""


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


def _parse_origins(raw: str) -> list[str]:
    if raw.strip() == "*":
        return ["*"]
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


@dataclass(frozen=True)
class Settings:
    erp_api_url: str
    erp_api_key: str
    erp_api_secret: str
    default_company: str = DEFAULT_COMPANY
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    api_token: str | None = None
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_json: bool | None = None
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from the environment.

        Raises ConfigError if the ERP URL or credentials are missing, or if a
        numeric variable does not parse.
        """
        env = os.environ if environ is None else environ

        url = env.get("ERP_API_URL", "").strip()
        key = env.get("ERP_API_KEY", "").strip()
        secret = env.get("ERP_API_SECRET", "").strip()
        missing = [
            name
            for name, value in (
                ("ERP_API_URL", url),
                ("ERP_API_KEY", key),
                ("ERP_API_SECRET", secret),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing ERP API environment variables: {', '.join(missing)}")

        try:
            timeout = float(env.get("ERP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS))
            port = int(env.get("PORT", DEFAULT_PORT))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        log_format = env.get("LOG_FORMAT")
        log_json = None if not log_format or log_format == "auto" else log_format == "json"

        return cls(
            erp_api_url=url.rstrip("/"),
            erp_api_key=key,
            erp_api_secret=secret,
            default_company=env.get("ERP_DEFAULT_COMPANY", DEFAULT_COMPANY),
            timeout=timeout,
            api_token=env.get("ERP_GATEWAY_API_TOKEN") or None,
            cors_origins=_parse_origins(env.get("CORS_ORIGINS", "*")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_json=log_json,
            port=port,
        )
