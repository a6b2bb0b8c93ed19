"""Settings for the Kong OAuth 2.0 consent application.

Values come from the environment, optionally seeded from a .env file.
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

SERVICE_NAME = "kong-oauth2-consent"
VERSION = "1.0.0"

# Provider settings the consent flow cannot work without
REQUIRED_PROVIDER_SETTINGS = (
    "KONG_ADMIN_ENDPOINT",
    "KONG_PROXY_ENDPOINT",
    "PROVISION_KEY",
)

DEFAULTS = {
    "DEMO_CLIENT_ID": "",
    "KONG_ADMIN_ENDPOINT": "",
    "KONG_PROXY_ENDPOINT": "",
    "API_PATH": "",
    "PROVISION_KEY": "",
    "SESSION_COOKIE_NAME": "kongOAuthConsentApp",
    "SESSION_COOKIE_SECURE": "false",
    "SESSION_TTL_SECONDS": "1800",
    "SESSION_SLIDING": "true",
    "PROVIDER_TIMEOUT_SECONDS": "2.0",
    "PROVIDER_VERIFY_TLS": "true",
    "CONSENT_HOST": "localhost",
    "CONSENT_PORT": "8080",
    "LOG_LEVEL": "INFO",
    "LOG_FORMAT": "plain",
    "SUPABASE_URL": "",
    "SUPABASE_ANON_KEY": "",
}


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Configuration container."""

    def __init__(self, data: dict = None):
        self.data = {**DEFAULTS, **(data or {})}

    def _get(self, key: str) -> str:
        return self.data.get(key) or DEFAULTS[key]

    @property
    def service_name(self) -> str:
        return SERVICE_NAME

    @property
    def demo_client_id(self) -> str:
        return self._get("DEMO_CLIENT_ID")

    @property
    def kong_admin_endpoint(self) -> str:
        return self._get("KONG_ADMIN_ENDPOINT")

    @property
    def kong_proxy_endpoint(self) -> str:
        return self._get("KONG_PROXY_ENDPOINT")

    @property
    def api_path(self) -> str:
        return self._get("API_PATH")

    @property
    def provision_key(self) -> str:
        return self._get("PROVISION_KEY")

    @property
    def session_cookie_name(self) -> str:
        return self._get("SESSION_COOKIE_NAME")

    @property
    def session_cookie_secure(self) -> bool:
        return _as_bool(self._get("SESSION_COOKIE_SECURE"))

    @property
    def session_ttl_seconds(self) -> float:
        return float(self._get("SESSION_TTL_SECONDS"))

    @property
    def session_sliding(self) -> bool:
        return _as_bool(self._get("SESSION_SLIDING"))

    @property
    def provider_timeout_seconds(self) -> float:
        return float(self._get("PROVIDER_TIMEOUT_SECONDS"))

    @property
    def provider_verify_tls(self) -> bool:
        return _as_bool(self._get("PROVIDER_VERIFY_TLS"))

    @property
    def host(self) -> str:
        return self._get("CONSENT_HOST")

    @property
    def port(self) -> int:
        return int(self._get("CONSENT_PORT"))

    @property
    def log_level(self) -> str:
        return self._get("LOG_LEVEL").upper()

    @property
    def log_format(self) -> str:
        return self._get("LOG_FORMAT").lower()

    @property
    def supabase_url(self) -> str:
        return self._get("SUPABASE_URL")

    @property
    def supabase_anon_key(self) -> str:
        return self._get("SUPABASE_ANON_KEY")

    def missing(self) -> list[str]:
        """Names of required Provider settings that are not set."""
        return [key for key in REQUIRED_PROVIDER_SETTINGS if not self.data.get(key)]

    def masked(self) -> dict:
        """Settings for display, with secrets masked."""
        shown = dict(self.data)
        for key in ("PROVISION_KEY", "SUPABASE_ANON_KEY"):
            if shown.get(key):
                shown[key] = shown[key][:4] + "..."
        return shown


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Load settings from the environment.

    A .env file (default: ./.env) is read first; real environment variables
    take precedence over it.
    """
    env_file = env_file or Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    return Settings({key: os.environ[key] for key in DEFAULTS if key in os.environ})
