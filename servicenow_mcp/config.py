"""
Configuration for the ServiceNow MCP server.

Values come from the environment (a local ``.env`` file is loaded first).
"""

import logging
import os
import sys
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError

DEFAULT_SCOPE = "useraccount"
DEFAULT_TIMEOUT_MS = 30000

# Primary variable name first, accepted aliases after it.
REQUIRED_ENV = {
    "SERVICENOW_INSTANCE_URL": ("SERVICENOW_INSTANCE_URL", "SERVICENOW_INSTANCE", "SNOW_INSTANCE"),
    "SERVICENOW_CLIENT_ID": ("SERVICENOW_CLIENT_ID",),
    "SERVICENOW_CLIENT_SECRET": ("SERVICENOW_CLIENT_SECRET",),
    "SERVICENOW_USERNAME": ("SERVICENOW_USERNAME", "SNOW_USERNAME"),
    "SERVICENOW_PASSWORD": ("SERVICENOW_PASSWORD", "SNOW_PASSWORD"),
}


def normalize_instance_url(instance: str) -> str:
    """Accept a full URL, a host name, or a bare instance name."""
    instance = instance.strip()
    if instance.startswith("http"):
        return instance.rstrip("/")
    if "." not in instance:
        return f"https://{instance}.service-now.com"
    return f"https://{instance.rstrip('/')}"


def _lookup(env: Mapping[str, str], names) -> Optional[str]:
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None


def _parse_timeout(raw: Optional[str]) -> int:
    try:
        value = int(raw) if raw else DEFAULT_TIMEOUT_MS
    except ValueError:
        return DEFAULT_TIMEOUT_MS
    return value if value > 0 else DEFAULT_TIMEOUT_MS


class ServerConfig(BaseModel):
    """Connection settings for one ServiceNow instance."""

    instance_url: str = Field(..., description="Base URL of the ServiceNow instance")
    client_id: str = Field(..., description="OAuth client id")
    client_secret: str = Field(..., description="OAuth client secret")
    username: str = Field(..., description="User for the password grant")
    password: str = Field(..., description="Password for the password grant")
    scope: str = Field(DEFAULT_SCOPE, description="OAuth scope")
    timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, gt=0, description="Request timeout in milliseconds")
    debug: bool = Field(False, description="Enable debug logging")

    @property
    def timeout(self) -> float:
        """Timeout in seconds, as ``requests`` expects it."""
        return self.timeout_ms / 1000.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Build the configuration from environment variables.

        Raises:
            ConfigurationError: listing every required variable that is unset.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        values = {key: _lookup(env, names) for key, names in REQUIRED_ENV.items()}
        missing: List[str] = [key for key, value in values.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing required env vars: {', '.join(missing)}")

        return cls(
            instance_url=normalize_instance_url(values["SERVICENOW_INSTANCE_URL"]),
            client_id=values["SERVICENOW_CLIENT_ID"],
            client_secret=values["SERVICENOW_CLIENT_SECRET"],
            username=values["SERVICENOW_USERNAME"],
            password=values["SERVICENOW_PASSWORD"],
            scope=env.get("SERVICENOW_OAUTH_SCOPE") or DEFAULT_SCOPE,
            timeout_ms=_parse_timeout(env.get("SERVICENOW_TIMEOUT")),
            debug=(env.get("DEBUG") or "").strip().lower() == "true",
        )


def configure_logging(debug: bool = False) -> None:
    """Log to stderr; stdout carries the stdio protocol stream."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )
    # requests/urllib3 are noisy at DEBUG
    logging.getLogger("urllib3").setLevel(logging.INFO if debug else logging.WARNING)
