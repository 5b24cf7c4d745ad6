"""
OAuth session management for ServiceNow.

Tokens come from the password grant on ``/oauth_token.do`` and are installed
as the default ``Authorization`` header of the shared ``requests.Session``.
"""

import logging
import time
from typing import Callable, Optional

import requests
from requests.auth import HTTPBasicAuth

from .config import ServerConfig
from .errors import AuthenticationError, NetworkError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth_token.do"
DEFAULT_EXPIRES_IN = 3600
# Seconds before expiry at which the token is renewed
REFRESH_MARGIN = 300


def _error_description(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        description = body.get("error_description") or body.get("error")
        if description:
            return str(description)
    return response.reason or f"HTTP {response.status_code}"


class AuthManager:
    """Holds the access token and re-acquires it when it is close to expiry."""

    def __init__(self, config: ServerConfig, session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config
        self.session = session if session is not None else requests.Session()
        self._clock = clock
        self.access_token: Optional[str] = None
        self.token_expiry: Optional[float] = None

    @property
    def token_url(self) -> str:
        return f"{self.config.instance_url}{TOKEN_PATH}"

    def authenticate(self) -> str:
        """
        Request a new access token with the password grant.

        Returns:
            The new access token.

        Raises:
            AuthenticationError: the grant was rejected or no token came back.
            NetworkError: the token endpoint did not answer.
        """
        data = {
            "grant_type": "password",
            "username": self.config.username,
            "password": self.config.password,
            "scope": self.config.scope,
        }
        try:
            response = self.session.post(
                self.token_url,
                data=data,
                auth=HTTPBasicAuth(self.config.client_id, self.config.client_secret),
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                },
                timeout=self.config.timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise NetworkError("Authentication failed: No response from ServiceNow server") from e
        except requests.exceptions.RequestException as e:
            raise AuthenticationError(f"Authentication failed: {e}") from e

        if not response.ok:
            description = _error_description(response)
            raise AuthenticationError(
                f"Authentication failed: {response.status_code} - {description}",
                status_code=response.status_code,
                description=description,
            )

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthenticationError("Authentication failed: No access token received from ServiceNow")

        try:
            raw = payload.get("expires_in")
            expires_in = DEFAULT_EXPIRES_IN if raw is None else float(raw)
        except (TypeError, ValueError):
            expires_in = DEFAULT_EXPIRES_IN

        # token and expiry are always assigned together
        self.access_token, self.token_expiry = token, self._clock() + expires_in
        self.session.headers["Authorization"] = f"Bearer {token}"
        logger.info("Authenticated with ServiceNow (token valid for %ds)", int(expires_in))
        return token

    def needs_refresh(self) -> bool:
        if self.access_token is None or self.token_expiry is None:
            return True
        return self._clock() >= self.token_expiry - REFRESH_MARGIN

    def ensure_authenticated(self) -> None:
        """Authenticate if no token is held or the current one is about to expire."""
        if self.needs_refresh():
            logger.debug("Access token missing or near expiry, re-authenticating")
            self.authenticate()
