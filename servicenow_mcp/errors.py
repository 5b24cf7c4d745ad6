"""
Error types for the ServiceNow MCP server.

Transport and authentication failures are plain exceptions raised by the
client layer. Protocol failures (bad input, unknown tool, handler crash) are
``McpError`` instances so the MCP SDK can turn them into error responses.
"""

from typing import Optional

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_REQUEST, METHOD_NOT_FOUND, ErrorData


class ServiceNowError(Exception):
    """Base class for errors raised while talking to ServiceNow."""


class ConfigurationError(ServiceNowError):
    """Required configuration is missing or invalid."""


class AuthenticationError(ServiceNowError):
    """The OAuth token request was rejected or returned no token."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 description: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.description = description


class TransportError(ServiceNowError):
    """No response was received (connection failure or timeout)."""


class NetworkError(TransportError):
    """No response was received from the OAuth token endpoint."""


class RemoteAPIError(ServiceNowError):
    """ServiceNow answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"ServiceNow API error ({status_code}): {message}")
        self.status_code = status_code
        self.message = message


class RequestError(ServiceNowError):
    """The request could not be built or sent for a local reason."""


def invalid_request(message: str) -> McpError:
    return McpError(ErrorData(code=INVALID_REQUEST, message=message))


def method_not_found(message: str) -> McpError:
    return McpError(ErrorData(code=METHOD_NOT_FOUND, message=message))


def internal_error(message: str) -> McpError:
    return McpError(ErrorData(code=INTERNAL_ERROR, message=message))


def describe(exc: BaseException) -> str:
    """Render an exception as ``ErrorClass: message`` for protocol output."""
    if isinstance(exc, McpError):
        return exc.error.message
    return f"{type(exc).__name__}: {exc}"
