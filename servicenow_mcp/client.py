"""ServiceNow REST client used by every tool and resource."""

import logging
from typing import Any, Dict, List, Optional, Union

import requests

from .auth import AuthManager
from .config import ServerConfig
from .errors import RemoteAPIError, RequestError, TransportError

logger = logging.getLogger(__name__)

API_BASE = "/api/now"

Fields = Optional[Union[str, List[str]]]


def _join_fields(fields: Fields) -> Optional[str]:
    if not fields:
        return None
    if isinstance(fields, str):
        return fields
    return ",".join(f.strip() for f in fields)


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        message = error.get("message") or error.get("detail")
        if message:
            return str(message)
    return response.reason or f"HTTP {response.status_code}"


class ServiceNowClient:
    """Authenticated access to the ServiceNow Table and Attachment APIs."""

    def __init__(self, config: ServerConfig, session: Optional[requests.Session] = None,
                 auth: Optional[AuthManager] = None):
        self.config = config
        self.base_url = config.instance_url
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json"
        })
        self.auth = auth if auth is not None else AuthManager(config, self.session)
        self.timeout = config.timeout

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        self.auth.ensure_authenticated()
        url = f"{self.base_url}{API_BASE}{path}"
        logger.debug("%s %s params=%s", method, url, kwargs.get("params"))
        try:
            response = self.session.request(method=method, url=url, timeout=self.timeout, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise TransportError(f"No response from ServiceNow server: {e}") from e
        except (requests.exceptions.RequestException, TypeError, ValueError) as e:
            raise RequestError(f"Request failed: {e}") from e

        if not response.ok:
            raise RemoteAPIError(response.status_code, _error_message(response))
        return response

    def request(self, method: str, path: str, data: Optional[Dict[str, Any]] = None,
                params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Make an authenticated call and return the decoded JSON body.

        ``path`` is relative to ``/api/now`` (e.g. ``/table/incident``).
        An empty body (such as a DELETE response) decodes to ``{}``.
        """
        response = self._send(method, path, params=params, json=data)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RequestError(f"Invalid JSON in ServiceNow response: {e}") from e

    # ==========================================================================
    # TABLE API
    # ==========================================================================

    def get_record(self, table: str, sys_id: str, fields: Fields = None,
                   display_value: Optional[str] = None) -> Dict[str, Any]:
        params = {}
        joined = _join_fields(fields)
        if joined: params["sysparm_fields"] = joined
        if display_value: params["sysparm_display_value"] = display_value
        return self.request("GET", f"/table/{table}/{sys_id}", params=params)

    def query_table(self, table: str, query: Optional[str] = None, fields: Fields = None,
                    limit: int = 100, offset: int = 0, order_by: Optional[str] = None,
                    display_value: Optional[str] = None) -> Dict[str, Any]:
        if limit is None or limit < 1:
            raise RequestError(f"limit must be a positive integer, got {limit}")
        if offset is None or offset < 0:
            raise RequestError(f"offset must be zero or positive, got {offset}")

        params = {
            "sysparm_limit": limit,
            "sysparm_offset": offset,
        }
        joined = _join_fields(fields)
        if query: params["sysparm_query"] = query
        if joined: params["sysparm_fields"] = joined
        if order_by: params["sysparm_orderby"] = order_by
        if display_value: params["sysparm_display_value"] = display_value
        return self.request("GET", f"/table/{table}", params=params)

    def create_record(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", f"/table/{table}", data=data)

    def update_record(self, table: str, sys_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", f"/table/{table}/{sys_id}", data=data)

    def delete_record(self, table: str, sys_id: str) -> Dict[str, Any]:
        return self.request("DELETE", f"/table/{table}/{sys_id}")

    # ==========================================================================
    # ATTACHMENT API
    # ==========================================================================

    def upload_attachment(self, table_name: str, table_sys_id: str, file_name: str,
                          content_type: str, content: bytes) -> Dict[str, Any]:
        params = {
            "table_name": table_name,
            "table_sys_id": table_sys_id,
            "file_name": file_name
        }
        response = self._send(
            "POST", "/attachment/file",
            params=params, data=content,
            headers={"Content-Type": content_type},
        )
        return response.json() if response.content else {}

    def download_attachment(self, sys_id: str) -> bytes:
        response = self._send("GET", f"/attachment/{sys_id}/file", headers={"Accept": "*/*"})
        return response.content
