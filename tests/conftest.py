"""Shared fixtures: a config, a mocked requests session and response builder."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from servicenow_mcp.client import ServiceNowClient
from servicenow_mcp.config import ServerConfig

INSTANCE = "https://dev1.service-now.com"


def make_response(status_code=200, body=None, reason="OK", content=None):
    """Build a real ``requests.Response`` with a JSON (or raw) body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.url = INSTANCE
    if content is not None:
        response._content = content
    elif body is None:
        response._content = b""
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    return response


@pytest.fixture
def config():
    return ServerConfig(
        instance_url=INSTANCE,
        client_id="client-id",
        client_secret="client-secret",
        username="admin",
        password="secret",
    )


@pytest.fixture
def session():
    mock = MagicMock()
    mock.headers = {}
    return mock


@pytest.fixture
def auth():
    return MagicMock()


@pytest.fixture
def client(config, session, auth):
    return ServiceNowClient(config, session=session, auth=auth)
