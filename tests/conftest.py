"""Shared fixtures: fake HTTP sessions and a canned identity."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from graph_mailer.auth import ClientCredentialsProvider
from graph_mailer.graph_client import GraphMailClient
from graph_mailer.models import ClientIdentity


def make_response(status_code=200, json_data=None, text=None):
    """Build a stand-in for :class:`requests.Response`."""
    resp = MagicMock()
    resp.status_code = status_code
    if json_data is not None:
        resp.json.return_value = json_data
        resp.text = text if text is not None else json.dumps(json_data)
    else:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
        resp.text = text or ""
    return resp


@pytest.fixture
def identity() -> ClientIdentity:
    return ClientIdentity(client_id="c1", client_secret="s1", tenant_id="t1", acting_user_id="u1")


@pytest.fixture
def session():
    fake = MagicMock()
    fake.post.return_value = make_response(json_data={"access_token": "abc", "expires_in": 3599})
    return fake


@pytest.fixture
def client(identity, session) -> GraphMailClient:
    provider = ClientCredentialsProvider(session)
    return GraphMailClient(identity, provider, session)


def request_calls(session):
    """(method, url, kwargs) for each Graph call made through ``session.request``."""
    return [(call.args[0], call.args[1], call.kwargs) for call in session.request.call_args_list]
