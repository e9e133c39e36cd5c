"""Shared fixtures: a fake HTTP session that answers JSON-RPC calls from a table."""
import sys, os
import json
import time

import pytest
import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sui_client import SuiClient

TEST_RPC = "https://fullnode.test.invalid:443"


class FakeResponse:
    def __init__(self, body=None, status_code=200, text=None):
        self.body = body
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(body)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """
    Records every posted payload. Responses come from `routes`, keyed by
    RPC method: a FakeResponse, an exception to raise, or a plain value
    wrapped as the JSON-RPC `result`.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.urls = []
        self.timeouts = []
        self.delay = 0.0

    def post(self, url, json=None, timeout=None):
        self.urls.append(url)
        self.requests.append(json)
        self.timeouts.append(timeout)
        if self.delay:
            time.sleep(self.delay)
        answer = self.routes[json["method"]]
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, FakeResponse):
            return answer
        return FakeResponse({"jsonrpc": "2.0", "id": json["id"], "result": answer})

    def methods(self):
        return [r["method"] for r in self.requests]


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return SuiClient(TEST_RPC, session=session)
