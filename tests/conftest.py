"""Shared helpers: build real Requests without a server, record renders."""
from urllib.parse import urlencode

import pytest

from formstep.app import Request, Response
from formstep.session import COOKIE_NAME, _pack


def make_request(method="GET", path="/index", body=None, root_path="", session=None, params=None):
    headers = []
    raw = b""
    if body is not None:
        raw = urlencode(body, doseq=True).encode()
        headers.append((b"content-type", b"application/x-www-form-urlencoded"))
    if session is not None:
        headers.append((b"cookie", f"{COOKIE_NAME}={_pack(session)}".encode()))
    scope = {
        "type": "http",
        "method": method,
        "path": root_path + path,
        "root_path": root_path,
        "query_string": b"",
        "headers": headers,
    }
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": raw, "more_body": False}

    return Request(scope, receive, params or {})


class FakeRenderer:
    def __init__(self):
        self.calls = []

    def render(self, req, template, payload):
        self.calls.append((template, payload))
        return Response.html(f"rendered {template}")

    @property
    def payload(self):
        return self.calls[-1][1]


@pytest.fixture
def renderer():
    return FakeRenderer()
