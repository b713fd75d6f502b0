"""Shared test fixtures for xmcnbi.

Provides reusable fixtures for building bearer tokens, fake NBI servers
backed by :class:`httpx.MockTransport`, isolated config environments, and
output state.  These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import base64
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from xmcnbi.models import ClientConfig
from xmcnbi.output import OutputFormat, OutputManager, reset_output, set_output


# {"alg": "none"}, pretty-printed as the server does.
TEST_TOKEN_HEADER = "ewogICJhbGciOiAibm9uZSIKfQ"
# {"iss": "foobar.example.com", "sub": "XMC", "jti": "foo123bar",
#  "roles": ["foo", "bar"], "iat": 1579535000, "nbf": 1579535100,
#  "exp": 1579535200, "longLived": false}
TEST_TOKEN_PAYLOAD = (
    "ewogICJpc3MiOiAiZm9vYmFyLmV4YW1wbGUuY29tIiwKICAic3ViIjogIlhNQyIsCiAgImp0aSI6ICJmb28x"
    "MjNiYXIiLAogICJyb2xlcyI6IFsKICAgICJmb28iLAogICAgImJhciIKICBdLAogICJpYXQiOiAxNTc5NTM1"
    "MDAwLAogICJuYmYiOiAxNTc5NTM1MTAwLAogICJleHAiOiAxNTc5NTM1MjAwLAogICJsb25nTGl2ZWQiOiBm"
    "YWxzZQp9"
)
TEST_TOKEN_SIGNATURE = "nonefoobarnone"
TEST_TOKEN = f"{TEST_TOKEN_HEADER}.{TEST_TOKEN_PAYLOAD}.{TEST_TOKEN_SIGNATURE}"

# A fixed "now" for validity checks: 2024-01-01T00:00:00Z.
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Token fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation instant for validity checks."""
    return NOW


@pytest.fixture
def sample_raw_token() -> str:
    """The server's sample token: ``alg`` none, ``jti`` foo123bar, expired in 2020."""
    return TEST_TOKEN


@pytest.fixture
def make_raw_token() -> Callable[..., str]:
    """Factory building compact tokens from claim dicts.

    Usage::

        raw = make_raw_token(exp=1700000000, jti="abc")
    """

    def _make(header: dict[str, Any] | None = None, signature: bytes = b"sig", **claims: Any) -> str:
        header = header if header is not None else {"alg": "none"}
        return ".".join(
            [
                _b64url(json.dumps(header).encode()),
                _b64url(json.dumps(claims).encode()),
                _b64url(signature),
            ]
        )

    return _make


@pytest.fixture
def valid_raw_token(make_raw_token: Callable[..., str]) -> str:
    """A token that expires one hour after :data:`NOW`."""
    return make_raw_token(
        iss="xmc.example.com", sub="client", jti="valid-1",
        exp=int(NOW.timestamp()) + 3600, iat=int(NOW.timestamp()),
    )


# ---------------------------------------------------------------------------
# Fake NBI server
# ---------------------------------------------------------------------------


class FakeNBIServer:
    """Records requests and answers token and query endpoints.

    Tokens handed out are taken from ``tokens`` in order (the last one is
    repeated).  Each endpoint's status code and content type can be
    overridden per test.
    """

    def __init__(self, tokens: list[str]) -> None:
        self.tokens = list(tokens)
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.token_content_type = "application/json"
        self.token_body: bytes | None = None
        self.query_status = 200
        self.query_content_type = "application/json; charset=utf-8"
        self.query_body = b'{"data": {"network": {"devices": []}}}'

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/oauth/token/access-token"]

    @property
    def query_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/nbi/graphql"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/oauth/token/access-token":
            if self.token_body is not None:
                body = self.token_body
            else:
                raw = self.tokens.pop(0) if len(self.tokens) > 1 else self.tokens[0]
                body = json.dumps({"token_type": "Bearer", "access_token": raw}).encode()
            return httpx.Response(
                self.token_status,
                headers={"content-type": self.token_content_type},
                content=body,
            )
        if request.url.path == "/nbi/graphql":
            return httpx.Response(
                self.query_status,
                headers={"content-type": self.query_content_type},
                content=self.query_body,
            )
        return httpx.Response(404, headers={"content-type": "text/plain"}, content=b"not found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def make_fake_server() -> Callable[[list[str]], FakeNBIServer]:
    """Factory for fake NBI servers handing out the given tokens in order."""
    return FakeNBIServer


@pytest.fixture
def fake_server(valid_raw_token: str) -> FakeNBIServer:
    """A fake NBI server handing out :func:`valid_raw_token`."""
    return FakeNBIServer([valid_raw_token])


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(host="xmc.example.com")


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    and clears all XMCNBI_* environment variables.
    """
    monkeypatch.setattr("xmcnbi.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["XMCNBI_PROFILE", "XMCNBI_HOST"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()
