"""Synchronous NBI client with Basic / OAuth authentication.

This module provides :class:`NBIClient`, the blocking client that talks to
the server's Northbound Interface.  It wraps :class:`httpx.Client` and
layers on:

- **Credential handling** -- a :class:`~xmcnbi.auth.credentials.CredentialHolder`
  selects HTTP Basic or OAuth client credentials.
- **Token lifecycle** -- in OAuth mode the client holds one
  :class:`~xmcnbi.auth.token.BearerToken`.  Before each query the token's
  expiry is checked locally; an absent or expired token triggers exactly one
  acquisition before the query is sent.
- **Error mapping** -- transport failures, unexpected status codes or
  content types, and undecodable tokens are raised as the typed errors in
  :mod:`xmcnbi.exceptions`.  Nothing is retried apart from the single
  implicit token refresh.

The client is safe to share between threads: the check-then-refresh
sequence, token acquisition and credential replacement run under one lock,
so at most one refresh is in flight.  Query exchanges run outside the lock.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Optional

import httpx

from xmcnbi.auth.credentials import BasicAuth, BearerAuth, CredentialHolder
from xmcnbi.auth.token import BearerToken
from xmcnbi.client.response import check_json_response, parse_token_response
from xmcnbi.exceptions import (
    ConfigurationError,
    DecodeError,
    ResponseReadError,
    TokenError,
    TransportError,
)
from xmcnbi.models import JSON_MIME_TYPE, AuthMode, ClientConfig
from xmcnbi.output import get_output

if TYPE_CHECKING:
    from xmcnbi.models import Profile

FORM_MIME_TYPE = "application/x-www-form-urlencoded"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NBIClient:
    """Authenticated client for the NBI GraphQL endpoint.

    Args:
        config: Immutable connection settings.
        credentials: Initial credentials.  Defaults to a holder without
            credentials; call :meth:`use_basic_auth` or :meth:`use_oauth`
            before submitting queries.
        transport: Optional :mod:`httpx` transport (e.g.
            :class:`httpx.MockTransport` in tests).
        clock: Callable returning the current timezone-aware time, used
            for token validity checks.

    Example::

        config = ClientConfig(host="xmc.example.com")
        with NBIClient(config) as client:
            client.use_oauth("client-id", "secret")
            body = client.submit_query("query { network { devices { ip } } }")
    """

    def __init__(
        self,
        config: ClientConfig,
        credentials: Optional[CredentialHolder] = None,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._credentials = credentials or CredentialHolder()
        self._transport = transport
        self._clock = clock
        self._token = BearerToken()
        self._lock = threading.Lock()
        self._client_lock = threading.Lock()
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> NBIClient:
        """Build a client from a stored profile, resolving its secret.

        Raises:
            ConfigurationError: If the profile's secret source cannot be
                resolved.
        """
        from xmcnbi.config import build_credentials

        return cls(profile.client, build_credentials(profile.auth), transport=transport)

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> NBIClient:
        self._http()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection pool.  The client can be reused."""
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def auth_mode(self) -> AuthMode:
        return self._credentials.mode

    @property
    def credentials(self) -> CredentialHolder:
        return self._credentials

    @property
    def access_token(self) -> BearerToken:
        """The currently held token (empty until the first acquisition)."""
        return self._token

    def __str__(self) -> str:
        c = self._config
        return f"{c.scheme.value}://{self._credentials}@{c.host}:{c.port}/"

    def __repr__(self) -> str:
        return f"NBIClient({self})"

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    def use_basic_auth(self, username: str, password: str) -> None:
        """Authenticate queries with HTTP Basic auth.  Discards any held token."""
        with self._lock:
            self._credentials.set_basic(username, password)
            self._token = BearerToken()

    def use_oauth(self, client_id: str, secret: str) -> None:
        """Authenticate queries with OAuth client credentials.  Discards any held token."""
        with self._lock:
            self._credentials.set_bearer(client_id, secret)
            self._token = BearerToken()

    # ------------------------------------------------------------------ #
    # Token lifecycle
    # ------------------------------------------------------------------ #

    def acquire_token(self) -> BearerToken:
        """Obtain a fresh OAuth token from the server and hold on to it.

        Returns:
            The newly held :class:`~xmcnbi.auth.token.BearerToken`.

        Raises:
            ConfigurationError: If OAuth is not the active auth mode.
            TransportError: If the server cannot be reached.
            ProtocolError: If the server does not answer ``200`` with JSON.
            ResponseReadError: If the response body cannot be read or is
                not a JSON object.
            DecodeError: If the returned token cannot be decoded.
        """
        with self._lock:
            return self._acquire_token()

    def _acquire_token(self) -> BearerToken:
        credentials = self._credentials.credentials
        if not isinstance(credentials, BearerAuth):
            raise ConfigurationError("auth type not set to OAuth")

        headers = self._base_headers()
        headers["Accept"] = JSON_MIME_TYPE
        headers["Content-Type"] = FORM_MIME_TYPE

        response = self._exchange(
            "POST",
            self._config.token_url,
            headers=headers,
            auth=httpx.BasicAuth(
                credentials.identifier, credentials.secret.get_secret_value()
            ),
        )
        check_json_response(response)
        token_type, raw_token = parse_token_response(response)

        try:
            token = BearerToken.decode(raw_token, token_type=token_type)
        except TokenError as exc:
            raise DecodeError(f"could not decode token: {exc}") from exc

        self._token = token
        get_output().debug(
            f"Acquired {token.token_type or 'OAuth'} token, expires {token.payload.expires_at.isoformat()}"
        )
        return token

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def submit_query(self, query: str) -> str:
        """Send *query* to the NBI and return the raw JSON response body.

        In OAuth mode an absent or expired token is refreshed once before
        the query is sent; if that fails the query is not sent.

        Args:
            query: GraphQL query text, sent as ``{"query": query}``.

        Returns:
            The response body, uninterpreted.

        Raises:
            ConfigurationError: If no authentication method is defined.
            TransportError: If the server cannot be reached.
            ProtocolError: If the server does not answer ``200`` with JSON.
            ResponseReadError: If the response body cannot be read.
            DecodeError: If a token refresh returned an undecodable token.
        """
        headers = self._base_headers()
        headers["Content-Type"] = JSON_MIME_TYPE
        headers["Accept"] = JSON_MIME_TYPE
        auth: Optional[httpx.Auth] = None

        with self._lock:
            credentials = self._credentials.credentials
            if isinstance(credentials, BearerAuth):
                if not self._token.is_valid(self._clock()):
                    get_output().debug("No valid OAuth token held, requesting a new one")
                    self._acquire_token()
                headers["Authorization"] = f"Bearer {self._token.raw_value}"
            elif isinstance(credentials, BasicAuth):
                auth = httpx.BasicAuth(
                    credentials.identifier, credentials.secret.get_secret_value()
                )
            else:
                raise ConfigurationError("no authentication method defined")

        response = self._exchange(
            "POST",
            self._config.api_url,
            headers=headers,
            json={"query": query},
            auth=auth,
        )
        check_json_response(response)
        return response.text

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _http(self) -> httpx.Client:
        with self._client_lock:
            if self._client is None:
                self._client = httpx.Client(
                    timeout=self._config.timeout,
                    verify=self._config.verify_ssl,
                    transport=self._transport,
                )
            return self._client

    def _base_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._config.user_agent,
            "Cache-Control": "no-cache",
        }

    def _exchange(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Perform one HTTP exchange, mapping httpx failures to xmcnbi errors.

        The body is read separately from the send so that a failure while
        reading it surfaces as :class:`ResponseReadError` rather than
        :class:`TransportError`.
        """
        output = get_output()
        output.debug(f"{method} {url}")
        auth = kwargs.pop("auth", None)
        client = self._http()
        try:
            request = client.build_request(method, url, **kwargs)
            response = client.send(request, auth=auth, stream=True)
        except httpx.HTTPError as exc:
            raise TransportError(
                f"could not connect to {self._config.host}:{self._config.port}: {exc}"
            ) from exc
        try:
            response.read()
        except httpx.HTTPError as exc:
            raise ResponseReadError(f"could not read server response: {exc}") from exc
        finally:
            response.close()
        output.debug(
            f"{method} {url} -> {response.status_code} "
            f"({response.headers.get('content-type', 'no content type')})"
        )
        return response
