"""Canonical Pydantic models shared across all xmcnbi modules.

This is the single source of truth for configuration shapes in the project:

**Connection settings** -- :class:`AccessScheme` and :class:`ClientConfig`,
    the immutable value an :class:`~xmcnbi.client.NBIClient` is built from.

**Profile models** -- serialised as JSON in the user's config directory:
    :class:`AuthMode`, :class:`AuthConfig` and :class:`Profile`.

All models use Pydantic v2. :class:`ClientConfig` is frozen; its "setters"
return a new, validated instance instead of mutating the existing one.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from xmcnbi.exceptions import ConfigurationError

HTTP_MIN_PORT = 1
HTTP_MAX_PORT = 65535
HTTP_MIN_TIMEOUT = 1
HTTP_MAX_TIMEOUT = 300

DEFAULT_PORT = 8443
DEFAULT_TIMEOUT = 5

JSON_MIME_TYPE = "application/json"


def _default_user_agent() -> str:
    from xmcnbi import __version__

    return f"xmcnbi/{__version__}"


def _validation_message(exc: ValidationError) -> str:
    """Return the message of the first validator failure in *exc*."""
    err = exc.errors()[0]
    ctx_error = err.get("ctx", {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    field = ".".join(str(p) for p in err.get("loc", ()))
    return f"{field}: {err['msg']}" if field else err["msg"]


# --- Connection settings ---


class AccessScheme(str, enum.Enum):
    """URL scheme used to reach the server."""

    HTTP = "http"
    HTTPS = "https"


class ClientConfig(BaseModel):
    """Immutable connection settings for an :class:`~xmcnbi.client.NBIClient`.

    Defaults to HTTPS on port 8443 with strict certificate checking and a
    five second timeout.

    ``timeout`` is handed to :class:`httpx.Timeout`, which bounds each phase
    of an exchange (connect, write, read, pool acquisition) separately.
    httpx has no overall deadline, so a request that keeps making progress
    can take longer than ``timeout`` seconds in total.

    Every ``use_*`` / ``with_*`` method returns a new validated instance and
    raises :class:`~xmcnbi.exceptions.ConfigurationError` when the new
    value is out of range.

    Example::

        config = ClientConfig(host="xmc.example.com").with_port(8080).use_http()
        assert config.base_url == "http://xmc.example.com:8080"
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(description="IP address or hostname of the server")
    scheme: AccessScheme = Field(default=AccessScheme.HTTPS)
    port: int = Field(default=DEFAULT_PORT, description="TCP port of the NBI")
    timeout: int = Field(
        default=DEFAULT_TIMEOUT, description="Timeout in seconds for each phase of a request"
    )
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    user_agent: str = Field(default_factory=_default_user_agent)

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("host must not be empty")
        return value

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not HTTP_MIN_PORT <= value <= HTTP_MAX_PORT:
            raise ValueError(
                f"port out of range ({HTTP_MIN_PORT} - {HTTP_MAX_PORT})"
            )
        return value

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: int) -> int:
        if not HTTP_MIN_TIMEOUT <= value <= HTTP_MAX_TIMEOUT:
            raise ValueError(
                f"timeout out of range ({HTTP_MIN_TIMEOUT} - {HTTP_MAX_TIMEOUT})"
            )
        return value

    @classmethod
    def for_host(cls, host: str) -> ClientConfig:
        """Return the default configuration for *host*.

        Raises:
            ConfigurationError: If *host* is empty.
        """
        try:
            return cls(host=host)
        except ValidationError as exc:
            raise ConfigurationError(_validation_message(exc)) from exc

    # ------------------------------------------------------------------ #
    # Setters returning new values
    # ------------------------------------------------------------------ #

    def _replace(self, **changes: Any) -> ClientConfig:
        data = self.model_dump()
        data.update(changes)
        try:
            return type(self).model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(_validation_message(exc)) from exc

    def use_http(self) -> ClientConfig:
        """Return a copy that talks plain HTTP."""
        return self._replace(scheme=AccessScheme.HTTP)

    def use_https(self) -> ClientConfig:
        """Return a copy that talks HTTPS."""
        return self._replace(scheme=AccessScheme.HTTPS)

    def with_port(self, port: int) -> ClientConfig:
        """Return a copy using *port*.

        Raises:
            ConfigurationError: If *port* is outside ``1 - 65535``.
        """
        return self._replace(port=port)

    def with_timeout(self, seconds: int) -> ClientConfig:
        """Return a copy using a timeout of *seconds*.

        Raises:
            ConfigurationError: If *seconds* is outside ``1 - 300``.
        """
        return self._replace(timeout=seconds)

    def use_secure_https(self) -> ClientConfig:
        """Return a copy that enforces strict certificate checking."""
        return self._replace(verify_ssl=True)

    def use_insecure_https(self) -> ClientConfig:
        """Return a copy that skips certificate checking."""
        return self._replace(verify_ssl=False)

    def with_user_agent(self, user_agent: str) -> ClientConfig:
        """Return a copy sending *user_agent* as the ``User-Agent`` header."""
        return self._replace(user_agent=user_agent)

    def with_host(self, host: str) -> ClientConfig:
        """Return a copy pointing at *host*."""
        return self._replace(host=host)

    # ------------------------------------------------------------------ #
    # Derived URLs
    # ------------------------------------------------------------------ #

    @property
    def base_url(self) -> str:
        """``{scheme}://{host}:{port}`` without a trailing slash."""
        return f"{self.scheme.value}://{self.host}:{self.port}"

    @property
    def token_url(self) -> str:
        """URL used to obtain an OAuth token."""
        return f"{self.base_url}/oauth/token/access-token?grant_type=client_credentials"

    @property
    def api_url(self) -> str:
        """URL queries are sent to."""
        return f"{self.base_url}/nbi/graphql"


# --- Profiles ---


class AuthMode(str, enum.Enum):
    """Authentication mode of a credential holder.

    The values are the names used when rendering credentials and in
    profile files.
    """

    NONE = "none"
    BASIC = "basic"
    OAUTH = "oauth"


class AuthConfig(BaseModel):
    """Authentication section of a :class:`Profile`.

    The secret itself is never stored in the profile; ``secret_source``
    names where to read it from (see
    :func:`~xmcnbi.config.resolve_credential`).

    Example::

        AuthConfig(mode="oauth", identifier="my-client", secret_source="env:XMC_SECRET")
    """

    mode: AuthMode
    identifier: str = Field(description="Username (basic) or client ID (oauth)")
    secret_source: str = Field(
        default="prompt",
        description="Secret source: env:VAR, file:/path, prompt, literal:VALUE",
    )

    @field_validator("mode")
    @classmethod
    def _check_mode(cls, value: AuthMode) -> AuthMode:
        if value is AuthMode.NONE:
            raise ValueError("auth mode must be 'basic' or 'oauth'")
        return value


class Profile(BaseModel):
    """Named connection profile stored as JSON under the ``profiles/`` directory.

    See Also:
        :func:`~xmcnbi.config.load_profile`: Deserialise a profile by name.
        :func:`~xmcnbi.config.save_profile`: Persist a profile to disk.
    """

    name: str
    client: ClientConfig
    auth: Optional[AuthConfig] = None
