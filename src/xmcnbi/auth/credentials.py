"""Credential holder -- the active authentication mode and its secret material.

Credentials are modelled as a tagged variant: one frozen Pydantic model per
:class:`~xmcnbi.models.AuthMode`, each carrying only the fields it needs,
combined into the :data:`Credentials` discriminated union.  A
:class:`CredentialHolder` owns exactly one variant at a time and replaces
it wholesale on every ``set_*`` call.

Secrets are stored as :class:`pydantic.SecretStr` so that ``repr``, ``str``
and :meth:`CredentialHolder.describe` never render them unless asked to.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from xmcnbi.models import AuthMode

SECRET_MASK = "***"


class NoAuth(BaseModel):
    """No authentication configured. Queries cannot be sent."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["none"] = "none"

    def describe(self, reveal_secret: bool = False) -> str:
        return f"{self.mode}{{}}"


class _SecretCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str
    secret: SecretStr

    def describe(self, reveal_secret: bool = False) -> str:
        secret = self.secret.get_secret_value() if reveal_secret else SECRET_MASK
        return f"{self.mode}{{{self.identifier}:{secret}}}"  # type: ignore[attr-defined]


class BasicAuth(_SecretCredentials):
    """HTTP Basic credentials: a username and password."""

    mode: Literal["basic"] = "basic"


class BearerAuth(_SecretCredentials):
    """OAuth2 client credentials exchanged for a bearer token."""

    mode: Literal["oauth"] = "oauth"


Credentials = Annotated[
    Union[NoAuth, BasicAuth, BearerAuth], Field(discriminator="mode")
]


class CredentialHolder:
    """Tracks which authentication mode is active and its credentials.

    Starts out as :class:`NoAuth`.  Values passed to :meth:`set_basic` and
    :meth:`set_bearer` are stored verbatim.

    Example::

        holder = CredentialHolder()
        holder.set_bearer("client-id", "s3cret")
        assert holder.describe() == "oauth{client-id:***}"
    """

    def __init__(self, credentials: Credentials | None = None) -> None:
        self._credentials: Credentials = credentials or NoAuth()

    @property
    def credentials(self) -> Credentials:
        """The current credential variant."""
        return self._credentials

    @property
    def mode(self) -> AuthMode:
        return AuthMode(self._credentials.mode)

    def set_basic(self, identifier: str, secret: str) -> None:
        """Switch to HTTP Basic auth with *identifier* and *secret*."""
        self._credentials = BasicAuth(identifier=identifier, secret=SecretStr(secret))

    def set_bearer(self, identifier: str, secret: str) -> None:
        """Switch to OAuth client credentials with *identifier* and *secret*."""
        self._credentials = BearerAuth(identifier=identifier, secret=SecretStr(secret))

    def clear(self) -> None:
        """Drop all credentials."""
        self._credentials = NoAuth()

    def describe(self, reveal_secret: bool = False) -> str:
        """Return ``"<mode>{<identifier>:<secret>}"``.

        Args:
            reveal_secret: Render the real secret instead of ``***``.
        """
        return self._credentials.describe(reveal_secret)

    def __str__(self) -> str:
        return self.describe()

    def __repr__(self) -> str:
        return f"CredentialHolder({self.describe()!r})"
