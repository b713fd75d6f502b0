"""Authentication primitives for xmcnbi.

- :class:`CredentialHolder` -- which auth mode is active and its secret
  material, modelled as the :data:`Credentials` tagged variant
  (:class:`NoAuth`, :class:`BasicAuth`, :class:`BearerAuth`).
- :class:`BearerToken` -- an OAuth access token in compact
  ``header.payload.signature`` form together with its decoded claims.

Typical usage::

    from xmcnbi.auth import BearerToken, CredentialHolder

    holder = CredentialHolder()
    holder.set_bearer("client-id", "secret")
    token = BearerToken.decode(raw_token, token_type="Bearer")
"""

from xmcnbi.auth.credentials import (
    BasicAuth,
    BearerAuth,
    CredentialHolder,
    Credentials,
    NoAuth,
)
from xmcnbi.auth.token import BearerToken, TokenHeader, TokenPayload

__all__ = [
    "BasicAuth",
    "BearerAuth",
    "BearerToken",
    "CredentialHolder",
    "Credentials",
    "NoAuth",
    "TokenHeader",
    "TokenPayload",
]
