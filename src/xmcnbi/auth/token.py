"""Bearer token model and compact-format decoder.

The server issues OAuth access tokens in the compact three-segment form
``<header>.<payload>.<signature>``, each segment base64url-encoded without
padding.  :meth:`BearerToken.decode` splits and decodes the segments into
:class:`TokenHeader` and :class:`TokenPayload` models and keeps the raw
signature bytes.

The signature is **not** verified: the client trusts the TLS channel it
received the token over.  The decoded payload is only used to find out
locally when the token expires so that a refresh happens before the
server would reject it.

Tokens are frozen; a refresh produces a new :class:`BearerToken` rather
than mutating the held one.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from xmcnbi.exceptions import EncodingError, MalformedTokenError, StructureError

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)
_B64URL_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc) if seconds else _EPOCH


def b64url_decode(segment: str) -> bytes:
    """Decode an unpadded base64url *segment*.

    Raises:
        EncodingError: If the segment carries padding, contains characters
            outside the URL-safe alphabet, or has an impossible length.
    """
    if "=" in segment:
        raise EncodingError("token segment must not be padded")
    if not _B64URL_ALPHABET.fullmatch(segment):
        raise EncodingError("token segment contains non-base64url characters")
    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError(f"token segment is not valid base64url: {exc}") from exc


def b64url_encode(data: bytes) -> str:
    """Encode *data* as unpadded base64url."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class TokenHeader(BaseModel):
    """Decoded header segment of a bearer token."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    algorithm: str = Field(default="", alias="alg")


class TokenPayload(BaseModel):
    """Decoded payload segment of a bearer token.

    Timestamp claims are kept as raw epoch seconds (``*_unix``) and exposed
    as timezone-aware UTC datetimes.  Absent, ``null`` or zero timestamps
    map to the Unix epoch.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    issuer: str = Field(default="", alias="iss")
    subject: str = Field(default="", alias="sub")
    jwt_id: str = Field(default="", alias="jti")
    roles: list[str] = Field(default_factory=list)
    issued_at_unix: int = Field(default=0, alias="iat")
    not_before_unix: int = Field(default=0, alias="nbf")
    expires_at_unix: int = Field(default=0, alias="exp")
    long_lived: bool = Field(default=False, alias="longLived")

    @field_validator(
        "issuer", "subject", "jwt_id", "issued_at_unix", "not_before_unix",
        "expires_at_unix", "long_lived", "roles", mode="before",
    )
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            field = cls.model_fields[info.field_name]
            return field.get_default(call_default_factory=True)
        return value

    @field_validator("issued_at_unix", "not_before_unix", "expires_at_unix")
    @classmethod
    def _check_timestamp(cls, value: int) -> int:
        try:
            _from_epoch(value)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValueError(f"timestamp {value} is out of range") from exc
        return value

    @property
    def issued_at(self) -> datetime:
        return _from_epoch(self.issued_at_unix)

    @property
    def not_before(self) -> datetime:
        return _from_epoch(self.not_before_unix)

    @property
    def expires_at(self) -> datetime:
        return _from_epoch(self.expires_at_unix)


def _parse_segment(data: bytes, name: str) -> dict[str, Any]:
    try:
        parsed = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise StructureError(f"token {name} is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise StructureError(f"token {name} is not a JSON object")
    return parsed


class BearerToken(BaseModel):
    """An OAuth access token as returned by the token endpoint, plus its decoded parts.

    An empty token (the default) has no raw value and is never valid.
    Use :meth:`decode` to build a populated token.

    Example::

        token = BearerToken.decode(raw, token_type="Bearer")
        if token.is_valid():
            headers["Authorization"] = f"Bearer {token.raw_value}"
    """

    model_config = ConfigDict(frozen=True)

    token_type: str = ""
    raw_value: str = Field(default="", repr=False)
    header: TokenHeader = Field(default_factory=TokenHeader)
    payload: TokenPayload = Field(default_factory=TokenPayload)
    signature: bytes = Field(default=b"", repr=False)

    @classmethod
    def decode(cls, raw_value: str, token_type: str = "") -> BearerToken:
        """Decode a compact ``header.payload.signature`` token.

        Args:
            raw_value: The compact token string.
            token_type: The token type advertised by the server.

        Returns:
            A new, fully populated :class:`BearerToken`.

        Raises:
            MalformedTokenError: If *raw_value* does not have exactly three
                dot-separated segments.
            EncodingError: If a segment is not unpadded base64url.
            StructureError: If the header or payload is not a JSON object
                or carries ill-typed claims.
        """
        segments = raw_value.split(".")
        if len(segments) != 3:
            raise MalformedTokenError(
                f"token has {len(segments)} segment(s) instead of 3"
            )
        header_data, payload_data, signature = (b64url_decode(s) for s in segments)

        try:
            header = TokenHeader.model_validate(_parse_segment(header_data, "header"))
            payload = TokenPayload.model_validate(_parse_segment(payload_data, "payload"))
        except ValidationError as exc:
            raise StructureError(f"token claims are invalid: {exc}") from exc

        return cls(
            token_type=token_type,
            raw_value=raw_value,
            header=header,
            payload=payload,
            signature=signature,
        )

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Return whether the token can still be presented to the server.

        Purely local and time based; never triggers a refresh.  A token
        without an expiry claim counts as expired.

        Args:
            now: Evaluation instant.  A naive value is taken to be UTC.
                Defaults to the current UTC time.
        """
        if not self.raw_value:
            return False
        if now is None:
            now = _utcnow()
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return self.payload.expires_at > now

    def __str__(self) -> str:
        return self.raw_value
