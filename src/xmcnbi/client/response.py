"""Response checks shared by the token and query exchanges.

Both NBI endpoints answer with ``200 OK`` and a JSON body on success.
:func:`check_json_response` enforces that contract and raises
:class:`~xmcnbi.exceptions.ProtocolError` otherwise, and
:func:`parse_token_response` extracts the token fields from a checked
token-endpoint response.
"""

from __future__ import annotations

import httpx

from xmcnbi.exceptions import ProtocolError, ResponseReadError
from xmcnbi.models import JSON_MIME_TYPE


def check_json_response(response: httpx.Response) -> None:
    """Ensure *response* is a ``200`` carrying a JSON content type.

    The content type only has to start with ``application/json`` so that
    parameters such as ``; charset=utf-8`` are accepted.

    Raises:
        ProtocolError: With the observed ``status_code`` and
            ``content_type`` when either does not match.
    """
    content_type = response.headers.get("content-type", "")
    if response.status_code != httpx.codes.OK:
        raise ProtocolError(
            f"got status code {response.status_code} instead of {httpx.codes.OK.value}",
            status_code=response.status_code,
            content_type=content_type,
        )
    if not content_type.startswith(JSON_MIME_TYPE):
        raise ProtocolError(
            f"Content-Type {content_type or '(none)'} returned instead of {JSON_MIME_TYPE}",
            status_code=response.status_code,
            content_type=content_type,
        )


def parse_token_response(response: httpx.Response) -> tuple[str, str]:
    """Return ``(token_type, access_token)`` from a token-endpoint response.

    Missing fields come back as empty strings; decoding the token later
    rejects an empty access token.

    Raises:
        ResponseReadError: If the body is not a JSON object or the fields
            are not strings.
    """
    try:
        data = response.json()
    except ValueError as exc:
        raise ResponseReadError(f"could not read server response: {exc}") from exc
    if not isinstance(data, dict):
        raise ResponseReadError("could not read server response: not a JSON object")

    token_type = data.get("token_type", "")
    access_token = data.get("access_token", "")
    if not isinstance(token_type, str) or not isinstance(access_token, str):
        raise ResponseReadError(
            "could not read server response: token_type and access_token must be strings"
        )
    return token_type, access_token
