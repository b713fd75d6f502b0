"""Exception hierarchy for xmcnbi.

All exceptions inherit from :class:`NBIError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`xmcnbi.exit_codes`.
Library code raises these and never exits the process; the CLI entry point
in :func:`xmcnbi.app.main` catches ``NBIError`` and exits with the
appropriate code.

Subclass hierarchy::

    NBIError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- ConfigurationError    (exit 3)
    +-- ProtocolError         (exit 5)
    +-- TransportError        (exit 6)
    +-- TokenError            (exit 7)
    |   +-- MalformedTokenError
    |   +-- EncodingError
    |   +-- StructureError
    +-- DecodeError           (exit 7)
    +-- ResponseReadError     (exit 8)
"""

from __future__ import annotations

from typing import Optional

from xmcnbi.exit_codes import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROTOCOL_ERROR,
    EXIT_RESPONSE_READ_ERROR,
    EXIT_TOKEN_ERROR,
)


class NBIError(Exception):
    """Base exception for all xmcnbi errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`xmcnbi.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(NBIError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigurationError(NBIError):
    """Raised when the client is not configured for the requested operation.

    Covers a missing or wrong auth mode, out-of-range configuration values,
    unresolvable credential sources, and unreadable profiles.
    """

    exit_code = EXIT_CONFIGURATION_ERROR


class TransportError(NBIError):
    """Raised when the HTTP exchange could not be established or completed."""

    exit_code = EXIT_CONNECTION_ERROR


class ProtocolError(NBIError):
    """Raised when the server answers with an unexpected status or content type.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status code observed.
        content_type: The ``Content-Type`` header observed (may be empty).
    """

    exit_code = EXIT_PROTOCOL_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        content_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.content_type = content_type


class ResponseReadError(NBIError):
    """Raised when a response body cannot be read or parsed."""

    exit_code = EXIT_RESPONSE_READ_ERROR


class TokenError(NBIError):
    """Base class for bearer tokens that do not conform to the compact format."""

    exit_code = EXIT_TOKEN_ERROR


class MalformedTokenError(TokenError):
    """Raised when a token does not split into exactly three segments."""


class EncodingError(TokenError):
    """Raised when a token segment is not valid unpadded base64url."""


class StructureError(TokenError):
    """Raised when the header or payload segment is not a valid JSON object."""


class DecodeError(NBIError):
    """Raised when a token received from the token endpoint cannot be decoded.

    The underlying :class:`TokenError` is available as ``__cause__``.
    """

    exit_code = EXIT_TOKEN_ERROR
