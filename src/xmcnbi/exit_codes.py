"""Numeric process exit codes returned by the ``xmcnbi`` CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~xmcnbi.exceptions.NBIError` subclass.
Shell scripts can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ xmcnbi query '{ network { devices { ip } } }'
    $ echo $?
    5   # EXIT_PROTOCOL_ERROR -- the server answered with a non-200 status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_CONFIGURATION_ERROR = 3
"""No usable authentication mode or an invalid client configuration."""

EXIT_PROTOCOL_ERROR = 5
"""The server answered with an unexpected status code or content type."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_TOKEN_ERROR = 7
"""The bearer token returned by the server could not be decoded."""

EXIT_RESPONSE_READ_ERROR = 8
"""The response body could not be read or parsed."""
