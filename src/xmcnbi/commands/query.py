"""Query and token commands.

``xmcnbi query`` submits a GraphQL query to the NBI and prints the JSON
result to stdout.  ``xmcnbi token`` obtains an OAuth token and prints its
decoded claims, which is handy for checking client credentials and the
server clock.

Both commands resolve an optional profile (``--profile`` or
``XMCNBI_PROFILE``) and apply connection flags on top of it::

    xmcnbi query --host xmc.example.com --oauth my-client \\
        --secret-source env:XMC_SECRET '{ network { devices { ip } } }'
    xmcnbi token --profile lab --json
"""

from __future__ import annotations

import sys
from typing import Optional

import typer

from xmcnbi.client import NBIClient
from xmcnbi.exceptions import InvalidUsageError, NBIError
from xmcnbi.output import debug, error, print_query_result, print_record


def _open_client(
    profile_name: Optional[str],
    host: Optional[str],
    port: Optional[int],
    use_http: bool,
    insecure: bool,
    timeout: Optional[int],
    basic: Optional[str],
    oauth: Optional[str],
    secret_source: Optional[str],
) -> NBIClient:
    """Build an :class:`NBIClient` from the active profile and CLI flags."""
    from xmcnbi.commands.options import build_auth_config, build_client_config
    from xmcnbi.config import build_credentials, resolve_profile

    profile = resolve_profile(profile_name)
    config = build_client_config(profile, host, port, use_http, insecure, timeout)
    auth = build_auth_config(profile, basic, oauth, secret_source)
    if auth is None:
        raise InvalidUsageError("No credentials given. Use --basic, --oauth or a profile with auth.")

    client = NBIClient(config, build_credentials(auth))
    debug(f"Using {client}")
    return client


def query_command(
    query: str = typer.Argument(help="GraphQL query text, or '-' to read it from stdin."),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Profile name."),
    host: Optional[str] = typer.Option(None, "--host", help="Server hostname or IP."),
    port: Optional[int] = typer.Option(None, "--port", help="NBI TCP port (default 8443)."),
    use_http: bool = typer.Option(False, "--http", help="Use plain HTTP instead of HTTPS."),
    insecure: bool = typer.Option(False, "--insecure", "-k", help="Skip TLS certificate checks."),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Request timeout in seconds (1-300)."),
    basic: Optional[str] = typer.Option(None, "--basic", help="Username for HTTP Basic auth."),
    oauth: Optional[str] = typer.Option(None, "--oauth", help="Client ID for OAuth."),
    secret_source: Optional[str] = typer.Option(
        None, "--secret-source", "-s",
        help="Secret source: env:VAR, file:/path, prompt, literal:VALUE.",
    ),
) -> None:
    """Submit a GraphQL query and print the JSON result.

    Example::

        xmcnbi query --profile lab '{ network { devices { ip } } }'
        echo '{ network { devices { ip } } }' | xmcnbi query -p lab -
    """
    if query == "-":
        query = sys.stdin.read()

    try:
        with _open_client(
            profile, host, port, use_http, insecure, timeout, basic, oauth, secret_source
        ) as client:
            body = client.submit_query(query)
    except NBIError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    print_query_result(body)


def token_command(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Profile name."),
    host: Optional[str] = typer.Option(None, "--host", help="Server hostname or IP."),
    port: Optional[int] = typer.Option(None, "--port", help="NBI TCP port (default 8443)."),
    use_http: bool = typer.Option(False, "--http", help="Use plain HTTP instead of HTTPS."),
    insecure: bool = typer.Option(False, "--insecure", "-k", help="Skip TLS certificate checks."),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Request timeout in seconds (1-300)."),
    oauth: Optional[str] = typer.Option(None, "--oauth", help="Client ID for OAuth."),
    secret_source: Optional[str] = typer.Option(
        None, "--secret-source", "-s",
        help="Secret source: env:VAR, file:/path, prompt, literal:VALUE.",
    ),
    show_raw: bool = typer.Option(False, "--show-raw", help="Also print the raw token."),
) -> None:
    """Obtain an OAuth token and print its decoded claims.

    Example::

        xmcnbi token --host xmc.example.com --oauth my-client -s env:XMC_SECRET
    """
    try:
        with _open_client(
            profile, host, port, use_http, insecure, timeout, None, oauth, secret_source
        ) as client:
            token = client.acquire_token()
    except NBIError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    claims = token.payload
    fields = [
        ("token_type", token.token_type),
        ("algorithm", token.header.algorithm),
        ("issuer", claims.issuer),
        ("subject", claims.subject),
        ("jwt_id", claims.jwt_id),
        ("roles", ", ".join(claims.roles)),
        ("issued_at", claims.issued_at.isoformat()),
        ("not_before", claims.not_before.isoformat()),
        ("expires_at", claims.expires_at.isoformat()),
        ("long_lived", str(claims.long_lived).lower()),
        ("valid", str(token.is_valid()).lower()),
    ]
    if show_raw:
        fields.append(("raw", token.raw_value))
    print_record(fields, title="OAuth token")
