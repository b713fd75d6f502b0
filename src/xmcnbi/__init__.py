"""xmcnbi -- Client for the Northbound Interface of a network management server.

This package authenticates against the server's NBI (HTTP Basic or OAuth2
client credentials) and submits GraphQL queries, returning the raw JSON
result to the caller.

Typical usage::

    from xmcnbi import ClientConfig, NBIClient

    config = ClientConfig(host="xmc.example.com").use_insecure_https()
    with NBIClient(config) as client:
        client.use_oauth("my-client-id", "my-secret")
        body = client.submit_query("query { network { devices { ip } } }")

Modules:
    app: Typer application and CLI entry point.
    client: The authenticated HTTP client.
    auth: Credential holder and bearer token decoding.
    models: Pydantic models for client configuration and profiles.
    config: XDG-aware profile storage and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes used by the CLI.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.5.0"

from xmcnbi.client import NBIClient  # noqa: E402
from xmcnbi.models import AccessScheme, ClientConfig  # noqa: E402

__all__ = ["AccessScheme", "ClientConfig", "NBIClient", "__version__"]
