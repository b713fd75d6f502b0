"""Connection option handling shared by the ``query``, ``token`` and ``profile`` commands.

Commands accept the same set of connection flags (``--host``, ``--port``,
``--http``, ``--insecure``, ``--timeout``, ``--basic``, ``--oauth``,
``--secret-source``).  The helpers here merge those flags on top of an
optional stored profile, flags taking precedence.
"""

from __future__ import annotations

from typing import Optional

from xmcnbi.exceptions import InvalidUsageError
from xmcnbi.models import AuthConfig, AuthMode, ClientConfig, Profile


def build_client_config(
    profile: Optional[Profile],
    host: Optional[str] = None,
    port: Optional[int] = None,
    use_http: bool = False,
    insecure: bool = False,
    timeout: Optional[int] = None,
) -> ClientConfig:
    """Return the effective :class:`ClientConfig` for a command invocation.

    Raises:
        InvalidUsageError: If neither a profile nor ``--host`` was given.
        ConfigurationError: If a flag value is out of range.
    """
    if profile is not None:
        config = profile.client
        if host:
            config = config.with_host(host)
    elif host:
        config = ClientConfig.for_host(host)
    else:
        raise InvalidUsageError("No server given. Use --host or --profile.")

    if port is not None:
        config = config.with_port(port)
    if timeout is not None:
        config = config.with_timeout(timeout)
    if use_http:
        config = config.use_http()
    if insecure:
        config = config.use_insecure_https()
    return config


def build_auth_config(
    profile: Optional[Profile],
    basic: Optional[str] = None,
    oauth: Optional[str] = None,
    secret_source: Optional[str] = None,
) -> Optional[AuthConfig]:
    """Return the effective :class:`AuthConfig` for a command invocation.

    ``--basic USER`` and ``--oauth CLIENT_ID`` replace the profile's auth
    section entirely.  ``--secret-source`` alone only swaps the source of a
    profile's secret.

    Raises:
        InvalidUsageError: If both ``--basic`` and ``--oauth`` are given, or
            ``--secret-source`` is given without anything to apply it to.
    """
    if basic and oauth:
        raise InvalidUsageError("--basic and --oauth are mutually exclusive.")

    if basic or oauth:
        mode = AuthMode.BASIC if basic else AuthMode.OAUTH
        return AuthConfig(
            mode=mode,
            identifier=basic or oauth or "",
            secret_source=secret_source or "prompt",
        )

    auth = profile.auth if profile is not None else None
    if secret_source:
        if auth is None:
            raise InvalidUsageError("--secret-source needs --basic, --oauth or a profile with auth.")
        auth = auth.model_copy(update={"secret_source": secret_source})
    return auth


def mask_source(source: str) -> str:
    """Hide literal secrets in a credential source descriptor."""
    if source.startswith("literal:"):
        return "literal:***"
    return source
