"""Profile commands -- manage stored connection profiles.

Provides the ``xmcnbi profile`` sub-command group to save, list, show, and
delete named profiles.  A profile stores the connection settings and the
auth mode, identifier and *source* of the secret; the secret itself is
resolved at request time.

Typical workflow::

    xmcnbi profile save lab --host xmc.lab --insecure --oauth my-client -s env:XMC_SECRET
    xmcnbi query -p lab '{ network { devices { ip } } }'
"""

from __future__ import annotations

from typing import Optional

import typer

from xmcnbi.exceptions import NBIError
from xmcnbi.output import error, info, print_record, print_table, success, warning


profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("save")
def profile_save(
    name: str = typer.Argument(help="Profile name."),
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
    """Create or update a profile.

    Flags given here override the values of an existing profile with the
    same name; everything else is kept.
    """
    from xmcnbi.commands.options import build_auth_config, build_client_config
    from xmcnbi.config import load_profile, profile_exists, save_profile
    from xmcnbi.models import Profile

    try:
        existing = load_profile(name) if profile_exists(name) else None
        config = build_client_config(existing, host, port, use_http, insecure, timeout)
        auth = build_auth_config(existing, basic, oauth, secret_source)
        path = save_profile(Profile(name=name, client=config, auth=auth))
    except NBIError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if secret_source is not None and secret_source.startswith("literal:"):
        warning(f"The secret is stored in plain text in {path}; prefer env: or file: sources")
    success(f"Saved profile '{name}' to {path}")


@profile_app.command("list")
def profile_list() -> None:
    """List stored profiles."""
    from xmcnbi.config import list_profiles, load_profile

    names = list_profiles()
    if not names:
        info("No profiles found. Create one with: xmcnbi profile save NAME --host HOST")
        return

    rows: list[list[str]] = []
    for name in names:
        try:
            profile = load_profile(name)
        except NBIError as exc:
            rows.append([name, "(invalid)", str(exc)])
            continue
        mode = profile.auth.mode.value if profile.auth else "none"
        rows.append([name, profile.client.base_url, mode])
    print_table(["Name", "Server", "Auth"], rows, title="Profiles")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Show a profile.  Literal secrets are masked."""
    from xmcnbi.commands.options import mask_source
    from xmcnbi.config import load_profile

    try:
        profile = load_profile(name)
    except NBIError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    client = profile.client
    fields = [
        ("name", profile.name),
        ("server", client.base_url),
        ("timeout", f"{client.timeout}s"),
        ("verify_ssl", str(client.verify_ssl).lower()),
        ("user_agent", client.user_agent),
    ]
    if profile.auth is None:
        fields.append(("auth", "none"))
    else:
        fields += [
            ("auth", profile.auth.mode.value),
            ("identifier", profile.auth.identifier),
            ("secret_source", mask_source(profile.auth.secret_source)),
        ]
    print_record(fields, title=f"Profile {name}")


@profile_app.command("delete")
def profile_delete(name: str = typer.Argument(help="Profile name.")) -> None:
    """Delete a profile."""
    from xmcnbi.config import delete_profile

    try:
        delete_profile(name)
    except NBIError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    success(f"Deleted profile '{name}'")
