"""Profile storage, XDG paths, and credential resolution.

This module handles all persistent configuration for xmcnbi:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.xmcnbi/`` on macOS and Windows.  See :func:`get_config_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`.
* **Profiles** -- One JSON file per server, each deserialised into a
  :class:`~xmcnbi.models.Profile`.  Managed via :func:`load_profile`,
  :func:`save_profile`, :func:`delete_profile`.
* **Precedence resolution** -- :func:`resolve_profile` picks the active
  profile from a CLI flag or the ``XMCNBI_PROFILE`` environment variable
  and applies the ``XMCNBI_HOST`` override.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, interactive prompts, or literal values, and
  :func:`build_credentials` turns a profile's auth section into a
  :class:`~xmcnbi.auth.credentials.CredentialHolder`.

Profiles store where to read a secret from, not the secret itself.  The
exception is a ``literal:VALUE`` source, which lands in the profile file
as plain text; ``xmcnbi profile save`` warns when given one.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from xmcnbi.auth.credentials import CredentialHolder
from xmcnbi.exceptions import ConfigurationError
from xmcnbi.models import AuthConfig, AuthMode, Profile

_APP_NAME = "xmcnbi"

ENV_PROFILE = "XMCNBI_PROFILE"
ENV_HOST = "XMCNBI_HOST"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/xmcnbi/`` (default ``~/.config/xmcnbi/``).
    On macOS/Windows: ``~/.xmcnbi/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/xmcnbi/`` (default ``~/.local/share/xmcnbi/``).
    On macOS/Windows: ``~/.xmcnbi/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    """Return the profiles directory (``<config_dir>/profiles/``), creating it if necessary."""
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
    temp file is removed and the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return all profile names found in the profiles directory, sorted alphabetically."""
    profiles_dir = get_profiles_dir()
    return sorted(p.stem for p in profiles_dir.glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    """Load and validate a profile from disk.

    Args:
        name: Profile name (``<name>.json`` in the profiles directory).

    Raises:
        ConfigurationError: If the profile file does not exist, contains
            invalid JSON, or fails Pydantic validation.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigurationError(f"Profile '{name}' not found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Profile.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: Profile) -> Path:
    """Persist a profile atomically and return the path it was written to."""
    path = _profile_path(profile.name)
    data = profile.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


def delete_profile(name: str) -> None:
    """Delete a profile's JSON file from disk.

    Raises:
        ConfigurationError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigurationError(f"Profile '{name}' not found at {path}")
    path.unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def resolve_profile(cli_profile: Optional[str] = None) -> Optional[Profile]:
    """Resolve the active profile.

    Precedence (high to low):
        1. ``cli_profile`` (the ``--profile`` flag)
        2. ``XMCNBI_PROFILE`` environment variable

    The host stored in the profile can be overridden with ``XMCNBI_HOST``.

    Returns:
        The resolved profile, or ``None`` when no profile was requested.

    Raises:
        ConfigurationError: If the requested profile cannot be loaded.
    """
    name = cli_profile or os.environ.get(ENV_PROFILE) or None
    if name is None:
        return None

    profile = load_profile(name)
    env_host = os.environ.get(ENV_HOST)
    if env_host:
        profile = profile.model_copy(update={"client": profile.client.with_host(env_host)})
    return profile


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)
        - ``"literal:VALUE"`` -- uses ``VALUE`` verbatim

    Raises:
        ConfigurationError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigurationError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter secret: ")

    if source.startswith("literal:"):
        return source[8:]

    # Do not echo the source itself: it may be a mistyped secret.
    raise ConfigurationError("Unknown credential source format (expected env:, file:, prompt or literal:)")


def build_credentials(auth_config: Optional[AuthConfig]) -> CredentialHolder:
    """Create a :class:`CredentialHolder` from a profile's auth section.

    The secret is resolved through :func:`resolve_credential`.  ``None``
    yields a holder without credentials.
    """
    holder = CredentialHolder()
    if auth_config is None:
        return holder

    secret = resolve_credential(auth_config.secret_source)
    if auth_config.mode is AuthMode.BASIC:
        holder.set_basic(auth_config.identifier, secret)
    else:
        holder.set_bearer(auth_config.identifier, secret)
    return holder
