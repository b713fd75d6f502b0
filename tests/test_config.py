"""Tests for xmcnbi.config -- XDG paths, atomic writes, profiles, credential sources."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from xmcnbi.auth.credentials import BasicAuth, BearerAuth, NoAuth
from xmcnbi.config import (
    _atomic_write,
    build_credentials,
    delete_profile,
    get_config_dir,
    get_data_dir,
    get_profiles_dir,
    list_profiles,
    load_profile,
    profile_exists,
    resolve_credential,
    resolve_profile,
    save_profile,
)
from xmcnbi.exceptions import ConfigurationError
from xmcnbi.models import AuthConfig, AuthMode, ClientConfig, Profile


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_profile(name: str = "lab", host: str = "xmc.example.com") -> Profile:
    return Profile(
        name=name,
        client=ClientConfig(host=host),
        auth=AuthConfig(mode="oauth", identifier="client-id", secret_source="env:XMC_SECRET"),
    )


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("xmcnbi.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "xmcnbi"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("xmcnbi.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "xmcnbi"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("xmcnbi.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "xmcnbi"
        assert result.is_dir()


class TestXDGPathsFallback:
    """Fallback paths on non-XDG platforms (macOS, Windows)."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("xmcnbi.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".xmcnbi"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("xmcnbi.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".xmcnbi" / "data"
        assert result.is_dir()


class TestProfilesDir:
    def test_profiles_dir_is_inside_config_dir(self, isolated_config: Path) -> None:
        result = get_profiles_dir()
        assert result == isolated_config / "config" / "xmcnbi" / "profiles"
        assert result.is_dir()


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        _atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "content")
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("xmcnbi.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestProfiles:
    def test_list_empty(self, isolated_config: Path) -> None:
        assert list_profiles() == []

    def test_save_and_list(self, isolated_config: Path) -> None:
        save_profile(_make_profile("beta"))
        save_profile(_make_profile("alpha"))
        assert list_profiles() == ["alpha", "beta"]

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = _make_profile()
        path = save_profile(original)
        assert path == get_profiles_dir() / "lab.json"
        assert load_profile("lab") == original

    def test_saved_profile_holds_no_secret(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("XMC_SECRET", "hunter2")
        path = save_profile(_make_profile())
        text = path.read_text(encoding="utf-8")
        assert "hunter2" not in text
        assert json.loads(text)["auth"]["secret_source"] == "env:XMC_SECRET"

    def test_load_nonexistent_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_profile("missing")

    def test_load_invalid_json_raises(self, isolated_config: Path) -> None:
        (get_profiles_dir() / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid profile 'broken'"):
            load_profile("broken")

    def test_load_invalid_port_raises(self, isolated_config: Path) -> None:
        data = _make_profile().model_dump(mode="json")
        data["client"]["port"] = 70000
        (get_profiles_dir() / "lab.json").write_text(json.dumps(data), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_profile("lab")

    def test_delete_profile(self, isolated_config: Path) -> None:
        save_profile(_make_profile())
        assert profile_exists("lab")
        delete_profile("lab")
        assert not profile_exists("lab")

    def test_delete_nonexistent_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            delete_profile("missing")


class TestResolveProfile:
    def test_no_profile_requested(self, isolated_config: Path) -> None:
        assert resolve_profile() is None

    def test_cli_profile(self, isolated_config: Path) -> None:
        save_profile(_make_profile("lab"))
        profile = resolve_profile("lab")
        assert profile is not None
        assert profile.name == "lab"

    def test_env_profile(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_profile(_make_profile("lab"))
        monkeypatch.setenv("XMCNBI_PROFILE", "lab")
        profile = resolve_profile()
        assert profile is not None
        assert profile.name == "lab"

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_profile(_make_profile("lab"))
        save_profile(_make_profile("prod", host="xmc-prod.example.com"))
        monkeypatch.setenv("XMCNBI_PROFILE", "lab")
        profile = resolve_profile("prod")
        assert profile is not None
        assert profile.client.host == "xmc-prod.example.com"

    def test_env_host_override(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_profile(_make_profile("lab"))
        monkeypatch.setenv("XMCNBI_HOST", "10.0.0.5")
        profile = resolve_profile("lab")
        assert profile is not None
        assert profile.client.host == "10.0.0.5"
        assert profile.client.port == 8443

    def test_missing_profile_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigurationError):
            resolve_profile("missing")


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_SECRET", "secret123")
        assert resolve_credential("env:MY_SECRET") == "secret123"

    def test_env_source_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        with pytest.raises(ConfigurationError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR")

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "secret.txt"
        cred_file.write_text("  my-secret  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "my-secret"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            resolve_credential("file:/nonexistent/path/secret.txt")

    def test_prompt_source_with_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("getpass.getpass", lambda prompt: "user-typed-secret")
        assert resolve_credential("prompt") == "user-typed-secret"

    def test_prompt_source_non_tty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)
        with pytest.raises(ConfigurationError, match="not a TTY"):
            resolve_credential("prompt")

    def test_literal_source(self) -> None:
        assert resolve_credential("literal:pa:ss") == "pa:ss"

    def test_unknown_source_does_not_echo_value(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown credential source") as exc_info:
            resolve_credential("hunter2")
        assert "hunter2" not in str(exc_info.value)


class TestBuildCredentials:
    def test_none(self) -> None:
        assert isinstance(build_credentials(None).credentials, NoAuth)

    def test_basic(self) -> None:
        holder = build_credentials(
            AuthConfig(mode="basic", identifier="admin", secret_source="literal:password")
        )
        assert holder.mode is AuthMode.BASIC
        assert isinstance(holder.credentials, BasicAuth)
        assert holder.describe(reveal_secret=True) == "basic{admin:password}"

    def test_oauth(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XMC_SECRET", "s3cret")
        holder = build_credentials(_make_profile().auth)
        assert isinstance(holder.credentials, BearerAuth)
        assert holder.describe(reveal_secret=True) == "oauth{client-id:s3cret}"

    def test_unresolvable_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XMC_SECRET", raising=False)
        with pytest.raises(ConfigurationError):
            build_credentials(_make_profile().auth)
