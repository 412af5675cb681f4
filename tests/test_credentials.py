"""Tests for the Pocket credential store."""

import json
import os
import stat
import sys

import pytest


@pytest.fixture
def store_path(tmp_path):
    """Path of a store file that does not exist yet."""
    return tmp_path / "pocket" / "config.json"


class TestStorePath:
    """Test store path resolution."""

    def test_env_override(self, tmp_path, monkeypatch):
        """POCKET_CONFIG wins over the per-user default."""
        from pocket_cli.registry.credentials import CredentialStore

        target = tmp_path / "custom.json"
        monkeypatch.setenv("POCKET_CONFIG", str(target))

        assert CredentialStore().path == target

    def test_default_path(self, tmp_path, monkeypatch):
        """Without an override the store lives under ~/.config/pocket."""
        from pocket_cli.registry.credentials import get_default_config_path

        monkeypatch.delenv("POCKET_CONFIG", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        path = get_default_config_path()
        assert path.name == "config.json"
        assert path.parent.name == "pocket"
        assert path.parent.parent.name == ".config"

    def test_path_resolved_once(self, tmp_path, monkeypatch):
        """Changing the env after construction does not move the store."""
        from pocket_cli.registry.credentials import CredentialStore

        first = tmp_path / "first.json"
        monkeypatch.setenv("POCKET_CONFIG", str(first))
        store = CredentialStore()
        monkeypatch.setenv("POCKET_CONFIG", str(tmp_path / "second.json"))

        assert store.path == first


class TestLoad:
    """Test reading the store."""

    def test_missing_file_is_empty(self, store_path):
        """A store that was never written loads as an empty map."""
        from pocket_cli.registry.credentials import CredentialStore

        store = CredentialStore(store_path)
        assert store.load() == {}
        assert store.get("github_token") == ""

    def test_blank_file_is_empty(self, store_path):
        """A zero-length file is treated like a missing one."""
        from pocket_cli.registry.credentials import CredentialStore

        store_path.parent.mkdir(parents=True)
        store_path.write_text("")

        assert CredentialStore(store_path).load() == {}

    def test_corrupt_json(self, store_path):
        """Malformed JSON is a ConfigError, never a silent reset."""
        from pocket_cli.registry.credentials import CredentialStore
        from pocket_cli.registry.exceptions import ConfigError

        store_path.parent.mkdir(parents=True)
        store_path.write_text("{not json")

        with pytest.raises(ConfigError) as exc_info:
            CredentialStore(store_path).load()

        assert exc_info.value.code == "config_error"
        assert exc_info.value.details["path"] == str(store_path)
        assert store_path.read_text() == "{not json"

    def test_non_object_document(self, store_path):
        """A JSON array is not a valid store."""
        from pocket_cli.registry.credentials import CredentialStore
        from pocket_cli.registry.exceptions import ConfigError

        store_path.parent.mkdir(parents=True)
        store_path.write_text('["github_token"]')

        with pytest.raises(ConfigError):
            CredentialStore(store_path).load()

    def test_non_string_value(self, store_path):
        """Values must be strings."""
        from pocket_cli.registry.credentials import CredentialStore
        from pocket_cli.registry.exceptions import ConfigError

        store_path.parent.mkdir(parents=True)
        store_path.write_text('{"imap_port": 993}')

        with pytest.raises(ConfigError) as exc_info:
            CredentialStore(store_path).load()

        assert "imap_port" in exc_info.value.message


class TestSetGet:
    """Test writing and reading values."""

    def test_round_trip(self, store_path):
        """A value is readable immediately and from a fresh store."""
        from pocket_cli.registry.credentials import CredentialStore

        store = CredentialStore(store_path)
        store.set("github_token", "ghp_abc123")

        assert store.get("github_token") == "ghp_abc123"
        assert CredentialStore(store_path).get("github_token") == "ghp_abc123"
        assert json.loads(store_path.read_text()) == {"github_token": "ghp_abc123"}

    def test_set_creates_parent_dirs(self, store_path):
        """First write creates the directory."""
        from pocket_cli.registry.credentials import CredentialStore

        CredentialStore(store_path).set("newsapi_key", "abc")
        assert store_path.exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_permissions(self, store_path):
        """Store is owner-only: file 600, directory 700."""
        from pocket_cli.registry.credentials import CredentialStore

        CredentialStore(store_path).set("slack_token", "xoxb-1")

        assert stat.S_IMODE(os.stat(store_path).st_mode) == 0o600
        assert stat.S_IMODE(os.stat(store_path.parent).st_mode) == 0o700

    def test_unknown_keys_preserved(self, store_path):
        """Keys no service knows about survive a write."""
        from pocket_cli.registry.credentials import CredentialStore

        store_path.parent.mkdir(parents=True)
        store_path.write_text('{"future_service_token": "keep-me"}')

        CredentialStore(store_path).set("github_token", "ghp_x")

        data = json.loads(store_path.read_text())
        assert data == {"future_service_token": "keep-me", "github_token": "ghp_x"}

    def test_overwrite(self, store_path):
        """Setting a key again replaces its value."""
        from pocket_cli.registry.credentials import CredentialStore

        store = CredentialStore(store_path)
        store.set("todoist_token", "old")
        store.set("todoist_token", "new")

        assert store.get("todoist_token") == "new"

    def test_no_temp_files_left(self, store_path):
        """Atomic writes clean up after themselves."""
        from pocket_cli.registry.credentials import CredentialStore

        store = CredentialStore(store_path)
        store.set("a_key", "1")
        store.set("b_key", "2")

        assert [p.name for p in store_path.parent.iterdir()] == ["config.json"]

    def test_key_normalization(self, store_path):
        """Keys are lowercased and dashes become underscores."""
        from pocket_cli.registry.credentials import CredentialStore

        store = CredentialStore(store_path)
        store.set("GitHub-Token", "ghp_x")

        assert store.load() == {"github_token": "ghp_x"}
        assert store.get("GITHUB-TOKEN") == "ghp_x"

    def test_invalid_key_rejected(self, store_path):
        """Keys must be snake_case identifiers."""
        from pocket_cli.registry.credentials import CredentialStore
        from pocket_cli.registry.exceptions import InvalidKeyError

        store = CredentialStore(store_path)
        with pytest.raises(InvalidKeyError):
            store.set("1password", "x")
        with pytest.raises(InvalidKeyError):
            store.set("has space", "x")

        assert not store_path.exists()

    def test_empty_value_is_unset(self, store_path):
        """Storing "" is the same as not storing anything."""
        from pocket_cli.registry.credentials import CredentialStore
        from pocket_cli.registry.exceptions import MissingCredentialError

        store = CredentialStore(store_path)
        store.set("vercel_token", "")

        with pytest.raises(MissingCredentialError):
            store.must_get("vercel_token")


class TestMustGet:
    """Test required credential lookup."""

    def test_present(self, store_path):
        """A set key is returned."""
        from pocket_cli.registry.credentials import CredentialStore

        store = CredentialStore(store_path)
        store.set("linear_token", "lin_api_x")

        assert store.must_get("linear_token") == "lin_api_x"

    def test_missing_has_remediation(self, store_path):
        """The error names the key and the command that sets it."""
        from pocket_cli.registry.credentials import CredentialStore
        from pocket_cli.registry.exceptions import MissingCredentialError

        with pytest.raises(MissingCredentialError) as exc_info:
            CredentialStore(store_path).must_get("linear_token")

        error = exc_info.value
        assert error.code == "missing_credential"
        assert error.message == "config key not set: linear_token"
        assert "pocket config set linear_token" in error.remediation

    def test_missing_points_at_setup(self, store_path):
        """With an owner lookup the hint names the setup command."""
        from pocket_cli.registry.catalog import get_catalog
        from pocket_cli.registry.credentials import CredentialStore
        from pocket_cli.registry.exceptions import MissingCredentialError

        store = CredentialStore(store_path, owners=get_catalog().services_for_key)

        with pytest.raises(MissingCredentialError) as exc_info:
            store.must_get("jira_token")

        assert "pocket setup show jira" in exc_info.value.remediation
        assert exc_info.value.details["services"] == ["jira"]


class TestRedacted:
    """Test the display-only masked view."""

    def test_masks_every_value(self, store_path):
        """No stored value appears in the redacted view."""
        from pocket_cli.registry.credentials import CredentialStore

        store = CredentialStore(store_path)
        store.set("github_token", "ghp_abcdefghijklmnop")
        store.set("jira_email", "me@x.io")

        redacted = store.redacted()
        assert redacted == {"github_token": "ghp_****mnop", "jira_email": "****"}
        assert store.get("github_token") == "ghp_abcdefghijklmnop"

    def test_missing_file(self, store_path):
        """A deleted store redacts to an empty map."""
        from pocket_cli.registry.credentials import CredentialStore

        store = CredentialStore(store_path)
        store.set("github_token", "ghp_x")
        store_path.unlink()

        assert store.redacted() == {}
