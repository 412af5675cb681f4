"""
Pocket Credential Store

Flat key/value persistence for secrets and settings, backed by a single JSON
file. Every read goes back to disk; each CLI invocation is a fresh process.
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pocket_cli.registry.exceptions import ConfigError, InvalidKeyError, MissingCredentialError
from pocket_cli.registry.logging_config import get_logger
from pocket_cli.registry.output import redact_value

logger = get_logger("credentials")

CONFIG_ENV_VAR = "POCKET_CONFIG"
KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


def get_default_config_path() -> Path:
    """Resolve the store path: POCKET_CONFIG, else ~/.config/pocket/config.json."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "pocket" / "config.json"


def normalize_key(key: str) -> str:
    """Lowercase a key and turn dashes into underscores."""
    return key.strip().lower().replace("-", "_")


class CredentialStore:
    """Key/value credential store persisted to one JSON file.

    There is no locking: two processes writing at once means the last writer
    wins. Writes go through a temp file and ``os.replace`` so a reader never
    sees a half-written document.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        owners: Optional[Callable[[str], List[str]]] = None
    ):
        """Initialize the store.

        Args:
            path: Backing file (default: resolved from the environment once)
            owners: Maps a key to the services that use it, for error hints
        """
        self._path = Path(path) if path else get_default_config_path()
        self._owners = owners

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, str]:
        """Read the whole store. A missing file is an empty store."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No store at %s, using empty store", self._path)
            return {}
        except OSError as e:
            raise ConfigError(f"failed to read config: {e}", path=str(self._path)) from e

        if not raw.strip():
            return {}

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(f"failed to parse config: {e}", path=str(self._path)) from e

        if not isinstance(document, dict):
            raise ConfigError("failed to parse config: expected a JSON object", path=str(self._path))

        values = {}
        for key, value in document.items():
            if not isinstance(value, str):
                raise ConfigError(
                    f"failed to parse config: value for '{key}' is not a string",
                    path=str(self._path)
                )
            values[key] = value

        logger.debug("Loaded %d keys from %s", len(values), self._path)
        return values

    def get(self, key: str) -> str:
        """Get a value, or "" if the key is absent."""
        return self.load().get(normalize_key(key), "")

    def must_get(self, key: str) -> str:
        """Get a value, raising MissingCredentialError when it is empty."""
        key = normalize_key(key)
        value = self.get(key)
        if not value:
            services = self._owners(key) if self._owners else []
            raise MissingCredentialError(key, services)
        return value

    def set(self, key: str, value: str):
        """Upsert one key and persist the entire store."""
        normalized = normalize_key(key)
        if not KEY_PATTERN.match(normalized):
            raise InvalidKeyError(
                f"Invalid config key: {key}",
                key=key,
                remediation="Keys are lowercase snake_case names, e.g. github_token"
            )

        values = self.load()
        values[normalized] = value
        self._save(values)
        logger.debug("Saved key %s to %s", normalized, self._path)

    def redacted(self) -> Dict[str, str]:
        """Copy of the store with every value masked. Display only."""
        return {key: redact_value(value) for key, value in sorted(self.load().items())}

    def _save(self, values: Dict[str, str]):
        directory = self._path.parent
        try:
            directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".tmp", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(values, handle, indent=2, sort_keys=True)
                    handle.write("\n")
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ConfigError(f"failed to write config: {e}", path=str(self._path)) from e
