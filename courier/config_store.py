"""Key / value stores backing the OID mapping cache."""
import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from courier.exc import ConfigStoreError

_log = logging.getLogger(__name__)

# `git config` exit statuses we expect and handle
GIT_CONFIG_KEY_NOT_FOUND = 1
GIT_CONFIG_NOTHING_TO_UNSET = 5


class ConfigStore(ABC):
    """A persistent string -> string store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Get a value, or None if the key is not set."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing a key which is not set is not an error."""


class MemoryConfigStore(ConfigStore):
    """In-memory store, for testing and for sessions that do not need to
    remember anything.
    """

    def __init__(self, values: dict[str, str] | None = None, **_: Any) -> None:
        self.values: dict[str, str] = dict(values or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class GitConfigStore(ConfigStore):
    """Store values in a git config file (by default the repository's own
    ``.git/config``) using the ``git config`` command.

    Keys must be valid git config keys: ``section[.subsection].name`` where
    ``name`` starts with a letter.
    """

    def __init__(
        self,
        config_file: str = ".git/config",
        git_executable: str = "git",
        timeout: int = 30,
        **_: Any,
    ) -> None:
        self.config_file = config_file
        self.git_executable = git_executable
        self.timeout = timeout

    def get(self, key: str) -> str | None:
        result = self._git_config("--get", key)
        if result.returncode == GIT_CONFIG_KEY_NOT_FOUND:
            return None
        self._check(result, "get", key)
        return result.stdout.rstrip("\n")

    def set(self, key: str, value: str) -> None:
        Path(self.config_file).parent.mkdir(parents=True, exist_ok=True)
        result = self._git_config(key, value)
        self._check(result, "set", key)

    def remove(self, key: str) -> None:
        result = self._git_config("--unset-all", key)
        if result.returncode == GIT_CONFIG_NOTHING_TO_UNSET:
            _log.debug("Key %s was not set in %s", key, self.config_file)
            return
        self._check(result, "remove", key)

    def _git_config(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [
            self.git_executable, "config", "--file", self.config_file, *args
        ]
        try:
            return subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ConfigStoreError(f"Failed to run {cmd[0]}: {e}") from e

    def _check(
        self, result: subprocess.CompletedProcess, action: str, key: str
    ) -> None:
        if result.returncode != 0:
            raise ConfigStoreError(
                f"Could not {action} {key} in {self.config_file}: "
                f"{result.stderr.strip() or result.returncode}"
            )
