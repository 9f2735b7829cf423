"""State and output adapters for the restore/save handoff.

Inside GitHub Actions the runner provides file commands:
- $GITHUB_STATE: values appended here come back to the post step as
  STATE_<name> environment variables
- $GITHUB_OUTPUT: values appended here become step outputs

Outside Actions, JsonFileStateStore and JsonFileOutputWriter keep the same
contract in small JSON files so the two phases can still run as separate
processes.
"""

from __future__ import annotations

import json
import os
import uuid
from collections.abc import Mapping
from pathlib import Path

from depcache.clients.protocols import OutputWriterProtocol, StateStoreProtocol
from depcache.core.config import Settings
from depcache.core.logging import get_logger


logger = get_logger(__name__)

STATE_ENV_PREFIX = "STATE_"
_DELIMITER_PREFIX = "ghadelimiter_"


def to_command_value(value: object) -> str:
    """Render a value the way workflow commands expect it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return json.dumps(value)


def prepare_key_value_message(name: str, value: object) -> str:
    """Build a heredoc-style file command entry.

    Format: "{name}<<{delimiter}\\n{value}\\n{delimiter}\\n"

    Raises:
        ValueError: If the name or value contains the delimiter
    """
    delimiter = f"{_DELIMITER_PREFIX}{uuid.uuid4()}"
    converted = to_command_value(value)
    if delimiter in name:
        raise ValueError(f"Unexpected input: name should not contain the delimiter \"{delimiter}\"")
    if delimiter in converted:
        raise ValueError(f"Unexpected input: value should not contain the delimiter \"{delimiter}\"")
    return f"{name}<<{delimiter}{os.linesep}{converted}{os.linesep}{delimiter}{os.linesep}"


def issue_file_command(path: Path, message: str) -> None:
    """Append a message to a runner file command.

    Raises:
        FileNotFoundError: If the runner did not create the file
    """
    if not path.exists():
        raise FileNotFoundError(f"Missing file at path: {path}")
    with path.open("a", encoding="utf-8") as handle:
        handle.write(message)


class GitHubActionsStateStore:
    """State store backed by $GITHUB_STATE and STATE_* variables.

    Implements StateStoreProtocol.
    """

    def __init__(
        self,
        state_file: Path,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._state_file = Path(state_file)
        self._environ = environ if environ is not None else os.environ

    def save_state(self, name: str, value: str) -> None:
        issue_file_command(self._state_file, prepare_key_value_message(name, value))

    def get_state(self, name: str) -> str:
        return self._environ.get(f"{STATE_ENV_PREFIX}{name}", "")

    def clear(self) -> None:
        """No-op: the runner hands every job a fresh $GITHUB_STATE file."""


class GitHubActionsOutputWriter:
    """Output writer backed by $GITHUB_OUTPUT.

    Implements OutputWriterProtocol.
    """

    def __init__(self, output_file: Path) -> None:
        self._output_file = Path(output_file)

    def set_output(self, name: str, value: str) -> None:
        issue_file_command(self._output_file, prepare_key_value_message(name, value))


class _JsonFileMap:
    """Flat string map persisted as a JSON object."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        text = self._path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        payload = json.loads(text)
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object in {self._path}")
        return {str(k): str(v) for k, v in payload.items()}

    def write(self, name: str, value: str) -> None:
        data = self.read()
        data[name] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self._path)


class JsonFileStateStore(_JsonFileMap):
    """State store persisted to a JSON file, for runs outside Actions.

    Implements StateStoreProtocol.
    """

    def save_state(self, name: str, value: str) -> None:
        self.write(name, value)

    def get_state(self, name: str) -> str:
        return self.read().get(name, "")

    def clear(self) -> None:
        """Remove the state file; restore calls this at the start of each job."""
        self._path.unlink(missing_ok=True)


class JsonFileOutputWriter(_JsonFileMap):
    """Output writer persisted to a JSON file, for runs outside Actions.

    Implements OutputWriterProtocol.
    """

    def set_output(self, name: str, value: str) -> None:
        self.write(name, value)


def build_state_store(settings: Settings) -> StateStoreProtocol:
    """Pick the state adapter for the current environment."""
    if settings.github_state is not None:
        return GitHubActionsStateStore(settings.github_state)
    logger.debug("GITHUB_STATE is not set, using local state file", path=str(settings.state_file))
    return JsonFileStateStore(settings.state_file)


def build_output_writer(settings: Settings) -> OutputWriterProtocol:
    """Pick the output adapter for the current environment."""
    if settings.github_output is not None:
        return GitHubActionsOutputWriter(settings.github_output)
    return JsonFileOutputWriter(settings.output_file)
