"""
Channel resolution for runner side channels.

Each operation picks, from the injected environment, between appending to a
runner-designated file (GITHUB_ENV, GITHUB_PATH, GITHUB_OUTPUT, GITHUB_STATE)
and writing the legacy workflow command to stdout. Inputs and saved state are
read back from INPUT_* / STATE_* variables the runner injects.
"""

from __future__ import annotations

import logging
import os
import re
import sys
import uuid
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, TextIO

from .command import annotation_properties, format_command
from .errors import (
    ChannelUnavailable,
    ChannelWriteFailure,
    InputRequired,
    InvalidVariableName,
    MissingVariable,
)

_log = logging.getLogger(__name__)

DEBUG_VARIABLE = "RUNNER_DEBUG"
DEBUG_SENTINEL = "1"
INPUT_PREFIX = "INPUT_"
STATE_PREFIX = "STATE_"
DELIMITER_PREFIX = "ghadelimiter_"

_WHITESPACE_RE = re.compile(r"\s+")


class Channel(Enum):
    STDOUT_COMMAND = "stdout-command"
    ENV_FILE = "env-file"
    PATH_FILE = "path-file"
    STATE_FILE = "state-file"
    OUTPUT_FILE = "output-file"

    @property
    def variable(self) -> Optional[str]:
        return CHANNEL_VARIABLES.get(self)


CHANNEL_VARIABLES = {
    Channel.ENV_FILE: "GITHUB_ENV",
    Channel.PATH_FILE: "GITHUB_PATH",
    Channel.STATE_FILE: "GITHUB_STATE",
    Channel.OUTPUT_FILE: "GITHUB_OUTPUT",
}


def mangle_name(name: str) -> str:
    return _WHITESPACE_RE.sub("_", name).upper()


def input_key(name: str) -> str:
    return INPUT_PREFIX + mangle_name(name)


def state_key(name: str) -> str:
    return STATE_PREFIX + mangle_name(name)


def _check_variable_name(name: str) -> str:
    if not name or "=" in name or "<<" in name or "\n" in name or "\r" in name:
        raise InvalidVariableName(name)
    return name


def format_file_line(name: str, value: str, *, delimiter: Optional[str] = None) -> str:
    """Encode one assignment for an env/output/state file.

    Single-line values become ``NAME=value``. Values with line breaks use the
    runner's heredoc form with a random delimiter that must not occur in
    either the name or the value.
    """
    _check_variable_name(name)
    if "\n" not in value and "\r" not in value:
        return f"{name}={value}\n"
    delimiter = delimiter or f"{DELIMITER_PREFIX}{uuid.uuid4().hex}"
    if delimiter in name:
        raise ChannelWriteFailure(f"unexpected input: name should not contain the delimiter {delimiter!r}")
    if delimiter in value:
        raise ChannelWriteFailure(f"unexpected input: value should not contain the delimiter {delimiter!r}")
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def append_line(path: Path, text: str) -> None:
    try:
        with path.open("a", encoding="utf-8") as handle:
            handle.write(text)
    except OSError as exc:
        raise ChannelWriteFailure(f"failed to append to {path}: {exc}") from exc


class ChannelResolver:
    """Routes protocol operations to side-channel files or stdout commands."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        stdout: Optional[TextIO] = None,
        *,
        resolve_paths: bool = True,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.stdout = stdout if stdout is not None else sys.stdout
        self.resolve_paths = resolve_paths

    # ------------------------------------------------------------------
    def channel_path(self, channel: Channel) -> Optional[Path]:
        variable = channel.variable
        if variable is None:
            return None
        raw = self.environ.get(variable, "")
        if not raw:
            return None
        return Path(raw)

    def issue(self, name: str, message: str = "", properties: Optional[Mapping[str, Optional[str]]] = None) -> None:
        line = format_command(name, properties, message)
        self.stdout.write(line + "\n")
        self.stdout.flush()

    def _append(self, channel: Channel, path: Path, text: str) -> None:
        _log.debug("Appending to %s channel at %s", channel.value, path)
        append_line(path, text)

    # ------------------------------------------------------------------
    def set_env(self, name: str, value: str) -> None:
        _check_variable_name(name)
        path = self.channel_path(Channel.ENV_FILE)
        if path is None:
            _log.debug("GITHUB_ENV not set; emitting set-env command")
            self.issue("set-env", value, {"name": name})
            return
        self._append(Channel.ENV_FILE, path, format_file_line(name, value))

    def export_env(self, name: str) -> None:
        value = self.environ.get(name)
        if value is None:
            raise MissingVariable(name)
        self.set_env(name, value)

    def add_path(self, entry: str) -> None:
        if self.resolve_paths:
            entry = str(Path(entry).resolve())
        path = self.channel_path(Channel.PATH_FILE)
        if path is None:
            _log.debug("GITHUB_PATH not set; emitting add-path command")
            self.issue("add-path", entry)
            return
        if "\n" in entry or "\r" in entry:
            raise ChannelWriteFailure(f"path entry must be a single line: {entry!r}")
        self._append(Channel.PATH_FILE, path, entry + "\n")

    def set_output(self, name: str, value: str) -> None:
        _check_variable_name(name)
        path = self.channel_path(Channel.OUTPUT_FILE)
        if path is None:
            _log.debug("GITHUB_OUTPUT not set; emitting set-output command")
            self.issue("set-output", value, {"name": name})
            return
        self._append(Channel.OUTPUT_FILE, path, format_file_line(name, value))

    def save_state(self, name: str, value: str) -> None:
        path = self.channel_path(Channel.STATE_FILE)
        if path is None:
            raise ChannelUnavailable(Channel.STATE_FILE.value, CHANNEL_VARIABLES[Channel.STATE_FILE])
        self._append(Channel.STATE_FILE, path, format_file_line(name, value))

    def get_state(self, name: str) -> str:
        for key in (STATE_PREFIX + name, state_key(name)):
            value = self.environ.get(key)
            if value is not None:
                return value
        return ""

    def get_input(self, name: str, required: bool = False) -> str:
        value = self.environ.get(input_key(name), "").strip()
        if required and not value:
            raise InputRequired(name)
        return value

    def is_debug(self) -> bool:
        return self.environ.get(DEBUG_VARIABLE) == DEBUG_SENTINEL

    # ------------------------------------------------------------------
    def add_mask(self, value: str) -> None:
        self.issue("add-mask", value)

    def stop_commands(self, token: str) -> None:
        self.issue("stop-commands", token)

    def resume_commands(self, token: str) -> None:
        self.issue(token)

    def start_group(self, name: str) -> None:
        self.issue("group", name)

    def end_group(self) -> None:
        self.issue("endgroup")

    def set_command_echo(self, enabled: bool) -> None:
        self.issue("echo", "on" if enabled else "off")

    def annotate(
        self,
        level: str,
        message: str,
        *,
        title: Optional[str] = None,
        file: Optional[str] = None,
        line: Optional[int] = None,
        end_line: Optional[int] = None,
        col: Optional[int] = None,
        end_column: Optional[int] = None,
    ) -> None:
        properties = annotation_properties(
            title=title,
            file=file,
            line=line,
            end_line=end_line,
            col=col,
            end_column=end_column,
        )
        self.issue(level, message, properties)
