"""
Workflow command encoder.

Command format:
  ::name key=value,key=value::message

Examples:
  ::warning::This is the message
  ::set-env name=MY_VAR::some value

Messages and property values use different escaping; property values also
escape the ':' and ',' separators.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .errors import InvalidCommandName

_NAME_RE = re.compile(r"[^:\s]+")
_DATA_ESCAPE_RE = re.compile(r"%(25|0D|0A)")
_PROPERTY_ESCAPE_RE = re.compile(r"%(25|0D|0A|3A|2C)")
_UNESCAPES = {"25": "%", "0D": "\r", "0A": "\n", "3A": ":", "2C": ","}

# Order of the optional annotation properties on log commands.
ANNOTATION_KEYS = ("title", "file", "line", "endLine", "col", "endColumn")


def escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def unescape_data(value: str) -> str:
    return _DATA_ESCAPE_RE.sub(lambda match: _UNESCAPES[match.group(1)], value)


def unescape_property(value: str) -> str:
    return _PROPERTY_ESCAPE_RE.sub(lambda match: _UNESCAPES[match.group(1)], value)


def validate_name(name: str) -> str:
    if not name or not _NAME_RE.fullmatch(name):
        raise InvalidCommandName(name)
    return name


@dataclass
class Command:
    name: str
    properties: Dict[str, Optional[str]] = field(default_factory=dict)
    message: str = ""

    def __post_init__(self) -> None:
        validate_name(self.name)

    def __str__(self) -> str:
        return format_command(self.name, self.properties, self.message)


def format_command(name: str, properties: Optional[Mapping[str, Optional[str]]] = None, message: str = "") -> str:
    """Render a command line without its trailing newline.

    Properties whose value is None are skipped so optional annotation fields
    can be passed through unfiltered.
    """
    validate_name(name)
    line = f"::{name}"
    pairs = [
        f"{key}={escape_property(str(value))}"
        for key, value in (properties or {}).items()
        if value is not None
    ]
    if pairs:
        line = f"{line} {','.join(pairs)}"
    return f"{line}::{escape_data(message or '')}"


def encode(command: Command) -> str:
    return format_command(command.name, command.properties, command.message) + "\n"


def annotation_properties(
    *,
    title: Optional[str] = None,
    file: Optional[str] = None,
    line: Optional[int] = None,
    end_line: Optional[int] = None,
    col: Optional[int] = None,
    end_column: Optional[int] = None,
) -> Dict[str, Optional[str]]:
    values = (title, file, line, end_line, col, end_column)
    return {
        key: None if value is None else str(value)
        for key, value in zip(ANNOTATION_KEYS, values)
    }
