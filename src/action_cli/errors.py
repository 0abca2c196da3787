"""Error types raised by the protocol layer."""

from __future__ import annotations


class ActionCliError(Exception):
    """Base class for failures that end a single invocation."""


class InvalidCommandName(ActionCliError):
    def __init__(self, name: str) -> None:
        super().__init__(f"invalid command name {name!r}: must be non-empty without ':' or whitespace")
        self.name = name


class InvalidVariableName(ActionCliError):
    def __init__(self, name: str) -> None:
        super().__init__(f"invalid variable name {name!r}: must be non-empty without '=', '<<' or line breaks")
        self.name = name


class ChannelUnavailable(ActionCliError):
    def __init__(self, channel: str, variable: str) -> None:
        super().__init__(f"{channel} channel unavailable: ${variable} is not set")
        self.channel = channel
        self.variable = variable


class ChannelWriteFailure(ActionCliError):
    """Appending to a side-channel file failed or would corrupt it."""


class InputRequired(ActionCliError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Input required and not supplied: {name}")
        self.name = name


class MissingVariable(ActionCliError):
    def __init__(self, name: str) -> None:
        super().__init__(f"environment variable {name} is not set")
        self.name = name
