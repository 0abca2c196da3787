#!/usr/bin/env python3
"""Command-line front-end for GitHub Actions workflow commands."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Mapping, Optional, Sequence, TextIO, Tuple

from . import __version__
from .channels import ChannelResolver
from .config import load_settings
from .errors import ActionCliError

_log = logging.getLogger("action_cli")

LOG_FORMAT = "action-cli: %(levelname)s %(message)s"
ANNOTATION_LEVELS = ("debug", "notice", "warning", "error")


def configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    _log.setLevel(level)


def parse_key_val(text: str) -> Tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"invalid KEY=value: no `=` found in `{text}`")
    return key, value


def _add_annotation_parser(subparsers: argparse._SubParsersAction, level: str) -> None:
    parser = subparsers.add_parser(level, help=f"Emit a {level} annotation")
    parser.add_argument("-f", "--file")
    parser.add_argument("-l", "--line", type=int)
    parser.add_argument("-c", "--col", "--column", dest="col", type=int)
    parser.add_argument("--end-line", type=int)
    parser.add_argument("--end-column", type=int)
    parser.add_argument("-t", "--title")
    parser.add_argument("message")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="action-cli", description="Emit GitHub Actions workflow commands.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="YAML settings file (default: $ACTION_CLI_CONFIG or .action-cli.yml).")
    parser.add_argument("--log-level", help="Logging level for diagnostics on stderr.")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    issue = subparsers.add_parser("issue-command", help="Emit an arbitrary workflow command")
    issue.add_argument("-p", "--prop", dest="properties", action="append", default=[], type=parse_key_val, metavar="key=value")
    issue.add_argument("name", metavar="COMMAND")
    issue.add_argument("message", nargs="?", default="")

    set_env = subparsers.add_parser("set-env", help="Set an environment variable for later steps")
    set_env.add_argument("key")
    set_env.add_argument("value")

    export = subparsers.add_parser("export", help="Like set-env but exports an existing environment variable")
    export.add_argument("key")

    set_output = subparsers.add_parser("set-output", help="Set a step output parameter")
    set_output.add_argument("name")
    set_output.add_argument("value")

    add_path = subparsers.add_parser("add-path", help="Prepend a directory to PATH for later steps")
    add_path.add_argument("path")

    subparsers.add_parser("is-debug", help="Exit 0 when step debug logging is on")

    for level in ANNOTATION_LEVELS:
        _add_annotation_parser(subparsers, level)

    add_mask = subparsers.add_parser("add-mask", help="Mask a value in the log")
    add_mask.add_argument("value")

    stop = subparsers.add_parser("stop-commands", help="Stop processing workflow commands until ENDTOKEN")
    stop.add_argument("endtoken")

    resume = subparsers.add_parser("resume-commands", help="Resume processing workflow commands")
    resume.add_argument("endtoken")

    get_input = subparsers.add_parser("get-input", help="Print the trimmed value of an action input")
    get_input.add_argument("name")
    get_input.add_argument("-r", "--required", action="store_true")

    start_group = subparsers.add_parser("start-group", help="Begin a foldable output group")
    start_group.add_argument("name")

    subparsers.add_parser("end-group", help="End the current output group")

    echo = subparsers.add_parser("echo", help="Turn echoing of workflow commands on or off")
    echo.add_argument("mode", choices=("on", "off"))

    save_state = subparsers.add_parser("save-state", help="Save state for this action's post step")
    save_state.add_argument("name")
    save_state.add_argument("value")

    get_state = subparsers.add_parser("get-state", help="Print state saved by this action's main step")
    get_state.add_argument("name")

    return parser


def dispatch(args: argparse.Namespace, resolver: ChannelResolver) -> int:
    command = args.command
    if command == "issue-command":
        properties: List[Tuple[str, str]] = args.properties
        resolver.issue(args.name, args.message, dict(properties))
    elif command == "set-env":
        resolver.set_env(args.key, args.value)
    elif command == "export":
        resolver.export_env(args.key)
    elif command == "set-output":
        resolver.set_output(args.name, args.value)
    elif command == "add-path":
        resolver.add_path(args.path)
    elif command == "is-debug":
        return 0 if resolver.is_debug() else 1
    elif command in ANNOTATION_LEVELS:
        resolver.annotate(
            command,
            args.message,
            title=args.title,
            file=args.file,
            line=args.line,
            end_line=args.end_line,
            col=args.col,
            end_column=args.end_column,
        )
    elif command == "add-mask":
        resolver.add_mask(args.value)
    elif command == "stop-commands":
        resolver.stop_commands(args.endtoken)
    elif command == "resume-commands":
        resolver.resume_commands(args.endtoken)
    elif command == "get-input":
        resolver.stdout.write(resolver.get_input(args.name, required=args.required) + "\n")
    elif command == "start-group":
        resolver.start_group(args.name)
    elif command == "end-group":
        resolver.end_group()
    elif command == "echo":
        resolver.set_command_echo(args.mode == "on")
    elif command == "save-state":
        resolver.save_state(args.name, args.value)
    elif command == "get-state":
        resolver.stdout.write(resolver.get_state(args.name) + "\n")
    return 0


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config, environ)
    configure_logging(args.log_level or settings.log_level)
    resolver = ChannelResolver(environ, stdout, resolve_paths=settings.resolve_paths)
    try:
        return dispatch(args, resolver)
    except ActionCliError as exc:
        _log.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
