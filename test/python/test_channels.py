import io
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from action_cli import channels  # noqa: E402
from action_cli.channels import Channel, ChannelResolver  # noqa: E402
from action_cli.errors import (  # noqa: E402
    ChannelUnavailable,
    ChannelWriteFailure,
    InputRequired,
    InvalidVariableName,
    MissingVariable,
)


def _resolver(environ=None, **kwargs):
    out = io.StringIO()
    return ChannelResolver(dict(environ or {}), out, **kwargs), out


def test_set_env_appends_to_env_file(tmp_path: Path):
    env_file = tmp_path / "env"
    resolver, out = _resolver({"GITHUB_ENV": str(env_file)})
    resolver.set_env("FOO", "bar")
    assert env_file.read_text(encoding="utf-8") == "FOO=bar\n"
    assert out.getvalue() == ""


def test_set_env_falls_back_to_command_without_env_file(tmp_path: Path):
    resolver, out = _resolver({})
    resolver.set_env("FOO", "bar")
    assert out.getvalue() == "::set-env name=FOO::bar\n"
    assert list(tmp_path.iterdir()) == []


def test_empty_channel_variable_counts_as_unset():
    resolver, out = _resolver({"GITHUB_OUTPUT": ""})
    assert resolver.channel_path(Channel.OUTPUT_FILE) is None
    resolver.set_output("result", "ok")
    assert out.getvalue() == "::set-output name=result::ok\n"


def test_set_output_file_appends(tmp_path: Path):
    output_file = tmp_path / "output"
    output_file.write_text("first=1\n", encoding="utf-8")
    resolver, out = _resolver({"GITHUB_OUTPUT": str(output_file)})
    resolver.set_output("second", "2")
    assert output_file.read_text(encoding="utf-8") == "first=1\nsecond=2\n"
    assert out.getvalue() == ""


def test_multiline_value_uses_delimiter_form(tmp_path: Path):
    env_file = tmp_path / "env"
    resolver, _ = _resolver({"GITHUB_ENV": str(env_file)})
    resolver.set_env("NOTES", "line one\nline two")
    lines = env_file.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("NOTES<<ghadelimiter_")
    delimiter = lines[0].split("<<", 1)[1]
    assert lines[1:] == ["line one", "line two", delimiter]


def test_delimiter_collision_is_rejected():
    with pytest.raises(ChannelWriteFailure):
        channels.format_file_line("X", "a\nEOF\n", delimiter="EOF")


@pytest.mark.parametrize("name", ["", "A=B", "A\nB", "A<<B"])
def test_invalid_file_variable_names(name):
    with pytest.raises(InvalidVariableName):
        channels.format_file_line(name, "value")


def test_unwritable_channel_raises_write_failure(tmp_path: Path):
    resolver, out = _resolver({"GITHUB_ENV": str(tmp_path / "missing" / "env")})
    with pytest.raises(ChannelWriteFailure):
        resolver.set_env("FOO", "bar")
    assert out.getvalue() == ""


def test_add_path_file_writes_bare_path(tmp_path: Path):
    path_file = tmp_path / "path"
    resolver, out = _resolver({"GITHUB_PATH": str(path_file)}, resolve_paths=False)
    resolver.add_path("/opt/tool/bin")
    assert path_file.read_text(encoding="utf-8") == "/opt/tool/bin\n"
    assert out.getvalue() == ""


def test_add_path_command_resolves_relative_paths(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    resolver, out = _resolver({})
    resolver.add_path("bin")
    assert out.getvalue() == f"::add-path::{(tmp_path / 'bin').resolve()}\n"


def test_save_state_requires_state_file():
    resolver, out = _resolver({})
    with pytest.raises(ChannelUnavailable):
        resolver.save_state("pid", "42")
    assert out.getvalue() == ""


def test_save_state_appends(tmp_path: Path):
    state_file = tmp_path / "state"
    resolver, _ = _resolver({"GITHUB_STATE": str(state_file)})
    resolver.save_state("pid", "42")
    assert state_file.read_text(encoding="utf-8") == "pid=42\n"


def test_get_state_prefers_exact_name_then_mangled():
    resolver, _ = _resolver({"STATE_myState": "exact", "STATE_OTHER_STATE": "mangled"})
    assert resolver.get_state("myState") == "exact"
    assert resolver.get_state("other state") == "mangled"
    assert resolver.get_state("absent") == ""


def test_get_input_mangles_and_trims():
    resolver, _ = _resolver({"INPUT_MY_NAME": "  Octocat \n"})
    assert channels.input_key("My Name") == "INPUT_MY_NAME"
    assert channels.input_key("a \t b") == "INPUT_A_B"
    assert resolver.get_input("My Name") == "Octocat"
    assert resolver.get_input("missing") == ""


def test_get_input_required():
    resolver, _ = _resolver({"INPUT_TOKEN": "   "})
    with pytest.raises(InputRequired):
        resolver.get_input("token", required=True)


@pytest.mark.parametrize(
    "value,expected",
    [("1", True), ("true", False), ("TRUE", False), ("0", False), ("", False), (None, False)],
)
def test_is_debug_exact_match(value, expected):
    environ = {} if value is None else {"RUNNER_DEBUG": value}
    resolver, _ = _resolver(environ)
    assert resolver.is_debug() is expected


def test_export_env_reads_existing_variable():
    resolver, out = _resolver({"HOME_DIR": "/home/runner"})
    resolver.export_env("HOME_DIR")
    assert out.getvalue() == "::set-env name=HOME_DIR::/home/runner\n"
    with pytest.raises(MissingVariable):
        resolver.export_env("NOPE")


def test_stdout_only_commands():
    resolver, out = _resolver({"GITHUB_ENV": "/unused"})
    resolver.add_mask("s3cr3t")
    resolver.stop_commands("pause-token")
    resolver.resume_commands("pause-token")
    resolver.start_group("Build")
    resolver.end_group()
    resolver.set_command_echo(False)
    resolver.annotate("error", "boom", file="main.py", line=7)
    assert out.getvalue().splitlines() == [
        "::add-mask::s3cr3t",
        "::stop-commands::pause-token",
        "::pause-token::",
        "::group::Build",
        "::endgroup::",
        "::echo::off",
        "::error file=main.py,line=7::boom",
    ]


@pytest.mark.parametrize("operation", ["set_env", "set_output"])
def test_invalid_names_rejected_on_command_fallback(operation):
    resolver, out = _resolver({})
    with pytest.raises(InvalidVariableName):
        getattr(resolver, operation)("", "v")
    with pytest.raises(InvalidVariableName):
        getattr(resolver, operation)("A<<B", "v")
    assert out.getvalue() == ""


def test_add_path_file_rejects_multiline_entry(tmp_path: Path):
    path_file = tmp_path / "path"
    path_file.write_text("", encoding="utf-8")
    resolver, out = _resolver({"GITHUB_PATH": str(path_file)}, resolve_paths=False)
    with pytest.raises(ChannelWriteFailure):
        resolver.add_path("/opt/bin\n/evil")
    assert path_file.read_text(encoding="utf-8") == ""
    assert out.getvalue() == ""
