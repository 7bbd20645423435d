"""Tests for CLI interface."""

import json
import logging
from pathlib import Path

import pytest

from typesynth.cli import cmd_config, create_parser, load_config, main
from typesynth.logging import ROOT_LOGGER
from typesynth.output import reset_output

TASKS = [
    {"name": "add", "examples": [{"input": [1, 2], "output": 3}, {"input": [5, 7], "output": 12}]},
    {"name": "empty", "examples": []},
]


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch):
    """Fresh global output, no stray config files, logging restored afterwards."""
    monkeypatch.chdir(tmp_path)
    reset_output()
    root = logging.getLogger(ROOT_LOGGER)
    level, handlers = root.level, list(root.handlers)
    yield
    reset_output()
    root.setLevel(level)
    root.handlers[:] = handlers


@pytest.fixture
def task_file(tmp_path: Path) -> Path:
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps(TASKS))
    return path


class TestCreateParser:
    """Tests for create_parser."""

    def test_creates_parser(self):
        parser = create_parser()
        assert parser.prog == "typesynth"

    def test_has_subcommands(self):
        parser = create_parser()
        subparsers_action = next((a for a in parser._actions if hasattr(a, "_parser_class")), None)
        assert subparsers_action is not None
        assert set(subparsers_action.choices) == {"synth", "catalog", "config"}

    def test_synth_options(self):
        args = create_parser().parse_args(
            ["synth", "t.json", "-t", "5", "--max-size", "9", "-f", "a", "-f", "b"]
        )
        assert args.timeout == 5.0
        assert args.max_size == 9
        assert args.function == ["a", "b"]


class TestMain:
    """Tests for main entry point."""

    def test_no_command_shows_help(self, capsys):
        result = main([])
        assert result == 0
        captured = capsys.readouterr()
        assert "usage:" in captured.out.lower()

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "typesynth" in capsys.readouterr().out


class TestLoadConfig:
    """Tests for configuration loading from arguments."""

    def test_defaults_without_file(self):
        args = create_parser().parse_args(["synth", "t.json"])
        assert load_config(args).max_size == 50

    def test_discovers_config_file(self, tmp_path: Path):
        (tmp_path / "typesynth.toml").write_text("[search]\nmax_size = 12\n")
        args = create_parser().parse_args(["synth", "t.json"])
        assert load_config(args).max_size == 12

    def test_arguments_override_file(self, tmp_path: Path):
        (tmp_path / "typesynth.toml").write_text("[search]\nmax_size = 12\n")
        args = create_parser().parse_args(
            ["--debug", "synth", "t.json", "--max-size", "7", "--executor", "inprocess"]
        )
        config = load_config(args)
        assert config.max_size == 7
        assert config.executor == "inprocess"
        assert config.log_level == "DEBUG"


class TestCmdSynth:
    """Tests for the synth command."""

    def test_text_output(self, task_file: Path, capsys):
        result = main(["--no-color", "synth", str(task_file), "--executor", "inprocess"])

        assert result == 1
        captured = capsys.readouterr()
        assert "def add(arg0, arg1):" in captured.out
        assert "return arg0 + arg1" in captured.out
        assert "1/2 synthesized" in captured.out
        assert "empty has no examples" in captured.err

    def test_json_output(self, task_file: Path, capsys):
        result = main(["--json", "synth", str(task_file), "--executor", "inprocess"])

        assert result == 1
        data = json.loads(capsys.readouterr().out)
        functions = {f["name"]: f for f in data["functions"]}
        assert functions["add"]["success"]
        assert functions["add"]["stats"]["examples"] == 2
        assert not functions["empty"]["success"]
        assert functions["empty"]["error"]["category"] == "VALIDATION"

    def test_function_filter(self, task_file: Path, capsys):
        result = main(["synth", str(task_file), "-f", "add", "--executor", "inprocess"])

        assert result == 0
        assert "All 1 functions synthesized" in capsys.readouterr().out

    def test_unknown_function(self, task_file: Path, capsys):
        result = main(["synth", str(task_file), "-f", "nope"])

        assert result == 1
        assert "No function named nope" in capsys.readouterr().err

    def test_writes_output_file(self, task_file: Path, tmp_path: Path):
        out = tmp_path / "generated.py"
        main(["-q", "synth", str(task_file), "--executor", "inprocess", "-o", str(out)])

        namespace = {}
        exec(out.read_text(), namespace)
        assert namespace["add"](2, 3) == 5

    def test_missing_task_file(self, tmp_path: Path, capsys):
        result = main(["synth", str(tmp_path / "missing.json")])

        assert result == 1
        assert "FILE_NOT_FOUND" in capsys.readouterr().err

    def test_invalid_task_file(self, tmp_path: Path, capsys):
        path = tmp_path / "tasks.json"
        path.write_text('{"name": "add"}')

        assert main(["synth", str(path)]) == 1
        assert "PARSE_ERROR" in capsys.readouterr().err


class TestCmdCatalog:
    """Tests for the catalog command."""

    def test_text(self, capsys):
        assert main(["catalog"]) == 0
        assert "str.upper() -> str" in capsys.readouterr().out

    def test_json(self, capsys):
        assert main(["--json", "catalog"]) == 0
        entries = json.loads(capsys.readouterr().out)
        upper = next(e for e in entries if e["class"] == "str" and e["method"] == "upper")
        assert upper["returns"] == "str"
        assert upper["params"] == []


class TestCmdConfig:
    """Tests for the config command."""

    def test_shows_toml(self, capsys):
        args = create_parser().parse_args(["config"])
        assert cmd_config(args) == 0
        out = capsys.readouterr().out
        assert "[search]" in out
        assert "max_size = 50" in out

    def test_json(self, capsys):
        assert main(["--json", "config"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["max_size"] == 50
        assert data["limits"]["max_array_arity"] == 3

    def test_invalid_config_file(self, tmp_path: Path, capsys):
        (tmp_path / "typesynth.toml").write_text("[search]\nmax_size = -1\n")

        assert main(["config"]) == 1
        assert "CONFIG" in capsys.readouterr().err
