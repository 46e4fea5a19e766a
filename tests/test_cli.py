"""Tests for the smokecrawl CLI."""

import json

import pytest

from smokecrawl.cli import build_parser, main

_CLEAN_MODULE = '''\
class Counter:
    def __init__(self):
        self.count = 0

    def increment(self, by: int) -> int:
        self.count += by
        return self.count
'''

_FAULTY_MODULE = '''\
from typing import Optional


class Calculator:
    def divide(self, a: int, b: int) -> int:
        return a // b


class Box:
    def get(self, x: Optional[int]) -> Optional[int]:
        return None
'''


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Write sample modules to a temp dir on sys.path."""
    (tmp_path / "cli_clean_mod.py").write_text(_CLEAN_MODULE)
    (tmp_path / "cli_faulty_mod.py").write_text(_FAULTY_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    return tmp_path


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(["pkg.mod"])
        assert args.modules == ["pkg.mod"]
        assert args.exclude == []
        assert args.include_inherited is False
        assert args.no_async is False
        assert args.json_output is None

    def test_repeatable_exclude(self):
        args = build_parser().parse_args(
            ["m", "--exclude", "A", "--exclude", "B.x"],
        )
        assert args.exclude == ["A", "B.x"]

    def test_requires_module(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:

    def test_clean_module_exit_zero(self, project, capsys):
        assert main(["cli_clean_mod"]) == 0
        out = capsys.readouterr().out
        assert "No faults recorded." in out

    def test_faulty_module_exit_one(self, project, capsys):
        assert main(["cli_faulty_mod"]) == 1
        out = capsys.readouterr().out
        assert "Calculator.divide(0, 0): ZeroDivisionError" in out

    def test_exclude_flag(self, project):
        assert main(["cli_faulty_mod", "--exclude", "Calculator"]) == 0

    def test_missing_module_exit_two(self, project, capsys):
        assert main(["no_such_module_for_cli"]) == 2
        assert "Could not import" in capsys.readouterr().err

    def test_partial_load_reported(self, project, capsys):
        assert main(["cli_clean_mod", "no_such_module_for_cli"]) == 0
        out = capsys.readouterr().out
        assert "Modules Not Loaded" in out

    def test_recursive_submodule_failure_reported(self, project, capsys):
        pkg = project / "cli_pkg"
        pkg.mkdir()
        (pkg / "__init__.py").write_text("")
        (pkg / "ok.py").write_text(_CLEAN_MODULE)
        (pkg / "broken.py").write_text("raise ImportError('missing dep')\n")

        assert main(["cli_pkg", "--recursive"]) == 0
        out = capsys.readouterr().out
        assert "Modules Not Loaded" in out
        assert "cli_pkg.broken" in out

    def test_json_output(self, project):
        out_path = project / "report.json"
        main(["cli_faulty_mod", "--json-output", str(out_path)])
        data = json.loads(out_path.read_text())
        assert data["summary"]["types_crawled"] == 2
        assert data["summary"]["invocations"] == 3
        assert data["summary"]["faults_by_kind"]["invocation"] == 1
