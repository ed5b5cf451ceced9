"""CLI behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cshape import cli
from cshape.cli import _build_parser
from cshape.extractors import ProviderContractError
from cshape.orchestrator import Orchestrator
from tests._fixtures.decl_builder import HeaderWriter


def test_cli_accepts_verbose_before_path() -> None:
    args = _build_parser().parse_args(["--verbose", "input.h"])
    assert args.verbose is True
    assert args.path == "input.h"


def test_cli_accepts_provider_and_config() -> None:
    args = _build_parser().parse_args(["input.h", "--provider", "tree-sitter", "--config", "conf"])
    assert args.provider == "tree-sitter"
    assert args.config == Path("conf")
    assert args.log_file is None


def test_cli_requires_a_path() -> None:
    with pytest.raises(SystemExit) as excinfo:
        _build_parser().parse_args([])
    assert excinfo.value.code == 2


def test_main_prints_single_json_line(
    headers: HeaderWriter, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = headers.write("color.h", "enum Color { RED, GREEN = 5, BLUE };\n")

    cli.main([str(path), "--provider", "tree-sitter", "--config", str(tmp_path)])

    out = capsys.readouterr().out
    assert out.count("\n") == 1
    assert json.loads(out) == [
        {
            "EnumType": {
                "name": "Color",
                "fields": [
                    {"name": "RED", "value": 0},
                    {"name": "GREEN", "value": 5},
                    {"name": "BLUE", "value": 6},
                ],
            }
        }
    ]


def test_main_prints_empty_list_for_file_without_types(
    headers: HeaderWriter, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = headers.write("empty.h", "int counter;\n")

    cli.main([str(path), "--provider", "tree-sitter", "--config", str(tmp_path)])

    assert capsys.readouterr().out == "[]\n"


def test_main_exits_with_failure_for_missing_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(tmp_path / "missing.h"), "--provider", "tree-sitter", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("cshape:")


def test_main_rejects_invalid_configuration(
    headers: HeaderWriter, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = headers.write("a.h", "struct A { int x; };\n")
    (tmp_path / ".cshape.yml").write_text("strict: maybe\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(path), "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "invalid configuration" in capsys.readouterr().err


def test_main_rejects_unknown_provider(
    headers: HeaderWriter, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = headers.write("a.h", "struct A { int x; };\n")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(path), "--provider", "nope", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "Unknown provider 'nope'" in err
    assert "invalid configuration" not in err


def test_main_reports_contract_violations_as_internal_errors(
    headers: HeaderWriter, tmp_path: Path, monkeypatch, capsys: pytest.CaptureFixture[str]
) -> None:
    path = headers.write("a.h", "struct A { int x; };\n")

    def _broken(self, path):  # type: ignore[no-untyped-def]
        raise ProviderContractError("field without a name")

    monkeypatch.setattr(Orchestrator, "run_extract", _broken)

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(path), "--provider", "tree-sitter", "--config", str(tmp_path)])

    assert excinfo.value.code == 2
    assert "internal error: field without a name" in capsys.readouterr().err
