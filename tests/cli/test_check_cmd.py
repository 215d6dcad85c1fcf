"""
Tests for the Check Command.

Verifies:
1. Exit codes for clean files, violations, parse failures and missing paths.
2. `--json` outputs valid JSON and suppresses Rich logs.
3. `--fix` rewrites files in place.
4. CLI dispatch through `main`.
"""

import json
from unittest.mock import patch

import pytest

from prefer_final import __version__
from prefer_final.cli.__main__ import main
from prefer_final.cli.handlers.check import handle_check

DIRTY = """class Service:
    def __init__(self, client):
        self._client = client
"""

CLEAN = """class Service:
    def __init__(self, client):
        self.client = client
"""


@pytest.fixture
def dirty_file(tmp_path):
  f = tmp_path / "service.py"
  f.write_text(DIRTY, encoding="utf-8")
  return f


def test_missing_path(tmp_path):
  with patch("prefer_final.cli.handlers.check.log_error") as mock_error:
    assert handle_check(tmp_path / "nope.py") == 1
  mock_error.assert_called_once()


def test_clean_file_exits_zero(tmp_path):
  f = tmp_path / "clean.py"
  f.write_text(CLEAN, encoding="utf-8")
  assert handle_check(f) == 0


def test_violations_exit_one(dirty_file):
  with patch("prefer_final.cli.handlers.check.console") as mock_console:
    assert handle_check(dirty_file) == 1
  mock_console.print.assert_called_once()


def test_json_output_structure(dirty_file, capsys):
  with patch("prefer_final.cli.handlers.check.log_info") as mock_log:
    ret = handle_check(dirty_file, json_mode=True)

  assert ret == 1
  mock_log.assert_not_called()

  data = json.loads(capsys.readouterr().out)
  assert len(data) == 1
  item = data[0]
  assert item["path"] == str(dirty_file)
  assert item["name"] == "_client"
  assert item["class_name"] == "Service"
  assert item["scope"] == "instance"
  assert item["kind"] == "constructor"
  assert item["line"] == 3
  assert item["column"] == 14
  assert item["fixable"] is True
  assert item["rule"] == "prefer-final"


def test_fix_rewrites_file(dirty_file):
  assert handle_check(dirty_file, fix=True) == 0

  content = dirty_file.read_text(encoding="utf-8")
  assert content.startswith("from typing import Final\n")
  assert "self._client: Final = client" in content
  assert handle_check(dirty_file) == 0


def test_fix_reports_non_fixable_members(tmp_path, capsys):
  f = tmp_path / "multi.py"
  f.write_text("class A:\n    _a = _b = 1\n", encoding="utf-8")

  assert handle_check(f, fix=True, json_mode=True) == 1
  data = json.loads(capsys.readouterr().out)
  assert [item["name"] for item in data] == ["_a", "_b"]
  assert f.read_text(encoding="utf-8") == "class A:\n    _a = _b = 1\n"


def test_directory_scan_continues_after_parse_error(tmp_path):
  (tmp_path / "broken.py").write_text("def broken(:\n", encoding="utf-8")
  pkg = tmp_path / "pkg"
  pkg.mkdir()
  (pkg / "service.py").write_text(DIRTY, encoding="utf-8")

  with patch("prefer_final.cli.handlers.check.log_error") as mock_error:
    with patch("prefer_final.cli.handlers.check.console"):
      ret = handle_check(tmp_path, fix=True)

  assert ret == 1
  mock_error.assert_called_once()
  assert "Failed to parse" in mock_error.call_args[0][0]
  assert "Final" in (pkg / "service.py").read_text(encoding="utf-8")


def test_only_inline_lambdas_from_toml(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[tool.prefer_final]\nonlyInlineLambdas = true\n", encoding="utf-8")
  f = tmp_path / "service.py"
  f.write_text(DIRTY, encoding="utf-8")

  assert handle_check(f) == 0
  assert handle_check(f, only_inline_lambdas=False) == 1


def test_invalid_toml_options(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[tool.prefer_final]\nbogus = 1\n", encoding="utf-8")
  f = tmp_path / "service.py"
  f.write_text(DIRTY, encoding="utf-8")

  with patch("prefer_final.cli.handlers.check.log_error") as mock_error:
    assert handle_check(f) == 1
  mock_error.assert_called_once()


def test_main_dispatches_check(dirty_file):
  with patch("prefer_final.cli.handlers.handle_check", return_value=0) as mock_handler:
    ret = main(["check", str(dirty_file), "--fix", "--json"])

  assert ret == 0
  mock_handler.assert_called_once_with(dirty_file, True, True, None)


def test_main_only_inline_lambdas_flag(dirty_file):
  with patch("prefer_final.cli.handlers.handle_check", return_value=0) as mock_handler:
    main(["check", str(dirty_file), "--only-inline-lambdas"])

  mock_handler.assert_called_once_with(dirty_file, False, False, True)


def test_main_end_to_end_json(dirty_file, capsys):
  ret = main(["check", str(dirty_file), "--json"])
  assert ret == 1
  assert json.loads(capsys.readouterr().out)[0]["name"] == "_client"


def test_version(capsys):
  with pytest.raises(SystemExit) as exc:
    main(["--version"])
  assert exc.value.code == 0
  assert __version__ in capsys.readouterr().out


def test_command_is_required():
  with pytest.raises(SystemExit):
    main([])
