"""
Tests for Centralized Logging Utility.

Verifies:
1. Console proxy forwarding and injection (`set_console`).
2. The standard logging wrappers, including the SUCCESS level.
"""

import io
import logging

from rich.console import Console

from prefer_final.utils.console import (
  SUCCESS_LEVEL_NUM,
  console,
  get_console,
  log_error,
  log_info,
  log_success,
  log_warning,
  reset_console,
  set_console,
)


def _capture() -> Console:
  capture_console = Console(record=True, file=io.StringIO(), width=120)
  set_console(capture_console)
  return capture_console


def test_console_proxy_forwards_to_backend():
  capture_console = _capture()
  assert get_console() is capture_console

  console.print("hello proxy")
  assert "hello proxy" in capture_console.export_text()
  # Unknown attributes fall through to the backend
  assert console.width == 120


def test_log_helpers_are_captured():
  capture_console = _capture()

  log_info("scanning")
  log_success("all good")
  log_warning("careful")
  log_error("broken")

  output = capture_console.export_text()
  for text in ("scanning", "all good", "careful", "broken"):
    assert text in output
  assert "SUCCESS" in output


def test_logger_success_method():
  capture_console = _capture()
  logging.getLogger("prefer_final.test").success("promoted")
  assert "promoted" in capture_console.export_text()
  assert logging.getLevelName(SUCCESS_LEVEL_NUM) == "SUCCESS"


def test_reset_restores_fresh_backend():
  temp = _capture()
  reset_console()
  assert get_console() is not temp
