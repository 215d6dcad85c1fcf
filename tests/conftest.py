"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Console isolation so CLI output is captured per test.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'prefer_final' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from prefer_final.utils.console import reset_console  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_console():
  """
  Rebinds the shared console to the current (captured) stdout for each test.
  """
  reset_console()
  yield
  reset_console()
