"""
Main Entry Point for the prefer-final CLI.

This module handles argument parsing and dispatches to the command handlers
defined in `prefer_final.cli.handlers`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from prefer_final import __version__
from prefer_final.cli import handlers


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="prefer-final: Find class members that can be Final")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: CHECK ---
  cmd_check = subparsers.add_parser("check", help="Report private members that are never reassigned")
  cmd_check.add_argument("path", type=Path, help="Input source file or directory")
  cmd_check.add_argument("--fix", action="store_true", help="Annotate the reported members with Final in place")
  cmd_check.add_argument("--json", action="store_true", dest="json_mode", help="Output violations as JSON")
  cmd_check.add_argument(
    "--only-inline-lambdas",
    action="store_true",
    default=None,
    help="Only consider members initialised with a lambda (Overrides config)",
  )

  args = parser.parse_args(argv)

  if args.command == "check":
    return handlers.handle_check(args.path, args.fix, args.json_mode, args.only_inline_lambdas)

  return 0


if __name__ == "__main__":
  sys.exit(main())
