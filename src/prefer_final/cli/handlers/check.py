"""
Check Command Handler.

Runs the prefer-final rule over a file or directory, renders the violations
(Rich table or JSON) and optionally rewrites the files with `Final`
annotations applied.
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

from rich.table import Table

from prefer_final.config import RuleConfig
from prefer_final.core.engine import LintEngine
from prefer_final.core.reporter import Violation
from prefer_final.utils.console import console, log_error, log_info, log_success


def _collect_files(path: Path) -> List[Path]:
  if path.is_file():
    return [path]
  return sorted(path.rglob("*.py"))


def handle_check(
  path: Path,
  fix: bool = False,
  json_mode: bool = False,
  only_inline_lambdas: Optional[bool] = None,
) -> int:
  """
  Lints a file or every `*.py` file under a directory.

  Args:
      path: Input source file or directory.
      fix: If True, files are rewritten with `Final` annotations.
      json_mode: If True, output JSON to stdout and suppress Rich logs.
      only_inline_lambdas: Override for the rule option (default: from toml).

  Returns:
      int: Exit code (0 if clean, 1 if violations remain, a file failed to
           parse, or the path does not exist).
  """
  if not path.exists():
    log_error(f"Path not found: {path}")
    return 1

  try:
    config = RuleConfig.load(
      only_inline_lambdas=only_inline_lambdas,
      search_path=path if path.is_dir() else path.parent,
    )
  except ValueError as e:
    log_error(str(e))
    return 1

  engine = LintEngine(config)
  files = _collect_files(path)

  if not json_mode:
    log_info(f"Checking {len(files)} files...")

  findings: List[Tuple[Path, Violation]] = []
  failures = 0
  fixed_total = 0

  for f in files:
    try:
      code = f.read_text("utf-8")
    except (OSError, UnicodeDecodeError) as e:
      log_error(f"Failed to read {f}: {e}")
      failures += 1
      continue

    result = engine.run(code, fix=fix)
    if not result.success:
      # Parse errors are logged even in JSON mode
      log_error(f"Failed to parse {f}: {'; '.join(result.errors)}")
      failures += 1
      continue

    if fix and result.fixed:
      f.write_text(result.code, "utf-8")
      fixed_total += result.fixed

    remaining = [v for v in result.violations if not (fix and v.fixable)]
    findings.extend((f, v) for v in remaining)

  if json_mode:
    output_list = []
    for f, v in findings:
      item = {"path": str(f)}
      item.update(v.model_dump(mode="json"))
      output_list.append(item)
    print(json.dumps(output_list, indent=2))
    return 1 if findings or failures else 0

  if findings:
    table = Table(title="Members that can be Final")
    table.add_column("Location", style="bold blue")
    table.add_column("Class", style="cyan")
    table.add_column("Member", style="bold magenta")
    table.add_column("Scope", style="dim")
    table.add_column("Fixable", style="dim")

    for f, v in findings:
      table.add_row(
        f"{f}:{v.line}:{v.column}",
        v.class_name,
        v.name,
        v.scope.value,
        "yes" if v.fixable else "no",
      )
    console.print(table)

  if fixed_total:
    log_success(f"Annotated {fixed_total} members with Final.")

  if not findings and not failures:
    log_success("No promotable members found.")

  return 1 if findings or failures else 0
