"""
Lint Engine.

Orchestrates a single-file run of the prefer-final rule:

1.  **Parse** the source into a LibCST module.
2.  **Resolve** class types with the symbol-table pre-pass.
3.  **Track** member mutations class by class.
4.  **Report** the surviving members as violations.
5.  **Fix** (optional) by inserting `Final` annotations.
"""

import logging
from typing import List, Optional

import libcst as cst
from libcst.metadata import PositionProvider
from pydantic import BaseModel, Field

from prefer_final.analysis.mutation_tracker import MutationTracker
from prefer_final.analysis.symbol_table import PythonTypeResolver
from prefer_final.config import RuleConfig
from prefer_final.core.fixer import FinalAnnotationFixer
from prefer_final.core.reporter import DiagnosticReporter, Violation

logger = logging.getLogger(__name__)


class LintResult(BaseModel):
  """
  Container for the results of linting one source unit.
  """

  code: str = Field(default="", description="The source code, rewritten if fixes were applied.")
  violations: List[Violation] = Field(default_factory=list, description="Members that can be marked Final.")
  errors: List[str] = Field(default_factory=list, description="List of error messages encountered.")
  success: bool = Field(default=True, description="True if the source could be analyzed.")
  fixed: int = Field(default=0, description="Number of declarations rewritten by the fixer.")

  @property
  def has_errors(self) -> bool:
    """
    Check if the result contains any error messages.

    Returns:
        True if one or more errors are present.
    """
    return len(self.errors) > 0


class LintEngine:
  """
  Runs the prefer-final rule over Python source strings.
  """

  def __init__(self, config: Optional[RuleConfig] = None):
    """
    Args:
        config (RuleConfig, optional): Rule options. Defaults are used if None.
    """
    self.config = config or RuleConfig()

  def parse(self, code: str) -> cst.Module:
    """
    Parses source string into a LibCST Module.

    Raises:
        libcst.ParserSyntaxError: If the input code is invalid Python.
    """
    return cst.parse_module(code)

  def run(self, code: str, fix: bool = False) -> LintResult:
    """
    Lints a source string.

    Args:
        code (str): The input source.
        fix (bool): If True, the returned code has `Final` annotations applied.

    Returns:
        LintResult: Violations, and the (possibly rewritten) code. Parse failures
        are reported through `errors` with `success=False`.
    """
    try:
      module = self.parse(code)
    except cst.ParserSyntaxError as e:
      return LintResult(code=code, errors=[f"Syntax Error: {e}"], success=False)

    wrapper = cst.MetadataWrapper(module)
    resolver = PythonTypeResolver.from_module(wrapper.module)
    reporter = DiagnosticReporter(wrapper.resolve(PositionProvider))
    tracker = MutationTracker(resolver, reporter, only_inline_lambdas=self.config.only_inline_lambdas)
    wrapper.visit(tracker)

    result = LintResult(code=code, violations=reporter.violations)
    if fix and reporter.records:
      fixer = FinalAnnotationFixer(r.declaration for r in reporter.records)
      result.code = wrapper.module.visit(fixer).code
      result.fixed = fixer.applied
      logger.debug("Applied %d Final annotations", fixer.applied)

    return result
