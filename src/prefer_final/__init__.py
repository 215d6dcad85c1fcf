r"""
prefer-final Package.

A static analysis rule for Python classes: private members that are never
reassigned after construction are reported, and can be annotated `Final`
automatically.

Usage
-----

.. code-block:: python

    import prefer_final
    code = "class Counter:\n    def __init__(self):\n        self._step = 1\n"
    for violation in prefer_final.lint(code):
        print(violation.format())
    # <string>:3:14: prefer-final Member '_step' is never reassigned; mark it as `Final`.

    print(prefer_final.fix(code))

Advanced Usage (Lint Engine)
^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from prefer_final import LintEngine, RuleConfig

    engine = LintEngine(RuleConfig(only_inline_lambdas=True))
    res = engine.run(code, fix=True)
    if res.success:
        print(res.code)
    else:
        print(f"Errors: {res.errors}")
"""

from typing import List

from prefer_final.config import RuleConfig
from prefer_final.core.engine import LintEngine, LintResult
from prefer_final.core.reporter import Violation

__version__ = "0.1.0"


def _run(code: str, only_inline_lambdas: bool, fix: bool) -> LintResult:
  engine = LintEngine(RuleConfig(only_inline_lambdas=only_inline_lambdas))
  result = engine.run(code, fix=fix)
  if not result.success:
    raise ValueError(f"Analysis failed: {result.errors}")
  return result


def lint(code: str, only_inline_lambdas: bool = False) -> List[Violation]:
  """
  Reports the private members of every class in `code` that can be `Final`.

  Args:
      code (str): Python source.
      only_inline_lambdas (bool): If True, only members initialised with a
          lambda (or not initialised) are considered.

  Returns:
      List[Violation]: Violations in class-exit order.

  Raises:
      ValueError: If the source cannot be parsed.
  """
  return _run(code, only_inline_lambdas, fix=False).violations


def fix(code: str, only_inline_lambdas: bool = False) -> str:
  """
  Returns `code` with a `Final` annotation on every fixable violation.

  Raises:
      ValueError: If the source cannot be parsed.
  """
  return _run(code, only_inline_lambdas, fix=True).code


__all__ = [
  "LintEngine",
  "LintResult",
  "RuleConfig",
  "Violation",
  "fix",
  "lint",
  "__version__",
]
