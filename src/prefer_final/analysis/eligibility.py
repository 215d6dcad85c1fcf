"""
Candidate Eligibility.

Decides whether a member declaration may be promoted to `Final`. The same
filter applies to class-body fields and to constructor-declared members.
"""

import libcst as cst

from prefer_final.analysis.declarations import MemberDeclaration


def is_eligible(declaration: MemberDeclaration, only_inline_lambdas: bool = False) -> bool:
  """
  Checks a declaration against the promotion rules.

  A declaration is eligible iff it is private, not already `Final`, not
  declared through a computed name and, when `only_inline_lambdas` is set,
  has either no initializer or a lambda initializer.

  Args:
      declaration: The member declaration to check.
      only_inline_lambdas: Restrict candidates to lambda-valued members.

  Returns:
      bool: True if the member can become a candidate.
  """
  if not declaration.is_private or declaration.is_readonly or declaration.computed:
    return False

  if only_inline_lambdas and declaration.initializer is not None:
    return isinstance(declaration.initializer, cst.Lambda)

  return True
