"""
Diagnostic Reporting.

This module turns the declarations surviving a class analysis into
`Violation` records with a source location and a message, and keeps the
declarations around so a fixer can annotate them.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional

import libcst as cst
from libcst.metadata import CodeRange
from pydantic import BaseModel, Field

from prefer_final.analysis.declarations import MemberDeclaration
from prefer_final.analysis.types import ClassSymbol
from prefer_final.enums import DeclarationKind, MemberScope

RULE_ID = "prefer-final"
MESSAGE_TEMPLATE = "Member '{name}' is never reassigned; mark it as `Final`."


class Violation(BaseModel):
  """
  A single diagnostic produced by the rule.
  """

  rule: str = Field(default=RULE_ID, description="Identifier of the rule that fired.")
  name: str = Field(description="Display name of the member.")
  class_name: str = Field(description="Qualified name of the declaring class.")
  scope: MemberScope = Field(description="Instance or static member.")
  kind: DeclarationKind = Field(description="Class-body field or constructor-declared member.")
  line: int = Field(default=0, description="1-based line of the member name.")
  column: int = Field(default=0, description="1-based column of the member name.")
  message: str = Field(default="", description="Human readable description.")
  fixable: bool = Field(default=True, description="True if a `Final` annotation can be inserted.")

  def format(self, path: str = "<string>") -> str:
    """Renders the violation in `path:line:col: rule message` form."""
    return f"{path}:{self.line}:{self.column}: {self.rule} {self.message}"


@dataclass
class ViolationRecord:
  """
  A reported declaration and the name shown to the user.
  """

  declaration: MemberDeclaration
  display_name: str


def name_node_of(declaration: MemberDeclaration) -> cst.CSTNode:
  """
  Returns the node spelling the member's name.

  `_x` for fields, the `_x` of `self._x` for constructor members, and the
  whole target for computed names.
  """
  target = declaration.target
  if isinstance(target, cst.Attribute):
    return target.attr
  return target


class DiagnosticReporter:
  """
  Collects violations class by class, in traversal (class exit) order.
  """

  def __init__(self, positions: Optional[Mapping[cst.CSTNode, CodeRange]] = None):
    """
    Args:
        positions: Source ranges of the module's nodes, as resolved by
            `libcst.metadata.PositionProvider`. Without it locations are 0.
    """
    self.positions = positions or {}
    self.records: List[ViolationRecord] = []
    self.violations: List[Violation] = []

  def report(self, class_symbol: ClassSymbol, declarations: List[MemberDeclaration]) -> None:
    """
    Records the violations of one class.

    Args:
        class_symbol: The class whose analysis finished.
        declarations: Its unmodified candidates, in finalize order.
    """
    for declaration in declarations:
      record = ViolationRecord(declaration=declaration, display_name=declaration.name)
      self.records.append(record)
      self.violations.append(self._to_violation(class_symbol, record))

  def _to_violation(self, class_symbol: ClassSymbol, record: ViolationRecord) -> Violation:
    declaration = record.declaration
    line, column = 0, 0
    code_range = self.positions.get(name_node_of(declaration))
    if code_range is not None:
      line, column = code_range.start.line, code_range.start.column + 1

    return Violation(
      name=record.display_name,
      class_name=class_symbol.qualname or class_symbol.name,
      scope=declaration.scope,
      kind=declaration.kind,
      line=line,
      column=column,
      message=MESSAGE_TEMPLATE.format(name=record.display_name),
      fixable=declaration.fixable,
    )
