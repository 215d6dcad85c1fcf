"""
Final Annotation Fixer.

Applies the rule's fix: each reported declaration gets a `Final` annotation,
and `from typing import Final` is injected when the module does not import it.

Rewrites:
    `_x = 1`                 ->  `_x: Final = 1`
    `_x: int = 1`            ->  `_x: Final[int] = 1`
    `_x: ClassVar[int] = 1`  ->  `_x: Final[int] = 1`
    `self._x = x`            ->  `self._x: Final = x`
"""

from typing import Iterable, List, Set, Union

import libcst as cst

from prefer_final.analysis.declarations import MemberDeclaration
from prefer_final.utils.ast_utils import annotation_head, is_docstring, is_future_import, subscript_items

_TYPING_MODULES = {"typing", "typing_extensions"}


def _final_of(inner: cst.BaseExpression) -> cst.Subscript:
  return cst.Subscript(
    value=cst.Name("Final"),
    slice=[cst.SubscriptElement(slice=cst.Index(value=inner))],
  )


def finalize_annotation(annotation: cst.BaseExpression) -> cst.BaseExpression:
  """
  Wraps an annotation in `Final`.

  `ClassVar` is replaced rather than wrapped: a `Final` assigned in the class
  body is already a class variable.

  Args:
      annotation: The existing annotation expression.

  Returns:
      The `Final` annotation.
  """
  if annotation_head(annotation) == "ClassVar":
    if isinstance(annotation, cst.Subscript):
      items = subscript_items(annotation)
      if len(items) == 1:
        return _final_of(items[0])
    return cst.Name("Final")
  return _final_of(annotation)


class FinalAnnotationFixer(cst.CSTTransformer):
  """
  Inserts `Final` annotations on the given declarations.

  The transformer must visit the same module the declarations were collected
  from; declarations are matched by node identity.

  Attributes:
      applied (int): Number of declarations rewritten.
  """

  def __init__(self, declarations: Iterable[MemberDeclaration]):
    """
    Args:
        declarations: Reported declarations. Non-fixable ones are skipped.
    """
    super().__init__()
    self._targets: Set[cst.CSTNode] = {d.node for d in declarations if d.fixable}
    self._final_imported = False
    self.applied = 0

  def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
    """Notices an existing `from typing import Final`."""
    if not isinstance(node.module, cst.Name) or node.module.value not in _TYPING_MODULES:
      return
    if isinstance(node.names, cst.ImportStar):
      return
    for alias in node.names:
      bound = alias.asname.name if alias.asname else alias.name
      if isinstance(bound, cst.Name) and bound.value == "Final":
        self._final_imported = True

  def leave_Assign(
    self, original_node: cst.Assign, updated_node: cst.Assign
  ) -> Union[cst.Assign, cst.AnnAssign]:
    if original_node not in self._targets:
      return updated_node
    self.applied += 1
    return cst.AnnAssign(
      target=updated_node.targets[0].target,
      annotation=cst.Annotation(annotation=cst.Name("Final")),
      value=updated_node.value,
      semicolon=updated_node.semicolon,
    )

  def leave_AnnAssign(self, original_node: cst.AnnAssign, updated_node: cst.AnnAssign) -> cst.AnnAssign:
    if original_node not in self._targets:
      return updated_node
    self.applied += 1
    annotation = updated_node.annotation
    return updated_node.with_changes(
      annotation=annotation.with_changes(annotation=finalize_annotation(annotation.annotation))
    )

  def leave_Module(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
    """
    Injects the `Final` import after the docstring and `__future__` imports.
    """
    if not self.applied or self._final_imported:
      return updated_node

    body: List[cst.BaseStatement] = list(updated_node.body)
    insert_idx = 0
    for i, stmt in enumerate(body):
      if is_docstring(stmt, i) or is_future_import(stmt):
        insert_idx = i + 1
        continue
      break

    injection = cst.SimpleStatementLine(
      body=[cst.ImportFrom(module=cst.Name("typing"), names=[cst.ImportAlias(name=cst.Name("Final"))])]
    )
    return updated_node.with_changes(body=body[:insert_idx] + [injection] + body[insert_idx:])
