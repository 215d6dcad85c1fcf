"""
Mutation Tracking for Class Member Promotion.

This module provides the `MutationTracker`, a LibCST visitor that finds private
class members which are never reassigned outside their constructor and can
therefore be annotated `Final`.

It maintains a stack of `ClassScope` contexts to handle nested class
definitions. For each node category it drives the innermost context:

1.  **ClassDef**: push a context on entry; finalize it on exit and hand the
    surviving candidates to the reporter.
2.  **Constructors** (`__init__` / `__post_init__` in the class body): enter and
    exit constructor tracking.
3.  **Other functions and lambdas**: nested function-scope boundaries.
4.  **Attribute**: classify the access and record writes.

The tracker must be run through `cst.MetadataWrapper` (it depends on
`ParentNodeProvider`), over the same module the resolver was built from.
"""

import logging
from typing import List, Optional, Protocol, Set

import libcst as cst
from libcst.metadata import ParentNodeProvider

from prefer_final.analysis.class_scope import ClassScope, ClassScopeStack
from prefer_final.analysis.classifier import classify_modification
from prefer_final.analysis.declarations import MemberDeclaration, is_constructor
from prefer_final.analysis.types import ClassSymbol, TypeResolver

logger = logging.getLogger(__name__)


class ViolationSink(Protocol):
  """Consumer of finalized violations, one call per class."""

  def report(self, class_symbol: ClassSymbol, declarations: List[MemberDeclaration]) -> None: ...


class MutationTracker(cst.CSTVisitor):
  """
  Walks a module and reports members that can be promoted to `Final`.
  """

  METADATA_DEPENDENCIES = (ParentNodeProvider,)

  def __init__(self, resolver: TypeResolver, sink: ViolationSink, only_inline_lambdas: bool = False):
    """
    Args:
        resolver: Type facts for the visited module.
        sink: Receives each class's violations when the class is exited.
        only_inline_lambdas: Restrict candidates to lambda-valued members.
    """
    super().__init__()
    self.resolver = resolver
    self.sink = sink
    self.only_inline_lambdas = only_inline_lambdas
    self._scope_stack = ClassScopeStack()
    self._tracked_classes: Set[cst.ClassDef] = set()
    self._constructors: Set[cst.FunctionDef] = set()

  # --- Classes ---

  def visit_ClassDef(self, node: cst.ClassDef) -> None:
    """
    Enters a class definition.
    Pushes a new context holding the class body's field declarations.
    """
    scope = ClassScope.for_class(node, self.resolver, self.only_inline_lambdas)
    if scope is None:
      logger.debug("Skipping class '%s': type unavailable", node.name.value)
      return
    self._tracked_classes.add(node)
    self._scope_stack.push(scope)

  def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
    """
    Exits a class definition and reports its unmodified candidates.
    """
    if original_node not in self._tracked_classes:
      return
    self._tracked_classes.discard(original_node)

    scope = self._scope_stack.pop()
    violations = scope.finalize()
    if violations:
      logger.debug(
        "Class '%s': promotable members %s",
        scope.class_symbol.qualname,
        [d.name for d in violations],
      )
    self.sink.report(scope.class_symbol, violations)

  # --- Function scope boundaries ---

  def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
    """
    Tracks entry into a constructor or a nested function scope.
    """
    scope = self._current()
    if scope is None:
      return
    if is_constructor(node, scope.class_symbol.node):
      self._constructors.add(node)
      scope.enter_constructor(node)
    else:
      scope.enter_nested_function_scope()

  def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
    scope = self._current()
    if scope is None:
      return
    if original_node in self._constructors:
      self._constructors.discard(original_node)
      scope.exit_constructor()
    else:
      scope.exit_nested_function_scope()

  def visit_Lambda(self, node: cst.Lambda) -> None:
    scope = self._current()
    if scope is not None:
      scope.enter_nested_function_scope()

  def leave_Lambda(self, original_node: cst.Lambda) -> None:
    scope = self._current()
    if scope is not None:
      scope.exit_nested_function_scope()

  # --- Member access ---

  def visit_Attribute(self, node: cst.Attribute) -> None:
    """
    Routes every member access through the classifier into the current context.
    """
    scope = self._current()
    if scope is None:
      return
    verdict = classify_modification(node, self._parent_of)
    if verdict is not None:
      scope.record_modification(node, verdict)

  # --- Helpers ---

  def _current(self) -> Optional[ClassScope]:
    return self._scope_stack.current() if self._scope_stack else None

  def _parent_of(self, node: cst.CSTNode) -> Optional[cst.CSTNode]:
    return self.get_metadata(ParentNodeProvider, node, None)
