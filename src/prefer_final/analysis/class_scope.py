"""
Class Analysis Context.

This module provides the per-class state of the mutation analysis and the
stack that owns it while classes are traversed.

A `ClassScope` tracks:
1.  **Candidates**: private, non-Final members, split by instance/static scope.
2.  **Modifications**: names written outside the direct constructor body.
3.  **Constructor depth**: `OUTSIDE_CONSTRUCTOR` when not in a constructor,
    `DIRECTLY_INSIDE_CONSTRUCTOR` (0) in its body, and >0 inside functions
    nested in the constructor.

Candidates and modifications are keyed by member name. A class body has a
single namespace, so a repeated class-body assignment to a name is recorded
as a modification of that name rather than as a second declaration.
"""

import logging
from typing import Dict, List, Optional, Set

import libcst as cst

from prefer_final.analysis.declarations import (
  MemberDeclaration,
  collect_constructor_declarations,
  collect_field_declarations,
)
from prefer_final.analysis.eligibility import is_eligible
from prefer_final.analysis.types import ClassSymbol, ResolvedType, TypeResolver
from prefer_final.enums import DeclarationKind, MemberScope, ModificationKind

logger = logging.getLogger(__name__)

OUTSIDE_CONSTRUCTOR = -1
DIRECTLY_INSIDE_CONSTRUCTOR = 0


class ClassScope:
  """
  Mutation bookkeeping for a single class body.
  """

  def __init__(
    self,
    resolver: TypeResolver,
    class_type: ResolvedType,
    only_inline_lambdas: bool = False,
  ):
    """
    Args:
        resolver: Source of type facts.
        class_type: The instance type of the analyzed class.
        only_inline_lambdas: Restrict candidates to lambda-valued members.
    """
    self.resolver = resolver
    self.class_type = class_type
    self.only_inline_lambdas = only_inline_lambdas
    self.constructor_depth = OUTSIDE_CONSTRUCTOR

    self._candidates: Dict[MemberScope, Dict[str, MemberDeclaration]] = {
      MemberScope.INSTANCE: {},
      MemberScope.STATIC: {},
    }
    self._modifications: Dict[MemberScope, Set[str]] = {
      MemberScope.INSTANCE: set(),
      MemberScope.STATIC: set(),
    }
    self._declared_names: Set[str] = set()
    self._constructor_assigned: Set[str] = set()

  @classmethod
  def for_class(
    cls,
    node: cst.ClassDef,
    resolver: TypeResolver,
    only_inline_lambdas: bool = False,
  ) -> Optional["ClassScope"]:
    """
    Builds the scope of a class and registers its field declarations.

    Returns:
        The scope, or None if the resolver does not know the class.
    """
    class_type = resolver.type_of(node)
    if class_type is None:
      return None
    scope = cls(resolver, class_type, only_inline_lambdas)
    for declaration in collect_field_declarations(node, resolver):
      scope.register_candidate(declaration)
    return scope

  @property
  def class_symbol(self) -> ClassSymbol:
    return self.class_type.symbol

  def register_candidate(self, declaration: MemberDeclaration) -> None:
    """
    Adds a declaration to the candidates if it passes the eligibility filter.

    Ineligible declarations are ignored, but their names still count as
    declared so a constructor cannot re-declare them. A class-body name
    declared a second time is a reassignment of the first.
    """
    if declaration.name in self._declared_names:
      if declaration.kind == DeclarationKind.FIELD:
        logger.debug("%s: redeclaration of '%s'", self.class_symbol.qualname, declaration.name)
        for names in self._modifications.values():
          names.add(declaration.name)
      return
    self._declared_names.add(declaration.name)
    if not is_eligible(declaration, self.only_inline_lambdas):
      return
    self._candidates[declaration.scope].setdefault(declaration.name, declaration)

  def record_modification(self, target: cst.Attribute, verdict: ModificationKind) -> None:
    """
    Records a write to `target` if it hits a member of this class.

    Writes through an unrelated (or unresolvable) type are ignored. Instance
    writes directly in the constructor body are initialisation and do not
    count, except increments and decrements.

    Args:
        target: The member-access expression being written.
        verdict: The classifier's verdict for the access.
    """
    base_type = self.resolver.type_of(target.value)
    if base_type is None or not self.resolver.is_same_or_subtype(base_type, self.class_type):
      return

    if self.resolver.is_constructor_object_type(base_type):
      scope = MemberScope.STATIC
    else:
      scope = MemberScope.INSTANCE
      if self.constructor_depth == DIRECTLY_INSIDE_CONSTRUCTOR and not verdict.always_counts:
        self._constructor_assigned.add(target.attr.value)
        return

    name = target.attr.value
    logger.debug("%s: %s of %s member '%s'", self.class_symbol.qualname, verdict.value, scope.value, name)
    self._modifications[scope].add(name)

  def enter_constructor(self, node: cst.FunctionDef) -> None:
    """
    Enters a constructor body and registers the members it declares.
    """
    self.constructor_depth = DIRECTLY_INSIDE_CONSTRUCTOR
    declarations = collect_constructor_declarations(node, self.class_symbol, self.resolver, self._declared_names)
    for declaration in declarations:
      self.register_candidate(declaration)

  def exit_constructor(self) -> None:
    self.constructor_depth = OUTSIDE_CONSTRUCTOR

  def enter_nested_function_scope(self) -> None:
    if self.constructor_depth != OUTSIDE_CONSTRUCTOR:
      self.constructor_depth += 1

  def exit_nested_function_scope(self) -> None:
    if self.constructor_depth != OUTSIDE_CONSTRUCTOR:
      self.constructor_depth -= 1

  def finalize(self) -> List[MemberDeclaration]:
    """
    Subtracts modified names from the candidates.

    Writes through the class object also reach unannotated class-body fields,
    which live in the same namespace as `ClassVar` members.

    Returns:
        Unmodified instance candidates followed by unmodified static candidates,
        each in registration order.
    """
    for scope, names in self._modifications.items():
      candidates = self._candidates[scope]
      for name in names:
        candidates.pop(name, None)

    instance = self._candidates[MemberScope.INSTANCE]
    for name in self._modifications[MemberScope.STATIC]:
      declaration = instance.get(name)
      if declaration is not None and declaration.kind == DeclarationKind.FIELD:
        del instance[name]

    for name, declaration in instance.items():
      if name in self._constructor_assigned:
        declaration.initialized_in_constructor = True

    return [
      *self._candidates[MemberScope.INSTANCE].values(),
      *self._candidates[MemberScope.STATIC].values(),
    ]


class ClassScopeStack:
  """
  LIFO stack of the class scopes currently being traversed.
  """

  def __init__(self):
    self._scopes: List[ClassScope] = []

  def __len__(self) -> int:
    return len(self._scopes)

  def __bool__(self) -> bool:
    return bool(self._scopes)

  def push(self, scope: ClassScope) -> None:
    self._scopes.append(scope)

  def pop(self) -> ClassScope:
    """
    Raises:
        IndexError: If the stack is empty.
    """
    return self._scopes.pop()

  def current(self) -> ClassScope:
    """
    Returns the innermost class scope.

    Raises:
        IndexError: If the stack is empty.
    """
    if not self._scopes:
      raise IndexError("No class scope is active")
    return self._scopes[-1]
