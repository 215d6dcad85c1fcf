"""
Member Declarations.

Extracts the member declarations a class analysis can promote:

1.  **Fields**: `Assign` / `AnnAssign` statements directly in a class body whose
    target is a plain name (`_x = 1`, `_x: int`, `_y: ClassVar[int] = 0`).
2.  **Constructor members**: the first assignment to `self.<name>` reached
    directly (not through a nested function or class) inside a constructor
    body, for names the class body does not declare. This is the Python
    counterpart of a constructor parameter-property.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Set

import libcst as cst

from prefer_final.analysis.types import ClassSymbol, InstanceType, TypeResolver
from prefer_final.enums import DeclarationKind, MemberScope, ModifierFlags
from prefer_final.utils.ast_utils import is_namespace_subscript, target_member_name

CONSTRUCTOR_NAMES = ("__init__", "__post_init__")


@dataclass(eq=False)
class MemberDeclaration:
  """
  A class member as declared in source.

  Attributes:
      name: Member name (unique within its class).
      scope: Instance or static.
      kind: Where the declaration came from.
      node: The declaring `Assign` / `AnnAssign` statement.
      target: The assignment target naming the member (`Name`, `Attribute` or subscript).
      flags: Modifier flags reported by the type resolver.
      initializer: The assigned value, if any.
      computed: True when the name is given by an expression (`locals()["_x"]`).
      initialized_in_constructor: True when a bare class-body annotation is
          assigned directly in a constructor body.
  """

  name: str
  scope: MemberScope
  kind: DeclarationKind
  node: cst.BaseSmallStatement
  target: cst.BaseExpression
  flags: ModifierFlags = ModifierFlags.NONE
  initializer: Optional[cst.BaseExpression] = None
  computed: bool = False
  initialized_in_constructor: bool = False

  @property
  def is_private(self) -> bool:
    return ModifierFlags.PRIVATE in self.flags

  @property
  def is_readonly(self) -> bool:
    return ModifierFlags.READONLY in self.flags

  @property
  def fixable(self) -> bool:
    """
    A `Final` annotation can be inserted on single-target assignments only.

    A bare annotation (`_x: int`) is fixable only if a constructor assigns
    it, since an uninitialised `Final` is rejected by type checkers.
    """
    if self.computed:
      return False
    if isinstance(self.node, cst.Assign):
      return len(self.node.targets) == 1
    if not isinstance(self.node, cst.AnnAssign):
      return False
    return self.node.value is not None or self.initialized_in_constructor


def is_constructor(node: cst.FunctionDef, class_node: cst.ClassDef) -> bool:
  """
  True if `node` is a constructor defined directly in `class_node`'s body.
  """
  if node.name.value not in CONSTRUCTOR_NAMES:
    return False
  body = class_node.body
  return isinstance(body, cst.IndentedBlock) and any(stmt is node for stmt in body.body)


def collect_field_declarations(class_node: cst.ClassDef, resolver: TypeResolver) -> List[MemberDeclaration]:
  """
  Returns the field declarations of a class body, in source order.

  Args:
      class_node: The class definition.
      resolver: Source of modifier flags.

  Returns:
      One declaration per named target.
  """
  declarations: List[MemberDeclaration] = []
  for small in _small_statements(class_node.body):
    for target, value in _assignment_targets(small):
      if not isinstance(target, cst.Name) and not is_namespace_subscript(target):
        continue
      declaration = _build(small, target, value, DeclarationKind.FIELD, resolver)
      if declaration is not None:
        declarations.append(declaration)
  return declarations


def collect_constructor_declarations(
  constructor: cst.FunctionDef,
  class_symbol: ClassSymbol,
  resolver: TypeResolver,
  known_names: Set[str],
) -> List[MemberDeclaration]:
  """
  Returns the members a constructor introduces through `self.<name> = ...`.

  Only statements directly in the constructor body (including nested blocks
  such as `if` / `try`, excluding nested functions and classes) are scanned.
  A name is declared by its first assignment; names in `known_names` are
  skipped.

  Args:
      constructor: The `__init__` / `__post_init__` definition.
      class_symbol: The class owning the constructor.
      resolver: Used to recognise the instance parameter and for modifier flags.
      known_names: Names already declared by the class body.

  Returns:
      Declarations in source order.
  """
  declarations: List[MemberDeclaration] = []
  seen = set(known_names)
  instance = InstanceType(class_symbol)

  for small in _constructor_statements(constructor.body):
    for target, value in _assignment_targets(small):
      if isinstance(target, cst.Attribute):
        base_type = resolver.type_of(target.value)
        if base_type != instance:
          continue
      elif is_namespace_subscript(target):
        call = target.value
        if not call.args or resolver.type_of(call.args[0].value) != instance:
          continue
      else:
        continue

      name = target_member_name(target)
      if name is None or name in seen:
        continue
      seen.add(name)
      declaration = _build(small, target, value, DeclarationKind.CONSTRUCTOR, resolver)
      if declaration is not None:
        declarations.append(declaration)
  return declarations


def _build(
  small: cst.BaseSmallStatement,
  target: cst.BaseExpression,
  value: Optional[cst.BaseExpression],
  kind: DeclarationKind,
  resolver: TypeResolver,
) -> Optional[MemberDeclaration]:
  name = target_member_name(target)
  if name is None:
    return None
  flags = resolver.modifier_flags_of(small)
  scope = MemberScope.STATIC if ModifierFlags.STATIC in flags else MemberScope.INSTANCE
  return MemberDeclaration(
    name=name,
    scope=scope,
    kind=kind,
    node=small,
    target=target,
    flags=flags,
    initializer=value,
    computed=not isinstance(target, (cst.Name, cst.Attribute)),
  )


def _assignment_targets(small: cst.BaseSmallStatement) -> Iterator[tuple]:
  """Yields `(target, value)` for simple assignment statements."""
  if isinstance(small, cst.Assign):
    for target in small.targets:
      yield target.target, small.value
  elif isinstance(small, cst.AnnAssign):
    yield small.target, small.value


def _small_statements(block: cst.BaseSuite) -> Iterator[cst.BaseSmallStatement]:
  """Small statements directly in a suite (no descent into compound statements)."""
  if isinstance(block, cst.SimpleStatementSuite):
    yield from block.body
    return
  for stmt in block.body:
    if isinstance(stmt, cst.SimpleStatementLine):
      yield from stmt.body


def _constructor_statements(block: cst.BaseSuite) -> Iterator[cst.BaseSmallStatement]:
  """
  Small statements of a constructor body, descending into control flow but
  never into nested function or class definitions.
  """
  if isinstance(block, cst.SimpleStatementSuite):
    yield from block.body
    return
  for stmt in block.body:
    if isinstance(stmt, cst.SimpleStatementLine):
      yield from stmt.body
    elif isinstance(stmt, (cst.FunctionDef, cst.ClassDef)):
      continue
    elif isinstance(stmt, cst.BaseCompoundStatement):
      for suite in _child_suites(stmt):
        yield from _constructor_statements(suite)


def _child_suites(stmt: cst.BaseCompoundStatement) -> Sequence[cst.BaseSuite]:
  """Every suite owned by a compound statement, in source order."""
  if isinstance(stmt, cst.Match):
    return [case.body for case in stmt.cases]

  suites: List[cst.BaseSuite] = [stmt.body]
  if isinstance(stmt, (cst.Try, cst.TryStar)):
    suites.extend(handler.body for handler in stmt.handlers)

  orelse = getattr(stmt, "orelse", None)
  while orelse is not None:
    suites.append(orelse.body)
    # `elif` chains are nested If nodes
    orelse = getattr(orelse, "orelse", None) if isinstance(orelse, cst.If) else None

  final = getattr(stmt, "finalbody", None)
  if final is not None:
    suites.append(final.body)
  return suites
