"""
Mutation Classifier.

Pure classification of a member access (`obj.name`) by its syntactic context.
Each write-shape maps to one `ModificationKind`; every other context (reads,
call receivers, conditions, `obj.name.attr = ...`) is not a modification.

Write-shapes:
1.  **Assignment**: `obj.x = v`, `obj.x: T = v`, `for obj.x in ...`, `with ... as obj.x`.
2.  **Compound assignment**: `obj.x += v`, `obj.x |= v`, ...
3.  **Increment / decrement**: `obj.x += 1`, `obj.x -= 1`.
4.  **Delete**: `del obj.x`, `del (obj.x, obj.y)`.
5.  **Destructuring**: `obj.x, obj.y = pair`, `[*obj.rest] = items`, nested at any depth.
"""

from typing import Callable, Dict, Optional, Type

import libcst as cst

from prefer_final.enums import ModificationKind
from prefer_final.utils.ast_utils import is_integer_one

ParentLookup = Callable[[cst.CSTNode], Optional[cst.CSTNode]]

# Nodes a destructuring walk passes through on its way to the assignment.
_PATTERN_NODES = (cst.Element, cst.StarredElement, cst.Tuple, cst.List)

_STEP_OPERATORS = {
  cst.AddAssign: ModificationKind.INCREMENT,
  cst.SubtractAssign: ModificationKind.DECREMENT,
}


def _assign_target(parent: cst.AssignTarget, child: cst.CSTNode) -> Optional[ModificationKind]:
  return ModificationKind.ASSIGNMENT if parent.target is child else None


def _ann_assign(parent: cst.AnnAssign, child: cst.CSTNode) -> Optional[ModificationKind]:
  # A bare annotation (`obj.x: int`) declares without writing.
  if parent.target is child and parent.value is not None:
    return ModificationKind.ASSIGNMENT
  return None


def _aug_assign(parent: cst.AugAssign, child: cst.CSTNode) -> Optional[ModificationKind]:
  if parent.target is not child:
    return None
  step = _STEP_OPERATORS.get(type(parent.operator))
  if step is not None and is_integer_one(parent.value):
    return step
  return ModificationKind.COMPOUND_ASSIGNMENT


def _delete(parent: cst.Del, child: cst.CSTNode) -> Optional[ModificationKind]:
  return ModificationKind.DELETE if parent.target is child else None


def _loop_target(parent: cst.CSTNode, child: cst.CSTNode) -> Optional[ModificationKind]:
  return ModificationKind.ASSIGNMENT if parent.target is child else None


def _as_name(parent: cst.AsName, child: cst.CSTNode) -> Optional[ModificationKind]:
  return ModificationKind.ASSIGNMENT if parent.name is child else None


_DIRECT_HANDLERS: Dict[Type[cst.CSTNode], Callable[..., Optional[ModificationKind]]] = {
  cst.AssignTarget: _assign_target,
  cst.AnnAssign: _ann_assign,
  cst.AugAssign: _aug_assign,
  cst.Del: _delete,
  cst.For: _loop_target,
  cst.CompFor: _loop_target,
  cst.AsName: _as_name,
}

# Statements that can receive an unpacking pattern, and the verdict they give.
_PATTERN_TERMINALS: Dict[Type[cst.CSTNode], ModificationKind] = {
  cst.AssignTarget: ModificationKind.DESTRUCTURE,
  cst.For: ModificationKind.DESTRUCTURE,
  cst.CompFor: ModificationKind.DESTRUCTURE,
  cst.AsName: ModificationKind.DESTRUCTURE,
  cst.Del: ModificationKind.DELETE,
}


def classify_modification(node: cst.Attribute, parent_of: ParentLookup) -> Optional[ModificationKind]:
  """
  Classifies a member access by its syntactic parent chain.

  Args:
      node: The member-access expression.
      parent_of: Returns the parent of a node (e.g. libcst's ParentNodeProvider).

  Returns:
      The modification verdict, or None if the access does not write the member.
  """
  parent = parent_of(node)
  if parent is None:
    return None

  handler = _DIRECT_HANDLERS.get(type(parent))
  if handler is not None:
    return handler(parent, node)

  if isinstance(parent, _PATTERN_NODES):
    return _classify_destructuring(node, parent_of)

  return None


def _classify_destructuring(node: cst.Attribute, parent_of: ParentLookup) -> Optional[ModificationKind]:
  """
  Walks up through tuple/list patterns and starred elements.

  The access is a write only if the walk ends at a plain assignment (or loop,
  `with` or `del` target) whose target is the walked pattern itself. Any other
  terminating parent (a call, a return, the right-hand side) is a read.
  """
  current: cst.CSTNode = node
  parent = parent_of(node)
  while isinstance(parent, _PATTERN_NODES):
    current = parent
    parent = parent_of(parent)

  if parent is None or current is node:
    return None

  verdict = _PATTERN_TERMINALS.get(type(parent))
  if verdict is None:
    return None
  # The pattern must be the receiving side, not e.g. the iterable of a `for`.
  receiver = parent.name if isinstance(parent, cst.AsName) else parent.target
  return verdict if receiver is current else None
