"""
ast_utils, small syntactic helpers shared by the analysis passes.
"""

from typing import Optional, Union

import libcst as cst

_NAMESPACE_CALLS = {"locals", "vars"}


def get_full_name(node: Union[cst.Name, cst.Attribute]) -> str:
  """
  Recursively resolves a CST Name or Attribute chain to a dot-separated string.

  Args:
    node: The CST node representing the identifier.

  Returns:
    str: The dotted representation (e.g. "typing.Final"), or an empty string
    if the node is not a Name/Attribute chain.

  Example:
    >>> get_full_name(cst.Attribute(value=cst.Name("typing"), attr=cst.Name("Final")))
    'typing.Final'
  """
  if isinstance(node, cst.Name):
    return node.value
  elif isinstance(node, cst.Attribute):
    prefix = get_full_name(node.value)
    return f"{prefix}.{node.attr.value}" if prefix else ""
  return ""


def annotation_head(node: Optional[cst.BaseExpression]) -> str:
  """
  Returns the last dotted component naming an annotation.

  `Final`, `typing.Final` and `Final[int]` all yield "Final".
  """
  if isinstance(node, cst.Subscript):
    node = node.value
  if isinstance(node, (cst.Name, cst.Attribute)):
    return get_full_name(node).rsplit(".", 1)[-1]
  return ""


def subscript_items(node: cst.Subscript) -> list:
  """Returns the index expressions of `X[a, b]` as `[a, b]`."""
  return [el.slice.value for el in node.slice if isinstance(el.slice, cst.Index)]


def is_private_name(name: str) -> bool:
  """
  Private by convention: one or more leading underscores, not a dunder.
  """
  if not name.startswith("_"):
    return False
  return not (name.startswith("__") and name.endswith("__") and len(name) > 4)


def is_namespace_subscript(node: cst.CSTNode) -> bool:
  """True for `locals()[...]` / `vars(obj)[...]` targets."""
  return (
    isinstance(node, cst.Subscript)
    and isinstance(node.value, cst.Call)
    and isinstance(node.value.func, cst.Name)
    and node.value.func.value in _NAMESPACE_CALLS
  )


def target_member_name(target: cst.CSTNode) -> Optional[str]:
  """
  Extracts the member name introduced by an assignment target.

  Handles `name`, `obj.name` and namespace subscripts with a literal key
  (`locals()["name"]`).
  """
  if isinstance(target, cst.Name):
    return target.value
  if isinstance(target, cst.Attribute):
    return target.attr.value
  if is_namespace_subscript(target):
    items = subscript_items(target)
    if len(items) == 1 and isinstance(items[0], cst.SimpleString):
      key = items[0].evaluated_value
      return key if isinstance(key, str) else None
  return None


def is_integer_one(node: cst.BaseExpression) -> bool:
  """True for the integer literal `1` in any base (`1`, `0x1`, `0b1`)."""
  if not isinstance(node, cst.Integer):
    return False
  try:
    return int(node.value.replace("_", ""), 0) == 1
  except ValueError:
    return False


def is_docstring(node: cst.CSTNode, idx: int) -> bool:
  """
  Determines if a statement node represents a module docstring.

  Args:
      node: The statement node from the module body.
      idx: The index of this statement in the body list.

  Returns:
      bool: True if it is a docstring (string expression at index 0).
  """
  if idx != 0:
    return False
  if isinstance(node, cst.SimpleStatementLine):
    if len(node.body) == 1 and isinstance(node.body[0], cst.Expr):
      expr = node.body[0].value
      if isinstance(expr, (cst.SimpleString, cst.ConcatenatedString)):
        return True
  return False


def is_future_import(node: cst.CSTNode) -> bool:
  """
  Determines if a statement is a `from __future__ import ...` directive.
  """
  if isinstance(node, cst.SimpleStatementLine):
    for small_stmt in node.body:
      if isinstance(small_stmt, cst.ImportFrom):
        if small_stmt.module and isinstance(small_stmt.module, cst.Name):
          if small_stmt.module.value == "__future__":
            return True
  return False
