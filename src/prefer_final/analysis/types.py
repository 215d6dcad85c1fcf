"""
Semantic Type Identities.

This module defines the small type universe the mutation analysis reasons
about, and the `TypeResolver` protocol the analysis consumes.

Types are anchored on `ClassSymbol` objects whose identity is the defining
`ClassDef` node. Two classes that happen to share a name (e.g. nested classes
in different scopes) therefore never compare equal.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Union

import libcst as cst

from prefer_final.enums import ModifierFlags


@dataclass(eq=False)
class ClassSymbol:
  """
  A class definition discovered in the analyzed module.

  Equality and hashing are by identity.
  """

  name: str
  """The class name as written (e.g. 'Counter')."""

  node: cst.ClassDef
  """The defining node."""

  qualname: str = ""
  """Dotted lexical path (e.g. 'Outer.Inner')."""

  bases: List["ClassSymbol"] = field(default_factory=list)
  """Base classes that could be resolved inside the module."""

  def __repr__(self) -> str:
    return f"ClassSymbol({self.qualname or self.name})"


@dataclass(frozen=True)
class InstanceType:
  """The type of an instance of `symbol` (what `self` is)."""

  symbol: ClassSymbol

  def __str__(self) -> str:
    return self.symbol.qualname or self.symbol.name


@dataclass(frozen=True)
class ConstructorType:
  """
  The type of the class object itself (what `cls` is).

  This is the anonymous constructor-object type: member accesses through it
  target static members.
  """

  symbol: ClassSymbol

  def __str__(self) -> str:
    return f"type[{self.symbol.qualname or self.symbol.name}]"


ResolvedType = Union[InstanceType, ConstructorType]


class TypeResolver(Protocol):
  """
  Type facts consumed by the class analysis.

  Implementations must never raise for unresolvable input; they return `None`
  or `False` instead.
  """

  def type_of(self, node: cst.CSTNode) -> Optional[ResolvedType]:
    """Returns the semantic type of an expression or class definition."""
    ...

  def is_same_or_subtype(self, candidate: ResolvedType, parent: ResolvedType) -> bool:
    """True if `candidate`'s symbol is `parent`'s symbol or derives from it."""
    ...

  def is_constructor_object_type(self, resolved: ResolvedType) -> bool:
    """True if `resolved` is a class object rather than an instance."""
    ...

  def modifier_flags_of(self, declaration: cst.CSTNode) -> ModifierFlags:
    """Returns the modifier flags of an `Assign` / `AnnAssign` declaration."""
    ...
