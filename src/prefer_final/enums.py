"""
Enumerations for prefer-final.

This module defines the tagged variants shared by the analysis passes:
member scopes, declaration origins, modification verdicts and the
modifier flags reported by the type resolver.
"""

from enum import Enum, Flag, auto


class MemberScope(str, Enum):
  """
  Where a class member lives.

  Instance members are reached through `self`; static members through the
  class object (`cls`, the class name, `type(self)`).
  """

  INSTANCE = "instance"
  STATIC = "static"


class DeclarationKind(str, Enum):
  """
  Origin of a member declaration.
  """

  FIELD = "field"  # Assignment directly in the class body
  CONSTRUCTOR = "constructor"  # First `self.x = ...` in __init__ / __post_init__


class ModificationKind(str, Enum):
  """
  Verdicts produced by the mutation classifier.

  Every syntactic write-shape maps to exactly one member. `INCREMENT` and
  `DECREMENT` are separated from `COMPOUND_ASSIGNMENT` because they disqualify
  a member even when written directly inside the constructor body.
  """

  ASSIGNMENT = "assignment"
  COMPOUND_ASSIGNMENT = "compound_assignment"
  DESTRUCTURE = "destructure"
  DELETE = "delete"
  INCREMENT = "increment"
  DECREMENT = "decrement"

  @property
  def always_counts(self) -> bool:
    """True if the verdict disqualifies regardless of constructor depth."""
    return self in (ModificationKind.INCREMENT, ModificationKind.DECREMENT)


class ModifierFlags(Flag):
  """
  Modifier facts about a member declaration.
  """

  NONE = 0
  PRIVATE = auto()
  STATIC = auto()
  READONLY = auto()
