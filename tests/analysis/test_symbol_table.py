"""
Tests for Symbol Table Analysis and Class Type Resolution.
"""

import libcst as cst
import pytest

from prefer_final.analysis.symbol_table import (
  PythonTypeResolver,
  Scope,
  ScopeKind,
  SymbolTableAnalyzer,
  Binding,
  BindingKind,
)
from prefer_final.analysis.types import ConstructorType, InstanceType
from prefer_final.enums import ModifierFlags


class _Collector(cst.CSTVisitor):
  def __init__(self):
    self.attributes = []
    self.classes = []
    self.statements = []

  def visit_Attribute(self, node: cst.Attribute) -> None:
    self.attributes.append(node)

  def visit_ClassDef(self, node: cst.ClassDef) -> None:
    self.classes.append(node)

  def visit_Assign(self, node: cst.Assign) -> None:
    self.statements.append(node)

  def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
    self.statements.append(node)


def analyze(code: str):
  module = cst.parse_module(code)
  resolver = PythonTypeResolver.from_module(module)
  collector = _Collector()
  module.visit(collector)
  return resolver, collector


def base_type_of(resolver, collector, attr: str):
  """Type of the receiver of the first `<expr>.<attr>` access."""
  node = next(a for a in collector.attributes if a.attr.value == attr)
  return resolver.type_of(node.value)


def class_named(collector, name: str) -> cst.ClassDef:
  return next(c for c in collector.classes if c.name.value == name)


def test_scope_lookup_skips_class_scopes():
  module = Scope(name="global")
  module.bind("x", Binding(BindingKind.OPAQUE))
  klass = Scope(parent=module, name="C", kind=ScopeKind.CLASS)
  klass.bind("y", Binding(BindingKind.OPAQUE))
  method = Scope(parent=klass, name="m", kind=ScopeKind.FUNCTION)

  assert method.lookup("x")[0] is module
  assert method.lookup("y") is None
  assert klass.lookup("y")[0] is klass
  assert method.qualname == "C.m"


def test_class_symbols_and_qualnames():
  code = """
class Outer:
    class Inner:
        pass
"""
  module = cst.parse_module(code)
  analyzer = SymbolTableAnalyzer()
  module.visit(analyzer)

  qualnames = [s.qualname for s in analyzer.table.classes()]
  assert qualnames == ["Outer", "Outer.Inner"]


def test_self_is_instance_of_enclosing_class():
  code = """
class Counter:
    def bump(self):
        self._n = 1
"""
  resolver, col = analyze(code)
  resolved = base_type_of(resolver, col, "_n")
  assert resolved == resolver.type_of(class_named(col, "Counter"))
  assert isinstance(resolved, InstanceType)


def test_cls_is_class_object():
  code = """
class Counter:
    @classmethod
    def make(cls):
        cls._total = 1

    def __init_subclass__(klass):
        klass._sub = 1
"""
  resolver, col = analyze(code)
  assert isinstance(base_type_of(resolver, col, "_total"), ConstructorType)
  assert isinstance(base_type_of(resolver, col, "_sub"), ConstructorType)


def test_staticmethod_first_parameter_is_unknown():
  code = """
class Counter:
    @staticmethod
    def helper(obj):
        obj._n = 1
"""
  resolver, col = analyze(code)
  assert base_type_of(resolver, col, "_n") is None


def test_class_name_type_call_and_dunder_class():
  code = """
class Counter:
    def reset(self):
        Counter._a = 0
        type(self)._b = 0
        self.__class__._c = 0
"""
  resolver, col = analyze(code)
  counter = resolver.type_of(class_named(col, "Counter")).symbol
  for attr in ("_a", "_b", "_c"):
    assert base_type_of(resolver, col, attr) == ConstructorType(counter)


def test_shadowed_type_builtin_is_unknown():
  code = """
def type(x):
    return x

class Counter:
    def reset(self):
        type(self)._b = 0
"""
  resolver, col = analyze(code)
  assert base_type_of(resolver, col, "_b") is None


def test_constructor_call_and_aliases():
  code = """
class Counter:
    pass

c = Counter()
alias = c
klass = Counter
made = klass()
c._a = 1
alias._b = 1
made._c = 1
"""
  resolver, col = analyze(code)
  counter = resolver.type_of(class_named(col, "Counter"))
  assert base_type_of(resolver, col, "_a") == counter
  assert base_type_of(resolver, col, "_b") == counter
  assert base_type_of(resolver, col, "_c") == counter


def test_conflicting_bindings_are_unknown():
  code = """
class A:
    pass

class B:
    pass

x = A()
x = B()
x._v = 1
"""
  resolver, col = analyze(code)
  assert base_type_of(resolver, col, "_v") is None


def test_self_referential_binding_terminates():
  code = """
x = x
x._v = 1
"""
  resolver, col = analyze(code)
  assert base_type_of(resolver, col, "_v") is None


@pytest.mark.parametrize(
  "annotation",
  ['"Node"', "Node", "Optional[Node]", "Node | None", "'Optional'"],
)
def test_annotated_parameters(annotation):
  code = f"""
from typing import Optional

class Node:
    def link(self, other: {annotation}):
        other._next = 1
"""
  resolver, col = analyze(code)
  resolved = base_type_of(resolver, col, "_next")
  if annotation == "'Optional'":
    assert resolved is None
  else:
    assert resolved == resolver.type_of(class_named(col, "Node"))


def test_type_annotation_is_class_object():
  code = """
from typing import Type

class Node:
    pass

def build(kind: Type[Node], other: type[Node]):
    kind._count = 0
    other._total = 0
"""
  resolver, col = analyze(code)
  node = resolver.type_of(class_named(col, "Node")).symbol
  assert base_type_of(resolver, col, "_count") == ConstructorType(node)
  assert base_type_of(resolver, col, "_total") == ConstructorType(node)


def test_star_args_are_not_instances():
  code = """
class Node:
    def merge(self, *others: "Node", **named: "Node"):
        others._a = 1
        named._b = 1
"""
  resolver, col = analyze(code)
  assert base_type_of(resolver, col, "_a") is None
  assert base_type_of(resolver, col, "_b") is None


def test_class_body_names_are_invisible_in_methods():
  code = """
class Node:
    helper = None

    def run(self):
        helper._x = 1
"""
  resolver, col = analyze(code)
  assert base_type_of(resolver, col, "_x") is None


def test_same_name_classes_are_distinct():
  code = """
class A:
    class Inner:
        pass

class B:
    class Inner:
        pass
"""
  resolver, col = analyze(code)
  first, second = [c for c in col.classes if c.name.value == "Inner"]
  assert resolver.type_of(first) != resolver.type_of(second)
  assert not resolver.is_same_or_subtype(resolver.type_of(first), resolver.type_of(second))


def test_subtype_relation_is_transitive():
  code = """
class Base:
    pass

class Middle(Base):
    pass

class Leaf(Middle):
    pass

class Other:
    pass
"""
  resolver, col = analyze(code)
  base, middle, leaf, other = [resolver.type_of(c) for c in col.classes]

  assert resolver.is_same_or_subtype(leaf, base)
  assert resolver.is_same_or_subtype(middle, base)
  assert resolver.is_same_or_subtype(base, base)
  assert not resolver.is_same_or_subtype(base, leaf)
  assert not resolver.is_same_or_subtype(other, base)


def test_constructor_object_type():
  code = """
class Node:
    pass
"""
  resolver, col = analyze(code)
  instance = resolver.type_of(class_named(col, "Node"))
  assert not resolver.is_constructor_object_type(instance)
  assert resolver.is_constructor_object_type(ConstructorType(instance.symbol))


@pytest.mark.parametrize(
  "statement, expected",
  [
    ("_x = 1", ModifierFlags.PRIVATE),
    ("x = 1", ModifierFlags.NONE),
    ("__dunder__ = 1", ModifierFlags.NONE),
    ("__mangled = 1", ModifierFlags.PRIVATE),
    ("_x: int = 1", ModifierFlags.PRIVATE),
    ("_x: Final = 1", ModifierFlags.PRIVATE | ModifierFlags.READONLY),
    ("_x: typing.Final[int] = 1", ModifierFlags.PRIVATE | ModifierFlags.READONLY),
    ("_x: ClassVar[int] = 1", ModifierFlags.PRIVATE | ModifierFlags.STATIC),
    ("_x: ClassVar = 1", ModifierFlags.PRIVATE | ModifierFlags.STATIC),
    ("_x: ClassVar[Final[int]] = 1", ModifierFlags.PRIVATE | ModifierFlags.STATIC | ModifierFlags.READONLY),
    ("x: ClassVar[int] = 1", ModifierFlags.STATIC),
  ],
)
def test_modifier_flags(statement, expected):
  resolver, col = analyze(f"class C:\n    {statement}\n")
  assert resolver.modifier_flags_of(col.statements[0]) == expected


def test_modifier_flags_ignore_classvar_on_attribute_targets():
  code = """
class C:
    def __init__(self):
        self._x: ClassVar[int] = 1
"""
  resolver, col = analyze(code)
  assert resolver.modifier_flags_of(col.statements[0]) == ModifierFlags.PRIVATE


def test_modifier_flags_of_other_nodes():
  resolver, _ = analyze("pass\n")
  assert resolver.modifier_flags_of(cst.Pass()) == ModifierFlags.NONE
