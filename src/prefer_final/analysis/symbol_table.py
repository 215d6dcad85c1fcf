"""
Symbol Table and Class Type Resolution.

This module provides the static analysis pass that resolves which class a
member-access base expression refers to. It is the concrete `TypeResolver`
used by the mutation analysis.

The `SymbolTableAnalyzer` visitor populates a `SymbolTable` by tracking:
1.  **Classes**: Every `ClassDef` becomes a `ClassSymbol` bound in its scope.
2.  **Parameters**: `self` / `cls` of methods, and parameters annotated with a class.
3.  **Assignments**: Names bound from class objects, constructor calls or other names.
4.  **Scopes**: Module, class, function and comprehension scopes. Class scopes are
    not visible from functions nested inside them, as in Python itself.

Resolution is performed on demand by `PythonTypeResolver` once the whole module
has been seen, so forward references resolve. It is flow-insensitive: a name
with conflicting bindings resolves to "unknown" (`None`).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

import libcst as cst

from prefer_final.analysis.types import ClassSymbol, ConstructorType, InstanceType, ResolvedType
from prefer_final.enums import ModifierFlags
from prefer_final.utils.ast_utils import (
  annotation_head,
  is_private_name,
  subscript_items,
  target_member_name,
)

logger = logging.getLogger(__name__)

_CLASS_OBJECT_METHODS = {"__new__", "__init_subclass__", "__class_getitem__"}


class ScopeKind(str, Enum):
  """Lexical scope categories."""

  MODULE = "module"
  CLASS = "class"
  FUNCTION = "function"


class BindingKind(str, Enum):
  """How a name received its value."""

  CLASS = "class"  # class Name: ...
  SELF = "self"  # first parameter of an instance method
  CLS = "cls"  # first parameter of a classmethod
  ANNOTATION = "annotation"  # param: C / name: C = ...
  VALUE = "value"  # name = <expr>
  OPAQUE = "opaque"  # imports, loop targets, unannotated params...


@dataclass
class Binding:
  """
  A single binding of a name within a scope.
  """

  kind: BindingKind
  payload: Union[ClassSymbol, cst.BaseExpression, None] = None


class Scope:
  """
  Represents a variable scope (Module, Class, or Function).
  """

  def __init__(
    self,
    parent: Optional["Scope"] = None,
    name: str = "<root>",
    kind: ScopeKind = ScopeKind.MODULE,
    symbol: Optional[ClassSymbol] = None,
  ):
    """
    Initialize the scope.

    Args:
        parent: The enclosing scope (None for the module).
        name: Debug name for the scope.
        kind: The scope category.
        symbol: The class owning this scope, for class scopes.
    """
    self.parent = parent
    self.name = name
    self.kind = kind
    self.symbol = symbol
    self.bindings: Dict[str, List[Binding]] = {}

  @property
  def qualname(self) -> str:
    """Dotted lexical path of the scope."""
    if self.parent is None:
      return ""
    prefix = self.parent.qualname
    return f"{prefix}.{self.name}" if prefix else self.name

  def bind(self, name: str, binding: Binding) -> None:
    """
    Register a binding in the current scope.

    Args:
        name: Variable identifier.
        binding: How the identifier was bound.
    """
    self.bindings.setdefault(name, []).append(binding)

  def lookup(self, name: str) -> Optional[Tuple["Scope", List[Binding]]]:
    """
    Resolve a name, traversing enclosing scopes.

    Enclosing class scopes are skipped: a method body cannot see the names
    bound in its class body.

    Args:
        name: Variable identifier to lookup.

    Returns:
        The defining scope and its bindings, or None if unbound.
    """
    if name in self.bindings:
      return self, self.bindings[name]
    parent = self.parent
    while parent is not None:
      if parent.kind != ScopeKind.CLASS and name in parent.bindings:
        return parent, parent.bindings[name]
      parent = parent.parent
    return None


class SymbolTable:
  """
  Container for analysis results. Maps CST nodes (by identity) to scopes and classes.
  """

  def __init__(self):
    """Initializes empty node maps."""
    self._node_scopes: Dict[cst.CSTNode, Scope] = {}
    self._classes: Dict[cst.ClassDef, ClassSymbol] = {}

  def record_scope(self, node: cst.CSTNode, scope: Scope) -> None:
    """
    Associates a node with the scope it is evaluated in.

    The first association wins, so expressions evaluated in an enclosing
    scope (decorators, defaults, base classes) can be recorded up front.
    """
    self._node_scopes.setdefault(node, scope)

  def scope_of(self, node: cst.CSTNode) -> Optional[Scope]:
    """Retrieves the evaluation scope of a node."""
    return self._node_scopes.get(node)

  def record_class(self, node: cst.ClassDef, symbol: ClassSymbol) -> None:
    """Associates a class definition with its symbol."""
    self._classes[node] = symbol

  def class_of(self, node: cst.ClassDef) -> Optional[ClassSymbol]:
    """Retrieves the symbol of a class definition."""
    return self._classes.get(node)

  def classes(self) -> Iterable[ClassSymbol]:
    """All class symbols, in definition order."""
    return self._classes.values()


class _ExpressionRecorder(cst.CSTVisitor):
  """Records the evaluation scope of every name and string in an expression."""

  def __init__(self, table: SymbolTable, scope: Scope):
    self.table = table
    self.scope = scope

  def visit_Name(self, node: cst.Name) -> None:
    self.table.record_scope(node, self.scope)

  def visit_SimpleString(self, node: cst.SimpleString) -> None:
    self.table.record_scope(node, self.scope)


class SymbolTableAnalyzer(cst.CSTVisitor):
  """
  Pre-pass populating the SymbolTable.

  It only records facts (bindings and evaluation scopes); all inference is
  deferred to `PythonTypeResolver`.
  """

  def __init__(self):
    """Initializes the analyzer with an empty module scope."""
    self.table = SymbolTable()
    self.root_scope = Scope(name="global", kind=ScopeKind.MODULE)
    self.current_scope = self.root_scope

  # --- Scoping ---

  def visit_ClassDef(self, node: cst.ClassDef) -> None:
    """Binds the class name and enters the class scope."""
    enclosing = self.current_scope
    for part in [*node.decorators, *node.bases, *node.keywords]:
      self._record_in(part, enclosing)

    qualname = f"{enclosing.qualname}.{node.name.value}" if enclosing.qualname else node.name.value
    symbol = ClassSymbol(name=node.name.value, node=node, qualname=qualname)
    self.table.record_class(node, symbol)
    enclosing.bind(node.name.value, Binding(BindingKind.CLASS, symbol))

    self.current_scope = Scope(parent=enclosing, name=node.name.value, kind=ScopeKind.CLASS, symbol=symbol)

  def leave_ClassDef(self, node: cst.ClassDef) -> None:
    """Exits class scope."""
    if self.current_scope.parent:
      self.current_scope = self.current_scope.parent

  def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
    """
    Binds the function name and enters the function scope.

    The first positional parameter of a method is bound to the owning class:
    as an instance (`self`) for regular methods, as the class object (`cls`)
    for classmethods and the implicit class-level dunders.
    """
    enclosing = self.current_scope
    enclosing.bind(node.name.value, Binding(BindingKind.OPAQUE))

    self._record_in(node.decorators, enclosing)
    if node.returns:
      self._record_in(node.returns, enclosing)

    owner = enclosing.symbol if enclosing.kind == ScopeKind.CLASS else None
    decorators = {annotation_head(d.decorator) for d in node.decorators}

    scope = Scope(parent=enclosing, name=node.name.value, kind=ScopeKind.FUNCTION)
    positional = [*node.params.posonly_params, *node.params.params]

    implicit: Optional[cst.Param] = None
    if owner is not None and "staticmethod" not in decorators and positional:
      implicit = positional[0]
      is_class_level = "classmethod" in decorators or node.name.value in _CLASS_OBJECT_METHODS
      kind = BindingKind.CLS if is_class_level else BindingKind.SELF
      scope.bind(implicit.name.value, Binding(kind, owner))

    for param in self._all_params(node.params):
      if param.default is not None:
        self._record_in(param.default, enclosing)
      if param is implicit:
        continue
      if param.annotation is not None:
        self._record_in(param.annotation, enclosing)
      scope.bind(param.name.value, self._param_binding(param, node.params))

    self.current_scope = scope

  def leave_FunctionDef(self, node: cst.FunctionDef) -> None:
    """Exits function scope."""
    if self.current_scope.parent:
      self.current_scope = self.current_scope.parent

  def visit_Lambda(self, node: cst.Lambda) -> None:
    """Enters a lambda scope; lambda parameters are never typed."""
    scope = Scope(parent=self.current_scope, name="<lambda>", kind=ScopeKind.FUNCTION)
    for param in self._all_params(node.params):
      scope.bind(param.name.value, Binding(BindingKind.OPAQUE))
    self.current_scope = scope

  def leave_Lambda(self, node: cst.Lambda) -> None:
    """Exits lambda scope."""
    if self.current_scope.parent:
      self.current_scope = self.current_scope.parent

  def visit_ListComp(self, node: cst.ListComp) -> None:
    self._enter_comprehension()

  def leave_ListComp(self, node: cst.ListComp) -> None:
    self._leave_comprehension()

  def visit_SetComp(self, node: cst.SetComp) -> None:
    self._enter_comprehension()

  def leave_SetComp(self, node: cst.SetComp) -> None:
    self._leave_comprehension()

  def visit_DictComp(self, node: cst.DictComp) -> None:
    self._enter_comprehension()

  def leave_DictComp(self, node: cst.DictComp) -> None:
    self._leave_comprehension()

  def visit_GeneratorExp(self, node: cst.GeneratorExp) -> None:
    self._enter_comprehension()

  def leave_GeneratorExp(self, node: cst.GeneratorExp) -> None:
    self._leave_comprehension()

  # --- Definition Tracking ---

  def visit_Name(self, node: cst.Name) -> None:
    """Records the evaluation scope of every identifier."""
    self.table.record_scope(node, self.current_scope)

  def visit_SimpleString(self, node: cst.SimpleString) -> None:
    """Records the evaluation scope of strings (forward-reference annotations)."""
    self.table.record_scope(node, self.current_scope)

  def visit_Assign(self, node: cst.Assign) -> None:
    """
    Binds assignment targets.
    x = C() -> x is bound to the value expression.
    """
    for target in node.targets:
      self._bind_target(target.target, Binding(BindingKind.VALUE, node.value))

  def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
    """Annotated names are bound to their annotation."""
    if isinstance(node.target, cst.Name):
      self.current_scope.bind(node.target.value, Binding(BindingKind.ANNOTATION, node.annotation.annotation))

  def visit_NamedExpr(self, node: cst.NamedExpr) -> None:
    self._bind_target(node.target, Binding(BindingKind.VALUE, node.value))

  def visit_For(self, node: cst.For) -> None:
    self._bind_target(node.target, Binding(BindingKind.OPAQUE))

  def visit_CompFor(self, node: cst.CompFor) -> None:
    self._bind_target(node.target, Binding(BindingKind.OPAQUE))

  def visit_AsName(self, node: cst.AsName) -> None:
    """`with ... as x`, `except E as x` and `import m as x`."""
    self._bind_target(node.name, Binding(BindingKind.OPAQUE))

  def visit_ImportAlias(self, node: cst.ImportAlias) -> None:
    if node.asname is None:
      if isinstance(node.name, cst.Name):
        bound = node.name.value
      else:
        bound = _leftmost_name(node.name)
      self.current_scope.bind(bound, Binding(BindingKind.OPAQUE))

  def visit_Global(self, node: cst.Global) -> None:
    for item in node.names:
      self.current_scope.bind(item.name.value, Binding(BindingKind.OPAQUE))

  def visit_Nonlocal(self, node: cst.Nonlocal) -> None:
    for item in node.names:
      self.current_scope.bind(item.name.value, Binding(BindingKind.OPAQUE))

  # --- Helpers ---

  def _record_in(self, nodes: Union[cst.CSTNode, Iterable[cst.CSTNode]], scope: Scope) -> None:
    """Pre-records expressions that Python evaluates in `scope`."""
    if isinstance(nodes, cst.CSTNode):
      nodes = [nodes]
    recorder = _ExpressionRecorder(self.table, scope)
    for node in nodes:
      node.visit(recorder)

  def _bind_target(self, target: cst.BaseExpression, binding: Binding) -> None:
    """Binds plain names; names inside unpacking targets become opaque."""
    if isinstance(target, cst.Name):
      self.current_scope.bind(target.value, binding)
    elif isinstance(target, (cst.Tuple, cst.List)):
      for element in target.elements:
        self._bind_target(element.value, Binding(BindingKind.OPAQUE))
    elif isinstance(target, cst.StarredElement):
      self._bind_target(target.value, Binding(BindingKind.OPAQUE))

  def _enter_comprehension(self) -> None:
    self.current_scope = Scope(parent=self.current_scope, name="<comprehension>", kind=ScopeKind.FUNCTION)

  def _leave_comprehension(self) -> None:
    if self.current_scope.parent:
      self.current_scope = self.current_scope.parent

  @staticmethod
  def _all_params(params: cst.Parameters) -> List[cst.Param]:
    """Flattens every parameter kind into one list."""
    result = [*params.posonly_params, *params.params]
    if isinstance(params.star_arg, cst.Param):
      result.append(params.star_arg)
    result.extend(params.kwonly_params)
    if params.star_kwarg is not None:
      result.append(params.star_kwarg)
    return result

  @staticmethod
  def _param_binding(param: cst.Param, params: cst.Parameters) -> Binding:
    """`*args: C` and `**kw: C` are containers of C, not C."""
    if param.annotation is None or param is params.star_arg or param is params.star_kwarg:
      return Binding(BindingKind.OPAQUE)
    return Binding(BindingKind.ANNOTATION, param.annotation.annotation)


class PythonTypeResolver:
  """
  Resolves class types for Python source analyzed by `SymbolTableAnalyzer`.

  Implements the `TypeResolver` protocol. Every query is total: anything that
  cannot be resolved yields `None`, which callers treat as "no match".
  """

  def __init__(self, table: SymbolTable):
    """
    Initializes the resolver and links class hierarchies.

    Args:
        table: A fully populated symbol table.
    """
    self.table = table
    self._resolving: Set[Tuple[int, str]] = set()
    self._link_bases()

  @classmethod
  def from_module(cls, module: cst.Module) -> "PythonTypeResolver":
    """
    Runs the symbol pre-pass over `module` and returns a resolver for it.

    The resolver answers queries about the node objects of `module` itself,
    so it must be built from the same tree the analysis visits.
    """
    analyzer = SymbolTableAnalyzer()
    module.visit(analyzer)
    return cls(analyzer.table)

  # --- TypeResolver protocol ---

  def type_of(self, node: cst.CSTNode) -> Optional[ResolvedType]:
    """
    Returns the type of a class definition (its instance type) or of an expression.
    """
    if isinstance(node, cst.ClassDef):
      symbol = self.table.class_of(node)
      return InstanceType(symbol) if symbol else None
    if isinstance(node, cst.BaseExpression):
      return self._infer(node)
    return None

  def is_same_or_subtype(self, candidate: ResolvedType, parent: ResolvedType) -> bool:
    """
    Symbol-identity comparison through the resolved base-class chain.
    """
    return self._derives(candidate.symbol, parent.symbol, set())

  def is_constructor_object_type(self, resolved: ResolvedType) -> bool:
    """True for class objects."""
    return isinstance(resolved, ConstructorType)

  def modifier_flags_of(self, declaration: cst.CSTNode) -> ModifierFlags:
    """
    Computes modifier flags of an `Assign` / `AnnAssign` member declaration.

    - PRIVATE: the member name is underscore-prefixed and not a dunder.
    - READONLY: annotated `Final` (possibly inside `ClassVar[...]`).
    - STATIC: annotated `ClassVar`, for class-body declarations only.
    """
    annotation: Optional[cst.BaseExpression] = None
    if isinstance(declaration, cst.AnnAssign):
      target = declaration.target
      annotation = declaration.annotation.annotation
    elif isinstance(declaration, cst.Assign) and declaration.targets:
      target = declaration.targets[0].target
    else:
      return ModifierFlags.NONE

    flags = ModifierFlags.NONE
    name = target_member_name(target)
    if name is not None and is_private_name(name):
      flags |= ModifierFlags.PRIVATE

    head = annotation_head(annotation)
    if head == "ClassVar":
      if not isinstance(target, cst.Attribute):
        flags |= ModifierFlags.STATIC
      if isinstance(annotation, cst.Subscript):
        inner = subscript_items(annotation)
        if inner and annotation_head(inner[0]) == "Final":
          flags |= ModifierFlags.READONLY
    elif head == "Final":
      flags |= ModifierFlags.READONLY

    return flags

  # --- Inference ---

  def _infer(self, expr: cst.BaseExpression) -> Optional[ResolvedType]:
    if isinstance(expr, cst.Name):
      scope = self.table.scope_of(expr)
      return self._resolve_identifier(expr.value, scope) if scope else None

    if isinstance(expr, cst.Call):
      func = expr.func
      if isinstance(func, cst.Name) and func.value == "type" and self._is_builtin(func):
        if len(expr.args) == 1:
          arg_type = self._infer(expr.args[0].value)
          if isinstance(arg_type, InstanceType):
            return ConstructorType(arg_type.symbol)
        return None
      func_type = self._infer(func)
      if isinstance(func_type, ConstructorType):
        return InstanceType(func_type.symbol)
      return None

    if isinstance(expr, cst.Attribute) and expr.attr.value == "__class__":
      value_type = self._infer(expr.value)
      if isinstance(value_type, InstanceType):
        return ConstructorType(value_type.symbol)
      return None

    if isinstance(expr, cst.Subscript):
      # Parameterized generic: Box[int] is still the class object Box.
      value_type = self._infer(expr.value)
      return value_type if isinstance(value_type, ConstructorType) else None

    return None

  def _resolve_identifier(self, name: str, scope: Scope) -> Optional[ResolvedType]:
    found = scope.lookup(name)
    if found is None:
      return None
    owner, bindings = found

    key = (id(owner), name)
    if key in self._resolving:
      return None
    self._resolving.add(key)
    try:
      types = [self._resolve_binding(b) for b in bindings]
    finally:
      self._resolving.discard(key)

    first = types[0]
    if first is None or any(t != first for t in types[1:]):
      return None
    return first

  def _resolve_binding(self, binding: Binding) -> Optional[ResolvedType]:
    if binding.kind == BindingKind.CLASS:
      return ConstructorType(binding.payload)
    if binding.kind == BindingKind.SELF:
      return InstanceType(binding.payload)
    if binding.kind == BindingKind.CLS:
      return ConstructorType(binding.payload)
    if binding.kind == BindingKind.ANNOTATION:
      return self._resolve_annotation(binding.payload)
    if binding.kind == BindingKind.VALUE:
      return self._infer(binding.payload)
    return None

  def _resolve_annotation(self, annotation: cst.BaseExpression) -> Optional[ResolvedType]:
    """
    Maps an annotation to the type of a value carrying it.

    `C` and `"C"` give an instance of C; `Type[C]` gives the class object;
    `Optional[C]`, `C | None`, `Final[C]`, `ClassVar[C]` and `Annotated[C, ...]`
    are unwrapped.
    """
    if isinstance(annotation, cst.SimpleString):
      scope = self.table.scope_of(annotation)
      text = annotation.evaluated_value
      if scope is None or not isinstance(text, str) or not text.strip().isidentifier():
        return None
      resolved = self._resolve_identifier(text.strip(), scope)
      return InstanceType(resolved.symbol) if isinstance(resolved, ConstructorType) else None

    if isinstance(annotation, (cst.Name, cst.Attribute)):
      resolved = self._infer(annotation)
      return InstanceType(resolved.symbol) if isinstance(resolved, ConstructorType) else None

    if isinstance(annotation, cst.BinaryOperation) and isinstance(annotation.operator, cst.BitOr):
      sides = [annotation.left, annotation.right]
      concrete = [s for s in sides if not (isinstance(s, cst.Name) and s.value == "None")]
      return self._resolve_annotation(concrete[0]) if len(concrete) == 1 else None

    if isinstance(annotation, cst.Subscript):
      head = annotation_head(annotation)
      items = subscript_items(annotation)
      if not items:
        return None
      if head in ("Optional", "Final", "ClassVar", "Annotated"):
        return self._resolve_annotation(items[0])
      if head in ("Type", "type") and len(items) == 1:
        inner = self._resolve_annotation(items[0])
        return ConstructorType(inner.symbol) if isinstance(inner, InstanceType) else None

    return None

  def _is_builtin(self, node: cst.Name) -> bool:
    scope = self.table.scope_of(node)
    return scope is None or scope.lookup(node.value) is None

  def _derives(self, symbol: ClassSymbol, target: ClassSymbol, seen: Set[int]) -> bool:
    if symbol is target:
      return True
    if id(symbol) in seen:
      return False
    seen.add(id(symbol))
    return any(self._derives(base, target, seen) for base in symbol.bases)

  def _link_bases(self) -> None:
    """Resolves base-class expressions to symbols defined in the module."""
    for symbol in self.table.classes():
      for arg in symbol.node.bases:
        base_type = self._infer(arg.value)
        if isinstance(base_type, ConstructorType) and base_type.symbol is not symbol:
          symbol.bases.append(base_type.symbol)
      if symbol.bases:
        logger.debug("Class %s derives from %s", symbol.qualname, [b.qualname for b in symbol.bases])


def _leftmost_name(node: cst.BaseExpression) -> str:
  """`import a.b.c` binds `a`."""
  while isinstance(node, cst.Attribute):
    node = node.value
  return node.value if isinstance(node, cst.Name) else ""
