"""
Tests for the Mutation Classifier.

Each snippet contains a single access to `o.x`; the classifier must map its
syntactic context to the right verdict (or None for reads).
"""

from typing import Optional

import libcst as cst
import pytest
from libcst.metadata import ParentNodeProvider

from prefer_final.analysis.classifier import classify_modification
from prefer_final.enums import ModificationKind


class _AttributeCollector(cst.CSTVisitor):
  def __init__(self):
    self.found = []

  def visit_Attribute(self, node: cst.Attribute) -> None:
    if node.attr.value == "x":
      self.found.append(node)


def classify(code: str) -> Optional[ModificationKind]:
  wrapper = cst.MetadataWrapper(cst.parse_module(code))
  parents = wrapper.resolve(ParentNodeProvider)
  collector = _AttributeCollector()
  wrapper.module.visit(collector)
  assert len(collector.found) == 1
  return classify_modification(collector.found[0], parents.get)


@pytest.mark.parametrize(
  "code, expected",
  [
    ("o.x = 1\n", ModificationKind.ASSIGNMENT),
    ("a = o.x = 1\n", ModificationKind.ASSIGNMENT),
    ("o.x: int = 1\n", ModificationKind.ASSIGNMENT),
    ("for o.x in r: pass\n", ModificationKind.ASSIGNMENT),
    ("with f() as o.x: pass\n", ModificationKind.ASSIGNMENT),
    ("[a for o.x in r]\n", ModificationKind.ASSIGNMENT),
  ],
)
def test_plain_assignments(code, expected):
  assert classify(code) == expected


@pytest.mark.parametrize(
  "code, expected",
  [
    ("o.x += 1\n", ModificationKind.INCREMENT),
    ("o.x -= 1\n", ModificationKind.DECREMENT),
    ("o.x -= 0x1\n", ModificationKind.DECREMENT),
    ("o.x += 2\n", ModificationKind.COMPOUND_ASSIGNMENT),
    ("o.x += 1.0\n", ModificationKind.COMPOUND_ASSIGNMENT),
    ("o.x *= 1\n", ModificationKind.COMPOUND_ASSIGNMENT),
    ("o.x //= 3\n", ModificationKind.COMPOUND_ASSIGNMENT),
    ("o.x |= flags\n", ModificationKind.COMPOUND_ASSIGNMENT),
    ("o.x += one\n", ModificationKind.COMPOUND_ASSIGNMENT),
  ],
)
def test_compound_assignments(code, expected):
  assert classify(code) == expected


@pytest.mark.parametrize(
  "code",
  [
    "del o.x\n",
    "del (o.x)\n",
    "del o.x, o.y\n",
    "del [o.y, o.x]\n",
  ],
)
def test_delete(code):
  assert classify(code) == ModificationKind.DELETE


@pytest.mark.parametrize(
  "code",
  [
    "o.x, o.y = pair\n",
    "[o.x, b] = pair\n",
    "a, (b, o.x) = nested\n",
    "a, *o.x = items\n",
    "[*o.x] = items\n",
    "for o.x, b in pairs: pass\n",
    "with f() as (o.x, b): pass\n",
  ],
)
def test_destructuring(code):
  assert classify(code) == ModificationKind.DESTRUCTURE


@pytest.mark.parametrize(
  "code",
  [
    "y = o.x\n",
    "f(o.x)\n",
    "o.x.y = 1\n",
    "o.x[0] = 1\n",
    "o.x()\n",
    "o.x: int\n",
    "p = o.x, o.y\n",
    "y = [o.x]\n",
    "for a in o.x, b: pass\n",
    "with o.x as a: pass\n",
    "o.y += o.x\n",
    "if o.x: pass\n",
    "return_value = (o.x for _ in r)\n",
  ],
)
def test_reads_are_not_modifications(code):
  assert classify(code) is None


def test_missing_parent_is_not_a_modification():
  node = cst.Attribute(value=cst.Name("o"), attr=cst.Name("x"))
  assert classify_modification(node, lambda n: None) is None
