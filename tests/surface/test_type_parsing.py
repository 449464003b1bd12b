"""
Tests for Rust type notation parsing and TypeRef operations.

Verifies:
1. Paths, generics, references, slices, arrays and tuples parse structurally.
2. Lifetimes are dropped.
3. Parameter references are recognized only for in-scope names.
4. Substitution, depth and rendering.
"""

import pytest

from monofuzz.surface.types import (
  MUT_REF,
  REF,
  SLICE,
  TUPLE,
  UNIT,
  BoundSet,
  TypeRef,
  parse_type,
)
from monofuzz.surface.utils import split_outside_brackets


def test_plain_path():
  assert parse_type("i32") == TypeRef("i32")
  assert parse_type("std::string::String") == TypeRef("std::string::String")


def test_nested_generics():
  t = parse_type("HashMap<K, Vec<V>>", params=["K", "V"])
  assert t.name == "HashMap"
  assert t.args[0] == TypeRef("K", is_param=True)
  assert t.args[1] == TypeRef("Vec", (TypeRef("V", is_param=True),))
  assert t.slots() == ("K", "V")
  assert t.is_generic


def test_unknown_identifier_is_concrete():
  t = parse_type("Vec<T>")
  assert not t.is_generic
  assert t.args[0] == TypeRef("T")


def test_references_and_lifetimes():
  assert parse_type("&'a str") == TypeRef(REF, (TypeRef("str"),))
  assert parse_type("&mut Vec<u8>") == TypeRef(MUT_REF, (TypeRef("Vec", (TypeRef("u8"),)),))
  assert parse_type("&'static mut u8").name == MUT_REF
  assert parse_type("Cow<'a, str>") == TypeRef("Cow", (TypeRef("str"),))


def test_mut_prefix_is_not_a_mutable_reference():
  t = parse_type("&mutex::Guard")
  assert t.name == REF
  assert t.args[0] == TypeRef("mutex::Guard")


def test_slices_arrays_and_tuples():
  assert parse_type("&[u8]") == TypeRef(REF, (TypeRef(SLICE, (TypeRef("u8"),)),))
  array = parse_type("[u8; 4]")
  assert array.render() == "[u8; 4]"
  assert parse_type("(i32, bool)") == TypeRef(TUPLE, (TypeRef("i32"), TypeRef("bool")))
  assert parse_type("()") == UNIT
  assert parse_type("()").is_unit


@pytest.mark.parametrize(
  "text",
  ["Vec<i32>", "&mut [u8]", "(i32, bool)", "(u8,)", "[u16; 8]", "HashMap<String, Vec<u8>>", "&str"],
)
def test_render_is_canonical(text):
  assert parse_type(text).render() == text


@pytest.mark.parametrize("bad", ["", "Vec<i32", "[u8", "(i32", "[u8; N]", "1abc", "T<i32>"])
def test_rejects_malformed(bad):
  with pytest.raises(ValueError):
    parse_type(bad, params=["T"])


def test_substitute_replaces_params_only():
  t = parse_type("Result<Vec<T>, E>", params=["T"])
  out = t.substitute({"T": TypeRef("i32")})
  assert out.render() == "Result<Vec<i32>, E>"
  assert not out.is_generic
  # Unmapped parameters survive
  assert parse_type("Vec<T>", params=["T"]).substitute({}).is_generic


def test_depth():
  assert parse_type("u8").depth() == 1
  assert parse_type("Vec<Vec<u8>>").depth() == 3
  assert parse_type("(u8, Vec<u8>)").depth() == 3


def test_split_outside_brackets():
  assert split_outside_brackets("K, Vec<V, W>, (A, B)") == ["K", "Vec<V, W>", "(A, B)"]
  assert split_outside_brackets("u8,") == ["u8"]
  with pytest.raises(ValueError):
    split_outside_brackets("a>, b")


def test_bound_set_normalization():
  bounds = BoundSet.of([" Clone", "?Sized", "Debug ", ""])
  assert set(bounds) == {"Clone", "Debug"}
  assert bounds.render() == "Clone + Debug"
  assert BoundSet.of(["Clone"]).is_satisfied_by(bounds)
  assert not BoundSet.of(["Hash"]).is_satisfied_by(bounds)
