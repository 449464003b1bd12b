"""
Tests for fuzzable (primitive-like) type classification and seed layouts.
"""

import pytest

from monofuzz.candidates.primitives import is_primitive_like, seed_layout
from monofuzz.surface.types import parse_type


@pytest.mark.parametrize(
  "text",
  ["i32", "bool", "char", "u128", "&str", "&u8", "&mut i64", "&[u8]", "&mut [u16]", "(u8, bool)", "Option<u32>"],
)
def test_fuzzable(text):
  assert is_primitive_like(parse_type(text))


@pytest.mark.parametrize(
  "text",
  [
    "String",
    "Vec<u8>",
    "demo::Parser",
    "&demo::Parser",
    "(&str, u8)",
    "(u8, Option<u8>)",
    "()",
    "Option<String>",
    "[u8]",
  ],
)
def test_not_fuzzable(text):
  assert not is_primitive_like(parse_type(text))
  assert seed_layout(parse_type(text)) is None


def test_generic_is_never_fuzzable():
  assert not is_primitive_like(parse_type("T", params=["T"]))


def test_fixed_layouts():
  layout = seed_layout(parse_type("u64"))
  assert (layout.min_length, layout.fixed_length, layout.fixed_part, layout.dynamic_params) == (8, True, 8, 0)
  assert seed_layout(parse_type("&i32")) == seed_layout(parse_type("i32"))
  assert seed_layout(parse_type("Option<u16>")).min_length == 2


def test_dynamic_layouts():
  text = seed_layout(parse_type("&str"))
  assert not text.fixed_length
  assert text.dynamic_params == 1
  assert text.min_length == 1

  slice_layout = seed_layout(parse_type("&[u32]"))
  assert slice_layout.min_length == 4
  assert slice_layout.dynamic_params == 1


def test_tuple_layout_sums_members():
  layout = seed_layout(parse_type("(u8, i32, bool)"))
  assert layout.min_length == 6
  assert layout.fixed_part == 6
  assert layout.fixed_length
  assert layout.to_dict()["dynamic_params"] == 0
