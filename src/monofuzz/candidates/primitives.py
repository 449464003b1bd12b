"""
Primitive-Like (Fuzzable) Type Classification.

Decides which input types can be fed directly from raw fuzzer bytes instead of
being produced by another API call, and computes the byte layout a fuzzing
engine must supply for each such seed point.

Fuzzable types are: numeric/bool/char primitives, `&str`, references to
fuzzable values, references to slices of fuzzable values, tuples of fuzzable
by-value members (neither references nor `Option`), and `Option` of a
fuzzable value.
"""

from dataclasses import dataclass
from typing import Optional

from monofuzz.surface.types import MUT_REF, REF, SLICE, TUPLE, TypeRef

# Byte width of each primitive when decoded from fuzzer input.
PRIMITIVE_SIZES = {
  "bool": 1,
  "i8": 1,
  "u8": 1,
  "i16": 2,
  "u16": 2,
  "i32": 4,
  "u32": 4,
  "char": 4,
  "f32": 4,
  "i64": 8,
  "u64": 8,
  "f64": 8,
  "isize": 8,
  "usize": 8,
  "i128": 16,
  "u128": 16,
}

OPTION_PATHS = {"Option", "core::option::Option", "std::option::Option"}


@dataclass(frozen=True)
class SeedLayout:
  """
  Byte requirements of one seed point.

  Attributes:
      min_length: Fewest bytes that decode to a value.
      fixed_length: True if the value always consumes exactly `min_length` bytes.
      fixed_part: Bytes consumed by the fixed-width portion.
      dynamic_params: Number of variable-length components (`&str`, `&[T]`).
  """

  min_length: int
  fixed_length: bool
  fixed_part: int
  dynamic_params: int

  def to_dict(self) -> dict:
    return {
      "min_length": self.min_length,
      "fixed_length": self.fixed_length,
      "fixed_part": self.fixed_part,
      "dynamic_params": self.dynamic_params,
    }


def is_primitive(type_ref: TypeRef) -> bool:
  return not type_ref.args and not type_ref.is_param and type_ref.name in PRIMITIVE_SIZES


def _is_str_ref(type_ref: TypeRef) -> bool:
  return type_ref.name == REF and type_ref.args[0] == TypeRef("str")


def _is_option(type_ref: TypeRef) -> bool:
  return type_ref.name in OPTION_PATHS and type_ref.arity == 1


def is_primitive_like(type_ref: TypeRef) -> bool:
  """
  Checks whether a type can be bound directly to a fuzz seed.

  Args:
      type_ref: A concrete input type.

  Returns:
      bool: True if raw fuzzer bytes can be decoded into this type.
  """
  if type_ref.is_generic:
    return False
  if is_primitive(type_ref):
    return True
  if _is_str_ref(type_ref):
    return True
  if type_ref.name in (REF, MUT_REF):
    inner = type_ref.args[0]
    if inner.name == SLICE:
      return is_primitive_like(inner.args[0])
    return is_primitive_like(inner)
  if type_ref.name == TUPLE:
    # Members are decoded by value: no references, no Option.
    return bool(type_ref.args) and all(
      is_primitive_like(a) and not a.is_reference and not _is_option(a) for a in type_ref.args
    )
  if _is_option(type_ref):
    return is_primitive_like(type_ref.args[0])
  return False


def seed_layout(type_ref: TypeRef) -> Optional[SeedLayout]:
  """
  Computes the byte layout of a primitive-like type.

  Reference and `Option` wrappers do not change the layout of the value they
  wrap. `&str` and `&[T]` are variable length.

  Args:
      type_ref: A concrete input type.

  Returns:
      Optional[SeedLayout]: The layout, or None if the type is not fuzzable.
  """
  if not is_primitive_like(type_ref):
    return None
  return _layout(type_ref)


def _layout(type_ref: TypeRef) -> SeedLayout:
  if is_primitive(type_ref):
    size = PRIMITIVE_SIZES[type_ref.name]
    return SeedLayout(min_length=size, fixed_length=True, fixed_part=size, dynamic_params=0)

  if _is_str_ref(type_ref):
    return SeedLayout(min_length=1, fixed_length=False, fixed_part=0, dynamic_params=1)

  if type_ref.name in (REF, MUT_REF):
    inner = type_ref.args[0]
    if inner.name == SLICE:
      element = _layout(inner.args[0])
      return SeedLayout(
        min_length=element.min_length,
        fixed_length=False,
        fixed_part=0,
        dynamic_params=1,
      )
    return _layout(inner)

  if type_ref.name == TUPLE:
    parts = [_layout(a) for a in type_ref.args]
    fixed = all(p.fixed_length for p in parts)
    return SeedLayout(
      min_length=sum(p.min_length for p in parts),
      fixed_length=fixed,
      fixed_part=sum(p.fixed_part for p in parts),
      dynamic_params=sum(p.dynamic_params for p in parts),
    )

  # Option<T>
  return _layout(type_ref.args[0])
