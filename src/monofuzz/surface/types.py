"""
API Surface Data Model.

Defines the typed representation of a library's API surface: type references,
bound sets, generic parameters and function signatures. All values here are
immutable once built; later stages only read them.

Type references use Rust notation (`Vec<T>`, `&mut [u8]`, `(A, B)`) and are
parsed by `parse_type`.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from monofuzz.surface.utils import is_lifetime, split_outside_brackets, strip_lifetime

# Structural constructor names. Path types use their own (possibly qualified) name.
REF = "&"
MUT_REF = "&mut"
SLICE = "[]"
TUPLE = "()"
ARRAY_PREFIX = "[;"
STATIC_LIFETIME = "'static"

_PATH_TYPE = re.compile(
  r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*(?:::[A-Za-z_][A-Za-z0-9_]*)*)\s*(?:<(?P<args>.*)>)?$",
  re.DOTALL,
)


@dataclass(frozen=True)
class TypeRef:
  """
  A reference to a concrete or generic type.

  Equality and hashing are structural, so two TypeRefs with the same name and
  arguments are the same type. This is the compatibility test used by the
  dependency graph.
  """

  name: str
  """Type identity (e.g. 'Vec', 'std::string::String', '&', or a parameter name)."""

  args: Tuple["TypeRef", ...] = ()
  """Ordered type arguments."""

  is_param: bool = False
  """True if this is a bare reference to a generic type parameter (e.g. `T`)."""

  @property
  def arity(self) -> int:
    """Number of type arguments."""
    return len(self.args)

  @property
  def is_generic(self) -> bool:
    """True while at least one type-parameter slot remains unfilled."""
    return bool(self.slots())

  @property
  def is_unit(self) -> bool:
    """True for the empty tuple `()`."""
    return self.name == TUPLE and not self.args

  @property
  def is_reference(self) -> bool:
    """True for `&T` and `&mut T`."""
    return self.name in (REF, MUT_REF)

  def slots(self) -> Tuple[str, ...]:
    """
    Returns the ordered, de-duplicated type-parameter names still to be filled.

    Returns:
        Tuple[str, ...]: Parameter names in first-occurrence order.
    """
    found: List[str] = []
    for ref in self.walk():
      if ref.is_param and ref.name not in found:
        found.append(ref.name)
    return tuple(found)

  def walk(self) -> Iterator["TypeRef"]:
    """Yields this type and every nested argument, depth first."""
    yield self
    for arg in self.args:
      yield from arg.walk()

  def substitute(self, mapping: Dict[str, "TypeRef"]) -> "TypeRef":
    """
    Structurally replaces parameter references with concrete types.

    Args:
        mapping: Parameter name to replacement type.

    Returns:
        TypeRef: A new type. Parameters absent from `mapping` are kept.
    """
    if self.is_param:
      return mapping.get(self.name, self)
    if not self.args:
      return self
    return TypeRef(self.name, tuple(a.substitute(mapping) for a in self.args))

  def depth(self) -> int:
    """
    Nesting depth of the type. Leaves count as 1; `Vec<Vec<u8>>` is 3.
    """
    return 1 + max((a.depth() for a in self.args), default=0)

  def render(self) -> str:
    """
    Prints the type back in Rust notation.

    Returns:
        str: e.g. `Vec<i32>`, `&mut [u8]`, `(i32, bool)`.
    """
    if self.is_param:
      return self.name
    inner = [a.render() for a in self.args]
    if self.name == REF:
      return f"&{inner[0]}"
    if self.name == MUT_REF:
      return f"&mut {inner[0]}"
    if self.name == SLICE:
      return f"[{inner[0]}]"
    if self.name.startswith(ARRAY_PREFIX):
      return f"[{inner[0]}; {self.name[len(ARRAY_PREFIX) : -1]}]"
    if self.name == TUPLE:
      if len(inner) == 1:
        return f"({inner[0]},)"
      return f"({', '.join(inner)})"
    if inner:
      return f"{self.name}<{', '.join(inner)}>"
    return self.name

  def __str__(self) -> str:
    return self.render()


UNIT = TypeRef(TUPLE)


def parse_type(text: str, params: Iterable[str] = ()) -> TypeRef:
  """
  Parses a Rust-style type string into a TypeRef.

  Bare identifiers listed in `params` become parameter references. Lifetimes
  are stripped, both after `&` and inside generic argument lists.

  Args:
      text (str): The type string (e.g. "HashMap<K, Vec<V>>").
      params (Iterable[str]): Names of in-scope generic type parameters.

  Returns:
      TypeRef: The parsed type.

  Raises:
      ValueError: If the text is not a supported type expression.
  """
  param_names = frozenset(params)
  return _parse(text, param_names)


def _parse(text: str, params: FrozenSet[str]) -> TypeRef:
  s = text.strip()
  if not s:
    raise ValueError("Empty type expression")

  # 1. References (&T, &'a T, &mut T)
  if s.startswith("&"):
    rest = strip_lifetime(s[1:].lstrip())
    match_mut = re.match(r"^mut\b", rest)
    if match_mut:
      return TypeRef(MUT_REF, (_parse(rest[match_mut.end() :], params),))
    return TypeRef(REF, (_parse(rest, params),))

  # 2. Slices and fixed arrays ([T], [T; N])
  if s.startswith("["):
    if not s.endswith("]"):
      raise ValueError(f"Unterminated slice type '{text}'")
    parts = split_outside_brackets(s[1:-1], separator=";")
    if len(parts) == 1:
      return TypeRef(SLICE, (_parse(parts[0], params),))
    if len(parts) == 2 and parts[1].isdigit():
      return TypeRef(f"{ARRAY_PREFIX}{parts[1]}]", (_parse(parts[0], params),))
    raise ValueError(f"Unsupported array type '{text}'")

  # 3. Tuples and unit
  if s.startswith("("):
    if not s.endswith(")"):
      raise ValueError(f"Unterminated tuple type '{text}'")
    parts = split_outside_brackets(s[1:-1])
    return TypeRef(TUPLE, tuple(_parse(p, params) for p in parts))

  # 4. Paths with optional generic arguments
  match_path = _PATH_TYPE.match(s)
  if not match_path:
    raise ValueError(f"Unsupported type expression '{text}'")

  name = match_path.group("name")
  raw_args = match_path.group("args")
  args: Tuple[TypeRef, ...] = ()
  if raw_args is not None:
    args = tuple(_parse(p, params) for p in split_outside_brackets(raw_args) if not is_lifetime(p))

  if name in params:
    if args:
      raise ValueError(f"Type parameter '{name}' cannot take arguments")
    return TypeRef(name, is_param=True)
  return TypeRef(name, args)


@dataclass(frozen=True)
class BoundSet:
  """
  An unordered, immutable set of trait/lifetime constraints.
  """

  names: FrozenSet[str] = frozenset()

  @classmethod
  def of(cls, bounds: Iterable[str] = ()) -> "BoundSet":
    """
    Builds a normalized BoundSet.

    Whitespace is trimmed. Relaxed bounds (`?Sized`) are dropped because
    they widen rather than restrict the admissible types. Outlives bounds
    on named lifetimes (`'a`) are dropped too: every owned candidate
    outlives them. Only `'static` is kept as a real constraint.

    Args:
        bounds: Raw bound names (e.g. ["Clone", "'static", "?Sized"]).

    Returns:
        BoundSet: The normalized set.
    """
    cleaned = {b.strip() for b in bounds}
    kept = (b for b in cleaned if b and not b.startswith("?"))
    return cls(frozenset(b for b in kept if not is_lifetime(b) or b == STATIC_LIFETIME))

  def is_satisfied_by(self, satisfied: "BoundSet") -> bool:
    """True if every required bound is contained in `satisfied`."""
    return self.names <= satisfied.names

  def union(self, other: "BoundSet") -> "BoundSet":
    return BoundSet(self.names | other.names)

  def render(self) -> str:
    return " + ".join(sorted(self.names))

  def __iter__(self) -> Iterator[str]:
    return iter(sorted(self.names))

  def __len__(self) -> int:
    return len(self.names)

  def __contains__(self, item: object) -> bool:
    return item in self.names


EMPTY_BOUNDS = BoundSet()


@dataclass(frozen=True)
class GenericParam:
  """
  A type parameter of exactly one API.
  """

  name: str
  position: int
  bounds: BoundSet = EMPTY_BOUNDS
  owner: str = ""
  """Path of the declaring API."""

  def render(self) -> str:
    if not self.bounds:
      return self.name
    return f"{self.name}: {self.bounds.render()}"


@dataclass(frozen=True, eq=False)
class ApiSignature:
  """
  A function or method signature.

  Identity-based equality: two signatures remain distinct entities even when
  they print identically, so each instance traces back to its declaration.
  """

  path: str
  generics: Tuple[GenericParam, ...] = ()
  inputs: Tuple[Tuple[str, TypeRef], ...] = ()
  output: TypeRef = UNIT
  origin: Optional["ApiSignature"] = field(default=None, repr=False)
  """Declaring signature when this one was produced by substitution."""

  @property
  def is_generic(self) -> bool:
    return bool(self.generics)

  @property
  def input_types(self) -> Tuple[TypeRef, ...]:
    return tuple(t for _, t in self.inputs)

  @property
  def declaration(self) -> "ApiSignature":
    """The original declared signature (self when not derived)."""
    return self.origin.declaration if self.origin is not None else self

  def referenced_params(self) -> Tuple[str, ...]:
    """
    Parameter names referenced anywhere in inputs or output.
    """
    found: List[str] = []
    for t in (*self.input_types, self.output):
      for name in t.slots():
        if name not in found:
          found.append(name)
    return tuple(found)

  def render(self) -> str:
    """
    Pretty prints the signature (e.g. `first<T: Clone>(v: Vec<T>) -> T`).
    """
    generics = ""
    if self.generics:
      generics = "<" + ", ".join(g.render() for g in self.generics) + ">"
    args = ", ".join(f"{n}: {t.render()}" for n, t in self.inputs)
    text = f"{self.path}{generics}({args})"
    if not self.output.is_unit:
      text += f" -> {self.output.render()}"
    return text

  def __str__(self) -> str:
    return self.render()
