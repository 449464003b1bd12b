"""
Type Candidate Pool.

Catalog of concrete types available for generic substitution, each annotated
with the bound set it is known to satisfy. Satisfied bounds are computed once
at registration (including implied supertraits) so resolution is a pure
set-inclusion lookup rather than a trait solver.

Ordering is by registration so that synthesis is reproducible.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

from monofuzz.surface.schema import CandidateFact
from monofuzz.surface.types import BoundSet, TypeRef, parse_type

logger = logging.getLogger(__name__)

# Traits implied by implementing another trait (std supertrait lattice).
SUPERTRAITS: Dict[str, Tuple[str, ...]] = {
  "Copy": ("Clone",),
  "Eq": ("PartialEq",),
  "PartialOrd": ("PartialEq",),
  "Ord": ("Eq", "PartialOrd"),
  "Error": ("Debug", "Display"),
  "DoubleEndedIterator": ("Iterator",),
  "ExactSizeIterator": ("Iterator",),
  "FusedIterator": ("Iterator",),
  "BufRead": ("Read",),
}

_MARKERS = ("Sized", "Send", "Sync", "Unpin", "'static")
_INTEGER_TRAITS = (
  "Copy",
  "Ord",
  "Hash",
  "Debug",
  "Display",
  "Default",
  "FromStr",
  *_MARKERS,
)

# Minimal built-in universe. Order matters: it is the tie-break order of
# every query that these types satisfy.
BUILTIN_CANDIDATES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
  ("i32", _INTEGER_TRAITS),
  ("String", ("Clone", "Ord", "Hash", "Debug", "Display", "Default", "FromStr", "AsRef<str>", *_MARKERS)),
  ("u8", _INTEGER_TRAITS),
  ("bool", _INTEGER_TRAITS),
  ("usize", _INTEGER_TRAITS),
  ("i64", _INTEGER_TRAITS),
  ("u64", _INTEGER_TRAITS),
  ("f64", ("Copy", "PartialOrd", "Debug", "Display", "Default", "FromStr", *_MARKERS)),
  ("char", _INTEGER_TRAITS),
)


def expand_supertraits(bounds: BoundSet) -> BoundSet:
  """
  Closes a bound set under the supertrait relation.

  Args:
      bounds: Declared satisfied bounds.

  Returns:
      BoundSet: The input plus every implied supertrait.
  """
  closed = set(bounds.names)
  frontier = list(closed)
  while frontier:
    trait = frontier.pop()
    for parent in SUPERTRAITS.get(trait, ()):
      if parent not in closed:
        closed.add(parent)
        frontier.append(parent)
  return BoundSet(frozenset(closed))


@dataclass(frozen=True)
class CandidateType:
  """
  A concrete type plus the bounds it satisfies. Owned by the pool.
  """

  type: TypeRef
  bounds: BoundSet

  @property
  def key(self) -> str:
    """Stable printable identity (e.g. 'Vec<u8>')."""
    return self.type.render()

  def satisfies(self, required: BoundSet) -> bool:
    return required.is_satisfied_by(self.bounds)


class TypeCandidatePool:
  """
  Registry of substitution candidates with deterministic, cached queries.
  """

  def __init__(self, seed_builtins: bool = True) -> None:
    """
    Initializes the pool.

    Args:
        seed_builtins: If True, registers the built-in primitive/common types
            so unconstrained parameters are always resolvable.
    """
    self._entries: Dict[TypeRef, CandidateType] = {}
    self._query_cache: Dict[BoundSet, Tuple[CandidateType, ...]] = {}
    if seed_builtins:
      for type_str, bounds in BUILTIN_CANDIDATES:
        self.register(type_str, bounds)

  @classmethod
  def from_facts(cls, facts: Iterable[CandidateFact], seed_builtins: bool = True) -> "TypeCandidatePool":
    """
    Builds a pool widened by supplementary candidate facts.

    Args:
        facts: Candidate entries from the facts document.
        seed_builtins: Whether to include the built-in types first.

    Unparsable or generic candidate types are skipped with a warning.

    Returns:
        TypeCandidatePool: The populated pool.
    """
    pool = cls(seed_builtins=seed_builtins)
    for fact in facts:
      try:
        pool.register(fact.type, fact.bounds)
      except ValueError as e:
        logger.warning("Skipping candidate %r: %s", fact.type, e)
    return pool

  def register(
    self,
    type_ref: Union[TypeRef, str],
    satisfied_bounds: Union[BoundSet, Iterable[str]] = (),
  ) -> CandidateType:
    """
    Adds or updates a candidate.

    Re-registering a known type replaces its bound set but keeps its original
    position in the ordering. Registering identical data is a no-op.

    Args:
        type_ref: The concrete type, as a TypeRef or Rust notation string.
        satisfied_bounds: Bounds the type satisfies.

    Returns:
        CandidateType: The stored candidate.

    Raises:
        ValueError: If the type still has unfilled generic slots.
    """
    if isinstance(type_ref, str):
      type_ref = parse_type(type_ref)
    if type_ref.is_generic:
      raise ValueError(f"Candidate type '{type_ref}' must be concrete")

    bounds = satisfied_bounds if isinstance(satisfied_bounds, BoundSet) else BoundSet.of(satisfied_bounds)
    candidate = CandidateType(type=type_ref, bounds=expand_supertraits(bounds))

    existing = self._entries.get(type_ref)
    if existing == candidate:
      return existing

    self._entries[type_ref] = candidate
    self._query_cache.clear()
    return candidate

  def query(self, required: BoundSet) -> Tuple[CandidateType, ...]:
    """
    Returns every candidate whose satisfied bounds include `required`.

    Args:
        required: The bounds a parameter demands.

    Returns:
        Tuple[CandidateType, ...]: Matches in registration order.
    """
    cached = self._query_cache.get(required)
    if cached is not None:
      return cached
    result = tuple(c for c in self._entries.values() if c.satisfies(required))
    self._query_cache[required] = result
    return result

  def get(self, type_ref: TypeRef) -> Optional[CandidateType]:
    return self._entries.get(type_ref)

  def __contains__(self, type_ref: object) -> bool:
    return type_ref in self._entries

  def __iter__(self) -> Iterator[CandidateType]:
    return iter(tuple(self._entries.values()))

  def __len__(self) -> int:
    return len(self._entries)
