"""
Bound Resolver.

Finds concrete types for generic parameters by delegating to the candidate
pool's bound-inclusion query, and enumerates whole-signature substitutions as
the Cartesian product of per-parameter candidates.

The product is generated lazily; callers decide how much of it to consume.
"""

import itertools
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

from monofuzz.candidates.pool import CandidateType, TypeCandidatePool
from monofuzz.errors import UnsatisfiableBounds
from monofuzz.surface.types import ApiSignature, GenericParam, TypeRef


@dataclass(frozen=True)
class Substitution:
  """
  Mapping from every GenericParam of one signature to a CandidateType.

  Stored as ordered (param, candidate) pairs so substitutions are hashable and
  print in parameter order.
  """

  pairs: Tuple[Tuple[GenericParam, CandidateType], ...] = ()

  @classmethod
  def empty(cls) -> "Substitution":
    return cls()

  def __getitem__(self, param: GenericParam) -> CandidateType:
    for p, c in self.pairs:
      if p == param:
        return c
    raise KeyError(param.name)

  def __len__(self) -> int:
    return len(self.pairs)

  def type_map(self) -> Dict[str, TypeRef]:
    """Parameter name to concrete type, as consumed by `TypeRef.substitute`."""
    return {p.name: c.type for p, c in self.pairs}

  def candidates(self) -> Tuple[CandidateType, ...]:
    return tuple(c for _, c in self.pairs)

  def coverage(self) -> Tuple[Tuple[int, TypeRef], ...]:
    """(parameter position, type) pairs used for diversity bookkeeping."""
    return tuple((p.position, c.type) for p, c in self.pairs)

  def is_sound(self) -> bool:
    """True if every candidate satisfies its parameter's bounds."""
    return all(c.satisfies(p.bounds) for p, c in self.pairs)

  def render(self) -> str:
    return ", ".join(f"{p.name}={c.key}" for p, c in self.pairs)


class BoundResolver:
  """
  Resolves generic parameters against a TypeCandidatePool.
  """

  def __init__(self, pool: TypeCandidatePool) -> None:
    self.pool = pool

  def resolve(self, param: GenericParam) -> Tuple[CandidateType, ...]:
    """
    Returns every candidate satisfying the parameter's bounds.

    Args:
        param: The generic parameter.

    Returns:
        Tuple[CandidateType, ...]: Non-empty, in pool order.

    Raises:
        UnsatisfiableBounds: If no registered type satisfies the bounds.
    """
    candidates = self.pool.query(param.bounds)
    if not candidates:
      raise UnsatisfiableBounds(
        f"No candidate type satisfies {param.render()}",
        subject=param.owner or param.name,
      )
    return candidates

  def candidate_lists(self, api: ApiSignature) -> List[Tuple[CandidateType, ...]]:
    """
    Resolves every parameter of a signature, in position order.

    Raises:
        UnsatisfiableBounds: On the first unresolvable parameter.
    """
    return [self.resolve(param) for param in api.generics]

  def product_size(self, api: ApiSignature) -> int:
    """Size of the full substitution space for `api`."""
    return math.prod(len(c) for c in self.candidate_lists(api))

  def substitutions(self, api: ApiSignature) -> Iterator[Substitution]:
    """
    Lazily enumerates the Cartesian product of per-parameter candidates.

    Order is row-major over parameter position, so the last parameter varies
    fastest. A signature without generics yields one empty substitution.

    Args:
        api: The signature to instantiate.

    Yields:
        Substitution: Sound substitutions covering every parameter.

    Raises:
        UnsatisfiableBounds: If any parameter is unresolvable.
    """
    lists = self.candidate_lists(api)
    for combo in itertools.product(*lists):
      yield Substitution(tuple(zip(api.generics, combo)))
