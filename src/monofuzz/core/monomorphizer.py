"""
Monomorphizer.

Turns each generic ApiSignature into a bounded, diverse family of concrete
(monomorphic) signatures.

Algorithm:
1.  Enumerate substitutions from the resolver's Cartesian product, up to a
    scan window (`max_product_scan`).
2.  Apply each substitution structurally to the inputs and output. No
    inference happens beyond direct replacement.
3.  Refuse instances whose output nests deeper than `max_type_depth`.
4.  Select up to `max_instantiations_per_api` instances greedily: each round
    takes the first remaining instance that covers the most concrete types
    not yet covered, breaking ties by uncovered (parameter, type) pairs. The
    greedy order is independent of the cap, so a larger cap always extends
    a smaller cap's selection.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from monofuzz.core.resolver import BoundResolver, Substitution
from monofuzz.diagnostics import DiagnosticReport
from monofuzz.errors import BudgetExceeded, UnsatisfiableBounds
from monofuzz.surface.types import ApiSignature, GenericParam, TypeRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class MonomorphicApi:
  """
  A fully concrete signature plus its provenance.

  Attributes:
      signature: The substituted signature (no generics).
      origin: The declared (possibly generic) signature it came from.
      substitution: The substitution applied; empty for non-generic APIs.
  """

  signature: ApiSignature
  origin: ApiSignature
  substitution: Substitution = field(default_factory=Substitution.empty)

  @property
  def path(self) -> str:
    return self.signature.path

  @property
  def generics(self) -> Tuple[GenericParam, ...]:
    return self.signature.generics

  @property
  def inputs(self) -> Tuple[Tuple[str, TypeRef], ...]:
    return self.signature.inputs

  @property
  def input_types(self) -> Tuple[TypeRef, ...]:
    return self.signature.input_types

  @property
  def output(self) -> TypeRef:
    return self.signature.output

  @property
  def key(self) -> str:
    """Display identity, e.g. `demo::first<T=i32>`."""
    if not self.substitution:
      return self.path
    return f"{self.path}<{self.substitution.render()}>"

  def render(self) -> str:
    return self.signature.render()

  def __str__(self) -> str:
    return self.key


def apply_substitution(api: ApiSignature, substitution: Substitution) -> MonomorphicApi:
  """
  Replaces every generic parameter reference in `api` with its mapped type.

  Args:
      api: The declared signature.
      substitution: A substitution covering all of `api`'s generics.

  Returns:
      MonomorphicApi: The concrete instance.
  """
  type_map = substitution.type_map()
  signature = ApiSignature(
    path=api.path,
    generics=(),
    inputs=tuple((name, t.substitute(type_map)) for name, t in api.inputs),
    output=api.output.substitute(type_map),
    origin=api,
  )
  return MonomorphicApi(signature=signature, origin=api, substitution=substitution)


def select_diverse(instances: Sequence[MonomorphicApi], cap: int) -> List[MonomorphicApi]:
  """
  Greedy coverage-maximizing selection.

  Each round takes the first remaining instance that adds the most concrete
  types not yet covered. Ties go to the one adding the most new
  (parameter position, type) pairs, then to enumeration order.

  Args:
      instances: Candidates in enumeration order.
      cap: Maximum number to keep.

  Returns:
      List[MonomorphicApi]: Selected instances, in selection order.
  """
  remaining = list(instances)
  selected: List[MonomorphicApi] = []
  covered_types: Set[TypeRef] = set()
  covered_pairs: Set[Tuple[int, TypeRef]] = set()

  def gain(inst: MonomorphicApi) -> Tuple[int, int]:
    types = {c.type for c in inst.substitution.candidates()}
    return len(types - covered_types), len(set(inst.substitution.coverage()) - covered_pairs)

  while remaining and len(selected) < cap:
    gains = [gain(inst) for inst in remaining]
    best = max(range(len(remaining)), key=lambda i: (gains[i], -i))
    pick = remaining.pop(best)
    selected.append(pick)
    covered_types.update(c.type for c in pick.substitution.candidates())
    covered_pairs.update(pick.substitution.coverage())

  return selected


class Monomorphizer:
  """
  Produces monomorphic instances of API signatures.
  """

  def __init__(
    self,
    resolver: BoundResolver,
    max_instantiations: int = 3,
    max_type_depth: int = 5,
    max_product_scan: int = 4096,
  ) -> None:
    """
    Args:
        resolver: Resolver bound to the run's candidate pool.
        max_instantiations: Diversity cap per generic API.
        max_type_depth: Deepest admissible output type.
        max_product_scan: Substitutions read from the product before selection.
    """
    self.resolver = resolver
    self.max_instantiations = max_instantiations
    self.max_type_depth = max_type_depth
    self.max_product_scan = max_product_scan

  def instantiate(self, api: ApiSignature, report: Optional[DiagnosticReport] = None) -> Tuple[MonomorphicApi, ...]:
    """
    Instantiates one API.

    Non-generic APIs pass through as a single identity instance. If any
    parameter is unresolvable the API yields nothing and one
    `UnsatisfiableBounds` diagnostic is recorded. If the depth guard refuses
    every instance, one `BudgetExceeded` diagnostic is recorded instead.

    Args:
        api: The declared signature.
        report: Optional sink for diagnostics.

    Returns:
        Tuple[MonomorphicApi, ...]: The selected instances.
    """
    if not api.is_generic:
      return (apply_substitution(api, Substitution.empty()),)

    try:
      window = list(itertools.islice(self.resolver.substitutions(api), self.max_product_scan))
    except UnsatisfiableBounds as e:
      if report is not None:
        report.record(e)
      logger.debug("Skipping %s: %s", api.path, e)
      return ()

    instances = []
    for substitution in window:
      mono = apply_substitution(api, substitution)
      if mono.output.depth() > self.max_type_depth:
        logger.debug("Refusing %s: output %s is too deep", mono.key, mono.output)
        continue
      instances.append(mono)

    if not instances:
      error = BudgetExceeded(f"Every instance exceeds the type depth limit of {self.max_type_depth}", subject=api.path)
      if report is not None:
        report.record(error)
      logger.debug("Skipping %s: %s", api.path, error)
      return ()

    selected = select_diverse(instances, self.max_instantiations)
    logger.debug("%s: %d of %d instances selected", api.path, len(selected), len(instances))
    return tuple(selected)

  def instantiate_all(
    self, apis: Sequence[ApiSignature], report: Optional[DiagnosticReport] = None
  ) -> List[MonomorphicApi]:
    """Sequentially instantiates `apis`, concatenating results in order."""
    result: List[MonomorphicApi] = []
    for api in apis:
      result.extend(self.instantiate(api, report))
    return result
