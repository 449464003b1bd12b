"""
API Dependency Graph.

Links monomorphic APIs by type compatibility: an edge (producer, consumer, i)
exists when the producer's output type can fill input slot `i` of the
consumer. Compatibility is exact structural identity of concrete types.
Two optional adapters widen this: a producer of `T` may fill `&T` / `&mut T`
slots by borrowing, and a producer of `Result<T, E>` or `Option<T>` may fill
`T` slots by unwrapping. Adapters do not compose.

The graph is rebuilt for every run and is read-only once built.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from monofuzz.candidates.primitives import OPTION_PATHS, is_primitive_like
from monofuzz.core.monomorphizer import MonomorphicApi
from monofuzz.enums import EdgeAdapter
from monofuzz.surface.types import MUT_REF, TypeRef

logger = logging.getLogger(__name__)

RESULT_PATHS = {"Result", "core::result::Result", "std::result::Result"}
# Aliases fixing the error type (`std::io::Result<T>`).
RESULT_ALIASES = {"io::Result", "std::io::Result"}


@dataclass(frozen=True)
class DependencyEdge:
  """
  Producer output satisfies one input slot of the consumer.
  """

  producer: MonomorphicApi
  consumer: MonomorphicApi
  input_index: int
  adapter: EdgeAdapter = EdgeAdapter.DIRECT


class DependencyGraph:
  """
  Directed producer -> consumer graph over monomorphic APIs.

  Attributes:
      apis (Tuple[MonomorphicApi, ...]): Nodes, in pipeline order.
      edges (Tuple[DependencyEdge, ...]): Edges ordered by consumer, slot, producer.
  """

  def __init__(self, apis: Sequence[MonomorphicApi], edges: Sequence[DependencyEdge]) -> None:
    self.apis: Tuple[MonomorphicApi, ...] = tuple(apis)
    self.edges: Tuple[DependencyEdge, ...] = tuple(edges)
    self._index: Dict[MonomorphicApi, int] = {api: i for i, api in enumerate(self.apis)}
    self._by_slot: Dict[Tuple[MonomorphicApi, int], List[DependencyEdge]] = {}
    self._by_producer: Dict[MonomorphicApi, List[DependencyEdge]] = {}
    for edge in self.edges:
      self._by_slot.setdefault((edge.consumer, edge.input_index), []).append(edge)
      self._by_producer.setdefault(edge.producer, []).append(edge)

  def index_of(self, api: MonomorphicApi) -> int:
    """Position of `api` among the graph nodes."""
    return self._index[api]

  def producers_for(self, consumer: MonomorphicApi, input_index: int) -> Tuple[DependencyEdge, ...]:
    """
    Edges whose producer can fill the given input slot.

    Args:
        consumer: The consuming API.
        input_index: Position of the input.

    Returns:
        Tuple[DependencyEdge, ...]: Matching edges in producer order.
    """
    return tuple(self._by_slot.get((consumer, input_index), ()))

  def consumers_of(self, producer: MonomorphicApi) -> Tuple[DependencyEdge, ...]:
    return tuple(self._by_producer.get(producer, ()))

  def unreachable_inputs(self) -> List[Tuple[MonomorphicApi, int]]:
    """
    Input slots that no API produces and that cannot be seeded from raw bytes.

    APIs with such an input can never be the target of a driver.
    """
    missing = []
    for api in self.apis:
      for i, t in enumerate(api.input_types):
        if not self._by_slot.get((api, i)) and not is_primitive_like(t):
          missing.append((api, i))
    return missing

  def __len__(self) -> int:
    return len(self.edges)


def unwrapped_output(output: TypeRef) -> Optional[Tuple[TypeRef, EdgeAdapter]]:
  """
  The value inside a `Result` or `Option` output, with the adapter reaching it.

  Args:
      output: A producer's concrete output type.

  Returns:
      Optional[Tuple[TypeRef, EdgeAdapter]]: None for any other type, and for
      wrappers around unit (`Result<(), E>`).
  """
  if output.name in RESULT_PATHS and output.arity == 2:
    inner, adapter = output.args[0], EdgeAdapter.UNWRAP_RESULT
  elif output.name in RESULT_ALIASES and output.arity == 1:
    inner, adapter = output.args[0], EdgeAdapter.UNWRAP_RESULT
  elif output.name in OPTION_PATHS and output.arity == 1:
    inner, adapter = output.args[0], EdgeAdapter.UNWRAP_OPTION
  else:
    return None
  if inner.is_unit:
    return None
  return inner, adapter


class DependencyGraphBuilder:
  """
  Computes the dependency edge set over a set of monomorphic APIs.
  """

  def __init__(self, allow_borrow_adapters: bool = False, allow_unwrap_adapters: bool = False) -> None:
    """
    Args:
        allow_borrow_adapters: If True, a producer of `T` may also feed `&T`
            and `&mut T` inputs.
        allow_unwrap_adapters: If True, a producer of `Result<T, E>` or
            `Option<T>` may also feed `T` inputs.
    """
    self.allow_borrow_adapters = allow_borrow_adapters
    self.allow_unwrap_adapters = allow_unwrap_adapters

  def build(self, apis: Sequence[MonomorphicApi]) -> DependencyGraph:
    """
    Builds the graph.

    Producers are indexed by output type, then every consumer slot is looked
    up in that index, which yields the same edges as comparing each producer
    with each slot. A slot lists direct producers first, then borrowing, then
    unwrapping ones.

    Args:
        apis: All monomorphic APIs of the run.

    Returns:
        DependencyGraph: The fresh graph.
    """
    by_output: Dict[TypeRef, List[MonomorphicApi]] = {}
    by_unwrapped: Dict[TypeRef, List[Tuple[MonomorphicApi, EdgeAdapter]]] = {}
    for api in apis:
      if api.output.is_unit or api.output.is_generic:
        continue
      by_output.setdefault(api.output, []).append(api)
      unwrapped = unwrapped_output(api.output)
      if unwrapped is not None:
        inner, adapter = unwrapped
        by_unwrapped.setdefault(inner, []).append((api, adapter))

    edges: List[DependencyEdge] = []
    for consumer in apis:
      for index, wanted in enumerate(consumer.input_types):
        for producer in by_output.get(wanted, ()):
          edges.append(DependencyEdge(producer, consumer, index))

        if self.allow_borrow_adapters and wanted.is_reference:
          adapter = EdgeAdapter.BORROW_MUT if wanted.name == MUT_REF else EdgeAdapter.BORROW
          for producer in by_output.get(wanted.args[0], ()):
            edges.append(DependencyEdge(producer, consumer, index, adapter))

        if self.allow_unwrap_adapters:
          for producer, adapter in by_unwrapped.get(wanted, ()):
            edges.append(DependencyEdge(producer, consumer, index, adapter))

    logger.debug("Dependency graph: %d nodes, %d edges", len(apis), len(edges))
    return DependencyGraph(apis, edges)
