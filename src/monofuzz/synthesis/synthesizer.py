"""
Driver Synthesizer.

Backward search from a target API over the dependency graph. The search keeps
an explicit stack of immutable partial drivers ("branches") in an arena with
parent links, so every budget is checked at each expansion step and no
recursion depth is involved.

Transitions on the next pending input of a branch:

- **Expansion**: for each producer able to fill the input (ordered by the
  tie-break policy, capped by `max_branching`), fork a branch that adds the
  producer call and queues the producer's own inputs one level deeper.
- **Seed fallback**: no producer, but the input is primitive-like, so bind
  it to a fuzz seed.
- **Rejection**: neither producible nor seedable (`DeadEndBinding`), or only
  producible beyond the depth / call budget (`BudgetExceeded`).

A branch with nothing pending is accepted as a Driver. Calls are emitted in
reverse creation order, which always places a producer before its consumer.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from monofuzz.candidates.primitives import is_primitive_like, seed_layout
from monofuzz.config import RuntimeConfig
from monofuzz.core.graph import DependencyEdge, DependencyGraph
from monofuzz.core.monomorphizer import MonomorphicApi
from monofuzz.diagnostics import DiagnosticReport
from monofuzz.enums import BindingKind, ProducerTieBreak
from monofuzz.errors import BudgetExceeded, DeadEndBinding
from monofuzz.surface.types import TypeRef
from monofuzz.synthesis.driver import Binding, Driver, DriverCall, SeedPoint

logger = logging.getLogger(__name__)

# (call id, input index) identifies one argument slot inside a branch.
_Slot = Tuple[int, int]


@dataclass(frozen=True)
class _Pending:
  call_id: int
  input_index: int
  type: TypeRef
  depth: int
  """Depth of the consuming call (target is 0)."""


@dataclass(frozen=True)
class _Branch:
  calls: Tuple[Tuple[MonomorphicApi, int], ...]
  """(api, depth) per call id, in creation order. Call id 0 is the target."""

  pending: Tuple[_Pending, ...]
  bindings: Tuple[Tuple[_Slot, Binding], ...] = ()
  """Binding per slot; CALL_OUTPUT indices hold call ids until finalized."""

  seeds: Tuple[_Slot, ...] = ()
  parent: int = -1


@dataclass
class SynthesisOutcome:
  """
  Result of synthesizing drivers for one target.
  """

  target: MonomorphicApi
  drivers: List[Driver] = field(default_factory=list)
  report: DiagnosticReport = field(default_factory=DiagnosticReport)
  expansions: int = 0


class DriverSynthesizer:
  """
  Graph-guided backward synthesis of drivers.
  """

  def __init__(
    self,
    graph: DependencyGraph,
    max_call_depth: int = 5,
    max_drivers: int = 8,
    max_branching: int = 4,
    max_calls: int = 16,
    max_expansions: int = 10000,
    tie_break: ProducerTieBreak = ProducerTieBreak.DIVERSITY,
    require_seed_input: bool = False,
    always_offer_seed: bool = False,
  ) -> None:
    """
    Args:
        graph: Dependency graph of the run.
        max_call_depth: Deepest producer level below the target.
        max_drivers: Accepted drivers per target.
        max_branching: Producers explored per pending input.
        max_calls: Calls allowed in one driver.
        max_expansions: Expansion steps per target.
        tie_break: Producer ordering policy.
        require_seed_input: Reject drivers without any seed point.
        always_offer_seed: Also fork a seed branch for primitive-like inputs
            that do have producers.
    """
    self.graph = graph
    self.max_call_depth = max_call_depth
    self.max_drivers = max_drivers
    self.max_branching = max_branching
    self.max_calls = max_calls
    self.max_expansions = max_expansions
    self.tie_break = tie_break
    self.require_seed_input = require_seed_input
    self.always_offer_seed = always_offer_seed

  @classmethod
  def from_config(cls, graph: DependencyGraph, config: RuntimeConfig) -> "DriverSynthesizer":
    return cls(
      graph,
      max_call_depth=config.max_driver_call_depth,
      max_drivers=config.max_drivers_per_target,
      max_branching=config.max_branching,
      max_calls=config.max_driver_calls,
      max_expansions=config.max_expansions,
      tie_break=config.producer_tie_break,
      require_seed_input=config.require_seed_input,
      always_offer_seed=config.always_offer_seed,
    )

  def synthesize(self, target: MonomorphicApi) -> SynthesisOutcome:
    """
    Searches for drivers ending in `target`.

    Args:
        target: A monomorphic API of the graph.

    Returns:
        SynthesisOutcome: Accepted drivers plus diagnostics of rejected branches.
    """
    outcome = SynthesisOutcome(target=target)
    usage: Counter = Counter()

    root = _Branch(
      calls=((target, 0),),
      pending=tuple(_Pending(0, i, t, 0) for i, t in enumerate(target.input_types)),
    )
    arena: List[_Branch] = [root]
    stack: List[int] = [0]

    while stack and len(outcome.drivers) < self.max_drivers:
      if outcome.expansions >= self.max_expansions:
        outcome.report.record(
          BudgetExceeded(f"Expansion budget of {self.max_expansions} steps exhausted", subject=target.key)
        )
        break
      outcome.expansions += 1

      branch_id = stack.pop()
      branch = arena[branch_id]

      if not branch.pending:
        self._accept(target, branch, outcome, usage)
        continue

      try:
        children = self._expand(target, branch, branch_id, usage)
      except (DeadEndBinding, BudgetExceeded) as e:
        outcome.report.record(e)
        logger.debug("Branch #%d (from #%d) of %s rejected: %s", branch_id, branch.parent, target.key, e)
        continue

      # Reverse so the preferred child is explored first.
      for child in reversed(children):
        arena.append(child)
        stack.append(len(arena) - 1)

    logger.debug("%s: %d drivers after %d expansions", target.key, len(outcome.drivers), outcome.expansions)
    return outcome

  def _accept(self, target: MonomorphicApi, branch: _Branch, outcome: SynthesisOutcome, usage: Counter) -> None:
    if self.require_seed_input and not branch.seeds:
      outcome.report.record(DeadEndBinding("Driver has no raw fuzz input", subject=target.key))
      return
    driver = self._finalize(target, branch)
    outcome.drivers.append(driver)
    usage.update(driver.apis_used())

  def _expand(self, target: MonomorphicApi, branch: _Branch, branch_id: int, usage: Counter) -> List[_Branch]:
    item, rest = branch.pending[0], branch.pending[1:]
    consumer = branch.calls[item.call_id][0]
    edges = self.graph.producers_for(consumer, item.input_index)
    seedable = is_primitive_like(item.type)
    within_budget = item.depth + 1 <= self.max_call_depth and len(branch.calls) < self.max_calls

    children: List[_Branch] = []
    if edges and within_budget:
      for edge in self._order(edges, usage)[: self.max_branching]:
        children.append(self._with_producer(branch, branch_id, item, rest, edge))
      if seedable and self.always_offer_seed:
        children.append(self._with_seed(branch, branch_id, item, rest))
      return children

    if seedable:
      return [self._with_seed(branch, branch_id, item, rest)]

    arg_name = consumer.inputs[item.input_index][0]
    if edges:
      raise BudgetExceeded(
        f"Input '{arg_name}: {item.type}' of {consumer.key} needs a producer beyond "
        f"depth {self.max_call_depth} or {self.max_calls} calls",
        subject=target.key,
      )
    raise DeadEndBinding(
      f"No producer or seed for input '{arg_name}: {item.type}' of {consumer.key}",
      subject=target.key,
    )

  def _order(self, edges: Tuple[DependencyEdge, ...], usage: Counter) -> List[DependencyEdge]:
    indexed = list(enumerate(edges))
    if self.tie_break == ProducerTieBreak.SHORTEST:
      indexed.sort(key=lambda p: (len(p[1].producer.input_types), p[0]))
    elif self.tie_break == ProducerTieBreak.DIVERSITY:
      indexed.sort(key=lambda p: (usage[p[1].producer.key], p[0]))
    return [edge for _, edge in indexed]

  def _with_producer(
    self, branch: _Branch, branch_id: int, item: _Pending, rest: Tuple[_Pending, ...], edge: DependencyEdge
  ) -> _Branch:
    producer_id = len(branch.calls)
    depth = item.depth + 1
    queued = tuple(_Pending(producer_id, i, t, depth) for i, t in enumerate(edge.producer.input_types))
    binding = Binding(BindingKind.CALL_OUTPUT, producer_id, edge.adapter)
    return _Branch(
      calls=branch.calls + ((edge.producer, depth),),
      pending=rest + queued,
      bindings=branch.bindings + (((item.call_id, item.input_index), binding),),
      seeds=branch.seeds,
      parent=branch_id,
    )

  def _with_seed(self, branch: _Branch, branch_id: int, item: _Pending, rest: Tuple[_Pending, ...]) -> _Branch:
    slot = (item.call_id, item.input_index)
    binding = Binding(BindingKind.SEED, len(branch.seeds))
    return _Branch(
      calls=branch.calls,
      pending=rest,
      bindings=branch.bindings + ((slot, binding),),
      seeds=branch.seeds + (slot,),
      parent=branch_id,
    )

  def _finalize(self, target: MonomorphicApi, branch: _Branch) -> Driver:
    count = len(branch.calls)

    def position(call_id: int) -> int:
      return count - 1 - call_id

    slot_bindings: Dict[_Slot, Binding] = dict(branch.bindings)

    calls = []
    for call_id in reversed(range(count)):
      api = branch.calls[call_id][0]
      bindings = []
      for i in range(len(api.input_types)):
        raw = slot_bindings[(call_id, i)]
        if raw.kind == BindingKind.CALL_OUTPUT:
          raw = Binding(BindingKind.CALL_OUTPUT, position(raw.index), raw.adapter)
        bindings.append(raw)
      calls.append(DriverCall(api=api, bindings=tuple(bindings)))

    seeds = []
    for index, (call_id, input_index) in enumerate(branch.seeds):
      seed_type = branch.calls[call_id][0].input_types[input_index]
      seeds.append(
        SeedPoint(
          index=index,
          type=seed_type,
          call=position(call_id),
          input_index=input_index,
          layout=seed_layout(seed_type),
        )
      )

    return Driver(target=target, calls=tuple(calls), seeds=tuple(seeds))
