"""
Synthesis Pipeline.

Runs the stages in order over one API surface:

    ApiSurface -> Monomorphizer -> DependencyGraphBuilder -> DriverSynthesizer

Each stage reads an immutable snapshot produced by the previous one. With
`workers > 1` the per-API stages (monomorphization, per-target synthesis) run
on a thread pool; results are collected with `executor.map`, so the output
order always equals the input order and a run is reproducible.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from rich.markup import escape

from monofuzz.candidates.pool import TypeCandidatePool
from monofuzz.config import RuntimeConfig
from monofuzz.core.graph import DependencyGraph, DependencyGraphBuilder
from monofuzz.core.monomorphizer import MonomorphicApi, Monomorphizer
from monofuzz.core.resolver import BoundResolver
from monofuzz.diagnostics import DiagnosticReport, RunStatistics
from monofuzz.surface.model import ApiSurface
from monofuzz.surface.schema import FactsDocument
from monofuzz.surface.types import ApiSignature
from monofuzz.synthesis.driver import Driver
from monofuzz.synthesis.synthesizer import DriverSynthesizer, SynthesisOutcome
from monofuzz.utils.console import log_warning

logger = logging.getLogger(__name__)

_In = TypeVar("_In")
_Out = TypeVar("_Out")


@dataclass
class SynthesisResult:
  """
  Everything a run produced.

  Attributes:
      apis: Monomorphic APIs (graph nodes) in pipeline order.
      graph: The dependency graph.
      drivers: Accepted drivers, grouped by target in target order.
      report: Diagnostics of every stage, in stage order.
      statistics: Summary counters.
  """

  apis: Tuple[MonomorphicApi, ...]
  graph: DependencyGraph
  drivers: Tuple[Driver, ...]
  report: DiagnosticReport
  statistics: RunStatistics

  def drivers_for(self, target_key: str) -> List[Driver]:
    """Drivers whose target has the given key (e.g. `demo::first<T=i32>`)."""
    return [d for d in self.drivers if d.target.key == target_key]

  def to_dict(self) -> Dict[str, Any]:
    return {
      "drivers": [d.to_dict() for d in self.drivers],
      "diagnostics": self.report.to_list(),
      "statistics": self.statistics.to_dict(),
    }


class SynthesisPipeline:
  """
  Orchestrates one synthesis run.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None, pool: Optional[TypeCandidatePool] = None) -> None:
    """
    Args:
        config: Caps and policies. Defaults to `RuntimeConfig()`.
        pool: Substitution candidates. Defaults to the built-in pool.
    """
    self.config = config or RuntimeConfig()
    self.pool = pool if pool is not None else TypeCandidatePool()

  @classmethod
  def from_document(
    cls, document: FactsDocument, config: Optional[RuntimeConfig] = None
  ) -> Tuple["SynthesisPipeline", ApiSurface]:
    """
    Prepares a pipeline and surface from a validated facts document.

    Args:
        document: Parsed facts.
        config: Run configuration.

    Returns:
        Tuple[SynthesisPipeline, ApiSurface]: Pipeline with a widened pool,
        and the surface to run it on.
    """
    pool = TypeCandidatePool.from_facts(document.candidates)
    surface = ApiSurface.from_document(document)
    return cls(config=config, pool=pool), surface

  def run(self, surface: ApiSurface) -> SynthesisResult:
    """
    Executes every stage over `surface`.

    Args:
        surface: The API surface snapshot.

    Returns:
        SynthesisResult: APIs, graph, drivers, diagnostics and statistics.
    """
    report = DiagnosticReport(surface.diagnostics)

    monomorphizer = Monomorphizer(
      BoundResolver(self.pool),
      max_instantiations=self.config.max_instantiations_per_api,
      max_type_depth=self.config.max_type_depth,
      max_product_scan=self.config.max_product_scan,
    )
    per_api = self._map(lambda api: self._instantiate(monomorphizer, api), surface.apis)

    apis: List[MonomorphicApi] = []
    for instances, api_report in per_api:
      apis.extend(instances)
      report.extend(api_report)
    logger.info(f"Monomorphized {len(surface)} APIs into {len(apis)} instances")

    graph = DependencyGraphBuilder(
      allow_borrow_adapters=self.config.allow_borrow_adapters,
      allow_unwrap_adapters=self.config.allow_unwrap_adapters,
    ).build(apis)
    logger.info(f"Dependency graph has {len(graph)} edges")

    synthesizer = DriverSynthesizer.from_config(graph, self.config)
    targets = self._select_targets(apis)
    outcomes: List[SynthesisOutcome] = self._map(synthesizer.synthesize, targets)

    drivers: List[Driver] = []
    for outcome in outcomes:
      drivers.extend(outcome.drivers)
      report.extend(outcome.report)

    statistics = self._statistics(surface, per_api, graph, targets, drivers, report)
    return SynthesisResult(
      apis=tuple(apis),
      graph=graph,
      drivers=tuple(drivers),
      report=report,
      statistics=statistics,
    )

  def _instantiate(
    self, monomorphizer: Monomorphizer, api: ApiSignature
  ) -> Tuple[Tuple[MonomorphicApi, ...], DiagnosticReport]:
    # A report per API keeps merging order independent of thread scheduling.
    local = DiagnosticReport()
    return monomorphizer.instantiate(api, local), local

  def _select_targets(self, apis: Sequence[MonomorphicApi]) -> List[MonomorphicApi]:
    wanted = self.config.targets
    if not wanted:
      return list(apis)

    known = {api.path for api in apis}
    for path in wanted:
      if path not in known:
        log_warning(f"Target '{escape(path)}' has no monomorphic instance; ignoring it.")
    return [api for api in apis if api.path in wanted]

  def _map(self, fn: Callable[[_In], _Out], items: Iterable[_In]) -> List[_Out]:
    if self.config.workers <= 1:
      return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
      return list(executor.map(fn, items))

  @staticmethod
  def _statistics(
    surface: ApiSurface,
    per_api: Sequence[Tuple[Tuple[MonomorphicApi, ...], DiagnosticReport]],
    graph: DependencyGraph,
    targets: Sequence[MonomorphicApi],
    drivers: Sequence[Driver],
    report: DiagnosticReport,
  ) -> RunStatistics:
    generic = [instances for api, (instances, _) in zip(surface.apis, per_api) if api.is_generic]
    return RunStatistics(
      functions=len(surface),
      generic_functions=len(generic),
      monomorphized_functions=sum(1 for instances in generic if instances),
      mono_instances=sum(len(instances) for instances, _ in per_api),
      dependency_edges=len(graph),
      targets=len(targets),
      drivers=len(drivers),
      seed_points=sum(len(d.seeds) for d in drivers),
      diagnostics={kind.value: n for kind, n in report.counts().items()},
    )
