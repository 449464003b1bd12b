"""
Diagnostics and Run Statistics.

Recoverable failures are never raised out of a run. Each stage turns them into
`Diagnostic` records that are aggregated into a `DiagnosticReport`, and the
pipeline tallies summary counters into `RunStatistics` for display.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List

from rich.table import Table

from monofuzz.enums import DiagnosticKind
from monofuzz.errors import MonofuzzError


@dataclass(frozen=True)
class Diagnostic:
  """
  A single recoverable failure.

  Attributes:
      kind: Failure category.
      subject: API path, parameter or branch identity concerned.
      message: Human readable explanation.
  """

  kind: DiagnosticKind
  subject: str
  message: str

  @classmethod
  def from_error(cls, error: MonofuzzError) -> "Diagnostic":
    return cls(kind=error.kind, subject=error.subject, message=str(error))

  def to_dict(self) -> Dict[str, str]:
    return {"kind": self.kind.value, "subject": self.subject, "message": self.message}


class DiagnosticReport:
  """
  Ordered collection of diagnostics for one run (or one stage of it).
  """

  def __init__(self, items: Iterable[Diagnostic] = ()) -> None:
    self._items: List[Diagnostic] = list(items)

  def add(self, diagnostic: Diagnostic) -> None:
    self._items.append(diagnostic)

  def record(self, error: MonofuzzError) -> Diagnostic:
    """
    Converts a caught error into a diagnostic and stores it.

    Args:
        error: The recovered exception.

    Returns:
        Diagnostic: The stored record.
    """
    diagnostic = Diagnostic.from_error(error)
    self._items.append(diagnostic)
    return diagnostic

  def extend(self, other: "DiagnosticReport") -> None:
    self._items.extend(other)

  def count(self, kind: DiagnosticKind) -> int:
    return sum(1 for d in self._items if d.kind == kind)

  def counts(self) -> Dict[DiagnosticKind, int]:
    """Number of diagnostics per kind, in enum declaration order."""
    tally = Counter(d.kind for d in self._items)
    return {kind: tally[kind] for kind in DiagnosticKind}

  def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
    return [d for d in self._items if d.kind == kind]

  def to_list(self) -> List[Dict[str, str]]:
    return [d.to_dict() for d in self._items]

  def __iter__(self):
    return iter(self._items)

  def __len__(self) -> int:
    return len(self._items)


@dataclass
class RunStatistics:
  """
  Summary counters of one synthesis run.
  """

  functions: int = 0
  generic_functions: int = 0
  monomorphized_functions: int = 0
  mono_instances: int = 0
  dependency_edges: int = 0
  targets: int = 0
  drivers: int = 0
  seed_points: int = 0
  diagnostics: Dict[str, int] = field(default_factory=dict)

  @property
  def mono_per_function(self) -> float:
    """Average instances emitted per successfully monomorphized generic API."""
    if not self.monomorphized_functions:
      return 0.0
    generic_instances = self.mono_instances - (self.functions - self.generic_functions)
    return generic_instances / self.monomorphized_functions

  def to_dict(self) -> Dict[str, object]:
    data = asdict(self)
    data["mono_per_function"] = round(self.mono_per_function, 3)
    return data

  def to_table(self) -> Table:
    """
    Renders the counters as a Rich table.

    Returns:
        Table: Two-column metric/value table.
    """
    table = Table(title="Synthesis Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Functions", str(self.functions))
    table.add_row("Generic functions", str(self.generic_functions))
    table.add_row("Monomorphized generics", str(self.monomorphized_functions))
    table.add_row("Monomorphic APIs", str(self.mono_instances))
    table.add_row("Instances per generic", f"{self.mono_per_function:.2f}")
    table.add_row("Dependency edges", str(self.dependency_edges))
    table.add_row("Targets", str(self.targets))
    table.add_row("Drivers", str(self.drivers))
    table.add_row("Seed points", str(self.seed_points))
    for kind, value in self.diagnostics.items():
      table.add_row(f"[yellow]{kind}[/yellow]", str(value))
    return table
