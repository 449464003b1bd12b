"""
Inspect Command Handler.

Shows the monomorphic instances, their graph connectivity and every
diagnostic of a run, optionally with an outline of each driver.
"""

from pathlib import Path
from typing import Any, Dict

from rich.markup import escape
from rich.table import Table

from monofuzz.config import RuntimeConfig
from monofuzz.io import load_facts
from monofuzz.pipeline import SynthesisPipeline, SynthesisResult
from monofuzz.utils.console import console, log_error, log_success


def handle_inspect(facts_path: Path, overrides: Dict[str, Any], show_drivers: bool = False) -> int:
  """
  Handles the 'inspect' command.

  Args:
      facts_path: JSON facts document.
      overrides: RuntimeConfig values from `--config key=value`.
      show_drivers: Print the call outline of every driver.

  Returns:
      int: Exit code.
  """
  if not facts_path.exists():
    log_error(f"Facts file not found: {escape(str(facts_path))}")
    return 1

  try:
    config = RuntimeConfig.load(overrides=overrides, search_path=facts_path.parent)
    document = load_facts(facts_path)
  except (OSError, ValueError) as e:
    log_error(escape(str(e)))
    return 1

  pipeline, surface = SynthesisPipeline.from_document(document, config)
  result = pipeline.run(surface)

  console.print(_instance_table(result))
  if result.report:
    console.print(_diagnostic_table(result))
  else:
    log_success("No diagnostics.")

  if show_drivers:
    for number, driver in enumerate(result.drivers):
      console.print(f"[bold]#{number}[/bold] [cyan]{escape(driver.target.key)}[/cyan]")
      for line in driver.describe():
        console.print(f"    {line}", markup=False)
  return 0


def _instance_table(result: SynthesisResult) -> Table:
  table = Table(title="Monomorphic APIs")
  table.add_column("API", style="cyan")
  table.add_column("Signature")
  table.add_column("Producers", justify="right")
  table.add_column("Consumers", justify="right")
  table.add_column("Drivers", justify="right")

  per_target: Dict[str, int] = {}
  for driver in result.drivers:
    per_target[driver.target.key] = per_target.get(driver.target.key, 0) + 1

  graph = result.graph
  for api in result.apis:
    producers = sum(len(graph.producers_for(api, i)) for i in range(len(api.input_types)))
    table.add_row(
      escape(api.key),
      escape(api.render()),
      str(producers),
      str(len(graph.consumers_of(api))),
      str(per_target.get(api.key, 0)),
    )
  return table


def _diagnostic_table(result: SynthesisResult) -> Table:
  table = Table(title="Diagnostics")
  table.add_column("Kind", style="yellow")
  table.add_column("Subject", style="cyan")
  table.add_column("Message")
  for diagnostic in result.report:
    table.add_row(diagnostic.kind.value, escape(diagnostic.subject), escape(diagnostic.message))
  return table
