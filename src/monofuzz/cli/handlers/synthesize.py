"""
Synthesize Command Handler.

Runs the full pipeline over a facts document and exports the drivers.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from rich.markup import escape
from rich.table import Table

from monofuzz.config import RuntimeConfig
from monofuzz.io import load_facts, write_drivers
from monofuzz.pipeline import SynthesisPipeline, SynthesisResult
from monofuzz.utils.console import console, log_error, log_info, log_success, log_warning


def handle_synthesize(facts_path: Path, out: Optional[Path], overrides: Dict[str, Any]) -> int:
  """
  Handles the 'synthesize' command.

  Args:
      facts_path: JSON facts document.
      out: Destination for the driver JSON. When None only the summary is shown.
      overrides: RuntimeConfig values from `--config key=value`.

  Returns:
      int: Exit code (0 on success, 1 if inputs or configuration are invalid).
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

  log_info(f"Synthesizing drivers for crate [code]{escape(document.crate_name)}[/code]...")
  pipeline, surface = SynthesisPipeline.from_document(document, config)
  result = pipeline.run(surface)

  console.print(result.statistics.to_table())
  if result.report:
    log_warning(f"{len(result.report)} diagnostics recorded (see 'inspect' for details).")

  if out is None:
    console.print(_driver_table(result))
  else:
    written = write_drivers(out, result, crate_name=document.crate_name)
    log_success(f"Wrote {len(result.drivers)} drivers to [path]{escape(str(written))}[/path]")
  return 0


def _driver_table(result: SynthesisResult) -> Table:
  table = Table(title="Drivers")
  table.add_column("Target", style="cyan")
  table.add_column("Calls", justify="right")
  table.add_column("Seeds", justify="right")
  table.add_column("Min bytes", justify="right")
  for driver in result.drivers:
    table.add_row(escape(driver.target.key), str(len(driver.calls)), str(len(driver.seeds)), str(driver.min_input_length))
  return table
