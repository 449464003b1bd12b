"""
monofuzz Package.

Monomorphizes generic library APIs into a bounded, diverse set of concrete
signatures and synthesizes fuzz drivers (call sequences ending in a target
API) by backward search over their producer/consumer dependency graph.

Usage
-----

Programmatic Run
^^^^^^^^^^^^^^^^

.. code-block:: python

    import monofuzz

    result = monofuzz.synthesize("facts.json", max_drivers_per_target=4)
    for driver in result.drivers:
        print("\\n".join(driver.describe()))

Stage by Stage
^^^^^^^^^^^^^^

.. code-block:: python

    from monofuzz import RuntimeConfig, SynthesisPipeline, load_facts

    document = load_facts("facts.json")
    pipeline, surface = SynthesisPipeline.from_document(document, RuntimeConfig(workers=4))
    result = pipeline.run(surface)
    print(result.statistics.to_dict())
"""

from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from monofuzz.config import RuntimeConfig
from monofuzz.diagnostics import Diagnostic, DiagnosticReport, RunStatistics
from monofuzz.io import load_facts, write_drivers
from monofuzz.pipeline import SynthesisPipeline, SynthesisResult
from monofuzz.surface.model import ApiSurface
from monofuzz.synthesis.driver import Driver

__version__ = "0.1.0"


def synthesize(
  facts: Union[str, Path],
  config: Optional[RuntimeConfig] = None,
  **overrides: Any,
) -> SynthesisResult:
  """
  Runs the full pipeline over a facts file.

  Args:
      facts: Path of the JSON facts document.
      config: Explicit configuration. When omitted, configuration is loaded
          from the nearest pyproject.toml plus `overrides`.
      **overrides: RuntimeConfig fields (e.g. `max_driver_call_depth=3`).

  Returns:
      SynthesisResult: Drivers, diagnostics and statistics of the run.

  Raises:
      ValueError: If the facts file or the merged configuration is invalid.
  """
  if config is None:
    config = RuntimeConfig.load(overrides=overrides)
  elif overrides:
    try:
      config = RuntimeConfig.model_validate({**config.model_dump(), **overrides})
    except ValidationError as e:
      raise ValueError(f"Invalid monofuzz configuration: {e}") from e

  document = load_facts(facts)
  pipeline, surface = SynthesisPipeline.from_document(document, config)
  return pipeline.run(surface)


__all__ = [
  "ApiSurface",
  "Diagnostic",
  "DiagnosticReport",
  "Driver",
  "RunStatistics",
  "RuntimeConfig",
  "SynthesisPipeline",
  "SynthesisResult",
  "load_facts",
  "synthesize",
  "write_drivers",
  "__version__",
]
