"""
Facts and Driver I/O.

The only module that touches the filesystem. Facts are read from a JSON
document and validated with pydantic; synthesized drivers are written back as
JSON for downstream code emitters.
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from monofuzz.pipeline import SynthesisResult
from monofuzz.surface.schema import FactsDocument


def load_facts(path: Union[str, Path]) -> FactsDocument:
  """
  Reads and validates a facts document.

  Args:
      path: Location of the JSON file.

  Returns:
      FactsDocument: The validated document.

  Raises:
      OSError: If the file cannot be read.
      ValueError: If the content is not JSON or does not match the schema.
  """
  with open(path, "r", encoding="utf-8") as f:
    try:
      content = json.load(f)
    except json.JSONDecodeError as e:
      raise ValueError(f"{path} is not valid JSON: {e}") from e

  try:
    return FactsDocument.model_validate(content)
  except ValidationError as e:
    raise ValueError(f"{path} is not a valid facts document: {e}") from e


def result_payload(result: SynthesisResult, crate_name: str) -> Dict[str, Any]:
  payload: Dict[str, Any] = {"crate": crate_name}
  payload.update(result.to_dict())
  return payload


def write_drivers(path: Union[str, Path], result: SynthesisResult, crate_name: str = "crate") -> Path:
  """
  Writes the drivers, diagnostics and statistics of a run as JSON.

  Args:
      path: Destination file. Parent directories are created.
      result: The run to export.
      crate_name: Library name recorded in the payload.

  Returns:
      Path: The written file.
  """
  target = Path(path)
  target.parent.mkdir(parents=True, exist_ok=True)
  with open(target, "w", encoding="utf-8") as f:
    json.dump(result_payload(result, crate_name), f, indent=2)
  return target
