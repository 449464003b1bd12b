"""
Runtime Configuration Store.

Holds the caps and policies of a synthesis run. Values are resolved from
explicit overrides (CLI / API), then from the `[tool.monofuzz]` table of the
nearest `pyproject.toml`, then from the defaults below.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from rich.markup import escape

from monofuzz.enums import ProducerTieBreak
from monofuzz.utils.console import log_warning

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the synthesis pipeline.
  """

  model_config = ConfigDict(extra="forbid", use_enum_values=False)

  max_instantiations_per_api: int = Field(
    3, ge=1, description="Cap on monomorphic instances emitted per generic API (diversity cap)."
  )
  max_driver_call_depth: int = Field(
    5, ge=0, description="Deepest producer chain the backward search may build below a target."
  )
  max_drivers_per_target: int = Field(8, ge=1, description="Cap on accepted drivers per target API.")

  producer_tie_break: ProducerTieBreak = Field(
    ProducerTieBreak.DIVERSITY,
    description="Ordering among producers able to satisfy the same input.",
  )
  max_branching: int = Field(4, ge=1, description="Producers explored per pending input.")
  max_driver_calls: int = Field(16, ge=1, description="Cap on total calls in one driver.")
  max_expansions: int = Field(10000, ge=1, description="Expansion steps allowed per target before giving up.")
  max_type_depth: int = Field(5, ge=1, description="Instances whose output nests deeper than this are refused.")
  max_product_scan: int = Field(
    4096, ge=1, description="Substitutions enumerated from the Cartesian product before selection."
  )
  allow_borrow_adapters: bool = Field(False, description="Let a producer of T feed &T / &mut T inputs.")
  allow_unwrap_adapters: bool = Field(
    False, description="Let a producer of Result<T, E> or Option<T> feed T inputs by unwrapping."
  )
  require_seed_input: bool = Field(False, description="Reject drivers with no raw fuzz input.")
  always_offer_seed: bool = Field(
    False, description="Also try a seed for primitive-like inputs that have producers."
  )
  workers: int = Field(1, ge=1, description="Thread pool size for per-API stages.")
  targets: List[str] = Field(default_factory=list, description="Restrict synthesis to these API paths.")

  @field_validator("targets", mode="before")
  @classmethod
  def validate_targets(cls, v: Any) -> Any:
    """
    Accepts a single path where a list is expected (e.g. `targets=demo::parse` on the CLI).

    Args:
        v (Any): The raw value.

    Returns:
        Any: A list of paths, or the value unchanged for pydantic to validate.
    """
    if isinstance(v, str):
      return [v]
    return v

  @classmethod
  def load(
    cls,
    overrides: Optional[Dict[str, Any]] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and applies overrides.

    Args:
        overrides (Optional[Dict]): Values taking precedence over the TOML table.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.

    Raises:
        ValueError: If the merged settings fail validation.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)
    merged = {**toml_config, **(overrides or {})}
    try:
      return cls.model_validate(merged)
    except ValidationError as e:
      raise ValueError(f"Invalid monofuzz configuration: {e}") from e


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches the directory and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError) as e:
        log_warning(escape(f"Ignoring unreadable {toml_path}: {e}"))
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get("monofuzz", {}), parent

  return {}, None


def parse_cli_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
  """
  Parses a list of 'key=value' strings into a dictionary.

  Types are inferred (int, float, bool, comma separated list, or string).

  Args:
      items (Optional[List[str]]): Raw CLI strings directly from argparse.

  Returns:
      Dict[str, Any]: Parsed dictionary.
  """
  if not items:
    return {}

  config: Dict[str, Any] = {}
  for item in items:
    if "=" not in item:
      log_warning(f"Ignoring invalid config format: '{escape(item)}'. Expected 'key=value'.")
      continue

    key, val_str = item.split("=", 1)
    key = key.strip()
    val_str = val_str.strip()

    final_val: Any = val_str

    if val_str.lower() == "true":
      final_val = True
    elif val_str.lower() == "false":
      final_val = False
    elif "," in val_str:
      final_val = [v.strip() for v in val_str.split(",") if v.strip()]
    else:
      try:
        if "." in val_str:
          final_val = float(val_str)
        else:
          final_val = int(val_str)
      except ValueError:
        pass

    config[key] = final_val

  return config
