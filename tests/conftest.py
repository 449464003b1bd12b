"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Factories building API surfaces and pipelines from inline facts.
- Console isolation so tests capturing output do not leak their backend.
"""

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest

# Add src to path so we can import 'monofuzz' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from monofuzz.candidates.pool import TypeCandidatePool
from monofuzz.config import RuntimeConfig
from monofuzz.pipeline import SynthesisPipeline, SynthesisResult
from monofuzz.surface.model import ApiSurface
from monofuzz.surface.schema import ApiFact
from monofuzz.utils.console import reset_console


def api(path: str, inputs=(), output=None, generics=()) -> Dict[str, Any]:
  """
  Compact builder for an API fact dict.

  `inputs` is a sequence of (name, type) pairs, `generics` of (name, [bounds]).
  """
  return {
    "path": path,
    "generics": [{"name": n, "bounds": list(b)} for n, b in generics],
    "inputs": [{"name": n, "type": t} for n, t in inputs],
    "output": output,
  }


@pytest.fixture
def make_api() -> Callable[..., Dict[str, Any]]:
  return api


@pytest.fixture
def build_surface() -> Callable[[List[Dict[str, Any]]], ApiSurface]:
  """Returns a factory turning fact dicts into an ApiSurface."""

  def _build(facts: List[Dict[str, Any]], crate_name: str = "demo") -> ApiSurface:
    return ApiSurface.from_facts([ApiFact.model_validate(f) for f in facts], crate_name=crate_name)

  return _build


@pytest.fixture
def run_pipeline(build_surface) -> Callable[..., SynthesisResult]:
  """
  Returns a factory running the full pipeline over fact dicts.

  Keyword arguments are RuntimeConfig fields. Pass `pool=` to replace the
  built-in candidate pool.
  """

  def _run(facts: List[Dict[str, Any]], pool: TypeCandidatePool = None, **config: Any) -> SynthesisResult:
    pipeline = SynthesisPipeline(config=RuntimeConfig(**config), pool=pool)
    return pipeline.run(build_surface(facts))

  return _run


@pytest.fixture
def facts_file(tmp_path) -> Callable[[Dict[str, Any]], Path]:
  """Writes a facts document to a temporary JSON file."""

  def _write(document: Dict[str, Any], name: str = "facts.json") -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path

  return _write


@pytest.fixture(autouse=True)
def isolate_console():
  """
  Restores the standard console after each test, so a recording console
  injected by one test never receives another test's output.
  """
  yield
  reset_console()
