"""
Tests for the end-to-end Synthesis Pipeline.
"""

import logging

from monofuzz.candidates.pool import TypeCandidatePool
from monofuzz.config import RuntimeConfig
from monofuzz.enums import DiagnosticKind
from monofuzz.pipeline import SynthesisPipeline
from monofuzz.surface.schema import FactsDocument

CRATE_FACTS = [
  {"path": "demo::Parser::new", "inputs": [{"name": "data", "type": "&[u8]"}], "output": "demo::Parser"},
  {
    "path": "demo::Parser::next",
    "inputs": [{"name": "self", "type": "demo::Parser"}],
    "output": "Option<demo::Token>",
  },
  {
    "path": "demo::first",
    "generics": [{"name": "T", "bounds": ["Clone"]}],
    "inputs": [{"name": "v", "type": "Vec<T>"}],
    "output": "T",
  },
  {"path": "demo::collect", "inputs": [{"name": "n", "type": "usize"}], "output": "Vec<i32>"},
  {"path": "demo::hash", "generics": [{"name": "H", "bounds": ["Hasher"]}], "inputs": [{"name": "h", "type": "H"}]},
  {"path": "demo::broken", "inputs": [{"name": "x", "type": "Vec<"}]},
]


def _signature(result):
  return [(d.target.key, [c.api.key for c in d.calls], len(d.seeds)) for d in result.drivers]


def test_run_is_deterministic(run_pipeline):
  first = run_pipeline(CRATE_FACTS)
  second = run_pipeline(CRATE_FACTS)
  assert _signature(first) == _signature(second)
  assert first.report.to_list() == second.report.to_list()


def test_thread_pool_matches_sequential(run_pipeline):
  sequential = run_pipeline(CRATE_FACTS)
  threaded = run_pipeline(CRATE_FACTS, workers=4)
  assert _signature(threaded) == _signature(sequential)
  assert [a.key for a in threaded.apis] == [a.key for a in sequential.apis]
  assert threaded.report.to_list() == sequential.report.to_list()


def test_generic_instance_feeds_consumer(run_pipeline):
  result = run_pipeline(CRATE_FACTS)
  (driver,) = result.drivers_for("demo::first<T=i32>")
  assert [c.api.key for c in driver.calls] == ["demo::collect", "demo::first<T=i32>"]
  assert driver.seeds[0].type.render() == "usize"


def test_diagnostics_in_stage_order(run_pipeline):
  result = run_pipeline(CRATE_FACTS)
  kinds = [d.kind for d in result.report]
  assert kinds[0] == DiagnosticKind.MALFORMED_SIGNATURE
  assert kinds[1] == DiagnosticKind.UNSATISFIABLE_BOUNDS
  assert result.report.of_kind(DiagnosticKind.UNSATISFIABLE_BOUNDS)[0].subject == "demo::hash"


def test_statistics(run_pipeline):
  stats = run_pipeline(CRATE_FACTS).statistics
  assert stats.functions == 5
  assert stats.generic_functions == 2
  assert stats.monomorphized_functions == 1
  assert stats.mono_instances == 6
  assert stats.mono_per_function == 3.0
  assert stats.drivers > 0
  assert stats.diagnostics[DiagnosticKind.MALFORMED_SIGNATURE.value] == 1


def test_target_filter(run_pipeline, caplog):
  with caplog.at_level(logging.WARNING):
    result = run_pipeline(CRATE_FACTS, targets=["demo::Parser::next", "demo::missing"])
  assert {d.target.path for d in result.drivers} == {"demo::Parser::next"}
  assert result.statistics.targets == 1
  assert "demo::missing" in caplog.text


def test_from_document_widens_pool():
  document = FactsDocument.model_validate(
    {
      "crate": "demo",
      "apis": [
        {
          "path": "demo::tokenize",
          "generics": [{"name": "T", "bounds": ["demo::Lexer"]}],
          "inputs": [{"name": "t", "type": "T"}],
          "output": "usize",
        }
      ],
      "candidates": [{"type": "demo::AsciiLexer", "bounds": ["demo::Lexer"]}],
    }
  )
  pipeline, surface = SynthesisPipeline.from_document(document, RuntimeConfig())
  result = pipeline.run(surface)
  assert [a.key for a in result.apis] == ["demo::tokenize<T=demo::AsciiLexer>"]


def test_custom_pool_is_used(run_pipeline, make_api):
  pool = TypeCandidatePool(seed_builtins=False)
  pool.register("u8", ["Copy"])
  result = run_pipeline([make_api("demo::id", [("x", "T")], "T", [("T", ["Copy"])])], pool=pool)
  assert [a.key for a in result.apis] == ["demo::id<T=u8>"]


def test_result_to_dict(run_pipeline):
  data = run_pipeline(CRATE_FACTS).to_dict()
  assert set(data) == {"drivers", "diagnostics", "statistics"}
  assert data["statistics"]["functions"] == 5
