"""
Tests for the Monomorphizer.

Verifies:
1. `first<T: Clone>(Vec<T>) -> T` with a two-type pool and cap 2.
2. Unsatisfiable bounds yield no instance and one diagnostic.
3. Greedy diversity selection and its cap independence.
4. Depth and scan-window guards.
"""

import pytest

from monofuzz.candidates.pool import TypeCandidatePool
from monofuzz.core.monomorphizer import Monomorphizer
from monofuzz.core.resolver import BoundResolver
from monofuzz.diagnostics import DiagnosticReport
from monofuzz.enums import DiagnosticKind
from monofuzz.surface.model import build_signature
from monofuzz.surface.schema import ApiFact


def _sig(make_api, *args, **kwargs):
  return build_signature(ApiFact.model_validate(make_api(*args, **kwargs)))


def _mono(pool, **kwargs):
  return Monomorphizer(BoundResolver(pool), **kwargs)


@pytest.fixture
def clone_pool():
  pool = TypeCandidatePool(seed_builtins=False)
  pool.register("i32", ["Clone", "Copy"])
  pool.register("String", ["Clone"])
  return pool


def test_first_clone_two_instances(clone_pool, make_api):
  sig = _sig(make_api, "first", [("v", "Vec<T>")], "T", [("T", ["Clone"])])
  instances = _mono(clone_pool, max_instantiations=2).instantiate(sig)

  assert [i.render() for i in instances] == [
    "first(v: Vec<i32>) -> i32",
    "first(v: Vec<String>) -> String",
  ]
  assert all(not i.generics for i in instances)
  assert all(i.origin is sig for i in instances)
  assert [i.key for i in instances] == ["first<T=i32>", "first<T=String>"]


def test_first_clone_with_builtin_pool(make_api):
  sig = _sig(make_api, "first", [("v", "Vec<T>")], "T", [("T", ["Clone"])])
  instances = _mono(TypeCandidatePool(), max_instantiations=2).instantiate(sig)
  assert [str(i.output) for i in instances] == ["i32", "String"]


def test_unsatisfiable_bounds(clone_pool, make_api):
  sig = _sig(make_api, "demo::hash_it", [("x", "T")], "u64", [("T", ["Hash"])])
  report = DiagnosticReport()
  instances = _mono(clone_pool).instantiate(sig, report)

  assert instances == ()
  assert len(report) == 1
  assert report.count(DiagnosticKind.UNSATISFIABLE_BOUNDS) == 1
  assert next(iter(report)).subject == "demo::hash_it"


def test_non_generic_passes_through(clone_pool, make_api):
  sig = _sig(make_api, "demo::len", [("s", "&str")], "usize")
  (instance,) = _mono(clone_pool).instantiate(sig)
  assert instance.key == "demo::len"
  assert instance.signature.render() == sig.render()
  assert not instance.substitution


def test_diversity_prefers_uncovered_types(make_api):
  pool = TypeCandidatePool(seed_builtins=False)
  for name in ("i32", "u8", "bool"):
    pool.register(name, ["Copy"])
  sig = _sig(
    make_api,
    "demo::zip",
    [("a", "A"), ("b", "B")],
    "(A, B)",
    [("A", ["Copy"]), ("B", ["Copy"])],
  )
  instances = _mono(pool, max_instantiations=3).instantiate(sig)

  # Row-major order would give (i32,i32), (i32,u8), (i32,bool).
  assert [i.substitution.render() for i in instances] == [
    "A=i32, B=u8",
    "A=u8, B=bool",
    "A=bool, B=i32",
  ]

  two = _mono(pool, max_instantiations=2).instantiate(sig)
  assert {c.key for i in two for c in i.substitution.candidates()} == {"i32", "u8", "bool"}


def test_larger_cap_extends_smaller(make_api):
  pool = TypeCandidatePool()
  sig = _sig(make_api, "demo::wrap", [("x", "T")], "Option<T>", [("T", ["Debug"])])
  small = _mono(pool, max_instantiations=2).instantiate(sig)
  large = _mono(pool, max_instantiations=5).instantiate(sig)
  assert [i.key for i in large[:2]] == [i.key for i in small]


def test_type_depth_guard(make_api):
  pool = TypeCandidatePool(seed_builtins=False)
  pool.register("Vec<Vec<u8>>", ["Clone"])
  pool.register("u8", ["Clone"])
  sig = _sig(make_api, "demo::nest", [("x", "T")], "Vec<T>", [("T", ["Clone"])])

  instances = _mono(pool, max_type_depth=3).instantiate(sig)
  assert [str(i.output) for i in instances] == ["Vec<u8>"]


def test_scan_window_limits_enumeration(make_api):
  pool = TypeCandidatePool()
  sig = _sig(make_api, "demo::id", [("x", "T")], "T", [("T", [])])
  instances = _mono(pool, max_instantiations=5, max_product_scan=2).instantiate(sig)
  assert len(instances) == 2


def test_instantiate_all_keeps_order(clone_pool, make_api):
  sigs = [
    _sig(make_api, "a", [("v", "Vec<T>")], "T", [("T", ["Clone"])]),
    _sig(make_api, "b", [], "i32"),
  ]
  out = _mono(clone_pool).instantiate_all(sigs)
  assert [i.path for i in out] == ["a", "a", "b"]


def test_type_depth_guard_reports_empty_api(make_api):
  pool = TypeCandidatePool(seed_builtins=False)
  pool.register("Vec<Vec<u8>>", ["Clone"])
  sig = _sig(make_api, "demo::nest", [("x", "T")], "Vec<T>", [("T", ["Clone"])])
  report = DiagnosticReport()

  assert _mono(pool, max_type_depth=3).instantiate(sig, report) == ()
  assert report.count(DiagnosticKind.BUDGET_EXCEEDED) == 1
  diagnostic = next(iter(report))
  assert diagnostic.subject == "demo::nest"
  assert "type depth limit of 3" in diagnostic.message
