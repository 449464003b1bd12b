"""
Tests for the Bound Resolver.
"""

import itertools

import pytest

from monofuzz.candidates.pool import TypeCandidatePool
from monofuzz.core.resolver import BoundResolver
from monofuzz.errors import UnsatisfiableBounds
from monofuzz.surface.model import build_signature
from monofuzz.surface.schema import ApiFact


@pytest.fixture
def small_pool():
  pool = TypeCandidatePool(seed_builtins=False)
  pool.register("i32", ["Copy", "Ord", "Hash"])
  pool.register("String", ["Clone", "Ord", "Hash"])
  pool.register("f64", ["Copy", "PartialOrd"])
  return pool


def _sig(make_api, *args, **kwargs):
  return build_signature(ApiFact.model_validate(make_api(*args, **kwargs)))


def test_resolve_orders_by_pool(small_pool, make_api):
  sig = _sig(make_api, "demo::max", [("a", "T"), ("b", "T")], "T", [("T", ["Ord"])])
  resolver = BoundResolver(small_pool)
  assert [c.key for c in resolver.resolve(sig.generics[0])] == ["i32", "String"]


def test_unsatisfiable_names_owner(small_pool, make_api):
  sig = _sig(make_api, "demo::spawn", [("f", "F")], None, [("F", ["FnOnce"])])
  with pytest.raises(UnsatisfiableBounds) as excinfo:
    list(BoundResolver(small_pool).substitutions(sig))
  assert excinfo.value.subject == "demo::spawn"


def test_product_is_row_major(small_pool, make_api):
  sig = _sig(
    make_api,
    "demo::pair",
    [("k", "K"), ("v", "V")],
    "(K, V)",
    [("K", ["Hash"]), ("V", ["PartialOrd"])],
  )
  resolver = BoundResolver(small_pool)
  subs = list(resolver.substitutions(sig))

  assert resolver.product_size(sig) == 6
  assert [s.render() for s in subs[:3]] == ["K=i32, V=i32", "K=i32, V=String", "K=i32, V=f64"]
  assert all(s.is_sound() for s in subs)


def test_substitutions_are_lazy(make_api):
  pool = TypeCandidatePool()
  sig = _sig(
    make_api,
    "demo::wide",
    [("a", "A"), ("b", "B"), ("c", "C"), ("d", "D")],
    None,
    [("A", []), ("B", []), ("C", []), ("D", [])],
  )
  head = list(itertools.islice(BoundResolver(pool).substitutions(sig), 5))
  assert len(head) == 5
  assert head[0].coverage() == tuple((i, head[0].candidates()[i].type) for i in range(4))


def test_named_lifetime_bound_is_ignored(make_api):
  resolver = BoundResolver(TypeCandidatePool())
  borrowed = _sig(make_api, "demo::first", [("x", "&'a T")], "T", [("T", ["Clone", "'a"])])
  plain = _sig(make_api, "demo::first", [("x", "&T")], "T", [("T", ["Clone"])])

  resolved = [c.key for c in resolver.resolve(borrowed.generics[0])]
  assert resolved
  assert resolved == [c.key for c in resolver.resolve(plain.generics[0])]


def test_static_bound_is_kept(small_pool, make_api):
  small_pool.register("demo::Handle", ["Clone", "'static"])
  sig = _sig(make_api, "demo::spawn", [("x", "T")], None, [("T", ["Clone", "'static"])])
  assert [c.key for c in BoundResolver(small_pool).resolve(sig.generics[0])] == ["demo::Handle"]
