"""
Core Analysis Stages.

Bound resolution, monomorphization and dependency graph construction.
"""

from monofuzz.core.graph import DependencyEdge, DependencyGraph, DependencyGraphBuilder
from monofuzz.core.monomorphizer import MonomorphicApi, Monomorphizer, apply_substitution, select_diverse
from monofuzz.core.resolver import BoundResolver, Substitution

__all__ = [
  "BoundResolver",
  "DependencyEdge",
  "DependencyGraph",
  "DependencyGraphBuilder",
  "MonomorphicApi",
  "Monomorphizer",
  "Substitution",
  "apply_substitution",
  "select_diverse",
]
