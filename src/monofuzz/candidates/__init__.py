"""
Candidate Types Package.

The substitution universe (`TypeCandidatePool`) and the classification of
raw-data types that can be seeded directly from fuzzer bytes.
"""

from monofuzz.candidates.pool import CandidateType, TypeCandidatePool, expand_supertraits
from monofuzz.candidates.primitives import SeedLayout, is_primitive_like, seed_layout

__all__ = [
  "CandidateType",
  "SeedLayout",
  "TypeCandidatePool",
  "expand_supertraits",
  "is_primitive_like",
  "seed_layout",
]
