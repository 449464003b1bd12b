"""
Enumerations for monofuzz.

This module defines the standard enumerations shared by the synthesis stages
and the diagnostics layer.
"""

from enum import Enum


class DiagnosticKind(str, Enum):
  """
  Categorization of recoverable failures reported during a run.

  Each kind maps to one recovery scope: a skipped entry, a skipped API,
  or a pruned/truncated search branch.
  """

  MALFORMED_SIGNATURE = "malformed_signature"
  UNSATISFIABLE_BOUNDS = "unsatisfiable_bounds"
  DEAD_END_BINDING = "dead_end_binding"
  BUDGET_EXCEEDED = "budget_exceeded"


class BindingKind(str, Enum):
  """
  Source of a driver call argument.
  """

  CALL_OUTPUT = "call"  # Output of an earlier call in the sequence
  SEED = "seed"  # Raw value decoded from fuzzer bytes


class EdgeAdapter(str, Enum):
  """
  How a producer's output is handed to a consumer input slot.
  """

  DIRECT = "direct"  # T -> T
  BORROW = "borrow"  # T -> &T
  BORROW_MUT = "borrow_mut"  # T -> &mut T
  UNWRAP_RESULT = "unwrap_result"  # Result<T, E> -> T
  UNWRAP_OPTION = "unwrap_option"  # Option<T> -> T


class ProducerTieBreak(str, Enum):
  """
  Ordering policy when several producers can satisfy the same input.
  """

  DIVERSITY = "diversity"  # Prefer producers not yet used by this target's drivers
  SHORTEST = "shortest"  # Prefer producers with fewer inputs of their own
  DECLARATION = "declaration"  # Keep graph (declaration) order
