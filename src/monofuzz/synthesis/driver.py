"""
Driver Data Model.

A driver is an ordered sequence of monomorphic API calls. Each input of each
call is bound either to the output of an earlier call or to a seed point that
the fuzzing engine fills from raw bytes. The last call is the target.

`Driver.to_dict` is the export contract consumed by code emitters and fuzzing
engines downstream.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Tuple

from monofuzz.candidates.primitives import SeedLayout
from monofuzz.core.monomorphizer import MonomorphicApi
from monofuzz.enums import BindingKind, EdgeAdapter
from monofuzz.surface.types import TypeRef


@dataclass(frozen=True)
class Binding:
  """
  Source of one call argument.

  Attributes:
      kind: Prior call output or seed point.
      index: Call position (for CALL_OUTPUT) or seed index (for SEED).
      adapter: How a call output is passed (direct, borrowed or unwrapped).
  """

  kind: BindingKind
  index: int
  adapter: EdgeAdapter = EdgeAdapter.DIRECT

  def to_dict(self) -> Dict[str, Any]:
    data: Dict[str, Any] = {"kind": self.kind.value, "index": self.index}
    if self.kind == BindingKind.CALL_OUTPUT:
      data["adapter"] = self.adapter.value
    return data


@dataclass(frozen=True)
class SeedPoint:
  """
  An input fed directly from fuzzer bytes.

  Attributes:
      index: Seed number within the driver.
      type: Concrete type to decode.
      call: Position of the consuming call.
      input_index: Argument position within that call.
      layout: Byte requirements of the type.
  """

  index: int
  type: TypeRef
  call: int
  input_index: int
  layout: SeedLayout

  def to_dict(self) -> Dict[str, Any]:
    return {
      "index": self.index,
      "type": self.type.render(),
      "call": self.call,
      "input_index": self.input_index,
      "layout": self.layout.to_dict(),
    }


@dataclass(frozen=True)
class DriverCall:
  """One call in a driver and the bindings of its inputs, in input order."""

  api: MonomorphicApi
  bindings: Tuple[Binding, ...]

  def to_dict(self) -> Dict[str, Any]:
    return {
      "api": self.api.key,
      "signature": self.api.render(),
      "bindings": [b.to_dict() for b in self.bindings],
    }


@dataclass(frozen=True)
class Driver:
  """
  A synthesized call sequence ending in its target.
  """

  target: MonomorphicApi
  calls: Tuple[DriverCall, ...]
  seeds: Tuple[SeedPoint, ...] = ()

  @property
  def has_fuzz_entry(self) -> bool:
    """True if at least one input is fed from raw bytes."""
    return bool(self.seeds)

  @property
  def min_input_length(self) -> int:
    """Fewest fuzzer bytes that fill every seed point."""
    return sum(s.layout.min_length for s in self.seeds)

  def apis_used(self) -> FrozenSet[str]:
    return frozenset(c.api.key for c in self.calls)

  def is_topologically_valid(self) -> bool:
    """
    Checks the defined-before-used property.

    Every call binds each of its inputs exactly once, call bindings point to
    strictly earlier calls, seed bindings point to existing seed points, and
    the final call is the target.
    """
    if not self.calls or self.calls[-1].api is not self.target:
      return False
    for position, call in enumerate(self.calls):
      if len(call.bindings) != len(call.api.input_types):
        return False
      for binding in call.bindings:
        if binding.kind == BindingKind.CALL_OUTPUT and not 0 <= binding.index < position:
          return False
        if binding.kind == BindingKind.SEED and not 0 <= binding.index < len(self.seeds):
          return False
    return True

  def describe(self) -> List[str]:
    """
    Human readable outline of the call sequence (not compilable code).

    Returns:
        List[str]: One line per call, e.g. `v1 = demo::parse(&v0, seed[0])`.
    """
    lines = []
    for position, call in enumerate(self.calls):
      args = []
      for binding in call.bindings:
        if binding.kind == BindingKind.SEED:
          args.append(f"seed[{binding.index}]")
        elif binding.adapter == EdgeAdapter.BORROW:
          args.append(f"&v{binding.index}")
        elif binding.adapter == EdgeAdapter.BORROW_MUT:
          args.append(f"&mut v{binding.index}")
        elif binding.adapter in (EdgeAdapter.UNWRAP_RESULT, EdgeAdapter.UNWRAP_OPTION):
          args.append(f"v{binding.index}.unwrap()")
        else:
          args.append(f"v{binding.index}")
      lines.append(f"v{position} = {call.api.path}({', '.join(args)})")
    return lines

  def to_dict(self) -> Dict[str, Any]:
    return {
      "target": self.target.key,
      "calls": [c.to_dict() for c in self.calls],
      "seeds": [s.to_dict() for s in self.seeds],
      "min_input_length": self.min_input_length,
    }
