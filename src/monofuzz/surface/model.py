"""
API Surface Model.

Builds the frozen, ordered snapshot of `ApiSignature` values that every later
stage reads. Facts are validated entry by entry: a malformed entry is skipped
and reported, the rest of the surface still loads.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from monofuzz.diagnostics import DiagnosticReport
from monofuzz.errors import MalformedSignature
from monofuzz.surface.schema import ApiFact, FactsDocument
from monofuzz.surface.types import UNIT, ApiSignature, BoundSet, GenericParam, TypeRef, parse_type
from monofuzz.surface.utils import is_lifetime

logger = logging.getLogger(__name__)


def build_signature(fact: ApiFact) -> ApiSignature:
  """
  Converts one API fact into an ApiSignature.

  Args:
      fact: The declaration fact.

  Returns:
      ApiSignature: The validated signature.

  Raises:
      MalformedSignature: If a type cannot be parsed, a parameter name is
          declared twice, or a generic parameter is referenced nowhere in
          the inputs or output (it could never be inferred at a call site).
  """
  # Lifetime parameters are erased by `parse_type` and never substituted.
  type_params = [g for g in fact.generics if not is_lifetime(g.name)]
  names = [g.name for g in type_params]
  duplicates = sorted({n for n in names if names.count(n) > 1})
  if duplicates:
    raise MalformedSignature(f"Duplicate generic parameters {duplicates}", subject=fact.path)

  generics = tuple(
    GenericParam(name=g.name, position=i, bounds=BoundSet.of(g.bounds), owner=fact.path)
    for i, g in enumerate(type_params)
  )

  try:
    inputs = tuple((arg.name, parse_type(arg.type, names)) for arg in fact.inputs)
    output = parse_type(fact.output, names) if fact.output else UNIT
  except ValueError as e:
    raise MalformedSignature(f"Unparsable type: {e}", subject=fact.path) from e

  signature = ApiSignature(path=fact.path, generics=generics, inputs=inputs, output=output)

  referenced = set(signature.referenced_params())
  unused = [g.name for g in generics if g.name not in referenced]
  if unused:
    raise MalformedSignature(
      f"Generic parameters {unused} are not referenced by any input or the output",
      subject=fact.path,
    )
  return signature


class ApiSurface:
  """
  Read-only ordered collection of ApiSignature for one run.

  Attributes:
      crate_name (str): Library the surface was extracted from.
      diagnostics (DiagnosticReport): Entries rejected while building.
  """

  def __init__(
    self,
    apis: Sequence[ApiSignature],
    crate_name: str = "crate",
    diagnostics: Optional[DiagnosticReport] = None,
  ) -> None:
    self._apis: Tuple[ApiSignature, ...] = tuple(apis)
    self.crate_name = crate_name
    self.diagnostics = diagnostics or DiagnosticReport()

  @classmethod
  def from_facts(cls, facts: Iterable[ApiFact], crate_name: str = "crate") -> "ApiSurface":
    """
    Builds a surface from declaration facts, skipping malformed entries.

    Args:
        facts: API facts in declaration order.
        crate_name: Library name for reporting.

    Returns:
        ApiSurface: The snapshot, with one diagnostic per rejected entry.
    """
    report = DiagnosticReport()
    apis: List[ApiSignature] = []
    for fact in facts:
      try:
        apis.append(build_signature(fact))
      except MalformedSignature as e:
        report.record(e)
        logger.debug("Skipping malformed signature %s: %s", e.subject, e)
    return cls(apis, crate_name=crate_name, diagnostics=report)

  @classmethod
  def from_document(cls, document: FactsDocument) -> "ApiSurface":
    return cls.from_facts(document.apis, crate_name=document.crate_name)

  @property
  def apis(self) -> Tuple[ApiSignature, ...]:
    return self._apis

  def generic_apis(self) -> Tuple[ApiSignature, ...]:
    return tuple(a for a in self._apis if a.is_generic)

  def find(self, path: str) -> Optional[ApiSignature]:
    """Returns the first signature with the given path, if any."""
    return next((a for a in self._apis if a.path == path), None)

  def concrete_types(self) -> Tuple[TypeRef, ...]:
    """
    Distinct non-generic types mentioned anywhere in the surface, in order.
    """
    seen: List[TypeRef] = []
    for api in self._apis:
      for t in (*api.input_types, api.output):
        if not t.is_generic and not t.is_unit and t not in seen:
          seen.append(t)
    return tuple(seen)

  def __iter__(self) -> Iterator[ApiSignature]:
    return iter(self._apis)

  def __len__(self) -> int:
    return len(self._apis)
