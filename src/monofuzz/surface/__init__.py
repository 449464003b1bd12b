"""
API Surface Package.

Typed model of a library's declared functions and the parser for the type
notation used in declaration facts.
"""

from monofuzz.surface.model import ApiSurface, build_signature
from monofuzz.surface.schema import ApiFact, CandidateFact, FactsDocument, GenericParamFact, InputFact
from monofuzz.surface.types import UNIT, ApiSignature, BoundSet, GenericParam, TypeRef, parse_type

__all__ = [
  "ApiFact",
  "ApiSignature",
  "ApiSurface",
  "BoundSet",
  "CandidateFact",
  "FactsDocument",
  "GenericParam",
  "GenericParamFact",
  "InputFact",
  "TypeRef",
  "UNIT",
  "build_signature",
  "parse_type",
]
