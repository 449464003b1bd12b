"""
Pydantic Schemas for Declaration Facts.

This module defines the structure of the JSON facts document produced by an
external declaration-extraction front end (e.g. a rustdoc pass). The core
treats these facts as opaque input; semantic validation of each API entry
happens later in `ApiSurface.from_facts`, one entry at a time.

Example document::

    {
      "crate": "demo",
      "apis": [
        {
          "path": "demo::first",
          "generics": [{"name": "T", "bounds": ["Clone"]}],
          "inputs": [{"name": "v", "type": "Vec<T>"}],
          "output": "T"
        }
      ],
      "candidates": [{"type": "demo::Token", "bounds": ["Clone", "Debug"]}]
    }
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenericParamFact(BaseModel):
  """A declared type parameter and its bounds (including where-clauses)."""

  model_config = ConfigDict(extra="ignore")

  name: str = Field(..., description="Parameter name (e.g. 'T').")
  bounds: List[str] = Field(default_factory=list, description="Trait or lifetime bounds (e.g. ['Clone', \"'static\"]).")


class InputFact(BaseModel):
  """One positional input of an API."""

  model_config = ConfigDict(extra="ignore")

  name: str = Field(..., description="Argument name.")
  type: str = Field(..., description="Type in Rust notation.")


class ApiFact(BaseModel):
  """A declared function or method."""

  model_config = ConfigDict(extra="ignore")

  path: str = Field(..., description="Fully qualified API path (e.g. 'demo::Parser::new').")
  generics: List[GenericParamFact] = Field(default_factory=list)
  inputs: List[InputFact] = Field(default_factory=list)
  output: Optional[str] = Field(None, description="Return type. Omitted or null means unit.")


class CandidateFact(BaseModel):
  """A concrete type offered for substitution, with the bounds it satisfies."""

  model_config = ConfigDict(extra="ignore")

  type: str = Field(..., description="Concrete type in Rust notation.")
  bounds: List[str] = Field(default_factory=list, description="Traits the type is known to implement.")


class FactsDocument(BaseModel):
  """Top-level facts document."""

  model_config = ConfigDict(extra="ignore", populate_by_name=True)

  crate_name: str = Field("crate", alias="crate", description="Name of the library under test.")
  apis: List[ApiFact] = Field(default_factory=list)
  candidates: List[CandidateFact] = Field(default_factory=list)
