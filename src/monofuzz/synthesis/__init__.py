"""
Driver Synthesis Package.
"""

from monofuzz.synthesis.driver import Binding, Driver, DriverCall, SeedPoint
from monofuzz.synthesis.synthesizer import DriverSynthesizer, SynthesisOutcome

__all__ = [
  "Binding",
  "Driver",
  "DriverCall",
  "DriverSynthesizer",
  "SeedPoint",
  "SynthesisOutcome",
]
