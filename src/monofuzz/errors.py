"""
Error Taxonomy.

Every failure inside the core is local: each exception below is raised where
the problem is detected and caught at the stage boundary that can recover
from it, where it is turned into a `Diagnostic` record.
"""

from typing import Optional

from monofuzz.enums import DiagnosticKind


class MonofuzzError(Exception):
  """
  Base class for recoverable synthesis failures.

  Attributes:
      subject (str): Identity of the API, parameter or branch concerned.
      kind (DiagnosticKind): Diagnostic category used when the error is recorded.
  """

  kind: DiagnosticKind

  def __init__(self, message: str, subject: Optional[str] = None) -> None:
    super().__init__(message)
    self.subject = subject or ""


class MalformedSignature(MonofuzzError):
  """An API fact cannot be turned into a usable ApiSignature."""

  kind = DiagnosticKind.MALFORMED_SIGNATURE


class UnsatisfiableBounds(MonofuzzError):
  """No candidate type satisfies a generic parameter's bounds."""

  kind = DiagnosticKind.UNSATISFIABLE_BOUNDS


class DeadEndBinding(MonofuzzError):
  """An input is neither producible by any API nor seedable from raw bytes."""

  kind = DiagnosticKind.DEAD_END_BINDING


class BudgetExceeded(MonofuzzError):
  """A depth, call-count or expansion cap stopped a search branch."""

  kind = DiagnosticKind.BUDGET_EXCEEDED
