"""
Command Facade.

Re-exports the handler functions so the dispatcher imports from one place.
"""

from monofuzz.cli.handlers.inspect import handle_inspect
from monofuzz.cli.handlers.synthesize import handle_synthesize

__all__ = ["handle_inspect", "handle_synthesize"]
