from .inspect import handle_inspect
from .synthesize import handle_synthesize
