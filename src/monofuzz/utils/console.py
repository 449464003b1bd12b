"""
Central Logging and Console Utilities.

All user-facing output of monofuzz goes through one swappable Rich console:
tables printed by the CLI and the records of the standard `logging` tree
(`monofuzz.core.*`, `monofuzz.synthesis.*`, ...).

Two kinds of log records exist:
1.  **Library records** from `logging.getLogger(__name__)` loggers. These carry
    Rust type text such as `&[u8]` or `[u8; 4]`, so the handler renders them
    literally (`markup=False`).
2.  **CLI messages** from the `log_*` helpers below. These opt into Rich markup
    per record, so callers must `rich.markup.escape` any type text they embed.

Attributes:
    console (_ConsoleProxy): A global, stable reference to the active Rich Console.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Custom logging level for Success (between INFO and WARNING)
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

_THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "path": "bold blue",
    "code": "bold magenta",
  }
)


class _ConsoleProxy:
  """
  Forwards printing to a replaceable Rich console and keeps the root
  logger's RichHandler bound to that same console.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=_THEME)
    self._configure_logging()

  def set_backend(self, new_console: Console) -> None:
    self._backend = new_console
    self._configure_logging()

  def reset(self) -> None:
    self.set_backend(Console(theme=_THEME))

  @property
  def backend(self) -> Console:
    return self._backend

  def _configure_logging(self) -> None:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
      if isinstance(handler, RichHandler):
        root_logger.removeHandler(handler)

    rich_handler = RichHandler(
      console=self._backend,
      show_time=False,
      omit_repeated_times=False,
      show_path=False,
      markup=False,
      rich_tracebacks=True,
    )

    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(rich_handler)

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._backend, name)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Injects a specific console instance for both printing and logging.

  Args:
      new_console (Console): The configured Rich console to use globally.
  """
  console.set_backend(new_console)


def record_console(width: int = 120) -> Console:
  """
  Installs an in-memory console carrying the monofuzz theme.

  The returned console keeps everything printed or logged afterwards, which
  `Console.export_text()` returns as plain text (e.g. to embed a run log in
  a report, or to assert on CLI output).

  Args:
      width (int): Line width; long driver keys wrap below this.

  Returns:
      Console: The installed recording console.
  """
  recorder = Console(theme=_THEME, record=True, width=width)
  set_console(recorder)
  return recorder


def reset_console() -> None:
  """Resets logging and console to standard output."""
  console.reset()


def get_console() -> Console:
  return console.backend


def set_verbosity(verbose: bool) -> None:
  """
  Switches the root logger between INFO and DEBUG.

  Args:
      verbose (bool): True to show per-API and per-branch debug records.
  """
  logging.getLogger().setLevel(logging.DEBUG if verbose else logging.INFO)


def log_info(msg: str) -> None:
  """
  Logs an informational message.

  Args:
      msg (str): Rich markup, e.g. `Synthesizing [code]demo[/code]`.
  """
  logging.info(f"ℹ️  {msg}", extra={"markup": True})


def log_success(msg: str) -> None:
  logging.log(SUCCESS_LEVEL_NUM, f"✅ {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  logging.warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str) -> None:
  logging.error(f"❌ {msg}", extra={"markup": True})
