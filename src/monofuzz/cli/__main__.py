"""
Main Entry Point for monofuzz CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `monofuzz.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from monofuzz import __version__
from monofuzz.cli import commands
from monofuzz.config import parse_cli_key_values
from monofuzz.utils.console import set_verbosity


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="monofuzz: Generic API monomorphization and fuzz driver synthesis")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  parser.add_argument("-v", "--verbose", action="store_true", help="Show per-API and per-branch debug logs")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: SYNTHESIZE ---
  cmd_synth = subparsers.add_parser("synthesize", help="Synthesize fuzz drivers from a facts document")
  cmd_synth.add_argument("facts", type=Path, help="JSON facts document")
  cmd_synth.add_argument("--out", type=Path, default=None, help="Write drivers as JSON to this file")
  cmd_synth.add_argument(
    "--config",
    nargs="*",
    help="Configuration overrides in key=value format (e.g. max_driver_call_depth=3 workers=4)",
  )

  # --- Command: INSPECT ---
  cmd_insp = subparsers.add_parser("inspect", help="Show instances, graph connectivity and diagnostics")
  cmd_insp.add_argument("facts", type=Path, help="JSON facts document")
  cmd_insp.add_argument("--drivers", action="store_true", help="Print the call outline of every driver")
  cmd_insp.add_argument("--config", nargs="*", help="Configuration overrides in key=value format")

  args = parser.parse_args(argv)
  set_verbosity(args.verbose)

  if args.command == "synthesize":
    return commands.handle_synthesize(args.facts, args.out, parse_cli_key_values(args.config))
  elif args.command == "inspect":
    return commands.handle_inspect(args.facts, parse_cli_key_values(args.config), args.drivers)
  return 0


if __name__ == "__main__":
  sys.exit(main())
