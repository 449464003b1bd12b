"""
String Parsing Utilities for Type Expressions.

Helpers for splitting Rust-style type strings (e.g. `HashMap<K, Vec<V>>`)
without getting confused by nested brackets, and for removing lifetime
annotations that carry no meaning for monomorphization.
"""

import re
from typing import List

_OPENERS = "<[("
_CLOSERS = ">])"

_LIFETIME_PREFIX = re.compile(r"^'[A-Za-z_][A-Za-z0-9_]*\s*")


def split_outside_brackets(text: str, separator: str = ",") -> List[str]:
  """
  Splits a string by a separator, respecting nested brackets.

  Used to parse generic arguments (e.g. `K, Vec<V>` -> `['K', 'Vec<V>']`)
  and array lengths (`u8; 4` with `separator=";"`).

  Args:
      text (str): The content inside the outer brackets.
      separator (str): Single character to split on at nesting depth zero.

  Returns:
      List[str]: Stripped parts. A trailing separator yields no empty part.

  Raises:
      ValueError: If the brackets are unbalanced.
  """
  parts = []
  current = []
  depth = 0
  for char in text:
    if char in _OPENERS:
      depth += 1
      current.append(char)
    elif char in _CLOSERS:
      depth -= 1
      if depth < 0:
        raise ValueError(f"Unbalanced brackets in '{text}'")
      current.append(char)
    elif char == separator and depth == 0:
      parts.append("".join(current).strip())
      current = []
    else:
      current.append(char)
  if depth != 0:
    raise ValueError(f"Unbalanced brackets in '{text}'")
  tail = "".join(current).strip()
  if tail:
    parts.append(tail)
  return parts


def strip_lifetime(text: str) -> str:
  """
  Removes a leading lifetime annotation (`'a `, `'static `).

  Args:
      text (str): Type text following a `&`.

  Returns:
      str: The text without the lifetime.
  """
  return _LIFETIME_PREFIX.sub("", text, count=1)


def is_lifetime(text: str) -> bool:
  """
  Checks whether a generic argument is a lifetime (`'a`) rather than a type.

  Args:
      text (str): A single generic argument.

  Returns:
      bool: True for lifetime arguments.
  """
  return text.strip().startswith("'")
