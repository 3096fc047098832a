"""Value types produced by the script reader.

Every parsed value is one of a closed set of Python types:

  bool   - yes/no/true/false
  int    - base-10 integers (optional leading '-')
  float  - anything else float() accepts
  str    - quoted strings (quotes stripped) and bare identifiers
  list   - brace blocks without '=' (arrays)
  dict   - brace blocks with '=' (nested maps, insertion ordered)

Consumers dispatch with isinstance. bool is a subclass of int, so any
check for int must rule out bool first; see is_int().
"""

from __future__ import annotations

from typing import Union

# Union of all values the reader can produce.
ScriptValue = Union[bool, int, float, str, list["ScriptValue"], dict[str, "ScriptValue"]]
ScriptArray = list[ScriptValue]
ScriptMap = dict[str, ScriptValue]


def is_int(value: object) -> bool:
    """True for real integers, False for booleans."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value: object) -> bool:
    """True for int or float values, False for booleans."""
    return is_int(value) or isinstance(value, float)
