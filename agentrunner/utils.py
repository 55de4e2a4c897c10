"""General utility helpers shared by the agentrunner library and CLI wrapper.

Inputs:
- Plain Python values such as strings, flag names, dictionaries, and console text.
Output:
- Normalized names, merged dictionaries, formatted text, and console helpers.
Example:
```python
from agentrunner.utils import kebab_case
print(kebab_case("allowedTools"))
```
"""

from __future__ import annotations

import copy
import datetime as _dt
import json
import os
import re
import sys
from typing import Any, Dict, List, TextIO

ANSI_GREEN = "\033[32m"
ANSI_RED = "\033[31m"
ANSI_RESET = "\033[0m"

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def now_iso() -> str:
    """Return the current local timestamp as an ISO-8601 string.

    Inputs:
    - Function parameters defined in the function signature.
    Output:
    - The function return value as defined by its signature/annotations.
    Example:
    ```python
    result = now_iso()
    ```
    """
    return _dt.datetime.now().isoformat(timespec="seconds")


def print_hr(char: str = "─", n: int = 80, file: TextIO | None = None) -> None:
    """Print a horizontal rule with a repeated character."""
    print(char * n, file=file or sys.stdout)


def clamp(s: str, limit: int = 4000) -> str:
    """Clamp a string length for logging/debug display.

    Inputs:
    - Function parameters defined in the function signature.
    Output:
    - The function return value as defined by its signature/annotations.
    Example:
    ```python
    result = clamp("x" * 10000, 100)
    ```
    """
    s = s or ""
    return s if len(s) <= limit else s[:limit] + "\n...<truncated>..."


def pretty_json(obj: Any) -> str:
    """Serialize an object to pretty-printed JSON."""
    return json.dumps(obj, indent=2, ensure_ascii=False)


def compact_json(obj: Any) -> str:
    """Serialize an object to single-line JSON suitable for a CLI argument."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def deep_merge_dict(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries, returning a deep-copied result.

    Inputs:
    - Function parameters defined in the function signature.
    Output:
    - The function return value as defined by its signature/annotations.
    Example:
    ```python
    result = deep_merge_dict({"a": {"b": 1}}, {"a": {"c": 2}})
    ```
    """
    merged = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = deep_merge_dict(merged[k], v)
        else:
            merged[k] = copy.deepcopy(v)
    return merged


def format_template(template: str, context: Dict[str, Any]) -> str:
    """Format a template while leaving unknown placeholders intact."""
    class SafeDict(dict):
        def __missing__(self, key):
            return "{" + key + "}"

    return (template or "").format_map(SafeDict(context))


def kebab_case(name: str) -> str:
    """Convert a camelCase or snake_case flag name to kebab-case.

    Inputs:
    - name: flag name without leading dashes.
    Output:
    - The kebab-case spelling (`allowedTools` -> `allowed-tools`).
    Example:
    ```python
    assert kebab_case("permission_mode") == "permission-mode"
    ```
    """
    text = _CAMEL_BOUNDARY_RE.sub("-", str(name or "").strip())
    return text.replace("_", "-").lower()


def camel_case(name: str) -> str:
    """Convert a kebab-case flag name to camelCase (`create-issues` -> `createIssues`)."""
    parts = [p for p in kebab_case(name).split("-") if p]
    if not parts:
        return ""
    return parts[0] + "".join(p[:1].upper() + p[1:] for p in parts[1:])


def name_variants(name: str) -> List[str]:
    """Return the distinct spellings a flag name may be given under."""
    variants: List[str] = []
    for candidate in (str(name), kebab_case(name), camel_case(name)):
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def use_ansi_colors(stream: TextIO | None = None) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    target = stream or sys.stdout
    try:
        return bool(getattr(target, "isatty", lambda: False)())
    except (OSError, ValueError):
        return False


def colorize(text: str, color: str, stream: TextIO | None = None) -> str:
    if not use_ansi_colors(stream):
        return text
    return f"{color}{text}{ANSI_RESET}"


def print_error(message: str) -> None:
    print(colorize(f"❌ Error: {message}", ANSI_RED, sys.stderr), file=sys.stderr)


def print_diagnostic(component: str, message: str) -> None:
    print(f"[{component}] {message}", file=sys.stderr)
