"""Runtime settings documents and convention-based hook discovery.

Inputs:
- Permission rules, hook matchers, env entries, and the path of the running agent module.
Output:
- Settings dictionaries / JSON strings passed through the `--settings` runtime flag.
Example:
```python
from agentrunner.settings import settings_json
flags = {"settings": settings_json(permissions={"allow": ["Bash(git log:*)"]})}
```
"""

from __future__ import annotations

import copy
import json
import shlex
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .constants import HOOK_TYPES, PERMISSION_MODES
from .errors import UsageError
from .utils import compact_json, print_diagnostic


def validate_permission_mode(mode: Optional[str]) -> Optional[str]:
    if mode is None:
        return None
    if mode not in PERMISSION_MODES:
        raise UsageError(f"Invalid permission mode {mode!r}. Must be one of: {', '.join(PERMISSION_MODES)}")
    return mode


def build_settings(
    permissions: Optional[Mapping[str, Any]] = None,
    hooks: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
    output_style: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Assemble a settings document, dropping empty sections."""
    settings: Dict[str, Any] = {}
    if permissions:
        perms = {k: (list(v) if isinstance(v, (list, tuple)) else v) for k, v in permissions.items() if v}
        if "defaultMode" in perms:
            validate_permission_mode(perms["defaultMode"])
        if perms:
            settings["permissions"] = perms
    if hooks:
        settings["hooks"] = {k: list(v) for k, v in hooks.items() if v}
    if env:
        settings["env"] = {str(k): str(v) for k, v in env.items()}
    if output_style:
        settings["outputStyle"] = output_style
    for key, value in extra.items():
        if value is not None:
            settings[key] = value
    return settings


def settings_json(**kwargs: Any) -> str:
    return compact_json(build_settings(**kwargs))


def set_settings_entry(flags: Dict[str, Any], key: str, value: Any) -> Dict[str, Any]:
    """Return a copy of `flags` whose `settings` JSON carries `key: value`."""
    raw = flags.get("settings")
    settings: Dict[str, Any] = {}
    if isinstance(raw, dict):
        settings = copy.deepcopy(raw)
    elif isinstance(raw, str) and raw.strip():
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("Settings JSON must be an object")
        settings = parsed
    settings[key] = value
    updated = dict(flags)
    updated["settings"] = compact_json(settings)
    return updated


def hook_command(hook_path: Path) -> Dict[str, Any]:
    return {
        "type": "command",
        "command": f"{shlex.quote(sys.executable)} {shlex.quote(str(hook_path))}",
    }


def discover_hook_files(agent_path: Union[str, Path]) -> Dict[str, Path]:
    """Find `<stem>.<HookType>.py` files next to an agent module."""
    path = Path(agent_path).resolve()
    found: Dict[str, Path] = {}
    for hook_type in HOOK_TYPES:
        candidate = path.with_name(f"{path.stem}.{hook_type}.py")
        if candidate.is_file():
            found[hook_type] = candidate
    return found


def apply_conventional_hooks(flags: Dict[str, Any], agent_path: Optional[Union[str, Path]]) -> Dict[str, Any]:
    """Register sibling hook scripts of the agent inside the `settings` flag.

    Inputs:
    - flags: kebab-case runtime flag mapping; `settings` may hold a JSON string.
    - agent_path: path of the running agent module.
    Output:
    - A new mapping with hooks merged into `settings`, or `flags` unchanged when
      no hooks exist or the existing settings JSON cannot be parsed.
    Example:
    ```python
    flags = apply_conventional_hooks({"model": "sonnet"}, __file__)
    ```
    """
    if not agent_path:
        print_diagnostic("conventional-hooks", "No agent path available")
        return flags

    found = discover_hook_files(agent_path)
    if not found:
        return flags

    raw_settings = flags.get("settings")
    settings: Dict[str, Any] = {}
    if isinstance(raw_settings, dict):
        settings = copy.deepcopy(dict(raw_settings))
    elif isinstance(raw_settings, str) and raw_settings.strip():
        try:
            parsed = json.loads(raw_settings)
        except ValueError as e:
            print_diagnostic("conventional-hooks", f"Error parsing existing settings JSON: {e}")
            return flags
        if not isinstance(parsed, dict):
            print_diagnostic("conventional-hooks", "Existing settings JSON is not an object")
            return flags
        settings = parsed

    hooks = settings.setdefault("hooks", {})
    for hook_type, hook_path in found.items():
        print_diagnostic("conventional-hooks", f"Found hook: {hook_path}")
        matchers: List[Dict[str, Any]] = hooks.setdefault(hook_type, [])
        matchers.append({"matcher": "*", "hooks": [hook_command(hook_path)]})

    print_diagnostic("conventional-hooks", f"Applied {len(found)} conventional hook(s)")
    updated = dict(flags)
    updated["settings"] = compact_json(settings)
    return updated
