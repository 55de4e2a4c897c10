"""Configuration loading and runtime resolution for agentrunner.

Inputs:
- An optional config file path, the `AGENTRUNNER_CONFIG` / `AGENTRUNNER_BINARY`
  environment variables, and the packaged defaults.
Output:
- Fully resolved runtime configuration dictionaries and per-agent flag overrides.
Example:
```python
from agentrunner.config import load_runtime_config
cfg = load_runtime_config()
print(cfg["command"])
```
"""

from __future__ import annotations

import json
import os
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .constants import DEFAULT_AGENT_BINARY, DEFAULT_CONFIG, DEFAULT_CONFIG_FILENAME, ENV_BINARY, ENV_CONFIG
from .utils import deep_merge_dict, pretty_json


def write_json(path: Path, obj: Any) -> None:
    """Write an object to disk as UTF-8 JSON with stable formatting.

    Inputs:
    - Function parameters defined in the function signature.
    Output:
    - The function return value as defined by its signature/annotations.
    Example:
    ```python
    write_json(Path("agentrunner.json"), DEFAULT_CONFIG)
    ```
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(pretty_json(obj) + "\n", encoding="utf-8")


def load_json_object(path: Path) -> Dict[str, Any]:
    """Load and validate that a JSON file contains an object.

    Inputs:
    - Function parameters defined in the function signature.
    Output:
    - The function return value as defined by its signature/annotations.
    Example:
    ```python
    result = load_json_object(Path("agentrunner.json"))
    ```
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected JSON object in {path}")
    return data


def ensure_config_file(path: Union[str, Path]) -> Path:
    """Create a config file with the packaged defaults if it is missing, then return its path."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        write_json(config_path, DEFAULT_CONFIG)
    return config_path


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Pick the config file: explicit path, then `AGENTRUNNER_CONFIG`, then `./agentrunner.json`."""
    if path:
        return Path(path).resolve()
    env_path = os.getenv(ENV_CONFIG, "").strip()
    if env_path:
        return Path(env_path).resolve()
    local = (Path.cwd() / DEFAULT_CONFIG_FILENAME).resolve()
    if local.exists():
        return local
    return None


def normalize_command(raw: Any) -> List[str]:
    if isinstance(raw, str):
        parts = shlex.split(raw)
    elif isinstance(raw, (list, tuple)):
        parts = [str(p) for p in raw if str(p).strip()]
    else:
        parts = []
    return parts or [DEFAULT_AGENT_BINARY]


def load_runtime_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load the runtime config, layering defaults, the config file, and env overrides.

    Inputs:
    - path: optional explicit config file. An explicit path that does not exist raises
      `FileNotFoundError`; a discovered file that is not a JSON object raises `ValueError`.
    Output:
    - Config dict with `command` normalized to a list and a `_meta` entry naming the source.
    Example:
    ```python
    cfg = load_runtime_config("agentrunner.json")
    ```
    """
    config_path = resolve_config_path(path)
    config_obj = deep_merge_dict(DEFAULT_CONFIG, {})
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        config_obj = deep_merge_dict(config_obj, load_json_object(config_path))

    env_binary = os.getenv(ENV_BINARY, "").strip()
    if env_binary:
        config_obj["command"] = env_binary
    config_obj["command"] = normalize_command(config_obj.get("command"))

    if not isinstance(config_obj.get("agents"), dict):
        raise ValueError("Config key 'agents' must be an object")

    config_obj["_meta"] = {
        "config_path": str(config_path) if config_path else None,
        "command_source": "env" if env_binary else ("file" if config_path else "default"),
    }
    return config_obj


def agent_flag_overrides(config: Dict[str, Any], agent_name: str) -> Dict[str, Any]:
    """Return runtime flag overrides from config: global `defaults` then `agents.<name>`."""
    overrides: Dict[str, Any] = {}
    defaults = config.get("defaults") or {}
    if isinstance(defaults, dict):
        overrides.update({k: v for k, v in defaults.items() if v is not None})
    per_agent = (config.get("agents") or {}).get(agent_name) or {}
    if isinstance(per_agent, dict):
        overrides.update({k: v for k, v in per_agent.items() if v is not None})
    return overrides


def hooks_enabled(config: Dict[str, Any]) -> bool:
    hooks = config.get("hooks") or {}
    return bool(hooks.get("enabled", True)) if isinstance(hooks, dict) else True
