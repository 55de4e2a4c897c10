"""JSON state files for agents that resume work across sessions.

Inputs:
- A state name, optional sub-directory, and JSON-serializable state dictionaries.
Output:
- State persisted under `<root>/agents/tmp[/<sub_dir>]/<state_name>.json`.
Example:
```python
from agentrunner.state import StateManager

state = StateManager("extraction-state", sub_dir="extraction")
state.initialize({"version": "1", "phases": {}})
state.update({"current_phase": "discovery"})
```
"""

from __future__ import annotations

import json
import re
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .constants import STATE_ROOT_REL_DIR
from .utils import now_iso, print_diagnostic


class StateManager:
    """File-backed JSON state for one agent (one file per state name)."""

    def __init__(
        self,
        state_name: str,
        sub_dir: Optional[str] = None,
        root: Optional[Union[str, Path]] = None,
        create_dir: bool = True,
    ):
        normalized = re.sub(r"[^a-zA-Z0-9._-]+", "_", str(state_name).strip())
        if not normalized:
            raise ValueError("State name cannot be empty.")
        base = Path(root).resolve() if root is not None else Path.cwd().resolve()
        state_dir = base / STATE_ROOT_REL_DIR
        if sub_dir:
            state_dir = state_dir / sub_dir
        self.path = state_dir / f"{normalized}.json"
        self._lock = threading.RLock()
        if create_dir:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            if not self.path.exists():
                return None
            text = self.path.read_text(encoding="utf-8")
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise ValueError(f"Invalid JSON in state file: {self.path}") from exc
        if not isinstance(payload, dict):
            raise ValueError(f"State file must contain a JSON object: {self.path}")
        return payload

    def write(self, state: Mapping[str, Any]) -> Dict[str, Any]:
        data = deepcopy(dict(state or {}))
        data.setdefault("timestamp", now_iso())
        encoded = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(encoded, encoding="utf-8")
            tmp_path.replace(self.path)
        print_diagnostic("state", f"Wrote state to {self.path}")
        return data

    def update(self, partial: Mapping[str, Any]) -> Dict[str, Any]:
        with self._lock:
            current = self.read() or {}
            current.update(deepcopy(dict(partial or {})))
            current["timestamp"] = now_iso()
            return self.write(current)

    def initialize(self, default_state: Mapping[str, Any]) -> Dict[str, Any]:
        with self._lock:
            existing = self.read()
            if existing is not None:
                return existing
            return self.write(default_state)

    def delete(self) -> bool:
        with self._lock:
            if not self.path.exists():
                return False
            self.path.unlink()
        print_diagnostic("state", f"Deleted state file: {self.path}")
        return True
