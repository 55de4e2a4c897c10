"""Default constants and configuration templates used by agentrunner.

Inputs:
- Static values defined in module source.
Output:
- Reusable constants for config defaults, runtime flag defaults, and hook discovery.
Example:
```python
from agentrunner.constants import DEFAULT_CONFIG
print(DEFAULT_CONFIG["command"])
```
"""

from __future__ import annotations

from typing import Any, Dict, Tuple


DEFAULT_CONFIG_FILENAME = "agentrunner.json"

ENV_BINARY = "AGENTRUNNER_BINARY"
ENV_CONFIG = "AGENTRUNNER_CONFIG"
ENV_PROJECT_ROOT = "AGENTRUNNER_PROJECT_ROOT"

DEFAULT_AGENT_BINARY = "claude"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_PERMISSION_MODE = "default"

PERMISSION_MODES: Tuple[str, ...] = ("default", "acceptEdits", "bypassPermissions", "plan")

HOOK_TYPES: Tuple[str, ...] = (
    "UserPromptSubmit",
    "PostToolUse",
    "PreToolUse",
    "SessionStart",
    "SessionEnd",
    "Stop",
    "SubagentStop",
    "Notification",
    "PreCompact",
)

HEADLESS_FLAGS: Tuple[str, ...] = ("--print", "--output-format", "stream-json", "--verbose")

# Keys of RuntimeFlags as they appear on the agent command line.
RUNTIME_FLAG_KEYS: Tuple[str, ...] = (
    "model",
    "permission-mode",
    "allowed-tools",
    "settings",
    "mcp-config",
    "append-system-prompt",
)

STATE_ROOT_REL_DIR = "agents/tmp"
OUTPUT_STYLES_REL_DIR = ".claude/output-styles"

CHROME_DEVTOOLS_MCP: Dict[str, Any] = {
    "mcpServers": {
        "chrome-devtools": {
            "command": "npx",
            "args": ["chrome-devtools-mcp@latest", "--isolated"],
        }
    }
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "command": [DEFAULT_AGENT_BINARY],
    "defaults": {
        "model": None,
        "permission_mode": None,
    },
    "agents": {},
    "hooks": {
        "enabled": True,
    },
}
