"""Public package exports for the agentrunner library.

Inputs:
- Standard Python imports from agent scripts and downstream tooling.
Output:
- Public symbols (`Agent`, `run_agent`, `parse_args`, `build_runtime_flags`, `invoke`, ...).
Example:
```python
from agentrunner import get_agent, run_agent
raise SystemExit(run_agent(get_agent("changelog-automator"), ["--from", "v1.0.0"]))
```
"""

from .config import load_runtime_config
from .core import Agent, Invocation, available_agents, get_agent, prepare_invocation, run_agent
from .errors import AgentRunnerError, AgentSpawnError, UsageError
from .flags import (
    FlagSpec,
    FlagStore,
    ParsedArguments,
    RuntimeFlags,
    build_runtime_flags,
    merge_runtime_flags,
    parse_args,
)
from .output_style import OutputStyleManager
from .process import AgentProcess, AgentResult, invoke, run_headless
from .settings import apply_conventional_hooks, build_settings
from .state import StateManager

__all__ = [
    "Agent",
    "Invocation",
    "available_agents",
    "get_agent",
    "prepare_invocation",
    "run_agent",
    "load_runtime_config",
    "AgentRunnerError",
    "AgentSpawnError",
    "UsageError",
    "FlagSpec",
    "FlagStore",
    "ParsedArguments",
    "RuntimeFlags",
    "parse_args",
    "build_runtime_flags",
    "merge_runtime_flags",
    "AgentProcess",
    "AgentResult",
    "invoke",
    "run_headless",
    "apply_conventional_hooks",
    "build_settings",
    "OutputStyleManager",
    "StateManager",
]
