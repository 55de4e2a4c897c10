"""Agent definitions, the agent registry, and the shared run loop.

Inputs:
- An `Agent` subclass, the raw argument vector, and the runtime config.
Output:
- A prepared `Invocation` (prompt, flags, command, cwd, env) and, when run, the
  exit code to hand back to the shell.
Example:
```python
from agentrunner.core import get_agent, run_agent
raise SystemExit(run_agent(get_agent("todo-collector"), ["./src"]))
```
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type
from urllib.parse import urlparse

from .config import agent_flag_overrides, hooks_enabled, load_runtime_config, normalize_command
from .constants import DEFAULT_MODEL, DEFAULT_PERMISSION_MODE
from .errors import AgentSpawnError, UsageError
from .flags import (
    FlagSpec,
    FlagStore,
    RuntimeFlags,
    flatten_runtime_flags,
    is_short_cluster,
    merge_runtime_flags,
    parse_args,
)
from .output_style import OutputStyleManager
from .process import AgentResult, invoke, run_headless, working_directory
from .settings import apply_conventional_hooks, set_settings_entry, validate_permission_mode
from .utils import ANSI_GREEN, clamp, colorize, print_error, print_hr

HELP_FLAG = FlagSpec("help", kind="boolean", aliases=("h",), help="Show this help message")
AGENT_MODES = ("interactive", "headless")

_AGENT_REGISTRY: Dict[str, Type["Agent"]] = {}


class AgentMeta(type):
    def __new__(mcls, name, bases, namespace):
        cls = super().__new__(mcls, name, bases, namespace)
        agent_name = namespace.get("name")
        if not agent_name:
            return cls
        existing = _AGENT_REGISTRY.get(agent_name)
        if existing is not None and existing.__qualname__ != cls.__qualname__:
            raise ValueError(
                f"Duplicate agent registration for '{agent_name}': "
                f"{existing.__module__}.{existing.__name__} and {cls.__module__}.{name}"
            )
        _AGENT_REGISTRY[agent_name] = cls
        return cls


def get_agent(name: str) -> Type["Agent"]:
    _ensure_catalog_loaded()
    try:
        return _AGENT_REGISTRY[name]
    except KeyError:
        raise KeyError(f"Unknown agent: {name}") from None


def available_agents() -> List[str]:
    _ensure_catalog_loaded()
    return sorted(_AGENT_REGISTRY)


def _ensure_catalog_loaded() -> None:
    # Import side effect registers the built-in agents.
    from . import agents as _agents  # noqa: F401


def require_choice(value: str, choices: Sequence[str], flag: str) -> str:
    if value not in choices:
        raise UsageError(f"Invalid --{flag} {value!r}. Must be one of: {', '.join(choices)}")
    return value


def require_url(value: Optional[str], label: str = "URL") -> str:
    if not value:
        raise UsageError(f"{label} is required")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise UsageError(f"Invalid {label} format: {value!r}")
    return value


def resolve_project_path(value: Optional[str]) -> Path:
    path = Path(value or ".").expanduser().resolve()
    if not path.is_dir():
        raise UsageError(f"Project path does not exist or is not a directory: {path}")
    return path


class Agent(metaclass=AgentMeta):
    """Base class for catalog agents.

    Inputs:
    - Class attributes describing the CLI (`name`, `flags`, `usage`, ...) and the
      hook methods that turn a `FlagStore` into options, a prompt, and runtime flags.
    Output:
    - Agent: instances consumed by `prepare_invocation` / `run_agent`.
    Example:
    ```python
    class HelloAgent(Agent):
        name = "hello"
        def build_options(self, store): return {"who": store.positional(0, "world")}
        def build_prompt(self, options): return f"Say hello to {options['who']}"
    ```
    """

    name: str = ""
    title: str = ""
    description: str = ""
    usage: str = "[options]"
    arguments: Sequence[Tuple[str, str]] = ()
    examples: Sequence[str] = ()
    flags: Sequence[FlagSpec] = ()
    mode: str = "interactive"
    output_style: Optional[Path] = None

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        if self.mode not in AGENT_MODES:
            raise ValueError(f"Unknown agent mode for {self.name}: {self.mode!r}")
        self.config = config if config is not None else {}

    def all_flags(self) -> List[FlagSpec]:
        return [*self.flags, HELP_FLAG]

    def agent_flag_names(self) -> List[str]:
        names: List[str] = []
        for spec in self.all_flags():
            names.extend(spec.names())
        return names

    def build_options(self, store: FlagStore) -> Any:
        raise NotImplementedError

    def build_prompt(self, options: Any) -> str:
        raise NotImplementedError

    def runtime_defaults(self, options: Any) -> RuntimeFlags:
        return RuntimeFlags(model=DEFAULT_MODEL, permission_mode=DEFAULT_PERMISSION_MODE)

    def system_prompt(self, options: Any) -> Optional[str]:
        return None

    def working_dir(self, options: Any) -> Optional[Path]:
        return None

    def child_env(self, options: Any) -> Dict[str, str]:
        return {}

    def describe(self, options: Any) -> List[Tuple[str, str]]:
        return []

    def on_success(self, options: Any, result: Optional[AgentResult]) -> None:
        pass

    def module_path(self) -> Optional[Path]:
        module = sys.modules.get(type(self).__module__)
        module_file = getattr(module, "__file__", None)
        return Path(module_file).resolve() if module_file else None

    def render_help(self, prog: str = "python main.py") -> str:
        lines = [f"{self.title or self.name}", ""]
        if self.description:
            lines.extend([self.description, ""])
        lines.extend(["Usage:", f"  {prog} {self.name} {self.usage}".rstrip(), ""])
        if self.arguments:
            lines.append("Arguments:")
            width = max(len(arg) for arg, _ in self.arguments)
            for arg, text in self.arguments:
                lines.append(f"  {arg.ljust(width)}  {text}")
            lines.append("")
        lines.append("Options:")
        labels = [(spec.usage_label(), spec) for spec in self.all_flags()]
        width = max(len(label) for label, _ in labels)
        for label, spec in labels:
            text = spec.help
            if spec.choices:
                text += f" ({'|'.join(spec.choices)})"
            if spec.default is not None and spec.kind != "boolean":
                text += f" (default: {spec.default})"
            lines.append(f"  {label.ljust(width)}  {text}".rstrip())
        if self.examples:
            lines.extend(["", "Examples:"])
            lines.extend(f"  {prog} {self.name} {example}".rstrip() for example in self.examples)
        return "\n".join(lines)


@dataclass
class Invocation:
    """Everything needed to start the runtime for one agent run."""

    agent: Agent
    options: Any
    prompt: str
    flags: Dict[str, Any]
    command: List[str]
    cwd: Optional[Path] = None
    env: Dict[str, str] = field(default_factory=dict)

    def argv(self) -> List[str]:
        return flatten_runtime_flags(self.flags)

    def command_line(self) -> List[str]:
        tokens = [*self.command, *self.argv()]
        if self.prompt:
            tokens.append(self.prompt)
        return tokens


def wants_help(argv: Sequence[str]) -> bool:
    """True for `--help`, `--help=true`, or a short cluster holding `h` (`-h`, `-hv`) before `--`."""
    for token in argv:
        if token == "--":
            return False
        if token in ("--help", "--help=true"):
            return True
        if is_short_cluster(token) and "h" in token[1:]:
            return True
    return False


def prepare_invocation(agent: Agent, argv: Sequence[str]) -> Invocation:
    """Parse argv, validate options, and merge runtime flags for `agent`.

    Raises `UsageError` for invalid input; nothing is spawned here.
    """
    store = parse_args(argv, agent.all_flags())
    options = agent.build_options(store)
    prompt = agent.build_prompt(options)

    defaults = merge_runtime_flags(agent.runtime_defaults(options))
    system_prompt = agent.system_prompt(options)
    if system_prompt:
        defaults["append-system-prompt"] = system_prompt
    defaults = merge_runtime_flags(defaults, agent_flag_overrides(agent.config, agent.name))

    store.remove_agent_flags(agent.agent_flag_names())
    merged = merge_runtime_flags(defaults, store.remaining_flags())
    mode = merged.get("permission-mode")
    validate_permission_mode(mode if isinstance(mode, str) else None)

    if hooks_enabled(agent.config):
        merged = apply_conventional_hooks(merged, agent.module_path())

    command = normalize_command(agent.config.get("command"))
    return Invocation(
        agent=agent,
        options=options,
        prompt=prompt,
        flags=merged,
        command=command,
        cwd=agent.working_dir(options),
        env=dict(agent.child_env(options)),
    )


def print_banner(invocation: Invocation) -> None:
    agent = invocation.agent
    print(f"\n🤖 {agent.title or agent.name}\n")
    for label, value in agent.describe(invocation.options):
        print(f"  {label}: {value}")
    print()


def print_stream_message(message: Dict[str, Any]) -> None:
    kind = message.get("type")
    if kind == "system" and message.get("subtype") == "init":
        print(f"⚙️  Session {message.get('session_id', '?')} (model={message.get('model', '?')})", flush=True)
        return
    if kind != "assistant":
        return
    content = (message.get("message") or {}).get("content") or []
    for block in content:
        if not isinstance(block, dict):
            continue
        if block.get("type") == "text" and block.get("text"):
            print(block["text"], flush=True)
        elif block.get("type") == "tool_use":
            print(f"🔧 {block.get('name', 'tool')}", flush=True)


def print_result(agent: Agent, result: AgentResult) -> None:
    print_hr()
    print(colorize(f"✅ {agent.title or agent.name} complete!", ANSI_GREEN))
    if result.result:
        print(clamp(result.result, 12000))
    stats = []
    if result.num_turns is not None:
        stats.append(f"turns={result.num_turns}")
    if result.duration_ms is not None:
        stats.append(f"duration={result.duration_ms / 1000:.1f}s")
    if result.total_cost_usd is not None:
        stats.append(f"cost=${result.total_cost_usd:.4f}")
    if stats:
        print("Stats: " + ", ".join(stats))
    print_hr()


def execute_invocation(invocation: Invocation) -> int:
    """Start the runtime for a prepared invocation and translate the outcome to an exit code."""
    agent = invocation.agent
    style: Optional[OutputStyleManager] = None
    flags = dict(invocation.flags)
    try:
        if agent.output_style is not None:
            style = OutputStyleManager(agent.output_style)
            flags = set_settings_entry(flags, "outputStyle", style.setup())
    except (OSError, ValueError) as e:
        if style is not None:
            style.cleanup()
        print_error(f"Could not prepare runtime settings: {e}")
        return 1

    try:
        argv = flatten_runtime_flags(flags)
        with working_directory(invocation.cwd):
            if agent.mode == "headless":
                outcome = run_headless(
                    invocation.prompt,
                    argv,
                    command=invocation.command,
                    env=invocation.env,
                    on_message=print_stream_message,
                )
                if outcome.exit_code != 0 or outcome.interrupted:
                    return outcome.exit_code
                if outcome.result is None:
                    print_error("Agent runtime exited without a result message")
                    return 1
                if not outcome.result.ok:
                    print_error(f"{agent.title or agent.name} failed ({outcome.result.subtype})")
                    if outcome.result.result:
                        print(clamp(outcome.result.result, 4000), file=sys.stderr)
                    return 1
                print_result(agent, outcome.result)
                agent.on_success(invocation.options, outcome.result)
                return 0

            exit_code = invoke(invocation.prompt, argv, command=invocation.command, env=invocation.env)
            if exit_code == 0:
                agent.on_success(invocation.options, None)
            return exit_code
    except AgentSpawnError as e:
        print_error(f"Fatal: {e}")
        return 1
    finally:
        if style is not None:
            style.cleanup()


def run_agent(agent_cls: Type[Agent], argv: Optional[Sequence[str]] = None, config: Optional[Dict[str, Any]] = None) -> int:
    """Run one agent end to end and return the process exit code.

    Inputs:
    - agent_cls: the agent to run.
    - argv: arguments after the agent name (defaults to `sys.argv[1:]`).
    - config: runtime config; loaded with `load_runtime_config()` when omitted.
    Output:
    - 0 on success or help, 1 on usage/spawn/result failure, otherwise the runtime's code.
    Example:
    ```python
    rc = run_agent(get_agent("link-rot-detector"), ["https://example.com", "--depth", "2"])
    ```
    """
    args = list(sys.argv[1:] if argv is None else argv)
    if wants_help(args):
        print(agent_cls().render_help())
        return 0

    try:
        cfg = config if config is not None else load_runtime_config()
    except (OSError, ValueError) as e:
        print_error(f"Invalid config: {e}")
        return 1
    agent = agent_cls(cfg)

    try:
        invocation = prepare_invocation(agent, args)
    except UsageError as e:
        print_error(str(e))
        print(file=sys.stderr)
        print(agent.render_help(), file=sys.stderr)
        return 1

    print_banner(invocation)
    return execute_invocation(invocation)
