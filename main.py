#!/usr/bin/env python3
"""
main.py

CLI wrapper for the agentrunner catalog.
"""

from __future__ import annotations

import argparse
import shlex
import sys
from typing import Any, Dict, List, Optional

from agentrunner import available_agents, get_agent, load_runtime_config, prepare_invocation, run_agent
from agentrunner.constants import HEADLESS_FLAGS
from agentrunner.errors import UsageError
from agentrunner.utils import print_error, print_hr

COMMANDS = ("list", "show", "run")


def load_config_or_report(path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    try:
        return load_runtime_config(path)
    except (OSError, ValueError) as e:
        print_error(f"Invalid config: {e}")
        return None


def run_list_command(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="main.py list", description="List the available agents")
    ap.parse_args(argv)

    names = available_agents()
    width = max(len(name) for name in names)
    print_hr()
    for name in names:
        agent_cls = get_agent(name)
        mode = "headless" if agent_cls.mode == "headless" else "interactive"
        print(f"{name.ljust(width)}  [{mode}]  {agent_cls.description}")
    print_hr()
    print(f"{len(names)} agents. Run `python main.py <agent> --help` for details.")
    return 0


def run_show_command(argv: Optional[List[str]] = None) -> int:
    """Print the runtime command an agent would execute, without running it.

    Inputs:
    - argv: `<agent> [agent args...]`; the config comes from `AGENTRUNNER_CONFIG`
      or `./agentrunner.json` exactly as for a real run.
    Output:
    - 0 after printing `# cwd:` / `# env:` lines and the shell-quoted command,
      1 for an unknown agent, invalid config, or invalid agent arguments.
    Example:
    ```bash
    python main.py show link-rot-detector https://example.com --depth 2
    ```
    """
    args = list(argv or [])
    if not args or args[0] in ("-h", "--help"):
        print("Usage: python main.py show <agent> [args...]")
        return 0 if args else 1

    try:
        agent_cls = get_agent(args[0])
    except KeyError as e:
        print_error(str(e.args[0]))
        return 1
    cfg = load_config_or_report()
    if cfg is None:
        return 1

    agent = agent_cls(cfg)
    try:
        invocation = prepare_invocation(agent, args[1:])
    except UsageError as e:
        print_error(str(e))
        return 1

    if invocation.cwd is not None:
        print(f"# cwd: {invocation.cwd}")
    for key, value in sorted(invocation.env.items()):
        print(f"# env: {key}={value}")
    tokens = [*invocation.command]
    if agent.mode == "headless":
        tokens.extend(HEADLESS_FLAGS)
    tokens.extend(invocation.argv())
    if invocation.prompt:
        tokens.append(invocation.prompt)
    print(shlex.join(tokens))
    return 0


def run_agent_command(name: str, argv: List[str]) -> int:
    try:
        agent_cls = get_agent(name)
    except KeyError as e:
        print_error(str(e.args[0]))
        print(f"Available agents: {', '.join(available_agents())}", file=sys.stderr)
        return 1
    return run_agent(agent_cls, argv)


def print_usage() -> None:
    print("Usage:")
    print("  python main.py list")
    print("  python main.py show <agent> [args...]")
    print("  python main.py run <agent> [args...]")
    print("  python main.py <agent> [args...]")
    print()
    print(f"Agents: {', '.join(available_agents())}")


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in ("-h", "--help", "help"):
        print_usage()
        return 0

    cmd = str(args[0]).strip().lower()
    if cmd == "list":
        return run_list_command(args[1:])
    if cmd == "show":
        return run_show_command(args[1:])
    if cmd == "run":
        if len(args) < 2:
            print_error("run requires an agent name")
            print_usage()
            return 1
        return run_agent_command(args[1], args[2:])
    return run_agent_command(args[0], args[1:])


if __name__ == "__main__":
    raise SystemExit(main())
