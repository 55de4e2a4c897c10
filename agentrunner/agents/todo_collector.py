"""TODO Collector: gathers TODO/FIXME/HACK comments into a prioritized markdown report.

The agent remembers its last successful run in `agents/tmp/todo-collector.json`
under the scanned project so the next report can call out what changed.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from agentrunner.constants import DEFAULT_MODEL
from agentrunner.core import Agent, resolve_project_path, run_agent
from agentrunner.flags import FlagSpec, FlagStore, RuntimeFlags
from agentrunner.process import AgentResult
from agentrunner.settings import settings_json
from agentrunner.state import StateManager
from agentrunner.utils import format_template, print_diagnostic

STATE_NAME = "todo-collector"
DEFAULT_OUTPUT_FILE = "TODO.md"

SYSTEM_PROMPT_TEMPLATE = """You are a TODO Collector agent that helps developers track scattered TODO comments.

Find TODO, FIXME, HACK, BUG, NOTE, and XXX comments in every language's comment syntax
(// TODO, # TODO, /* TODO */, <!-- TODO -->). For each one record the file path, line
number, full text, and, via git blame, the author and the age in days. Treat items older
than 90 days as stale. Prioritize FIXME/BUG/XXX over TODO over HACK/NOTE.
{issue_policy}"""

PROMPT_TEMPLATE = """Scan the project at: {project_path} and collect all TODO-style comments.

1. Use Glob to learn which languages are present.
2. Use Grep for "TODO:", "FIXME:", "HACK:", "BUG:", "NOTE:", "XXX:" with one line of
   context, respecting .gitignore.
3. Use git blame for the author, date, and commit of each match.
4. Save '{output}' as a markdown report with a summary (totals by type, oldest item,
   stale count), checkbox lists per priority written as file:line, and recommendations
   for which items should become issues.
{previous}"""


@dataclass
class TodoCollectorOptions:
    project_path: Path
    output: str
    create_issues: bool
    previous_run: Optional[Dict[str, Any]] = None


def state_for(project_path: Path, create_dir: bool = False) -> StateManager:
    return StateManager(STATE_NAME, root=project_path, create_dir=create_dir)


def load_previous_run(project_path: Path) -> Optional[Dict[str, Any]]:
    try:
        return state_for(project_path).read()
    except ValueError as e:
        print_diagnostic("todo-collector", f"Ignoring unreadable state: {e}")
        return None


class TodoCollector(Agent):
    name = "todo-collector"
    title = "📝 TODO Collector"
    description = "Collects TODO-style comments with git blame metadata into a prioritized report."
    usage = "[project-path] [options]"
    arguments = (("project-path", "Path to project (default: current directory)"),)
    examples = (
        "",
        "/path/to/project",
        "--create-issues",
        "--output TODO-REPORT.md --create-issues",
    )
    flags = (
        FlagSpec("output", metavar="file", default=DEFAULT_OUTPUT_FILE, help="Output file"),
        FlagSpec("create-issues", kind="boolean", help="Create GitHub issues for high-priority TODOs"),
    )

    def build_options(self, store: FlagStore) -> TodoCollectorOptions:
        project_path = resolve_project_path(store.positional(0))
        return TodoCollectorOptions(
            project_path=project_path,
            output=store.read_string_flag("output", DEFAULT_OUTPUT_FILE) or DEFAULT_OUTPUT_FILE,
            create_issues=store.read_boolean_flag("create-issues", False),
            previous_run=load_previous_run(project_path),
        )

    def system_prompt(self, options: TodoCollectorOptions) -> Optional[str]:
        if options.create_issues:
            issue_policy = "After writing the report, create GitHub issues for FIXME, BUG, and XXX items with `gh issue create`."
        else:
            issue_policy = "Do not create GitHub issues."
        return format_template(SYSTEM_PROMPT_TEMPLATE, {"issue_policy": issue_policy})

    def build_prompt(self, options: TodoCollectorOptions) -> str:
        previous = ""
        last = options.previous_run or {}
        if last.get("output"):
            previous = (
                f"\nA previous report was written to '{last['output']}' at {last.get('timestamp', 'an unknown time')}. "
                "If it still exists, add a section listing items that were resolved or added since then.\n"
            )
        return format_template(
            PROMPT_TEMPLATE,
            {"project_path": options.project_path, "output": options.output, "previous": previous},
        )

    def runtime_defaults(self, options: TodoCollectorOptions) -> RuntimeFlags:
        return RuntimeFlags(
            model=DEFAULT_MODEL,
            permission_mode="bypassPermissions",
            allowed_tools=["Glob", "Grep", "Read", "Bash", "Write", "TodoWrite"],
            settings=settings_json(),
        )

    def working_dir(self, options: TodoCollectorOptions) -> Optional[Path]:
        return options.project_path

    def describe(self, options: TodoCollectorOptions) -> List[Tuple[str, str]]:
        lines = [("📁 Scanning project", str(options.project_path)), ("📄 Output file", options.output)]
        if options.create_issues:
            lines.append(("🎫 Issues", "will be created for high-priority TODOs"))
        if options.previous_run and options.previous_run.get("timestamp"):
            lines.append(("🕑 Last run", str(options.previous_run["timestamp"])))
        return lines

    def on_success(self, options: TodoCollectorOptions, result: Optional[AgentResult]) -> None:
        state_for(options.project_path, create_dir=True).write(
            {"output": options.output, "create_issues": options.create_issues}
        )
        print("\n✅ TODO collection complete!\n")
        print(f"📄 Report saved to: {options.output}")
        if not options.create_issues:
            print("💡 Run with --create-issues to automatically create GitHub issues for high-priority TODOs")


def main() -> int:
    return run_agent(TodoCollector)


if __name__ == "__main__":
    raise SystemExit(main())
