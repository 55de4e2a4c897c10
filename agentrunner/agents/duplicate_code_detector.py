"""Duplicate Code Detector: finds copy-pasted blocks and suggests consolidations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from agentrunner.constants import DEFAULT_MODEL
from agentrunner.core import Agent, resolve_project_path, run_agent
from agentrunner.errors import UsageError
from agentrunner.flags import FlagSpec, FlagStore, RuntimeFlags
from agentrunner.utils import format_template

SYSTEM_PROMPT = """You are a duplicate-code analyst. Search all source files, skip tests,
vendored dependencies, and build output, and focus on meaningful duplicates rather than
imports or boilerplate. Highlight copies that have diverged, since one of them is likely a bug."""

PROMPT_TEMPLATE = """Scan the project at {project_path} for duplicate code blocks.

1. Use Glob to learn the languages and directories present.
2. Use Grep to locate repeated function bodies, setup code, and error handling.
3. Read candidate blocks of at least {min_lines} lines and estimate their similarity;
   keep pairs at or above {similarity}%.
4. Prioritize by size, complexity, number of copies, and divergence risk.
5. Write {output} with a summary (duplicates found, duplicated lines, potential savings),
   high / medium / low priority sections listing every location as path:start-end, a
   refactoring suggestion per duplicate, and a consolidation roadmap.
"""


@dataclass
class DuplicateCodeOptions:
    project_path: Path
    min_lines: int
    similarity: int
    output: str


class DuplicateCodeDetector(Agent):
    name = "duplicate-code-detector"
    title = "🔍 Duplicate Code Detector"
    description = "Finds duplicate and near-duplicate code blocks with refactoring suggestions."
    usage = "[path] [options]"
    mode = "headless"
    arguments = (("path", "Project directory to scan (default: current directory)"),)
    examples = ("", "./src --min-lines 10", "--similarity=95 --output dupes.md")
    flags = (
        FlagSpec("min-lines", kind="number", metavar="n", default=5, help="Minimum block size in lines"),
        FlagSpec("similarity", kind="number", metavar="pct", default=85, help="Similarity threshold percentage"),
        FlagSpec("output", metavar="file", default="duplicate-code-report.md", help="Report file"),
    )

    def build_options(self, store: FlagStore) -> DuplicateCodeOptions:
        min_lines = store.read_number_flag("min-lines", 5)
        similarity = store.read_number_flag("similarity", 85)
        if min_lines < 1:
            raise UsageError("--min-lines must be a positive integer")
        if not 1 <= similarity <= 100:
            raise UsageError("--similarity must be between 1 and 100")
        return DuplicateCodeOptions(
            project_path=resolve_project_path(store.positional(0)),
            min_lines=min_lines,
            similarity=similarity,
            output=store.read_string_flag("output", "duplicate-code-report.md") or "duplicate-code-report.md",
        )

    def system_prompt(self, options: DuplicateCodeOptions) -> Optional[str]:
        return SYSTEM_PROMPT

    def build_prompt(self, options: DuplicateCodeOptions) -> str:
        return format_template(
            PROMPT_TEMPLATE,
            {
                "project_path": options.project_path,
                "min_lines": options.min_lines,
                "similarity": options.similarity,
                "output": options.output,
            },
        )

    def runtime_defaults(self, options: DuplicateCodeOptions) -> RuntimeFlags:
        return RuntimeFlags(
            model=DEFAULT_MODEL,
            permission_mode="bypassPermissions",
            allowed_tools=["Glob", "Grep", "Read", "Write"],
        )

    def working_dir(self, options: DuplicateCodeOptions) -> Optional[Path]:
        return options.project_path

    def describe(self, options: DuplicateCodeOptions) -> List[Tuple[str, str]]:
        return [
            ("Project", str(options.project_path)),
            ("Min lines", str(options.min_lines)),
            ("Similarity", f"{options.similarity}%"),
            ("Output", options.output),
        ]


def main() -> int:
    return run_agent(DuplicateCodeDetector)


if __name__ == "__main__":
    raise SystemExit(main())
