"""Changelog Automator: turns git history into a categorized changelog."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from agentrunner.constants import DEFAULT_MODEL
from agentrunner.core import Agent, require_choice, run_agent
from agentrunner.flags import FlagSpec, FlagStore, RuntimeFlags
from agentrunner.process import AgentResult
from agentrunner.utils import format_template

FORMATS = ("keep-a-changelog", "markdown", "json")

PROMPT_TEMPLATE = """Generate a professional, user-friendly changelog for this Git repository.

1. Discover version history
   {range_instructions}
   - End at "{to_ref}" and collect every commit in the range with `git log`.

2. Analyze each commit: message, author, date, SHA, conventional-commit type, PR/issue
   references, and breaking-change markers ("BREAKING CHANGE:", "feat!:"). Skip merge
   commits, version bumps, and dependency-only updates unless they break something.

3. Categorize into Breaking Changes, Features, Bug Fixes, Documentation, and Internal.

4. For breaking changes write a migration guide with before/after examples.

5. Suggest the next semantic version (MAJOR for breaking, MINOR for features, PATCH otherwise).

6. Format
   {format_instructions}

7. Output
   {output_instructions}

Write for users: explain what changed and why it matters, not how it was implemented.
"""

FORMAT_INSTRUCTIONS = {
    "keep-a-changelog": (
        "Use the Keep a Changelog layout (https://keepachangelog.com/) with an [Unreleased] "
        "section and Added / Changed / Fixed / Removed / Breaking Changes subsections."
    ),
    "markdown": "Use simple markdown with one section per category.",
    "json": (
        'Emit JSON: {"version", "date", "categories": {"breaking", "features", "fixes", '
        '"docs", "internal"}, "migration_guide", "contributors"}.'
    ),
}


@dataclass
class ChangelogOptions:
    project_path: Path
    from_ref: Optional[str]
    to_ref: str
    format: str
    output: str
    update: bool


class ChangelogAutomator(Agent):
    name = "changelog-automator"
    title = "📋 Changelog Automator"
    description = "Generates a categorized changelog from git history since the last release tag."
    usage = "[options]"
    mode = "headless"
    examples = (
        "",
        "--from v1.2.0 --to HEAD",
        "--format json --output changelog.json",
        "--update",
    )
    flags = (
        FlagSpec("from", metavar="tag", help="Start from a specific tag (default: latest tag)"),
        FlagSpec("to", metavar="ref", default="HEAD", help="End at a specific ref"),
        FlagSpec("format", metavar="fmt", default="keep-a-changelog", choices=FORMATS, help="Output format"),
        FlagSpec("output", metavar="file", default="CHANGELOG-new.md", help="Output file"),
        FlagSpec("update", kind="boolean", help="Prepend to the existing CHANGELOG.md instead"),
    )

    def build_options(self, store: FlagStore) -> ChangelogOptions:
        update = store.read_boolean_flag("update", False)
        output = store.read_string_flag("output")
        if output is None:
            output = "CHANGELOG.md" if update else "CHANGELOG-new.md"
        return ChangelogOptions(
            project_path=Path.cwd(),
            from_ref=store.read_string_flag("from"),
            to_ref=store.read_string_flag("to", "HEAD") or "HEAD",
            format=require_choice(store.read_string_flag("format", "keep-a-changelog") or "", FORMATS, "format"),
            output=output,
            update=update,
        )

    def build_prompt(self, options: ChangelogOptions) -> str:
        if options.from_ref:
            range_instructions = f'- Use "{options.from_ref}" as the starting point.'
        else:
            range_instructions = (
                '- Run "git describe --tags --abbrev=0" to find the latest release tag; '
                "if there are no tags, start from the first commit."
            )
        if options.update:
            output_instructions = (
                f"- Read the existing {options.output}, prepend the new entry under [Unreleased], "
                "keep all history, and use the Edit tool."
            )
        else:
            output_instructions = f"- Write the changelog to {options.output} as a new file."
        return format_template(
            PROMPT_TEMPLATE,
            {
                "range_instructions": range_instructions,
                "to_ref": options.to_ref,
                "format_instructions": FORMAT_INSTRUCTIONS[options.format],
                "output_instructions": output_instructions,
            },
        )

    def runtime_defaults(self, options: ChangelogOptions) -> RuntimeFlags:
        return RuntimeFlags(
            model=DEFAULT_MODEL,
            permission_mode="bypassPermissions",
            allowed_tools=["Bash", "Read", "Write", "Edit", "Grep"],
        )

    def describe(self, options: ChangelogOptions) -> List[Tuple[str, str]]:
        return [
            ("Project", str(options.project_path)),
            ("From", options.from_ref or "latest tag"),
            ("To", options.to_ref),
            ("Format", options.format),
            ("Output", options.output),
            ("Update mode", str(options.update).lower()),
        ]

    def on_success(self, options: ChangelogOptions, result: Optional[AgentResult]) -> None:
        print(f"📄 Changelog written to: {options.output}")


def main() -> int:
    return run_agent(ChangelogAutomator)


if __name__ == "__main__":
    raise SystemExit(main())
