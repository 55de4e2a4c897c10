"""License Compliance Scanner: summarizes dependency licenses and compatibility risks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from agentrunner.constants import DEFAULT_MODEL
from agentrunner.core import Agent, resolve_project_path, run_agent
from agentrunner.flags import FlagSpec, FlagStore, RuntimeFlags
from agentrunner.process import AgentResult
from agentrunner.settings import settings_json
from agentrunner.utils import format_template

SYSTEM_PROMPT_TEMPLATE = """You are a License Compliance Scanner helping developers understand open source license obligations.
The project is {project_type}. {policy}
Classify licenses as permissive, weak copyleft, strong copyleft, proprietary, or unknown,
and never guess: mark a license unknown when no evidence is found."""

PROMPT_TEMPLATE = """Scan the dependencies of the project in the current directory.

1. Find dependency manifests and lockfiles with Glob.
2. Determine each direct dependency's license from package metadata, LICENSE files in
   installed packages, or registry data available through the ecosystem CLI.
3. Flag missing or ambiguous licenses and incompatible combinations.
4. Suggest permissively licensed alternatives for problematic packages.
5. Write {output} with a summary table by license type, critical issues first, and
   the full dependency list.
"""


@dataclass
class LicenseScanOptions:
    project_path: Path
    project_type: str
    output: str


class LicenseComplianceScanner(Agent):
    name = "license-compliance-scanner"
    title = "⚖️  License Compliance Scanner"
    description = "Identifies dependency licenses and flags compliance conflicts."
    usage = "[path] [options]"
    arguments = (("path", "Project directory to scan (default: current directory)"),)
    examples = ("", "/path/to/project", "--proprietary --output report.md")
    flags = (
        FlagSpec("proprietary", kind="boolean", help="Mark project as proprietary (GPL/AGPL become critical)"),
        FlagSpec("output", metavar="file", default="LICENSE-REPORT.md", help="Output file"),
    )

    def build_options(self, store: FlagStore) -> LicenseScanOptions:
        return LicenseScanOptions(
            project_path=resolve_project_path(store.positional(0)),
            project_type="proprietary" if store.read_boolean_flag("proprietary", False) else "open-source",
            output=store.read_string_flag("output", "LICENSE-REPORT.md") or "LICENSE-REPORT.md",
        )

    def system_prompt(self, options: LicenseScanOptions) -> Optional[str]:
        if options.project_type == "proprietary":
            policy = "Treat GPL, AGPL, and SSPL dependencies as critical issues."
        else:
            policy = "Check that dependency licenses are compatible with the project's own license."
        return format_template(SYSTEM_PROMPT_TEMPLATE, {"project_type": options.project_type, "policy": policy})

    def build_prompt(self, options: LicenseScanOptions) -> str:
        return format_template(PROMPT_TEMPLATE, {"output": options.output})

    def runtime_defaults(self, options: LicenseScanOptions) -> RuntimeFlags:
        return RuntimeFlags(
            model=DEFAULT_MODEL,
            permission_mode="bypassPermissions",
            allowed_tools=["Glob", "Read", "Bash", "Write", "TodoWrite"],
            settings=settings_json(),
        )

    def working_dir(self, options: LicenseScanOptions) -> Optional[Path]:
        return options.project_path

    def describe(self, options: LicenseScanOptions) -> List[Tuple[str, str]]:
        return [
            ("📁 Scanning project", str(options.project_path)),
            ("📋 Project type", options.project_type),
            ("📄 Output report", options.output),
        ]

    def on_success(self, options: LicenseScanOptions, result: Optional[AgentResult]) -> None:
        print("\n✅ License compliance scan complete!\n")
        print(f"📄 Report saved to: {options.output}")
        if options.project_type != "proprietary":
            print("💡 Run with --proprietary if your project is closed-source")


def main() -> int:
    return run_agent(LicenseComplianceScanner)


if __name__ == "__main__":
    raise SystemExit(main())
