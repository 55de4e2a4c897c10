"""Accessibility Audit Helper: WCAG audit of a front-end codebase, optionally applying fixes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from agentrunner.constants import DEFAULT_MODEL
from agentrunner.core import Agent, require_choice, resolve_project_path, run_agent
from agentrunner.flags import FlagSpec, FlagStore, RuntimeFlags
from agentrunner.process import AgentResult
from agentrunner.settings import settings_json
from agentrunner.utils import format_template

WCAG_LEVELS = ("AA", "AAA")
FRAMEWORKS = ("auto", "react", "vue", "html")

SYSTEM_PROMPT_TEMPLATE = """You are an accessibility audit expert specializing in WCAG 2.1 {level} compliance.
Your goal is to help developers ship inclusive, accessible web applications.

Audit for: semantic structure and landmarks, alt text and non-text content, keyboard
operability and focus order, color contrast ({contrast}), form labels and error
messaging, ARIA usage, and motion/timing concerns.

Framework focus: {framework}.
{fix_policy}
"""

PROMPT_TEMPLATE = """Audit the project in the current directory for WCAG {level} accessibility issues.

1. Use Glob to find component, template, and stylesheet files.
2. Use Grep and Read to inspect markup for each checklist area.
3. Record every issue with file:line, the WCAG success criterion, severity
   (critical / serious / moderate / minor), and a concrete fix.
4. Write the report to {output} with an executive summary, issues grouped by severity,
   and a prioritized remediation plan.
"""


@dataclass
class AccessibilityOptions:
    project_path: Path
    wcag_level: str
    auto_fix: bool
    output: str
    framework: str


class AccessibilityAuditHelper(Agent):
    name = "accessibility-audit-helper"
    title = "🌐 Accessibility Audit Helper"
    description = "Audits a codebase for WCAG AA/AAA issues and writes a remediation report."
    usage = "[path] [options]"
    arguments = (("path", "Project directory to audit (default: current directory)"),)
    examples = (
        "",
        "./src --standard AAA",
        "--fix",
        "--framework react --output report.md",
    )
    flags = (
        FlagSpec("standard", metavar="level", default="AA", choices=WCAG_LEVELS, help="WCAG conformance level"),
        FlagSpec("fix", kind="boolean", help="Apply fixes automatically where possible"),
        FlagSpec("output", metavar="file", default="accessibility-report.md", help="Report file"),
        FlagSpec("framework", metavar="name", default="auto", choices=FRAMEWORKS, help="Framework hint"),
    )

    def build_options(self, store: FlagStore) -> AccessibilityOptions:
        level = (store.read_string_flag("standard", "AA") or "AA").upper()
        framework = (store.read_string_flag("framework", "auto") or "auto").lower()
        return AccessibilityOptions(
            project_path=resolve_project_path(store.positional(0)),
            wcag_level=require_choice(level, WCAG_LEVELS, "standard"),
            auto_fix=store.read_boolean_flag("fix", False),
            output=store.read_string_flag("output", "accessibility-report.md") or "accessibility-report.md",
            framework=require_choice(framework, FRAMEWORKS, "framework"),
        )

    def system_prompt(self, options: AccessibilityOptions) -> Optional[str]:
        if options.auto_fix:
            fix_policy = "Apply safe fixes directly with the Edit tool and list every change in the report."
        else:
            fix_policy = "Do not modify source files; report issues and proposed fixes only."
        return format_template(
            SYSTEM_PROMPT_TEMPLATE,
            {
                "level": options.wcag_level,
                "contrast": "7:1 for normal text" if options.wcag_level == "AAA" else "4.5:1 for normal text",
                "framework": "auto-detect" if options.framework == "auto" else options.framework,
                "fix_policy": fix_policy,
            },
        )

    def build_prompt(self, options: AccessibilityOptions) -> str:
        return format_template(PROMPT_TEMPLATE, {"level": options.wcag_level, "output": options.output})

    def runtime_defaults(self, options: AccessibilityOptions) -> RuntimeFlags:
        tools = ["Glob", "Grep", "Read", "Write"]
        if options.auto_fix:
            tools.append("Edit")
        tools.append("TodoWrite")
        return RuntimeFlags(
            model=DEFAULT_MODEL,
            permission_mode="acceptEdits" if options.auto_fix else "bypassPermissions",
            allowed_tools=tools,
            settings=settings_json(),
        )

    def working_dir(self, options: AccessibilityOptions) -> Optional[Path]:
        return options.project_path

    def describe(self, options: AccessibilityOptions) -> List[Tuple[str, str]]:
        return [
            ("📁 Auditing", str(options.project_path)),
            ("📊 WCAG Level", options.wcag_level),
            ("🔧 Auto-fix", "enabled" if options.auto_fix else "disabled"),
            ("📄 Output", options.output),
            ("🎨 Framework", "auto-detect" if options.framework == "auto" else options.framework),
        ]

    def on_success(self, options: AccessibilityOptions, result: Optional[AgentResult]) -> None:
        print("\n✅ Accessibility audit complete!")
        print(f"📄 Detailed report saved to: {options.output}")
        if options.auto_fix:
            print("✅ Automatic fixes have been applied")
        else:
            print("💡 Run with --fix to automatically apply fixes where possible")


def main() -> int:
    return run_agent(AccessibilityAuditHelper)


if __name__ == "__main__":
    raise SystemExit(main())
