"""Dependency Health Monitor: vulnerabilities, outdated packages, and upgrade planning."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from agentrunner.constants import DEFAULT_MODEL, ENV_PROJECT_ROOT
from agentrunner.core import Agent, require_choice, resolve_project_path, run_agent
from agentrunner.flags import FlagSpec, FlagStore, RuntimeFlags
from agentrunner.process import AgentResult
from agentrunner.settings import settings_json

SEVERITIES = ("low", "moderate", "high", "critical")


@dataclass
class DependencyHealthOptions:
    target_path: Path
    check_vulnerabilities: bool
    check_outdated: bool
    check_licenses: bool
    auto_fix_safe: bool
    create_pr: bool
    severity_threshold: str


class DependencyHealthMonitor(Agent):
    name = "dependency-health-monitor"
    title = "🔍 Dependency Health Monitor"
    description = "Scans dependency manifests for vulnerabilities, outdated packages, and license risks."
    usage = "[path] [options]"
    arguments = (("path", "Path to project directory (default: current directory)"),)
    examples = (
        "",
        "./my-project --licenses",
        "--auto-fix --create-pr",
        "--severity critical",
    )
    flags = (
        FlagSpec("no-vulnerabilities", kind="boolean", help="Skip vulnerability scanning"),
        FlagSpec("no-outdated", kind="boolean", help="Skip outdated package check"),
        FlagSpec("licenses", kind="boolean", help="Include license compliance check"),
        FlagSpec("auto-fix", kind="boolean", help="Automatically apply safe (patch/minor) updates"),
        FlagSpec("create-pr", kind="boolean", help="Create a pull request with updates"),
        FlagSpec("severity", metavar="level", default="moderate", choices=SEVERITIES, help="Minimum severity to report"),
    )

    def build_options(self, store: FlagStore) -> DependencyHealthOptions:
        severity = (store.read_string_flag("severity", "moderate") or "moderate").lower()
        return DependencyHealthOptions(
            target_path=resolve_project_path(store.positional(0)),
            check_vulnerabilities=not store.read_boolean_flag("no-vulnerabilities", False),
            check_outdated=not store.read_boolean_flag("no-outdated", False),
            check_licenses=store.read_boolean_flag("licenses", False),
            auto_fix_safe=store.read_boolean_flag("auto-fix", False),
            create_pr=store.read_boolean_flag(("create-pr", "createPR"), False),
            severity_threshold=require_choice(severity, SEVERITIES, "severity"),
        )

    def build_prompt(self, options: DependencyHealthOptions) -> str:
        steps = [
            "Find every dependency manifest and lockfile (package.json, requirements.txt, "
            "pyproject.toml, go.mod, Cargo.toml, Gemfile, composer.json, and similar)."
        ]
        if options.check_vulnerabilities:
            steps.append(
                "Run the ecosystem's audit tooling (npm audit, pip-audit, cargo audit, govulncheck) "
                f"and report advisories of severity {options.severity_threshold} or higher with CVE ids."
            )
        if options.check_outdated:
            steps.append(
                "List outdated packages with current, wanted, and latest versions, and read changelogs "
                "for major bumps to estimate breaking-change impact."
            )
        if options.check_licenses:
            steps.append("Identify each dependency's license and flag copyleft or unknown licenses.")
        steps.append(
            "Produce a prioritized upgrade plan grouped into critical security fixes, safe updates, "
            "and risky major upgrades, with the exact commands to run."
        )
        if options.auto_fix_safe:
            steps.append("Apply the safe patch/minor updates, then run the test suite to confirm nothing broke.")
        if options.create_pr:
            steps.append("Commit the updates on a new branch and open a pull request with `gh pr create`.")
        steps.append("Write the report to DEPENDENCY-HEALTH.md.")

        body = "\n".join(f"{idx}. {step}" for idx, step in enumerate(steps, start=1))
        return f"Assess the health of this project's dependencies.\n\n{body}\n"

    def runtime_defaults(self, options: DependencyHealthOptions) -> RuntimeFlags:
        return RuntimeFlags(
            model=DEFAULT_MODEL,
            permission_mode="acceptEdits" if options.auto_fix_safe else "default",
            allowed_tools=["Read", "Write", "Bash", "Glob", "Grep", "WebFetch", "Task", "TodoWrite"],
            settings=settings_json(),
        )

    def working_dir(self, options: DependencyHealthOptions) -> Optional[Path]:
        return options.target_path

    def child_env(self, options: DependencyHealthOptions) -> Dict[str, str]:
        return {ENV_PROJECT_ROOT: str(options.target_path)}

    def describe(self, options: DependencyHealthOptions) -> List[Tuple[str, str]]:
        return [
            ("📁 Project", str(options.target_path)),
            ("🛡️  Vulnerabilities", "enabled" if options.check_vulnerabilities else "skipped"),
            ("📦 Outdated", "enabled" if options.check_outdated else "skipped"),
            ("⚖️  Licenses", "enabled" if options.check_licenses else "skipped"),
            ("🔧 Auto-fix", "enabled" if options.auto_fix_safe else "disabled"),
            ("📊 Severity", options.severity_threshold),
        ]

    def on_success(self, options: DependencyHealthOptions, result: Optional[AgentResult]) -> None:
        print("\n🎉 Dependency health check complete!\n")
        print("Next steps:")
        print("1. Review the generated report")
        print("2. Prioritize critical security updates")
        print("3. Run suggested update commands")
        print("4. Test thoroughly after updates")


def main() -> int:
    return run_agent(DependencyHealthMonitor)


if __name__ == "__main__":
    raise SystemExit(main())
