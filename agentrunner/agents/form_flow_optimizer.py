"""Form Flow Optimizer: walks a web form through Chrome DevTools MCP and reports UX friction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from agentrunner.constants import CHROME_DEVTOOLS_MCP, DEFAULT_MODEL
from agentrunner.core import Agent, require_url, run_agent
from agentrunner.errors import UsageError
from agentrunner.flags import FlagSpec, FlagStore, RuntimeFlags
from agentrunner.process import AgentResult
from agentrunner.utils import compact_json, format_template

CHROME_TOOLS = [
    "mcp__chrome-devtools__navigate_page",
    "mcp__chrome-devtools__new_page",
    "mcp__chrome-devtools__take_snapshot",
    "mcp__chrome-devtools__take_screenshot",
    "mcp__chrome-devtools__evaluate_script",
    "mcp__chrome-devtools__fill",
    "mcp__chrome-devtools__fill_form",
    "mcp__chrome-devtools__click",
    "mcp__chrome-devtools__resize_page",
    "mcp__chrome-devtools__list_network_requests",
    "mcp__chrome-devtools__wait_for",
]

MOBILE_VIEWPORT = "375x667"

PROMPT_TEMPLATE = """You are a conversion rate optimization expert using Chrome DevTools MCP to analyze form flows.

Target URL: {url}
Expected form steps: {steps}
Device: {device}

1. Open the URL in Chrome.{resize}
2. Take a snapshot and enumerate every input, textarea, and select with its label,
   type, and required state.
3. Fill the form with realistic test data (test@example.com, (555) 123-4567,
   TestPass123!, card 4242 4242 4242 4242) and time each field.
4. Try submitting with empty required fields and invalid values; judge whether the
   error messages are clear and whether validation is inline or on submit.
5. Note friction: missing labels, poor tab order, unmarked required fields,
   wrong input types, missing autocomplete attributes.
6. Take screenshots of the initial state, the validation errors, and the success state.
7. Review network requests for slow or failing calls.

Save the analysis to "{report}" with a summary (fields, required fields, completion
time, drop-off risk score 0-100), friction points by priority with estimated
conversion impact, a field-by-field review, and an A/B test proposal.
"""


@dataclass
class FormFlowOptions:
    url: str
    steps: int
    report: str
    mobile: bool


class FormFlowOptimizer(Agent):
    name = "form-flow-optimizer"
    title = "📝 Form Flow Optimizer"
    description = "Fills a form with test data and reports friction, validation, and drop-off risks."
    usage = "<url> [options]"
    mode = "headless"
    arguments = (("url", "URL of the page containing the form"),)
    examples = (
        "https://example.com/signup",
        "https://example.com/checkout --steps 3",
        "https://example.com/form --mobile",
        "https://example.com/form --report my-analysis.md",
    )
    flags = (
        FlagSpec("steps", kind="number", metavar="number", default=1, help="Expected number of form steps"),
        FlagSpec("report", metavar="file", default="form-flow-optimization.md", help="Output file"),
        FlagSpec("mobile", kind="boolean", help="Simulate a mobile device"),
    )

    def build_options(self, store: FlagStore) -> FormFlowOptions:
        url = require_url(store.positional(0))
        steps = store.read_number_flag("steps", 1)
        if steps < 1:
            raise UsageError("--steps must be a positive integer")
        return FormFlowOptions(
            url=url,
            steps=steps,
            report=store.read_string_flag("report", "form-flow-optimization.md") or "form-flow-optimization.md",
            mobile=store.read_boolean_flag("mobile", False),
        )

    def build_prompt(self, options: FormFlowOptions) -> str:
        return format_template(
            PROMPT_TEMPLATE,
            {
                "url": options.url,
                "steps": options.steps,
                "report": options.report,
                "device": f"Mobile ({MOBILE_VIEWPORT})" if options.mobile else "Desktop",
                "resize": f" Resize the page to {MOBILE_VIEWPORT}." if options.mobile else "",
            },
        )

    def runtime_defaults(self, options: FormFlowOptions) -> RuntimeFlags:
        return RuntimeFlags(
            model=DEFAULT_MODEL,
            permission_mode="default",
            allowed_tools=[*CHROME_TOOLS, "Write"],
            mcp_config=compact_json(CHROME_DEVTOOLS_MCP),
        )

    def describe(self, options: FormFlowOptions) -> List[Tuple[str, str]]:
        lines = [("URL", options.url), ("Expected Steps", str(options.steps))]
        if options.mobile:
            lines.append(("Device", "Mobile simulation"))
        return lines

    def on_success(self, options: FormFlowOptions, result: Optional[AgentResult]) -> None:
        print(f"📄 Report saved to: {options.report}")


def main() -> int:
    return run_agent(FormFlowOptimizer)


if __name__ == "__main__":
    raise SystemExit(main())
