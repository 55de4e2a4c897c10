"""Link Rot Detector: crawls a site through Chrome DevTools MCP looking for broken links."""

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
    "mcp__chrome-devtools__list_pages",
    "mcp__chrome-devtools__take_snapshot",
    "mcp__chrome-devtools__evaluate_script",
    "mcp__chrome-devtools__list_network_requests",
    "mcp__chrome-devtools__get_network_request",
    "mcp__chrome-devtools__list_console_messages",
    "mcp__chrome-devtools__wait_for",
]

PROMPT_TEMPLATE = """You are a link integrity specialist using Chrome DevTools MCP to find broken links and dead resources.

Target URL: {url}
Crawl depth: {depth} level(s)

1. Open the target URL and collect every anchor, stylesheet, script, and media reference.
2. Follow internal links up to the crawl depth, never leaving the target origin.
3. Inspect network requests for 4xx/5xx responses, redirect chains longer than one hop,
   slow responses (over 3s), and mixed content (HTTP resources on HTTPS pages).
4. Verify in-page anchors (#fragment) point at existing element ids.
{image_check}
{external_check}
5. Flag suspicious links: URL shorteners and domains that no longer resolve.

Write {report} with a summary table, one section per issue type, and for each broken link
the source page, the link text, the target URL, and the observed status.
"""


@dataclass
class LinkRotOptions:
    url: str
    depth: int
    report: str
    check_images: bool
    check_external: bool


class LinkRotDetector(Agent):
    name = "link-rot-detector"
    title = "🔗 Link Rot Detector"
    description = "Finds 404s, broken anchors, redirect chains, and mixed content on a website."
    usage = "<url> [options]"
    mode = "headless"
    arguments = (("url", "Website URL to scan"),)
    examples = (
        "https://example.com",
        "https://example.com --depth 2",
        "https://example.com --no-external",
        "https://example.com --report my-links.md",
    )
    flags = (
        FlagSpec("depth", kind="number", metavar="number", default=1, help="Crawl depth for internal links"),
        FlagSpec("report", metavar="file", default="link-rot-report.md", help="Output file"),
        FlagSpec("no-images", kind="boolean", help="Skip image validation"),
        FlagSpec("no-external", kind="boolean", help="Skip external link checking"),
    )

    def build_options(self, store: FlagStore) -> LinkRotOptions:
        url = require_url(store.positional(0))
        depth = store.read_number_flag("depth", 1)
        if depth < 1:
            raise UsageError("--depth must be a positive integer")
        return LinkRotOptions(
            url=url,
            depth=depth,
            report=store.read_string_flag("report", "link-rot-report.md") or "link-rot-report.md",
            check_images=not store.read_boolean_flag("no-images", False),
            check_external=not store.read_boolean_flag("no-external", False),
        )

    def build_prompt(self, options: LinkRotOptions) -> str:
        return format_template(
            PROMPT_TEMPLATE,
            {
                "url": options.url,
                "depth": options.depth,
                "report": options.report,
                "image_check": (
                    "   Also confirm every <img> source loads with a non-zero natural size."
                    if options.check_images
                    else "   Skip image validation."
                ),
                "external_check": (
                    "   Check external links with a single request each; do not crawl them."
                    if options.check_external
                    else "   Ignore links to other origins."
                ),
            },
        )

    def runtime_defaults(self, options: LinkRotOptions) -> RuntimeFlags:
        return RuntimeFlags(
            model=DEFAULT_MODEL,
            permission_mode="bypassPermissions",
            allowed_tools=[*CHROME_TOOLS, "Write", "TodoWrite"],
            mcp_config=compact_json(CHROME_DEVTOOLS_MCP),
        )

    def describe(self, options: LinkRotOptions) -> List[Tuple[str, str]]:
        lines = [("URL", options.url), ("Crawl Depth", str(options.depth)), ("Report", options.report)]
        if options.check_images:
            lines.append(("Image Check", "Enabled"))
        if options.check_external:
            lines.append(("External Links", "Enabled"))
        return lines

    def on_success(self, options: LinkRotOptions, result: Optional[AgentResult]) -> None:
        print(f"📄 Report saved to: {options.report}")


def main() -> int:
    return run_agent(LinkRotDetector)


if __name__ == "__main__":
    raise SystemExit(main())
