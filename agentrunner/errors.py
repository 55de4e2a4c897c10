"""Exception types raised by agentrunner."""

from __future__ import annotations

from typing import Optional, Sequence


class AgentRunnerError(Exception):
    """Base class for agentrunner errors."""


class UsageError(AgentRunnerError):
    """Invalid or missing command-line input; reported with usage text and exit code 1."""


class AgentSpawnError(AgentRunnerError):
    """The external agent runtime could not be started."""

    def __init__(self, command: Sequence[str], cause: Optional[BaseException] = None):
        self.command = list(command)
        self.cause = cause
        binary = self.command[0] if self.command else "<empty command>"
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to start agent runtime '{binary}'{detail}")
