"""Spawning and supervising the external agent runtime.

Inputs:
- A prompt string, a flat list of runtime flags, and the runtime command.
Output:
- The child's exit code (interactive runs) or decoded stream-json messages plus the
  exit code (headless runs).
Example:
```python
from agentrunner.process import invoke
code = invoke("Summarize this repo", ["--model", "sonnet"])
```
"""

from __future__ import annotations

import json
import os
import signal
import subprocess
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, TextIO, Union

import psutil

from .constants import DEFAULT_AGENT_BINARY, HEADLESS_FLAGS
from .errors import AgentSpawnError

FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def normalize_exit_code(code: Optional[int]) -> int:
    # Negative codes mean the child died from a signal; that is not reported as failure.
    if code is None or code < 0:
        return 0
    return int(code)


def build_command(prompt: str, flags: Sequence[str], command: Optional[Sequence[str]] = None) -> List[str]:
    argv = list(command) if command else [DEFAULT_AGENT_BINARY]
    argv.extend(str(f) for f in flags)
    if prompt:
        argv.append(prompt)
    return argv


def child_environment(env: Optional[Mapping[str, str]] = None) -> Optional[Dict[str, str]]:
    if not env:
        return None
    merged = dict(os.environ)
    merged.update({str(k): str(v) for k, v in env.items()})
    return merged


@dataclass
class AgentResult:
    """Terminal `result` message emitted by a headless run."""

    subtype: str
    is_error: bool
    result: str = ""
    num_turns: Optional[int] = None
    duration_ms: Optional[int] = None
    total_cost_usd: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.subtype == "success" and not self.is_error

    @classmethod
    def from_message(cls, payload: Mapping[str, Any]) -> "AgentResult":
        subtype = str(payload.get("subtype") or "unknown")
        result = payload.get("result")
        return cls(
            subtype=subtype,
            is_error=bool(payload.get("is_error", subtype != "success")),
            result=result if isinstance(result, str) else "",
            num_turns=payload.get("num_turns"),
            duration_ms=payload.get("duration_ms"),
            total_cost_usd=payload.get("total_cost_usd"),
            raw=dict(payload),
        )


@dataclass
class HeadlessOutcome:
    exit_code: int
    result: Optional[AgentResult] = None
    messages: int = 0
    interrupted: bool = False


class AgentProcess:
    """Handle around one spawned runtime process."""

    def __init__(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
        capture_stdout: bool = False,
    ):
        self.command = [str(c) for c in command]
        self._terminations = 0
        self.interrupted = False
        try:
            self._popen = subprocess.Popen(
                self.command,
                cwd=str(cwd) if cwd is not None else None,
                env=child_environment(env),
                stdout=subprocess.PIPE if capture_stdout else None,
                text=capture_stdout or None,
                encoding="utf-8" if capture_stdout else None,
                errors="replace" if capture_stdout else None,
            )
        except OSError as e:
            raise AgentSpawnError(self.command, e) from e

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._popen.returncode

    def terminate(self) -> bool:
        """Send SIGTERM (SIGKILL on repeat requests); False when the child is already gone."""
        self._terminations += 1
        self.interrupted = True
        try:
            proc = psutil.Process(self.pid)
            if self._terminations > 1:
                proc.kill()
            else:
                proc.terminate()
        except psutil.NoSuchProcess:
            return False
        return True

    def wait(self, timeout: Optional[float] = None) -> int:
        return normalize_exit_code(self._popen.wait(timeout=timeout))

    def iter_messages(self, echo: Optional[TextIO] = None) -> Iterator[Dict[str, Any]]:
        """Yield JSON objects from captured stdout; other lines are echoed as-is."""
        stream = self._popen.stdout
        if stream is None:
            return
        out = echo or sys.stdout
        for line in stream:
            text = line.strip()
            if not text:
                continue
            try:
                payload = json.loads(text)
            except ValueError:
                print(line.rstrip("\n"), file=out)
                continue
            if isinstance(payload, dict):
                yield payload
            else:
                print(text, file=out)


@contextmanager
def forward_signals(proc: AgentProcess, signals: Sequence[signal.Signals] = FORWARDED_SIGNALS) -> Iterator[None]:
    """Forward SIGINT/SIGTERM received by this process to the child while the block runs."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handle_signal(_signum: int, _frame: Any) -> None:
        proc.terminate()

    previous = {}
    for sig in signals:
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, handle_signal)
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)


@contextmanager
def working_directory(path: Optional[Union[str, Path]]) -> Iterator[Path]:
    """Temporarily change the current working directory, always restoring it."""
    original = Path.cwd()
    target = Path(path).resolve() if path is not None else original
    if target != original:
        os.chdir(target)
    try:
        yield target
    finally:
        if Path.cwd() != original:
            os.chdir(original)


def invoke(
    prompt: str,
    flags: Sequence[str],
    *,
    command: Optional[Sequence[str]] = None,
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """Run the agent runtime with inherited stdio and return its exit code.

    Raises `AgentSpawnError` when the runtime cannot be started.
    """
    proc = AgentProcess(build_command(prompt, flags, command), cwd=cwd, env=env)
    with forward_signals(proc):
        return proc.wait()


def run_headless(
    prompt: str,
    flags: Sequence[str],
    *,
    command: Optional[Sequence[str]] = None,
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
    on_message: Optional[Callable[[Dict[str, Any]], None]] = None,
    echo: Optional[TextIO] = None,
) -> HeadlessOutcome:
    """Run the runtime in stream-json print mode, relaying each message to `on_message`."""
    argv = build_command(prompt, [*HEADLESS_FLAGS, *flags], command)
    proc = AgentProcess(argv, cwd=cwd, env=env, capture_stdout=True)
    outcome = HeadlessOutcome(exit_code=0)
    with forward_signals(proc):
        for message in proc.iter_messages(echo=echo):
            outcome.messages += 1
            if message.get("type") == "result":
                outcome.result = AgentResult.from_message(message)
            if on_message is not None:
                on_message(message)
        outcome.exit_code = proc.wait()
    outcome.interrupted = proc.interrupted
    return outcome
