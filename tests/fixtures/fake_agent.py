#!/usr/bin/env python3
"""Stand-in for the agent runtime binary used by the offline tests.

Environment:
- FAKE_AGENT_RECORD: JSON file receiving {"argv", "cwd", "env"} of this run.
- FAKE_AGENT_EXIT_CODE: exit code to return (default 0).
- FAKE_AGENT_STREAM: when set, print stream-json messages ending in a result.
- FAKE_AGENT_RESULT_SUBTYPE: subtype of the result message (default "success").
- FAKE_AGENT_READY: file created once the process is running; with
  FAKE_AGENT_SLEEP the process then sleeps until it is terminated.
"""

from __future__ import annotations

import json
import os
import sys
import time
from pathlib import Path


def main() -> int:
    record = os.environ.get("FAKE_AGENT_RECORD")
    if record:
        payload = {
            "argv": sys.argv[1:],
            "cwd": os.getcwd(),
            "env": {k: v for k, v in os.environ.items() if k.startswith(("AGENTRUNNER_", "FAKE_"))},
        }
        Path(record).write_text(json.dumps(payload), encoding="utf-8")

    if os.environ.get("FAKE_AGENT_STREAM"):
        subtype = os.environ.get("FAKE_AGENT_RESULT_SUBTYPE", "success")
        messages = [
            {"type": "system", "subtype": "init", "session_id": "fake-session", "model": "fake-model"},
            {"type": "assistant", "message": {"content": [{"type": "text", "text": "Working on it"}]}},
            {
                "type": "result",
                "subtype": subtype,
                "is_error": subtype != "success",
                "result": "All done",
                "num_turns": 3,
                "duration_ms": 1500,
                "total_cost_usd": 0.0123,
            },
        ]
        print(json.dumps(messages[0]), flush=True)
        print("plain text line", flush=True)
        for message in messages[1:]:
            print(json.dumps(message), flush=True)

    ready = os.environ.get("FAKE_AGENT_READY")
    if ready:
        Path(ready).write_text(str(os.getpid()), encoding="utf-8")
    if os.environ.get("FAKE_AGENT_SLEEP"):
        deadline = time.time() + 30
        while time.time() < deadline:
            time.sleep(0.05)
        return 99

    return int(os.environ.get("FAKE_AGENT_EXIT_CODE", "0"))


if __name__ == "__main__":
    raise SystemExit(main())
