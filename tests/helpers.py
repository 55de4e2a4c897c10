from __future__ import annotations

import copy
import json
import os
import sys
import tempfile
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple
from unittest.mock import patch

from agentrunner.constants import DEFAULT_CONFIG, ENV_BINARY, ENV_CONFIG

FAKE_AGENT = Path(__file__).resolve().parent / "fixtures" / "fake_agent.py"
FAKE_COMMAND = [sys.executable, str(FAKE_AGENT)]


def make_runtime_cfg(**overrides: Any) -> Dict[str, Any]:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["command"] = list(FAKE_COMMAND)
    cfg.update(overrides)
    cfg["_meta"] = {"config_path": None, "command_source": "test"}
    return cfg


@contextmanager
def fake_agent_env(**env: str) -> Iterator[Path]:
    """Point the fake runtime at a temp record file; yields the record path."""
    with tempfile.TemporaryDirectory() as tmp:
        record = Path(tmp) / "record.json"
        values = {"FAKE_AGENT_RECORD": str(record)}
        values.update({k: str(v) for k, v in env.items()})
        with patch.dict(os.environ, values):
            for key in ("FAKE_AGENT_EXIT_CODE", "FAKE_AGENT_STREAM", "FAKE_AGENT_RESULT_SUBTYPE",
                        "FAKE_AGENT_READY", "FAKE_AGENT_SLEEP", ENV_BINARY, ENV_CONFIG):
                if key not in values:
                    os.environ.pop(key, None)
            yield record


def read_record(record: Path) -> Optional[Dict[str, Any]]:
    if not record.exists():
        return None
    return json.loads(record.read_text(encoding="utf-8"))


def send_signal_when_ready(ready: Path, signum: int) -> Tuple[threading.Thread, List[float]]:
    """Signal this process once the fake runtime has written its ready file.

    Returns the sender thread and a list that receives the send time.
    """
    sent_at: List[float] = []

    def send() -> None:
        deadline = time.time() + 10
        while not ready.exists() and time.time() < deadline:
            time.sleep(0.02)
        time.sleep(0.1)
        sent_at.append(time.time())
        os.kill(os.getpid(), signum)

    sender = threading.Thread(target=send)
    sender.start()
    return sender, sent_at
