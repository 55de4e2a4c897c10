from __future__ import annotations

import io
import signal
import sys
import tempfile
import time
import unittest
from pathlib import Path

from agentrunner.constants import HEADLESS_FLAGS
from agentrunner.errors import AgentSpawnError
from agentrunner.process import (
    AgentProcess,
    AgentResult,
    build_command,
    invoke,
    normalize_exit_code,
    run_headless,
    working_directory,
)

from tests.helpers import FAKE_AGENT, FAKE_COMMAND, fake_agent_env, read_record, send_signal_when_ready


class TestCommandHelpers(unittest.TestCase):
    def test_build_command(self) -> None:
        self.assertEqual(build_command("hi", ["--model", "m"]), ["claude", "--model", "m", "hi"])
        self.assertEqual(build_command("", ["--x"], ["bin", "-a"]), ["bin", "-a", "--x"])

    def test_normalize_exit_code(self) -> None:
        self.assertEqual(normalize_exit_code(2), 2)
        self.assertEqual(normalize_exit_code(0), 0)
        self.assertEqual(normalize_exit_code(-15), 0)
        self.assertEqual(normalize_exit_code(None), 0)

    def test_agent_result_from_message(self) -> None:
        result = AgentResult.from_message({"type": "result", "subtype": "success", "result": "ok", "num_turns": 2})
        self.assertTrue(result.ok)
        self.assertEqual(result.num_turns, 2)
        failed = AgentResult.from_message({"type": "result", "subtype": "error_max_turns"})
        self.assertFalse(failed.ok)
        self.assertTrue(failed.is_error)


class TestInvoke(unittest.TestCase):
    def test_propagates_exit_code_and_passes_argv(self) -> None:
        with fake_agent_env(FAKE_AGENT_EXIT_CODE="2") as record:
            code = invoke("do the thing", ["--model", "m", "--verbose"], command=FAKE_COMMAND)
            payload = read_record(record)
        self.assertEqual(code, 2)
        self.assertEqual(payload["argv"], ["--model", "m", "--verbose", "do the thing"])

    def test_empty_prompt_is_not_passed(self) -> None:
        with fake_agent_env() as record:
            code = invoke("", ["--model", "m"], command=FAKE_COMMAND)
            payload = read_record(record)
        self.assertEqual(code, 0)
        self.assertEqual(payload["argv"], ["--model", "m"])

    def test_cwd_and_env_reach_child(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, fake_agent_env() as record:
            invoke("p", [], command=FAKE_COMMAND, cwd=tmp, env={"AGENTRUNNER_PROJECT_ROOT": tmp})
            payload = read_record(record)
        self.assertEqual(Path(payload["cwd"]).resolve(), Path(tmp).resolve())
        self.assertEqual(payload["env"]["AGENTRUNNER_PROJECT_ROOT"], tmp)

    def test_spawn_failure_raises(self) -> None:
        with self.assertRaises(AgentSpawnError) as ctx:
            invoke("p", [], command=["/nonexistent/agent-runtime-binary"])
        self.assertIn("/nonexistent/agent-runtime-binary", str(ctx.exception))
        self.assertEqual(ctx.exception.command, ["/nonexistent/agent-runtime-binary", "p"])

    def test_sigint_terminates_child(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            ready = Path(tmp) / "ready"
            with fake_agent_env(FAKE_AGENT_READY=str(ready), FAKE_AGENT_SLEEP="1"):
                previous = signal.getsignal(signal.SIGINT)
                sender, sent_at = send_signal_when_ready(ready, signal.SIGINT)
                code = invoke("p", [], command=FAKE_COMMAND)
                finished_at = time.time()
                sender.join()

        self.assertEqual(code, 0)
        self.assertEqual(len(sent_at), 1)
        self.assertLess(finished_at - sent_at[0], 2.0)
        self.assertIs(signal.getsignal(signal.SIGINT), previous)

    def test_sigterm_terminates_child(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            ready = Path(tmp) / "ready"
            with fake_agent_env(FAKE_AGENT_READY=str(ready), FAKE_AGENT_SLEEP="1"):
                previous = signal.getsignal(signal.SIGTERM)
                sender, sent_at = send_signal_when_ready(ready, signal.SIGTERM)
                code = invoke("p", [], command=FAKE_COMMAND)
                finished_at = time.time()
                sender.join()

        self.assertEqual(code, 0)
        self.assertLess(finished_at - sent_at[0], 2.0)
        self.assertIs(signal.getsignal(signal.SIGTERM), previous)

    def test_terminate_after_exit_returns_false(self) -> None:
        proc = AgentProcess([sys.executable, "-c", "pass"])
        self.assertEqual(proc.wait(timeout=10), 0)
        self.assertFalse(proc.terminate())


class TestHeadless(unittest.TestCase):
    def test_stream_messages_and_result(self) -> None:
        seen = []
        echo = io.StringIO()
        with fake_agent_env(FAKE_AGENT_STREAM="1") as record:
            outcome = run_headless("p", ["--model", "m"], command=FAKE_COMMAND, on_message=seen.append, echo=echo)
            payload = read_record(record)

        self.assertEqual(outcome.exit_code, 0)
        self.assertEqual(outcome.messages, 3)
        self.assertEqual([m["type"] for m in seen], ["system", "assistant", "result"])
        self.assertIsNotNone(outcome.result)
        self.assertTrue(outcome.result.ok)
        self.assertEqual(outcome.result.result, "All done")
        self.assertIn("plain text line", echo.getvalue())
        self.assertEqual(payload["argv"], [*HEADLESS_FLAGS, "--model", "m", "p"])

    def test_failed_result_is_reported(self) -> None:
        with fake_agent_env(FAKE_AGENT_STREAM="1", FAKE_AGENT_RESULT_SUBTYPE="error_max_turns"):
            outcome = run_headless("p", [], command=FAKE_COMMAND, echo=io.StringIO())
        self.assertFalse(outcome.result.ok)
        self.assertEqual(outcome.result.subtype, "error_max_turns")

    def test_sigint_during_stream_returns_child_code(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            ready = Path(tmp) / "ready"
            with fake_agent_env(FAKE_AGENT_READY=str(ready), FAKE_AGENT_SLEEP="1"):
                previous = signal.getsignal(signal.SIGINT)
                sender, sent_at = send_signal_when_ready(ready, signal.SIGINT)
                outcome = run_headless("p", [], command=FAKE_COMMAND, echo=io.StringIO())
                finished_at = time.time()
                sender.join()

        self.assertEqual(outcome.exit_code, 0)
        self.assertTrue(outcome.interrupted)
        self.assertIsNone(outcome.result)
        self.assertLess(finished_at - sent_at[0], 2.0)
        self.assertIs(signal.getsignal(signal.SIGINT), previous)


class TestWorkingDirectory(unittest.TestCase):
    def test_restores_cwd_on_error(self) -> None:
        original = Path.cwd()
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(RuntimeError):
                with working_directory(tmp) as target:
                    self.assertEqual(Path.cwd(), Path(tmp).resolve())
                    self.assertEqual(target, Path(tmp).resolve())
                    raise RuntimeError("boom")
        self.assertEqual(Path.cwd(), original)

    def test_none_keeps_cwd(self) -> None:
        original = Path.cwd()
        with working_directory(None) as target:
            self.assertEqual(target, original)
        self.assertTrue(FAKE_AGENT.exists())


if __name__ == "__main__":
    unittest.main()
