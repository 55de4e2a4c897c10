from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from agentrunner import config as cfgmod
from agentrunner.constants import DEFAULT_CONFIG, ENV_BINARY, ENV_CONFIG
from agentrunner.process import working_directory
from agentrunner.utils import (
    camel_case,
    clamp,
    colorize,
    deep_merge_dict,
    format_template,
    kebab_case,
    name_variants,
)


def clean_env():
    env = dict(os.environ)
    env.pop(ENV_BINARY, None)
    env.pop(ENV_CONFIG, None)
    return patch.dict(os.environ, env, clear=True)


class TestConfig(unittest.TestCase):
    def test_load_json_object_requires_object(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            p = Path(tmp) / "x.json"
            p.write_text("[]", encoding="utf-8")
            with self.assertRaises(ValueError):
                cfgmod.load_json_object(p)

    def test_defaults_without_config_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, clean_env(), working_directory(tmp):
            cfg = cfgmod.load_runtime_config()
        self.assertEqual(cfg["command"], ["claude"])
        self.assertIsNone(cfg["_meta"]["config_path"])
        self.assertEqual(cfg["_meta"]["command_source"], "default")

    def test_local_config_file_is_merged(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, clean_env(), working_directory(tmp):
            Path("agentrunner.json").write_text(
                json.dumps({"command": "my-claude --debug", "agents": {"todo-collector": {"model": "opus"}}}),
                encoding="utf-8",
            )
            cfg = cfgmod.load_runtime_config()
        self.assertEqual(cfg["command"], ["my-claude", "--debug"])
        self.assertTrue(cfg["hooks"]["enabled"])
        self.assertEqual(cfgmod.agent_flag_overrides(cfg, "todo-collector"), {"model": "opus"})

    def test_env_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, clean_env():
            path = Path(tmp) / "custom.json"
            path.write_text(json.dumps({"defaults": {"model": "haiku"}}), encoding="utf-8")
            os.environ[ENV_CONFIG] = str(path)
            os.environ[ENV_BINARY] = "/opt/bin/claude --flag"
            cfg = cfgmod.load_runtime_config()
        self.assertEqual(cfg["command"], ["/opt/bin/claude", "--flag"])
        self.assertEqual(cfg["_meta"]["command_source"], "env")
        self.assertEqual(cfgmod.agent_flag_overrides(cfg, "any"), {"model": "haiku"})

    def test_missing_explicit_path_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, clean_env():
            with self.assertRaises(FileNotFoundError):
                cfgmod.load_runtime_config(Path(tmp) / "missing.json")

    def test_agents_must_be_object(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, clean_env():
            path = Path(tmp) / "bad.json"
            path.write_text(json.dumps({"agents": []}), encoding="utf-8")
            with self.assertRaises(ValueError):
                cfgmod.load_runtime_config(path)

    def test_ensure_config_file_writes_defaults_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = cfgmod.ensure_config_file(Path(tmp) / "nested" / "agentrunner.json")
            self.assertEqual(json.loads(path.read_text(encoding="utf-8")), DEFAULT_CONFIG)
            path.write_text("{}", encoding="utf-8")
            cfgmod.ensure_config_file(path)
            self.assertEqual(path.read_text(encoding="utf-8"), "{}")

    def test_hooks_enabled(self) -> None:
        self.assertTrue(cfgmod.hooks_enabled({}))
        self.assertFalse(cfgmod.hooks_enabled({"hooks": {"enabled": False}}))

    def test_normalize_command(self) -> None:
        self.assertEqual(cfgmod.normalize_command(None), ["claude"])
        self.assertEqual(cfgmod.normalize_command(["a", " ", "b"]), ["a", "b"])


class TestUtils(unittest.TestCase):
    def test_deep_merge_dict_does_not_mutate_inputs(self) -> None:
        a = {"x": {"y": 1}, "k": 1}
        b = {"x": {"z": 2}}
        merged = deep_merge_dict(a, b)
        self.assertEqual(merged, {"x": {"y": 1, "z": 2}, "k": 1})
        self.assertEqual(a, {"x": {"y": 1}, "k": 1})
        self.assertEqual(b, {"x": {"z": 2}})

    def test_name_conversions(self) -> None:
        self.assertEqual(kebab_case("allowedTools"), "allowed-tools")
        self.assertEqual(kebab_case("permission_mode"), "permission-mode")
        self.assertEqual(kebab_case("mcp-config"), "mcp-config")
        self.assertEqual(camel_case("create-issues"), "createIssues")
        self.assertEqual(name_variants("create-issues"), ["create-issues", "createIssues"])
        self.assertEqual(name_variants("h"), ["h"])

    def test_format_template_keeps_unknown_placeholders(self) -> None:
        self.assertEqual(format_template("{a} and {b}", {"a": 1}), "1 and {b}")

    def test_clamp(self) -> None:
        self.assertEqual(clamp("abc", 10), "abc")
        self.assertTrue(clamp("x" * 50, 10).endswith("...<truncated>..."))

    def test_colorize_respects_no_color(self) -> None:
        class Tty:
            def isatty(self) -> bool:
                return True

        with patch.dict(os.environ, {"NO_COLOR": "1"}):
            self.assertEqual(colorize("hi", "\033[32m", Tty()), "hi")
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("NO_COLOR", None)
            self.assertIn("\033[32m", colorize("hi", "\033[32m", Tty()))


if __name__ == "__main__":
    unittest.main()
