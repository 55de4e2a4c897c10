from __future__ import annotations

import os
import tempfile
import unittest
from contextlib import redirect_stderr
from io import StringIO
from pathlib import Path

from agentrunner.output_style import OutputStyleManager


class TestOutputStyleManager(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        base = Path(self._tmp.name)
        self.source = base / "style.md"
        self.source.write_text("# Terse\nAnswer briefly.\n", encoding="utf-8")
        self.styles_dir = base / "styles"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_setup_and_cleanup(self) -> None:
        manager = OutputStyleManager(self.source, styles_dir=self.styles_dir)
        with redirect_stderr(StringIO()):
            name = manager.setup()
        self.assertTrue(name.startswith(f"temp-{os.getpid()}-"))
        self.assertEqual(manager.style_path.read_text(encoding="utf-8"), self.source.read_text(encoding="utf-8"))
        self.assertEqual(manager.lock_path.read_text(encoding="utf-8"), str(os.getpid()))
        with self.assertRaises(RuntimeError):
            manager.setup()
        manager.cleanup()
        self.assertFalse(manager.style_path.exists())
        self.assertFalse(manager.lock_path.exists())
        manager.cleanup()

    def test_context_manager(self) -> None:
        with redirect_stderr(StringIO()):
            with OutputStyleManager(self.source, styles_dir=self.styles_dir) as name:
                self.assertTrue((self.styles_dir / f"{name}.md").exists())
        self.assertEqual(list(self.styles_dir.iterdir()), [])

    def test_names_are_unique(self) -> None:
        a = OutputStyleManager(self.source, styles_dir=self.styles_dir)
        b = OutputStyleManager(self.source, styles_dir=self.styles_dir)
        self.assertNotEqual(a.style_name, b.style_name)

    def test_missing_source(self) -> None:
        manager = OutputStyleManager(self.source.with_name("missing.md"), styles_dir=self.styles_dir)
        with self.assertRaises(FileNotFoundError):
            manager.setup()


if __name__ == "__main__":
    unittest.main()
