"""Temporary output-style injection for agent runs.

The runtime only loads output styles from its styles directory, so an agent that
ships its own style copies it there under a unique name for the duration of the run.
"""

from __future__ import annotations

import os
import shutil
import time
import uuid
from pathlib import Path
from typing import Optional, Union

from .constants import OUTPUT_STYLES_REL_DIR
from .utils import print_diagnostic


class OutputStyleManager:
    def __init__(self, source_path: Union[str, Path], styles_dir: Optional[Union[str, Path]] = None):
        self.source_path = Path(source_path).resolve()
        self.styles_dir = Path(styles_dir) if styles_dir is not None else Path.home() / OUTPUT_STYLES_REL_DIR
        self.style_name = f"temp-{os.getpid()}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
        self.style_path = self.styles_dir / f"{self.style_name}.md"
        self.lock_path = self.styles_dir / f"{self.style_name}.lock"
        self._is_setup = False

    def setup(self) -> str:
        if self._is_setup:
            raise RuntimeError("OutputStyleManager has already been set up")
        if not self.source_path.is_file():
            raise FileNotFoundError(f"Output style source not found: {self.source_path}")
        self.styles_dir.mkdir(parents=True, exist_ok=True)
        self.lock_path.write_text(str(os.getpid()), encoding="utf-8")
        shutil.copyfile(self.source_path, self.style_path)
        print_diagnostic("output-style", f"Installed {self.style_path}")
        self._is_setup = True
        return self.style_name

    def cleanup(self) -> None:
        for path in (self.style_path, self.lock_path):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
        self._is_setup = False

    def __enter__(self) -> str:
        return self.setup()

    def __exit__(self, *_exc) -> None:
        self.cleanup()
