"""Project root detection helpers.

`Path.cwd()` is only allowed in this module.
"""

from __future__ import annotations

from pathlib import Path

CONFIG_FILE_NAME = "recipectl.yaml"


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from `start` to the nearest directory holding `recipectl.yaml`.

    Falls back to `start` itself when no config file is found, so plain
    projects without a config still work from their own directory.
    """
    origin = (start or Path.cwd()).resolve()
    if origin.is_file():
        origin = origin.parent
    cur = origin
    while True:
        if (cur / CONFIG_FILE_NAME).is_file():
            return cur
        if cur.parent == cur:
            return origin
        cur = cur.parent
