from __future__ import annotations

import shutil
from pathlib import Path

from .errors import ScriptError
from .model.results import ExitCode


class FileSystem:
    """Filesystem view of a project tree used for staleness checks.

    Relative paths are resolved against `root`.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def path(self, name: str | Path) -> Path:
        p = Path(name)
        return p if p.is_absolute() else self.root / p

    def mtime(self, name: str | Path) -> float | None:
        try:
            return self.path(name).stat().st_mtime
        except FileNotFoundError:
            return None

    def exists(self, name: str | Path) -> bool:
        return self.mtime(name) is not None

    def is_dir(self, name: str | Path) -> bool:
        return self.path(name).is_dir()

    def remove(self, name: str | Path) -> bool:
        """Remove a file artifact; directories are left in place."""
        p = self.path(name)
        if p.is_dir() and not p.is_symlink():
            return False
        try:
            p.unlink()
        except FileNotFoundError:
            return False
        return True


def ensure_artifact_path(project_root: Path, artifacts_dir: Path, path: Path) -> Path:
    resolved = path.resolve() if path.is_absolute() else (project_root / path).resolve()
    root = (artifacts_dir if artifacts_dir.is_absolute() else project_root / artifacts_dir).resolve()
    if resolved == root or root in resolved.parents:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        return resolved
    raise ScriptError(f"forbidden write path outside artifacts root: {resolved}", int(ExitCode.CONFIG), kind="forbidden_write_path")


def remove_tree(path: Path) -> bool:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
        return True
    if path.exists() or path.is_symlink():
        path.unlink()
        return True
    return False


__all__ = ["FileSystem", "ensure_artifact_path", "remove_tree"]
