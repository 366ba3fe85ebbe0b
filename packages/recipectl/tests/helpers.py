from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Mapping

from recipectl.core.process import CommandResult


class FakeRunner:
    """Records command invocations and answers with scripted results.

    `results` maps the first argv item (or the full joined argv) to an exit
    code; `effects` may create files to mimic what a tool would write.
    """

    def __init__(
        self,
        results: Mapping[str, int] | None = None,
        stdout: Mapping[str, str] | None = None,
        effects: Mapping[str, Callable[[list[str], Path], None]] | None = None,
    ) -> None:
        self.results = dict(results or {})
        self.stdout = dict(stdout or {})
        self.effects = dict(effects or {})
        self.calls: list[tuple[list[str], Path, dict[str, str]]] = []

    def _lookup(self, table: Mapping[str, object], argv: list[str]) -> object | None:
        joined = " ".join(argv)
        if joined in table:
            return table[joined]
        return table.get(argv[0])

    def __call__(self, argv: list[str], cwd: Path, env: Mapping[str, str]) -> CommandResult:
        self.calls.append((list(argv), cwd, dict(env)))
        effect = self._lookup(self.effects, argv)
        if effect is not None:
            effect(argv, cwd)  # type: ignore[operator]
        code = self._lookup(self.results, argv)
        out = self._lookup(self.stdout, argv)
        return CommandResult(code=int(code or 0), stdout=str(out or ""), stderr="", duration_ms=0)

    @property
    def argvs(self) -> list[list[str]]:
        return [argv for argv, _cwd, _env in self.calls]


def always_found(name: str, path: str | None = None) -> str:
    return f"/usr/bin/{name}"


def never_found(name: str, path: str | None = None) -> None:
    return None


def write(path: Path, text: str = "", mtime: float | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path
