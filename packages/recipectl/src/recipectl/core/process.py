from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Mapping

from .runtime.logging import log_event

if TYPE_CHECKING:
    from .context import RunContext


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def combined_output(self) -> str:
        return (self.stdout + self.stderr).strip()


CommandRunner = Callable[[list[str], Path, Mapping[str, str]], CommandResult]


def merged_env(overrides: Mapping[str, str] | None) -> dict[str, str]:
    env = dict(os.environ)
    if overrides:
        env.update({str(k): str(v) for k, v in overrides.items()})
    return env


def run_command(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    timeout_seconds: int = 0,
    ctx: RunContext | None = None,
) -> CommandResult:
    started = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            env=merged_env(env),
            text=True,
            capture_output=True,
            check=False,
            timeout=(timeout_seconds if timeout_seconds > 0 else None),
        )
        result = CommandResult(
            code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except subprocess.TimeoutExpired as exc:
        result = CommandResult(
            code=124,
            stdout=(exc.stdout or "") if isinstance(exc.stdout, str) else "",
            stderr=(((exc.stderr or "") if isinstance(exc.stderr, str) else "") + f"\ncommand timed out after {timeout_seconds}s").strip(),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except OSError as exc:
        result = CommandResult(
            code=127,
            stdout="",
            stderr=f"{cmd[0]}: {exc.strerror or exc}",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    if ctx and not ctx.quiet:
        log_event(
            ctx,
            "info",
            "process",
            "run-command",
            command=" ".join(cmd),
            cwd=str(cwd),
            code=result.code,
            duration_ms=result.duration_ms,
        )
    return result


__all__ = ["CommandResult", "CommandRunner", "merged_env", "run_command"]
