from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    FAIL = 1
    USAGE = 2
    CONFIG = 3
    PREREQ = 4
    INTERNAL = 70
    INTERRUPTED = 130


@dataclass(frozen=True)
class TargetOutcome:
    target: str
    status: str  # built|skipped|failed|up-to-date
    reason: str = ""
    duration_ms: int = 0
    exit_code: int | None = None


__all__ = ["ExitCode", "TargetOutcome"]
