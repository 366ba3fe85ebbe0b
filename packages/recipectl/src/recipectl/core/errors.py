from __future__ import annotations

from dataclasses import dataclass

from .model.results import ExitCode


@dataclass
class ScriptError(Exception):
    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


class UnknownTarget(ScriptError):
    def __init__(self, name: str, needed_by: str | None = None) -> None:
        msg = f"no rule to make target `{name}`"
        if needed_by:
            msg += f", needed by `{needed_by}`"
        super().__init__(msg, int(ExitCode.USAGE), "unknown_target")
        self.name = name
        self.needed_by = needed_by


class CyclicDependency(ScriptError):
    def __init__(self, cycle: list[str]) -> None:
        super().__init__(f"cyclic dependency: {' -> '.join(cycle)}", int(ExitCode.CONFIG), "cyclic_dependency")
        self.cycle = list(cycle)


class ActionFailed(ScriptError):
    def __init__(self, target: str, exit_code: int, command: str = "", output: str = "") -> None:
        msg = f"target `{target}` failed with exit status {exit_code}"
        if command:
            msg += f": {command}"
        if output:
            msg += f"\n{output}"
        super().__init__(msg, exit_code if exit_code > 0 else int(ExitCode.FAIL), "action_failed")
        self.target = target
        self.exit_code = exit_code
        self.command = command


class MissingCollaborator(ScriptError):
    def __init__(self, executable: str, target: str | None = None) -> None:
        msg = f"required tool not found: {executable}"
        if target:
            msg += f" (needed by `{target}`)"
        super().__init__(msg, int(ExitCode.PREREQ), "missing_collaborator")
        self.executable = executable
        self.target = target


class ConfigError(ScriptError):
    def __init__(self, message: str) -> None:
        super().__init__(message, int(ExitCode.CONFIG), "config_error")


class Interrupted(ScriptError):
    def __init__(self, target: str) -> None:
        super().__init__(f"interrupted while building `{target}`", int(ExitCode.INTERRUPTED), "interrupted")
        self.target = target


__all__ = [
    "ActionFailed",
    "ConfigError",
    "CyclicDependency",
    "Interrupted",
    "MissingCollaborator",
    "ScriptError",
    "UnknownTarget",
]
