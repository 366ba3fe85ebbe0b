"""Build graph data model: targets, action steps and execution plans."""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Union

from ..core.errors import ConfigError

if TYPE_CHECKING:
    from ..core.fs import FileSystem
    from ..core.process import CommandResult

_PLACEHOLDER_RE = re.compile(r"\{(target|target_dir|first|prereqs)\}")


@dataclass(frozen=True)
class Command:
    """One external command of a target's action.

    `argv` may hold the placeholders `{target}`, `{target_dir}`, `{first}`
    and `{prereqs}`; they are expanded right before the command runs.
    """

    argv: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)
    cwd: str | None = None
    ignore_errors: bool = False
    tee: str | None = None
    append: bool = False
    fail_on_output: bool = False

    def describe(self) -> str:
        prefix = "".join(f"{k}={shlex.quote(v)} " for k, v in sorted(self.env.items()))
        text = prefix + shlex.join(self.argv)
        if self.tee:
            text += f" | tee {'-a ' if self.append else ''}{self.tee}"
        if self.cwd:
            text = f"cd {shlex.quote(self.cwd)} && {text}"
        return ("-" if self.ignore_errors else "") + text


@dataclass(frozen=True)
class StepContext:
    target: "Target"
    project_root: Path
    fs: "FileSystem"
    env: Mapping[str, str]
    run: "Callable[[list[str]], CommandResult]"

    @property
    def output(self) -> Path:
        return self.fs.path(self.target.name)


@dataclass(frozen=True)
class Call:
    """In-process step, used where a recipe needs no external tool."""

    fn: Callable[[StepContext], None]
    description: str
    ignore_errors: bool = False

    def describe(self) -> str:
        return ("-" if self.ignore_errors else "") + self.description


Step = Union[Command, Call]


def cmd(*argv: str, **options: object) -> Command:
    return Command(argv=tuple(str(a) for a in argv), **options)  # type: ignore[arg-type]


@dataclass
class Target:
    name: str
    prereqs: list[str] = field(default_factory=list)
    order_only: list[str] = field(default_factory=list)
    action: tuple[Step, ...] = ()
    phony: bool = False
    precious: bool = False
    doc: str = ""

    def expand(self, step: Command) -> list[str]:
        return expand_argv(step.argv, self.name, self.prereqs)

    def describe(self, step: Step) -> str:
        if isinstance(step, Command):
            tee = expand_argv([step.tee], self.name, self.prereqs)[0] if step.tee else None
            return Command(
                argv=tuple(self.expand(step)),
                env=step.env,
                cwd=step.cwd,
                ignore_errors=step.ignore_errors,
                tee=tee,
                append=step.append,
            ).describe()
        return expand_argv([step.describe()], self.name, self.prereqs)[0]


def expand_argv(argv: Iterable[str], target: str, prereqs: list[str]) -> list[str]:
    values = {
        "target": target,
        "target_dir": Path(target).parent.as_posix(),
        "first": prereqs[0] if prereqs else "",
    }
    out: list[str] = []
    for arg in argv:
        if arg == "{prereqs}":
            out.extend(prereqs)
            continue
        out.append(
            _PLACEHOLDER_RE.sub(
                lambda m: " ".join(prereqs) if m.group(1) == "prereqs" else values[m.group(1)],
                arg,
            )
        )
    return out


class BuildGraph:
    """Static set of declared targets, keyed by name."""

    def __init__(self, targets: Iterable[Target] = ()) -> None:
        self.targets: dict[str, Target] = {}
        for target in targets:
            self.add(target)

    def __contains__(self, name: object) -> bool:
        return name in self.targets

    def __len__(self) -> int:
        return len(self.targets)

    def get(self, name: str) -> Target | None:
        return self.targets.get(name)

    def add(self, target: Target) -> Target:
        if target.name in self.targets:
            raise ConfigError(f"target declared twice: {target.name}")
        self.targets[target.name] = target
        return target

    def add_all(self, targets: Iterable[Target]) -> None:
        for target in targets:
            self.add(target)

    def extend(self, name: str, prereqs: Iterable[str] = (), order_only: Iterable[str] = ()) -> Target:
        """Append prerequisites to an existing target, skipping duplicates."""
        target = self.targets.get(name)
        if target is None:
            raise ConfigError(f"cannot extend undeclared target: {name}")
        for p in prereqs:
            if p not in target.prereqs:
                target.prereqs.append(p)
        for p in order_only:
            if p not in target.order_only:
                target.order_only.append(p)
        return target

    def names(self) -> list[str]:
        return sorted(self.targets)


@dataclass(frozen=True)
class PlanStep:
    target: Target
    reason: str

    @property
    def name(self) -> str:
        return self.target.name


@dataclass(frozen=True)
class ExecutionPlan:
    goals: tuple[str, ...]
    order: tuple[str, ...]
    steps: tuple[PlanStep, ...]

    def __bool__(self) -> bool:
        return bool(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def names(self) -> list[str]:
        return [step.name for step in self.steps]

    def reason(self, name: str) -> str | None:
        for step in self.steps:
            if step.name == name:
                return step.reason
        return None


__all__ = [
    "BuildGraph",
    "Call",
    "Command",
    "ExecutionPlan",
    "PlanStep",
    "Step",
    "StepContext",
    "Target",
    "cmd",
    "expand_argv",
]
