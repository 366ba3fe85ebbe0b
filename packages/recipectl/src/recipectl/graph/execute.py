from __future__ import annotations

import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Sequence

from ..core.context import RunContext
from ..core.errors import ActionFailed, Interrupted, MissingCollaborator, ScriptError
from ..core.fs import FileSystem
from ..core.model.results import TargetOutcome
from ..core.process import CommandResult, CommandRunner, run_command
from ..core.runtime.logging import log_event
from .model import BuildGraph, Call, Command, ExecutionPlan, StepContext, Target
from .resolve import resolve_many, topological_order

Which = Callable[..., "str | None"]


@dataclass
class RunResult:
    goals: tuple[str, ...]
    outcomes: list[TargetOutcome] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def built(self) -> list[str]:
        return [o.target for o in self.outcomes if o.status == "built"]

    @property
    def failed(self) -> list[str]:
        return [o.target for o in self.outcomes if o.status == "failed"]

    @property
    def ok(self) -> bool:
        return not self.failed


class Executor:
    """Runs the stale targets of a plan one at a time, in plan order.

    The first failing step aborts the run. The failing target's artifact is
    removed unless it is phony or precious, so the next run retries it.
    """

    def __init__(
        self,
        project_root: Path,
        *,
        fs: FileSystem | None = None,
        runner: CommandRunner | None = None,
        env: Mapping[str, str] | None = None,
        which: Which | None = shutil.which,
        ctx: RunContext | None = None,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self.project_root = project_root
        self.fs = fs or FileSystem(project_root)
        self.runner = runner or (lambda argv, cwd, step_env: run_command(argv, cwd, step_env))
        self.env = dict(env or {})
        self.which = which
        self.ctx = ctx
        self.echo = echo
        self.result: RunResult | None = None

    def _log(self, level: str, action: str, **fields: object) -> None:
        if self.ctx is not None:
            log_event(self.ctx, level, "engine", action, **fields)

    def execute(self, plan: ExecutionPlan) -> RunResult:
        started = time.monotonic()
        result = RunResult(goals=plan.goals)
        self.result = result
        try:
            self._run_plan(plan, result)
        finally:
            result.duration_ms = int((time.monotonic() - started) * 1000)
        return result

    def run_goals(self, graph: BuildGraph, goals: Sequence[str]) -> RunResult:
        """Resolve and run each goal in turn, like make given several goals.

        A goal is planned only after the goals before it have run, so
        `clean` followed by a build goal rebuilds what `clean` removed.
        Targets handled for an earlier goal are not run again. Unknown goals
        and cycles are reported before anything runs.
        """
        topological_order(graph, goals, self.fs)
        started = time.monotonic()
        result = RunResult(goals=tuple(goals))
        self.result = result
        done: dict[str, bool] = {}
        try:
            for goal in goals:
                plan = resolve_many(graph, [goal], self.fs, done)
                self._run_plan(plan, result)
                stale = {step.name for step in plan.steps}
                done.update((name, name in stale) for name in plan.order)
        finally:
            result.duration_ms = int((time.monotonic() - started) * 1000)
        return result

    def _run_plan(self, plan: ExecutionPlan, result: RunResult) -> None:
        stale = {step.name: step for step in plan.steps}
        self._log("info", "plan", goals=",".join(plan.goals), planned=len(plan.order), stale=len(plan.steps))
        for index, name in enumerate(plan.order):
            step = stale.get(name)
            if step is None:
                result.outcomes.append(TargetOutcome(target=name, status="up-to-date"))
                self._log("debug", "target-skip", target=name)
                continue
            try:
                outcome = self._build(step.target, step.reason)
            except ScriptError as exc:
                code = exc.exit_code if isinstance(exc, ActionFailed) else exc.code
                result.outcomes.append(TargetOutcome(target=name, status="failed", reason=str(exc).splitlines()[0], exit_code=code))
                result.outcomes.extend(TargetOutcome(target=rest, status="skipped", reason="aborted") for rest in plan.order[index + 1 :])
                raise
            result.outcomes.append(outcome)

    def _build(self, target: Target, reason: str) -> TargetOutcome:
        started = time.monotonic()
        if target.action:
            self._log("info", "target-start", target=target.name, reason=reason)
        try:
            for step in target.action:
                if isinstance(step, Command):
                    self._run_command(target, step)
                else:
                    self._run_call(target, step)
        except KeyboardInterrupt:
            self._discard(target)
            raise Interrupted(target.name) from None
        except ScriptError as exc:
            self._discard(target)
            self._log("error", "target-fail", target=target.name, error=str(exc).splitlines()[0])
            raise
        duration_ms = int((time.monotonic() - started) * 1000)
        if target.action:
            self._log("info", "target-finish", target=target.name, duration_ms=duration_ms)
        return TargetOutcome(target=target.name, status="built", reason=reason, duration_ms=duration_ms, exit_code=0)

    def _discard(self, target: Target) -> None:
        if target.phony or target.precious:
            return
        if self.fs.remove(target.name):
            self._log("warn", "artifact-removed", target=target.name)

    def _step_env(self, step: Command) -> dict[str, str]:
        return {**self.env, **step.env}

    def _require_tool(self, target: Target, executable: str, env: Mapping[str, str], cwd: Path) -> None:
        if self.which is None:
            return
        if "/" in executable or os.sep in executable:
            candidate = Path(executable)
            if not candidate.is_absolute():
                candidate = cwd / candidate
            if candidate.exists():
                return
            raise MissingCollaborator(executable, target.name)
        search = env.get("PATH", os.environ.get("PATH"))
        if self.which(executable, path=search) is None:
            raise MissingCollaborator(executable, target.name)

    def _invoke(self, target: Target, argv: list[str], cwd: Path, env: Mapping[str, str]) -> CommandResult:
        res = self.runner(argv, cwd, env)
        self._log("debug", "run-command", target=target.name, command=" ".join(argv), code=res.code, duration_ms=res.duration_ms)
        return res

    def _call_tool(self, target: Target, argv: list[str]) -> CommandResult:
        self._require_tool(target, argv[0], self.env, self.project_root)
        return self._invoke(target, argv, self.project_root, dict(self.env))

    def _run_command(self, target: Target, step: Command) -> None:
        argv = target.expand(step)
        if not argv:
            return
        cwd = self.fs.path(step.cwd) if step.cwd else self.project_root
        env = self._step_env(step)
        self._require_tool(target, argv[0], env, cwd)
        if self.echo is not None:
            self.echo(target.describe(step))
        res = self._invoke(target, argv, cwd, env)
        if self.echo is not None and res.combined_output:
            self.echo(res.combined_output)
        if step.tee:
            tee_path = self.fs.path(target.expand(Command(argv=(step.tee,)))[0])
            tee_path.parent.mkdir(parents=True, exist_ok=True)
            with tee_path.open("a" if step.append else "w", encoding="utf-8") as handle:
                handle.write(res.stdout)
        code = res.code
        if step.fail_on_output and res.stdout.strip():
            code = 1
        if code == 0:
            return
        if step.ignore_errors:
            self._log("warn", "best-effort-failed", target=target.name, command=" ".join(argv), code=code)
            return
        raise ActionFailed(target.name, code, " ".join(argv), "" if self.echo is not None else res.combined_output)

    def _run_call(self, target: Target, step: Call) -> None:
        context = StepContext(
            target=target,
            project_root=self.project_root,
            fs=self.fs,
            env=dict(self.env),
            run=lambda argv: self._call_tool(target, argv),
        )
        if self.echo is not None:
            self.echo(target.describe(step))
        try:
            step.fn(context)
        except (OSError, ValueError) as exc:
            if step.ignore_errors:
                self._log("warn", "best-effort-failed", target=target.name, command=target.describe(step), error=str(exc))
                return
            raise ActionFailed(target.name, 1, target.describe(step), str(exc)) from exc


def execute(plan: ExecutionPlan, project_root: Path, **options: object) -> RunResult:
    return Executor(project_root, **options).execute(plan)  # type: ignore[arg-type]


__all__ = ["Executor", "RunResult", "execute"]
