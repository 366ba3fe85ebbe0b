from __future__ import annotations

from typing import Iterable, Mapping

from ..core.errors import CyclicDependency, UnknownTarget
from ..core.fs import FileSystem
from .model import BuildGraph, ExecutionPlan, PlanStep
from .stale import staleness_reason


def topological_order(
    graph: BuildGraph,
    goals: Iterable[str],
    fs: FileSystem,
    done: Iterable[str] = (),
) -> list[str]:
    """Depth-first post-order over normal and order-only prerequisites.

    Undeclared names that exist on disk are sources and are left out of the
    order, as are the names in `done`. Raises `UnknownTarget` for anything
    else and `CyclicDependency` as soon as a back edge is found.
    """
    order: list[str] = []
    seen: set[str] = set(done)
    stack: list[str] = []
    on_stack: set[str] = set()

    def visit(name: str, needed_by: str | None) -> None:
        if name in seen:
            return
        if name in on_stack:
            start = stack.index(name)
            raise CyclicDependency([*stack[start:], name])
        target = graph.get(name)
        if target is None:
            if fs.exists(name):
                seen.add(name)
                return
            raise UnknownTarget(name, needed_by)
        stack.append(name)
        on_stack.add(name)
        for prereq in [*target.prereqs, *target.order_only]:
            visit(prereq, name)
        stack.pop()
        on_stack.discard(name)
        seen.add(name)
        order.append(name)

    for goal in goals:
        visit(goal, None)
    return order


def resolve_many(
    graph: BuildGraph,
    goals: Iterable[str],
    fs: FileSystem,
    done: Mapping[str, bool] | None = None,
) -> ExecutionPlan:
    """Plan `goals` against the current state of the file system.

    `done` maps targets already handled earlier in the same run to whether
    they were rebuilt; they are not planned again.
    """
    goal_list = tuple(goals)
    finished = dict(done or {})
    order = topological_order(graph, goal_list, fs, finished)
    rebuilt: dict[str, bool] = dict(finished)
    steps: list[PlanStep] = []
    for name in order:
        target = graph.targets[name]
        reason = staleness_reason(target, graph, fs, rebuilt)
        rebuilt[name] = reason is not None
        if reason is not None:
            steps.append(PlanStep(target=target, reason=reason))
    return ExecutionPlan(goals=goal_list, order=tuple(order), steps=tuple(steps))


def resolve(graph: BuildGraph, goal: str, fs: FileSystem) -> ExecutionPlan:
    return resolve_many(graph, [goal], fs)


__all__ = ["resolve", "resolve_many", "topological_order"]
