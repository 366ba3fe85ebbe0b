from __future__ import annotations

from pathlib import Path

import pytest
from recipectl.core.errors import CyclicDependency, UnknownTarget
from recipectl.core.fs import FileSystem
from recipectl.graph import BuildGraph, Executor, Target, cmd, resolve, resolve_many, topological_order

from helpers import FakeRunner, always_found, write


def _chain() -> BuildGraph:
    return BuildGraph(
        [
            Target("all", prereqs=["bin"], phony=True),
            Target("bin", prereqs=["obj"], action=(cmd("ld", "-o", "{target}", "{prereqs}"),)),
            Target("obj", prereqs=["main.c"], order_only=["outdir"], action=(cmd("cc", "-c", "{first}"),)),
            Target("outdir", action=(cmd("mkdir", "-p", "out"),)),
        ]
    )


def test_prerequisites_come_before_their_dependents(tmp_path: Path) -> None:
    write(tmp_path / "main.c")
    order = topological_order(_chain(), ["all"], FileSystem(tmp_path))
    assert order == ["outdir", "obj", "bin", "all"]


def test_existing_undeclared_files_are_sources_not_steps(tmp_path: Path) -> None:
    write(tmp_path / "main.c")
    plan = resolve(_chain(), "all", FileSystem(tmp_path))
    assert "main.c" not in plan.order
    assert plan.names == ["outdir", "obj", "bin", "all"]
    assert plan.reason("obj") == "missing"
    assert plan.reason("all") == "phony"


def test_unknown_goal_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(UnknownTarget) as err:
        resolve(_chain(), "nope", FileSystem(tmp_path))
    assert err.value.code == 2
    assert "no rule to make target `nope`" in str(err.value)


def test_missing_source_names_the_dependent(tmp_path: Path) -> None:
    with pytest.raises(UnknownTarget) as err:
        resolve(_chain(), "all", FileSystem(tmp_path))
    assert err.value.name == "main.c"
    assert err.value.needed_by == "obj"
    assert "needed by `obj`" in str(err.value)


def test_cycle_is_reported_with_its_path(tmp_path: Path) -> None:
    graph = BuildGraph(
        [
            Target("top", prereqs=["a"], phony=True),
            Target("a", prereqs=["b"], phony=True),
            Target("b", prereqs=["a"], phony=True),
        ]
    )
    with pytest.raises(CyclicDependency) as err:
        resolve(graph, "top", FileSystem(tmp_path))
    assert err.value.cycle == ["a", "b", "a"]
    assert str(err.value) == "cyclic dependency: a -> b -> a"
    assert err.value.code == 3


def test_cycle_through_order_only_prerequisite_is_detected(tmp_path: Path) -> None:
    graph = BuildGraph([Target("a", order_only=["b"], phony=True), Target("b", prereqs=["a"], phony=True)])
    with pytest.raises(CyclicDependency):
        resolve(graph, "a", FileSystem(tmp_path))


def test_cycle_fails_before_any_action_runs(tmp_path: Path) -> None:
    runner = FakeRunner()
    graph = BuildGraph(
        [
            Target("a", prereqs=["b"], action=(cmd("touch", "a"),)),
            Target("b", prereqs=["a"], action=(cmd("touch", "b"),)),
        ]
    )
    with pytest.raises(CyclicDependency):
        plan = resolve(graph, "a", FileSystem(tmp_path))
        Executor(tmp_path, runner=runner, which=always_found).execute(plan)
    assert runner.calls == []


def test_shared_prerequisite_appears_once_across_goals(tmp_path: Path) -> None:
    graph = BuildGraph(
        [
            Target("x", prereqs=["common"], phony=True),
            Target("y", prereqs=["common"], phony=True),
            Target("common", phony=True),
        ]
    )
    plan = resolve_many(graph, ["x", "y"], FileSystem(tmp_path))
    assert plan.order == ("common", "x", "y")
    assert plan.goals == ("x", "y")
