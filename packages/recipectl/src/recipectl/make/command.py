from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path

from ..configs.loader import RecipeConfig, load_config, parse_assignments
from ..contracts import PLAN_REPORT, RUN_REPORT, validate_self
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.fs import FileSystem, ensure_artifact_path
from ..core.runtime.logging import log_event
from ..core.runtime.serialize import dumps_json
from ..graph.execute import Executor, RunResult
from ..graph.matrix import build_matrix
from ..graph.model import BuildGraph, ExecutionPlan
from ..graph.render import render_tree
from ..graph.resolve import resolve_many
from ..recipes import Recipe, load_recipe


@dataclass(frozen=True)
class Workspace:
    config: RecipeConfig
    recipe: Recipe
    graph: BuildGraph
    fs: FileSystem


def load_workspace(ctx: RunContext, ns: argparse.Namespace) -> Workspace:
    overrides = parse_assignments(getattr(ns, "set", None) or [])
    config = load_config(ctx.project_root, overrides)
    recipe = load_recipe(config, ctx.project_root)
    graph = recipe.build_graph()
    log_event(ctx, "debug", "make", "graph-loaded", recipe=config.recipe, targets=len(graph))
    return Workspace(config=config, recipe=recipe, graph=graph, fs=FileSystem(ctx.project_root))


def _goals(ws: Workspace, ns: argparse.Namespace) -> list[str]:
    goals = list(getattr(ns, "goals", None) or [])
    return goals or [ws.config.default_goal]


def plan_payload(ctx: RunContext, plan: ExecutionPlan) -> dict[str, object]:
    payload: dict[str, object] = {
        "schema_name": PLAN_REPORT,
        "schema_version": 1,
        "tool": "recipectl",
        "run_id": ctx.run_id,
        "status": "ok",
        "goals": list(plan.goals),
        "order": list(plan.order),
        "steps": [
            {
                "target": step.name,
                "reason": step.reason,
                "phony": step.target.phony,
                "commands": [step.target.describe(s) for s in step.target.action],
            }
            for step in plan.steps
        ],
    }
    return validate_self(PLAN_REPORT, payload)


def run_payload(ctx: RunContext, goals: list[str], result: RunResult | None, error: ScriptError | None = None) -> dict[str, object]:
    outcomes = result.outcomes if result is not None else []
    rows = [
        {
            "target": o.target,
            "status": o.status,
            "reason": o.reason,
            "duration_ms": o.duration_ms,
            "exit_code": o.exit_code,
        }
        for o in outcomes
    ]
    failed = sum(1 for r in rows if r["status"] == "failed")
    payload: dict[str, object] = {
        "schema_name": RUN_REPORT,
        "schema_version": 1,
        "tool": "recipectl",
        "run_id": ctx.run_id,
        "status": "ok" if error is None and failed == 0 else "error",
        "goals": goals,
        "summary": {
            "planned": len(rows),
            "executed": sum(1 for r in rows if r["status"] in {"built", "failed"}),
            "skipped": sum(1 for r in rows if r["status"] in {"up-to-date", "skipped"}),
            "failed": failed,
            "duration_ms": result.duration_ms if result is not None else 0,
        },
        "rows": rows,
    }
    if error is not None:
        payload["error"] = str(error)
    return validate_self(RUN_REPORT, payload)


def _write_report(ctx: RunContext, ws: Workspace, out_file: str | None, payload: dict[str, object]) -> None:
    if not out_file:
        return
    out = ensure_artifact_path(ctx.project_root, Path(ws.config.artifacts_dir), Path(out_file))
    out.write_text(dumps_json(payload, pretty=True) + "\n", encoding="utf-8")


def _render_plan_text(plan: ExecutionPlan) -> None:
    if not plan:
        print(f"recipectl: nothing to be done for {', '.join(plan.goals)}")
        return
    for step in plan.steps:
        print(f"{step.name} ({step.reason})")
        for action in step.target.action:
            print(f"    {step.target.describe(action)}")


def run_plan(ctx: RunContext, ns: argparse.Namespace) -> int:
    ws = load_workspace(ctx, ns)
    plan = resolve_many(ws.graph, _goals(ws, ns), ws.fs)
    if ctx.as_json:
        print(dumps_json(plan_payload(ctx, plan)))
    else:
        _render_plan_text(plan)
    return 0


def run_run(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.dry_run:
        return run_plan(ctx, ns)
    ws = load_workspace(ctx, ns)
    goals = _goals(ws, ns)
    echo = None if ctx.as_json or ctx.quiet else (lambda text: print(text, flush=True))
    executor = Executor(ctx.project_root, fs=ws.fs, env=ws.recipe.action_env(), ctx=ctx, echo=echo)
    try:
        result = executor.run_goals(ws.graph, goals)
    except ScriptError as exc:
        payload = run_payload(ctx, goals, executor.result, exc)
        _write_report(ctx, ws, ns.report_file, payload)
        if ctx.as_json:
            print(dumps_json(payload))
        raise
    payload = run_payload(ctx, goals, result)
    _write_report(ctx, ws, ns.report_file, payload)
    if ctx.as_json:
        print(dumps_json(payload))
    elif not result.built:
        print(f"recipectl: nothing to be done for {', '.join(goals)}")
    elif not ctx.quiet:
        summary = payload["summary"]
        print(f"recipectl run: status={payload['status']} built={summary['executed']} up-to-date={summary['skipped']}")  # type: ignore[index]
    return 0


def run_graph(ctx: RunContext, ns: argparse.Namespace) -> int:
    ws = load_workspace(ctx, ns)
    goal = ns.goal or ws.config.default_goal
    resolve_many(ws.graph, [goal], ws.fs)
    lines = render_tree(ws.graph, goal)
    if ctx.as_json:
        print(dumps_json({"schema_version": 1, "tool": "recipectl", "status": "ok", "goal": goal, "tree": lines}))
    else:
        print("\n".join(lines))
    return 0


def run_targets(ctx: RunContext, ns: argparse.Namespace) -> int:
    ws = load_workspace(ctx, ns)
    rows = [
        {
            "name": t.name,
            "phony": t.phony,
            "prereqs": len(t.prereqs),
            "order_only": len(t.order_only),
            "doc": t.doc,
        }
        for t in (ws.graph.targets[name] for name in ws.graph.names())
        if ns.all or t.phony
    ]
    if ctx.as_json:
        print(dumps_json({"schema_version": 1, "tool": "recipectl", "status": "ok", "recipe": ws.config.recipe, "targets": rows}))
        return 0
    width = max((len(str(r["name"])) for r in rows), default=0)
    for row in rows:
        print(f"{str(row['name']).ljust(width)}  {row['doc']}".rstrip())
    return 0


def run_matrix(ctx: RunContext, ns: argparse.Namespace) -> int:
    ws = load_workspace(ctx, ns)
    platforms = build_matrix(ws.config.matrix_os, ws.config.matrix_arch)
    release = ws.graph.get("release")
    binaries = list(release.prereqs) if release is not None else []
    if ctx.as_json:
        print(
            dumps_json(
                {
                    "schema_version": 1,
                    "tool": "recipectl",
                    "status": "ok",
                    "platforms": [p.key for p in platforms],
                    "release_targets": binaries,
                }
            )
        )
        return 0
    for plat in platforms:
        print(plat.key)
    for name in binaries:
        print(f"  {name}")
    return 0


def run_config(ctx: RunContext, ns: argparse.Namespace) -> int:
    overrides = parse_assignments(getattr(ns, "set", None) or [])
    config = load_config(ctx.project_root, overrides)
    payload = {"schema_version": 1, "tool": "recipectl", "status": "ok", "config": config.to_payload()}
    print(dumps_json(payload, pretty=not ctx.as_json))
    return 0


HANDLERS = {
    "run": run_run,
    "plan": run_plan,
    "graph": run_graph,
    "targets": run_targets,
    "matrix": run_matrix,
    "config": run_config,
}


def run_make_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    handler = HANDLERS.get(ns.cmd)
    if handler is None:
        print(f"unknown command: {ns.cmd}", file=sys.stderr)
        return 2
    return handler(ctx, ns)


__all__ = ["HANDLERS", "Workspace", "load_workspace", "plan_payload", "run_make_command", "run_payload"]
