"""Build graph engine: targets, staleness, ordering and execution."""

from .execute import Executor, RunResult, execute
from .matrix import Platform, build_matrix, expand_matrix, host_platform
from .model import BuildGraph, Call, Command, ExecutionPlan, PlanStep, StepContext, Target, cmd, expand_argv
from .render import render_tree
from .reports import merge_cover_profiles, merge_reports
from .resolve import resolve, resolve_many, topological_order
from .stale import is_stale, staleness_reason

__all__ = [
    "BuildGraph",
    "Call",
    "Command",
    "ExecutionPlan",
    "Executor",
    "PlanStep",
    "Platform",
    "RunResult",
    "StepContext",
    "Target",
    "build_matrix",
    "cmd",
    "execute",
    "expand_argv",
    "expand_matrix",
    "host_platform",
    "is_stale",
    "merge_cover_profiles",
    "merge_reports",
    "render_tree",
    "resolve",
    "resolve_many",
    "staleness_reason",
    "topological_order",
]
