from __future__ import annotations

from typing import Mapping

from ..core.fs import FileSystem
from .model import BuildGraph, Target


def staleness_reason(target: Target, graph: BuildGraph, fs: FileSystem, rebuilt: Mapping[str, bool]) -> str | None:
    """Return why `target` must be rebuilt, or `None` when it is up to date.

    `rebuilt` maps already-evaluated prerequisite names to their own
    staleness. Order-only prerequisites are never consulted.
    """
    if target.phony:
        return "phony"
    own = fs.mtime(target.name)
    if own is None:
        return "missing"
    for prereq in target.prereqs:
        if prereq in graph and (rebuilt.get(prereq) or graph.targets[prereq].phony):
            return f"prerequisite `{prereq}` is rebuilt"
        stamp = fs.mtime(prereq)
        if stamp is not None and stamp > own:
            return f"prerequisite `{prereq}` is newer"
    return None


def is_stale(graph: BuildGraph, name: str, fs: FileSystem) -> bool:
    from .resolve import resolve

    return resolve(graph, name, fs).reason(name) is not None


__all__ = ["is_stale", "staleness_reason"]
