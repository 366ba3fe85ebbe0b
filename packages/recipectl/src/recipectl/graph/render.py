from __future__ import annotations

from .model import BuildGraph


def render_tree(graph: BuildGraph, root: str, prefix: str = "", seen: set[str] | None = None, marker: str = "") -> list[str]:
    if seen is None:
        seen = set()
    target = graph.get(root)
    label = f"{marker}{root}"
    if target is not None and target.phony:
        label += " (phony)"
    elif target is None:
        label += " (source)"
    lines = [f"{prefix}{label}"]
    if root in seen:
        lines[-1] += " (cycle)"
        return lines
    if target is None:
        return lines
    seen = set(seen)
    seen.add(root)
    deps = [(dep, "") for dep in target.prereqs] + [(dep, "| ") for dep in target.order_only]
    child_prefix = prefix.replace("├─ ", "│  ").replace("└─ ", "   ")
    for i, (dep, dep_marker) in enumerate(deps):
        branch = "└─ " if i == len(deps) - 1 else "├─ "
        lines.extend(render_tree(graph, dep, child_prefix + branch, seen, dep_marker))
    return lines


__all__ = ["render_tree"]
