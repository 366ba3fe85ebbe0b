from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path
from typing import Callable, Iterable, Mapping

from ..configs.loader import RecipeConfig
from ..core.errors import MissingCollaborator
from ..core.fs import remove_tree
from ..graph.model import BuildGraph, Call, Step, StepContext, Target, cmd

Which = Callable[..., "str | None"]


def phony(name: str, prereqs: Iterable[str] = (), order_only: Iterable[str] = (), action: Iterable[Step] = (), doc: str = "") -> Target:
    return Target(name=name, prereqs=list(prereqs), order_only=list(order_only), action=tuple(action), phony=True, doc=doc)


def _mkdir_parent(step: StepContext) -> None:
    step.output.parent.mkdir(parents=True, exist_ok=True)


def _touch_output(step: StepContext) -> None:
    step.output.parent.mkdir(parents=True, exist_ok=True)
    step.output.touch()


MKDIR = Call(_mkdir_parent, "mkdir -p {target_dir}")
TOUCH = Call(_touch_output, "touch {target}")


def touch(path: str) -> Call:
    def _touch(step: StepContext) -> None:
        p = step.fs.path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.touch()

    return Call(_touch, f"touch {path}")


def remove_paths(*paths: str) -> Call:
    def _remove(step: StepContext) -> None:
        for path in paths:
            remove_tree(step.fs.path(path))

    return Call(_remove, "rm -rf " + " ".join(paths))


def move_into_target(source: str) -> Call:
    def _move(step: StepContext) -> None:
        step.output.parent.mkdir(parents=True, exist_ok=True)
        os.replace(step.fs.path(source), step.output)

    return Call(_move, f"mv {source} {{target}}")


def clean_ignored(keep: Iterable[str] = ("vendor",), fallback: Iterable[str] = ()) -> Call:
    """Remove top-level entries ignored by git, except `keep`.

    Outside a git work tree, or without git on PATH, only the `fallback`
    paths are removed.
    """
    kept = set(keep)

    def _clean(step: StepContext) -> None:
        entries = sorted(p.name for p in step.project_root.iterdir() if p.name != ".git")
        names = list(fallback)
        if entries:
            try:
                res = step.run(["git", "check-ignore", *entries])
            except MissingCollaborator:
                res = None
            if res is not None and res.code in (0, 1):
                names = [ln.strip() for ln in res.stdout.splitlines() if ln.strip()]
        for name in names:
            if name.removeprefix("./").rstrip("/") in kept:
                continue
            remove_tree(step.fs.path(name))

    return Call(_clean, "git check-ignore ./* | grep -v ^./vendor | xargs rm -rf")


def opener() -> str:
    if sys.platform == "darwin":
        return "open"
    if sys.platform.startswith("win"):
        return "explorer"
    return "xdg-open"


class Recipe:
    """Target declarations shared by the language recipes.

    Subclasses declare their own rules in `declare` and may rely on the
    `coverage_report` property naming the HTML coverage report.
    """

    name = ""

    def __init__(
        self,
        config: RecipeConfig,
        project_root: Path,
        *,
        environ: Mapping[str, str] | None = None,
        which: Which = shutil.which,
    ) -> None:
        self.config = config
        self.project_root = project_root
        self.environ = dict(os.environ if environ is None else environ)
        self.which = which

    @property
    def artifacts(self) -> str:
        return Path(self.config.artifacts_dir).as_posix().rstrip("/")

    @property
    def coverage_dir(self) -> str:
        return f"{self.artifacts}/tests/coverage"

    @property
    def coverage_report(self) -> str:
        return f"{self.coverage_dir}/index.html"

    @property
    def req(self) -> list[str]:
        return list(self.config.req)

    @property
    def use(self) -> list[str]:
        return list(self.config.use)

    def find(self, base: str, suffix: str | None = None, files_only: bool = True) -> list[str]:
        root = self.project_root / base
        if not root.is_dir():
            return []
        out: list[str] = []
        for path in root.rglob("*"):
            if files_only and not path.is_file():
                continue
            if suffix is not None and path.suffix != suffix:
                continue
            out.append(path.relative_to(self.project_root).as_posix())
        return sorted(out)

    def action_env(self) -> dict[str, str]:
        return {}

    def declare(self, graph: BuildGraph) -> None:
        raise NotImplementedError

    def declare_common(self, graph: BuildGraph) -> None:
        graph.add(phony("clean", action=(clean_ignored(fallback=(self.artifacts,)),), doc="remove git-ignored files, keeping vendor"))
        graph.add(phony("clean-all", prereqs=["clean"], action=(remove_paths("vendor"),), doc="clean, including vendor"))
        graph.add(phony("clean-coverage", action=(remove_paths(self.coverage_dir),), doc="remove coverage reports"))
        graph.add(phony("coverage", prereqs=[self.coverage_report], doc="generate an HTML coverage report"))
        graph.add(
            phony(
                "coverage-open",
                prereqs=[self.coverage_report],
                action=(cmd(opener(), "{first}"),),
                doc="generate the coverage report and open it",
            )
        )

    def build_graph(self) -> BuildGraph:
        graph = BuildGraph()
        self.declare(graph)
        self.declare_common(graph)
        return graph


__all__ = ["MKDIR", "TOUCH", "Recipe", "clean_ignored", "move_into_target", "opener", "phony", "remove_paths", "touch"]
