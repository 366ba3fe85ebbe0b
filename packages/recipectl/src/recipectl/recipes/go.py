"""Go project recipe: vendoring, tests, coverage, lint and matrix builds."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from ..graph.matrix import ActionFactory, Platform, build_matrix, expand_matrix, host_platform
from ..graph.model import BuildGraph, Call, Command, Step, StepContext, Target, cmd
from ..graph.reports import merge_reports
from .base import MKDIR, TOUCH, Recipe, move_into_target, phony, touch

GLIDE_PKG = "github.com/Masterminds/glide"
MISSPELL_PKG = "github.com/client9/misspell/cmd/misspell"
ERRCHECK_PKG = "github.com/kisielk/errcheck"
GOMETALINTER_PKG = "github.com/alecthomas/gometalinter"

STRICT_LINTERS = ("vet", "vetshadow", "ineffassign", "deadcode", "gosimple", "gofmt")
ADVISORY_LINTERS = ("golint", "goconst", "gocyclo")


def _merge_prereqs(step: StepContext) -> None:
    merge_reports([step.fs.path(p) for p in step.target.prereqs], step.output)


class GoRecipe(Recipe):
    name = "go"

    @property
    def gopath(self) -> str:
        return self.environ.get("GOPATH") or str(Path.home() / "go")

    def tool(self, name: str) -> str:
        return f"{self.gopath}/bin/{name}"

    @property
    def glide(self) -> str:
        return self.tool("glide")

    @property
    def sources(self) -> list[str]:
        return self.find("src", ".go")

    @property
    def packages(self) -> list[str]:
        return sorted({PurePosixPath(src).parent.as_posix() for src in self.sources})

    @property
    def binaries(self) -> list[str]:
        cmd_dir = self.project_root / "src" / "cmd"
        if not cmd_dir.is_dir():
            return []
        return sorted(p.name for p in cmd_dir.iterdir() if p.is_dir())

    @property
    def matrix(self) -> list[Platform]:
        return build_matrix(self.config.matrix_os, self.config.matrix_arch)

    def coverage_profile(self, package: str) -> str:
        return f"{self.coverage_dir}/{package}/cover.out"

    def action_env(self) -> dict[str, str]:
        return {"GOPATH": self.gopath}

    def _glide(self, *args: str) -> Command:
        return cmd(self.glide, *args, env={"GOPATH": self.gopath})

    def _build_action(self, kind: str) -> ActionFactory:
        args = self.config.debug_args if kind == "debug" else self.config.release_args

        def factory(plat: Platform, binary: str, _name: str) -> tuple[Step, ...]:
            env = {
                "CGO_ENABLED": "1" if self.config.cgo_enabled else "0",
                "GOOS": plat.os,
                "GOARCH": plat.arch,
            }
            return (MKDIR, cmd("go", "build", *args, "-o", "{target}", f"./src/cmd/{binary}", env=env))

        return factory

    def _build_dir(self, kind: str) -> str:
        return f"{self.artifacts}/build/{kind}/"

    def declare_tools(self, graph: BuildGraph) -> None:
        for path, pkg in (
            (self.glide, GLIDE_PKG),
            (self.tool("misspell"), MISSPELL_PKG),
            (self.tool("errcheck"), ERRCHECK_PKG),
        ):
            graph.add(Target(name=path, action=(cmd("go", "get", "-u", pkg, env={"GOPATH": self.gopath}),)))
        gometalinter = self.tool("gometalinter")
        graph.add(
            Target(
                name=gometalinter,
                action=(
                    cmd("go", "get", "-u", GOMETALINTER_PKG, env={"GOPATH": self.gopath}),
                    cmd(gometalinter, "--install", ignore_errors=True),
                ),
                precious=True,
            )
        )

    def declare_vendor(self, graph: BuildGraph) -> None:
        graph.add(
            Target(
                name="vendor",
                prereqs=["glide.lock"],
                order_only=[self.glide],
                action=(self._glide("install", "--strip-vendor"), touch("vendor")),
            )
        )
        graph.add(
            Target(
                name="glide.lock",
                prereqs=["glide.yaml"],
                order_only=[self.glide],
                action=(self._glide("update", "--strip-vendor"), touch("glide.lock"), touch("vendor")),
            )
        )
        graph.add(Target(name="glide.yaml", order_only=[self.glide], action=(self._glide("init", "--non-interactive"),)))

    def declare_builds(self, graph: BuildGraph) -> None:
        code_prereqs = ["vendor", *self.sources, *self.req]
        bins = self.binaries
        host = host_platform()
        debug_targets: list[Target] = []
        for kind in ("debug", "release"):
            targets = expand_matrix(
                self.config.matrix_os,
                self.config.matrix_arch,
                bins,
                prefix=self._build_dir(kind),
                prereqs=code_prereqs,
                order_only=self.use,
                action=self._build_action(kind),
            )
            graph.add_all(targets)
            graph.add(phony(kind, prereqs=[t.name for t in targets], doc=f"build {kind} executables for the whole matrix"))
            if kind == "debug":
                debug_targets = targets
        host_targets = expand_matrix(
            [host.os],
            [host.arch],
            bins,
            prefix=self._build_dir("debug"),
            prereqs=code_prereqs,
            order_only=self.use,
            action=self._build_action("debug"),
        )
        declared = {t.name for t in debug_targets}
        graph.add_all(t for t in host_targets if t.name not in declared)
        graph.add(phony("build", prereqs=[t.name for t in host_targets], doc="build debug executables for the host"))

    def declare_archives(self, graph: BuildGraph) -> None:
        archives: list[str] = []
        bins = self.binaries
        if not bins:
            graph.add(phony("archives", doc="package release executables per platform"))
            return
        for plat in self.matrix:
            release_dir = f"{self._build_dir('release')}{plat.key}"
            names = [plat.binary(b) for b in bins]
            if plat.is_windows:
                name = f"{self.artifacts}/archives/{self.config.project_name}-{plat.slug}.zip"
                pack = cmd("zip", "archive.tmp", *names, cwd=release_dir)
            else:
                name = f"{self.artifacts}/archives/{self.config.project_name}-{plat.slug}.tar.gz"
                pack = cmd("tar", "-czf", "archive.tmp", *names, cwd=release_dir)
            graph.add(
                Target(
                    name=name,
                    prereqs=[f"{release_dir}/{n}" for n in names],
                    action=(MKDIR, pack, move_into_target(f"{release_dir}/archive.tmp")),
                )
            )
            archives.append(name)
        graph.add(phony("archives", prereqs=archives, doc="package release executables per platform"))

    def declare_coverage(self, graph: BuildGraph) -> list[str]:
        profiles: list[str] = []
        test_args = self.config.test_args
        for package in self.packages:
            profile = self.coverage_profile(package)
            package_sources = [s for s in self.sources if PurePosixPath(s).parent.as_posix() == package]
            graph.add(
                Target(
                    name=profile,
                    prereqs=["vendor", *package_sources, *self.req],
                    order_only=self.use,
                    action=(
                        TOUCH,
                        cmd("go", "test", *test_args, "-covermode=count", "-coverprofile={target}", f"./{package}", ignore_errors=True),
                        cmd("go", "tool", "cover", "-func={target}", ignore_errors=True),
                    ),
                )
            )
            profiles.append(profile)
        merged = f"{self.coverage_dir}/merged.cover.out"
        graph.add(Target(name=merged, prereqs=profiles, action=(Call(_merge_prereqs, "merge coverage profiles {prereqs} > {target}"),)))
        graph.add(
            Target(
                name=self.coverage_report,
                prereqs=[merged],
                action=(cmd("go", "tool", "cover", "-html={first}", "-o", "{target}"),),
            )
        )
        return profiles

    def declare_lint(self, graph: BuildGraph) -> None:
        log = f"{self.artifacts}/logs/lint"
        gometalinter = self.tool("gometalinter")
        graph.add(
            Target(
                name=log,
                prereqs=["vendor", *self.sources, *self.req],
                order_only=[self.tool("misspell"), gometalinter, *self.use],
                action=(
                    MKDIR,
                    cmd("go", "vet", "./src/...", tee="{target}"),
                    cmd("go", "fmt", "./src/...", tee="{target}", append=True, fail_on_output=True),
                    cmd(self.tool("misspell"), "-w", "-error", "-locale", "US", "./src", tee="{target}", append=True),
                    cmd(
                        gometalinter,
                        "--disable-all",
                        "--deadline=60s",
                        *(f"--enable={name}" for name in STRICT_LINTERS),
                        "./src/...",
                        tee="{target}",
                        append=True,
                    ),
                    cmd(
                        gometalinter,
                        "--disable-all",
                        "--deadline=60s",
                        "--cyclo-over=15",
                        *(f"--enable={name}" for name in ADVISORY_LINTERS),
                        "./src/...",
                        tee="{target}",
                        append=True,
                        ignore_errors=True,
                    ),
                ),
            )
        )
        errcheck_log = f"{self.artifacts}/logs/errcheck"
        has_ignore = (self.project_root / ".errignore").exists()
        exclude = ("-exclude", ".errignore") if has_ignore else ()
        graph.add(
            Target(
                name=errcheck_log,
                prereqs=["vendor", *([".errignore"] if has_ignore else []), *self.sources, *self.req],
                order_only=[self.tool("errcheck"), *self.use],
                action=(
                    MKDIR,
                    cmd(self.tool("errcheck"), "-ignoretests", *exclude, "./src/...", tee="{target}", ignore_errors=True),
                ),
            )
        )
        graph.add(phony("lint", prereqs=[log], doc="vet, format check, spelling and static analysis"))

    def declare(self, graph: BuildGraph) -> None:
        self.declare_tools(graph)
        self.declare_vendor(graph)
        graph.add(
            phony(
                "test",
                prereqs=["vendor", *self.sources, *self.req],
                order_only=self.use,
                action=(cmd("go", "test", *self.config.test_args, "./src/..."),),
                doc="run all tests",
            )
        )
        self.declare_builds(graph)
        self.declare_archives(graph)
        profiles = self.declare_coverage(graph)
        self.declare_lint(graph)
        graph.add(phony("prepare", prereqs=["lint", f"{self.artifacts}/logs/errcheck", "test"], doc="pre-commit checks"))
        graph.add(
            phony(
                "ci",
                prereqs=["lint", *profiles],
                action=(cmd("go", "test", "-race", "./src/..."),),
                doc="lint, per-package coverage and race-enabled tests",
            )
        )


__all__ = ["GoRecipe"]
