from __future__ import annotations

import os
from pathlib import Path

import pytest
from recipectl.configs import load_config
from recipectl.core.errors import ActionFailed
from recipectl.core.fs import FileSystem
from recipectl.graph import Command, Executor, host_platform, resolve
from recipectl.recipes import GoRecipe, load_recipe

from helpers import FakeRunner, always_found, write

PROFILE = "mode: count\nexample/src/lib/lib.go:1.1,2.2 1 1\n"


def _recipe(root: Path, gopath: Path, **overrides: str) -> GoRecipe:
    config = load_config(root, overrides, environ={})
    recipe = load_recipe(config, root, environ={"GOPATH": str(gopath)}, which=always_found)
    assert isinstance(recipe, GoRecipe)
    return recipe


def _settle(root: Path, gopath: Path) -> None:
    for path in root.rglob("*"):
        if path.is_file():
            os.utime(path, (1_000, 1_000))
    write(gopath / "bin/glide", mtime=1_000)
    write(root / "glide.lock", mtime=2_000)
    (root / "vendor").mkdir()
    os.utime(root / "vendor", (3_000, 3_000))


def test_release_matrix_targets(go_project: Path, tmp_path: Path) -> None:
    graph = _recipe(go_project, tmp_path / "gopath").build_graph()
    release = graph.get("release")
    assert release is not None and release.phony
    assert release.prereqs == [
        "artifacts/build/release/linux/amd64/app",
        "artifacts/build/release/windows/amd64/app.exe",
    ]
    win = graph.targets["artifacts/build/release/windows/amd64/app.exe"]
    build = win.action[1]
    assert isinstance(build, Command)
    assert build.env == {"CGO_ENABLED": "0", "GOOS": "windows", "GOARCH": "amd64"}
    assert win.expand(build) == [
        "go",
        "build",
        "-v",
        "-ldflags",
        "-s -w",
        "-tags",
        "release",
        "-o",
        "artifacts/build/release/windows/amd64/app.exe",
        "./src/cmd/app",
    ]
    assert "vendor" in win.prereqs and "src/cmd/app/main.go" in win.prereqs


def test_cgo_and_debug_args_follow_config(go_project: Path, tmp_path: Path) -> None:
    graph = _recipe(go_project, tmp_path / "gopath", CGO_ENABLED="yes", DEBUG_ARGS="-race -v").build_graph()
    step = graph.targets["artifacts/build/debug/linux/amd64/app"].action[1]
    assert isinstance(step, Command)
    assert step.env["CGO_ENABLED"] == "1"
    assert step.argv[:4] == ("go", "build", "-race", "-v")


def test_host_build_goal(go_project: Path, tmp_path: Path) -> None:
    graph = _recipe(go_project, tmp_path / "gopath").build_graph()
    host = host_platform()
    suffix = ".exe" if host.os == "windows" else ""
    assert graph.targets["build"].prereqs == [f"artifacts/build/debug/{host.os}/{host.arch}/app{suffix}"]


def test_archives_use_tar_and_zip(go_project: Path, tmp_path: Path) -> None:
    graph = _recipe(go_project, tmp_path / "gopath").build_graph()
    assert graph.targets["archives"].prereqs == [
        "artifacts/archives/demo-linux-amd64.tar.gz",
        "artifacts/archives/demo-windows-amd64.zip",
    ]
    zip_target = graph.targets["artifacts/archives/demo-windows-amd64.zip"]
    pack = zip_target.action[1]
    assert isinstance(pack, Command)
    assert pack.argv == ("zip", "archive.tmp", "app.exe")
    assert pack.cwd == "artifacts/build/release/windows/amd64"


def test_tools_live_in_gopath(go_project: Path, tmp_path: Path) -> None:
    gopath = tmp_path / "gopath"
    graph = _recipe(go_project, gopath).build_graph()
    glide = f"{gopath}/bin/glide"
    assert graph.targets["vendor"].order_only == [glide]
    assert graph.targets[f"{gopath}/bin/gometalinter"].precious
    assert f"{gopath}/bin/misspell" in graph.targets["artifacts/logs/lint"].order_only


def test_errcheck_uses_errignore_when_present(go_project: Path, tmp_path: Path) -> None:
    write(go_project / ".errignore", "fmt:.*\n")
    graph = _recipe(go_project, tmp_path / "gopath").build_graph()
    target = graph.targets["artifacts/logs/errcheck"]
    step = target.action[1]
    assert isinstance(step, Command)
    assert ("-exclude", ".errignore") == step.argv[2:4]
    assert ".errignore" in target.prereqs
    assert step.ignore_errors


def test_lint_log_requires_empty_gofmt_output(go_project: Path, tmp_path: Path) -> None:
    graph = _recipe(go_project, tmp_path / "gopath").build_graph()
    steps = [s for s in graph.targets["artifacts/logs/lint"].action if isinstance(s, Command)]
    fmt = next(s for s in steps if s.argv[:2] == ("go", "fmt"))
    assert fmt.fail_on_output and fmt.append
    assert steps[-1].ignore_errors
    assert not steps[0].append


def test_every_goal_resolves(go_project: Path, tmp_path: Path) -> None:
    graph = _recipe(go_project, tmp_path / "gopath").build_graph()
    fs = FileSystem(go_project)
    for name in graph.names():
        if graph.targets[name].phony:
            assert resolve(graph, name, fs).order[-1] == name


def test_coverage_merges_packages_and_tolerates_empty_profiles(go_project: Path, tmp_path: Path) -> None:
    gopath = tmp_path / "gopath"
    _settle(go_project, gopath)
    recipe = _recipe(go_project, gopath)
    graph = recipe.build_graph()
    app_profile = recipe.coverage_profile("src/cmd/app")
    lib_profile = recipe.coverage_profile("src/lib")

    def go(argv: list[str], cwd: Path) -> None:
        if argv[1] == "test" and argv[-1] == "./src/lib":
            write(cwd / lib_profile, PROFILE)
        if argv[1:3] == ["tool", "cover"] and argv[3].startswith("-html="):
            write(cwd / recipe.coverage_report, "<html/>")

    app_test = f"go test -covermode=count -coverprofile={app_profile} ./src/cmd/app"
    runner = FakeRunner(results={app_test: 1}, effects={"go": go})
    plan = resolve(graph, "coverage", FileSystem(go_project))
    assert "vendor" not in plan.names
    result = Executor(go_project, runner=runner, env=recipe.action_env(), which=always_found).execute(plan)
    assert result.ok
    assert (go_project / app_profile).read_text(encoding="utf-8") == ""
    merged = go_project / "artifacts/tests/coverage/merged.cover.out"
    assert merged.read_text(encoding="utf-8") == PROFILE
    assert (go_project / recipe.coverage_report).exists()
    assert all(env["GOPATH"] == str(gopath) for _argv, _cwd, env in runner.calls)


def test_failed_test_goal_surfaces_exit_code(go_project: Path, tmp_path: Path) -> None:
    gopath = tmp_path / "gopath"
    _settle(go_project, gopath)
    recipe = _recipe(go_project, gopath, TEST_ARGS="-run TestX")
    runner = FakeRunner(results={"go": 3})
    with pytest.raises(ActionFailed) as err:
        Executor(go_project, runner=runner, which=always_found).execute(resolve(recipe.build_graph(), "test", FileSystem(go_project)))
    assert err.value.target == "test"
    assert err.value.exit_code == 3
    assert runner.argvs == [["go", "test", "-run", "TestX", "./src/..."]]
