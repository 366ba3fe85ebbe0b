from __future__ import annotations

import socket
from pathlib import Path

import pytest
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[3]
_HYPOTHESIS_DB = _ROOT / "artifacts/recipectl/.hypothesis/examples"
_HYPOTHESIS_DB.parent.mkdir(parents=True, exist_ok=True)
settings.register_profile("recipectl", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB))
settings.load_profile("recipectl")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("RUN_ID", "RECIPECTL_FORMAT", "RECIPECTL_MATRIX_OS", "RECIPECTL_MATRIX_ARCH", "RECIPECTL_TEST_ARGS"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def go_project(tmp_path: Path) -> Path:
    root = tmp_path / "goproj"
    (root / "src/cmd/app").mkdir(parents=True)
    (root / "src/lib").mkdir(parents=True)
    (root / "src/cmd/app/main.go").write_text("package main\n", encoding="utf-8")
    (root / "src/lib/lib.go").write_text("package lib\n", encoding="utf-8")
    (root / "glide.yaml").write_text("package: example\n", encoding="utf-8")
    (root / "recipectl.yaml").write_text(
        "recipe: go\nproject_name: demo\nmatrix:\n  os: [linux, windows]\n  arch: [amd64]\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def php_project(tmp_path: Path) -> Path:
    root = tmp_path / "phpproj"
    (root / "src").mkdir(parents=True)
    (root / "test/etc").mkdir(parents=True)
    (root / "src/Thing.php").write_text("<?php\n", encoding="utf-8")
    (root / "test/ThingTest.php").write_text("<?php\n", encoding="utf-8")
    (root / "composer.json").write_text("{}\n", encoding="utf-8")
    return root
