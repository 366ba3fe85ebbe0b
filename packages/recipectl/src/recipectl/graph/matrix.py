from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass
from typing import Callable, Iterable

from .model import Step, Target

WINDOWS_OS = "windows"
WINDOWS_SUFFIX = ".exe"

_GOOS = {"linux": "linux", "darwin": "darwin", "win32": "windows", "cygwin": "windows", "freebsd": "freebsd", "openbsd": "openbsd"}
_GOARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


@dataclass(frozen=True)
class Platform:
    os: str
    arch: str

    @property
    def key(self) -> str:
        return f"{self.os}/{self.arch}"

    @property
    def slug(self) -> str:
        return f"{self.os}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.os == WINDOWS_OS

    def binary(self, name: str) -> str:
        return name + WINDOWS_SUFFIX if self.is_windows and not name.endswith(WINDOWS_SUFFIX) else name


def host_platform() -> Platform:
    os_key = next((v for k, v in _GOOS.items() if sys.platform.startswith(k)), sys.platform)
    machine = _platform.machine().lower()
    return Platform(os_key, _GOARCH.get(machine, machine))


def build_matrix(os_list: Iterable[str], arch_list: Iterable[str]) -> list[Platform]:
    """Cross product of the configured lists, in configured order, without repeats."""
    rows: list[Platform] = []
    archs = list(dict.fromkeys(arch_list))
    for os_name in dict.fromkeys(os_list):
        for arch in archs:
            rows.append(Platform(os_name, arch))
    return rows


ActionFactory = Callable[[Platform, str, str], "tuple[Step, ...]"]


def expand_matrix(
    os_list: Iterable[str],
    arch_list: Iterable[str],
    binary_names: Iterable[str],
    prefix: str = "",
    prereqs: Iterable[str] = (),
    order_only: Iterable[str] = (),
    action: ActionFactory | None = None,
) -> list[Target]:
    """One target per (os, arch, binary); windows binaries get `.exe`.

    `action` receives the platform, the bare binary name and the target
    name, and returns the steps building that artifact.
    """
    names = list(binary_names)
    normal = list(prereqs)
    order = list(order_only)
    targets: list[Target] = []
    for plat in build_matrix(os_list, arch_list):
        for binary in names:
            name = f"{prefix}{plat.key}/{plat.binary(binary)}"
            targets.append(
                Target(
                    name=name,
                    prereqs=list(normal),
                    order_only=list(order),
                    action=action(plat, binary, name) if action else (),
                )
            )
    return targets


__all__ = ["ActionFactory", "Platform", "WINDOWS_SUFFIX", "build_matrix", "expand_matrix", "host_platform"]
