"""Load `recipectl.yaml`, apply environment and CLI overrides.

Precedence, lowest first: built-in defaults, the project file,
`RECIPECTL_<KEY>` environment variables, `--set KEY=VALUE` options. This
mirrors `VAR ?= default` in an included Makefile, where the including
project and the environment both win over the recipe's defaults.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from ..contracts import CONFIG, validate
from ..core.errors import ConfigError, ScriptError
from ..core.repo_root import CONFIG_FILE_NAME
from ..core.runtime.env import ENV_PREFIX, prefixed_overrides
from ..graph.matrix import host_platform

DEFAULT_DEBUG_ARGS = ("-v",)
DEFAULT_RELEASE_ARGS = ("-v", "-ldflags", "-s -w", "-tags", "release")

_LIST_KEYS = frozenset({"MATRIX_OS", "MATRIX_ARCH"})
_ARG_KEYS = frozenset({"DEBUG_ARGS", "RELEASE_ARGS", "TEST_ARGS", "REQ", "USE"})
_BOOL_KEYS = frozenset({"CGO_ENABLED"})
_STR_KEYS = frozenset({"RECIPE", "PROJECT_NAME", "DEFAULT_GOAL", "ARTIFACTS_DIR"})
CONFIG_KEYS = tuple(sorted(_LIST_KEYS | _ARG_KEYS | _BOOL_KEYS | _STR_KEYS))
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def normalize_config_key(raw: str) -> str:
    value = raw.strip().replace("-", "_").replace(".", "_").upper()
    if not re.fullmatch(r"[A-Z][A-Z0-9_]*", value):
        raise ValueError(f"invalid config key: {raw}")
    return value


@dataclass(frozen=True)
class RecipeConfig:
    recipe: str
    project_name: str
    default_goal: str
    artifacts_dir: str
    matrix_os: tuple[str, ...]
    matrix_arch: tuple[str, ...]
    cgo_enabled: bool
    debug_args: tuple[str, ...]
    release_args: tuple[str, ...]
    test_args: tuple[str, ...]
    req: tuple[str, ...]
    use: tuple[str, ...]
    source: str | None = None

    def to_payload(self) -> dict[str, object]:
        payload = asdict(self)
        return {key: (list(value) if isinstance(value, tuple) else value) for key, value in payload.items()}


def parse_assignments(items: Iterable[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in items:
        if "=" not in item:
            raise ConfigError(f"expected KEY=VALUE, got `{item}`")
        key, value = item.split("=", 1)
        try:
            normalized = normalize_config_key(key)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        if normalized not in CONFIG_KEYS:
            raise ConfigError(f"unknown config key: {key} (known: {', '.join(CONFIG_KEYS)})")
        out[normalized] = value
    return out


def _read_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid yaml in {path.name}: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the top level")
    try:
        validate(CONFIG, raw)
    except ScriptError as exc:
        raise ConfigError(f"{path.name}: {exc}") from exc
    return raw


def _flatten(raw: Mapping[str, Any]) -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        if key == "matrix":
            for sub, sub_value in dict(value).items():
                flat[f"MATRIX_{sub.upper()}"] = sub_value
            continue
        flat[key.upper()] = value
    return flat


def _unflatten(flat: Mapping[str, Any]) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    for key, value in flat.items():
        if key.startswith("MATRIX_"):
            doc.setdefault("matrix", {})[key[len("MATRIX_"):].lower()] = value
            continue
        doc[key.lower()] = value
    return doc


def _coerce(key: str, value: str) -> Any:
    if key in _LIST_KEYS:
        items = value.split()
        if not items:
            raise ConfigError(f"{key} must not be empty")
        return items
    if key in _ARG_KEYS:
        try:
            return shlex.split(value)
        except ValueError as exc:
            raise ConfigError(f"cannot parse {key}: {exc}") from exc
    if key in _BOOL_KEYS:
        low = value.strip().lower()
        if low in _TRUE:
            return True
        if low in _FALSE:
            return False
        raise ConfigError(f"{key} must be a boolean, got `{value}`")
    return value


def detect_recipe(project_root: Path) -> str:
    src = project_root / "src"
    has_src = src.is_dir()
    if (project_root / "glide.yaml").exists() or (has_src and any(src.rglob("*.go"))):
        return "go"
    if (project_root / "composer.json").exists() or (has_src and any(src.rglob("*.php"))):
        return "php"
    raise ConfigError(f"cannot detect recipe for {project_root}; set `recipe: go|php` in {CONFIG_FILE_NAME}")


def load_config(
    project_root: Path,
    overrides: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> RecipeConfig:
    path = project_root / CONFIG_FILE_NAME
    values = _flatten(_read_file(path))
    env_values = prefixed_overrides() if environ is None else {
        key[len(ENV_PREFIX):]: value for key, value in environ.items() if key.startswith(ENV_PREFIX)
    }
    for key, raw in env_values.items():
        if key in CONFIG_KEYS:
            values[key] = _coerce(key, raw)
    for key, raw in (overrides or {}).items():
        values[key] = _coerce(key, raw)
    try:
        validate(CONFIG, _unflatten(values))
    except ScriptError as exc:
        raise ConfigError(f"invalid override: {exc}") from exc

    host = host_platform()
    recipe = str(values.get("RECIPE") or detect_recipe(project_root))
    return RecipeConfig(
        recipe=recipe,
        project_name=str(values.get("PROJECT_NAME") or project_root.name),
        default_goal=str(values.get("DEFAULT_GOAL") or "test"),
        artifacts_dir=str(values.get("ARTIFACTS_DIR") or "artifacts"),
        matrix_os=tuple(values.get("MATRIX_OS") or (host.os,)),
        matrix_arch=tuple(values.get("MATRIX_ARCH") or (host.arch,)),
        cgo_enabled=bool(values.get("CGO_ENABLED", False)),
        debug_args=tuple(values.get("DEBUG_ARGS", DEFAULT_DEBUG_ARGS)),
        release_args=tuple(values.get("RELEASE_ARGS", DEFAULT_RELEASE_ARGS)),
        test_args=tuple(values.get("TEST_ARGS", ())),
        req=tuple(values.get("REQ", ())),
        use=tuple(values.get("USE", ())),
        source=(CONFIG_FILE_NAME if path.is_file() else None),
    )


__all__ = ["CONFIG_KEYS", "RecipeConfig", "detect_recipe", "load_config", "normalize_config_key", "parse_assignments"]
