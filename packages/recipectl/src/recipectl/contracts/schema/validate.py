from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from ...core.errors import ScriptError
from ...core.model.results import ExitCode
from .catalog import load_catalog
from .schemas import schemas_root


def schema_path(schema_name: str) -> Path:
    entry = load_catalog().get(schema_name)
    if entry is None:
        raise ScriptError(f"unknown schema: {schema_name}", int(ExitCode.CONFIG), kind="unknown_schema")
    return schemas_root() / entry.file


def load_schema(schema_name: str) -> dict[str, Any]:
    return json.loads(schema_path(schema_name).read_text(encoding="utf-8"))


def validate(schema_name: str, payload: Any) -> None:
    schema = load_schema(schema_name)
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise ScriptError(
            f"schema validation failed for {schema_name} at {loc}: {exc.message}",
            int(ExitCode.CONFIG),
            kind="schema_validation",
        ) from exc


def validate_file(schema_name: str, file_path: str | Path) -> None:
    payload = json.loads(Path(file_path).read_text(encoding="utf-8"))
    validate(schema_name, payload)
