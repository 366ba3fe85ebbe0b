from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from .schemas import schemas_root


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    version: int
    file: str


_SCHEMA_FILE_RE = re.compile(r"^(recipectl\.[a-z0-9][a-z0-9._-]*\.v([1-9][0-9]*))\.schema\.json$")


def catalog_path() -> Path:
    return schemas_root() / "catalog.json"


def _raw_catalog() -> dict[str, object]:
    return json.loads(catalog_path().read_text(encoding="utf-8"))


def list_catalog_entries() -> list[CatalogEntry]:
    rows: list[CatalogEntry] = []
    for row in _raw_catalog().get("schemas", []):  # type: ignore[union-attr]
        name = str(row.get("name", "")).strip()
        file_name = str(row.get("file", "")).strip()
        if not name or not file_name:
            continue
        rows.append(CatalogEntry(name=name, version=int(row["version"]), file=file_name))
    return rows


def load_catalog() -> dict[str, CatalogEntry]:
    return {row.name: row for row in list_catalog_entries()}


def lint_catalog() -> list[str]:
    errors: list[str] = []
    entries = list_catalog_entries()
    names = [e.name for e in entries]
    if names != sorted(names):
        errors.append("schema catalog order must be sorted by schema name")
    for entry in entries:
        match = _SCHEMA_FILE_RE.match(entry.file)
        if not match or match.group(1) != entry.name:
            errors.append(f"schema file name does not match catalog entry: {entry.file}")
            continue
        if int(match.group(2)) != entry.version:
            errors.append(f"schema version mismatch for {entry.name}: {entry.version}")
        if not (schemas_root() / entry.file).is_file():
            errors.append(f"schema file missing: {entry.file}")
    return errors
