"""Recipectl core package."""
from .context import RunContext
from .errors import ScriptError
from .fs import FileSystem, ensure_artifact_path
from .repo_root import find_project_root
from .runtime.clock import utc_now_iso
from .runtime.logging import log_event
from .runtime.serialize import dumps_json

__all__ = [
    "FileSystem",
    "RunContext",
    "ScriptError",
    "dumps_json",
    "ensure_artifact_path",
    "find_project_root",
    "log_event",
    "utc_now_iso",
]
