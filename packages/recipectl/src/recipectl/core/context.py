from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .repo_root import find_project_root
from .runtime.clock import utc_run_stamp
from .runtime.env import getenv

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    project_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool

    @property
    def as_json(self) -> bool:
        return self.output_format == "json"

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        cwd: str | Path | None = None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        project_root = find_project_root(Path(cwd) if cwd else None)
        resolved_run_id = run_id or getenv("RUN_ID") or f"recipectl-{utc_run_stamp()}"
        return cls(
            run_id=resolved_run_id,
            project_root=project_root,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
        )
