from __future__ import annotations

import inspect
import json
import sys
from typing import TYPE_CHECKING

from .clock import utc_now_iso

if TYPE_CHECKING:
    from ..context import RunContext

_LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}


def should_log(ctx: RunContext, level: str) -> bool:
    rank = _LEVELS.get(level, 20)
    if ctx.quiet:
        return rank >= _LEVELS["error"]
    if not ctx.verbose:
        return rank >= _LEVELS["info"]
    return True


def log_event(ctx: RunContext, level: str, component: str, action: str, **fields: object) -> None:
    if not should_log(ctx, level):
        return
    caller = inspect.stack()[1]
    payload = {
        "ts": utc_now_iso(),
        "level": level,
        "run_id": ctx.run_id,
        "component": component,
        "action": action,
        "file": caller.filename,
        "line": caller.lineno,
        **fields,
    }
    if ctx.log_json:
        sys.stderr.write(json.dumps(payload, sort_keys=True, default=str) + "\n")
        return
    core = f"ts={payload['ts']} level={level} run_id={ctx.run_id} component={component} action={action}"
    extras = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
    sys.stderr.write((core if not extras else f"{core} {extras}") + "\n")


__all__ = ["log_event", "should_log"]
