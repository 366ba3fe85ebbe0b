"""CLI payload output helpers."""

from __future__ import annotations

from ..core.runtime.serialize import dumps_json


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def build_base_payload(ctx, status: str = "ok") -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "recipectl",
        "status": status,
        "run_id": ctx.run_id,
        "project_root": str(ctx.project_root),
        "format": ctx.output_format,
    }


def resolve_output_format(*, cli_json: bool, cli_format: str | None, env_format: str | None) -> str:
    if cli_json:
        return "json"
    if cli_format:
        return cli_format
    return "json" if (env_format or "").strip().lower() == "json" else "text"


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error") -> str:
    if as_json:
        return dumps_json(
            {
                "schema_name": "recipectl.error.v1",
                "schema_version": 1,
                "tool": "recipectl",
                "status": "error",
                "errors": [{"code": code, "kind": kind, "message": message}],
            },
            pretty=False,
        )
    return f"recipectl: {message}"
