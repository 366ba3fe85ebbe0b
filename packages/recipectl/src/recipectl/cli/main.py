from __future__ import annotations

import argparse
import platform
import sys

from .. import __version__
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.model.results import ExitCode
from ..core.runtime.env import getenv
from ..core.runtime.logging import log_event
from ..make.command import run_make_command
from .output import build_base_payload, emit, render_error, resolve_output_format

BUILD_COMMANDS = ("run", "plan", "graph", "targets", "matrix", "config")


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="override a config value (e.g. --set matrix-os='linux windows')",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="recipectl", description="build recipes for Go and PHP projects")
    p.add_argument("--version", action="version", version=f"recipectl {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--run-id", help="run identifier for logs and reports")
    p.add_argument("--cwd", help="run from an explicit project directory")
    p.add_argument("--log-json", action="store_true", help="emit structured log lines as JSON")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable debug log events")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("run", help="bring goals up to date (default: the configured default goal)")
    run_p.add_argument("goals", nargs="*")
    run_p.add_argument("--dry-run", action="store_true", help="print the execution plan and exit")
    run_p.add_argument("--report-file", help="write the run report under the artifacts directory")
    _add_common(run_p)

    plan_p = sub.add_parser("plan", help="print stale targets in execution order")
    plan_p.add_argument("goals", nargs="*")
    _add_common(plan_p)

    graph_p = sub.add_parser("graph", help="render the prerequisite tree of a goal")
    graph_p.add_argument("goal", nargs="?")
    _add_common(graph_p)

    targets_p = sub.add_parser("targets", help="list declared goals")
    targets_p.add_argument("--all", action="store_true", help="include file targets")
    _add_common(targets_p)

    matrix_p = sub.add_parser("matrix", help="print the platform matrix and release targets")
    _add_common(matrix_p)

    config_p = sub.add_parser("config", help="dump the effective configuration")
    _add_common(config_p)

    version_p = sub.add_parser("version", help="print version information")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")
    return p


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    p = build_parser()
    ns = p.parse_args(raw_argv)
    if ns.format and "--json" in raw_argv and ns.format != "json":
        print(render_error(as_json=False, message="conflicting output flags: use either --format json or --json", code=int(ExitCode.USAGE)), file=sys.stderr)
        return int(ExitCode.USAGE)
    fmt = resolve_output_format(cli_json=("--json" in raw_argv), cli_format=ns.format, env_format=getenv("RECIPECTL_FORMAT"))
    ctx = RunContext.from_args(
        ns.run_id,
        ns.cwd,
        fmt,  # type: ignore[arg-type]
        ns.verbose,
        ns.quiet,
        ns.log_json,
    )
    try:
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format, project_root=ctx.project_root)
        if ns.cmd == "version":
            emit(
                {
                    **build_base_payload(ctx),
                    "recipectl_version": __version__,
                    "python_version": platform.python_version(),
                },
                ctx.as_json,
            )
            return 0
        if ns.cmd in BUILD_COMMANDS:
            return run_make_command(ctx, ns)
        return int(ExitCode.USAGE)
    except ScriptError as exc:
        print(render_error(as_json=ctx.as_json, message=str(exc), code=exc.code, kind=exc.kind), file=sys.stderr)
        return exc.code
    except KeyboardInterrupt:
        print(render_error(as_json=ctx.as_json, message="interrupted", code=int(ExitCode.INTERRUPTED), kind="interrupted"), file=sys.stderr)
        return int(ExitCode.INTERRUPTED)
    except Exception as exc:  # pragma: no cover
        print(
            render_error(as_json=ctx.as_json, message=f"internal error: {exc}", code=int(ExitCode.INTERNAL), kind="internal"),
            file=sys.stderr,
        )
        return int(ExitCode.INTERNAL)


if __name__ == "__main__":
    raise SystemExit(main())
