"""Merging of per-unit report files (coverage profiles, logs)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

_MODE_PREFIX = "mode:"
_BLOCK_RE = re.compile(r"^(?P<file>.+):(?P<sl>\d+)\.(?P<sc>\d+),(?P<el>\d+)\.(?P<ec>\d+) (?P<stmts>\d+) (?P<count>\d+)$")

BlockKey = tuple[str, int, int, int, int, int]


def _is_cover_profile(text: str) -> bool:
    return text.lstrip().startswith(_MODE_PREFIX)


def merge_cover_profiles(texts: Iterable[str]) -> str:
    """Merge Go coverage profiles the way gocovmerge does.

    Identical blocks are combined: counts are summed for `count` and
    `atomic` mode, and max'ed for `set` mode.
    """
    mode: str | None = None
    blocks: dict[BlockKey, int] = {}
    for text in texts:
        lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
        if not lines:
            continue
        header = lines[0]
        if not header.startswith(_MODE_PREFIX):
            raise ValueError(f"coverage profile is missing its mode line: {header!r}")
        current = header[len(_MODE_PREFIX):].strip()
        if mode is None:
            mode = current
        elif mode != current:
            raise ValueError(f"cannot merge coverage profiles with different modes: {mode} != {current}")
        for line in lines[1:]:
            m = _BLOCK_RE.match(line)
            if not m:
                raise ValueError(f"malformed coverage block: {line!r}")
            key = (
                m.group("file"),
                int(m.group("sl")),
                int(m.group("sc")),
                int(m.group("el")),
                int(m.group("ec")),
                int(m.group("stmts")),
            )
            count = int(m.group("count"))
            if key in blocks:
                blocks[key] = max(blocks[key], count) if mode == "set" else blocks[key] + count
            else:
                blocks[key] = count
    if mode is None:
        return ""
    out = [f"{_MODE_PREFIX} {mode}"]
    for (file, sl, sc, el, ec, stmts), count in sorted(blocks.items()):
        out.append(f"{file}:{sl}.{sc},{el}.{ec} {stmts} {count}")
    return "\n".join(out) + "\n"


def merge_reports(paths: Iterable[Path], out: Path) -> Path:
    """Merge report files into `out`, skipping empty placeholders.

    Coverage profiles are merged block-wise; anything else is concatenated.
    """
    texts: list[str] = []
    for path in paths:
        text = path.read_text(encoding="utf-8") if path.exists() else ""
        if text.strip():
            texts.append(text)
    out.parent.mkdir(parents=True, exist_ok=True)
    if texts and all(_is_cover_profile(t) for t in texts):
        merged = merge_cover_profiles(texts)
    else:
        merged = "".join(t if t.endswith("\n") else t + "\n" for t in texts)
    out.write_text(merged, encoding="utf-8")
    return out


__all__ = ["merge_cover_profiles", "merge_reports"]
