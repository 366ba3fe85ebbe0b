"""Centralized environment variable helpers."""

from __future__ import annotations

import os

ENV_PREFIX = "RECIPECTL_"


def getenv(name: str, default: str | None = None) -> str | None:
    return os.environ.get(name, default)


def prefixed_overrides(prefix: str = ENV_PREFIX) -> dict[str, str]:
    return {key[len(prefix):]: value for key, value in os.environ.items() if key.startswith(prefix) and len(key) > len(prefix)}


__all__ = ["ENV_PREFIX", "getenv", "prefixed_overrides"]
