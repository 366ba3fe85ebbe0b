"""Recipectl output and config contracts."""
from __future__ import annotations

from .schema.validate import validate, validate_file
from .validate_self import validate_self

CONFIG = "recipectl.config.v1"
RUN_REPORT = "recipectl.run.v1"
PLAN_REPORT = "recipectl.plan.v1"

__all__ = ["CONFIG", "PLAN_REPORT", "RUN_REPORT", "validate", "validate_file", "validate_self"]
