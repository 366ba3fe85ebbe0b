"""Shared core models and types."""

from .results import ExitCode, TargetOutcome

__all__ = ["ExitCode", "TargetOutcome"]
