"""Lightweight timing instrumentation."""

from dbassert.telemetry.profiling import ProfileCollector, ProfileResult, profile_operation

__all__ = ["ProfileCollector", "ProfileResult", "profile_operation"]
