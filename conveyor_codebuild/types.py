"""Shared type definitions for conveyor_codebuild.

This module contains enums shared across subpackages to avoid circular
imports.
"""

from enum import Enum


class BuildErrorKind(str, Enum):
    """Phase in which a build run failed."""

    START_FAILED = "start_failed"
    LOG_OPEN_FAILED = "log_open_failed"
    STREAM_COPY_FAILED = "stream_copy_failed"


class BuildPhase(str, Enum):
    """Progress of a single build run.

    Phases only move forward:
    not_started -> started -> logs_opening -> streaming -> done | failed.
    """

    NOT_STARTED = "not_started"
    STARTED = "started"
    LOGS_OPENING = "logs_opening"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


__all__ = [
    "BuildErrorKind",
    "BuildPhase",
]
