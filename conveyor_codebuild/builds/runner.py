"""Build runner for starting remote builds and streaming their logs.

This module handles:
- Composing the job service project name from a repository
- Starting the build through a JobService
- Opening the build log through a LogService
- Copying log bytes to the caller's output sink until the log ends

The runner performs at most one start request per call and never retries.
A failure after the build started leaves the remote build running.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, BinaryIO, Protocol

from conveyor_codebuild.types import BuildErrorKind, BuildPhase

if TYPE_CHECKING:
    from conveyor_codebuild.builds.models import BuildOptions, JobDescriptor

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_PREFIX = "conveyor"


class LogStream(Protocol):
    """Ordered chunks of log output for a single build."""

    def __iter__(self) -> Iterator[bytes]: ...

    def close(self) -> None: ...


class JobService(Protocol):
    """Starts named build jobs."""

    def start(self, project_name: str, source_version: str) -> JobDescriptor: ...


class LogService(Protocol):
    """Opens build log streams by group and stream name."""

    def open(
        self,
        log_group_name: str,
        log_stream_name: str,
        until: Callable[[], bool] | None = None,
    ) -> LogStream: ...


class BuildError(Exception):
    """Raised when a build run fails.

    Attributes:
        kind: Phase that failed.
        code: Stable error code (the kind's value).
        options: Options of the failed run.
    """

    def __init__(
        self,
        kind: BuildErrorKind,
        message: str,
        options: BuildOptions | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.code = kind.value
        self.options = options


def compose_project_name(
    repository: str, prefix: str = DEFAULT_PROJECT_PREFIX
) -> str:
    """Compose the job service project name for a repository.

    Args:
        repository: Source repository identifier.
        prefix: Project name prefix.

    Returns:
        Project name of the form '<prefix>-<repository>'.
    """
    return f"{prefix}-{repository}"


def compose_build_identifier(options: BuildOptions) -> str:
    """Compose the identifier returned for a successful build."""
    return f"{options.repository}:{options.sha}"


class BuildRunner:
    """Runs builds on a job service and streams their logs.

    Args:
        job_service: Service used to start builds.
        log_service: Service used to open build logs.
        project_prefix: Prefix for the project name of each repository.
    """

    def __init__(
        self,
        job_service: JobService,
        log_service: LogService,
        project_prefix: str = DEFAULT_PROJECT_PREFIX,
    ) -> None:
        self.job_service = job_service
        self.log_service = log_service
        self.project_prefix = project_prefix

    def run(self, out: BinaryIO, options: BuildOptions) -> str:
        """Start a build and copy its log output to ``out``.

        Blocks until the build log ends. Every call starts a new remote
        build, even for identical options.

        Args:
            out: Binary sink for log bytes.
            options: Repository and revision to build.

        Returns:
            Build identifier '<repository>:<sha>'.

        Raises:
            BuildError: If the build cannot be started, its log cannot be
                opened, or copying the log fails.
        """
        project_name = compose_project_name(options.repository, self.project_prefix)
        phase = BuildPhase.NOT_STARTED

        logger.info("Starting build of %s at %s", project_name, options.sha)
        try:
            job = self.job_service.start(project_name, options.sha)
        except Exception as e:
            # TODO: create the project and retry once when it does not exist.
            self._fail(phase, project_name)
            raise BuildError(
                BuildErrorKind.START_FAILED,
                f"unable to start build: {e}",
                options,
            ) from e
        phase = self._advance(phase, BuildPhase.STARTED, project_name)
        logger.info("Started build %s", job.build_id)

        phase = self._advance(phase, BuildPhase.LOGS_OPENING, project_name)
        try:
            if not job.has_log_location:
                raise ValueError(f"build {job.build_id} has no log location")
            stream = self.log_service.open(
                job.log_group_name,  # type: ignore[arg-type]
                job.log_stream_name,  # type: ignore[arg-type]
                until=job.is_complete,
            )
        except Exception as e:
            self._fail(phase, project_name)
            raise BuildError(
                BuildErrorKind.LOG_OPEN_FAILED,
                f"unable to open log stream: {e}",
                options,
            ) from e

        phase = self._advance(phase, BuildPhase.STREAMING, project_name)
        logger.debug(
            "Streaming logs from %s/%s", job.log_group_name, job.log_stream_name
        )
        written = 0
        try:
            for chunk in stream:
                out.write(chunk)
                written += len(chunk)
        except Exception as e:
            self._fail(phase, project_name)
            raise BuildError(
                BuildErrorKind.STREAM_COPY_FAILED,
                f"unable to stream logs: {e}",
                options,
            ) from e
        finally:
            stream.close()

        self._advance(phase, BuildPhase.DONE, project_name)
        logger.info("Build %s finished, %d log bytes copied", job.build_id, written)
        return compose_build_identifier(options)

    @staticmethod
    def _advance(
        current: BuildPhase, new: BuildPhase, project_name: str
    ) -> BuildPhase:
        logger.debug("%s: %s -> %s", project_name, current.value, new.value)
        return new

    @classmethod
    def _fail(cls, current: BuildPhase, project_name: str) -> None:
        logger.error("%s: build failed during %s phase", project_name, current.value)
        cls._advance(current, BuildPhase.FAILED, project_name)


__all__ = [
    "DEFAULT_PROJECT_PREFIX",
    "BuildError",
    "BuildRunner",
    "JobService",
    "LogService",
    "LogStream",
    "compose_build_identifier",
    "compose_project_name",
]
