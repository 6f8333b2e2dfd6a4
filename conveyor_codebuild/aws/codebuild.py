"""CodeBuild job service.

This module handles:
- Starting CodeBuild builds for a project and source version
- Resolving the CloudWatch Logs location of a started build
- Reporting whether a build has completed
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from conveyor_codebuild.builds.models import JobDescriptor

logger = logging.getLogger(__name__)


class CodeBuildJobService:
    """JobService backed by AWS CodeBuild.

    StartBuild and BatchGetBuilds may use different clients: the start
    client should not retry, while status lookups are safe to repeat.

    Args:
        client: boto3 'codebuild' client used for StartBuild.
        status_client: boto3 'codebuild' client used for BatchGetBuilds
            (defaults to ``client``).
        log_location_timeout: Seconds to wait for CodeBuild to report the
            log location of a build that was just started.
        poll_interval: Seconds between lookups while waiting.
        sleep: Sleep function (replaceable in tests).
    """

    def __init__(
        self,
        client: Any,
        status_client: Any | None = None,
        log_location_timeout: float = 60,
        poll_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.status_client = status_client if status_client is not None else client
        self.log_location_timeout = log_location_timeout
        self.poll_interval = poll_interval
        self._sleep = sleep

    def start(self, project_name: str, source_version: str) -> JobDescriptor:
        """Start a build.

        Sends exactly one StartBuild request. Errors from it propagate.

        Args:
            project_name: CodeBuild project to build.
            source_version: Revision to build.

        Returns:
            JobDescriptor for the started build.
        """
        resp = self.client.start_build(
            projectName=project_name,
            sourceVersion=source_version,
        )
        build = resp["build"]
        build_id = build["id"]
        logger.debug("CodeBuild started %s for %s", build_id, project_name)

        group, stream = _log_location(build)
        if not (group and stream):
            group, stream = self._wait_for_log_location(build_id)

        return JobDescriptor(
            build_id=build_id,
            project_name=project_name,
            source_version=source_version,
            log_group_name=group,
            log_stream_name=stream,
            is_complete=lambda: self.is_build_complete(build_id),
        )

    def describe_build(self, build_id: str) -> dict[str, Any]:
        """Return the CodeBuild description of a build.

        Raises:
            LookupError: If CodeBuild does not know the build.
        """
        resp = self.status_client.batch_get_builds(ids=[build_id])
        builds = resp.get("builds", [])
        if not builds:
            raise LookupError(f"CodeBuild build not found: {build_id}")
        return builds[0]

    def is_build_complete(self, build_id: str) -> bool:
        """Whether the build has reached a terminal status.

        A failed lookup counts as not complete; the next poll asks again.
        """
        try:
            build = self.describe_build(build_id)
        except (BotoCoreError, ClientError) as e:
            logger.warning("Unable to check status of %s: %s", build_id, e)
            return False
        return bool(build.get("buildComplete", False))

    def _wait_for_log_location(
        self, build_id: str
    ) -> tuple[str | None, str | None]:
        # The build already started, so lookup errors only leave the
        # location unknown.
        deadline = time.monotonic() + self.log_location_timeout
        while True:
            build: dict[str, Any] | None = None
            try:
                build = self.describe_build(build_id)
            except LookupError as e:
                logger.warning("Unable to look up logs of %s: %s", build_id, e)
                return None, None
            except (BotoCoreError, ClientError) as e:
                logger.warning("Unable to look up logs of %s: %s", build_id, e)

            if build is not None:
                group, stream = _log_location(build)
                if group and stream:
                    return group, stream
                if build.get("buildComplete", False):
                    logger.warning(
                        "Build %s completed without a log stream", build_id
                    )
                    return None, None
            if time.monotonic() >= deadline:
                logger.warning(
                    "Timed out after %ss waiting for logs of %s",
                    self.log_location_timeout,
                    build_id,
                )
                return None, None
            self._sleep(self.poll_interval)


def _log_location(build: dict[str, Any]) -> tuple[str | None, str | None]:
    logs = build.get("logs") or {}
    return logs.get("groupName"), logs.get("streamName")


__all__ = ["CodeBuildJobService"]
