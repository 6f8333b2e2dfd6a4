"""boto3 session and client construction.

All AWS clients are created here from Settings and handed to the services
explicitly; nothing else in the package creates clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config

from conveyor_codebuild.aws.codebuild import CodeBuildJobService
from conveyor_codebuild.aws.logs import CloudWatchLogService
from conveyor_codebuild.builds.runner import BuildRunner

if TYPE_CHECKING:
    from conveyor_codebuild.config import Settings


def create_session(settings: Settings) -> boto3.session.Session:
    """Create a boto3 session for the configured profile and region."""
    return boto3.session.Session(
        profile_name=settings.aws_profile,
        region_name=settings.aws_region,
    )


def create_codebuild_client(session: boto3.session.Session) -> Any:
    """Create a CodeBuild client.

    SDK retries are disabled so a throttled or failed StartBuild is never
    sent twice.
    """
    return session.client(
        "codebuild",
        config=Config(retries={"total_max_attempts": 1, "mode": "standard"}),
    )


def create_codebuild_status_client(
    session: boto3.session.Session, max_attempts: int = 5
) -> Any:
    """Create a CodeBuild client for BatchGetBuilds status lookups.

    Lookups are idempotent, so this client keeps the standard retries.
    """
    return session.client(
        "codebuild",
        config=Config(retries={"total_max_attempts": max_attempts, "mode": "standard"}),
    )


def create_logs_client(session: boto3.session.Session, max_attempts: int = 5) -> Any:
    """Create a CloudWatch Logs client."""
    return session.client(
        "logs",
        config=Config(retries={"total_max_attempts": max_attempts, "mode": "standard"}),
    )


def create_runner(settings: Settings) -> BuildRunner:
    """Create a BuildRunner wired to CodeBuild and CloudWatch Logs.

    Args:
        settings: Application settings.

    Returns:
        BuildRunner ready for use.
    """
    session = create_session(settings)
    job_service = CodeBuildJobService(
        create_codebuild_client(session),
        status_client=create_codebuild_status_client(session, settings.aws_max_attempts),
        log_location_timeout=settings.log_location_timeout,
        poll_interval=settings.log_poll_interval,
    )
    log_service = CloudWatchLogService(
        create_logs_client(session, settings.aws_max_attempts),
        poll_interval=settings.log_poll_interval,
    )
    return BuildRunner(
        job_service,
        log_service,
        project_prefix=settings.project_prefix,
    )


__all__ = [
    "create_codebuild_client",
    "create_codebuild_status_client",
    "create_logs_client",
    "create_runner",
    "create_session",
]
