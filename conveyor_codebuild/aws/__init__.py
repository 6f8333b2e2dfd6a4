"""AWS implementations of the build collaborators.

This module handles:
- CodeBuild as the job service
- CloudWatch Logs as the log service
- boto3 client construction (aws.session)
"""

from conveyor_codebuild.aws.codebuild import CodeBuildJobService
from conveyor_codebuild.aws.logs import CloudWatchLogService, CloudWatchLogStream

__all__ = ["CloudWatchLogService", "CloudWatchLogStream", "CodeBuildJobService"]
