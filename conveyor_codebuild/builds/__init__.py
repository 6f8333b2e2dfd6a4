"""Build runs.

This module handles:
- Composing CodeBuild project names from repositories
- Starting builds through a job service
- Streaming build logs to a caller-supplied sink
"""

from conveyor_codebuild.builds.models import BuildOptions, JobDescriptor
from conveyor_codebuild.builds.runner import BuildError, BuildRunner

__all__ = ["BuildError", "BuildOptions", "BuildRunner", "JobDescriptor"]
