"""Models for build runs.

BuildOptions is the caller-supplied input of a run; JobDescriptor is what a
job service hands back after starting a build.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BuildOptions(BaseModel):
    """Options for a single build.

    Attributes:
        repository: Identifier of the source repository (e.g. 'remind101/acme-inc').
        sha: Source revision to build.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    repository: str = Field(description="Source repository identifier")
    sha: str = Field(description="Source revision (commit SHA)")

    @field_validator("repository", "sha")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty and whitespace-only values."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v


@dataclass(frozen=True)
class JobDescriptor:
    """A started remote build job.

    Attributes:
        build_id: Job service identifier of the build.
        project_name: Project the build was started for.
        source_version: Revision the build was started with.
        log_group_name: Log group the build writes to, if known.
        log_stream_name: Log stream the build writes to, if known.
        is_complete: Optional check returning True once the build finished.
    """

    build_id: str
    project_name: str
    source_version: str
    log_group_name: str | None = None
    log_stream_name: str | None = None
    is_complete: Callable[[], bool] | None = field(
        default=None, compare=False, repr=False
    )

    @property
    def has_log_location(self) -> bool:
        """Whether both the log group and stream are known."""
        return bool(self.log_group_name and self.log_stream_name)


__all__ = ["BuildOptions", "JobDescriptor"]
