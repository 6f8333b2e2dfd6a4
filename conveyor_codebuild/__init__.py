"""Conveyor CodeBuild - run repository builds on AWS CodeBuild.

This package starts CodeBuild builds for a repository revision and streams
the resulting CloudWatch Logs output to a caller-supplied sink.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
