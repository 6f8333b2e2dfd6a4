"""Entry point for ``python -m conveyor_codebuild``."""

from conveyor_codebuild.cli import app

if __name__ == "__main__":
    app()
