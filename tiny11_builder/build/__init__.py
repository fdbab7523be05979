"""The build pipeline: one module per stage plus the orchestrator."""

from tiny11_builder.build.pipeline import run_build
from tiny11_builder.build.toolchain import Toolchain


__all__ = ["Toolchain", "run_build"]
