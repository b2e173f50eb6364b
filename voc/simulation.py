"""
Simulation sessions.

A session resolves the project's load order exactly as the assembler does,
builds a fresh runtime and runs every fragment through the executor. No
state is shared between sessions, so independent projects can be simulated
concurrently.
"""
import logging
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from .config import settings
from .errors import UnsupportedModeFailure
from .project import ProjectDescriptor, load_fragments
from .sandbox.executor import ExecutionReport, run
from .sandbox.runtime import LogSink, RuntimeContext

logger = logging.getLogger("voc.simulation")


class SimulationOptions(BaseModel):
    environment: str = Field(default_factory=lambda: settings.DEFAULT_ENVIRONMENT)
    http_mode: Literal["stub", "real"] = Field(default_factory=lambda: settings.DEFAULT_HTTP_MODE)
    storage_mode: Literal["memory", "disk"] = Field(default_factory=lambda: settings.DEFAULT_STORAGE_MODE)
    entry_script_name: str = "main"
    timeout_ms: int = Field(default_factory=lambda: settings.SANDBOX_TIMEOUT_MS, gt=0)
    verbose: bool = False
    strict: bool = False


class SimulationSession:
    """Runs one project in a simulated Vocalls runtime."""

    def __init__(self, options: Optional[SimulationOptions] = None, log_sink: Optional[LogSink] = None):
        self.options = options or SimulationOptions()
        self.log_sink = log_sink

    def _ensure_supported_modes(self) -> None:
        if self.options.http_mode != "stub":
            raise UnsupportedModeFailure(self.options.http_mode, "HTTP")
        if self.options.storage_mode != "memory":
            raise UnsupportedModeFailure(self.options.storage_mode, "Storage")

    def execute(self, project_path: Union[str, Path]) -> ExecutionReport:
        opts = self.options
        self._ensure_supported_modes()

        project = ProjectDescriptor.from_path(project_path, entry_script_name=opts.entry_script_name)
        fragments = load_fragments(project, strict=opts.strict)
        logger.info(
            f"Simulating {project.name}: {len(fragments)} fragments, "
            f"env={opts.environment}, http={opts.http_mode}, storage={opts.storage_mode}"
        )

        context = RuntimeContext(
            environment=opts.environment,
            http_mode=opts.http_mode,
            storage_mode=opts.storage_mode,
            log_sink=self.log_sink,
            verbose=opts.verbose,
        )
        report = run(context, fragments, timeout_ms=opts.timeout_ms)
        logger.info(
            f"Simulation of {project.name} finished in {report.elapsed_ms:.1f}ms "
            f"({report.fragments_loaded} fragments, {report.http_call_count} HTTP calls)"
        )
        return report


def simulate(project_path: Union[str, Path], log_sink: Optional[LogSink] = None, **options) -> ExecutionReport:
    """Convenience wrapper: ``simulate(path, http_mode="stub", ...)``."""
    return SimulationSession(SimulationOptions(**options), log_sink=log_sink).execute(project_path)
