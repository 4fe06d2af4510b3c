"""Command orchestration: resolve the source, sync the project, run cargo."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from .cargo import CargoRunner
from .config import SingleConfig, load_config
from .logging import get_logger
from .manifest import rewrite_manifest
from .models import SOURCE_SUFFIX, Invocation, ShadowProject, SourcePaths
from .project import ProjectMaterializer


class SourceError(ValueError):
    """Raised when the source argument does not name a usable file."""


def resolve_source(raw: str) -> SourcePaths:
    """Resolve a file, a shadow directory or an extensionless path to a source file."""
    path = Path(raw)
    if path.is_dir():
        if not path.resolve().name:
            raise SourceError(f"{raw}: cannot derive a source file name")
        candidate = path.resolve().with_suffix(SOURCE_SUFFIX)
        if not candidate.exists():
            raise SourceError(f"{candidate}: No such file or directory")
        if not candidate.is_file():
            raise SourceError(f"{candidate}: not a regular file")
        return SourcePaths(raw=raw, file=candidate)
    if path.exists():
        if not path.is_file():
            raise SourceError(f"{raw}: not a regular file")
        return SourcePaths(raw=raw, file=path)
    if path.suffix != SOURCE_SUFFIX:
        candidate = path.with_suffix(SOURCE_SUFFIX)
        if candidate.is_file():
            return SourcePaths(raw=raw, file=candidate)
    raise SourceError(f"{raw}: No such file or directory")


class Orchestrator:
    """Runs one cargo-single invocation end to end."""

    def __init__(
        self,
        config: SingleConfig | None = None,
        cargo: CargoRunner | None = None,
        materializer: ProjectMaterializer | None = None,
    ) -> None:
        self._config = config
        self._cargo = cargo
        self._materializer = materializer
        self.logger = get_logger("orchestrator")

    def run(self, invocation: Invocation) -> int:
        """Execute ``invocation`` and return the process exit status."""
        source = resolve_source(invocation.source)
        config = self._config or load_config(source.file.parent)
        if invocation.quiet is None:
            invocation = replace(invocation, quiet=config.quiet)
        cargo = self._cargo or CargoRunner(config.cargo)
        materializer = self._materializer or ProjectMaterializer(
            cargo, quiet=invocation.quiet, link_mode=config.link_mode
        )

        project = materializer.materialize(source.file)
        if project.needs_refresh or invocation.command == "refresh":
            self.refresh(source, project, config)

        if invocation.command == "refresh":
            return 0
        returncode = cargo.run(invocation, project.manifest_path)
        if returncode < 0:
            # Terminated by a signal; no exit code to propagate.
            return 1
        return returncode

    def refresh(
        self, source: SourcePaths, project: ShadowProject, config: SingleConfig
    ) -> None:
        update = rewrite_manifest(
            source.file,
            project.manifest_path,
            project.scratch_path,
            strategy=config.manifest.strategy,
            require_header=config.manifest.require_header,
        )
        self.logger.info(
            "Refreshed %s with %d dependency line(s)",
            update.path,
            len(update.dependencies),
        )


__all__ = ["Orchestrator", "SourceError", "resolve_source"]
