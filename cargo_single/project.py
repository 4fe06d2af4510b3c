"""Shadow project materialization next to a single source file."""

from __future__ import annotations

from pathlib import Path

from .cargo import CargoRunner
from .linking import copy_entry_point, is_stale, place_entry_point
from .logging import get_logger
from .models import ShadowProject


class MaterializeError(RuntimeError):
    """Raised when the shadow project cannot be created or reused."""


class ProjectMaterializer:
    """Creates the shadow Cargo project for a source file on first use."""

    def __init__(
        self,
        cargo: CargoRunner | None = None,
        *,
        quiet: bool = True,
        link_mode: str = "hardlink",
    ) -> None:
        self.cargo = cargo or CargoRunner()
        self.quiet = quiet
        self.link_mode = link_mode
        self.logger = get_logger("project")

    def materialize(self, source: Path) -> ShadowProject:
        """Return the shadow project for ``source``, scaffolding it if absent."""
        source = Path(source)
        project = ShadowProject(root=source.with_suffix(""))

        if project.root.exists() or project.root.is_symlink():
            if not project.root.is_dir():
                raise MaterializeError(f"{project.root}: not a directory")
            self._check_entry_point(source, project)
            return project

        self.logger.info("Creating shadow project %s", project.root)
        self.cargo.new_project(project.root, quiet=self.quiet)

        try:
            project.entry_point.unlink()
        except OSError as exc:
            raise MaterializeError(f"error removing main.rs: {exc}") from exc
        try:
            project.linked = place_entry_point(
                source, project.entry_point, project.stamp_path, self.link_mode
            )
        except OSError as exc:
            raise MaterializeError(str(exc)) from exc
        project.created = True
        return project

    def _check_entry_point(self, source: Path, project: ShadowProject) -> None:
        entry = project.entry_point
        if entry.exists() and entry.samefile(source):
            return
        if not project.stamp_path.exists():
            # Hard link broken by an editor that replaces files on save.
            self.logger.warning(
                "%s is no longer linked to %s; run `rm -r %s` to recreate it",
                entry,
                source,
                project.root,
            )
            return
        project.linked = False
        if is_stale(source, entry, project.stamp_path):
            self.logger.info("Refreshing copied entry point %s", entry)
            entry.parent.mkdir(parents=True, exist_ok=True)
            copy_entry_point(source, entry, project.stamp_path)
            project.resynced = True


__all__ = ["MaterializeError", "ProjectMaterializer"]
