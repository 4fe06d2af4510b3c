"""Core data models shared across cargo-single components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

MANIFEST_NAME = "Cargo.toml"
SCRATCH_NAME = ".Cargo.tmp"
STAMP_NAME = ".cargo-single.json"
SOURCE_SUFFIX = ".rs"


@dataclass
class DependencyBlock:
    """Leading comment metadata extracted from a source file."""

    lines: List[str] = field(default_factory=list)
    self_version: Optional[str] = None

    def render(self) -> str:
        return "".join(self.lines)


@dataclass
class SourcePaths:
    """A resolved source file and the argument it was resolved from."""

    raw: str
    file: Path

    @property
    def shadow_root(self) -> Path:
        return self.file.with_suffix("")


@dataclass
class ShadowProject:
    """Cargo project directory standing in for a single source file."""

    root: Path
    created: bool = False
    linked: bool = True
    resynced: bool = False

    @property
    def manifest_path(self) -> Path:
        return self.root / MANIFEST_NAME

    @property
    def scratch_path(self) -> Path:
        return self.root / SCRATCH_NAME

    @property
    def stamp_path(self) -> Path:
        return self.root / STAMP_NAME

    @property
    def entry_point(self) -> Path:
        return self.root / "src" / "main.rs"

    @property
    def needs_refresh(self) -> bool:
        return self.created or self.resynced


@dataclass
class Invocation:
    """Parsed command line for a single cargo-single run."""

    command: str
    source: str
    args: List[str] = field(default_factory=list)
    toolchain: Optional[str] = None
    release: bool = False
    target: Optional[str] = None
    # None defers to the configured default.
    quiet: Optional[bool] = None
