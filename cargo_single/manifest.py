"""Atomic rewriting of the shadow project's Cargo manifest."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, TextIO

from .logging import get_logger
from .metadata import extract_metadata

DEPENDENCIES_HEADER = "[dependencies]"
VERSION_PREFIX = "version = "
STRATEGIES = ("truncate", "section")

_LOGGER = get_logger("manifest")


class ManifestError(RuntimeError):
    """Raised when the manifest cannot be rewritten consistently."""


@dataclass(frozen=True)
class ManifestUpdate:
    """Summary of a completed manifest rewrite."""

    path: Path
    dependencies: List[str]
    self_version: Optional[str]
    version_dropped: bool
    header_found: bool
    changed: bool


def rewrite_manifest(
    source: Path,
    manifest_path: Path,
    scratch_path: Path,
    *,
    strategy: str = "truncate",
    require_header: bool = True,
) -> ManifestUpdate:
    """Splice the dependency block of ``source`` into ``manifest_path``.

    The result is written to ``scratch_path`` and renamed over the manifest,
    so readers only ever see the old or the new file. With the ``truncate``
    strategy everything after ``[dependencies]`` is replaced by the block;
    with ``section`` only the lines up to the next table header are.
    """
    if strategy not in STRATEGIES:
        raise ManifestError(f"Unknown manifest strategy: {strategy!r}")

    try:
        block = extract_metadata(source)
    except UnicodeDecodeError as exc:
        raise ManifestError(
            f"{source}: dependency comment is not valid UTF-8 ({exc.reason})"
        ) from exc
    manifest_path = Path(manifest_path)
    scratch_path = Path(scratch_path)

    original = manifest_path.read_bytes()
    try:
        lines = _split_lines(original.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ManifestError(
            f"{manifest_path}: not valid UTF-8 ({exc.reason})"
        ) from exc

    version_dropped = False
    header_found = False
    try:
        with scratch_path.open("w", encoding="utf-8", newline="\n") as scratch:
            line_iter = iter(lines)
            for line in line_iter:
                if line.startswith(VERSION_PREFIX):
                    if block.self_version is None:
                        version_dropped = True
                        continue
                    line = f"{VERSION_PREFIX}{block.self_version}"
                scratch.write(line + "\n")
                if line == DEPENDENCIES_HEADER:
                    header_found = True
                    scratch.write(block.render())
                    if strategy == "section":
                        _copy_after_section(line_iter, scratch, block.lines)
                    break

            if not header_found and require_header:
                raise ManifestError(
                    f"{manifest_path}: no {DEPENDENCIES_HEADER} header found"
                )
            scratch.flush()
            os.fsync(scratch.fileno())
        if not header_found:
            _LOGGER.warning(
                "%s has no %s header; dependencies were not written",
                manifest_path,
                DEPENDENCIES_HEADER,
            )
        updated = scratch_path.read_bytes()
        os.replace(scratch_path, manifest_path)
    except BaseException:
        _discard(scratch_path)
        raise

    changed = updated != original
    _LOGGER.debug(
        "Rewrote %s (%d dependency line(s), changed=%s)",
        manifest_path,
        len(block.lines),
        changed,
    )
    return ManifestUpdate(
        path=manifest_path,
        dependencies=[line.rstrip("\n") for line in block.lines],
        self_version=block.self_version,
        version_dropped=version_dropped,
        header_found=header_found,
        changed=changed,
    )


def _split_lines(text: str) -> List[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _copy_after_section(
    lines: Iterator[str], scratch: TextIO, block_lines: List[str]
) -> None:
    """Skip the old dependency entries and copy the tables that follow.

    Table headers that the block itself declares belong to the region written
    by an earlier run and are skipped along with it.
    """
    own_headers = {line.rstrip("\n") for line in block_lines if line.startswith("[")}
    skipping = True
    for line in lines:
        if skipping and line.startswith("[") and line not in own_headers:
            skipping = False
            # Keep one blank line between the new block and the next table.
            scratch.write("\n")
        if not skipping:
            scratch.write(line + "\n")


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


__all__ = [
    "DEPENDENCIES_HEADER",
    "ManifestError",
    "ManifestUpdate",
    "STRATEGIES",
    "VERSION_PREFIX",
    "rewrite_manifest",
]
