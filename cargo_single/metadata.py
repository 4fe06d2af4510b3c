"""Dependency metadata embedded in the leading comments of a source file."""

from __future__ import annotations

from pathlib import Path

from .logging import get_logger
from .models import DependencyBlock

LINE_PREFIX = "// "
SELF_VERSION_PREFIX = "// self = "

_LINE_PREFIX_BYTES = LINE_PREFIX.encode("ascii")

_LOGGER = get_logger("metadata")


def extract_metadata(source: Path) -> DependencyBlock:
    """Read the leading ``// `` comment run of ``source``.

    Each line contributes its remainder after the prefix to the dependency
    block, except ``// self = <version>`` lines which set the self version
    (the last one wins). The scan stops at the first line without the prefix.
    """
    block = DependencyBlock()
    with Path(source).open("rb") as handle:
        for raw in handle:
            if not raw.startswith(_LINE_PREFIX_BYTES):
                break
            line = _decode_line(raw)
            if line.startswith(SELF_VERSION_PREFIX):
                if block.self_version is not None:
                    _LOGGER.debug(
                        "%s: self version %s overrides %s",
                        source,
                        line[len(SELF_VERSION_PREFIX):],
                        block.self_version,
                    )
                block.self_version = line[len(SELF_VERSION_PREFIX):]
                continue
            block.lines.append(line[len(LINE_PREFIX):] + "\n")
    _LOGGER.debug(
        "Extracted %d dependency line(s) from %s", len(block.lines), source
    )
    return block


def _decode_line(raw: bytes) -> str:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8")


__all__ = ["LINE_PREFIX", "SELF_VERSION_PREFIX", "extract_metadata"]
