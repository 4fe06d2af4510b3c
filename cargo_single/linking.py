"""Entry-point linking: hard links, with tracked copies where links fail."""

from __future__ import annotations

import errno
import hashlib
import json
import os
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

from .logging import get_logger

_STAMP_VERSION = 1
_LINK_FALLBACK_ERRNOS = {errno.EXDEV, errno.EPERM, errno.ENOTSUP, errno.EMLINK}

_LOGGER = get_logger("linking")


class LinkError(OSError):
    """Raised when the entry point cannot be linked or copied."""


def place_entry_point(source: Path, entry_point: Path, stamp: Path, mode: str) -> bool:
    """Make ``entry_point`` refer to ``source`` and return True when hard-linked.

    ``mode`` is ``hardlink``, ``copy`` or ``auto``; ``auto`` falls back to a
    copy when the filesystem refuses the link. Copies are recorded in
    ``stamp`` so that later runs can detect a stale entry point.
    """
    if mode != "copy":
        try:
            os.link(source, entry_point)
            return True
        except OSError as exc:
            if mode != "auto" or exc.errno not in _LINK_FALLBACK_ERRNOS:
                raise LinkError(
                    exc.errno, f"error hardlinking to {entry_point.name}: {exc.strerror}"
                ) from exc
            _LOGGER.warning(
                "Cannot hardlink %s (%s); copying it instead", source, exc.strerror
            )
    copy_entry_point(source, entry_point, stamp)
    return False


def copy_entry_point(source: Path, entry_point: Path, stamp: Path) -> None:
    shutil.copyfile(source, entry_point)
    payload = {
        "version": _STAMP_VERSION,
        "source": str(source),
        "sha256": file_digest(source),
        "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
    }
    stamp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


def is_stale(source: Path, entry_point: Path, stamp: Path) -> bool:
    """Return True when a copied entry point no longer matches ``source``."""
    if entry_point.exists() and os.path.samefile(source, entry_point):
        return False
    recorded = _read_stamp(stamp)
    if recorded is None or not entry_point.exists():
        return True
    return recorded != file_digest(source)


def file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _read_stamp(stamp: Path) -> Optional[str]:
    try:
        data = json.loads(stamp.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict) or data.get("version") != _STAMP_VERSION:
        return None
    value = data.get("sha256")
    return value if isinstance(value, str) else None


__all__ = [
    "LinkError",
    "copy_entry_point",
    "file_digest",
    "is_stale",
    "place_entry_point",
]
