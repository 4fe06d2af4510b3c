"""Invocation of the external ``cargo`` executable."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, List, Sequence

from .logging import get_logger
from .models import Invocation


class CargoError(RuntimeError):
    """Raised when cargo cannot be spawned or a scaffold step fails."""

    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class CargoRunner:
    """Builds cargo command lines and runs them with inherited stdio."""

    def __init__(
        self,
        executable: str = "cargo",
        runner: Callable[[Sequence[str]], int] | None = None,
    ) -> None:
        self.executable = executable
        self._runner = runner or self._default_runner
        self.logger = get_logger("cargo")

    def new_project(self, path: Path, *, quiet: bool = True) -> None:
        """Scaffold a binary crate at ``path`` with ``cargo new``."""
        args = [self.executable, "new"]
        if quiet:
            args.append("--quiet")
        args.extend(["--bin", str(path)])
        returncode = self._run(args, "cargo new")
        if returncode != 0:
            raise CargoError(
                f"\"cargo new\" exited with status {returncode}",
                returncode=returncode,
            )

    def run(self, invocation: Invocation, manifest_path: Path) -> int:
        """Forward the user's command and return cargo's exit status."""
        args = self.command_line(invocation, manifest_path)
        return self._run(args, f"cargo {invocation.command}")

    def command_line(self, invocation: Invocation, manifest_path: Path) -> List[str]:
        args = [self.executable]
        if invocation.toolchain:
            args.append(invocation.toolchain)
        args.append(invocation.command)
        # fmt does not understand build options.
        if invocation.command != "fmt":
            if invocation.release:
                args.append("--release")
            if invocation.target:
                args.extend(["--target", invocation.target])
        if invocation.quiet:
            args.append("--quiet")
        args.extend(["--manifest-path", str(manifest_path), "--"])
        args.extend(invocation.args)
        return args

    # ------------------------------------------------------------------
    # Internals

    def _run(self, args: List[str], label: str) -> int:
        self.logger.debug("Running %s", " ".join(args))
        try:
            return self._runner(args)
        except OSError as exc:
            raise CargoError(f"error executing \"{label}\": {exc}") from exc

    @staticmethod
    def _default_runner(args: Sequence[str]) -> int:
        completed = subprocess.run(list(args), check=False)
        return completed.returncode


__all__ = ["CargoError", "CargoRunner"]
