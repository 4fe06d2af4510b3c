"""CLI entrypoint for cargo-single commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, List, Sequence, Tuple

from .cargo import CargoError
from .config import ConfigError
from .logging import configure_logging
from .manifest import ManifestError
from .models import Invocation
from .orchestrator import Orchestrator, SourceError
from .project import MaterializeError

_COMMAND_HELP = {
    "build": "Build the source file with `cargo build`.",
    "check": "Check the source file with `cargo check`.",
    "fmt": "Format the source file with `cargo fmt`; build options are ignored.",
    "refresh": "Re-read the source file and update the dependencies in Cargo.toml.",
    "run": "Build and run the source file with `cargo run`.",
}

# Cargo runs `cargo-single single <args>` for `cargo single <args>`.
_SUBCOMMAND_NAME = "single"
_GLOBAL_VALUE_OPTIONS = {"--log-file"}
_VALUE_OPTIONS = {"--target", "--toolchain"}


class _OnceAction(argparse.Action):
    """Store an option value, rejecting a second occurrence."""

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        if getattr(namespace, self.dest, None) not in (None, False):
            label = "toolchain" if self.dest == "toolchain" else option_string
            parser.error(f"{label} already seen")
        setattr(namespace, self.dest, self.const if self.nargs == 0 else values)


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_cargo_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--toolchain",
        action=_OnceAction,
        metavar="+TOOLCHAIN",
        help="Name of a toolchain installed with rustup (also accepted as +<toolchain>).",
    )
    parser.add_argument(
        "--release",
        action=_OnceAction,
        nargs=0,
        const=True,
        default=False,
        help="Build/check in release mode.",
    )
    parser.add_argument(
        "--target",
        action=_OnceAction,
        help="Use the specified target for building.",
    )
    parser.add_argument(
        "--no-quiet",
        dest="quiet",
        action="store_const",
        const=False,
        default=None,
        help="Don't pass --quiet to cargo.",
    )
    parser.add_argument(
        "source",
        help="Rust source file, its shadow project directory, or the file name without .rs.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo-single",
        description="Build and run single-file Rust programs with Cargo.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text in _COMMAND_HELP.items():
        command_parser = subparsers.add_parser(
            name,
            help=help_text,
            usage="%(prog)s [options] source [arguments ...]",
            epilog="Arguments after the source are passed to the program unchanged.",
        )
        _add_verbose_option(command_parser, suppress_default=True)
        _add_cargo_options(command_parser)
    return parser


def _split_argv(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split argv into tokens for the parser and arguments for the program.

    The Cargo subcommand name is dropped and ``+toolchain`` is spelled as an
    option. Everything after the source path is returned untouched as the
    second element, so argparse never sees (or eats a ``--`` from) it.
    """
    tokens = list(argv)
    if tokens and tokens[0] == _SUBCOMMAND_NAME:
        tokens = tokens[1:]

    result: List[str] = []
    index = 0
    seen_command = False
    while index < len(tokens):
        token = tokens[index]
        value_options = _VALUE_OPTIONS if seen_command else _GLOBAL_VALUE_OPTIONS
        if token in value_options:
            result.extend(tokens[index:index + 2])
            index += 2
            continue
        if not seen_command:
            seen_command = not token.startswith("-")
        elif token.startswith("+") and len(token) > 1:
            token = f"--toolchain={token}"
        elif not token.startswith("-"):
            result.append(token)
            return result, tokens[index + 1:]
        result.append(token)
        index += 1
    return result, []


def _toolchain_arg(value: str | None) -> str | None:
    if not value:
        return None
    return value if value.startswith("+") else f"+{value}"


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for cargo-single commands."""
    parser = _build_parser()
    raw = sys.argv[1:] if argv is None else argv
    parser_argv, program_args = _split_argv(raw)
    args = parser.parse_args(parser_argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    invocation = Invocation(
        command=args.command,
        source=args.source,
        args=program_args,
        toolchain=_toolchain_arg(args.toolchain),
        release=bool(args.release),
        target=args.target,
        quiet=args.quiet,
    )

    try:
        return Orchestrator().run(invocation)
    except (SourceError, MaterializeError) as exc:
        parser.exit(1, f"cargo-single: fatal: {exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"cargo-single: configuration error: {exc}\n")
    except (ManifestError, UnicodeDecodeError) as exc:
        parser.exit(1, f"cargo-single: error refreshing dependencies: {exc}\n")
    except CargoError as exc:
        parser.exit(1, f"cargo-single: {exc}\n")
    except OSError as exc:
        parser.exit(1, f"cargo-single: fatal: {exc}\n")


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
