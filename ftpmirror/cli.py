"""Command line options for ftpmirror."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Sequence

from .errors import MissingOptionError, ParseError, UnrecognizedOptionError

PROG = "ftpmirror"
USAGE = f"{PROG} -s SERVER -r REMOTE_DIR -l LOCAL_DIR -d DIR [-c CONFIG]"
DESCRIPTION = "Download files from a directory on an ftp server"
EXAMPLE = (
    "Example:\n"
    f'  {PROG} -s "ftp.ebi.ac.uk"'
    ' -r "/pub/databases/opentargets/platform/latest/output/etl/json/"'
    ' -l "./data/"'
    ' -d "diseases"'
)

# dest -> flags, in the order they are reported when missing
REQUIRED_OPTIONS = {
    "server": ("-s", "--server"),
    "remote_base": ("-r", "--remotedir"),
    "local_base": ("-l", "--localdir"),
    "sub_dir": ("-d", "--dir"),
}


@dataclass(frozen=True)
class MirrorArgs:
    """Resolved command line values."""

    server: str
    remote_base: PurePosixPath
    local_base: Path
    sub_dir: PurePosixPath
    config: Path | None = None


class _Parser(argparse.ArgumentParser):
    """Argument parser that raises ParseError instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ParseError(message)


def build_parser() -> argparse.ArgumentParser:
    """CLI options."""
    parser = _Parser(
        prog=PROG,
        usage=USAGE,
        description=DESCRIPTION,
        epilog=EXAMPLE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    # presence of the required options is checked after unknown arguments
    required = parser.add_argument_group("required options")
    required.add_argument(
        *REQUIRED_OPTIONS["server"], dest="server", metavar="SERVER",
        help="remote ftp server uri",
    )
    required.add_argument(
        *REQUIRED_OPTIONS["remote_base"], dest="remote_base", metavar="REMOTE_DIR",
        help="remote base directory",
    )
    required.add_argument(
        *REQUIRED_OPTIONS["local_base"], dest="local_base", metavar="LOCAL_DIR",
        help="local base directory",
    )
    required.add_argument(
        *REQUIRED_OPTIONS["sub_dir"], dest="sub_dir", metavar="DIR",
        help="directory to download files from (relative to remotedir)"
        " and to (relative to localdir)",
    )
    parser.add_argument(
        "-c", "--config", dest="config", metavar="CONFIG",
        help="path to a YAML config file (port, user, password, log_level)",
    )
    return parser


def resolve_args(argv: Sequence[str]) -> MirrorArgs:
    """Parse ``argv`` into :class:`MirrorArgs` or raise :class:`ParseError`."""
    namespace, extras = build_parser().parse_known_args(list(argv))
    if extras:
        raise UnrecognizedOptionError(extras)

    missing = tuple(
        "/".join(flags)
        for dest, flags in REQUIRED_OPTIONS.items()
        if getattr(namespace, dest) is None
    )
    if missing:
        raise MissingOptionError(missing)

    return MirrorArgs(
        server=namespace.server,
        remote_base=PurePosixPath(namespace.remote_base),
        local_base=Path(namespace.local_base),
        sub_dir=PurePosixPath(namespace.sub_dir),
        config=Path(namespace.config) if namespace.config else None,
    )


def format_help() -> str:
    """Usage banner, option list and an example invocation."""
    return build_parser().format_help()


def format_report(args: MirrorArgs) -> str:
    """Render the parameters a job is about to run with."""
    return "\n".join(
        [
            f"\tServer: [{args.server}]",
            f"\tRemote: [{args.remote_base}]",
            f"\tLocal:  [{args.local_base}]",
            f"\tDir:    [{args.sub_dir}]",
        ]
    )
