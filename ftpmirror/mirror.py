"""Mirror the files of one remote FTP directory into a local directory.

Steps:
A) Resolve the command line and optional config file.
B) Create the local destination directory.
C) Connect, list the remote directory and download every regular file,
   one at a time, in listing order.
D) Report the elapsed time.
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Sequence, TextIO

import yaml

from .cli import MirrorArgs, format_help, format_report, resolve_args
from .client import FtpClient, open_client
from .config import Config, ConnectionTarget, configure_logging, load_config
from .errors import CommunicationError, IOFailure, LocalDirectoryError, ParseError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_LOCAL_DIR = 3
EXIT_COMMUNICATION = 4
EXIT_IO = 5
EXIT_CONFIG = 6


@dataclass(frozen=True)
class JobPaths:
    """Remote and local locations of one mirror job."""

    server: str
    remote_base: PurePosixPath
    local_base: Path
    sub_dir: PurePosixPath

    @classmethod
    def from_args(cls, args: MirrorArgs) -> "JobPaths":
        return cls(args.server, args.remote_base, args.local_base, args.sub_dir)

    @property
    def full_remote_path(self) -> PurePosixPath:
        return self.remote_base / self.sub_dir

    @property
    def full_local_path(self) -> Path:
        return self.local_base / self.sub_dir


def prepare_local_dir(path: Path) -> None:
    """Create ``path`` and any missing parents."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LocalDirectoryError(path, exc.strerror or str(exc)) from exc


def run_job(
    target: ConnectionTarget,
    paths: JobPaths,
    out: TextIO | None = None,
    client_factory: Callable[[ConnectionTarget], FtpClient] = open_client,
) -> int:
    """Download all files of ``paths.full_remote_path``. Return an exit code.

    Communication failures end the job with a message on ``out``.
    :class:`IOFailure` from the local side propagates to the caller.
    """
    out = out or sys.stdout
    local_dir = paths.full_local_path

    def sink_provider(name: str):
        try:
            return open(local_dir / name, "wb")
        except OSError as exc:
            raise IOFailure("Cannot create files in the local directory...") from exc

    def progress_reporter(message: str) -> None:
        print(message, file=out, flush=True)

    start = time.perf_counter_ns()
    try:
        with client_factory(target) as client:
            count = client.download_all_files(paths.full_remote_path, sink_provider, progress_reporter)
    except CommunicationError as exc:
        logger.error("FTP session with %s failed: %s", target.host, exc)
        print("Communication with FTP server failed...", file=out)
        print(f"Reason: {exc}", file=out)
        return EXIT_COMMUNICATION

    elapsed_ns = time.perf_counter_ns() - start
    logger.info("Downloaded %s files from %s", count, paths.full_remote_path)
    print(file=out)
    print(f"elapsed time: {elapsed_ns * 1e-6:.0f} (ms)", file=out)
    return EXIT_OK


def run(argv: Sequence[str], out: TextIO | None = None) -> int:
    """Execute one mirror job for ``argv``. Return process exit code."""
    out = out or sys.stdout

    try:
        args = resolve_args(argv)
        config = Config()
        if args.config is not None:
            try:
                config = load_config(args.config)
            except (OSError, TypeError, ValueError, yaml.YAMLError) as exc:
                print(f"Unable to load config file: [{args.config}] reason: [{exc}]", file=out)
                return EXIT_CONFIG
        target = config.target_for(args.server)
    except ParseError as exc:
        print(f"Parsing of command line arguments failed: {exc}", file=out)
        print(file=out)
        print(format_help(), file=out)
        return EXIT_USAGE

    configure_logging(config)

    print(file=out)
    print("Proceeding with the following parameters", file=out)
    print(format_report(args), file=out)

    paths = JobPaths.from_args(args)
    try:
        prepare_local_dir(paths.full_local_path)
    except LocalDirectoryError as exc:
        print(exc, file=out)
        return EXIT_LOCAL_DIR

    print(file=out)

    try:
        return run_job(target, paths, out)
    except IOFailure as exc:
        logger.error("Local write failed in %s", paths.full_local_path)
        print(f"Error: {exc}", file=out)
        if exc.__cause__ is not None:
            print(f"Reason: {exc.__cause__}", file=out)
        return EXIT_IO


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    raise SystemExit(run(sys.argv[1:] if argv is None else argv))


if __name__ == "__main__":
    main()
