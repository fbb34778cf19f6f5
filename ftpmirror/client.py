"""Thin wrapper around :class:`ftplib.FTP` for one mirror session."""

from __future__ import annotations

import enum
import ftplib
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import BinaryIO, Callable, ContextManager

from .config import ConnectionTarget
from .errors import CommunicationError, ConnectError, IOFailure, LoginError

logger = logging.getLogger(__name__)

SinkProvider = Callable[[str], ContextManager[BinaryIO]]
ProgressReporter = Callable[[str], None]


class EntryKind(enum.Enum):
    """What a listing record points at."""

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


class ClientState(enum.Enum):
    """Lifecycle of an FtpClient connection."""

    UNOPENED = "unopened"
    OPENING = "opening"
    OPEN = "open"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass(frozen=True)
class RemoteEntry:
    """One record of a remote directory listing."""

    name: str
    kind: EntryKind

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE


_MLSD_KINDS = {
    "file": EntryKind.FILE,
    "dir": EntryKind.DIRECTORY,
    "cdir": EntryKind.DIRECTORY,
    "pdir": EntryKind.DIRECTORY,
}


def _entry_from_facts(name: str, facts: dict[str, str]) -> RemoteEntry:
    """Classify one MLSD record by its ``type`` fact."""
    kind = _MLSD_KINDS.get(facts.get("type", "").lower(), EntryKind.OTHER)
    return RemoteEntry(name, kind)


def _entry_from_list_line(line: str) -> RemoteEntry | None:
    """Parse one Unix style ``LIST`` line, e.g. ``-rw-r--r-- 1 ftp ftp 12 Jan 1 10:00 a.txt``."""
    fields = line.split(None, 8)
    if len(fields) < 9:
        return None
    name = fields[8]
    if line.startswith("d"):
        kind = EntryKind.DIRECTORY
    elif line.startswith("-"):
        kind = EntryKind.FILE
    else:
        kind = EntryKind.OTHER
        # symlinks are listed as "name -> target"
        name = name.split(" -> ", 1)[0]
    return RemoteEntry(name, kind)


def _is_plain_name(name: str) -> bool:
    """True when ``name`` cannot leave the directory it is joined to."""
    return name not in ("", ".", "..") and PurePosixPath(name).name == name and "\\" not in name


class FtpClient:
    """One connection to an FTP server.

    The client goes through ``UNOPENED -> OPENING -> OPEN | FAILED`` and
    leaves ``OPEN`` only through :meth:`close`. A failed or closed client is
    not reused.
    """

    def __init__(
        self,
        target: ConnectionTarget,
        ftp_factory: Callable[[], ftplib.FTP] = ftplib.FTP,
    ) -> None:
        self.target = target
        self.ftp = ftp_factory()
        self.state = ClientState.UNOPENED

    def __enter__(self) -> "FtpClient":
        if self.state is ClientState.UNOPENED:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.close()
        except CommunicationError:
            if exc is None:
                raise
            # keep the error that ended the session
            logger.warning("Logout failed after %s: %s", exc_type.__name__, exc)

    def _where(self) -> str:
        return f"{self.target.host} port: {self.target.port}"

    def _fail(self) -> None:
        self.ftp.close()
        self.state = ClientState.FAILED

    def open(self) -> None:
        """Connect, log in and switch to passive mode."""
        if self.state is not ClientState.UNOPENED:
            raise RuntimeError(f"FTP client cannot be opened from state {self.state.value}")
        self.state = ClientState.OPENING

        try:
            welcome = self.ftp.connect(self.target.host, self.target.port)
        except ftplib.all_errors as exc:
            self._fail()
            raise ConnectError(f"Unable to connect to FTP Server: {self._where()}") from exc
        if not str(welcome).startswith("2"):
            self._fail()
            raise ConnectError(
                f"Unable to connect to FTP Server: {self._where()} reply: {welcome}"
            )

        try:
            self.ftp.login(user=self.target.user, passwd=self.target.password)
        except ftplib.all_errors as exc:
            self._fail()
            raise LoginError(f"Unable to login to FTP Server: {self._where()}") from exc

        # passive mode to be able to work from behind NAT and inside VMs
        self.ftp.set_pasv(True)
        self.state = ClientState.OPEN
        logger.info("Connected to %s:%s as %s", self.target.host, self.target.port, self.target.user)

    def close(self) -> None:
        """Log out and disconnect. Only the first call has an effect."""
        if self.state is not ClientState.OPEN:
            return
        self.state = ClientState.CLOSED
        try:
            self.ftp.quit()
        except ftplib.all_errors as exc:
            raise CommunicationError(f"Unable to logout from FTP Server: {self._where()}") from exc
        finally:
            self.ftp.close()
        logger.info("Disconnected from %s:%s", self.target.host, self.target.port)

    def _check_open(self) -> None:
        if self.state is not ClientState.OPEN:
            raise RuntimeError("FTP client not connected")

    def list_entries(self, remote_dir: PurePosixPath | str) -> list[RemoteEntry]:
        """Return the entries of ``remote_dir`` in the order the server sends them."""
        self._check_open()
        path = str(remote_dir)
        try:
            try:
                entries = [_entry_from_facts(name, facts) for name, facts in self.ftp.mlsd(path)]
            except ftplib.error_perm as exc:
                if not str(exc).startswith(("500", "502")):
                    raise
                logger.debug("MLSD not supported, falling back to LIST: %s", exc)
                lines: list[str] = []
                self.ftp.retrlines(f"LIST {path}", lines.append)
                entries = []
                for line in lines:
                    entry = _entry_from_list_line(line)
                    if entry is not None:
                        entries.append(entry)
                    elif not line.startswith("total"):
                        logger.warning("Skipping unrecognized LIST line in %s: %r", path, line)
        except ftplib.all_errors as exc:
            raise CommunicationError(f"Unable to list remote directory: {path}") from exc

        entries = [e for e in entries if e.name not in (".", "..")]
        logger.info("Listed %s entries in %s", len(entries), path)
        return entries

    def retrieve_file(self, remote_path: PurePosixPath | str, sink: BinaryIO) -> None:
        """Copy the bytes of ``remote_path`` into the already open ``sink``."""
        self._check_open()

        def write(block: bytes) -> None:
            try:
                sink.write(block)
            except OSError as exc:
                raise IOFailure("Cannot write files in the local directory...") from exc

        try:
            self.ftp.retrbinary(f"RETR {remote_path}", write)
        except ftplib.all_errors as exc:
            raise CommunicationError(f"Unable to retrieve remote file: {remote_path}") from exc
        logger.debug("Retrieved %s", remote_path)

    def download_all_files(
        self,
        remote_dir: PurePosixPath | str,
        sink_provider: SinkProvider,
        progress_reporter: ProgressReporter,
    ) -> int:
        """Retrieve every regular file of ``remote_dir``, one at a time.

        Sub-directories, other entries and names that are not a single plain
        path segment are skipped. For each file the progress reporter gets
        ``"Downloading (i of N):[name]"`` and the sink from
        ``sink_provider(name)`` is closed before the next file starts.
        """
        remote_dir = PurePosixPath(remote_dir)
        names = []
        for entry in self.list_entries(remote_dir):
            if not entry.is_file:
                continue
            if not _is_plain_name(entry.name):
                logger.warning("Skipping remote file with unsafe name: %r", entry.name)
                continue
            names.append(entry.name)

        for index, name in enumerate(names, start=1):
            progress_reporter(f"Downloading ({index} of {len(names)}):[{name}]")
            with sink_provider(name) as sink:
                self.retrieve_file(remote_dir / name, sink)
        return len(names)


def open_client(
    target: ConnectionTarget,
    ftp_factory: Callable[[], ftplib.FTP] = ftplib.FTP,
) -> FtpClient:
    """Create a client for ``target`` and open it."""
    client = FtpClient(target, ftp_factory)
    client.open()
    return client
