"""Error types raised by ftpmirror.

Every failure ends the job; nothing here is retried.
"""

from __future__ import annotations


class MirrorError(Exception):
    """Base class for all ftpmirror errors."""


class ParseError(MirrorError):
    """Command line arguments could not be resolved."""


class MissingOptionError(ParseError):
    """One or more required options were not supplied."""

    def __init__(self, missing: tuple[str, ...]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Missing required options: {', '.join(self.missing)}")


class UnrecognizedOptionError(ParseError):
    """An argument did not match any known option."""

    def __init__(self, arguments: list[str]) -> None:
        self.arguments = list(arguments)
        super().__init__(f"Unrecognized option: {' '.join(self.arguments)}")


class CommunicationError(MirrorError):
    """The FTP server could not be reached or stopped responding."""


class ConnectError(CommunicationError):
    """The server refused the connection or replied with a failure code."""


class LoginError(CommunicationError):
    """The server rejected the credentials."""


class IOFailure(MirrorError):
    """The local filesystem could not be prepared or written."""


class LocalDirectoryError(IOFailure):
    """The local destination directory could not be created."""

    def __init__(self, path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to create local directory: [{path}] reason: [{reason}]")
