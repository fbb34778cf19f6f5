"""Mirror one remote FTP directory into a local directory."""

from .client import ClientState, EntryKind, FtpClient, RemoteEntry, open_client
from .config import Config, ConnectionTarget, load_config
from .mirror import JobPaths, run, run_job

__version__ = "1.0.0"

__all__ = [
    "ClientState",
    "Config",
    "ConnectionTarget",
    "EntryKind",
    "FtpClient",
    "JobPaths",
    "RemoteEntry",
    "load_config",
    "open_client",
    "run",
    "run_job",
]
