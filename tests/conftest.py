import threading

import pytest
from pyftpdlib.authorizers import DummyAuthorizer
from pyftpdlib.handlers import FTPHandler
from pyftpdlib.servers import FTPServer

FILE_ONE_CONTENT = b'{"id":"1","approvedSymbol":"AAA"}'
FILE_TWO_CONTENT = b'{"id":"2","approvedSymbol":"BBB"}'


class FtpServerThread(threading.Thread):
    """Run a pyftpdlib server in the background for one test."""

    def __init__(self, handler_class):
        super().__init__(daemon=True)
        self.server = FTPServer(("127.0.0.1", 0), handler_class)
        self.host, self.port = self.server.address[:2]
        self._shutdown = threading.Event()

    def run(self):
        while not self._shutdown.is_set():
            self.server.serve_forever(timeout=0.01, blocking=False)

    def stop(self):
        self._shutdown.set()
        self.join(timeout=5)
        self.server.close_all()


@pytest.fixture
def remote_root(tmp_path):
    """Server side tree: /pub/data with two files and one sub-directory."""
    root = tmp_path / "remote"
    data = root / "pub" / "data"
    (data / "nested").mkdir(parents=True)
    (data / "file_one.json").write_bytes(FILE_ONE_CONTENT)
    (data / "file_two_json").write_bytes(FILE_TWO_CONTENT)
    (data / "nested" / "ignored.txt").write_bytes(b"not mirrored")
    return root


@pytest.fixture
def ftp_server(remote_root):
    """Start a server for ``remote_root``. Call with handler options to customise it."""
    servers = []

    def start(handler_class=FTPHandler, users=None):
        authorizer = DummyAuthorizer()
        if users is None:
            authorizer.add_anonymous(str(remote_root))
        for user, password in (users or {}).items():
            authorizer.add_user(user, password, str(remote_root), perm="elr")
        handler = type(
            "TestHandler",
            (handler_class,),
            {"authorizer": authorizer, "auth_failed_timeout": 0.01},
        )
        server = FtpServerThread(handler)
        server.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()
