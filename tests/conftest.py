import logging
import socket
import threading

import pytest


class BannerServer:
    """Accepts connections on 127.0.0.1 and optionally sends a banner first."""

    def __init__(self, banner: bytes = b""):
        self.banner = banner
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(64)
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self.sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn):
        with conn:
            conn.settimeout(3.0)
            try:
                if self.banner:
                    conn.sendall(self.banner)
                # hold the connection until the client hangs up
                conn.recv(1)
            except OSError:
                pass

    def close(self):
        self._stop.set()
        self._thread.join(timeout=1.0)
        self.sock.close()


@pytest.fixture
def listener():
    servers = []

    def start(banner: bytes = b"") -> int:
        srv = BannerServer(banner)
        servers.append(srv)
        return srv.port

    yield start
    for srv in servers:
        srv.close()


@pytest.fixture
def closed_port():
    # Bind then release a port so nothing is listening on it
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger("netsweep.tests")
    logger.handlers = [logging.NullHandler()]
    logger.propagate = False
    return logger
