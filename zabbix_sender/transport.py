"""Transport session — one blocking TCP connection to the collector."""

import logging
import socket

from zabbix_sender.errors import NetworkError

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 8192


class TransportSession:
    """Connect, write everything, read until EOF, close.

    Use as a context manager so the socket is released on every exit path::

        with TransportSession() as session:
            session.connect(host, port, timeout)
            session.write_all(request)
            reply = session.read_all()

    Only ``connect`` is bounded by a timeout. ``read_all`` waits for the
    collector to close its side of the connection and blocks forever if it
    never does.
    """

    def __init__(self):
        self._sock: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self, host: str, port: int, timeout: float):
        """Open the TCP connection.

        Raises:
            NetworkError: Carrying ``"<errno>,<message>"`` of the OS error.
        """
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            logger.warning("Failed to connect to %s:%d: %s", host, port, e)
            raise NetworkError(f"{e.errno or 0},{e.strerror or e}") from e
        # the timeout only bounds connection setup
        sock.settimeout(None)
        self._sock = sock
        logger.info("Connected to %s:%d", host, port)

    def write_all(self, data: bytes) -> int:
        """Write *data*, retrying the unwritten remainder. Returns bytes written."""
        if not self._sock:
            raise NetworkError("socket was not writable,connect failed.")
        total_written = 0
        view = memoryview(data)
        while total_written < len(data):
            try:
                written = self._sock.send(view[total_written:])
            except OSError as e:
                raise NetworkError(f"write failed: {e}") from e
            if written == 0:
                raise NetworkError("write failed: connection closed by peer")
            total_written += written
        logger.debug("Wrote %d bytes", total_written)
        return total_written

    def read_all(self) -> bytes:
        """Read until the peer closes the connection."""
        if not self._sock:
            raise NetworkError("socket was not readable,connect failed.")
        chunks = []
        while True:
            try:
                chunk = self._sock.recv(READ_CHUNK_SIZE)
            except OSError as e:
                raise NetworkError(f"read failed: {e}") from e
            if not chunk:
                break
            chunks.append(chunk)
        data = b"".join(chunks)
        logger.debug("Read %d bytes", len(data))
        return data

    def close(self):
        """Close the connection. Safe to call more than once."""
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None

    def __enter__(self) -> "TransportSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
