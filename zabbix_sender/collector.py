"""Mock collector — accepts sender-data requests and answers like a trapper."""

import logging
import socket
import threading
import time
from typing import Callable

from zabbix_sender.errors import ProtocolError
from zabbix_sender.models import Metric
from zabbix_sender.protocol import (
    DEFAULT_HEADER,
    HEADER_SIZE,
    RESPONSE_FAILED,
    RESPONSE_SUCCESS,
    decode_header,
    decode_request,
    encode_response,
    format_info,
    recv_exact,
)

logger = logging.getLogger(__name__)

Responder = Callable[[list[Metric]], bytes]


def accept_all(metrics: list[Metric]) -> bytes:
    """Reply ``success`` with every metric processed."""
    count = len(metrics)
    return encode_response(RESPONSE_SUCCESS, format_info(count, 0, count, 0.000010))


def reject_all(metrics: list[Metric]) -> bytes:
    """Reply ``failed`` with every metric failed."""
    count = len(metrics)
    return encode_response(RESPONSE_FAILED, format_info(0, count, count, 0.000010))


class MockCollector:
    """Threaded TCP server speaking the collector side of the sender protocol.

    Each connection carries one request. The collector reads it, records the
    decoded metrics, writes whatever *responder* returns and closes the
    connection, which is what ends the client's read.
    """

    def __init__(
        self,
        host: str,
        port: int,
        shutdown_event: threading.Event,
        responder: Responder = accept_all,
        header: bytes = DEFAULT_HEADER,
    ):
        self._host = host
        self._port = port
        self._shutdown = shutdown_event
        self._responder = responder
        self._header = header
        self._sock = None
        self._server_address = None
        self._lock = threading.Lock()
        self._requests: list[list[Metric]] = []

    @property
    def server_address(self) -> tuple:
        """Return (host, port) the server is bound to."""
        return self._server_address

    @property
    def requests(self) -> list[list[Metric]]:
        """Metrics of every request received so far, oldest first."""
        with self._lock:
            return list(self._requests)

    def start(self):
        """Bind, listen, and accept connections until shutdown."""
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.settimeout(1.0)
        self._sock.bind((self._host, self._port))
        self._sock.listen(5)

        self._server_address = self._sock.getsockname()
        logger.info("Collector started on %s:%d", *self._server_address)

        while not self._shutdown.is_set():
            try:
                conn, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                break

            t = threading.Thread(
                target=self._handle_client,
                args=(conn, addr),
                daemon=True,
            )
            t.start()

    def start_in_background(self, timeout: float = 5.0) -> threading.Thread:
        """Run ``start`` on a daemon thread and wait until the socket is bound."""
        thread = threading.Thread(target=self.start, daemon=True)
        thread.start()
        deadline = time.monotonic() + timeout
        while self._server_address is None:
            if time.monotonic() > deadline:
                raise RuntimeError("Collector failed to bind")
            time.sleep(0.01)
        return thread

    def stop(self):
        """Signal shutdown and close the listen socket."""
        logger.info("Collector shutting down...")
        self._shutdown.set()
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass

    def _handle_client(self, conn: socket.socket, addr: tuple):
        """Read one request, answer it and close the connection."""
        try:
            conn.settimeout(5.0)
            try:
                header = recv_exact(conn, HEADER_SIZE)
                _version, length = decode_header(header, self._header)
                body = recv_exact(conn, length)
                metrics = decode_request(header + body, self._header)
            except (OSError, ValueError, ProtocolError) as e:
                logger.warning("Dropping request from %s:%d: %s", addr[0], addr[1], e)
                return

            with self._lock:
                self._requests.append(metrics)
            logger.info("Received %d metrics from %s:%d", len(metrics), *addr[:2])

            conn.sendall(self._responder(metrics))
        except OSError as e:
            logger.warning("Reply to %s:%d failed: %s", addr[0], addr[1], e)
        finally:
            conn.close()
