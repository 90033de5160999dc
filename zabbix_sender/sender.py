"""Sender client — buffers metrics and ships them to the collector in one transaction."""

import logging
from typing import Optional, Protocol

from zabbix_sender.buffer import MetricBuffer
from zabbix_sender.config import SenderConfig
from zabbix_sender.errors import NetworkError
from zabbix_sender.models import Metric, MetricValue, create_metric
from zabbix_sender.protocol import (
    DEFAULT_HEADER,
    DEFAULT_VERSION,
    ResponseEnvelope,
    decode_response,
    encode_request,
    parse_info,
)
from zabbix_sender.transport import TransportSession

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "localhost"
DEFAULT_PORT = 10051
DEFAULT_TIMEOUT = 30


class AgentConfig(Protocol):
    """Anything that knows where the collector lives, e.g. a parsed agent config."""

    def get_server(self) -> str: ...

    def get_server_port(self) -> int: ...


class SenderClient:
    """Collects metrics with ``add_metric`` and submits them with ``send``.

    Setters return the client so configuration can be chained::

        client = SenderClient().set_server_name("zabbix").set_timeout(5)
        client.add_metric("web01", "app.requests", 42).send()

    Not safe for concurrent ``send`` calls; use one client per thread.
    """

    def __init__(self, server_name: str = DEFAULT_SERVER, server_port: int = DEFAULT_PORT):
        self._server_name = server_name
        self._server_port = DEFAULT_PORT
        self._timeout: float = DEFAULT_TIMEOUT
        self._protocol_header = DEFAULT_HEADER
        self._protocol_version = DEFAULT_VERSION
        self._buffer = MetricBuffer()
        self._clear_last_response()
        self.set_server_port(server_port)

    @classmethod
    def from_config(cls, config: SenderConfig) -> "SenderClient":
        return cls().configure(
            host=config.server_host,
            port=config.server_port,
            timeout=config.timeout,
            header=config.protocol_header,
            version=config.protocol_version,
        )

    # Configuration

    def configure(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        header: Optional[str] = None,
        version: Optional[int] = None,
    ) -> "SenderClient":
        """Apply every argument that is not None through its setter."""
        if host is not None:
            self.set_server_name(host)
        if port is not None:
            self.set_server_port(port)
        if timeout is not None:
            self.set_timeout(timeout)
        if header is not None:
            self.set_protocol_header_string(header)
        if version is not None:
            self.set_protocol_version(version)
        return self

    def import_agent_config(self, agent_config: AgentConfig) -> "SenderClient":
        self.set_server_name(agent_config.get_server())
        self.set_server_port(agent_config.get_server_port())
        return self

    def set_server_name(self, server_name: str) -> "SenderClient":
        self._server_name = server_name
        return self

    def set_server_port(self, server_port: int) -> "SenderClient":
        """Set the collector port. Anything but an int in 0..65535 is ignored."""
        if (
            isinstance(server_port, int)
            and not isinstance(server_port, bool)
            and 0 <= server_port <= 0xFFFF
        ):
            self._server_port = server_port
        else:
            logger.warning("Ignoring invalid server port %r", server_port)
        return self

    def set_timeout(self, timeout: float) -> "SenderClient":
        """Set the connect timeout in seconds. Non-positive values are ignored."""
        if (
            isinstance(timeout, (int, float))
            and not isinstance(timeout, bool)
            and timeout > 0
        ):
            self._timeout = timeout
        else:
            logger.warning("Ignoring invalid timeout %r", timeout)
        return self

    def set_protocol_header_string(self, header: str) -> "SenderClient":
        """Set the 4-character tag that starts every message.

        Raises:
            ValueError: If the tag is not exactly 4 ASCII characters.
        """
        try:
            encoded = header.encode("ascii")
        except (AttributeError, UnicodeEncodeError) as e:
            raise ValueError(f"Protocol header must be ASCII text, got {header!r}") from e
        if len(encoded) != 4:
            raise ValueError(f"Protocol header must be 4 characters, got {header!r}")
        self._protocol_header = encoded
        return self

    def set_protocol_version(self, version: int) -> "SenderClient":
        """Set the protocol version byte. Anything but an int in 1..255 is ignored."""
        if isinstance(version, int) and not isinstance(version, bool) and 0 < version <= 0xFF:
            self._protocol_version = version
        else:
            logger.warning("Ignoring invalid protocol version %r", version)
        return self

    @property
    def server_name(self) -> str:
        return self._server_name

    @property
    def server_port(self) -> int:
        return self._server_port

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def protocol_header(self) -> str:
        return self._protocol_header.decode("ascii")

    @property
    def protocol_version(self) -> int:
        return self._protocol_version

    # Metrics

    def add_metric(
        self,
        host: str,
        key: str,
        value: MetricValue,
        clock: Optional[int] = None,
    ) -> "SenderClient":
        """Queue one metric for the next ``send``.

        Raises:
            ValueError: If the metric fields are missing or of the wrong type.
        """
        self._buffer.append(create_metric(host, key, value, clock))
        return self

    @property
    def pending_metrics(self) -> list[Metric]:
        return self._buffer.snapshot()

    # Transaction

    def send(self) -> bool:
        """Submit every pending metric in one connection.

        Returns True and empties the buffer when the collector answers
        ``success``. Returns False and keeps the buffer when it answers
        anything else; the last-response fields are then left unset.

        Raises:
            NetworkError: On connect, write or read failure, or when the
                reply is not a sender-protocol message.
            ProtocolError: When the reply body or its info line cannot be
                parsed.
        """
        self._clear_last_response()
        metrics = self._buffer.snapshot()
        request = encode_request(metrics, self._protocol_header, self._protocol_version)
        request_size = len(request)

        with TransportSession() as session:
            session.connect(self._server_name, self._server_port, self._timeout)
            written = session.write_all(request)
            if written != request_size:
                raise NetworkError("cannot receive response")
            reply = session.read_all()

        envelope = decode_response(reply, self._protocol_header, request_size)
        info = parse_info(envelope.info)

        self._last_response_envelope = envelope
        self._last_response_info = envelope.info
        self._last_processed = info.processed
        self._last_failed = info.failed
        self._last_spent = info.spent
        self._last_total = info.total

        if envelope.succeeded:
            self._buffer.clear()
            logger.info("Sent %d metrics: %s", len(metrics), envelope.info)
            return True

        logger.warning(
            "Collector answered %r for %d metrics: %s",
            envelope.response, len(metrics), envelope.info,
        )
        self._clear_last_response()
        return False

    def _clear_last_response(self):
        self._last_response_envelope: Optional[ResponseEnvelope] = None
        self._last_response_info: Optional[str] = None
        self._last_processed: Optional[int] = None
        self._last_failed: Optional[int] = None
        self._last_spent: Optional[str] = None
        self._last_total: Optional[int] = None

    # Last response

    @property
    def last_response_envelope(self) -> Optional[ResponseEnvelope]:
        return self._last_response_envelope

    @property
    def last_response_info(self) -> Optional[str]:
        return self._last_response_info

    @property
    def last_processed(self) -> Optional[int]:
        return self._last_processed

    @property
    def last_failed(self) -> Optional[int]:
        return self._last_failed

    @property
    def last_spent(self) -> Optional[str]:
        return self._last_spent

    @property
    def last_total(self) -> Optional[int]:
        return self._last_total
