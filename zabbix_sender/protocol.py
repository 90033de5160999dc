"""Sender wire protocol: 13-byte header + JSON body.

Header layout (all multi-byte fields little-endian):
  [0:4)   tag, b"ZBXD" unless configured otherwise
  [4]     protocol version, 1
  [5:9)   length of the JSON body in bytes
  [9:13)  reserved high word of the length field, always zero

Request body:
  {"request": "sender data", "data": [{"host", "value", "key", "clock"?}, ...]}

Response body:
  {"response": "success" | "failed",
   "info": "Processed 1 Failed 0 Total 1 Seconds spent 0.000035"}
"""

import json
import struct
from dataclasses import dataclass

from zabbix_sender.errors import NetworkError, ProtocolError
from zabbix_sender.models import Metric, metric_from_dict, metric_to_dict

HEADER_SIZE = 13
HEADER_FORMAT = "<4sBII"  # tag + version + length low word + length high word
DEFAULT_HEADER = b"ZBXD"
DEFAULT_VERSION = 1
REQUEST_TYPE = "sender data"
LEGACY_ACK = b"OK"

RESPONSE_SUCCESS = "success"
RESPONSE_FAILED = "failed"

_MAX_LENGTH = 0xFFFFFFFF
_INFO_TOKENS = 9


@dataclass(frozen=True)
class ResponseEnvelope:
    response: str
    info: str

    @property
    def succeeded(self) -> bool:
        return self.response == RESPONSE_SUCCESS


@dataclass(frozen=True)
class ResponseInfo:
    processed: int
    failed: int
    total: int
    spent: str


def encode_header(length: int, header: bytes = DEFAULT_HEADER, version: int = DEFAULT_VERSION) -> bytes:
    """Pack the 13-byte header for a body of *length* bytes.

    Raises:
        ValueError: If the tag is not 4 bytes, the version does not fit in
            a byte, or the length does not fit in 32 bits.
    """
    if len(header) != 4:
        raise ValueError(f"Header tag must be 4 bytes, got {len(header)}")
    if not 0 <= version <= 0xFF:
        raise ValueError(f"Protocol version must fit in one byte, got {version}")
    if not 0 <= length <= _MAX_LENGTH:
        raise ValueError(f"Body length {length} does not fit in 32 bits")
    return struct.pack(HEADER_FORMAT, header, version, length, 0)


def decode_header(header_bytes: bytes, header: bytes = DEFAULT_HEADER) -> tuple[int, int]:
    """Decode a 13-byte header into (version, body_length).

    Raises:
        ValueError: If the header is not 13 bytes or carries a different tag.
    """
    if len(header_bytes) != HEADER_SIZE:
        raise ValueError(f"Header must be {HEADER_SIZE} bytes, got {len(header_bytes)}")
    tag, version, length, _reserved = struct.unpack(HEADER_FORMAT, header_bytes)
    if tag != header:
        raise ValueError(f"Unexpected header tag {tag!r}")
    return version, length


def encode_request(
    metrics: list[Metric],
    header: bytes = DEFAULT_HEADER,
    version: int = DEFAULT_VERSION,
) -> bytes:
    """Encode metrics, in order, into a complete sender-data message."""
    request = {
        "request": REQUEST_TYPE,
        "data": [metric_to_dict(m) for m in metrics],
    }
    body = json.dumps(request, allow_nan=False).encode("utf-8")
    return encode_header(len(body), header, version) + body


def decode_response(
    data: bytes,
    header: bytes = DEFAULT_HEADER,
    request_size: int | None = None,
) -> ResponseEnvelope:
    """Decode the collector's reply into a ResponseEnvelope.

    Args:
        data: Everything read from the connection.
        header: The tag the reply is expected to start with.
        request_size: Size of the request that was sent, reported when the
            collector answers with the legacy short ack.

    Raises:
        NetworkError: If the reply is the legacy ``OK`` ack (the request was
            too long) or does not start with a known header.
        ProtocolError: If the body is not a JSON object with string
            ``response`` and ``info`` members.
    """
    if data[:4] == header:
        payload = data[HEADER_SIZE:]
        try:
            body = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ProtocolError("invalid json data in receive data") from e
        if not isinstance(body, dict):
            raise ProtocolError("invalid json data in receive data")
        response = body.get("response")
        info = body.get("info")
        if not isinstance(response, str) or not isinstance(info, str):
            raise ProtocolError(f"response or info missing in receive data: {body!r}")
        return ResponseEnvelope(response=response, info=info)
    if data[:2] == LEGACY_ACK:
        raise NetworkError(f"Request is too long. Request size : {request_size}")
    raise NetworkError(f"Invalid response : {data[:4]!r}")


def parse_info(info: str) -> ResponseInfo:
    """Parse an info line such as
    ``"Processed 5 Failed 2 Total 7 Seconds spent 0.000123"``.

    Newer collectors write ``"processed: 5; failed: 2; total: 7; seconds
    spent: 0.000123"``, which has the same token positions once the
    trailing semicolons are dropped.

    Raises:
        ProtocolError: If the line does not have exactly 9 space-separated
            tokens or a count is not an integer.
    """
    tokens = info.split(" ")
    if len(tokens) != _INFO_TOKENS:
        raise ProtocolError(
            f"info line must have {_INFO_TOKENS} tokens, got {len(tokens)}: {info!r}"
        )
    try:
        processed, failed, total = (int(tokens[i].rstrip(";")) for i in (1, 3, 5))
    except ValueError as e:
        raise ProtocolError(f"non-integer count in info line: {info!r}") from e
    return ResponseInfo(processed=processed, failed=failed, total=total, spent=tokens[8])


# Collector side


def decode_request(data: bytes, header: bytes = DEFAULT_HEADER) -> list[Metric]:
    """Decode a complete sender-data message back into its metrics.

    Raises:
        ValueError: If the header is malformed.
        ProtocolError: If the body is not a sender-data request.
    """
    _version, length = decode_header(data[:HEADER_SIZE], header)
    payload = data[HEADER_SIZE:HEADER_SIZE + length]
    if len(payload) != length:
        raise ProtocolError(f"Expected {length} body bytes, got {len(payload)}")
    try:
        body = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError("invalid json data in request") from e
    if not isinstance(body, dict) or body.get("request") != REQUEST_TYPE:
        raise ProtocolError(f"not a {REQUEST_TYPE!r} request")
    items = body.get("data")
    if not isinstance(items, list):
        raise ProtocolError("request data must be a list")
    try:
        return [metric_from_dict(item) for item in items]
    except (AttributeError, ValueError) as e:
        raise ProtocolError(f"invalid metric in request: {e}") from e


def recv_exact(sock, n: int) -> bytes:
    """Read exactly n bytes from a socket.

    Raises:
        ConnectionError: If the connection is closed before n bytes are read.
    """
    data = b""
    while len(data) < n:
        chunk = sock.recv(n - len(data))
        if not chunk:
            raise ConnectionError("Connection closed before all data received")
        data += chunk
    return data


def format_info(processed: int, failed: int, total: int, spent: float) -> str:
    return f"Processed {processed} Failed {failed} Total {total} Seconds spent {spent:.6f}"


def encode_response(
    response: str,
    info: str,
    header: bytes = DEFAULT_HEADER,
    version: int = DEFAULT_VERSION,
) -> bytes:
    """Encode a collector reply with the same framing as a request."""
    body = json.dumps({"response": response, "info": info}, allow_nan=False).encode("utf-8")
    return encode_header(len(body), header, version) + body
