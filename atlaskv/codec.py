"""Binary wire format for commands and responses.

Every message is a one-byte type or status, a four-byte big-endian payload
length, then the payload. GET and DELETE payloads are a four-byte key length
and the key; PUT adds the value after the key; PING has no payload.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from .commands import (
    Command,
    CommandType,
    Delete,
    Get,
    Ping,
    Put,
    Response,
    Status,
    command_type,
)
from .errors import ProtocolError

HEADER_SIZE = 5
"""One byte of command or status plus four bytes of payload length."""

MAX_PAYLOAD_SIZE = 16 * 1024 * 1024
"""Largest payload accepted on the wire (16 MB)."""

_HEADER = struct.Struct(">BI")
_LENGTH = struct.Struct(">I")


def _frame(kind: int, payload: bytes) -> bytes:
    return _HEADER.pack(kind, len(payload)) + payload


def _key_payload(key: bytes) -> bytes:
    return _LENGTH.pack(len(key)) + key


def encode_command(command: Command) -> bytes:
    """Encode ``command`` as a complete wire message."""
    kind = command_type(command)
    if isinstance(command, Put):
        payload = _key_payload(command.key) + command.value
    elif isinstance(command, (Get, Delete)):
        payload = _key_payload(command.key)
    else:
        payload = b""
    return _frame(kind, payload)


def _split_frame(data: bytes, what: str) -> tuple[int, bytes]:
    """Validate a message's header and return its type byte and payload."""
    if len(data) < HEADER_SIZE:
        raise ProtocolError(
            f"Incomplete {what}header: expected {HEADER_SIZE} bytes, got {len(data)}"
        )
    kind, payload_len = _HEADER.unpack_from(data)
    if payload_len > MAX_PAYLOAD_SIZE:
        label = "Response payload" if what else "Payload"
        raise ProtocolError(
            f"{label} too large: {payload_len} bytes (max {MAX_PAYLOAD_SIZE})"
        )
    total = HEADER_SIZE + payload_len
    if len(data) < total:
        raise ProtocolError(
            f"Incomplete {what}payload: expected {total} bytes, got {len(data)}"
        )
    return kind, bytes(data[HEADER_SIZE:total])


def _decode_key(payload: bytes, name: str) -> tuple[bytes, bytes]:
    """Split a payload into its length-prefixed key and the remaining bytes."""
    if len(payload) < 4:
        raise ProtocolError(f"{name} command: missing key length")
    (key_len,) = _LENGTH.unpack_from(payload)
    if len(payload) < 4 + key_len:
        raise ProtocolError(
            f"{name} command: incomplete key (expected {key_len}, got {len(payload) - 4})"
        )
    return payload[4 : 4 + key_len], payload[4 + key_len :]


def decode_command(data: bytes) -> Command:
    """Decode one command from the start of ``data``."""
    kind, payload = _split_frame(data, "")
    if kind == CommandType.GET:
        key, _ = _decode_key(payload, "GET")
        return Get(key)
    if kind == CommandType.PUT:
        key, value = _decode_key(payload, "PUT")
        return Put(key, value)
    if kind == CommandType.DELETE:
        key, _ = _decode_key(payload, "DELETE")
        return Delete(key)
    if kind == CommandType.PING:
        if payload:
            raise ProtocolError(
                f"PING command: unexpected payload of {len(payload)} bytes"
            )
        return Ping()
    raise ProtocolError(f"Unknown command type: 0x{kind:02x}")


def encode_response(response: Response) -> bytes:
    """Encode ``response`` as a complete wire message."""
    return _frame(response.status, response.payload or b"")


def decode_response(data: bytes) -> Response:
    """Decode one response from the start of ``data``.

    An empty payload decodes as no payload.
    """
    status_byte, payload = _split_frame(data, "response ")
    try:
        status = Status(status_byte)
    except ValueError:
        raise ProtocolError(
            f"Unknown response status: 0x{status_byte:02x}"
        ) from None
    return Response(status, payload or None)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` bytes, raising EOFError if the stream ends first."""
    chunks = []
    remaining = size
    while remaining:
        chunk = stream.read(remaining)
        if not chunk:
            raise EOFError("failed to fill whole buffer")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _read_message(stream: BinaryIO, label: str) -> bytes:
    header = _read_exact(stream, HEADER_SIZE)
    _, payload_len = _HEADER.unpack(header)
    if payload_len > MAX_PAYLOAD_SIZE:
        raise ProtocolError(
            f"{label} too large: {payload_len} bytes (max {MAX_PAYLOAD_SIZE})"
        )
    return header + _read_exact(stream, payload_len)


def read_command(stream: BinaryIO) -> Command:
    """Block until a whole command has been read from ``stream``."""
    return decode_command(_read_message(stream, "Payload"))


def write_command(stream: BinaryIO, command: Command) -> None:
    """Write ``command`` to ``stream`` and flush it."""
    stream.write(encode_command(command))
    stream.flush()


def read_response(stream: BinaryIO) -> Response:
    """Block until a whole response has been read from ``stream``."""
    return decode_response(_read_message(stream, "Response payload"))


def write_response(stream: BinaryIO, response: Response) -> None:
    """Write ``response`` to ``stream`` and flush it."""
    stream.write(encode_response(response))
    stream.flush()