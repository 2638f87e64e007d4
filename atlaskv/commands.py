"""Client commands and server responses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union


class CommandType(IntEnum):
    """Wire identifier of each command."""

    GET = 0x01
    PUT = 0x02
    DELETE = 0x03
    PING = 0x04


@dataclass(frozen=True)
class Get:
    """Fetch the value stored under ``key``."""

    key: bytes


@dataclass(frozen=True)
class Put:
    """Store ``value`` under ``key``."""

    key: bytes
    value: bytes


@dataclass(frozen=True)
class Delete:
    """Remove ``key``."""

    key: bytes


@dataclass(frozen=True)
class Ping:
    """Health check."""


Command = Union[Get, Put, Delete, Ping]

_COMMAND_TYPES = {
    Get: CommandType.GET,
    Put: CommandType.PUT,
    Delete: CommandType.DELETE,
    Ping: CommandType.PING,
}


def command_type(command: Command) -> CommandType:
    """Return the wire type of ``command``."""
    try:
        return _COMMAND_TYPES[type(command)]
    except KeyError:
        raise TypeError(f"not a command: {command!r}") from None


class Status(IntEnum):
    """Response status codes."""

    OK = 0x00
    NOT_FOUND = 0x01
    ERROR = 0x02


@dataclass(frozen=True)
class Response:
    """A reply to a client: a status and an optional payload."""

    status: Status
    payload: Optional[bytes] = None

    @classmethod
    def ok(cls, payload: Optional[bytes] = None) -> "Response":
        return cls(Status.OK, payload)

    @classmethod
    def not_found(cls) -> "Response":
        return cls(Status.NOT_FOUND, None)

    @classmethod
    def error(cls, message: str) -> "Response":
        return cls(Status.ERROR, message.encode("utf-8"))