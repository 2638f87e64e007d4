"""Handling of a single client connection."""

from __future__ import annotations

import contextlib
import logging
import socket
from typing import Optional, Protocol

from .codec import read_command, write_response
from .commands import Command, Response
from .errors import AtlasError, KeyNotFoundError

log = logging.getLogger(__name__)

_DISCONNECT_ERRORS = (ConnectionResetError, ConnectionAbortedError)
_TIMEOUT_ERRORS = (TimeoutError, BlockingIOError)
_SEND_DISCONNECT_ERRORS = (ConnectionAbortedError, ConnectionResetError, BrokenPipeError)


class _Executor(Protocol):
    def execute(self, command: Command) -> Optional[bytes]: ...


def _format_addr(addr: object) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        host, port = addr[0], addr[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return "unknown"


class Connection:
    """Serves commands from one client socket until it disconnects."""

    def __init__(self, sock: socket.socket, engine: _Executor) -> None:
        try:
            self._peer_addr = _format_addr(sock.getpeername())
        except OSError:
            self._peer_addr = "unknown"
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        self._sock = sock
        self._engine = engine
        self._read_timeout: Optional[float] = None
        self._write_timeout: Optional[float] = None
        self._reader = sock.makefile("rb")
        self._writer = sock.makefile("wb")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._close()

    def _close(self) -> None:
        with contextlib.suppress(OSError):
            self._writer.close()
        with contextlib.suppress(OSError):
            self._reader.close()
        self._sock.close()

    def set_timeouts(self, read_ms: int, write_ms: int) -> None:
        """Set read and write timeouts in milliseconds; zero leaves one unchanged."""
        if read_ms > 0:
            self._read_timeout = read_ms / 1000
        if write_ms > 0:
            self._write_timeout = write_ms / 1000

    def handle(self) -> None:
        """Read commands and send responses until the client goes away.

        Returns quietly on disconnect or read timeout; raises on protocol or
        I/O errors after trying to tell the client what went wrong.
        """
        log.debug("Connection established from %s", self._peer_addr)
        while True:
            try:
                self._sock.settimeout(self._read_timeout)
                command = read_command(self._reader)
            except EOFError:
                log.debug("Client %s disconnected", self._peer_addr)
                return
            except _DISCONNECT_ERRORS:
                log.debug("Connection closed by client %s", self._peer_addr)
                return
            except _TIMEOUT_ERRORS:
                log.debug("Read timeout for client %s", self._peer_addr)
                return
            except AtlasError as exc:
                log.warning("Error reading from %s: %s", self._peer_addr, exc)
                self._try_send(Response.error(str(exc)))
                raise
            except OSError as exc:
                log.warning("Error reading from %s: %s", self._peer_addr, exc)
                self._try_send(Response.error(f"IO error: {exc}"))
                raise

            log.debug("Received command from %s: %r", self._peer_addr, command)
            response = self.execute_command(command)

            try:
                self._send(response)
            except _SEND_DISCONNECT_ERRORS as exc:
                log.debug(
                    "Client %s disconnected before response could be sent: %s",
                    self._peer_addr,
                    exc,
                )
                return
            except OSError as exc:
                log.warning("Error writing to %s: %s", self._peer_addr, exc)
                raise

    def execute_command(self, command: Command) -> Response:
        """Run ``command`` on the engine and turn the outcome into a response."""
        try:
            value = self._engine.execute(command)
        except KeyNotFoundError:
            return Response.not_found()
        except AtlasError as exc:
            return Response.error(str(exc))
        except OSError as exc:
            return Response.error(f"IO error: {exc}")
        return Response.ok(value)

    def _send(self, response: Response) -> None:
        self._sock.settimeout(self._write_timeout)
        write_response(self._writer, response)

    def _try_send(self, response: Response) -> None:
        with contextlib.suppress(OSError):
            self._send(response)

    def peer_addr(self) -> str:
        """The client's address as ``host:port``, or ``unknown``."""
        return self._peer_addr