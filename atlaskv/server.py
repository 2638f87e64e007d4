"""TCP server that hands client connections to a pool of worker threads."""

from __future__ import annotations

import logging
import os
import queue
import socket
import threading
from typing import Optional

from .config import Config
from .connection import Connection, _Executor
from .errors import AtlasError, NetworkError

log = logging.getLogger(__name__)

_ACCEPT_POLL_SECONDS = 0.01


def _worker_count() -> int:
    return os.cpu_count() or 4


def _parse_listen_addr(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit() or int(port) > 65535:
        raise NetworkError(f"Failed to bind to {address}: invalid socket address")
    return host.strip("[]"), int(port)


class Server:
    """Accepts clients and serves them from worker threads sharing one engine."""

    def __init__(self, config: Config, engine: _Executor) -> None:
        self._config = config
        self._engine = engine
        self._listener: Optional[socket.socket] = None
        self._queue: "queue.Queue[Optional[socket.socket]]" = queue.Queue(
            maxsize=max(config.max_connections, 1)
        )
        self._workers: list[threading.Thread] = []
        self._shutdown = threading.Event()
        self._active = 0
        self._active_lock = threading.Lock()

    def run(self) -> None:
        """Bind, start workers and accept clients until shutdown is signalled."""
        self._listener = self._bind()
        log.info("Server listening on %s", self._config.listen_addr)

        num_workers = _worker_count()
        log.info("Starting %d worker threads", num_workers)
        for worker_id in range(num_workers):
            thread = threading.Thread(
                target=self._worker_loop,
                args=(worker_id,),
                name=f"atlaskv-worker-{worker_id}",
                daemon=True,
            )
            thread.start()
            self._workers.append(thread)

        try:
            self._accept_loop(self._listener)
        finally:
            self._cleanup()

    def _bind(self) -> socket.socket:
        address = self._config.listen_addr
        host, port = _parse_listen_addr(address)
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        try:
            listener = socket.create_server((host, port), family=family)
        except OSError as exc:
            raise NetworkError(f"Failed to bind to {address}: {exc}") from exc
        listener.settimeout(_ACCEPT_POLL_SECONDS)
        return listener

    def _accept_loop(self, listener: socket.socket) -> None:
        while not self._shutdown.is_set():
            try:
                sock, addr = listener.accept()
            except TimeoutError:
                continue
            except OSError as exc:
                if not self._shutdown.is_set():
                    log.error("Accept error: %s", exc)
                continue

            current = self.active_connections()
            if current >= self._config.max_connections:
                log.warning(
                    "Connection limit reached (%d/%d), rejecting %s",
                    current,
                    self._config.max_connections,
                    addr,
                )
                sock.close()
                continue

            log.debug("Accepted connection from %s", addr)
            sock.settimeout(None)
            self._queue.put(sock)

    def _cleanup(self) -> None:
        log.info("Shutting down server...")
        for _ in self._workers:
            self._queue.put(None)
        for thread in self._workers:
            thread.join()
        self._workers.clear()
        if self._listener is not None:
            self._listener.close()
            self._listener = None
        log.info("Server shutdown complete")

    def _worker_loop(self, worker_id: int) -> None:
        log.debug("Worker %d started", worker_id)
        while True:
            sock = self._queue.get()
            if sock is None:
                log.debug("Worker %d received shutdown signal", worker_id)
                break
            self._handle_connection(sock)
        log.debug("Worker %d stopped", worker_id)

    def _change_active(self, delta: int) -> None:
        with self._active_lock:
            self._active += delta

    def _handle_connection(self, sock: socket.socket) -> None:
        self._change_active(1)
        try:
            try:
                conn = Connection(sock, self._engine)
            except OSError as exc:
                log.error("Failed to create connection: %s", exc)
                sock.close()
                return
            with conn:
                conn.set_timeouts(
                    self._config.read_timeout_ms, self._config.write_timeout_ms
                )
                try:
                    conn.handle()
                except (AtlasError, OSError) as exc:
                    log.debug(
                        "Connection %s ended with error: %s", conn.peer_addr(), exc
                    )
        finally:
            self._change_active(-1)

    def shutdown(self) -> None:
        """Ask the accept loop to stop; ``run`` returns once workers finish."""
        log.info("Shutdown signal received")
        self._shutdown.set()

    def is_running(self) -> bool:
        """False once shutdown has been signalled."""
        return not self._shutdown.is_set()

    def active_connections(self) -> int:
        """Number of connections currently being served."""
        with self._active_lock:
            return self._active

    def local_addr(self) -> Optional[tuple]:
        """The bound address while the server is listening, else None."""
        listener = self._listener
        if listener is None:
            return None
        try:
            return listener.getsockname()
        except OSError:
            return None