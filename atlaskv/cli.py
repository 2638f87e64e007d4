"""Command-line client for the key-value server."""

from __future__ import annotations

import argparse
import socket
import sys
from typing import Optional, Sequence

from .codec import encode_command, read_response
from .commands import Command, Delete, Get, Ping, Put, Response, Status
from .errors import AtlasError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atlaskv-cli", description="CLI for AtlasKV key-value store"
    )
    parser.add_argument(
        "-s", "--server", default="127.0.0.1:6379", help="Server address (host:port)"
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=5000,
        help="Connection timeout in milliseconds",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    get = sub.add_parser("get", help="Get a value by key")
    get.add_argument("key", help="The key to get")

    put = sub.add_parser("set", help="Set a key-value pair")
    put.add_argument("key", help="The key to set")
    put.add_argument("value", help="The value to set")

    delete = sub.add_parser("del", help="Delete a key")
    delete.add_argument("key", help="The key to delete")

    sub.add_parser("ping", help="Ping the server")
    return parser


def build_command(args: argparse.Namespace) -> Command:
    """Turn parsed command-line arguments into a protocol command."""
    if args.command == "get":
        return Get(args.key.encode("utf-8"))
    if args.command == "set":
        return Put(args.key.encode("utf-8"), args.value.encode("utf-8"))
    if args.command == "del":
        return Delete(args.key.encode("utf-8"))
    if args.command == "ping":
        return Ping()
    raise ValueError(f"unknown command: {args.command!r}")


def _parse_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit() or int(port) > 65535:
        raise ValueError(f"Invalid server address: {address}")
    return host.strip("[]"), int(port)


def handle_response(command: Command, response: Response) -> int:
    """Print ``response`` for ``command`` and return the exit status."""
    if response.status == Status.OK:
        if isinstance(command, Get):
            if response.payload is None:
                print("(nil)")
            else:
                try:
                    print(response.payload.decode("utf-8"))
                except UnicodeDecodeError:
                    print(list(response.payload))
        elif isinstance(command, Ping):
            text = "PONG"
            if response.payload is not None:
                try:
                    text = response.payload.decode("utf-8")
                except UnicodeDecodeError:
                    pass
            print(text)
        else:
            print("OK")
        return 0
    if response.status == Status.NOT_FOUND:
        print("(nil)")
        return 0
    message = "(unknown error)"
    if response.payload is not None:
        try:
            message = response.payload.decode("utf-8")
        except UnicodeDecodeError:
            pass
    print(f"ERROR: {message}", file=sys.stderr)
    return 1


def _exchange(address: tuple[str, int], timeout: float, command: Command) -> Response:
    """Send one command over a fresh connection and read its response."""
    try:
        sock = socket.create_connection(address, timeout=timeout)
    except OSError as exc:
        raise ConnectionError(f"Failed to connect to {address[0]}:{address[1]}: {exc}")
    with sock:
        sock.settimeout(timeout)
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError:
            pass
        try:
            sock.sendall(encode_command(command))
        except OSError as exc:
            raise ConnectionError(f"Failed to send command: {exc}")
        with sock.makefile("rb") as reader:
            try:
                response = read_response(reader)
            except (OSError, EOFError, AtlasError) as exc:
                raise ConnectionError(f"Failed to read response: {exc}")
        try:
            sock.shutdown(socket.SHUT_WR)
        except OSError:
            pass
    return response


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one command against the server and return the exit status."""
    args = _build_parser().parse_args(argv)
    command = build_command(args)
    try:
        address = _parse_address(args.server)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    try:
        response = _exchange(address, args.timeout / 1000, command)
    except ConnectionError as exc:
        print(exc, file=sys.stderr)
        return 1
    return handle_response(command, response)


if __name__ == "__main__":
    sys.exit(main())