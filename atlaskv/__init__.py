"""Key-value store building blocks: memtable, wire protocol, TCP server and client."""

__version__ = "0.1.0"

__all__ = ["cli", "codec", "commands", "config", "connection", "errors", "memtable", "server"]