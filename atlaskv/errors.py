"""Exception hierarchy for the key-value store."""

from __future__ import annotations


class AtlasError(Exception):
    """Base class for every error raised by the store."""

    prefix = ""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(f"{self.prefix}{message}")


class WalCorruptionError(AtlasError):
    """The write-ahead log holds data that cannot be trusted."""

    prefix = "WAL corruption detected: "


class WalWriteError(AtlasError):
    """Appending to the write-ahead log failed."""

    prefix = "WAL write failed: "


class StorageError(AtlasError):
    """A persistent storage operation failed."""

    prefix = "Storage error: "


class KeyNotFoundError(AtlasError, LookupError):
    """The requested key does not exist."""

    def __init__(self) -> None:
        self.message = "Key not found"
        Exception.__init__(self, self.message)


class SerializationError(AtlasError):
    """Data could not be serialized or deserialized."""

    prefix = "Serialization error: "


class NetworkError(AtlasError):
    """A network operation failed."""

    prefix = "Network error: "


class ProtocolError(AtlasError):
    """A message violated the wire protocol."""

    prefix = "Protocol error: "


class ConfigError(AtlasError):
    """The configuration is invalid."""

    prefix = "Configuration error: "