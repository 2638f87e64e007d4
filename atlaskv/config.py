"""Configuration for a store instance."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class EveryWrite:
    """Sync the write-ahead log after every write."""


@dataclass(frozen=True)
class EveryNEntries:
    """Sync the write-ahead log after ``count`` unsynced entries."""

    count: int


WalSyncStrategy = Union[EveryWrite, EveryNEntries]


@dataclass(frozen=True)
class Config:
    """Settings for storage, write-ahead logging and networking."""

    data_dir: Path = Path("./atlaskv_data")
    wal_sync_strategy: WalSyncStrategy = field(
        default_factory=lambda: EveryNEntries(count=100)
    )
    memtable_size_limit: int = 64 * 1024 * 1024
    listen_addr: str = "127.0.0.1:6379"
    max_connections: int = 1024
    read_timeout_ms: int = 30000
    write_timeout_ms: int = 30000

    def __post_init__(self) -> None:
        object.__setattr__(self, "data_dir", Path(self.data_dir))

    def replace(self, **kwargs) -> "Config":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **kwargs)