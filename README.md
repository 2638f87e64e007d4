# atlaskv

Building blocks of a single-node key-value store, using only the Python
standard library (Python 3.10 or later):

- `atlaskv.memtable` – an ordered, thread-safe in-memory table with
  tombstones and size tracking,
- `atlaskv.commands` and `atlaskv.codec` – commands, responses and their
  binary wire format,
- `atlaskv.connection` and `atlaskv.server` – a threaded TCP server that
  serves clients from a worker pool on top of an engine you supply,
- `atlaskv.cli` – a command-line client, `atlaskv-cli`,
- `atlaskv.config` – settings, and `atlaskv.errors` – the exception hierarchy.

## What this package does not do

There is no storage engine here: no write-ahead log, no on-disk tables, no
crash recovery and no flushing of the memtable to disk. `Config` carries
fields for those (`data_dir`, `wal_sync_strategy`, `memtable_size_limit`), but
nothing in the package acts on them. The server has no command to start it;
you create a `Server` in your own code and give it an engine (see below).

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command-line client

`atlaskv-cli` sends one command to a running server over a fresh connection
and prints the result.

```
atlaskv-cli ping
atlaskv-cli set greeting hello
atlaskv-cli get greeting
atlaskv-cli del greeting
```

Options, given before the subcommand:

| Option | Default | Meaning |
| --- | --- | --- |
| `-s`, `--server` | `127.0.0.1:6379` | server address, `host:port` |
| `-t`, `--timeout` | `5000` | connect, read and write timeout in milliseconds |

Output:

- `get` prints the value as UTF-8 text (or as a list of byte values if it is
  not valid UTF-8), or `(nil)` when the server returns no value or NOT_FOUND.
- `set` and `del` print `OK`.
- `ping` prints the server's reply text, or `PONG` if there is none.
- An ERROR response is printed as `ERROR: <message>` on standard error and the
  exit status is 1. An invalid address, a failed connection, or a failure to
  send or read also exit with status 1.

From Python, `atlaskv.cli.main(argv)` runs the same thing and returns the exit
status; `build_command(args)` and `handle_response(command, response)` are
the two halves it is built from.

## Wire protocol

Every message is a 5-byte header followed by a payload:

```
+-----------+----------------------+-------------+
| type (1)  | payload length (4)   | payload     |
+-----------+----------------------+-------------+
```

The length is big-endian and may not exceed 16 MiB
(`atlaskv.codec.MAX_PAYLOAD_SIZE`; the header size is `HEADER_SIZE`).

Commands (`atlaskv.commands`, wire codes in `CommandType`):

| Code | Command | Payload |
| --- | --- | --- |
| `0x01` | `Get(key)` | key length (4) + key |
| `0x02` | `Put(key, value)` | key length (4) + key + value |
| `0x03` | `Delete(key)` | key length (4) + key |
| `0x04` | `Ping()` | empty |

`command_type(command)` gives the `CommandType` of a command.

Responses are `Response(status, payload)` with `Status.OK` (`0x00`),
`Status.NOT_FOUND` (`0x01`) or `Status.ERROR` (`0x02`); build them with
`Response.ok(payload)`, `Response.not_found()` and `Response.error(message)`.
An empty payload decodes as `None`.

```python
from atlaskv.codec import encode_command, decode_command
from atlaskv.commands import Put

data = encode_command(Put(key=b"k", value=b"v"))
assert decode_command(data) == Put(key=b"k", value=b"v")
```

Malformed input raises `atlaskv.errors.ProtocolError`. `read_command`,
`write_command`, `read_response` and `write_response` work over a binary
stream such as a socket file; the read functions raise `EOFError` if the
stream ends part-way through a message.

## Memtable

```python
from atlaskv.memtable import MemTable, Tombstone

table = MemTable()
table.put(b"apple", b"red")     # returns the new size in bytes
table.delete(b"pear")           # stores a tombstone, returns the new size

table.get(b"apple")      # b"red"
table.get(b"pear")       # Tombstone()  (the single Tombstone instance)
table.get(b"plum")       # None
table.size()             # key bytes plus live value bytes; a tombstone counts its key
len(table)               # 2, tombstones included
table.items()            # sorted snapshot of (key, value-or-Tombstone)
table.should_flush(64 * 1024 * 1024)   # size() >= limit
table.clear()
```

## Server

`atlaskv.server.Server(config, engine)` listens on `config.listen_addr` and
hands each accepted client to one of a pool of worker threads (one per CPU).
The engine is any object with an `execute(command)` method that returns the
value bytes or `None`; it receives every command, `Ping()` included.
`KeyNotFoundError` becomes a NOT_FOUND response, any other `AtlasError` an
ERROR response with its message, and an `OSError` an ERROR response reading
`IO error: ...`.

```python
import threading
from atlaskv.config import Config
from atlaskv.server import Server

config = Config().replace(listen_addr="127.0.0.1:0", max_connections=256)
server = Server(config, engine)
threading.Thread(target=server.run, daemon=True).start()
...
server.local_addr()          # bound (host, port) while listening, else None
server.active_connections()
server.shutdown()            # run() returns once the workers have finished
```

`run()` raises `NetworkError` if the address is invalid or cannot be bound.
New clients are closed straight away while `max_connections` are being
served. A connection ends quietly when the client disconnects or no command
arrives within the read timeout.

`atlaskv.connection.Connection(sock, engine)` serves one socket and can be
used on its own: `set_timeouts(read_ms, write_ms)` (zero leaves a timeout
unchanged), `handle()`, `execute_command(command)` and `peer_addr()`. It is
a context manager that closes the socket on exit.

## Configuration

`atlaskv.config.Config` is a frozen dataclass; `replace(**kwargs)` returns a
changed copy. Defaults: `data_dir` `./atlaskv_data`, `wal_sync_strategy`
`EveryNEntries(count=100)` (the other choice is `EveryWrite()`),
`memtable_size_limit` 64 MiB, `listen_addr` `127.0.0.1:6379`,
`max_connections` 1024, `read_timeout_ms` and `write_timeout_ms` 30000.

## Errors

All errors derive from `atlaskv.errors.AtlasError`: `WalCorruptionError`,
`WalWriteError`, `StorageError`, `KeyNotFoundError` (also a `LookupError`),
`SerializationError`, `NetworkError`, `ProtocolError` and `ConfigError`.