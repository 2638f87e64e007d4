import socket
import threading

import pytest

from atlaskv.cli import _build_parser, build_command, handle_response, main
from atlaskv.codec import read_command, write_response
from atlaskv.commands import Delete, Get, Ping, Put, Response


def _parse(*argv):
    return build_command(_build_parser().parse_args(list(argv)))


def test_build_get():
    assert _parse("get", "name") == Get(b"name")


def test_build_set():
    assert _parse("set", "name", "value") == Put(b"name", b"value")


def test_build_del():
    assert _parse("del", "name") == Delete(b"name")


def test_build_ping():
    assert _parse("ping") == Ping()


def test_parser_defaults():
    args = _build_parser().parse_args(["ping"])
    assert args.server == "127.0.0.1:6379"
    assert args.timeout == 5000


def test_missing_subcommand_exits():
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


def test_get_prints_value(capsys):
    assert handle_response(Get(b"k"), Response.ok(b"hello")) == 0
    assert capsys.readouterr().out == "hello\n"


def test_get_without_payload_prints_nil(capsys):
    assert handle_response(Get(b"k"), Response.ok(None)) == 0
    assert capsys.readouterr().out == "(nil)\n"


def test_get_binary_value_prints_bytes(capsys):
    assert handle_response(Get(b"k"), Response.ok(b"\xff\x00")) == 0
    assert capsys.readouterr().out == "[255, 0]\n"


@pytest.mark.parametrize("command", [Put(b"k", b"v"), Delete(b"k")])
def test_writes_print_ok(command, capsys):
    assert handle_response(command, Response.ok(None)) == 0
    assert capsys.readouterr().out == "OK\n"


def test_ping_prints_payload(capsys):
    assert handle_response(Ping(), Response.ok(b"PONG")) == 0
    assert capsys.readouterr().out == "PONG\n"


def test_ping_without_payload(capsys):
    assert handle_response(Ping(), Response.ok(None)) == 0
    assert capsys.readouterr().out == "PONG\n"


def test_not_found_prints_nil(capsys):
    assert handle_response(Get(b"k"), Response.not_found()) == 0
    assert capsys.readouterr().out == "(nil)\n"


def test_error_goes_to_stderr(capsys):
    assert handle_response(Get(b"k"), Response.error("boom")) == 1
    captured = capsys.readouterr()
    assert captured.err == "ERROR: boom\n"
    assert captured.out == ""


def test_error_without_payload(capsys):
    assert handle_response(Ping(), Response(Response.error("x").status)) == 1
    assert capsys.readouterr().err == "ERROR: (unknown error)\n"


@pytest.fixture
def fake_server():
    """A one-shot server that records the command and replies as told."""
    listener = socket.socket()
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    state = {"reply": Response.ok(None), "received": None}

    def serve():
        conn, _ = listener.accept()
        with conn, conn.makefile("rb") as reader, conn.makefile("wb") as writer:
            state["received"] = read_command(reader)
            write_response(writer, state["reply"])

    def start(reply):
        state["reply"] = reply
        thread = threading.Thread(target=serve, daemon=True)
        thread.start()
        return f"127.0.0.1:{listener.getsockname()[1]}", thread

    yield start, state
    listener.close()


def test_main_set_round_trip(fake_server, capsys):
    start, state = fake_server
    address, thread = start(Response.ok(None))
    assert main(["--server", address, "set", "name", "value"]) == 0
    thread.join(timeout=5)
    assert state["received"] == Put(b"name", b"value")
    assert capsys.readouterr().out == "OK\n"


def test_main_get_round_trip(fake_server, capsys):
    start, state = fake_server
    address, thread = start(Response.ok(b"value"))
    assert main(["-s", address, "get", "name"]) == 0
    thread.join(timeout=5)
    assert state["received"] == Get(b"name")
    assert capsys.readouterr().out == "value\n"


def test_main_error_response(fake_server, capsys):
    start, _ = fake_server
    address, thread = start(Response.error("boom"))
    assert main(["-s", address, "del", "name"]) == 1
    thread.join(timeout=5)
    assert capsys.readouterr().err == "ERROR: boom\n"


def test_main_connection_refused(capsys):
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    assert main(["-s", f"127.0.0.1:{port}", "-t", "500", "ping"]) == 1
    assert "Failed to connect" in capsys.readouterr().err


def test_main_invalid_address(capsys):
    assert main(["-s", "nonsense", "ping"]) == 1
    assert "Invalid server address" in capsys.readouterr().err