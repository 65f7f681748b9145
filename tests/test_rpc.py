import json
import socket
import threading

import pytest

from vzporedno.rpc import RpcClient, RpcError, _make_tcp_server, main, make_server
from vzporedno.storage import NotFoundError, Todo, TodoStorage


@pytest.fixture(params=["http", "tcp"])
def endpoint(request):
    storage = TodoStorage()
    use_http = request.param == "http"
    factory = make_server if use_http else _make_tcp_server
    srv = factory("127.0.0.1", 0, storage)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    host, port = srv.server_address[:2]
    yield host, port, use_http, storage
    srv.shutdown()
    srv.server_close()
    thread.join()


@pytest.fixture
def client(endpoint):
    host, port, use_http, _ = endpoint
    with RpcClient(host, port, http=use_http) as rpc_client:
        yield rpc_client


def test_create_and_read_one(client):
    client.create(Todo("predavanja", False))
    assert client.read(Todo("predavanja", True)) == {"predavanja": Todo("predavanja", False)}


def test_read_all(client):
    client.create(Todo("predavanja", False))
    client.create(Todo("vaje", False))
    assert client.read(Todo("")) == {
        "predavanja": Todo("predavanja", False),
        "vaje": Todo("vaje", False),
    }


def test_read_empty_store(client):
    assert client.read(Todo("")) == {}


def test_update(client, endpoint):
    client.create(Todo("predavanja", False))
    client.update(Todo("predavanja", True))
    storage = endpoint[3]
    assert storage.read(Todo("predavanja")) == {"predavanja": Todo("predavanja", True)}


def test_update_missing(client):
    with pytest.raises(NotFoundError):
        client.update(Todo("nope", True))


def test_read_missing(client):
    with pytest.raises(NotFoundError) as info:
        client.read(Todo("nope"))
    assert info.value.task == "nope"


def test_delete(client, endpoint):
    client.create(Todo("predavanja", False))
    client.create(Todo("vaje", False))
    client.delete(Todo("vaje"))
    assert set(client.read(Todo(""))) == {"predavanja"}
    assert len(endpoint[3]) == 1


def test_delete_missing(client):
    with pytest.raises(NotFoundError):
        client.delete(Todo("nope"))


def test_main_client_sequence(endpoint, capsys):
    host, port, use_http, storage = endpoint
    kind = "http" if use_http else "tcp"
    assert main(["-s", host, "-p", str(port), "-c", kind]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[-1].endswith("map[predavanja:{predavanja true}] : done")
    assert storage.read(Todo("")) == {"predavanja": Todo("predavanja", True)}


@pytest.fixture
def tcp_server():
    srv = _make_tcp_server("127.0.0.1", 0, TodoStorage())
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.shutdown()
    srv.server_close()
    thread.join()


def _exchange(server, payload):
    host, port = server.server_address[:2]
    with socket.create_connection((host, port), timeout=10) as sock:
        with sock.makefile("rwb") as stream:
            stream.write(payload)
            stream.flush()
            return json.loads(stream.readline())


def test_tcp_unknown_method(tcp_server):
    request = {"id": 7, "method": "TodoStorage.Nope", "params": {"task": "x"}}
    reply = _exchange(tcp_server, json.dumps(request).encode() + b"\n")
    assert reply["id"] == 7
    assert "TodoStorage.Nope" in reply["error"]


def test_tcp_malformed_request(tcp_server):
    reply = _exchange(tcp_server, b"not json\n")
    assert reply["id"] is None
    assert "malformed" in reply["error"]


def test_tcp_bad_argument_raises_rpc_error(tcp_server):
    request = {"id": 1, "method": "TodoStorage.Create", "params": [1, 2]}
    reply = _exchange(tcp_server, json.dumps(request).encode() + b"\n")
    assert reply["result"] is None
    assert reply["error"]
    assert len(tcp_server.storage) == 0


def test_not_found_from_client_is_not_an_rpc_error(client):
    with pytest.raises(NotFoundError) as info:
        client.delete(Todo("missing"))
    assert not isinstance(info.value, RpcError)
    assert info.value.task == "missing"