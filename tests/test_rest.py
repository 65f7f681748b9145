import http.client
import threading

import pytest

from vzporedno.rest import RestClient, RestError, home_page, main, make_server
from vzporedno.storage import Todo, TodoStorage


@pytest.fixture
def server():
    srv = make_server("127.0.0.1", 0, TodoStorage())
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.shutdown()
    srv.server_close()
    thread.join()


@pytest.fixture
def client(server):
    host, port = server.server_address[:2]
    return RestClient(f"http://{host}:{port}/todos/")


def _raw(server, method, path, body=None):
    host, port = server.server_address[:2]
    conn = http.client.HTTPConnection(host, port, timeout=10)
    try:
        headers = {"Content-Type": "application/json"} if body is not None else {}
        conn.request(method, path, body=body, headers=headers)
        resp = conn.getresponse()
        return resp.status, resp.read()
    finally:
        conn.close()


def test_home_page_text():
    assert home_page("h") == (
        "RESTful CRUD server.\n\nUsage:\n\thttp://h/todos/\n"
        "\tREST method params: {task: <string>, completed: <bool>}\n"
    )


def test_root_serves_home_page(server):
    host, port = server.server_address[:2]
    status, body = _raw(server, "GET", "/")
    assert status == 200
    assert body.decode() == home_page(f"{host}:{port}")


def test_create_and_read_one(client):
    client.create(Todo("predavanja", False))
    assert client.read("predavanja") == {"predavanja": Todo("predavanja", False)}


def test_read_all(client):
    client.create(Todo("predavanja", False))
    client.create(Todo("vaje", False))
    assert client.read() == {
        "predavanja": Todo("predavanja", False),
        "vaje": Todo("vaje", False),
    }


def test_get_collection_without_slash(server, client):
    client.create(Todo("vaje", True))
    status, body = _raw(server, "GET", "/todos")
    assert status == 200
    assert b'"vaje"' in body


def test_update(client):
    client.create(Todo("predavanja", False))
    client.update("predavanja", Todo("predavanja", True))
    assert client.read("predavanja")["predavanja"].completed is True


def test_update_missing(server, client):
    with pytest.raises(RestError):
        client.update("nope", Todo("nope", True))
    status, _ = _raw(server, "PUT", "/todos/nope", b'{"task": "nope", "completed": true}')
    assert status == 404


def test_delete(server, client):
    client.create(Todo("predavanja", False))
    client.create(Todo("vaje", False))
    client.delete("vaje")
    assert set(client.read()) == {"predavanja"}
    assert len(server.storage) == 1


def test_delete_missing(server, client):
    with pytest.raises(RestError):
        client.delete("nope")
    status, _ = _raw(server, "DELETE", "/todos/nope")
    assert status == 500


def test_read_missing(server, client):
    with pytest.raises(RestError):
        client.read("nope")
    status, _ = _raw(server, "GET", "/todos/nope")
    assert status == 500


def test_unsupported_method_is_not_found(server):
    status, _ = _raw(server, "PATCH", "/todos/x")
    assert status == 404


def test_bad_json_is_rejected(server):
    status, _ = _raw(server, "POST", "/todos/", b"{not json")
    assert status == 500
    assert len(server.storage) == 0


def test_created_item_reaches_storage(server, client):
    client.create(Todo("vaje", True))
    assert server.storage.read(Todo("vaje")) == {"vaje": Todo("vaje", True)}


def test_main_client_sequence(server, capsys):
    host, port = server.server_address[:2]
    assert main(["-s", host, "-p", str(port)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[-1].endswith("map[predavanja:{predavanja true}] : done")
    assert server.storage.read(Todo("")) == {"predavanja": Todo("predavanja", True)}