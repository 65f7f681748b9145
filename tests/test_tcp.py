import threading
from datetime import datetime, timedelta, timezone

import pytest

from vzporedno.tcp import (
    MessageAndTime,
    _make_server,
    format_message,
    make_reply,
    request,
)


def test_format_message_uses_date_time_layout():
    assert format_message("world", datetime(2024, 1, 2, 3, 4, 5)) == "world @ 2024-01-02 03:04:05"


def test_make_reply_greets_text_before_at_sign():
    sent = format_message("world", datetime(2024, 1, 2, 3, 4, 5))
    reply = make_reply(sent, datetime(2024, 1, 2, 3, 4, 6))
    assert reply == "Hello world @ 2024-01-02 03:04:06"


def test_make_reply_without_at_sign_keeps_whole_text():
    now = datetime(2024, 1, 2, 3, 4, 6)
    assert make_reply("abc", now) == "Hello abc@ " + now.strftime("%Y-%m-%d %H:%M:%S")


def test_message_and_time_round_trip():
    original = MessageAndTime(
        "world", datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone(timedelta(hours=2)))
    )
    assert MessageAndTime.decode(original.encode()) == original


@pytest.mark.parametrize("data", [b"not json", b"[]", b'{"message": "x"}',
                                  b'{"message": "x", "time": "yesterday"}'])
def test_decode_rejects_malformed_data(data):
    with pytest.raises(ValueError):
        MessageAndTime.decode(data)


@pytest.fixture
def running_server(request):
    structured = request.param
    server = _make_server("127.0.0.1", 0, structured, 0.0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.server_address[1]
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.mark.parametrize("running_server", [False], indirect=True)
def test_plain_exchange(running_server):
    exchange = request("127.0.0.1", running_server, "world", structured=False)
    assert exchange.sent.startswith("world @ ")
    assert exchange.received.startswith("Hello world @ ")


@pytest.mark.parametrize("running_server", [True], indirect=True)
def test_structured_exchange(running_server):
    exchange = request("127.0.0.1", running_server, "world", structured=True)
    assert exchange.sent.message == "world"
    assert exchange.received.message == "Hello world"
    assert exchange.received.time >= exchange.sent.time


@pytest.mark.parametrize("running_server", [False], indirect=True)
def test_server_handles_several_clients(running_server):
    replies = [request("127.0.0.1", running_server, name).received for name in ("a", "b")]
    assert replies[0].startswith("Hello a @ ")
    assert replies[1].startswith("Hello b @ ")