"""ConnectionNotifier delivery semantics."""

import pytest

from newsdesk.tools import ConnectionNotifier


class FakeWebSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def send_json(self, payload):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


@pytest.mark.asyncio
async def test_no_connection_returns_false():
    assert await ConnectionNotifier().notify("nobody", {"type": "breaking_news"}) is False


@pytest.mark.asyncio
async def test_delivers_to_every_socket_of_owner():
    notifier = ConnectionNotifier()
    tab, phone, other = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
    notifier.connect("u1", tab)
    notifier.connect("u1", phone)
    notifier.connect("u2", other)

    assert await notifier.notify("u1", {"n": 1}) is True

    assert tab.sent == [{"n": 1}]
    assert phone.sent == [{"n": 1}]
    assert other.sent == []


@pytest.mark.asyncio
async def test_dead_socket_dropped():
    notifier = ConnectionNotifier()
    dead = FakeWebSocket(fail=True)
    notifier.connect("u1", dead)

    assert await notifier.notify("u1", {"n": 1}) is False
    assert notifier.connection_count("u1") == 0


def test_disconnect_unknown_owner_is_noop():
    notifier = ConnectionNotifier()
    notifier.disconnect("ghost", FakeWebSocket())
    assert notifier.connection_count("ghost") == 0
