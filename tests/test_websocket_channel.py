from __future__ import annotations

import asyncio
import json

import pytest

from shared.errors import SubscriptionError
from shared.networking import client as client_module
from shared.networking.client import WebSocketViolationChannel
from shared.networking.protocol import Message, MessageType


def _occurred(teacher_id="t1", violation_type="tab_switch", violation_id="v1") -> str:
    return Message(MessageType.VIOLATION_OCCURRED, data={
        "teacher_id": teacher_id,
        "student_name": "Ani",
        "quiz_title": "Aljabar",
        "violation_type": violation_type,
        "timestamp": "2024-03-01T09:00:00+00:00",
        "violation_id": violation_id,
    }).to_json()


class _FakeConnection:
    def __init__(self, handshake: str, frames=()):
        self.handshake = handshake
        self.frames = list(frames)
        self.sent: list[dict] = []
        self.closed = False

    async def recv(self):
        return self.handshake

    async def send(self, text):
        self.sent.append(json.loads(text))

    async def close(self):
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame


def _patch_connect(monkeypatch, connection):
    urls = []

    async def _connect(uri):
        urls.append(uri)
        return connection

    monkeypatch.setattr(client_module.websockets, "connect", _connect)
    return urls


def test_subscribe_delivers_only_valid_events_for_teacher(monkeypatch):
    connection = _FakeConnection(
        Message(MessageType.SUBSCRIBE_ACK, data={"teacher_id": "t1"}).to_json(),
        frames=[
            "{broken",
            Message(MessageType.PING).to_json(),
            _occurred(violation_type="copy_paste", violation_id="bad"),
            _occurred(teacher_id="t2", violation_id="other"),
            _occurred(violation_id="v1"),
        ],
    )
    urls = _patch_connect(monkeypatch, connection)
    channel = WebSocketViolationChannel("ws://hub:8765/")
    received = []

    async def scenario():
        handle = await channel.subscribe("t1", received.append)
        await handle.task
        await channel.unsubscribe(handle)

    asyncio.run(scenario())

    assert urls == ["ws://hub:8765/ws/teachers/t1"]
    assert [e.violation_id for e in received] == ["v1"]
    assert [m["type"] for m in connection.sent] == ["pong"]
    assert connection.closed is True


def test_subscribe_without_ack_fails_and_closes(monkeypatch):
    connection = _FakeConnection(Message(MessageType.ERROR).to_json())
    _patch_connect(monkeypatch, connection)

    with pytest.raises(SubscriptionError):
        asyncio.run(WebSocketViolationChannel("ws://hub:8765").subscribe("t1", print))

    assert connection.closed is True


def test_subscribe_connection_refused_is_subscription_error(monkeypatch):
    async def _refuse(uri):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(client_module.websockets, "connect", _refuse)

    with pytest.raises(SubscriptionError):
        asyncio.run(WebSocketViolationChannel("ws://hub:8765").subscribe("t1", print))


def test_connect_timeout_is_subscription_error(monkeypatch):
    async def _slow(uri):
        raise asyncio.TimeoutError()

    monkeypatch.setattr(client_module.websockets, "connect", _slow)

    with pytest.raises(SubscriptionError):
        asyncio.run(WebSocketViolationChannel("ws://hub:8765").subscribe("t1", print))


def test_unsubscribe_closes_socket_when_listener_failed():
    connection = _FakeConnection("")

    async def scenario():
        async def _crashed():
            raise RuntimeError("listener crashed")

        task = asyncio.create_task(_crashed())
        await asyncio.sleep(0)
        handle = client_module.RemoteSubscription("t1", connection, task)
        await WebSocketViolationChannel("ws://hub:8765").unsubscribe(handle)

    asyncio.run(scenario())

    assert connection.closed is True


def test_unsubscribe_cancels_running_listener():
    connection = _FakeConnection("")

    async def scenario():
        task = asyncio.create_task(asyncio.sleep(60))
        handle = client_module.RemoteSubscription("t1", connection, task)
        await WebSocketViolationChannel("ws://hub:8765").unsubscribe(handle)
        return task

    task = asyncio.run(scenario())

    assert task.cancelled()
    assert connection.closed is True


def test_failing_event_handler_does_not_stop_listener(monkeypatch):
    connection = _FakeConnection(
        Message(MessageType.SUBSCRIBE_ACK).to_json(),
        frames=[_occurred(violation_id="v1"), _occurred(violation_id="v2")],
    )
    _patch_connect(monkeypatch, connection)
    received = []

    def _on_event(event):
        if event.violation_id == "v1":
            raise RuntimeError("handler failed")
        received.append(event.violation_id)

    async def scenario():
        channel = WebSocketViolationChannel("ws://hub:8765")
        handle = await channel.subscribe("t1", _on_event)
        await handle.task
        await channel.unsubscribe(handle)

    asyncio.run(scenario())

    assert received == ["v2"]


def test_closed_connection_is_reported_to_subscriber(monkeypatch):
    connection = _FakeConnection(Message(MessageType.SUBSCRIBE_ACK).to_json(),
                                 frames=[_occurred(violation_id="v1")])
    _patch_connect(monkeypatch, connection)
    lost = []

    async def scenario():
        channel = WebSocketViolationChannel("ws://hub:8765")
        handle = await channel.subscribe("t1", lambda event: None, lost.append)
        await handle.task
        await channel.unsubscribe(handle)

    asyncio.run(scenario())

    assert len(lost) == 1
    assert isinstance(lost[0], SubscriptionError)
