"""
tests/notification/test_manager.py

ConnectionManager bookkeeping and fan-out.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.notification.manager import ConnectionManager


def fake_socket(fail: bool = False) -> MagicMock:
    socket = MagicMock()
    socket.accept = AsyncMock()
    socket.send_text = AsyncMock(side_effect=RuntimeError("closed") if fail else None)
    return socket


@pytest.mark.asyncio
async def test_connect_and_disconnect() -> None:
    manager = ConnectionManager()
    user_id = uuid4()
    socket = fake_socket()

    await manager.connect(user_id, socket)
    socket.accept.assert_awaited_once()
    assert manager.is_connected(user_id)

    manager.disconnect(user_id, socket)
    assert not manager.is_connected(user_id)
    assert user_id not in manager.active_connections


@pytest.mark.asyncio
async def test_send_to_every_socket_of_user() -> None:
    manager = ConnectionManager()
    user_id = uuid4()
    tab, phone = fake_socket(), fake_socket()
    await manager.connect(user_id, tab)
    await manager.connect(user_id, phone)

    delivered = await manager.send_to_user(user_id, {"title": "Order Confirmed", "id": uuid4()})
    assert delivered == 2
    tab.send_text.assert_awaited_once()
    assert '"title": "Order Confirmed"' in tab.send_text.await_args.args[0]


@pytest.mark.asyncio
async def test_broken_socket_is_dropped() -> None:
    manager = ConnectionManager()
    user_id = uuid4()
    good, broken = fake_socket(), fake_socket(fail=True)
    await manager.connect(user_id, good)
    await manager.connect(user_id, broken)

    delivered = await manager.send_to_user(user_id, {"title": "x"})
    assert delivered == 1
    assert manager.active_connections[user_id] == [good]


@pytest.mark.asyncio
async def test_send_to_offline_user() -> None:
    assert await ConnectionManager().send_to_user(uuid4(), {"title": "x"}) == 0


def test_disconnect_unknown_socket_is_noop() -> None:
    manager = ConnectionManager()
    manager.disconnect(uuid4(), fake_socket())
    assert manager.active_connections == {}
