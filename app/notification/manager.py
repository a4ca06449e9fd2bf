"""
app/notification/manager.py

WebSocket connection manager for live notifications.
- Tracks open sockets per user account
- Pushes JSON payloads to every socket of a user
"""

import json
import logging
from typing import Any
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages WebSocket connections per user. A user may hold several
    sockets (tabs, devices).
    """

    def __init__(self) -> None:
        self.active_connections: dict[UUID, list[WebSocket]] = {}

    async def connect(self, user_id: UUID, websocket: WebSocket) -> None:
        """
        Accepts a new WebSocket connection and registers it for the user.
        """
        await websocket.accept()
        self.active_connections.setdefault(user_id, []).append(websocket)

    def disconnect(self, user_id: UUID, websocket: WebSocket) -> None:
        """
        Removes a WebSocket connection from the user's pool.
        """
        sockets = self.active_connections.get(user_id)
        if not sockets:
            return
        if websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            del self.active_connections[user_id]

    def is_connected(self, user_id: UUID) -> bool:
        return bool(self.active_connections.get(user_id))

    async def send_to_user(self, user_id: UUID, payload: dict[str, Any]) -> int:
        """
        Sends a JSON payload to all of the user's sockets.

        Returns:
            int: Number of sockets that received the message. Sockets that
            fail to send are dropped.
        """
        message = json.dumps(payload, default=str)
        delivered = 0
        for connection in list(self.active_connections.get(user_id, [])):
            try:
                await connection.send_text(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"[WEBSOCKET] Dropping broken socket for user {user_id}: {e}")
                self.disconnect(user_id, connection)
        return delivered


# Global instance of the manager for import and use across modules
manager = ConnectionManager()
