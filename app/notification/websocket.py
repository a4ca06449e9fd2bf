"""
app/notification/websocket.py

Notification WebSocket Route

- Authenticates clients by Bearer header, cookie or `token` query parameter
- Registers the socket with the connection manager
- Answers `ping` with `pong`; notifications are pushed by the services
"""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_from_ws
from app.database.session import get_db
from app.notification.manager import manager

# ---------------------------------------------------
# Router Configuration
# ---------------------------------------------------
router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws/notifications")
async def notifications_socket(
    websocket: WebSocket,
    db: AsyncSession = Depends(get_db),
) -> None:
    user = await get_current_user_from_ws(websocket, db)
    if user is None:
        logger.warning("[WEBSOCKET] Rejected unauthenticated notification socket")
        return None

    user_id = user.id
    await manager.connect(user_id, websocket)
    logger.info(f"[WEBSOCKET] User {user_id} subscribed to notifications")

    try:
        while True:
            raw_data = await websocket.receive_text()
            if raw_data.strip().lower() == "ping":
                await websocket.send_text("pong")
            else:
                logger.debug(f"[WEBSOCKET] Ignoring client message from {user_id}: {raw_data!r}")
    except WebSocketDisconnect as exc:
        logger.info(f"[WEBSOCKET] User {user_id} disconnected (code: {exc.code})")
    except Exception as e:
        logger.error(
            f"[WEBSOCKET] Unexpected error in notification socket for user {user_id}: {e}",
            exc_info=True,
        )
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="Internal server error")
    finally:
        manager.disconnect(user_id, websocket)

    return None
