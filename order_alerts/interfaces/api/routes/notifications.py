"""Endpoints and websocket handler for realtime order notifications."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from order_alerts.domain.entities import Identity
from order_alerts.infrastructure.notifications import notification_manager
from order_alerts.infrastructure.security import identity_from_token
from order_alerts.interfaces.api.dependencies import require_admin
from order_alerts.interfaces.api.schemas import ConnectionStatusRead, JoinMessage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

# "join-admin-room", "join-user-room" and "register" are the names older clients still send.
JOIN_MESSAGE_TYPES = frozenset({"join", "join-admin-room", "join-user-room", "register"})


def _authorize_join(message: dict) -> Identity:
    """Return the identity carried by a join ``message`` or raise ``ValueError``."""

    try:
        join = JoinMessage.model_validate(message)
    except ValidationError as exc:
        raise ValueError("Join message requires a token") from exc

    identity = identity_from_token(join.token)
    if not identity.can_receive_notifications():
        raise ValueError(f"Role '{identity.role}' does not receive notifications")
    return identity


@router.get("/status", response_model=ConnectionStatusRead)
def notifications_status(
    _: Identity = Depends(require_admin),
) -> ConnectionStatusRead:
    """Return how many sockets are connected and how rooms are populated."""

    return ConnectionStatusRead(
        connections=notification_manager.connection_count(),
        rooms=notification_manager.room_sizes(),
    )


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams order notifications to staff rooms."""

    await notification_manager.connect(websocket)
    identity: Identity | None = None
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type in JOIN_MESSAGE_TYPES:
                try:
                    joined = _authorize_join(message)
                    if identity is not None and joined != identity:
                        raise ValueError("Socket already joined as another user")
                except ValueError as exc:
                    logger.warning("Rejected notification join: %s", exc)
                    notification_manager.disconnect(websocket)
                    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                    return

                identity = joined
                rooms = notification_manager.join(websocket, identity.rooms())
                logger.info(
                    "User %s (%s) joined %s", identity.user_id, identity.role, sorted(rooms)
                )
                await websocket.send_json({"type": "joined", "data": {"rooms": sorted(rooms)}})
                continue

            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(websocket)
        if identity is not None:
            logger.info("User %s disconnected from notifications", identity.user_id)
    except Exception:
        notification_manager.disconnect(websocket)
        raise
