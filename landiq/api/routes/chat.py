"""
Team chat endpoints.

REST for history and message changes, plus a WebSocket at /api/chat/ws that
receives every change and relays typing pings.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from landiq.api.middleware.auth import CurrentUser, authenticate, get_current_user
from landiq.chat.hub import ChatHub, get_chat_hub
from landiq.config import CHAT_HISTORY_LIMIT
from landiq.domain.models import MessageCreate
from landiq.observability.logging import get_logger
from landiq.storage.messages import MessageRepository

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = get_logger(__name__)


@router.get("/messages")
def list_messages(
    limit: int = Query(CHAT_HISTORY_LIMIT, ge=1, le=CHAT_HISTORY_LIMIT),
    user: CurrentUser = Depends(get_current_user),
) -> list[dict[str, Any]]:
    """Most recent messages, oldest first."""
    return MessageRepository().recent(limit)


@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    user: CurrentUser = Depends(get_current_user),
    hub: ChatHub = Depends(get_chat_hub),
) -> dict[str, Any]:
    message = MessageRepository().create(user.user_id, user.email, payload.content)
    await hub.publish("insert", message)
    return message


@router.patch("/messages/{message_id}")
async def edit_message(
    message_id: str,
    payload: MessageCreate,
    user: CurrentUser = Depends(get_current_user),
    hub: ChatHub = Depends(get_chat_hub),
) -> dict[str, Any]:
    """Only the author can edit; anyone else gets 404."""
    message = MessageRepository().update(message_id, user.user_id, payload.content)
    await hub.publish("update", message)
    return message


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: str,
    user: CurrentUser = Depends(get_current_user),
    hub: ChatHub = Depends(get_chat_hub),
) -> dict[str, Any]:
    """Only the author can delete; anyone else gets 404."""
    message = MessageRepository().delete(message_id, user.user_id)
    await hub.publish("delete", {"id": message["id"], "user_id": message["user_id"]})
    return {"deleted": True, "id": message_id}


@router.get("/typing")
def typing_users(
    user: CurrentUser = Depends(get_current_user),
    hub: ChatHub = Depends(get_chat_hub),
) -> list[dict[str, str]]:
    """Users who pinged "typing" within the last few seconds."""
    return hub.typing_users()


@router.post("/typing", status_code=status.HTTP_204_NO_CONTENT)
async def typing_ping(
    user: CurrentUser = Depends(get_current_user),
    hub: ChatHub = Depends(get_chat_hub),
) -> None:
    await hub.typing(user.user_id, user.email)


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, hub: ChatHub = Depends(get_chat_hub)) -> None:
    """
    Subscribe to chat changes. Clients may send {"type": "typing"}; other
    frames are ignored.
    """
    try:
        user = authenticate(
            websocket.headers.get("x-user-email"),
            websocket.headers.get("x-user-id"),
            websocket.headers.get("authorization"),
        )
    except HTTPException as e:
        logger.info("Chat socket rejected: %s", e.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(e.detail))
        return

    await websocket.accept()
    hub.subscribe(websocket, user.user_id)
    try:
        while True:
            try:
                frame = json.loads(await websocket.receive_text())
            except ValueError:
                continue
            if isinstance(frame, dict) and frame.get("type") == "typing":
                await hub.typing(user.user_id, user.email)
    except WebSocketDisconnect:
        pass
    finally:
        hub.unsubscribe(websocket)
