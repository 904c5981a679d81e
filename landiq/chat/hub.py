"""
In-process broadcast hub for the team chat.

Subscribers are WebSocket connections on /api/chat/ws. Message changes are
published to everyone as {"event": ..., "message": ...}; typing pings go to
everyone except the sender and are remembered for a few seconds so polling
clients can ask who is typing.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache
from starlette.websockets import WebSocket, WebSocketDisconnect

from landiq.config import CHAT_TYPING_MAX_USERS, CHAT_TYPING_TTL_SECONDS
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter

logger = get_logger(__name__)

MESSAGE_EVENTS = ("insert", "update", "delete")


class ChatHub:
    def __init__(
        self,
        typing_ttl: float = CHAT_TYPING_TTL_SECONDS,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        # keyed by id(): starlette connections are Mappings and unhashable
        self._subscribers: dict[int, tuple[WebSocket, str]] = {}
        self._typing: TTLCache[str, str] = TTLCache(
            maxsize=CHAT_TYPING_MAX_USERS, ttl=typing_ttl, timer=timer
        )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, websocket: WebSocket, user_id: str) -> None:
        self._subscribers[id(websocket)] = (websocket, user_id)
        logger.debug("Chat subscriber joined (%d connected)", len(self._subscribers))

    def unsubscribe(self, websocket: WebSocket) -> None:
        self._subscribers.pop(id(websocket), None)

    async def _send(self, payload: dict[str, Any], skip_user: str | None = None) -> int:
        delivered = 0
        for websocket, user_id in list(self._subscribers.values()):
            if skip_user is not None and user_id == skip_user:
                continue
            try:
                await websocket.send_json(payload)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError):
                self.unsubscribe(websocket)
        return delivered

    async def publish(self, event: str, message: dict[str, Any]) -> int:
        """
        Send a message change to every subscriber.

        Returns:
            Number of subscribers reached
        """
        if event not in MESSAGE_EVENTS:
            raise ValueError(f"Unknown chat event: {event}")
        counter(f"chat.{event}")
        return await self._send({"event": event, "message": message})

    async def typing(self, user_id: str, email: str = "") -> int:
        """Record a typing ping and relay it to everyone but the sender."""
        self._typing[user_id] = email
        return await self._send({"event": "typing", "user_id": user_id}, skip_user=user_id)

    def typing_users(self) -> list[dict[str, str]]:
        """Users who sent a typing ping within the TTL."""
        self._typing.expire()
        return [{"user_id": user_id, "email": email} for user_id, email in self._typing.items()]


_hub: ChatHub | None = None


def get_chat_hub() -> ChatHub:
    """Process-wide hub (singleton)."""
    global _hub
    if _hub is None:
        _hub = ChatHub()
    return _hub
