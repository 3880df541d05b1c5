"""WebSocket channel manager for pushing collection snapshots to remote clients."""
from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import WebSocket


class MessageStreamManager:
    """Track per-channel WebSocket connections and send JSON events to them."""

    def __init__(self) -> None:
        self._channels: dict[str, set[WebSocket]] = {}
        self._connections: dict[WebSocket, str] = {}
        self._lock = asyncio.Lock()

    async def connect(self, channel: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            group = self._channels.setdefault(channel, set())
            group.add(websocket)
            self._connections[websocket] = channel

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            channel = self._connections.pop(websocket, None)
            if not channel:
                return
            group = self._channels.get(channel)
            if group is None:
                return
            group.discard(websocket)
            if not group:
                self._channels.pop(channel, None)

    async def connection_count(self, channel: str) -> int:
        async with self._lock:
            return len(self._channels.get(channel, ()))

    async def send(self, websocket: WebSocket, payload: dict[str, Any]) -> bool:
        """Send one event; a connection that fails to receive it is dropped."""
        serialized = json.dumps(payload, default=str)
        try:
            await websocket.send_text(serialized)
        except Exception:
            await self.disconnect(websocket)
            return False
        return True


message_stream_manager = MessageStreamManager()


__all__ = ["message_stream_manager", "MessageStreamManager"]
