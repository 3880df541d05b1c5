"""WebSocket endpoints that push live collection snapshots."""
from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..services import FeedUpdate, ProfilesUpdate, RemoteStore, SubscriptionFailure, get_remote_store
from ..services.events import MESSAGES_CHANNEL, PROFILES_CHANNEL
from ..services.message_stream import message_stream_manager

router = APIRouter()
logger = logging.getLogger(__name__)


def _encode(event: Any) -> dict[str, Any]:
    if isinstance(event, FeedUpdate):
        return {
            "type": "snapshot",
            "messages": [message.model_dump(mode="json") for message in event.messages],
            "changes": [change.model_dump(mode="json") for change in event.changes],
        }
    if isinstance(event, ProfilesUpdate):
        return {
            "type": "snapshot",
            "profiles": [profile.model_dump(mode="json") for profile in event.profiles],
            "changes": [change.model_dump(mode="json") for change in event.changes],
        }
    if isinstance(event, SubscriptionFailure):
        return {"type": "error", "detail": str(event.error)}
    return {"type": "unknown"}


async def _pump(websocket: WebSocket, queue: asyncio.Queue[Any]) -> None:
    while True:
        event = await queue.get()
        if not await message_stream_manager.send(websocket, _encode(event)):
            return


async def _serve(channel: str, websocket: WebSocket, store: RemoteStore) -> None:
    await message_stream_manager.connect(channel, websocket)
    logger.info("%s socket connected from %s", channel, websocket.client)

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[Any] = asyncio.Queue()

    def _listener(event: Any) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, event)

    subscribe = store.subscribe_messages if channel == MESSAGES_CHANNEL else store.subscribe_profiles
    subscription = await asyncio.to_thread(subscribe, _listener)
    pump = asyncio.create_task(_pump(websocket, queue))
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break
            except Exception:
                logger.exception("%s socket receive failed", channel)
                break

            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                payload = {"type": raw}
            if not isinstance(payload, dict):
                continue

            message_type = (payload.get("type") or "").lower()
            if message_type == "ping":
                await message_stream_manager.send(websocket, {"type": "pong"})
            # All other messages are ignored, but receiving them keeps the connection alive.
    finally:
        subscription.close()
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump
        await message_stream_manager.disconnect(websocket)
        logger.info("%s socket disconnected from %s", channel, websocket.client)


@router.websocket("/ws/messages")
async def message_updates(websocket: WebSocket, store: RemoteStore = Depends(get_remote_store)) -> None:
    """Push the ordered message snapshot on connect and after every change."""
    await _serve(MESSAGES_CHANNEL, websocket, store)


@router.websocket("/ws/profiles")
async def profile_updates(websocket: WebSocket, store: RemoteStore = Depends(get_remote_store)) -> None:
    await _serve(PROFILES_CHANNEL, websocket, store)


__all__ = ["router"]
