import asyncio
import json
import logging
import time

import redis.asyncio as aioredis
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from app.auth import decode_token
from app.config import settings
from app.services.activity import ActivityEvent, ActivityFeed
from app.services.geo import Bounds
from app.services.notifier import WS_CHANNEL

logger = logging.getLogger(__name__)

router = APIRouter()

# Connected notification clients mapped to their user id (None for anonymous)
connected_clients: dict[WebSocket, str | None] = {}


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str | None = None):
    user_id = None
    if token:
        try:
            user_id = decode_token(token)["sub"]
        except HTTPException:
            await websocket.close(code=1008)
            return

    await websocket.accept()
    connected_clients[websocket] = user_id
    logger.info("WebSocket client connected. Total clients: %d", len(connected_clients))

    try:
        while True:
            data = await websocket.receive_text()
            msg = json.loads(data)
            if msg.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        connected_clients.pop(websocket, None)
        logger.info("WebSocket client disconnected. Total clients: %d", len(connected_clients))
    except Exception:
        connected_clients.pop(websocket, None)
        logger.exception("WebSocket error")


async def broadcast(event_type: str, data: dict):
    """Send an event to connected clients. Events carrying a user_id only go to that user."""
    if not connected_clients:
        return

    target = data.get("user_id")
    message = json.dumps({"type": event_type, "data": data})
    disconnected = set()

    for client, user_id in list(connected_clients.items()):
        if target is not None and user_id != target:
            continue
        try:
            await client.send_text(message)
        except Exception:
            disconnected.add(client)

    for client in disconnected:
        connected_clients.pop(client, None)


async def ws_listener():
    """Background task to listen for Redis pub/sub messages and broadcast to WebSocket clients."""
    if not settings.redis_url:
        logger.info("Redis not configured, WebSocket listener disabled")
        return

    r = aioredis.from_url(settings.redis_url)
    pubsub = r.pubsub()
    await pubsub.subscribe(WS_CHANNEL)

    try:
        async for message in pubsub.listen():
            if message["type"] == "message":
                data = json.loads(message["data"])
                event_type = data.get("type", "update")
                event_data = data.get("data", {})
                await broadcast(event_type, event_data)
    except Exception:
        logger.exception("WebSocket Redis listener error")
    finally:
        await pubsub.unsubscribe(WS_CHANNEL)
        await r.aclose()


def _parse_bounds(raw: dict) -> Bounds:
    bounds = Bounds(
        south=float(raw["south"]),
        west=float(raw["west"]),
        north=float(raw["north"]),
        east=float(raw["east"]),
    )
    if bounds.south > bounds.north or bounds.west > bounds.east:
        raise ValueError("bounds are inverted")
    return bounds


class ActivitySession:
    """One /ws/activity connection: a feed plus the ticker that drives it."""

    def __init__(self, websocket: WebSocket, feed: ActivityFeed, clock=time.monotonic):
        self.websocket = websocket
        self.feed = feed
        self.clock = clock
        self._send_lock = asyncio.Lock()

    async def send(self, *messages: dict):
        async with self._send_lock:
            for message in messages:
                await self.websocket.send_json(message)

    async def send_events(self, events: list[ActivityEvent]):
        await self.send(*(event.to_dict() for event in events))

    async def run_ticker(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            events = self.feed.tick(self.clock())
            if events:
                await self.send_events(events)

    async def handle(self, msg: dict):
        msg_type = msg.get("type")
        now = self.clock()

        if msg_type == "viewport":
            try:
                self.feed.set_bounds(_parse_bounds(msg.get("bounds") or {}), now)
            except (KeyError, TypeError, ValueError):
                await self.send({"type": "error", "detail": "Invalid viewport bounds"})
                return
            await self.send({"type": "viewport_ack", "generation": self.feed.generation})
        elif msg_type == "categories":
            await self.send_events(self.feed.set_categories(set(msg.get("categories") or [])))
        elif msg_type in ("pin", "unpin", "close"):
            marker_id = str(msg.get("id", ""))
            if msg_type == "pin":
                event = self.feed.pin(marker_id)
            elif msg_type == "unpin":
                event = self.feed.unpin(marker_id, now)
            else:
                event = self.feed.close(marker_id)
            if event is not None:
                await self.send_events([event])
        elif msg_type == "ping":
            await self.send({"type": "pong"})


@router.websocket("/ws/activity")
async def activity_endpoint(websocket: WebSocket):
    await websocket.accept()
    session = ActivitySession(websocket, ActivityFeed())
    ticker = asyncio.create_task(session.run_ticker(settings.activity_tick_seconds))

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                await session.send({"type": "error", "detail": "Invalid JSON"})
                continue
            if not isinstance(msg, dict):
                continue
            await session.handle(msg)
    except WebSocketDisconnect:
        logger.debug("Activity client disconnected")
    except Exception:
        logger.exception("Activity WebSocket error")
    finally:
        ticker.cancel()
