"""
WebSocket fan-out of thread activity.

- One Redis Pub/Sub channel per thread, so every worker process sees inserts
- Local connections tracked in-memory per thread for broadcasting
- Listener task per thread, started with its first connection and
  cancelled with its last
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from uuid import UUID

import redis.asyncio as redis
from redis.exceptions import RedisError
from fastapi import WebSocket
from starlette.requests import HTTPConnection

logger = logging.getLogger(__name__)

REDIS_THREAD_CHANNEL_PREFIX = "cc:thread:"


class ConnectionInfo:
    """Tracks a single WebSocket connection's metadata."""

    __slots__ = ("websocket", "user_id", "thread_id")

    def __init__(self, websocket: WebSocket, user_id: UUID, thread_id: UUID):
        self.websocket = websocket
        self.user_id = user_id
        self.thread_id = thread_id


class ThreadConnectionManager:
    """
    Manages thread WebSocket connections with Redis-backed pub/sub.

    Publishing goes through Redis only; each process's listener relays what it
    receives to its local sockets, including the publishing process.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client
        # thread_id_str -> list[ConnectionInfo]
        self._connections: dict[str, list[ConnectionInfo]] = {}
        # thread_id_str -> asyncio.Task (Redis listener)
        self._redis_tasks: dict[str, asyncio.Task] = {}

    @property
    def connections(self) -> dict[str, list[ConnectionInfo]]:
        return self._connections

    @staticmethod
    def channel_for(thread_id: UUID | str) -> str:
        return f"{REDIS_THREAD_CHANNEL_PREFIX}{thread_id}"

    async def connect(self, websocket: WebSocket, thread_id: UUID, user_id: UUID) -> ConnectionInfo:
        await websocket.accept()

        key = str(thread_id)
        info = ConnectionInfo(websocket, user_id, thread_id)
        if key not in self._connections:
            self._connections[key] = []
            self._redis_tasks[key] = asyncio.create_task(self._listen_redis(key))
        self._connections[key].append(info)

        logger.info(
            "WebSocket connected: thread=%s user=%s total=%d",
            key,
            user_id,
            len(self._connections[key]),
        )
        return info

    async def disconnect(self, info: ConnectionInfo) -> None:
        key = str(info.thread_id)
        conns = self._connections.get(key)
        if conns is None:
            return
        if info in conns:
            conns.remove(info)
        if not conns:
            task = self._redis_tasks.pop(key, None)
            if task:
                task.cancel()
            del self._connections[key]

        logger.info("WebSocket disconnected: thread=%s user=%s", key, info.user_id)

    async def broadcast_local(self, thread_id: UUID | str, message: dict[str, Any]) -> None:
        """Send to every connection on this process watching the thread."""
        key = str(thread_id)
        msg_text = json.dumps(message)

        dead_connections = []
        for conn_info in list(self._connections.get(key, [])):
            try:
                await conn_info.websocket.send_text(msg_text)
            except (RuntimeError, ConnectionError) as exc:
                logger.debug("Dropping dead WebSocket on thread %s: %s", key, exc)
                dead_connections.append(conn_info)

        for dead in dead_connections:
            await self.disconnect(dead)

    async def publish(self, thread_id: UUID, message: dict[str, Any]) -> None:
        """Publish an event to Redis for cross-process broadcasting."""
        await self._redis.publish(self.channel_for(thread_id), json.dumps(message))

    async def close_connections_for_user(self, user_id: UUID) -> None:
        """Close every connection a user holds, e.g. after their account is removed."""
        for conns in list(self._connections.values()):
            for conn_info in [c for c in conns if c.user_id == user_id]:
                try:
                    await conn_info.websocket.close(code=4001, reason="credential_revoked")
                except RuntimeError:
                    pass  # already closed
                await self.disconnect(conn_info)

    # --- Redis Pub/Sub Listener ---

    async def _listen_redis(self, thread_id_str: str) -> None:
        pubsub = self._redis.pubsub()
        channel = self.channel_for(thread_id_str)
        await pubsub.subscribe(channel)

        try:
            async for message in pubsub.listen():
                if message["type"] == "message":
                    await self.broadcast_local(thread_id_str, json.loads(message["data"]))
        except asyncio.CancelledError:
            logger.info("Redis WS listener cancelled for thread %s", thread_id_str)
        except Exception:
            logger.exception("Redis WS listener failed for thread %s", thread_id_str)
            await self._drop_thread(thread_id_str)
        finally:
            try:
                await pubsub.unsubscribe(channel)
                await pubsub.aclose()
            except RedisError as exc:
                logger.warning("Redis unsubscribe failed for thread %s: %s", thread_id_str, exc)

    async def _drop_thread(self, thread_id_str: str) -> None:
        """Close a thread's local sockets so clients reconnect to a fresh listener."""
        self._redis_tasks.pop(thread_id_str, None)
        for conn_info in self._connections.pop(thread_id_str, []):
            try:
                await conn_info.websocket.close(code=1011, reason="realtime_unavailable")
            except RuntimeError:
                pass  # already closed


def get_realtime(conn: HTTPConnection) -> ThreadConnectionManager:
    """FastAPI dependency: this app's connection manager."""
    return conn.app.state.realtime
