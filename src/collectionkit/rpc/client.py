"""Client side of the refresh protocol.

One ``RefreshClient`` holds a single connection shared by every subscriber.
Subscriptions are keyed by directory: the first subscriber of a directory
sends ``refreshWatch`` and the last one to leave sends ``refreshUnwatch``.
Messages produced before the connection is ready are buffered; on every
(re)connect the client replays ``refreshWatch`` for each subscribed
directory, which supersedes anything buffered.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import json
import logging
from enum import Enum
from typing import Any, Callable, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from ..config import Config
from ..errors import RemoteError
from .messages import REFRESH_UNWATCH, REFRESH_UPDATE, REFRESH_WATCH, dumps, notification

logger = logging.getLogger(__name__)

Subscriber = Callable[[str], Any]


class ClientState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    RECONNECTING = "reconnecting"


class RefreshClient:
    """Multiplexes directory subscriptions over one WebSocket connection."""

    def __init__(
        self,
        url: Optional[str] = None,
        config: Optional[Config] = None,
        connect_factory: Callable[..., Any] = connect,
    ):
        config = config or Config()
        self.url = url or f"ws://{config.host}:{config.port}"
        self.max_reconnect_attempts = config.max_reconnect_attempts
        self.reconnect_interval = config.reconnect_interval
        self.state = ClientState.DISCONNECTED
        self._connect = connect_factory
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._buffered: list[str] = []
        self._pending_calls: list[str] = []
        self._outgoing: Optional[asyncio.Queue] = None
        self._requests: dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._task: Optional[asyncio.Task] = None
        self._ready = asyncio.Event()
        self._closing = False

    @property
    def directories(self) -> list[str]:
        return sorted(self._subscribers)

    @property
    def buffered(self) -> list[str]:
        """Messages waiting for the connection."""
        return self._buffered + self._pending_calls

    def subscribe(self, directory: str, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback(directory)`` on every ``refreshUpdate`` for ``directory``.

        Returns:
            A function removing this subscription.
        """
        callbacks = self._subscribers.setdefault(directory, [])
        callbacks.append(callback)
        if len(callbacks) == 1:
            self._send(notification(REFRESH_WATCH, directory))
        self._ensure_running()
        return lambda: self.unsubscribe(directory, callback)

    def unsubscribe(self, directory: str, callback: Subscriber) -> None:
        callbacks = self._subscribers.get(directory)
        if not callbacks or callback not in callbacks:
            return
        callbacks.remove(callback)
        if not callbacks:
            del self._subscribers[directory]
            self._send(notification(REFRESH_UNWATCH, directory))

    async def call(self, method: str, params: Any = None, timeout: float = 60.0) -> Any:
        """Call an RPC method and return its result.

        Raises:
            RemoteError: The server answered with an error object.
            TimeoutError: No answer within ``timeout`` seconds.
        """
        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._requests[request_id] = future
        self._send(dumps({"method": method, "params": params, "id": request_id}), call=True)
        self._ensure_running()
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            self._requests.pop(request_id, None)

    async def wait_until_subscribed(self) -> None:
        await self._ready.wait()

    async def close(self) -> None:
        self._closing = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.state = ClientState.DISCONNECTED

    def _send(self, message: str, call: bool = False) -> None:
        if self._outgoing is not None:
            self._outgoing.put_nowait((message, call))
        elif call:
            self._pending_calls.append(message)
        else:
            self._buffered.append(message)

    def _ensure_running(self) -> None:
        if self._task is None or self._task.done():
            self._closing = False
            self._task = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        attempts = 0
        while not self._closing:
            self.state = ClientState.CONNECTING if attempts == 0 else ClientState.RECONNECTING
            try:
                async with self._connect(self.url) as connection:
                    attempts = 0
                    await self._open(connection)
                    await self._pump(connection)
            except (OSError, ConnectionClosed, InvalidHandshake, InvalidURI, TimeoutError) as error:
                logger.debug("Refresh connection to %s failed: %s", self.url, error)
            finally:
                self._ready.clear()
                self._requeue_calls()

            if self._closing:
                break

            attempts += 1
            if attempts > self.max_reconnect_attempts:
                logger.error(
                    "Could not reconnect to the refresh server at %s after %d attempts",
                    self.url,
                    self.max_reconnect_attempts,
                )
                break

            delay = self.reconnect_interval * 2 ** (attempts - 1)
            self.state = ClientState.RECONNECTING
            logger.info(
                "Reconnecting to refresh server in %.1fs (%d/%d)",
                delay,
                attempts,
                self.max_reconnect_attempts,
            )
            await asyncio.sleep(delay)

        self.state = ClientState.DISCONNECTED

    async def _open(self, connection: ClientConnection) -> None:
        # replaying current subscriptions supersedes buffered watch/unwatch messages
        self._buffered.clear()
        # calls and anything sent while the replay is in flight go out after it
        self._outgoing = asyncio.Queue()
        calls, self._pending_calls = self._pending_calls, []
        for message in calls:
            self._outgoing.put_nowait((message, True))

        for directory in self.directories:
            await connection.send(notification(REFRESH_WATCH, directory))

        self.state = ClientState.SUBSCRIBED
        self._ready.set()
        logger.debug("Subscribed to %d director(ies) on %s", len(self._subscribers), self.url)

    async def _pump(self, connection: ClientConnection) -> None:
        writer = asyncio.ensure_future(self._write(connection))
        try:
            async for message in connection:
                await self._dispatch(message)
        finally:
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)

    async def _write(self, connection: ClientConnection) -> None:
        queue = self._outgoing
        while queue is not None:
            message, _call = await queue.get()
            await connection.send(message)

    def _requeue_calls(self) -> None:
        queue, self._outgoing = self._outgoing, None
        while queue is not None and not queue.empty():
            message, call = queue.get_nowait()
            if call:
                self._pending_calls.append(message)

    async def _dispatch(self, message: str | bytes) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed message from refresh server")
            return
        if not isinstance(payload, dict):
            return

        if payload.get("method") == REFRESH_UPDATE:
            directory = (payload.get("params") or {}).get("directory")
            for callback in list(self._subscribers.get(directory, [])):
                result = callback(directory)
                if inspect.isawaitable(result):
                    await result
            return

        request_id = payload.get("id")
        future = self._requests.get(request_id) if request_id is not None else None
        if future is None or future.done():
            return
        error = payload.get("error")
        if error:
            future.set_exception(RemoteError(error.get("code", 0), error.get("message", ""), error.get("data")))
        else:
            future.set_result(payload.get("result"))
