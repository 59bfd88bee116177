"""WebSocket server notifying clients about refreshed directories."""

from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError
from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from .messages import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    REFRESH_UNWATCH,
    REFRESH_UPDATE,
    REFRESH_WATCH,
    RefreshParams,
    Request,
    error_response,
    notification,
    result_response,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


def contains(directory: str, path: str) -> bool:
    """Whether ``path`` is ``directory`` or lies below it."""
    directory = directory.rstrip("/") or "/"
    return path == directory or path.startswith(directory if directory == "/" else directory + "/")


class RefreshServer:
    """Tracks which directories each connection watches and serves RPC methods."""

    def __init__(self, host: str = "localhost", port: int = 5996):
        self.host = host
        self.requested_port = port
        self._server: Optional[Server] = None
        self._handlers: dict[str, Handler] = {}
        self._watched: dict[ServerConnection, set[str]] = {}

    async def __aenter__(self) -> "RefreshServer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def port(self) -> int:
        if self._server is None:
            raise RuntimeError("Server is not running")
        return self._server.sockets[0].getsockname()[1]

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    def register_method(self, method: str, handler: Handler) -> None:
        """Serve ``method`` requests with ``handler(params)``, sync or async."""
        self._handlers[method] = handler

    def watched_directories(self) -> set[str]:
        directories: set[str] = set()
        for watched in self._watched.values():
            directories.update(watched)
        return directories

    async def start(self) -> None:
        self._server = await serve(self._handle_connection, self.host, self.requested_port)
        logger.info("Refresh server listening on %s", self.url)

    async def close(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        self._watched.clear()

    async def notify(self, path: str) -> int:
        """Send ``refreshUpdate`` to every connection watching a directory holding ``path``.

        Returns:
            Number of notifications sent.
        """
        sent = 0
        for connection, directories in list(self._watched.items()):
            for directory in sorted(directories):
                if not contains(directory, path):
                    continue
                try:
                    await connection.send(notification(REFRESH_UPDATE, directory))
                except ConnectionClosed:
                    logger.debug("Dropping notification for closed connection")
                    break
                sent += 1
        logger.debug("Sent %d refresh notification(s) for %s", sent, path)
        return sent

    async def _handle_connection(self, connection: ServerConnection) -> None:
        self._watched[connection] = set()
        try:
            async for message in connection:
                await self._handle_message(connection, message)
        except ConnectionClosed as error:
            logger.debug("Connection closed: %s", error)
        finally:
            self._watched.pop(connection, None)

    async def _handle_message(self, connection: ServerConnection, message: str | bytes) -> None:
        try:
            payload = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError):
            await connection.send(error_response(None, PARSE_ERROR, "Failed to parse incoming message"))
            return

        request_id = payload.get("id") if isinstance(payload, dict) else None
        try:
            request = Request.model_validate(payload)
        except PydanticValidationError:
            await connection.send(error_response(request_id, INVALID_REQUEST, "Invalid request"))
            return

        if request.method in (REFRESH_WATCH, REFRESH_UNWATCH):
            await self._handle_subscription(connection, request)
            return

        handler = self._handlers.get(request.method)
        if handler is None:
            if request.id is not None:
                available = ", ".join(sorted(self._handlers)) or "none"
                await connection.send(
                    error_response(
                        request.id,
                        METHOD_NOT_FOUND,
                        f'Method "{request.method}" is not registered. Available methods: {available}',
                    )
                )
            else:
                logger.debug("Ignoring unknown notification %s", request.method)
            return

        try:
            result = handler(request.params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as error:
            logger.exception("Error while processing method %s", request.method)
            if request.id is None:
                return
            await connection.send(
                error_response(
                    request.id,
                    INTERNAL_ERROR,
                    f'Internal server error while processing method "{request.method}"',
                    str(error),
                )
            )
            return

        if request.id is not None:
            await connection.send(result_response(request.id, result))

    async def _handle_subscription(self, connection: ServerConnection, request: Request) -> None:
        try:
            params = RefreshParams.model_validate(request.params)
        except PydanticValidationError:
            if request.id is not None:
                await connection.send(error_response(request.id, INVALID_REQUEST, "Expected params.directory"))
            return

        watched = self._watched.setdefault(connection, set())
        if request.method == REFRESH_WATCH:
            watched.add(params.directory)
        else:
            watched.discard(params.directory)
        logger.debug("%s %s", request.method, params.directory)

        if request.id is not None:
            await connection.send(result_response(request.id, None))
