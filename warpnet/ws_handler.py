"""Routes decrypted websocket requests to authentication or to a node."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from warpnet.events import (
    PRIVATE_POST_LOGIN,
    PRIVATE_POST_LOGOUT,
    ErrorResponse,
    LoginEvent,
    Message,
)
from warpnet.websocket import ConnectionClosed, EncryptedUpgrader

log = logging.getLogger(__name__)

_INTERNAL_SERVER_ERROR = 500


class _AuthServicer(Protocol):
    def auth_login(self, message: LoginEvent) -> dict: ...

    def auth_logout(self) -> None: ...


class _ClientNodeStreamer(Protocol):
    def client_stream(self, node_id: str, path: str, data: Any) -> bytes: ...

    def is_running(self) -> bool: ...


def new_error_response(message: str) -> Message:
    """A response envelope whose body is an internal-server-error object."""
    return Message(body=ErrorResponse(code=_INTERNAL_SERVER_ERROR, message=message).to_dict())


class WSController:
    """Serves one encrypted websocket session at a time."""

    def __init__(
        self,
        auth: _AuthServicer,
        client_node: Optional[_ClientNodeStreamer] = None,
        version: str = "0.0.0",
        upgrader_factory: Callable[[], EncryptedUpgrader] = EncryptedUpgrader,
    ):
        self._auth = auth
        self._client_node = client_node
        self._version = version
        self._upgrader_factory = upgrader_factory
        self._upgrader: Optional[EncryptedUpgrader] = None

    def websocket_upgrade(self, connection: Any) -> None:
        """Run an encrypted session on ``connection`` until it ends."""
        log.info("websocket: upgrade request")
        upgrader = self._upgrader_factory()
        upgrader.on_message(self.handle)
        self._upgrader = upgrader
        try:
            upgrader.serve(connection)
        except ConnectionClosed:
            pass
        except Exception as exc:
            log.error("websocket: upgrader: %s", exc)
        finally:
            upgrader.close()
            self._upgrader = None

    def handle(self, msg: bytes) -> Optional[bytes]:
        """Answer one request; return the encoded response, or None when there is none.

        A request that is not JSON or lacks a message id or body raises ``ValueError``.
        """
        request = Message.from_json(msg)
        raw = bytes(msg).decode("utf-8", errors="replace")
        if not request.message_id:
            log.error("websocket: request: missing message_id: %s", raw)
            raise ValueError("websocket: request: missing message_id")
        if request.body is None:
            log.error("websocket: request: missing body: %s", raw)
            raise ValueError("websocket: request: missing body")

        if request.path == PRIVATE_POST_LOGIN:
            response = self._login(request)
        elif request.path == PRIVATE_POST_LOGOUT:
            try:
                self._auth.auth_logout()
            finally:
                if self._upgrader is not None:
                    self._upgrader.close()
            return None
        else:
            response = self._forward(request, raw)

        if response is None or response.body is None:
            log.error("websocket: response body is empty")
            return None

        response.message_id = request.message_id
        response.node_id = request.node_id
        response.path = request.path
        response.timestamp = datetime.now(timezone.utc)
        response.version = self._version
        return (response.to_json() + "\n").encode("utf-8")

    def _login(self, request: Message) -> Message:
        try:
            login = LoginEvent.from_dict(request.body)
        except (TypeError, ValueError) as exc:
            log.error("websocket: message body as login event: %s %s", exc, request.body)
            return new_error_response(str(exc))
        try:
            login_response = self._auth.auth_login(login)
        except Exception as exc:
            log.error("websocket: auth: %s", exc)
            return new_error_response(str(exc))

        token = ((login_response or {}).get("identity") or {}).get("token", "")
        if self._upgrader is not None:
            # re-key the connection once this answer is sent
            self._upgrader.set_new_salt(token)
        return Message(body=login_response)

    def _forward(self, request: Message, raw: str) -> Optional[Message]:
        node = self._client_node
        if node is None or not node.is_running():
            log.error("websocket: request: not connected to server node")
            return new_error_response("not connected to server node")
        if not request.node_id or not request.path:
            log.error("websocket: missing node id or path: %s", raw)
            return new_error_response(f"missing path or node ID: {raw}")

        log.debug("WS incoming message: %s %s", request.node_id, request.path)
        try:
            reply = node.client_stream(request.node_id, request.path, request.body)
        except Exception as exc:
            log.error("websocket: send stream: %s", exc)
            return new_error_response(str(exc))
        try:
            body = json.loads(reply)
        except (TypeError, ValueError) as exc:
            log.error("websocket: node response is not JSON: %s", exc)
            return None
        return Message(body=body)