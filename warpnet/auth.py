"""Owner authentication: password rules, owner creation and node start-up on login."""

from __future__ import annotations

import logging
import queue
import re
import secrets
import threading
import time
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from warpnet.events import LoginEvent

log = logging.getLogger(__name__)

# Puts the owner's own user at the end of a who-to-follow list.
MAX_LATENCY = 2**63 - 1
STARTUP_TIMEOUT = 300.0

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

_HAS_UPPER = re.compile(r"[A-Z]")
_HAS_LOWER = re.compile(r"[a-z]")
_HAS_NUMBER = re.compile(r"[0-9]")
_HAS_SPECIAL = re.compile(r"[\W_]", re.ASCII)


class AuthError(Exception):
    """Login was refused or the node could not be started."""


class _UserRepository(Protocol):
    def create(self, user: dict) -> dict: ...

    def update(self, user_id: str, user: dict) -> dict: ...


class _AuthRepository(Protocol):
    def authenticate(self, username: str, password: str) -> None: ...

    def session_token(self) -> str: ...

    def get_owner(self) -> dict: ...

    def set_owner(self, owner: dict) -> dict: ...


def _new_ulid() -> str:
    """A ULID: 48-bit millisecond timestamp and 80 random bits, Crockford base32."""
    value = (int(time.time() * 1000) << 80) | secrets.randbits(80)
    return "".join(_CROCKFORD[(value >> shift) & 31] for shift in range(125, -1, -5))


def validate_password(pw: str) -> None:
    """Raise ``AuthError`` unless ``pw`` is 8 to 32 bytes with mixed character classes."""
    if not pw:
        raise AuthError("empty password")
    size = len(pw.encode("utf-8"))
    if size < 8:
        raise AuthError("password must be at least 8 characters")
    if size > 32:
        raise AuthError("password must be less than 32 characters")
    if not _HAS_UPPER.search(pw):
        raise AuthError("password must have at least one uppercase letter")
    if not _HAS_LOWER.search(pw):
        raise AuthError("password must have at least one lowercase letter")
    if not _HAS_NUMBER.search(pw):
        raise AuthError("password must have at least one digit")
    if not _HAS_SPECIAL.search(pw):
        raise AuthError("password must have at least one special character")


def _identity(owner: dict, token: str) -> dict:
    return {"identity": {"owner": owner, "token": token}}


class AuthService:
    """Logs the owner in and hands the identity to the node starter.

    On login the identity is put on ``auth_ready``; the node starter answers
    on ``node_ready`` with the node's auth info, which carries the node id.
    Logging out sets ``interrupt``.
    """

    def __init__(
        self,
        auth_repo: _AuthRepository,
        user_repo: _UserRepository,
        interrupt: threading.Event,
        auth_ready: "queue.Queue[dict]",
        node_ready: "queue.Queue[dict]",
        startup_timeout: float = STARTUP_TIMEOUT,
    ):
        self._auth_repo = auth_repo
        self._user_repo = user_repo
        self._interrupt = interrupt
        self._auth_ready = auth_ready
        self._node_ready = node_ready
        self._startup_timeout = startup_timeout
        self._authenticated = threading.Event()

    def is_authenticated(self) -> bool:
        return self._authenticated.is_set()

    def auth_login(self, message: LoginEvent) -> dict:
        """Authenticate the owner and wait for the node to start; return its auth info."""
        if self._authenticated.is_set():
            return _identity(self._auth_repo.get_owner(), self._auth_repo.session_token())
        log.info("authenticating user %s", message.username)

        password = message.password.strip()
        validate_password(password)

        try:
            self._auth_repo.authenticate(message.username, password)
        except Exception as exc:
            log.error("authentication failed: %s", exc)
            raise AuthError(f"authentication failed: {exc}") from exc
        token = self._auth_repo.session_token()
        owner: dict[str, Any] = dict(self._auth_repo.get_owner() or {})

        user: dict[str, Any] = {}
        if not owner.get("user_id"):
            user_id = _new_ulid()
            log.info("creating new owner: %s", user_id)
            try:
                owner = dict(
                    self._auth_repo.set_owner(
                        {
                            "created_at": datetime.now(timezone.utc),
                            "username": message.username,
                            "user_id": user_id,
                        }
                    )
                )
            except Exception as exc:
                log.error("new owner creation failed: %s", exc)
                raise AuthError(f"create owner: {exc}") from exc
            try:
                user = dict(
                    self._user_repo.create(
                        {
                            "created_at": owner.get("created_at"),
                            "id": user_id,
                            "node_id": "None",
                            "username": owner.get("username"),
                            "latency": MAX_LATENCY,
                        }
                    )
                )
            except Exception as exc:
                raise AuthError(f"new user creation failed: {exc}") from exc

        if owner.get("username") != message.username:
            log.error("username mismatch: %s == %s", owner.get("username"), message.username)
            raise AuthError(f"user {message.username} doesn't exist")

        self._auth_ready.put(_identity(dict(owner), token))
        log.info("OWNER USER ID: %s", owner.get("user_id"))

        try:
            auth_info = self._node_ready.get(timeout=self._startup_timeout)
        except queue.Empty:
            log.error("node startup failed: timeout")
            raise AuthError("node starting is timed out") from None

        node_id = _node_id_of(auth_info)
        user.update(
            id=owner.get("user_id"),
            username=owner.get("username"),
            created_at=owner.get("created_at"),
            latency=MAX_LATENCY,
            node_id=node_id,
        )
        owner["node_id"] = node_id

        try:
            self._auth_repo.set_owner(owner)
        except Exception as exc:
            log.error("owner update failed: %s", exc)
        try:
            self._user_repo.update(user["id"], user)
        except Exception as exc:
            log.error("user update failed: %s", exc)

        self._authenticated.set()
        return auth_info

    def auth_logout(self) -> None:
        """Signal shutdown and drop the authenticated state."""
        self._interrupt.set()
        self._authenticated.clear()


def _node_id_of(auth_info: Optional[dict]) -> str:
    identity = (auth_info or {}).get("identity") or {}
    owner = identity.get("owner") or {}
    return owner.get("node_id", "")