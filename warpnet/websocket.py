"""Encrypted message exchange over a websocket connection."""

from __future__ import annotations

import base64
import binascii
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Union

from warpnet.security.diffie_hellman import DiffieHellmanEncrypter

log = logging.getLogger(__name__)

MessageCallback = Callable[[bytes], Optional[bytes]]


class ConnectionClosed(Exception):
    """The websocket connection is closed or gone."""


class Connection(Protocol):
    def recv(self) -> Union[str, bytes]: ...

    def send(self, data: str) -> None: ...

    def close(self) -> None: ...


def _current_date() -> bytes:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d").encode()


class EncryptedUpgrader:
    """Runs a key exchange with the client, then an encrypted request loop.

    The first text frame from the client is its base64 public key; the
    answer is ours. Every later frame is decrypted, passed to the callback,
    and the callback's result is sent back encrypted.
    """

    def __init__(
        self,
        encrypter: Optional[DiffieHellmanEncrypter] = None,
        salt: Optional[bytes] = None,
    ):
        self._encrypter = encrypter or DiffieHellmanEncrypter()
        self._salt: Optional[bytes] = salt if salt is not None else _current_date()
        self._conn: Optional[Connection] = None
        self._callback: Optional[MessageCallback] = None
        self._lock = threading.RLock()
        self._handshake_complete = False
        self._external_pub_key = b""
        self._salt_renewed = False

    @property
    def salt(self) -> Optional[bytes]:
        return self._salt

    @property
    def handshake_complete(self) -> bool:
        return self._handshake_complete

    def on_message(self, callback: MessageCallback) -> None:
        self._callback = callback

    def serve(self, connection: Connection) -> None:
        """Run the read loop on ``connection`` until it fails.

        Errors from the connection propagate; an undecryptable message ends
        the loop quietly.
        """
        if connection is None:
            raise ConnectionClosed("websocket connection is closed")
        self._conn = connection
        while True:
            conn = self._conn
            if conn is None:
                raise ConnectionClosed("websocket connection is down")
            message = conn.recv()

            if not isinstance(message, str):
                self._try_send_plain("message type must be a text")
                continue

            if not self._handshake_complete:
                log.info("websocket: received client public key")
                try:
                    pub_key = base64.b64decode(message, validate=True)
                except (binascii.Error, ValueError) as exc:
                    self._try_send_plain(str(exc))
                    raise
                self._external_pub_key = pub_key
                try:
                    self._encrypter.compute_shared_secret(pub_key, self._salt)
                except ValueError as exc:
                    self._try_send_plain(str(exc))
                    continue
                log.info("websocket: computed shared secret")
                try:
                    self.send_plain(base64.b64encode(self._encrypter.public_key).decode())
                except Exception as exc:
                    log.info("websocket: error sending public key: %s", exc)
                    continue
                log.info("websocket: handshake complete")
                self._handshake_complete = True
                continue

            if self._callback is None:
                log.info("websocket: no read callback provided")
                continue
            try:
                decrypted = self._encrypter.decrypt_message(message.encode())
            except ValueError as exc:
                log.error("websocket: failed to decrypt message: %s", exc)
                return None

            response: Optional[bytes] = None
            try:
                response = self._callback(decrypted)
            except Exception as exc:
                log.error("websocket: read callback: %s", exc)
            try:
                self.send_encrypted(response)
            except Exception as exc:
                log.error("websocket: failed to send encrypted message: %s", exc)
            try:
                self._renew_salt()
            except ValueError as exc:
                log.error("websocket: failed to renew salt: %s", exc)

    def close(self) -> None:
        """Close the connection, if any, and forget the salt."""
        conn = self._conn
        if conn is None:
            return
        try:
            conn.close()
        except Exception as exc:
            log.debug("websocket: close: %s", exc)
        self._conn = None
        self._salt = None

    def _try_send_plain(self, msg: str) -> None:
        try:
            self.send_plain(msg)
        except Exception as exc:
            log.debug("websocket: send plain: %s", exc)

    def send_plain(self, msg: str) -> None:
        with self._lock:
            if self._conn is None:
                raise ConnectionClosed("websocket connection is closed")
            self._conn.send(msg)

    def send_encrypted(self, msg: Optional[bytes]) -> None:
        """Encrypt and send ``msg``; empty messages are not sent."""
        if not msg:
            return
        encrypted = self._encrypter.encrypt_message(msg)
        with self._lock:
            if self._conn is None:
                raise ConnectionClosed("websocket connection is closed")
            self._conn.send(encrypted.decode())

    def set_new_salt(self, salt: str) -> None:
        """Re-key with ``salt`` once the current request has been answered."""
        if not salt:
            return
        with self._lock:
            self._salt = salt.encode()
            self._salt_renewed = False

    def _renew_salt(self) -> None:
        with self._lock:
            if self._salt_renewed:
                return
            self._encrypter.compute_shared_secret(self._external_pub_key, self._salt)
            self._salt_renewed = True
            log.info("websocket: secret renewed")