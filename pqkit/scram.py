"""Client side of a SCRAM (RFC 5802) SASL conversation, e.g. SCRAM-SHA-256."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import re
import secrets
from typing import Callable, Union

__all__ = ["ScramClient", "ScramError"]

HashFactory = Union[str, Callable[..., "hashlib._Hash"]]

_NONCE_LEN = 16
_BYTE_ORDER = "big"
_ESCAPES = str.maketrans({"=": "=3D", ",": "=2C"})
_INTEGER = re.compile(rb"[+-]?[0-9]+")


class ScramError(Exception):
    """Raised (and recorded) when a SCRAM conversation fails."""


class ScramClient:
    """A SCRAM client that produces one message per step.

    Typical use::

        client = ScramClient(hashlib.sha256, user, password)
        data = None
        while not client.step(data):
            send(client.out())
            data = receive()
        if client.err() is not None:
            ...  # authentication failed
    """

    def __init__(self, hash_factory: HashFactory, user: str, password: str) -> None:
        self._hash = hash_factory
        self._user = user
        self._password = password
        self._step = 0
        self._out = bytes()
        self._err: ScramError | None = None
        self._client_nonce = bytes()
        self._server_nonce = bytes()
        self._salted = bytes()
        self._auth_message = bytearray()

    def out(self) -> bytes | None:
        """Return the data to send to the server for the current step."""
        return self._out or None

    def err(self) -> ScramError | None:
        """Return the error that ended the conversation, if any."""
        return self._err

    def set_nonce(self, nonce: bytes | str) -> None:
        """Use the given client nonce instead of a random one."""
        self._client_nonce = nonce.encode() if isinstance(nonce, str) else bytes(nonce)

    def step(self, data: bytes | None) -> bool:
        """Process a server message and prepare the next client message.

        Returns False while more data is expected and there is no error;
        True once the conversation is complete or has failed.
        """
        self._out = bytes()
        if self._step > 2 or self._err is not None:
            return False
        self._step += 1
        incoming = bytes(data or b"")
        handlers = {1: self._step1, 2: self._step2, 3: self._step3}
        try:
            handlers[self._step](incoming)
        except ScramError as exc:
            self._err = exc
        return self._step > 2 or self._err is not None

    def _digest(self, data: bytes) -> bytes:
        if isinstance(self._hash, str):
            return hashlib.new(self._hash, data).digest()
        return self._hash(data).digest()

    def _hmac(self, key: bytes, data: bytes) -> bytes:
        return hmac.new(key, data, self._hash).digest()

    def _step1(self, _data: bytes) -> None:
        if not self._client_nonce:
            raw = secrets.token_bytes(_NONCE_LEN)
            self._client_nonce = base64.b64encode(raw)
        self._auth_message += b"n=" + self._user.translate(_ESCAPES).encode()
        self._auth_message += b",r=" + self._client_nonce
        self._out = b"n,," + bytes(self._auth_message)

    def _step2(self, data: bytes) -> None:
        self._auth_message += b"," + data

        parts = data.split(b",")
        if len(parts) != 3:
            raise ScramError(
                "expected 3 fields in first SCRAM-SHA-256 server message, "
                f"got {len(parts)}: {data!r}"
            )
        nonce_field, salt_field, iter_field = parts
        if not nonce_field.startswith(b"r="):
            raise ScramError(f"server sent an invalid SCRAM-SHA-256 nonce: {nonce_field!r}")
        if not salt_field.startswith(b"s=") or len(salt_field) < 6:
            raise ScramError(f"server sent an invalid SCRAM-SHA-256 salt: {salt_field!r}")
        if not iter_field.startswith(b"i=") or len(iter_field) < 6:
            raise ScramError(
                f"server sent an invalid SCRAM-SHA-256 iteration count: {iter_field!r}"
            )

        self._server_nonce = nonce_field[2:]
        if not self._server_nonce.startswith(self._client_nonce):
            raise ScramError(
                "server SCRAM-SHA-256 nonce is not prefixed by client nonce: "
                f"got {self._server_nonce!r}, want {self._client_nonce!r}+\"...\""
            )

        try:
            salt = base64.b64decode(salt_field[2:], validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ScramError(
                f"cannot decode SCRAM-SHA-256 salt sent by server: {salt_field!r}"
            ) from exc
        if not _INTEGER.fullmatch(iter_field[2:]):
            raise ScramError(
                f"server sent an invalid SCRAM-SHA-256 iteration count: {iter_field!r}"
            )
        self._salt(salt, int(iter_field[2:]))

        self._auth_message += b",c=biws,r=" + self._server_nonce
        self._out = b"c=biws,r=" + self._server_nonce + b",p=" + self._client_proof()

    def _step3(self, data: bytes) -> None:
        parts = data.split(b",")
        is_verifier = len(parts) == 1 and parts[0].startswith(b"v=")
        is_error = len(parts) == 1 and parts[0].startswith(b"e=")
        if is_error:
            message = parts[0][2:].decode(errors="replace")
            raise ScramError(f"SCRAM-SHA-256 authentication error: {message}")
        if not is_verifier:
            raise ScramError(f"unsupported SCRAM-SHA-256 final message from server: {data!r}")
        if not hmac.compare_digest(self._server_signature(), parts[0][2:]):
            raise ScramError(
                f"cannot authenticate SCRAM-SHA-256 server signature: {parts[0][2:]!r}"
            )

    def _salt(self, salt: bytes, iterations: int) -> None:
        secret_bytes = self._password.encode()
        block = self._hmac(secret_bytes, salt + b"\x00\x00\x00\x01")
        size = len(block)
        accumulated = int.from_bytes(block, _BYTE_ORDER)
        for _ in range(1, iterations):
            block = self._hmac(secret_bytes, block)
            accumulated ^= int.from_bytes(block, _BYTE_ORDER)
        self._salted = accumulated.to_bytes(size, _BYTE_ORDER)

    def _client_proof(self) -> bytes:
        client_key = self._hmac(self._salted, b"Client Key")
        stored_key = self._digest(client_key)
        signature = self._hmac(stored_key, bytes(self._auth_message))
        proof = bytes(a ^ b for a, b in zip(signature, client_key))
        return base64.b64encode(proof)

    def _server_signature(self) -> bytes:
        server_key = self._hmac(self._salted, b"Server Key")
        signature = self._hmac(server_key, bytes(self._auth_message))
        return base64.b64encode(signature)