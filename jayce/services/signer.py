"""
Signer

Ed25519 key handling for the deployer account.
"""

import hashlib
from abc import ABC, abstractmethod

from nacl.exceptions import CryptoError
from nacl.signing import SigningKey

from jayce.exceptions import ConfigError

ED25519_SCHEME = b"\x00"
KEY_PREFIXES = ("ed25519-priv-", "0x")


class Signer(ABC):
    """Signs transaction messages for one account."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Account address controlled by this signer."""

    @property
    @abstractmethod
    def public_key(self) -> str:
        """Hex public key, 0x-prefixed."""

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        """Return the raw signature over message."""


class Ed25519Signer(Signer):
    """Signer backed by a single Ed25519 private key."""

    def __init__(self, private_key: str):
        """
        Args:
            private_key: 32-byte hex key, optionally "0x" or
                "ed25519-priv-0x" prefixed

        Raises:
            ConfigError: If the key is not valid hex of the right length
        """
        text = private_key.strip()
        for prefix in KEY_PREFIXES:
            if text.lower().startswith(prefix):
                text = text[len(prefix):]
        try:
            seed = bytes.fromhex(text)
            self._key = SigningKey(seed)
        except (ValueError, TypeError, CryptoError):
            raise ConfigError(
                "Invalid private key", context="Expected 32 bytes of hex"
            ) from None

        public = self._key.verify_key.encode()
        self._public_key = "0x" + public.hex()
        self._address = "0x" + hashlib.sha3_256(public + ED25519_SCHEME).hexdigest()

    @classmethod
    def generate(cls) -> "Ed25519Signer":
        """Create a signer with a fresh random key."""
        return cls(SigningKey.generate().encode().hex())

    @property
    def address(self) -> str:
        return self._address

    @property
    def public_key(self) -> str:
        return self._public_key

    @property
    def private_key_hex(self) -> str:
        return "0x" + self._key.encode().hex()

    def sign(self, message: bytes) -> bytes:
        return self._key.sign(message).signature

    def __repr__(self) -> str:
        return f"Ed25519Signer(address={self._address})"
