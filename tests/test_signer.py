"""
Tests for Ed25519Signer
"""

import hashlib

import pytest
from nacl.signing import VerifyKey

from conftest import PRIVATE_KEY
from jayce.exceptions import ConfigError
from jayce.services.signer import Ed25519Signer


class TestEd25519Signer:
    """Test class for Ed25519Signer"""

    def test_address_derived_from_public_key(self):
        """Test the account address is sha3-256(public key || scheme)"""
        signer = Ed25519Signer(PRIVATE_KEY)
        public = bytes.fromhex(signer.public_key[2:])

        assert signer.address == "0x" + hashlib.sha3_256(public + b"\x00").hexdigest()
        assert len(signer.public_key) == 66

    def test_key_prefixes_accepted(self):
        """Test the CLI profile key formats load the same key"""
        plain = Ed25519Signer(PRIVATE_KEY[2:])
        prefixed = Ed25519Signer("ed25519-priv-" + PRIVATE_KEY)

        assert plain.address == prefixed.address == Ed25519Signer(PRIVATE_KEY).address

    def test_signature_verifies(self):
        """Test signatures verify against the public key"""
        signer = Ed25519Signer(PRIVATE_KEY)
        message = b"signing message"

        signature = signer.sign(message)

        verify_key = VerifyKey(bytes.fromhex(signer.public_key[2:]))
        assert verify_key.verify(message, signature) == message

    @pytest.mark.parametrize("key", ["0x1234", "not-hex", ""])
    def test_invalid_key(self, key):
        """Test malformed keys are configuration errors"""
        with pytest.raises(ConfigError, match="Invalid private key"):
            Ed25519Signer(key)

    def test_generate(self):
        """Test generated keys round-trip through their hex form"""
        signer = Ed25519Signer.generate()
        assert Ed25519Signer(signer.private_key_hex).address == signer.address
        assert PRIVATE_KEY not in repr(signer)
