"""
Address Utilities

Helpers for Aptos account addresses and the small slice of BCS encoding
needed to derive object addresses.
"""

import hashlib

ADDRESS_LENGTH = 32


def normalize_address(value: str) -> str:
    """
    Normalize an address to its long form (0x + 64 lowercase hex chars).

    Args:
        value: Address string, with or without 0x prefix, short or long

    Returns:
        Normalized address string

    Raises:
        ValueError: If value is not a valid hex address
    """
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text or len(text) > ADDRESS_LENGTH * 2:
        raise ValueError(f"Invalid address: {value!r}")
    try:
        int(text, 16)
    except ValueError:
        raise ValueError(f"Invalid address: {value!r}") from None
    return "0x" + text.rjust(ADDRESS_LENGTH * 2, "0")


def address_to_bytes(value: str) -> bytes:
    """Return the 32 raw bytes of an address."""
    return bytes.fromhex(normalize_address(value)[2:])


def bcs_uleb128(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def bcs_bytes(value: bytes) -> bytes:
    """BCS encoding of vector<u8>: length prefix followed by the bytes."""
    return bcs_uleb128(len(value)) + value


def bcs_u64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def named_object_address(creator: str, seed: bytes, scheme: int) -> str:
    """Address of an object created from a seed (object::create_named_object)."""
    digest = hashlib.sha3_256(address_to_bytes(creator) + seed + bytes([scheme]))
    return "0x" + digest.hexdigest()


def parse_address_map(text: str) -> dict[str, str]:
    """
    Parse "name=0x1,other=0x2" into a dict of normalized addresses.

    Raises:
        ValueError: On a malformed entry
    """
    result: dict[str, str] = {}
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ValueError(f"Expected name=address, got {item!r}")
        name, address = item.split("=", 1)
        result[name.strip()] = normalize_address(address)
    return result
