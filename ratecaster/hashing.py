# ratecaster/hashing.py
"""
Canonical on-chain keys for dApp identifiers.

A key is the 0x-prefixed hex encoding of 32 bytes. Anything already in that
form passes through untouched (hex case preserved); every other string is
hashed with keccak-256 over its UTF-8 bytes. The result is the join key
between contract records and indexed rating events.
"""
import re

from web3 import Web3

KEY_BYTES = 32
KEY_LENGTH = 2 + KEY_BYTES * 2

_CANONICAL_RE = re.compile(r"0x[0-9a-fA-F]{%d}" % (KEY_BYTES * 2))


def is_canonical_key(value: str) -> bool:
    """True only for '0x' followed by exactly 64 hex digits."""
    return isinstance(value, str) and bool(_CANONICAL_RE.fullmatch(value))


def canonicalize(identifier: str) -> str:
    if is_canonical_key(identifier):
        return identifier
    return Web3.to_hex(Web3.keccak(text=identifier))


def to_hex_key(value) -> str:
    """Normalise a bytes32 value coming back from the chain into 0x-hex."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(bytes(value))
    return str(value)
