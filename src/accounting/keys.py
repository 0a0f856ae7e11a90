"""
EOSIO K1 key management for the accounting test harness.

Key generation and public key derivation come from ueosio.  Encodings:
- private keys: WIF (base58check of 0x80 + 32 bytes)
- public keys:  legacy ``EOS...``; nodes may also report ``PUB_K1_...``,
  which is decoded and normalized to the legacy form

The development key is the one every local nodeos ships with; all contract
host accounts use it.  Other accounts get random keys that live only in the
process-local :class:`KeyBag`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import base58
from dotenv import load_dotenv
from ueosio import gen_key_pair, get_pub_key
from ueosio.ds import ripmed160


DEFAULT_KEY = "5KQwrPbwdL6PhXujxW37FSSQZ1JiwsST4cqQzDeyXtP79zkvFD3"

LEGACY_PREFIX = "EOS"
K1_PREFIX = "PUB_K1_"


class KeyNotFoundError(KeyError):
    """The key bag holds no private key for a requested public key."""


def _decode_wif(wif: str) -> bytes:
    raw = base58.b58decode_check(wif)
    if len(raw) != 33 or raw[0] != 0x80:
        raise ValueError("Not a WIF private key")
    return raw[1:]


def generate_key() -> tuple[str, str]:
    """
    Generate a new K1 keypair.

    Returns:
        Tuple of (private_key_wif, public_key)
    """
    return gen_key_pair()


def public_key_from_private(wif: str) -> str:
    """Derive the legacy ``EOS...`` public key for a WIF private key."""
    _decode_wif(wif)
    return get_pub_key(wif)


def public_key_bytes(public_key: str) -> bytes:
    """
    Decode a public key string into its 33-byte compressed point.

    Accepts both the legacy and ``PUB_K1_`` encodings and checks the
    checksum.
    """
    if public_key.startswith(K1_PREFIX):
        raw = base58.b58decode(public_key[len(K1_PREFIX):])
        compressed, checksum = raw[:33], raw[33:]
        expected = ripmed160(compressed + b"K1")[:4]
    elif public_key.startswith(LEGACY_PREFIX):
        raw = base58.b58decode(public_key[len(LEGACY_PREFIX):])
        compressed, checksum = raw[:33], raw[33:]
        expected = ripmed160(compressed)[:4]
    else:
        raise ValueError(f"Unsupported public key format: {public_key}")

    if checksum != expected:
        raise ValueError(f"Public key checksum mismatch: {public_key}")
    return compressed


def normalize_public_key(public_key: str) -> str:
    """Return the legacy encoding for any supported public key string."""
    compressed = public_key_bytes(public_key)
    checksum = ripmed160(compressed)[:4]
    return LEGACY_PREFIX + base58.b58encode(compressed + checksum).decode("ascii")


class KeyBag:
    """In-memory signer: public key -> WIF private key."""

    def __init__(self) -> None:
        self._keys: dict[str, str] = {}

    def import_private_key(self, wif: str) -> str:
        """Add a private key. Returns its legacy public key."""
        public_key = public_key_from_private(wif)
        self._keys[public_key] = wif
        return public_key

    def available_keys(self) -> list[str]:
        return list(self._keys)

    def private_key_for(self, public_key: str) -> str:
        try:
            return self._keys[normalize_public_key(public_key)]
        except KeyError:
            raise KeyNotFoundError(public_key) from None


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load the signing key for CLI actions.

    Reads ``ACCOUNTING_PRIVATE_KEY`` from the environment (after loading
    ``env_path`` if given and present), falling back to the development key.
    """
    if env_path is not None and env_path.exists():
        load_dotenv(env_path, override=True)

    private_key = os.environ.get("ACCOUNTING_PRIVATE_KEY") or DEFAULT_KEY
    _decode_wif(private_key)
    return private_key
