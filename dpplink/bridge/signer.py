"""Signer bridge: Ed25519 keys derived from a BIP-39 mnemonic via PyNaCl.

Bridge boundary
---------------
Ledger writes need exactly three capabilities from a key holder:

- ``sign(data) -> signature``
- ``public_key() -> bytes``
- ``address() -> str``

``Signer`` is that capability set as a Protocol. ``Ed25519Signer`` is the
single implementation: the BIP-39 seed (PBKDF2-HMAC-SHA512, 2048 rounds)
is walked down a hardened SLIP-0010 path and the resulting 32-byte seed
becomes a ``nacl.signing.SigningKey``.

Addresses are ``0x`` + BLAKE2b-256 over the Ed25519 scheme flag (0x00)
followed by the raw public key.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import unicodedata
from typing import Protocol, runtime_checkable

import nacl.signing
from nacl.exceptions import BadSignatureError

logger = logging.getLogger(__name__)

DEFAULT_DERIVATION_PATH = "m/44'/4218'/0'/0'/0'"

_SLIP10_ED25519_KEY = b"ed25519 seed"
_HARDENED_OFFSET = 0x80000000
_ED25519_SCHEME_FLAG = b"\x00"
_PBKDF2_ROUNDS = 2048


@runtime_checkable
class Signer(Protocol):
    """Capability set a ledger write needs from its key holder."""

    def sign(self, data: bytes) -> bytes:
        """Return a detached signature over *data*."""
        ...

    def public_key(self) -> bytes:
        """Return the raw public key bytes."""
        ...

    def address(self) -> str:
        """Return the ledger address controlled by this key."""
        ...


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------


def mnemonic_to_seed(mnemonic: str, passphrase: str = "") -> bytes:
    """BIP-39 seed from a mnemonic sentence (wordlist membership is not checked)."""
    words = " ".join(mnemonic.split())
    if not words:
        raise ValueError("mnemonic must not be empty")
    password = unicodedata.normalize("NFKD", words).encode("utf-8")
    salt = unicodedata.normalize("NFKD", "mnemonic" + passphrase).encode("utf-8")
    return hashlib.pbkdf2_hmac("sha512", password, salt, _PBKDF2_ROUNDS)


def parse_derivation_path(path: str) -> list[int]:
    """Parse ``m/44'/4218'/0'/0'/0'`` into hardened child indices.

    Ed25519 under SLIP-0010 only supports hardened derivation, so every
    segment must carry the ``'`` (or ``h``) marker.
    """
    segments = path.strip().split("/")
    if not segments or segments[0] != "m":
        raise ValueError(f"derivation path must start with 'm': {path!r}")

    indices: list[int] = []
    for segment in segments[1:]:
        if not segment.endswith(("'", "h", "H")):
            raise ValueError(f"ed25519 derivation requires hardened segments: {segment!r}")
        number = segment[:-1]
        if not number.isdigit() or int(number) >= _HARDENED_OFFSET:
            raise ValueError(f"invalid derivation index: {segment!r}")
        indices.append(int(number) + _HARDENED_OFFSET)
    return indices


def derive_ed25519_seed(seed: bytes, path: str = DEFAULT_DERIVATION_PATH) -> bytes:
    """SLIP-0010 ed25519 private key for *path* under master *seed*."""
    digest = hmac.new(_SLIP10_ED25519_KEY, seed, hashlib.sha512).digest()
    key, chain_code = digest[:32], digest[32:]
    for index in parse_derivation_path(path):
        data = b"\x00" + key + index.to_bytes(4, "big")
        digest = hmac.new(chain_code, data, hashlib.sha512).digest()
        key, chain_code = digest[:32], digest[32:]
    return key


def address_from_public_key(public_key: bytes) -> str:
    return "0x" + hashlib.blake2b(_ED25519_SCHEME_FLAG + public_key, digest_size=32).hexdigest()


def verify_signature(data: bytes, signature: bytes, public_key: bytes) -> bool:
    """Return ``True`` if *signature* is valid for *data* under *public_key*.

    Malformed keys or signatures verify as ``False``.
    """
    if not signature:
        return False
    try:
        nacl.signing.VerifyKey(public_key).verify(data, signature)
        return True
    except (BadSignatureError, ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# Concrete signer
# ---------------------------------------------------------------------------


class Ed25519Signer:
    """Ed25519 key holder satisfying the ``Signer`` protocol.

    Parameters
    ----------
    signing_key:
        The PyNaCl signing key. Use the ``from_*`` constructors to derive one.
    """

    def __init__(self, signing_key: nacl.signing.SigningKey) -> None:
        self._signing_key = signing_key
        self._address = address_from_public_key(self.public_key())

    @classmethod
    def from_mnemonic(
        cls,
        mnemonic: str,
        derivation_path: str = DEFAULT_DERIVATION_PATH,
        *,
        passphrase: str = "",
    ) -> Ed25519Signer:
        seed = derive_ed25519_seed(mnemonic_to_seed(mnemonic, passphrase), derivation_path)
        signer = cls(nacl.signing.SigningKey(seed))
        logger.debug("Derived signer %s at %s", signer.address(), derivation_path)
        return signer

    @classmethod
    def from_seed(cls, seed: bytes) -> Ed25519Signer:
        return cls(nacl.signing.SigningKey(seed))

    @classmethod
    def generate(cls) -> Ed25519Signer:
        return cls(nacl.signing.SigningKey.generate())

    def sign(self, data: bytes) -> bytes:
        return self._signing_key.sign(data).signature

    def public_key(self) -> bytes:
        return self._signing_key.verify_key.encode()

    def address(self) -> str:
        return self._address

    def __repr__(self) -> str:
        return f"Ed25519Signer(address={self._address!r})"
