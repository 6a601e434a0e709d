"""
Signing of finalized transaction bytes.

    1. base64 encode the raw BCS bytes        -> SignedTransaction.tx_bytes
    2. prepend the intent prefix [0, 0, 0]    -> intent message
    3. blake2b-256 hash the intent message    -> digest
    4. ed25519 sign the digest                -> 64 byte signature
    5. flag(0x00) | sig | pubkey, base64      -> SignedTransaction.signature
"""
from __future__ import annotations

import enum
import logging
from typing import NamedTuple, Union

from .account import Account, intent_digest
from .ed25519 import PublicKey, Signature
from .errors import SignatureError
from .utils import b64decode, b64encode

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 64
PUBLIC_KEY_LENGTH = 32
SERIALIZED_SIGNATURE_LENGTH = 1 + SIGNATURE_LENGTH + PUBLIC_KEY_LENGTH


class SignatureScheme(enum.IntEnum):
    ED25519 = 0x00
    SECP256K1 = 0x01
    SECP256R1 = 0x02

    @classmethod
    def from_flag(cls, flag: int) -> SignatureScheme:
        try:
            return cls(flag)
        except ValueError:
            raise SignatureError(f"Unsupported signature scheme flag: 0x{flag:02x}")


class SignedTransaction(NamedTuple):
    tx_bytes: str
    signature: str


class SerializedSignature(NamedTuple):
    scheme: SignatureScheme
    signature: bytes
    public_key: bytes

    @property
    def encode(self) -> bytes:
        return bytes([self.scheme]) + self.signature + self.public_key


def serialize_signature(scheme: SignatureScheme, signature: bytes, public_key: bytes) -> bytes:
    serialized = bytes([SignatureScheme(scheme)]) + bytes(signature) + bytes(public_key)
    if len(serialized) != SERIALIZED_SIGNATURE_LENGTH:
        raise SignatureError(f"Invalid signature length: expected {SERIALIZED_SIGNATURE_LENGTH}, "
                             f"got {len(serialized)}")
    return serialized


def parse_serialized_signature(data: Union[bytes, str]) -> SerializedSignature:
    """flag(1) | signature(64) | public key(32), raw or base64"""
    if isinstance(data, str):
        try:
            data = b64decode(data)
        except ValueError:
            raise SignatureError("Signature is not valid base64")
    if len(data) != SERIALIZED_SIGNATURE_LENGTH:
        raise SignatureError(f"Invalid signature length: expected {SERIALIZED_SIGNATURE_LENGTH}, got {len(data)}")
    scheme = SignatureScheme.from_flag(data[0])
    return SerializedSignature(scheme, bytes(data[1:1 + SIGNATURE_LENGTH]), bytes(data[1 + SIGNATURE_LENGTH:]))


def sign_transaction(tx_bytes: bytes, account: Account) -> SignedTransaction:
    signature = account.sign(tx_bytes)
    serialized = serialize_signature(
        SignatureScheme.ED25519,
        signature.get_bytes(),
        account.public_key().get_bytes(),
    )
    logger.debug(f"Signed {len(tx_bytes)} transaction bytes for {account.account_address}")
    return SignedTransaction(b64encode(tx_bytes), b64encode(serialized))


def verify_signature(tx_bytes: Union[bytes, str], serialized: Union[bytes, str]) -> bool:
    parsed = parse_serialized_signature(serialized)
    if parsed.scheme != SignatureScheme.ED25519:
        raise SignatureError(f"Local verification supports ED25519 only, got {parsed.scheme.name}")
    if isinstance(tx_bytes, str):
        tx_bytes = b64decode(tx_bytes)
    public_key = PublicKey.from_bytes(parsed.public_key)
    return public_key.verify(intent_digest(tx_bytes), Signature(parsed.signature))
