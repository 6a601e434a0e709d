# Copyright (c) Aptos
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import hashlib
from typing import Union

from . import ed25519
from .bcs import TRANSACTION_INTENT
from .utils import b64decode

INTENT_BYTES = TRANSACTION_INTENT.encode


def intent_digest(tx_bytes: bytes) -> bytes:
    """blake2b-256 of the transaction intent message"""
    hasher = hashlib.blake2b(digest_size=32)
    hasher.update(INTENT_BYTES + bytes(tx_bytes))
    return hasher.digest()


class Account:
    """Represents an account as well as the private, public key-pair for the Sui blockchain."""

    private_key: ed25519.PrivateKey

    def __init__(
            self,
            mnemonic: str = None,
            private_key: Union[str, ed25519.PrivateKey] = None
    ):
        if mnemonic is None and private_key is None:
            raise ValueError("Account needs a mnemonic or a private key")
        self.mnemonic = mnemonic
        if mnemonic is not None:
            self.private_key = ed25519.PrivateKey.from_mnemonic(mnemonic)
        elif isinstance(private_key, ed25519.PrivateKey):
            self.private_key = private_key
        else:
            self.private_key = ed25519.PrivateKey.from_hex(private_key)

    def __eq__(self, other: Account) -> bool:
        return isinstance(other, Account) and self.private_key == other.private_key

    def __repr__(self):
        return f"Account({self.account_address})"

    def sign(self, data: Union[bytes, str]) -> ed25519.Signature:
        """Sign transaction bytes (raw or base64) under the transaction intent"""
        if isinstance(data, str):
            data = b64decode(data)
        return self.private_key.sign(intent_digest(data))

    @property
    def account_address(self) -> str:
        return self.private_key.public_key().address()

    @staticmethod
    def generate() -> Account:
        return Account(private_key=ed25519.PrivateKey.random())

    @staticmethod
    def load_mnemonic(mnemonic: str) -> Account:
        return Account(mnemonic=mnemonic)

    @staticmethod
    def load_key(key: str) -> Account:
        if key[:2] == "0x":
            return Account(private_key=key)
        return Account(private_key=ed25519.PrivateKey.from_keystore(key))

    def address(self) -> str:
        """Returns the address associated with the given account"""

        return self.account_address

    def public_key(self) -> ed25519.PublicKey:
        """Returns the public key for the associated account"""

        return self.private_key.public_key()

    def keystore(self) -> str:
        return self.private_key.keystore()
