# Copyright (c) Aptos
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import hashlib
import hmac
from typing import List

from mnemonic import Mnemonic
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .utils import b64decode, b64encode, get_bytes

DEFAULT_ED25519_DERIVATION_PATH = "m/44'/784'/0'/0'/0'"
ED25519_SEED = b"ed25519 seed"
HARDENED_OFFSET = 0x80000000
ED25519_FLAG = 0x00


class PrivateKey:
    LENGTH: int = 32

    key: SigningKey

    def __init__(self, key: SigningKey):
        self.key = key

    def __eq__(self, other: PrivateKey):
        return isinstance(other, PrivateKey) and self.key == other.key

    def __str__(self):
        return self.hex()

    @staticmethod
    def format_path(path: str) -> List[int]:
        """m/44'/784'/0'/0'/0' -> [44, 784, 0, 0, 0]"""
        result = []
        for k in path.split("/"):
            k = k.replace("'", "")
            if k.isdigit():
                result.append(int(k))
        return result

    @classmethod
    def from_mnemonic(cls, mnemonic: str, path=DEFAULT_ED25519_DERIVATION_PATH) -> PrivateKey:
        # SLIP-0010 hardened derivation
        seed = Mnemonic.to_seed(mnemonic, passphrase="")
        mast_info = hmac.new(ED25519_SEED, seed, hashlib.sha512).digest()
        key = mast_info[:32]
        chain_code = mast_info[32:]
        for i in cls.format_path(path):
            index_buffer = (i + HARDENED_OFFSET).to_bytes(4, "big")
            data = bytes([0]) + key + index_buffer
            info = hmac.new(chain_code, data, hashlib.sha512).digest()
            key = info[:32]
            chain_code = info[32:]
        return PrivateKey(SigningKey(key))

    @staticmethod
    def from_hex(value: str) -> PrivateKey:
        return PrivateKey(SigningKey(get_bytes(value)))

    @staticmethod
    def from_keystore(value: str) -> PrivateKey:
        """base64(flag || private key), the sui.keystore entry format"""
        data = b64decode(value)
        if len(data) != 33 or data[0] != ED25519_FLAG:
            raise ValueError("Support only ed25519 keystore entries")
        return PrivateKey(SigningKey(data[1:]))

    def keystore(self) -> str:
        return b64encode(bytes([ED25519_FLAG]) + self.key.encode())

    def hex(self) -> str:
        return f"0x{self.key.encode().hex()}"

    def public_key(self) -> PublicKey:
        return PublicKey(self.key.verify_key)

    @staticmethod
    def random() -> PrivateKey:
        return PrivateKey(SigningKey.generate())

    def sign(self, data: bytes) -> Signature:
        return Signature(self.key.sign(data).signature)


class PublicKey:
    LENGTH: int = 32

    key: VerifyKey

    def __init__(self, key: VerifyKey):
        self.key = key

    @staticmethod
    def from_bytes(data: bytes) -> PublicKey:
        return PublicKey(VerifyKey(bytes(data)))

    def __eq__(self, other: PublicKey):
        return isinstance(other, PublicKey) and self.key == other.key

    def __str__(self) -> str:
        return f"0x{self.key.encode().hex()}"

    def verify(self, data: bytes, signature: Signature) -> bool:
        try:
            self.key.verify(data, signature.get_bytes())
        except BadSignatureError:
            return False
        return True

    def get_bytes(self) -> bytes:
        return self.key.encode()

    def sui_public_key(self) -> str:
        """base64(flag || public key)"""
        return b64encode(bytes([ED25519_FLAG]) + self.get_bytes())

    def address(self) -> str:
        hasher = hashlib.blake2b(digest_size=32)
        hasher.update(bytes([ED25519_FLAG]) + self.get_bytes())
        return "0x" + hasher.digest().hex()


class Signature:
    LENGTH: int = 64

    signature: bytes

    def __init__(self, signature: bytes):
        self.signature = signature

    def __eq__(self, other: Signature):
        return isinstance(other, Signature) and self.signature == other.signature

    def __str__(self) -> str:
        return f"0x{self.signature.hex()}"

    def get_bytes(self) -> bytes:
        return self.signature

    def base64(self) -> str:
        return b64encode(self.signature)
