# Copyright (c) OmniBTC
# SPDX-License-Identifier: GPL-3.0

from __future__ import annotations

import io
from typing import List, Optional

import base58

from .errors import ValidationError, STATUS_INVALID_DIGEST
from .utils import judge_hex_str

MAX_U8 = 2 ** 8 - 1
MAX_U16 = 2 ** 16 - 1
MAX_U32 = 2 ** 32 - 1
MAX_U64 = 2 ** 64 - 1
MAX_U128 = 2 ** 128 - 1
MAX_U256 = 2 ** 256 - 1

ADDRESS_LENGTH = 32
DIGEST_LENGTH = 32


def uleb128(value: int) -> bytes:
    output = b""
    while value >= 0x80:
        # Write 7 (lowest) bits of data and set the 8th bit to 1.
        byte = value & 0x7F
        output += bytes([byte | 0x80])
        value >>= 7

    # Write the remaining bits of data and set the highest bit to 0.
    output += bytes([value & 0x7F])
    return output


def encode_list(data: list) -> bytes:
    output = uleb128(len(data))
    for v in data:
        if isinstance(v, list):
            output += encode_list(v)
        else:
            output += v.encode
    return output


def encode_bytes(data: bytes) -> bytes:
    return uleb128(len(data)) + bytes(data)


class _Unsigned:
    WIDTH: int = 0
    MAX: int = 0

    def __init__(self, v0: int):
        if not isinstance(v0, int) or isinstance(v0, bool):
            raise ValidationError(f"{type(self).__name__} expects int, got {type(v0).__name__}")
        if v0 < 0 or v0 > self.MAX:
            raise ValidationError(f"{v0} out of range for {type(self).__name__}")
        self.v0 = v0

    @property
    def encode(self) -> bytes:
        stream = io.BytesIO()
        stream.write(self.v0.to_bytes(self.WIDTH, "little", signed=False))
        return stream.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> int:
        if len(data) != cls.WIDTH:
            raise ValidationError(f"{cls.__name__} expects {cls.WIDTH} bytes, got {len(data)}")
        return int.from_bytes(data, "little", signed=False)


class U8(_Unsigned):
    WIDTH = 1
    MAX = MAX_U8


class U16(_Unsigned):
    WIDTH = 2
    MAX = MAX_U16


class U32(_Unsigned):
    WIDTH = 4
    MAX = MAX_U32


class U64(_Unsigned):
    WIDTH = 8
    MAX = MAX_U64


class U128(_Unsigned):
    WIDTH = 16
    MAX = MAX_U128


class U256(_Unsigned):
    WIDTH = 32
    MAX = MAX_U256


class Bool:
    def __init__(self, v0: bool):
        if not isinstance(v0, bool):
            raise ValidationError(f"Bool expects bool, got {type(v0).__name__}")
        self.v0 = v0

    @property
    def encode(self) -> bytes:
        return b"\x01" if self.v0 else b"\x00"


class String:
    def __init__(self, v0: str):
        if not isinstance(v0, str):
            raise ValidationError(f"String expects str, got {type(v0).__name__}")
        self.v0 = v0

    @property
    def encode(self) -> bytes:
        return encode_bytes(self.v0.encode("utf-8"))


class Bytes:
    """Length prefixed byte vector"""

    def __init__(self, v0: bytes):
        self.v0 = bytes(v0)

    @property
    def encode(self) -> bytes:
        return encode_bytes(self.v0)


class NONE:
    @property
    def encode(self) -> bytes:
        return b""


class RustEnum:
    def __init__(self, key, value):
        variant = getattr(type(self), key, None)
        if not isinstance(variant, tuple):
            raise TypeError(f"{type(self).__name__} has no variant {key}")
        if not isinstance(value, variant[0]):
            raise TypeError(f"{type(self).__name__}::{key} expects {variant[0].__name__}")
        self.key = key
        self.value = value

    @property
    def encode(self) -> bytes:
        (ty, index) = getattr(type(self), self.key)
        return uleb128(index) + self.value.encode

    def __repr__(self):
        return f"{type(self).__name__}::{self.key}"


class SuiAddress:
    def __init__(self, v0):
        if isinstance(v0, SuiAddress):
            v0 = v0.v0
        elif isinstance(v0, str):
            v0 = self.from_hex(v0)
        elif isinstance(v0, (bytes, bytearray, list)):
            v0 = bytes(v0)
        else:
            raise ValidationError(f"Invalid address: {v0!r}")
        if len(v0) != ADDRESS_LENGTH:
            raise ValidationError(f"Address must be {ADDRESS_LENGTH} bytes, got {len(v0)}")
        self.v0: bytes = v0

    @staticmethod
    def from_hex(data: str) -> bytes:
        """
        0x2 -> 0x0000000000000000000000000000000000000000000000000000000000000002
        """
        data = data.strip()
        if data[:2] != "0x" or len(data) == 2 or not judge_hex_str(data):
            raise ValidationError(f"Invalid address: {data!r}")
        data = data[2:]
        if len(data) > ADDRESS_LENGTH * 2:
            raise ValidationError(f"Address too long: 0x{data}")
        return bytes.fromhex(data.rjust(ADDRESS_LENGTH * 2, "0"))

    @property
    def encode(self) -> bytes:
        return self.v0

    def __eq__(self, other):
        return isinstance(other, SuiAddress) and self.v0 == other.v0

    def __hash__(self):
        return hash(self.v0)

    def __str__(self):
        return f"0x{self.v0.hex()}"

    def __repr__(self):
        return self.__str__()


ObjectID = SuiAddress


class ObjectDigest:
    def __init__(self, v0):
        if isinstance(v0, ObjectDigest):
            v0 = v0.v0
        elif isinstance(v0, str):
            try:
                v0 = base58.b58decode(v0)
            except ValueError:
                raise ValidationError(f"Invalid digest: {v0!r}", STATUS_INVALID_DIGEST)
        elif isinstance(v0, (bytes, bytearray, list)):
            v0 = bytes(v0)
        else:
            raise ValidationError(f"Invalid digest: {v0!r}", STATUS_INVALID_DIGEST)
        if len(v0) != DIGEST_LENGTH:
            raise ValidationError(f"Digest must be {DIGEST_LENGTH} bytes, got {len(v0)}", STATUS_INVALID_DIGEST)
        self.v0: bytes = v0

    @property
    def encode(self) -> bytes:
        return encode_bytes(self.v0)

    def __str__(self):
        return base58.b58encode(self.v0).decode("ascii")


class ObjectRef:
    def __init__(self, object_id: ObjectID, sequence_number: U64, object_digest: ObjectDigest):
        self.object_id = object_id
        self.sequence_number = sequence_number
        self.object_digest = object_digest

    @property
    def encode(self) -> bytes:
        return self.object_id.encode + self.sequence_number.encode + self.object_digest.encode


class SharedObject:
    def __init__(self, object_id: ObjectID, initial_shared_version: U64, mutable: Bool):
        self.object_id = object_id
        self.initial_shared_version = initial_shared_version
        self.mutable = mutable

    @property
    def encode(self) -> bytes:
        return self.object_id.encode + self.initial_shared_version.encode + self.mutable.encode


class ObjectArg(RustEnum):
    ImmOrOwnedObject = (ObjectRef, 0)
    SharedObject = (SharedObject, 1)
    Receiving = (ObjectRef, 2)


class CallArg(RustEnum):
    Pure = (Bytes, 0)
    Object = (ObjectArg, 1)


class Identifier:
    def __init__(self, v0: str):
        self.v0 = v0

    @property
    def encode(self) -> bytes:
        return encode_bytes(self.v0.encode("ascii"))


class StructTag:
    def __init__(self,
                 address: SuiAddress,
                 module: Identifier,
                 name: Identifier,
                 type_params: List[TypeTag],
                 ):
        self.address = address
        self.module = module
        self.name = name
        self.type_params = type_params

    @property
    def encode(self) -> bytes:
        return self.address.encode + self.module.encode + self.name.encode + encode_list(self.type_params)


class TypeTag(RustEnum):
    Bool = (NONE, 0)
    U8 = (NONE, 1)
    U64 = (NONE, 2)
    U128 = (NONE, 3)
    Address = (NONE, 4)
    Signer = (NONE, 5)
    Struct = (StructTag, 7)
    U16 = (NONE, 8)
    U32 = (NONE, 9)
    U256 = (NONE, 10)


TypeTag.Vector = (TypeTag, 6)


class OptionTypeTag(RustEnum):
    NONE = (NONE, 0)
    Some = (TypeTag, 1)


class NestedResult:
    def __init__(self, command: U16, sub_index: U16):
        self.command = command
        self.sub_index = sub_index

    @property
    def encode(self) -> bytes:
        return self.command.encode + self.sub_index.encode


class Argument(RustEnum):
    GasCoin = (NONE, 0)
    Input = (U16, 1)
    Result = (U16, 2)
    NestedResult = (NestedResult, 3)


class ProgrammableMoveCall:
    def __init__(self,
                 package: ObjectID,
                 module: Identifier,
                 function: Identifier,
                 type_arguments: List[TypeTag],
                 arguments: List[Argument]
                 ):
        self.package = package
        self.module = module
        self.function = function
        self.type_arguments = type_arguments
        self.arguments = arguments

    @property
    def encode(self) -> bytes:
        return self.package.encode + self.module.encode + \
               self.function.encode + encode_list(self.type_arguments) + encode_list(self.arguments)


class TransferObjects:
    def __init__(self, objects: List[Argument], recipient: Argument):
        self.objects = objects
        self.recipient = recipient

    @property
    def encode(self) -> bytes:
        return encode_list(self.objects) + self.recipient.encode


class SplitCoins:
    def __init__(self, coin: Argument, amounts: List[Argument]):
        self.coin = coin
        self.amounts = amounts

    @property
    def encode(self) -> bytes:
        return self.coin.encode + encode_list(self.amounts)


class MergeCoins:
    def __init__(self, target: Argument, sources: List[Argument]):
        self.target = target
        self.sources = sources

    @property
    def encode(self) -> bytes:
        return self.target.encode + encode_list(self.sources)


class Publish:
    def __init__(self, modules: List[bytes], dependencies: List[ObjectID]):
        self.modules = [Bytes(v) for v in modules]
        self.dependencies = dependencies

    @property
    def encode(self) -> bytes:
        return encode_list(self.modules) + encode_list(self.dependencies)


class MakeMoveVec:
    def __init__(self, type_tag: OptionTypeTag, elements: List[Argument]):
        self.type_tag = type_tag
        self.elements = elements

    @property
    def encode(self) -> bytes:
        return self.type_tag.encode + encode_list(self.elements)


class Upgrade:
    def __init__(self, modules: List[bytes], dependencies: List[ObjectID], package: ObjectID, ticket: Argument):
        self.modules = [Bytes(v) for v in modules]
        self.dependencies = dependencies
        self.package = package
        self.ticket = ticket

    @property
    def encode(self) -> bytes:
        return encode_list(self.modules) + encode_list(self.dependencies) + self.package.encode + self.ticket.encode


class Command(RustEnum):
    MoveCall = (ProgrammableMoveCall, 0)
    TransferObjects = (TransferObjects, 1)
    SplitCoins = (SplitCoins, 2)
    MergeCoins = (MergeCoins, 3)
    Publish = (Publish, 4)
    MakeMoveVec = (MakeMoveVec, 5)
    Upgrade = (Upgrade, 6)


class ProgrammableTransaction:
    def __init__(self, inputs: List[CallArg], commands: List[Command]):
        self.inputs = inputs
        self.commands = commands

    @property
    def encode(self) -> bytes:
        return encode_list(self.inputs) + encode_list(self.commands)


class TransactionExpiration(RustEnum):
    NONE = (NONE, 0)
    Epoch = (U64, 1)


class GasData:
    def __init__(self, payment: List[ObjectRef], owner: SuiAddress, price: U64, budget: U64):
        self.payment = payment
        self.owner = owner
        self.price = price
        self.budget = budget

    @property
    def encode(self) -> bytes:
        return encode_list(self.payment) + self.owner.encode + self.price.encode + self.budget.encode


class TransactionKind(RustEnum):
    ProgrammableTransaction = (ProgrammableTransaction, 0)


class TransactionDataV1:
    def __init__(
            self,
            kind: TransactionKind,
            sender: SuiAddress,
            gas_data: GasData,
            expiration: Optional[TransactionExpiration] = None
    ):
        self.kind = kind
        self.sender = sender
        self.gas_data = gas_data
        self.expiration = expiration or TransactionExpiration("NONE", NONE())

    @property
    def encode(self) -> bytes:
        return self.kind.encode + self.sender.encode + self.gas_data.encode + self.expiration.encode


class TransactionData(RustEnum):
    V1 = (TransactionDataV1, 0)


class IntentScope(RustEnum):
    TransactionData = (NONE, 0)


class IntentVersion(RustEnum):
    V0 = (NONE, 0)


class AppId(RustEnum):
    Sui = (NONE, 0)


class Intent:
    def __init__(self, scope: IntentScope, version: IntentVersion, app_id: AppId):
        self.scope = scope
        self.version = version
        self.app_id = app_id

    @property
    def encode(self) -> bytes:
        return self.scope.encode + self.version.encode + self.app_id.encode


TRANSACTION_INTENT = Intent(
    IntentScope("TransactionData", NONE()),
    IntentVersion("V0", NONE()),
    AppId("Sui", NONE()),
)
