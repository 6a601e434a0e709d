"""
In-process encoding engine.

An arena of Arguments and Commands indexed by Argument ID. Every allocation
(object input, pure value, gas coin, nested result alias, command result)
takes the next ID, so IDs are dense and strictly increasing per arena.

    arena = TransactionArena()
    gas = arena.gas_argument()
    amount = arena.pure_u64(100_000_000)
    base = arena.command_split_coins(gas, [amount])
    coin = arena.nested_result(base, 0)
    recipient = arena.pure_address("0xabc")
    arena.command_transfer_objects([coin], recipient)
    payload = unframe(arena.build_transaction())
"""
from __future__ import annotations

import enum
import logging
import struct
from typing import Dict, List, Optional, Union

from . import bcs
from .bcs import (
    NONE, Argument, Bool, Bytes, CallArg, Command, GasData, Identifier, MakeMoveVec, MergeCoins,
    NestedResult, ObjectArg, ObjectDigest, ObjectID, ObjectRef, OptionTypeTag, ProgrammableMoveCall,
    ProgrammableTransaction, Publish, SharedObject, SplitCoins, SuiAddress, TransactionData,
    TransactionDataV1, TransactionKind, TransferObjects, U16, U64, Upgrade,
)
from .errors import (
    EncodingError, ValidationError, STATUS_INVALID_FUNCTION, STATUS_INVALID_MODULE,
    STATUS_PARSE_ERROR, STATUS_UNKNOWN_KIND,
)
from .type_tag import is_valid_identifier, parse_type_tag

logger = logging.getLogger(__name__)

MAX_GAS_OBJECTS = 250
MAX_COMMANDS = 1000
MAX_INPUTS = 2000

FRAME_HEADER = struct.Struct("<I")


def frame(payload: bytes) -> bytes:
    return FRAME_HEADER.pack(len(payload)) + payload


def unframe(buffer: bytes) -> bytes:
    if buffer is None or len(buffer) < FRAME_HEADER.size:
        raise EncodingError("Build buffer is missing its length prefix", STATUS_PARSE_ERROR)
    (length,) = FRAME_HEADER.unpack_from(buffer)
    payload = buffer[FRAME_HEADER.size:]
    if len(payload) != length:
        raise EncodingError(f"Build buffer declares {length} bytes, holds {len(payload)}", STATUS_PARSE_ERROR)
    return bytes(payload)


class ObjectKind(str, enum.Enum):
    OWNED = "owned"
    IMMUTABLE = "immutable"
    RECEIVING = "receiving"
    SHARED = "shared"


class MoveCallArg:
    """One move call argument: an existing Argument ID or raw BCS bytes, never both."""

    def __init__(self, arg_id: Optional[int] = None, pure_bcs: Optional[bytes] = None):
        self.arg_id = arg_id
        self.pure_bcs = pure_bcs

    def __repr__(self):
        if self.arg_id is not None:
            return f"MoveCallArg(arg_id={self.arg_id})"
        return f"MoveCallArg(pure_bcs={self.pure_bcs!r})"


def arg_id(value: int) -> MoveCallArg:
    return MoveCallArg(arg_id=value)


def arg_bcs(value: bytes) -> MoveCallArg:
    return MoveCallArg(pure_bcs=value)


class _ObjectInput:
    def __init__(self, object_id: ObjectID, version: int, kind: ObjectKind,
                 digest: Optional[ObjectDigest], mutable: bool):
        self.object_id = object_id
        self.version = version
        self.kind = kind
        self.digest = digest
        self.mutable = mutable

    def same_reference(self, other: _ObjectInput) -> bool:
        if self.kind != other.kind or self.version != other.version:
            return False
        if self.kind == ObjectKind.SHARED:
            return True
        return self.digest.v0 == other.digest.v0

    @property
    def call_arg(self) -> CallArg:
        if self.kind == ObjectKind.SHARED:
            arg = ObjectArg("SharedObject", SharedObject(self.object_id, U64(self.version), Bool(self.mutable)))
        else:
            ref = ObjectRef(self.object_id, U64(self.version), self.digest)
            if self.kind == ObjectKind.RECEIVING:
                arg = ObjectArg("Receiving", ref)
            else:
                arg = ObjectArg("ImmOrOwnedObject", ref)
        return CallArg("Object", arg)


def _parse_kind(kind) -> ObjectKind:
    try:
        return ObjectKind(kind)
    except ValueError:
        raise EncodingError(f"Unknown object kind: {kind!r}", STATUS_UNKNOWN_KIND)


def _parse_version(version) -> int:
    if not isinstance(version, int) or isinstance(version, bool) or version < 0 or version > bcs.MAX_U64:
        raise ValidationError(f"Invalid object version: {version!r}")
    return version


def _modules(modules) -> List[bytes]:
    for k, v in enumerate(modules):
        if not isinstance(v, (bytes, bytearray)):
            raise ValidationError(f"Module {k} must be compiled bytecode bytes")
    return [bytes(v) for v in modules]


class TransactionArena:
    """
    Owns the argument table, the command sequence and the gas configuration
    of one transaction. Not synchronized: one owner at a time.
    """

    def __init__(self):
        self.arguments: List[Argument] = []
        self.inputs: List[Union[bytes, _ObjectInput]] = []
        self.commands: List[Command] = []
        self.sender: Optional[SuiAddress] = None
        self.gas_budget: Optional[int] = None
        self.gas_price: Optional[int] = None
        self.gas_objects: List[ObjectRef] = []
        self._gas_argument: Optional[int] = None
        self._object_inputs: Dict[bytes, int] = {}

    # Configuration

    def set_config(self, sender, gas_budget: Optional[int] = None, gas_price: Optional[int] = None):
        sender = SuiAddress(sender)
        if gas_budget is not None:
            U64(gas_budget)
        if gas_price is not None:
            U64(gas_price)
        self.sender = sender
        if gas_budget is not None:
            self.gas_budget = gas_budget
        if gas_price is not None:
            self.gas_price = gas_price

    def add_gas_object(self, object_id, version: int, digest):
        if len(self.gas_objects) >= MAX_GAS_OBJECTS:
            raise ValidationError(f"At most {MAX_GAS_OBJECTS} gas objects are allowed")
        ref = ObjectRef(ObjectID(object_id), U64(_parse_version(version)), ObjectDigest(digest))
        self.gas_objects.append(ref)

    # Argument table

    def _allocate(self, argument: Argument) -> int:
        self.arguments.append(argument)
        return len(self.arguments) - 1

    def _push_input(self, value: Union[bytes, _ObjectInput]) -> int:
        if len(self.inputs) >= MAX_INPUTS:
            raise EncodingError(f"Too many inputs: at most {MAX_INPUTS}")
        argument = Argument("Input", U16(len(self.inputs)))
        self.inputs.append(value)
        return self._allocate(argument)

    def argument(self, value: int) -> Argument:
        if not isinstance(value, int) or isinstance(value, bool) or value < 0 or value >= len(self.arguments):
            raise ValidationError(f"Argument {value!r} has not been allocated")
        return self.arguments[value]

    def gas_argument(self) -> int:
        if self._gas_argument is None:
            self._gas_argument = self._allocate(Argument("GasCoin", NONE()))
        return self._gas_argument

    def input_object(self, object_id, version: int, kind="owned", digest=None, mutable: bool = True) -> int:
        kind = _parse_kind(kind)
        object_id = ObjectID(object_id)
        version = _parse_version(version)
        if kind == ObjectKind.SHARED:
            digest = None
        else:
            if digest is None:
                raise ValidationError(f"{kind.value} object {object_id} requires a digest")
            digest = ObjectDigest(digest)
        obj = _ObjectInput(object_id, version, kind, digest, bool(mutable))

        index = self._object_inputs.get(object_id.v0)
        if index is None:
            arg = self._push_input(obj)
            self._object_inputs[object_id.v0] = len(self.inputs) - 1
            return arg

        existing = self.inputs[index]
        if not existing.same_reference(obj):
            raise ValidationError(f"Object {object_id} is already an input with a different reference")
        existing.mutable = existing.mutable or obj.mutable
        return self._allocate(Argument("Input", U16(index)))

    def pure(self, data: bytes) -> int:
        if not isinstance(data, (bytes, bytearray)):
            raise ValidationError(f"Pure value must be bytes, got {type(data).__name__}")
        return self._push_input(bytes(data))

    def pure_bool(self, value: bool) -> int:
        return self.pure(bcs.Bool(value).encode)

    def pure_u8(self, value: int) -> int:
        return self.pure(bcs.U8(value).encode)

    def pure_u16(self, value: int) -> int:
        return self.pure(bcs.U16(value).encode)

    def pure_u32(self, value: int) -> int:
        return self.pure(bcs.U32(value).encode)

    def pure_u64(self, value: int) -> int:
        return self.pure(bcs.U64(value).encode)

    def pure_u128(self, value: int) -> int:
        return self.pure(bcs.U128(value).encode)

    def pure_u256(self, value: int) -> int:
        return self.pure(bcs.U256(value).encode)

    def pure_address(self, value) -> int:
        if isinstance(value, str):
            value = value.strip().strip('"')
        return self.pure(SuiAddress(value).encode)

    def pure_string(self, value: str) -> int:
        return self.pure(bcs.String(value).encode)

    def pure_raw_bcs(self, value: bytes) -> int:
        return self.pure(value)

    def nested_result(self, base_id: int, sub_index: int) -> int:
        """
        Alias the sub_index-th output of the command that produced base_id.
        The sub index is not checked against the command's output count.
        """
        base = self.argument(base_id)
        if base.key != "Result":
            raise ValidationError(f"Argument {base_id} is not a command result")
        nested = NestedResult(U16(base.value.v0), U16(sub_index))
        return self._allocate(Argument("NestedResult", nested))

    # Command issuer

    def _arguments(self, ids: List[int], name: str) -> List[Argument]:
        if ids is None or len(ids) == 0:
            raise ValidationError(f"{name}: at least one argument required")
        return [self.argument(v) for v in ids]

    def _push_command(self, command: Command, produces_result=True) -> Optional[int]:
        if len(self.commands) >= MAX_COMMANDS:
            raise EncodingError(f"Too many commands: at most {MAX_COMMANDS}")
        result = Argument("Result", U16(len(self.commands)))
        self.commands.append(command)
        if not produces_result:
            return None
        return self._allocate(result)

    def command_split_coins(self, coin: int, amounts: List[int]) -> int:
        amounts = self._arguments(amounts, "SplitCoins")
        return self._push_command(Command("SplitCoins", SplitCoins(self.argument(coin), amounts)))

    def command_merge_coins(self, target: int, sources: List[int]) -> None:
        sources = self._arguments(sources, "MergeCoins")
        self._push_command(Command("MergeCoins", MergeCoins(self.argument(target), sources)), False)

    def command_transfer_objects(self, objects: List[int], recipient: int) -> None:
        objects = self._arguments(objects, "TransferObjects")
        self._push_command(Command("TransferObjects", TransferObjects(objects, self.argument(recipient))), False)

    def command_make_move_vec(self, type_tag: Optional[str], elements: List[int]) -> int:
        elements = self._arguments(elements, "MakeMoveVec")
        if type_tag is None or type_tag == "":
            tag = OptionTypeTag("NONE", NONE())
        else:
            tag = OptionTypeTag("Some", parse_type_tag(type_tag))
        return self._push_command(Command("MakeMoveVec", MakeMoveVec(tag, elements)))

    def command_move_call(self, package, module: str, function: str,
                          type_args: List[str] = None, arguments: List[MoveCallArg] = None) -> int:
        package = ObjectID(package)
        if not is_valid_identifier(module):
            raise EncodingError(f"Invalid module identifier: {module!r}", STATUS_INVALID_MODULE)
        if not is_valid_identifier(function):
            raise EncodingError(f"Invalid function identifier: {function!r}", STATUS_INVALID_FUNCTION)
        type_arguments = [parse_type_tag(v) for v in (type_args or [])]

        # Validate every slot before allocating any pure literal.
        arguments = list(arguments or [])
        for k, arg in enumerate(arguments):
            if not isinstance(arg, MoveCallArg):
                raise ValidationError(f"MoveCall argument {k} must be a MoveCallArg")
            if (arg.arg_id is None) == (arg.pure_bcs is None):
                raise ValidationError(f"MoveCall argument {k} must carry exactly one of arg_id or pure_bcs")
            if arg.arg_id is not None:
                self.argument(arg.arg_id)
            elif not isinstance(arg.pure_bcs, (bytes, bytearray)):
                raise ValidationError(f"MoveCall argument {k} pure_bcs must be bytes")
        if len(self.commands) >= MAX_COMMANDS:
            raise EncodingError(f"Too many commands: at most {MAX_COMMANDS}")
        literals = sum(1 for v in arguments if v.arg_id is None)
        if len(self.inputs) + literals > MAX_INPUTS:
            raise EncodingError(f"Too many inputs: at most {MAX_INPUTS}")

        resolved = []
        for arg in arguments:
            if arg.arg_id is not None:
                resolved.append(self.argument(arg.arg_id))
            else:
                resolved.append(self.argument(self.pure(arg.pure_bcs)))

        call = ProgrammableMoveCall(package, Identifier(module), Identifier(function), type_arguments, resolved)
        return self._push_command(Command("MoveCall", call))

    def command_publish(self, modules: List[bytes], dependencies: List[str]) -> int:
        modules = _modules(modules)
        dependencies = [ObjectID(v) for v in dependencies]
        return self._push_command(Command("Publish", Publish(modules, dependencies)))

    def command_upgrade(self, modules: List[bytes], dependencies: List[str], package, ticket: int) -> int:
        modules = _modules(modules)
        dependencies = [ObjectID(v) for v in dependencies]
        package = ObjectID(package)
        upgrade = Upgrade(modules, dependencies, package, self.argument(ticket))
        return self._push_command(Command("Upgrade", upgrade))

    # Finalisation

    def missing_fields(self) -> List[str]:
        missing = []
        if self.sender is None:
            missing.append("sender")
        if len(self.gas_objects) == 0:
            missing.append("gas object")
        if self.gas_budget is None:
            missing.append("gas budget")
        if self.gas_price is None:
            missing.append("gas price")
        if len(self.commands) == 0:
            missing.append("command")
        return missing

    def transaction_data(self) -> TransactionData:
        inputs = [
            CallArg("Pure", Bytes(v)) if isinstance(v, bytes) else v.call_arg
            for v in self.inputs
        ]
        kind = TransactionKind("ProgrammableTransaction", ProgrammableTransaction(inputs, list(self.commands)))
        gas_data = GasData(list(self.gas_objects), self.sender, U64(self.gas_price), U64(self.gas_budget))
        return TransactionData("V1", TransactionDataV1(kind, self.sender, gas_data))

    def build_transaction(self) -> Optional[bytes]:
        """Framed BCS bytes, or None when a required field is missing."""
        if self.missing_fields():
            return None
        payload = self.transaction_data().encode
        logger.debug(f"Encoded transaction: {len(self.inputs)} inputs, "
                     f"{len(self.commands)} commands, {len(payload)} bytes")
        return frame(payload)
