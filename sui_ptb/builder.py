"""
Transaction builder.

    with TransactionBuilder() as b:
        b.set_config(sender, 10_000_000, 1_000)
        b.add_gas_object(gas_id, version, digest)
        gas = b.gas_argument()
        amount = b.pure_u64(100_000_000)
        base = b.split_coins(gas, [amount])
        coin = b.nested_result(base, 0)
        b.transfer_objects([coin], b.pure_address(sender))
        tx_bytes = b.build()

A builder is consumed by build(), whether it succeeds or not. A builder that
never reaches build() must be released, which leaving the with-block does.
"""
from __future__ import annotations

import enum
import logging
from typing import List, Optional

from .engine import MoveCallArg, ObjectKind, TransactionArena, unframe
from .errors import StateError

logger = logging.getLogger(__name__)


class BuilderState(enum.Enum):
    DRAFT = "draft"
    BUILT = "built"
    RELEASED = "released"


class TransactionBuilder:
    """Not safe for concurrent use."""

    def __init__(self):
        self._arena: Optional[TransactionArena] = TransactionArena()
        self.state = BuilderState.DRAFT

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.state == BuilderState.DRAFT:
            self.release()

    def __repr__(self):
        return f"TransactionBuilder({self.state.value})"

    @property
    def arena(self) -> TransactionArena:
        if self.state != BuilderState.DRAFT:
            raise StateError(f"Builder is {self.state.value} and can no longer be used")
        return self._arena

    # Configuration

    def set_config(self, sender: str, gas_budget: int = None, gas_price: int = None):
        """sender must be a 0x-prefixed hex address"""
        self.arena.set_config(sender, gas_budget, gas_price)

    def add_gas_object(self, object_id: str, version: int, digest: str):
        """Add an owned gas coin by object id, version and base58 digest"""
        self.arena.add_gas_object(object_id, version, digest)

    # Arguments

    def gas_argument(self) -> int:
        return self.arena.gas_argument()

    def input_object(self, object_id: str, version: int, digest: str = None,
                     kind: ObjectKind = ObjectKind.OWNED, mutable: bool = True) -> int:
        """
        owned / immutable / receiving: id, version and digest.
        shared: id, initial shared version and mutable; the digest is ignored.
        """
        return self.arena.input_object(object_id, version, kind, digest, mutable)

    def pure_bool(self, value: bool) -> int:
        return self.arena.pure_bool(value)

    def pure_u8(self, value: int) -> int:
        return self.arena.pure_u8(value)

    def pure_u16(self, value: int) -> int:
        return self.arena.pure_u16(value)

    def pure_u32(self, value: int) -> int:
        return self.arena.pure_u32(value)

    def pure_u64(self, value: int) -> int:
        return self.arena.pure_u64(value)

    def pure_u128(self, value: int) -> int:
        return self.arena.pure_u128(value)

    def pure_u256(self, value: int) -> int:
        return self.arena.pure_u256(value)

    def pure_address(self, value: str) -> int:
        return self.arena.pure_address(value)

    def pure_string(self, value: str) -> int:
        return self.arena.pure_string(value)

    def pure_raw_bcs(self, value: bytes) -> int:
        """Already BCS encoded bytes, passed through verbatim"""
        return self.arena.pure_raw_bcs(value)

    def nested_result(self, base_id: int, sub_index: int) -> int:
        return self.arena.nested_result(base_id, sub_index)

    # Commands

    def split_coins(self, coin: int, amounts: List[int]) -> int:
        """Returns the base result; address coin i with nested_result(base, i)"""
        return self.arena.command_split_coins(coin, amounts)

    def merge_coins(self, target: int, sources: List[int]) -> None:
        self.arena.command_merge_coins(target, sources)

    def transfer_objects(self, objects: List[int], recipient: int) -> None:
        self.arena.command_transfer_objects(objects, recipient)

    def make_move_vec(self, type_tag: Optional[str], elements: List[int]) -> int:
        return self.arena.command_make_move_vec(type_tag, elements)

    def move_call(self, package: str, module: str, function: str,
                  type_args: List[str] = None, arguments: List[MoveCallArg] = None) -> int:
        return self.arena.command_move_call(package, module, function, type_args, arguments)

    def publish(self, modules: List[bytes], dependencies: List[str]) -> int:
        """Returns the UpgradeCap argument"""
        return self.arena.command_publish(modules, dependencies)

    def upgrade(self, modules: List[bytes], dependencies: List[str], package_id: str, ticket: int) -> int:
        """Returns the UpgradeReceipt argument"""
        return self.arena.command_upgrade(modules, dependencies, package_id, ticket)

    # Lifecycle

    def build(self) -> bytes:
        arena = self.arena
        self._arena = None
        self.state = BuilderState.BUILT

        missing = arena.missing_fields()
        if missing:
            raise StateError(f"Cannot build transaction, missing: {', '.join(missing)}")
        buffer = arena.build_transaction()
        if buffer is None:
            raise StateError("Cannot build transaction")
        return unframe(buffer)

    def release(self):
        if self.state == BuilderState.BUILT:
            raise StateError("Builder was consumed by build and must not be released")
        if self.state == BuilderState.RELEASED:
            raise StateError("Builder already released")
        self._arena = None
        self.state = BuilderState.RELEASED
        logger.debug("Released unbuilt transaction builder")
