import unittest

import base58

from sui_ptb import (
    BuilderState, EncodingError, ObjectKind, StateError, TransactionArena, TransactionBuilder, ValidationError,
    arg_bcs, arg_id, frame, unframe,
)
from sui_ptb.bcs import U64
from sui_ptb.engine import MAX_COMMANDS, MAX_GAS_OBJECTS, MAX_INPUTS, MoveCallArg
from sui_ptb.errors import (
    STATUS_INVALID_FUNCTION, STATUS_INVALID_MODULE, STATUS_PARSE_ERROR, STATUS_UNKNOWN_KIND,
)

SENDER = "0x" + "11" * 32
RECIPIENT = "0x" + "22" * 32
GAS_ID = "0x" + "33" * 32
OBJECT_ID = "0x" + "44" * 32
PACKAGE = "0x" + "55" * 32
DIGEST_RAW = bytes(range(1, 33))
DIGEST = base58.b58encode(DIGEST_RAW).decode()
OTHER_DIGEST = base58.b58encode(bytes(range(2, 34))).decode()
GAS_BUDGET = 10_000_000
GAS_PRICE = 1_000


def configured(sender=True, gas_object=True, budget=True, price=True) -> TransactionBuilder:
    builder = TransactionBuilder()
    if sender:
        builder.set_config(SENDER, GAS_BUDGET if budget else None, GAS_PRICE if price else None)
    if gas_object:
        builder.add_gas_object(GAS_ID, 7, DIGEST)
    return builder


def split_and_transfer(builder: TransactionBuilder, amount=100_000_000):
    gas = builder.gas_argument()
    value = builder.pure_u64(amount)
    base = builder.split_coins(gas, [value])
    coin = builder.nested_result(base, 0)
    recipient = builder.pure_address(RECIPIENT)
    builder.transfer_objects([coin], recipient)
    return [gas, value, base, coin, recipient]


class TestTransactionBuilder(unittest.TestCase):

    def test_split_and_transfer_bytes(self):
        builder = configured()
        ids = split_and_transfer(builder)
        assert ids == [0, 1, 2, 3, 4]
        tx_bytes = builder.build()

        sender = bytes.fromhex("11" * 32)
        expected = (
                b"\x00" + b"\x00"
                # inputs: Pure(u64), Pure(address)
                + b"\x02"
                + b"\x00\x08" + U64(100_000_000).encode
                + b"\x00\x20" + bytes.fromhex("22" * 32)
                # commands: SplitCoins(GasCoin, [Input(0)]), TransferObjects([NestedResult(0, 0)], Input(1))
                + b"\x02"
                + b"\x02" + b"\x00" + b"\x01" + b"\x01\x00\x00"
                + b"\x01" + b"\x01" + b"\x03\x00\x00\x00\x00" + b"\x01\x01\x00"
                + sender
                # gas data
                + b"\x01" + bytes.fromhex("33" * 32) + U64(7).encode + b"\x20" + DIGEST_RAW
                + sender + U64(GAS_PRICE).encode + U64(GAS_BUDGET).encode
                # no expiration
                + b"\x00"
        )
        assert tx_bytes == expected
        assert builder.state == BuilderState.BUILT

    def test_gas_argument_idempotent(self):
        with configured() as builder:
            first = builder.gas_argument()
            assert builder.gas_argument() == first
            assert builder.pure_u8(1) == first + 1

    def test_missing_fields(self):
        cases = [
            (dict(sender=False), "sender"),
            (dict(gas_object=False), "gas object"),
            (dict(budget=False), "gas budget"),
            (dict(price=False), "gas price"),
        ]
        for kwargs, field in cases:
            builder = configured(**kwargs)
            split_and_transfer(builder)
            with self.assertRaises(StateError) as ctx:
                builder.build()
            assert field in str(ctx.exception), field

        builder = configured()
        with self.assertRaises(StateError) as ctx:
            builder.build()
        assert "command" in str(ctx.exception)

    def test_build_consumes_builder(self):
        builder = configured()
        with self.assertRaises(StateError):
            builder.build()
        assert builder.state == BuilderState.BUILT
        with self.assertRaises(StateError):
            builder.pure_u64(1)
        with self.assertRaises(StateError):
            builder.build()
        with self.assertRaises(StateError):
            builder.release()

        builder = configured()
        split_and_transfer(builder)
        builder.build()
        with self.assertRaises(StateError):
            builder.gas_argument()

    def test_release(self):
        builder = configured()
        builder.pure_u64(1)
        builder.release()
        assert builder.state == BuilderState.RELEASED
        with self.assertRaises(StateError):
            builder.pure_u64(1)
        with self.assertRaises(StateError):
            builder.build()
        with self.assertRaises(StateError):
            builder.release()

        with TransactionBuilder() as builder:
            builder.pure_bool(True)
        assert builder.state == BuilderState.RELEASED

        with configured() as builder:
            split_and_transfer(builder)
            builder.build()
        assert builder.state == BuilderState.BUILT

    def test_empty_arrays(self):
        with configured() as builder:
            gas = builder.gas_argument()
            recipient = builder.pure_address(RECIPIENT)
            with self.assertRaises(ValidationError):
                builder.split_coins(gas, [])
            with self.assertRaises(ValidationError):
                builder.merge_coins(gas, [])
            with self.assertRaises(ValidationError):
                builder.transfer_objects([], recipient)
            with self.assertRaises(ValidationError):
                builder.make_move_vec("u64", [])
            assert builder.arena.commands == []

    def test_unknown_argument(self):
        with configured() as builder:
            gas = builder.gas_argument()
            with self.assertRaises(ValidationError):
                builder.split_coins(gas, [5])
            with self.assertRaises(ValidationError):
                builder.nested_result(9, 0)
            with self.assertRaises(ValidationError):
                builder.nested_result(gas, 0)

    def test_nested_result_not_checked_locally(self):
        builder = configured()
        gas = builder.gas_argument()
        base = builder.split_coins(gas, [builder.pure_u64(1), builder.pure_u64(2)])
        in_range = builder.nested_result(base, 1)
        out_of_range = builder.nested_result(base, 5)
        builder.transfer_objects([in_range, out_of_range], builder.pure_address(RECIPIENT))
        assert b"\x03\x00\x00\x05\x00" in builder.build()

    def test_merge_coins(self):
        builder = configured()
        coin = builder.input_object(OBJECT_ID, 3, DIGEST)
        gas = builder.gas_argument()
        assert builder.merge_coins(gas, [coin]) is None
        tx_bytes = builder.build()
        assert b"\x03" + b"\x00" + b"\x01" + b"\x01\x00\x00" in tx_bytes

    def test_move_call(self):
        builder = configured()
        coin = builder.input_object(OBJECT_ID, 3, DIGEST)
        result = builder.move_call(
            PACKAGE, "pool", "deposit", ["0x2::sui::SUI"],
            [arg_id(coin), arg_bcs(U64(5).encode)]
        )
        assert result == coin + 2
        assert len(builder.arena.inputs) == 2
        builder.transfer_objects([result], builder.pure_address(SENDER))
        tx_bytes = builder.build()
        assert b"\x04pool\x07deposit\x01\x07" in tx_bytes

    def test_move_call_argument_validation(self):
        with configured() as builder:
            coin = builder.input_object(OBJECT_ID, 3, DIGEST)
            arguments = [
                [MoveCallArg(arg_id=coin, pure_bcs=b"\x01")],
                [MoveCallArg()],
                [arg_bcs(b"\x01"), MoveCallArg()],
                [arg_bcs(b"\x01"), arg_id(99)],
                [arg_bcs(b"\x01"), coin],
            ]
            for args in arguments:
                with self.assertRaises(ValidationError):
                    builder.move_call(PACKAGE, "pool", "deposit", [], args)
            assert len(builder.arena.inputs) == 1
            assert builder.arena.commands == []
            assert len(builder.arena.arguments) == 1

    def test_move_call_identifiers(self):
        with configured() as builder:
            with self.assertRaises(EncodingError) as ctx:
                builder.move_call(PACKAGE, "1pool", "deposit")
            assert ctx.exception.code == STATUS_INVALID_MODULE
            with self.assertRaises(EncodingError) as ctx:
                builder.move_call(PACKAGE, "pool", "deposit-all")
            assert ctx.exception.code == STATUS_INVALID_FUNCTION
            with self.assertRaises(EncodingError) as ctx:
                builder.move_call(PACKAGE, "pool\n", "deposit")
            assert ctx.exception.code == STATUS_INVALID_MODULE
            with self.assertRaises(EncodingError) as ctx:
                builder.move_call(PACKAGE, "pool", "deposit\n")
            assert ctx.exception.code == STATUS_INVALID_FUNCTION
            with self.assertRaises(EncodingError):
                builder.move_call(PACKAGE, "pool", "deposit", ["0x2::sui"])
            with self.assertRaises(ValidationError):
                builder.move_call("0xzz", "pool", "deposit")
            assert builder.arena.commands == []

    def test_duplicate_input_object(self):
        with configured() as builder:
            first = builder.input_object(OBJECT_ID, 3, DIGEST)
            second = builder.input_object(OBJECT_ID, 3, DIGEST)
            assert second == first + 1
            assert builder.arena.argument(first).encode == builder.arena.argument(second).encode
            assert len(builder.arena.inputs) == 1

            with self.assertRaises(ValidationError):
                builder.input_object(OBJECT_ID, 4, DIGEST)
            with self.assertRaises(ValidationError):
                builder.input_object(OBJECT_ID, 3, OTHER_DIGEST)

    def test_shared_object(self):
        builder = configured()
        pool = builder.input_object(OBJECT_ID, 9, kind=ObjectKind.SHARED, mutable=False)
        builder.input_object(OBJECT_ID, 9, kind=ObjectKind.SHARED, mutable=True)
        builder.move_call(PACKAGE, "pool", "touch", [], [arg_id(pool)])
        tx_bytes = builder.build()
        shared = b"\x01" + b"\x01" + bytes.fromhex("44" * 32) + U64(9).encode + b"\x01"
        assert shared in tx_bytes

    def test_object_kinds(self):
        with configured() as builder:
            with self.assertRaises(ValidationError):
                builder.input_object(OBJECT_ID, 3)
            with self.assertRaises(EncodingError) as ctx:
                builder.input_object(OBJECT_ID, 3, DIGEST, kind="borrowed")
            assert ctx.exception.code == STATUS_UNKNOWN_KIND
            with self.assertRaises(ValidationError):
                builder.input_object(OBJECT_ID, -1, DIGEST)
            receiving = builder.input_object(OBJECT_ID, 3, DIGEST, kind="receiving")
            assert builder.arena.inputs[0].call_arg.encode[:2] == b"\x01\x02"
            assert receiving == 0

    def test_make_move_vec(self):
        builder = configured()
        elements = [builder.pure_u64(1), builder.pure_u64(2)]
        vec = builder.make_move_vec("u64", elements)
        untyped = builder.make_move_vec(None, [builder.input_object(OBJECT_ID, 3, DIGEST)])
        builder.move_call(PACKAGE, "pool", "batch", [], [arg_id(vec), arg_id(untyped)])
        tx_bytes = builder.build()
        assert b"\x05\x01\x02\x02\x01\x00\x00\x01\x01\x00" in tx_bytes
        assert b"\x05\x00\x01\x01\x02\x00" in tx_bytes

    def test_publish_and_upgrade(self):
        builder = configured()
        cap = builder.publish([b"\xa1\x1c\xeb\x0b"], ["0x1", "0x2"])
        builder.transfer_objects([cap], builder.pure_address(SENDER))
        tx_bytes = builder.build()
        assert b"\x04\x01\x04\xa1\x1c\xeb\x0b\x02" in tx_bytes

        builder = configured()
        ticket = builder.move_call(PACKAGE, "package", "authorize_upgrade")
        receipt = builder.upgrade([b"\x00"], ["0x1"], PACKAGE, ticket)
        builder.move_call(PACKAGE, "package", "commit_upgrade", [], [arg_id(receipt)])
        assert builder.build()

        with configured() as builder:
            with self.assertRaises(ValidationError):
                builder.publish(["a1"], [])

    def test_gas_object_limit(self):
        with configured(gas_object=False) as builder:
            for _ in range(MAX_GAS_OBJECTS):
                builder.add_gas_object(GAS_ID, 1, DIGEST)
            with self.assertRaises(ValidationError):
                builder.add_gas_object(GAS_ID, 1, DIGEST)

    def test_invalid_config(self):
        with TransactionBuilder() as builder:
            with self.assertRaises(ValidationError):
                builder.set_config("0x12zz", GAS_BUDGET, GAS_PRICE)
            with self.assertRaises(ValidationError):
                builder.set_config(SENDER, -1, GAS_PRICE)
            with self.assertRaises(ValidationError):
                builder.add_gas_object(GAS_ID, 1, "not-a-digest")


class TestEngine(unittest.TestCase):

    def test_command_limit(self):
        arena = TransactionArena()
        gas = arena.gas_argument()
        amount = arena.pure_u64(1)
        for _ in range(MAX_COMMANDS):
            arena.command_merge_coins(gas, [amount])
        arguments = len(arena.arguments)
        inputs = len(arena.inputs)

        with self.assertRaises(EncodingError):
            arena.command_split_coins(gas, [amount])
        with self.assertRaises(EncodingError):
            arena.command_move_call(PACKAGE, "pool", "deposit", [], [arg_bcs(b"\x01")])
        assert len(arena.commands) == MAX_COMMANDS
        assert len(arena.arguments) == arguments
        assert len(arena.inputs) == inputs

    def test_input_limit(self):
        arena = TransactionArena()
        for k in range(MAX_INPUTS):
            arena.pure_u64(k)
        arguments = len(arena.arguments)

        with self.assertRaises(EncodingError):
            arena.pure_u64(1)
        with self.assertRaises(EncodingError):
            arena.input_object(OBJECT_ID, 3, "owned", DIGEST)
        with self.assertRaises(EncodingError):
            arena.command_move_call(PACKAGE, "pool", "deposit", [], [arg_bcs(b"\x01")])
        assert len(arena.inputs) == MAX_INPUTS
        assert len(arena.arguments) == arguments
        assert arena.commands == []

        # existing arguments can still be referenced
        assert arena.command_move_call(PACKAGE, "pool", "deposit", [], [arg_id(0)]) == arguments

    def test_frame(self):
        assert frame(b"abc") == b"\x03\x00\x00\x00abc"
        assert unframe(frame(b"abc")) == b"abc"
        for buffer in [None, b"\x01\x00", b"\x05\x00\x00\x00ab"]:
            with self.assertRaises(EncodingError) as ctx:
                unframe(buffer)
            assert ctx.exception.code == STATUS_PARSE_ERROR

    def test_build_transaction(self):
        arena = TransactionArena()
        assert arena.build_transaction() is None
        assert arena.missing_fields() == ["sender", "gas object", "gas budget", "gas price", "command"]

        arena.set_config(SENDER, GAS_BUDGET, GAS_PRICE)
        arena.add_gas_object(GAS_ID, 7, DIGEST)
        gas = arena.gas_argument()
        base = arena.command_split_coins(gas, [arena.pure_u64(1)])
        arena.command_transfer_objects([arena.nested_result(base, 0)], arena.pure_address(RECIPIENT))
        buffer = arena.build_transaction()
        assert int.from_bytes(buffer[:4], "little") == len(buffer) - 4
        assert unframe(buffer) == arena.transaction_data().encode
