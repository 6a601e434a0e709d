from __future__ import annotations

import re
from typing import List

from .bcs import NONE, Identifier, StructTag, SuiAddress, TypeTag
from .errors import EncodingError, ValidationError, STATUS_INVALID_TYPE_TAG

PRIMITIVE_TYPES = {
    "bool": "Bool",
    "u8": "U8",
    "u16": "U16",
    "u32": "U32",
    "u64": "U64",
    "u128": "U128",
    "u256": "U256",
    "address": "Address",
    "signer": "Signer",
}

_IDENTIFIER = re.compile(r"[A-Za-z][A-Za-z0-9_]*|_[A-Za-z0-9_]+")


def is_valid_identifier(name) -> bool:
    return isinstance(name, str) and _IDENTIFIER.fullmatch(name) is not None


def split_type_args(data: str) -> List[str]:
    """
    "0x2::sui::SUI, vector<u8>" -> ["0x2::sui::SUI", "vector<u8>"]
    """
    output = []
    depth = 0
    start = 0
    for k, c in enumerate(data):
        if c == "<":
            depth += 1
        elif c == ">":
            depth -= 1
            if depth < 0:
                raise EncodingError(f"Unbalanced type arguments: {data}", STATUS_INVALID_TYPE_TAG)
        elif c == "," and depth == 0:
            output.append(data[start:k].strip())
            start = k + 1
    if depth != 0:
        raise EncodingError(f"Unbalanced type arguments: {data}", STATUS_INVALID_TYPE_TAG)
    output.append(data[start:].strip())
    if any(v == "" for v in output):
        raise EncodingError(f"Empty type argument in: {data}", STATUS_INVALID_TYPE_TAG)
    return output


def parse_type_tag(type_arg: str) -> TypeTag:
    """
    u64 -> TypeTag::U64
    vector<u8> -> TypeTag::Vector(U8)
    0x2::coin::Coin<0x2::sui::SUI> -> TypeTag::Struct
    """
    if not isinstance(type_arg, str) or type_arg.strip() == "":
        raise EncodingError(f"Invalid type tag: {type_arg!r}", STATUS_INVALID_TYPE_TAG)
    type_arg = type_arg.strip()

    primitive = PRIMITIVE_TYPES.get(type_arg.lower())
    if primitive is not None:
        return TypeTag(primitive, NONE())

    if type_arg.lower().startswith("vector<") and type_arg.endswith(">"):
        return TypeTag("Vector", parse_type_tag(type_arg[7:-1]))

    index = type_arg.find("<")
    if index == -1:
        head = type_arg
        type_params = []
    else:
        if not type_arg.endswith(">"):
            raise EncodingError(f"Invalid type tag: {type_arg}", STATUS_INVALID_TYPE_TAG)
        head = type_arg[:index]
        type_params = [parse_type_tag(v) for v in split_type_args(type_arg[index + 1:-1])]

    parts = head.split("::")
    if len(parts) != 3:
        raise EncodingError(f"Invalid type tag: {type_arg}", STATUS_INVALID_TYPE_TAG)
    address, module, name = [v.strip() for v in parts]
    if not is_valid_identifier(module) or not is_valid_identifier(name):
        raise EncodingError(f"Invalid type tag: {type_arg}", STATUS_INVALID_TYPE_TAG)
    try:
        address = SuiAddress(address)
    except ValidationError as e:
        raise EncodingError(f"Invalid type tag address: {e.message}", STATUS_INVALID_TYPE_TAG)
    return TypeTag("Struct", StructTag(address, Identifier(module), Identifier(name), type_params))
