import base64


def get_bytes(string) -> bytes:
    if isinstance(string, (bytes, bytearray)):
        byte = bytes(string)
    elif isinstance(string, str):
        if string[:2] == "0x":
            string = string[2:]
        byte = bytes.fromhex(string)
    else:
        raise TypeError("Agreement must be either 'bytes' or 'string'!")
    return byte


def judge_hex_str(data: str) -> bool:
    if "0x" == data[:2]:
        data = data[2:]
    for k in data:
        if "0" <= k <= "9" or "a" <= k <= "f" or "A" <= k <= "F":
            continue
        return False
    return True


def b64encode(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def b64decode(data) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return base64.b64decode(data, validate=True)
