"""
Category colours for map icons
"""


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def color_from_string(value: str) -> str:
    """
    Hash a string to a hex colour such as "#1a2b3c".

    The same string always gives the same colour. Different strings may land
    on similar colours.
    """
    data = value.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = code_unit + (_to_int32(_to_int32(h) << 5) - h)

    h = _to_int32(h)
    return "#" + "".join(f"{(h >> (i * 8)) & 0xFF:02x}" for i in range(3))
