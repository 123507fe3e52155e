"""Symbol model and address derivation for the symbol bridge.

Every sensor is exposed as a 32-bit float (``REAL``) symbol at an
``(index group, index offset)`` address pair.  The group is a 16-bit hash
of the sensor name; the offset is ``4 * <symbols registered before it>``.
"""

from __future__ import annotations

import math
import struct
from typing import Any, NamedTuple

from pydantic import BaseModel

__all__ = [
    "AddressPair",
    "REAL_SIZE",
    "REAL_TYPE",
    "Symbol",
    "decode_real",
    "encode_real",
    "group_for_name",
]

REAL_TYPE = "REAL"
REAL_SIZE = 4

_REAL = struct.Struct("<f")
_UTF16_UNIT = struct.Struct("<H")


class AddressPair(NamedTuple):
    group: int
    offset: int

    def to_hex(self) -> dict[str, str]:
        return {"index_group": f"0x{self.group:x}", "index_offset": f"0x{self.offset:x}"}


class Symbol(BaseModel):
    """A sensor exposed as an addressable symbol.

    Attributes:
        name: Sensor name.
        type: PLC data type tag, always ``"REAL"``.
        size: Byte size of the encoded value.
        value: Current value, updated by batches and external writes.
        unit: Optional display unit.
        module_id: Module that produces the sensor.
        address: Assigned ``(group, offset)`` pair.
    """

    name: str
    type: str = REAL_TYPE
    size: int = REAL_SIZE
    value: float
    unit: str | None = None
    module_id: int
    address: AddressPair

    def to_status(self) -> dict[str, Any]:
        """Diagnostic dict with hex-formatted address fields."""
        return {
            "name": self.name,
            "type": self.type,
            "value": self.value,
            "unit": self.unit,
            "module_id": self.module_id,
            **self.address.to_hex(),
        }


def group_for_name(name: str) -> int:
    """Derive the 16-bit index group of *name*.

    Uses the 31-multiplier rolling hash over the UTF-16 code units of the
    name, wrapped to a signed 32-bit integer, then ``abs(hash) % 65536``.
    Distinct names may share a group; the offset keeps their address pairs
    apart.
    """
    h = 0
    for (unit,) in _UTF16_UNIT.iter_unpack(name.encode("utf-16-le")):
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h) % 65536


def encode_real(value: float) -> bytes:
    """Encode *value* as a little-endian IEEE-754 single.

    Finite values beyond the single-precision range become ``±inf``.
    """
    try:
        return _REAL.pack(value)
    except OverflowError:
        return _REAL.pack(math.copysign(math.inf, value))


def decode_real(data: bytes) -> float:
    """Decode the first four bytes of *data* as a little-endian single."""
    return _REAL.unpack_from(data)[0]
