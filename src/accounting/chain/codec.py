"""
Action Data Codec - Binary serialization of action payloads.

Action data is packed field by field from a registry of struct layouts,
the same shapes a contract ABI describes:

    register_struct("transfer", [("from", "name"), ("to", "name"),
                                 ("quantity", "asset"), ("memo", "string")])
    serialize("transfer", {"from": "a", "to": "b", ...})

Type names follow ABI conventions: ``T[]`` is an array, ``T?`` an optional
and a trailing ``$`` marks a binary extension (omitted when absent).
Primitive packing is delegated to ueosio's DataStream.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable

from ueosio import DataStream
from ueosio.ds import string_to_symbol

from ..keys import normalize_public_key


PackFn = Callable[["Packer", Any], None]

STRUCTS: dict[str, list[tuple[str, str]]] = {}
ALIASES: dict[str, str] = {}
_PRIMITIVES: dict[str, PackFn] = {}

_MISSING = object()


class Packer:
    """Accumulates packed bytes; each primitive goes through a DataStream."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def _put(self, method: str, value: Any) -> "Packer":
        ds = DataStream()
        getattr(ds, method)(value)
        self._buf += ds.getvalue()
        return self

    def raw(self, data: bytes) -> "Packer":
        self._buf += data
        return self

    def uint8(self, value: int) -> "Packer":
        return self._put("pack_uint8", value)

    def uint16(self, value: int) -> "Packer":
        return self._put("pack_uint16", value)

    def uint32(self, value: int) -> "Packer":
        return self._put("pack_uint32", value)

    def uint64(self, value: int) -> "Packer":
        return self._put("pack_uint64", value)

    def int64(self, value: int) -> "Packer":
        return self._put("pack_int64", value)

    def varuint32(self, value: int) -> "Packer":
        return self._put("pack_varuint32", value)

    def name(self, value: str) -> "Packer":
        return self._put("pack_name", str(value))

    def string(self, value: str) -> "Packer":
        return self._put("pack_string", value)

    def asset(self, value: str) -> "Packer":
        return self._put("pack_asset", str(value))

    def symbol(self, value: str) -> "Packer":
        """Pack a ``"precision,CODE"`` symbol as its uint64 value."""
        precision, code = str(value).split(",")
        return self._put("pack_uint64", string_to_symbol(int(precision), code.strip()))

    def public_key(self, value: str) -> "Packer":
        return self._put("pack_public_key", normalize_public_key(value))

    def authority(self, value: dict[str, Any]) -> "Packer":
        return self._put("pack_authority", value)

    def checksum256(self, value: str) -> "Packer":
        return self._put("pack_checksum256", value)

    def bytes(self, value: bytes) -> "Packer":
        self.varuint32(len(value))
        return self.raw(value)

    def getvalue(self) -> bytes:
        return bytes(self._buf)


def register_struct(name: str, fields: list[tuple[str, str]]) -> None:
    STRUCTS[name] = list(fields)


def register_alias(name: str, target: str) -> None:
    ALIASES[name] = target


def register_primitive(name: str, pack: PackFn) -> None:
    _PRIMITIVES[name] = pack


def time_point_micros(value: Any) -> int:
    """Microseconds since the epoch for an int, datetime or node timestamp string."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = datetime.fromisoformat(value.rstrip("Z"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - datetime(1970, 1, 1, tzinfo=timezone.utc)
        return (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    raise TypeError(f"Cannot convert {type(value).__name__} to time_point")


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return bytes.fromhex(value)
    return bytes(value)


def _field(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name, _MISSING)
    return getattr(value, name, _MISSING)


def _pack_struct(packer: Packer, struct_name: str, value: Any) -> None:
    for field_name, field_type in STRUCTS[struct_name]:
        is_extension = field_type.endswith("$")
        field_value = _field(value, field_name)
        if field_value is _MISSING:
            if is_extension:
                return
            raise ValueError(f"Missing field {struct_name}.{field_name}")
        pack_value(packer, field_type.rstrip("$"), field_value)


def _pack_authority(packer: Packer, value: Any) -> None:
    packer.authority({
        "threshold": value.threshold,
        "keys": [
            {"key": normalize_public_key(kw.key), "weight": kw.weight}
            for kw in value.sorted_keys()
        ],
        "accounts": [
            {"permission": plw.permission.to_dict(), "weight": plw.weight}
            for plw in value.sorted_accounts()
        ],
        "waits": [{"wait_sec": w.wait_sec, "weight": w.weight} for w in value.waits],
    })


def pack_value(packer: Packer, type_name: str, value: Any) -> None:
    """Pack ``value`` as ABI type ``type_name`` into ``packer``."""
    type_name = ALIASES.get(type_name, type_name)

    if type_name.endswith("[]"):
        inner = type_name[:-2]
        packer.varuint32(len(value))
        for item in value:
            pack_value(packer, inner, item)
        return

    if type_name.endswith("?"):
        if value is None:
            packer.uint8(0)
        else:
            packer.uint8(1)
            pack_value(packer, type_name[:-1], value)
        return

    if type_name in _PRIMITIVES:
        _PRIMITIVES[type_name](packer, value)
        return

    if type_name in STRUCTS:
        _pack_struct(packer, type_name, value)
        return

    raise ValueError(f"Unknown type: {type_name}")


def serialize(type_name: str, value: Any) -> bytes:
    """Serialize ``value`` as ``type_name``. Returns the packed bytes."""
    packer = Packer()
    pack_value(packer, type_name, value)
    return packer.getvalue()


for _name, _pack in {
    "bool": lambda p, v: p.uint8(1 if v else 0),
    "uint8": Packer.uint8,
    "uint16": Packer.uint16,
    "uint32": Packer.uint32,
    "uint64": Packer.uint64,
    "int64": Packer.int64,
    "varuint32": Packer.varuint32,
    "name": Packer.name,
    "string": Packer.string,
    "asset": Packer.asset,
    "symbol": Packer.symbol,
    "checksum256": Packer.checksum256,
    "bytes": lambda p, v: p.bytes(_as_bytes(v)),
    "time_point": lambda p, v: p.int64(time_point_micros(v)),
    "public_key": Packer.public_key,
    "authority": _pack_authority,
}.items():
    register_primitive(_name, _pack)

register_struct("permission_level", [("actor", "name"), ("permission", "name")])
