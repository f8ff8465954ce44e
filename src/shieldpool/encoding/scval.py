"""Small helpers around ``stellar_sdk`` ScVal construction and inspection."""

from __future__ import annotations

from typing import Optional, Sequence

from stellar_sdk import scval
from stellar_sdk import xdr as stellar_xdr

from ..domain.errors import InvalidWireValueError

SCValType = stellar_xdr.SCValType


def map_val(entries: Sequence[tuple[stellar_xdr.SCVal, stellar_xdr.SCVal]]) -> stellar_xdr.SCVal:
    """Build an ScVal map keeping the given entry order."""
    return stellar_xdr.SCVal(
        SCValType.SCV_MAP,
        map=stellar_xdr.SCMap(
            [stellar_xdr.SCMapEntry(key=key, val=val) for key, val in entries]
        ),
    )


def expect_vec(
    value: stellar_xdr.SCVal, what: str, length: Optional[int] = None
) -> list[stellar_xdr.SCVal]:
    if value.type != SCValType.SCV_VEC or value.vec is None:
        raise InvalidWireValueError(what, f"expected a vector, got {value.type.name}")
    items = list(value.vec.sc_vec)
    if length is not None and len(items) != length:
        raise InvalidWireValueError(
            what, f"expected {length} elements, got {len(items)}"
        )
    return items


def expect_map(
    value: stellar_xdr.SCVal, what: str
) -> list[tuple[stellar_xdr.SCVal, stellar_xdr.SCVal]]:
    if value.type != SCValType.SCV_MAP or value.map is None:
        raise InvalidWireValueError(what, f"expected a map, got {value.type.name}")
    return [(entry.key, entry.val) for entry in value.map.sc_map]


def expect_symbol(value: stellar_xdr.SCVal, what: str) -> str:
    if value.type != SCValType.SCV_SYMBOL:
        raise InvalidWireValueError(what, f"expected a symbol, got {value.type.name}")
    return scval.from_symbol(value)


def expect_bytes(value: stellar_xdr.SCVal, what: str) -> bytes:
    if value.type != SCValType.SCV_BYTES:
        raise InvalidWireValueError(what, f"expected bytes, got {value.type.name}")
    return scval.from_bytes(value)


def expect_address(value: stellar_xdr.SCVal, what: str) -> str:
    if value.type != SCValType.SCV_ADDRESS:
        raise InvalidWireValueError(what, f"expected an address, got {value.type.name}")
    return scval.from_address(value).address


def expect_i128(value: stellar_xdr.SCVal, what: str) -> int:
    if value.type != SCValType.SCV_I128:
        raise InvalidWireValueError(what, f"expected an i128, got {value.type.name}")
    return scval.from_int128(value)


def expect_u32(value: stellar_xdr.SCVal, what: str) -> int:
    if value.type != SCValType.SCV_U32:
        raise InvalidWireValueError(what, f"expected a u32, got {value.type.name}")
    return scval.from_uint32(value)


def is_void(value: stellar_xdr.SCVal) -> bool:
    return value.type == SCValType.SCV_VOID
