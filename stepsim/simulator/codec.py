"""
stepsim Simulator: Value Codec

Closed set of tagged values stored by the simulator (UInt, Digest, Tup),
their canonical byte encoding, digests, structural equality and the
wire mapping used by the query surface.
"""
import hashlib
from dataclasses import dataclass, field
from typing import Any, Tuple, Union
from pydantic import ValidationError
from ..core.errors import DecodeError
from ..core.types import TaggedValue

UINT_BITS = 64
UINT_MAX = 2 ** UINT_BITS - 1

TAG_UINT = 0x01
TAG_DIGEST = 0x02
TAG_TUPLE = 0x03

DIGEST_SIZE = 32

# Deepest nesting accepted from external input
MAX_DEPTH = 64

@dataclass(frozen=True)
class UInt:
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"UInt requires an int, got {self.value!r}")
        if not 0 <= self.value <= UINT_MAX:
            raise ValueError(f"UInt out of range: {self.value}")

@dataclass(frozen=True)
class Tup:
    items: Tuple["Value", ...] = ()

    def __post_init__(self):
        # Accept any iterable, store a tuple
        object.__setattr__(self, "items", tuple(self.items))

@dataclass(frozen=True)
class Digest:
    """
    Commitment to a value. The committed value travels with the digest so
    that its printed form matches the tuple it commits to.
    """
    committed: "Value"
    digest_bytes: bytes = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "digest_bytes", hashlib.sha256(encode(self.committed)).digest())

    def hexdigest(self) -> str:
        return self.digest_bytes.hex()

Value = Union[UInt, Digest, Tup]

def _unknown(v: Any) -> TypeError:
    return TypeError(f"not a simulator value: {v!r}")

def encode(v: Value) -> bytes:
    """
    Canonical encoding. The same logical value always encodes identically.
    """
    if isinstance(v, UInt):
        return bytes([TAG_UINT]) + v.value.to_bytes(UINT_BITS // 8, "big")
    if isinstance(v, Digest):
        return bytes([TAG_DIGEST]) + v.digest_bytes + encode(v.committed)
    if isinstance(v, Tup):
        body = b"".join(encode(item) for item in v.items)
        return bytes([TAG_TUPLE]) + len(v.items).to_bytes(4, "big") + body
    raise _unknown(v)

def decode(data: bytes) -> Value:
    """
    Inverse of encode. Only externally supplied bytes can fail here.
    """
    try:
        value, offset = _decode_at(bytes(data), 0)
    except RecursionError as e:
        raise DecodeError("value nested too deeply", expected=f"depth <= {MAX_DEPTH}") from e
    if offset != len(data):
        raise DecodeError(f"{len(data) - offset} trailing bytes after value")
    return value

def _take(data: bytes, offset: int, n: int) -> bytes:
    chunk = data[offset:offset + n]
    if len(chunk) != n:
        raise DecodeError(f"truncated input at offset {offset}: wanted {n} bytes")
    return chunk

def _decode_at(data: bytes, offset: int, depth: int = 0) -> Tuple[Value, int]:
    if depth > MAX_DEPTH:
        raise DecodeError("value nested too deeply", expected=f"depth <= {MAX_DEPTH}", actual=f"offset {offset}")
    tag = _take(data, offset, 1)[0]
    offset += 1
    if tag == TAG_UINT:
        raw = _take(data, offset, UINT_BITS // 8)
        return UInt(int.from_bytes(raw, "big")), offset + UINT_BITS // 8
    if tag == TAG_DIGEST:
        expected = _take(data, offset, DIGEST_SIZE)
        committed, offset = _decode_at(data, offset + DIGEST_SIZE, depth + 1)
        digest = Digest(committed)
        if digest.digest_bytes != expected:
            raise DecodeError(
                "digest does not match its committed value",
                expected=expected.hex(),
                actual=digest.hexdigest(),
            )
        return digest, offset
    if tag == TAG_TUPLE:
        count = int.from_bytes(_take(data, offset, 4), "big")
        offset += 4
        items = []
        for _ in range(count):
            item, offset = _decode_at(data, offset, depth + 1)
            items.append(item)
        return Tup(tuple(items)), offset
    raise DecodeError(f"unknown value tag 0x{tag:02x} at offset {offset - 1}")

def digest_of(v: Value) -> Digest:
    return Digest(v)

def equals(a: Value, b: Value) -> bool:
    """Structural equality; tuple order matters."""
    if isinstance(a, UInt):
        return isinstance(b, UInt) and a.value == b.value
    if isinstance(a, Digest):
        return isinstance(b, Digest) and a.digest_bytes == b.digest_bytes
    if isinstance(a, Tup):
        if not isinstance(b, Tup) or len(a.items) != len(b.items):
            return False
        return all(equals(x, y) for x, y in zip(a.items, b.items))
    raise _unknown(a)

def format_value(v: Value) -> str:
    if isinstance(v, UInt):
        return f"UInt({v.value})"
    if isinstance(v, Digest):
        return f"Digest({format_value(v.committed)})"
    if isinstance(v, Tup):
        return "Tuple(" + ", ".join(format_value(item) for item in v.items) + ")"
    raise _unknown(v)

def tag_of(v: Value) -> str:
    if isinstance(v, UInt):
        return "V_UInt"
    if isinstance(v, Digest):
        return "V_Digest"
    if isinstance(v, Tup):
        return "V_Tuple"
    raise _unknown(v)

# --- Wire mapping ---

def to_tagged(v: Value) -> TaggedValue:
    if isinstance(v, UInt):
        return TaggedValue(tag="V_UInt", contents=v.value)
    if isinstance(v, Digest):
        return TaggedValue(tag="V_Digest", contents=to_tagged(v.committed))
    if isinstance(v, Tup):
        return TaggedValue(tag="V_Tuple", contents=[to_tagged(item) for item in v.items])
    raise _unknown(v)

def to_wire(v: Value) -> dict:
    return to_tagged(v).model_dump(mode="json")

def from_tagged(tv: TaggedValue, depth: int = 0) -> Value:
    if depth > MAX_DEPTH:
        raise DecodeError("value nested too deeply", expected=f"depth <= {MAX_DEPTH}")
    contents = tv.contents
    try:
        if tv.tag == "V_UInt" and isinstance(contents, int):
            return UInt(contents)
        if tv.tag == "V_Digest" and isinstance(contents, TaggedValue):
            return Digest(from_tagged(contents, depth + 1))
        if tv.tag == "V_Tuple" and isinstance(contents, list):
            return Tup(tuple(from_tagged(item, depth + 1) for item in contents))
    except ValueError as e:
        raise DecodeError(f"invalid {tv.tag} contents: {e}") from e
    raise DecodeError(f"contents do not match tag {tv.tag}", actual=repr(contents))

def from_wire(obj: Any) -> Value:
    """
    Decodes an externally supplied tagged value (a dict or a TaggedValue).
    """
    try:
        if isinstance(obj, TaggedValue):
            return from_tagged(obj)
        try:
            tv = TaggedValue.model_validate(obj)
        except ValidationError as e:
            raise DecodeError(f"malformed tagged value: {e.error_count()} validation error(s)", actual=repr(obj)) from e
        return from_tagged(tv)
    except RecursionError as e:
        raise DecodeError("value nested too deeply", expected=f"depth <= {MAX_DEPTH}") from e
