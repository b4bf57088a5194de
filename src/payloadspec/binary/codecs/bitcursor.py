from __future__ import annotations
from typing import TYPE_CHECKING, Any, Iterable, List, NamedTuple, Tuple, Union

from payloadspec.binary.errors import AlignmentError, OutOfBoundsError
from payloadspec.models.common import Encoding, Mode
from payloadspec.models.options import TypeOptions
from .text import decode_text

if TYPE_CHECKING:
    from .types import DataType, Decoded

BytesLike = Union[bytes, bytearray, memoryview]


class Position(NamedTuple):
    byte_offset: int
    bit_offset: int

    @property
    def total_bits(self) -> int:
        return self.byte_offset * 8 + self.bit_offset


class Cursor:
    """
    Read position over an immutable byte view, tracked as (byte, bit).

    Decoders never move the cursor themselves; they report how many bits they
    consumed and the cursor (or the interpreter) advances by that amount.
    """
    __slots__ = ("buf", "pos", "bit", "mode")

    def __init__(
        self,
        data: BytesLike | Iterable[int],
        *,
        mode: Mode = Mode.BE,
        offset: Tuple[int, int] = (0, 0),
    ):
        if not isinstance(data, (bytes, bytearray, memoryview)):
            data = bytes(data)
        self.buf = memoryview(data).toreadonly()
        self.mode = Mode(mode)
        self.pos = 0
        self.bit = 0
        self.offset = offset

    def __len__(self) -> int: return len(self.buf)
    def __repr__(self) -> str: return f"Cursor(len={len(self.buf)}, offset={tuple(self.offset)}, mode={self.mode.name})"

    @property
    def length(self) -> int: return len(self.buf)
    @property
    def buffer(self) -> memoryview: return self.buf

    def tell(self) -> int: return self.pos
    def remaining(self) -> int: return len(self.buf) - self.pos

    @property
    def offset(self) -> Position:
        return Position(self.pos, self.bit)

    @offset.setter
    def offset(self, value: Tuple[int, int]) -> None:
        moved = self._normalise(value[0] * 8 + value[1])
        if moved is None:
            raise OutOfBoundsError(OutOfBoundsError.READ)
        self.pos, self.bit = moved

    # -- position arithmetic

    def _normalise(self, total_bits: int) -> Position | None:
        if not (0 <= total_bits <= len(self.buf) * 8):
            return None
        return Position(*divmod(total_bits, 8))

    def advance(self, bits: int) -> None:
        moved = self._normalise(self.offset.total_bits + bits)
        if moved is None:
            raise OutOfBoundsError(OutOfBoundsError.READ)
        self.pos, self.bit = moved

    def check_skip(self, bits: int) -> None:
        if self._normalise(self.offset.total_bits + bits) is None:
            raise OutOfBoundsError(OutOfBoundsError.SKIP)

    def skip(self, n: int) -> "Cursor":
        self.check_skip(n * 8)
        self.advance(n * 8)
        return self

    def pad_bits(self) -> int:
        return (8 - self.bit) % 8

    def pad(self) -> "Cursor":
        self.advance(self.pad_bits())
        return self

    def assert_byte_aligned(self) -> None:
        if self.bit != 0:
            raise AlignmentError(self.bit)

    def check_bounds(self, nbits: int = 1) -> None:
        """Fail if the next read of `nbits` would pass the end of the buffer."""
        if self.offset.total_bits + max(nbits, 1) > len(self.buf) * 8:
            raise OutOfBoundsError(OutOfBoundsError.READ)

    # -- raw access for decoders

    def peek_bytes(self, n: int) -> bytes:
        self.assert_byte_aligned()
        end = self.pos + n
        if end > len(self.buf): raise OutOfBoundsError(OutOfBoundsError.READ)
        return self.buf[self.pos:end].tobytes()

    def take(self, n: int) -> bytes:
        out = self.peek_bytes(n)
        self.advance(n * 8)
        return out

    # -- typed reads

    def decode(self, kind: "DataType", options: TypeOptions | None = None) -> "Decoded":
        opts = options or TypeOptions()
        if kind.aligned:
            self.assert_byte_aligned()
        self.check_bounds(kind.bit_size(opts) or 1)
        return kind.decode(self, opts, self.mode)

    def read(self, kind: "DataType", options: TypeOptions | dict | None = None, **kwargs) -> Any:
        opts = TypeOptions.of(options, **kwargs)
        decoded = self.decode(kind, opts)
        value = opts.finish(kind.name, decoded.value)
        self.advance(decoded.bits)
        return value

    def read_many(self, kinds: Iterable["DataType" | Tuple["DataType", dict]]) -> List[Any]:
        out = []
        for item in kinds:
            kind, options = item if isinstance(item, tuple) else (item, None)
            out.append(self.read(kind, options))
        return out

    def peek(self, kind: "DataType", byte_offset: int, options: TypeOptions | dict | None = None, **kwargs) -> Any:
        """Decode one value at an absolute byte offset; the position is left unchanged."""
        opts = TypeOptions.of(options, **kwargs)
        nbytes = -(-(kind.bit_size(opts) or 8) // 8)
        if byte_offset < 0 or byte_offset + nbytes > len(self.buf):
            raise OutOfBoundsError(OutOfBoundsError.PEEK)
        saved = self.offset
        self.pos, self.bit = byte_offset, 0
        try:
            value = kind.decode(self, opts, self.mode).value
        finally:
            self.pos, self.bit = saved
        return opts.finish(kind.name, value)

    # -- views

    def slice(self, start: int, end: int | None = None) -> "Cursor":
        return Cursor(self.buf[start:end], mode=self.mode)

    def slice_from_here(self) -> "Cursor":
        """Fresh cursor over the rest of the buffer, starting at bit 0 of the current byte."""
        return Cursor(self.buf[self.pos:], mode=self.mode)

    def to_string(self, encoding: Encoding | str = Encoding.UTF8, start: int = 0, end: int | None = None) -> str:
        return decode_text(self.buf[start:end], encoding)
