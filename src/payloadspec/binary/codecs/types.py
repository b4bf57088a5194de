from __future__ import annotations
import struct
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, NamedTuple, Tuple, Union

from payloadspec.binary.errors import OutOfBoundsError, TerminatorNotFoundError
from payloadspec.models.common import Mode
from payloadspec.models.options import TypeOptions
from .text import decode_text

if TYPE_CHECKING:
    from .bitcursor import Cursor

Primitive = Union[int, float, bool, str]


class Decoded(NamedTuple):
    value: Primitive
    bits: int


class DataType(ABC):
    """
    A leaf decoder. Instances are stateless and shared: `decode` reads at the
    cursor's current position without moving it and reports the bits consumed.
    """
    name: str = "DataType"
    aligned: bool = True  # byte-oriented kinds refuse to start mid-byte

    @abstractmethod
    def bit_size(self, options: TypeOptions | None = None) -> int | None: ...

    @abstractmethod
    def decode(self, cursor: "Cursor", options: TypeOptions, mode: Mode) -> Decoded: ...

    def __repr__(self) -> str:
        return self.name


class Integer(DataType):
    _FORMATS: Dict[Tuple[int, bool], str] = {
        (1, False): "B", (1, True): "b",
        (2, False): "H", (2, True): "h",
        (4, False): "I", (4, True): "i",
    }

    def __init__(self, name: str, nbytes: int, signed: bool):
        self.name = name
        self.nbytes = nbytes
        self.signed = signed
        self._fmt = self._FORMATS[(nbytes, signed)]

    def bit_size(self, options=None) -> int:
        return self.nbytes * 8

    def decode(self, cursor, options, mode) -> Decoded:
        raw = cursor.peek_bytes(self.nbytes)
        return Decoded(struct.unpack(mode.struct_prefix + self._fmt, raw)[0], self.nbytes * 8)


class Floating(DataType):
    """IEEE-754 single/double. `dp` rounds at decode time."""

    def __init__(self, name: str, nbytes: int):
        self.name = name
        self.nbytes = nbytes
        self._fmt = "f" if nbytes == 4 else "d"

    def bit_size(self, options=None) -> int:
        return self.nbytes * 8

    def decode(self, cursor, options, mode) -> Decoded:
        value = struct.unpack(mode.struct_prefix + self._fmt, cursor.peek_bytes(self.nbytes))[0]
        if options.dp is not None:
            value = round(value, options.dp)
        return Decoded(value, self.nbytes * 8)


class Bits(DataType):
    """Unsigned bit field of 1..16 bits, MSB-first, free to straddle bytes."""
    aligned = False

    def __init__(self, width: int, name: str | None = None):
        if not (1 <= width <= 16):
            raise ValueError("bit field width must be 1..16")
        self.width = width
        self.name = name or f"Bits{width}"

    def bit_size(self, options=None) -> int:
        return self.width

    def _read(self, cursor) -> int:
        w = self.width
        nbytes = (cursor.bit + w + 7) // 8
        end = cursor.pos + nbytes
        if end > len(cursor.buf):
            raise OutOfBoundsError(OutOfBoundsError.READ)
        chunk = int.from_bytes(cursor.buf[cursor.pos:end], "big")
        shift = nbytes * 8 - cursor.bit - w
        return (chunk >> shift) & ((1 << w) - 1)

    def decode(self, cursor, options, mode) -> Decoded:
        return Decoded(self._read(cursor), self.width)


class Boolean(Bits):
    def __init__(self):
        super().__init__(1, name="Bool")

    def decode(self, cursor, options, mode) -> Decoded:
        return Decoded(self._read(cursor) == 1, 1)


class TextType(DataType):
    """
    Text in one of three shapes:
      - `size`: exactly that many bytes;
      - `terminator`: bytes up to the terminator, which is consumed but not decoded;
      - neither: everything up to the end of the buffer.
    """
    name = "Text"

    def bit_size(self, options=None) -> int | None:
        if options is not None and options.size is not None:
            return options.size * 8
        return None

    def decode(self, cursor, options, mode) -> Decoded:
        start = cursor.pos
        if options.size is not None:
            return Decoded(decode_text(cursor.peek_bytes(options.size), options.encoding), options.size * 8)

        cursor.assert_byte_aligned()
        rest = cursor.buf[start:]
        if options.terminator is not None:
            idx = rest.tobytes().find(options.terminator)
            if idx < 0:
                raise TerminatorNotFoundError(options.terminator, start)
            return Decoded(decode_text(rest[:idx], options.encoding), (idx + 1) * 8)
        return Decoded(decode_text(rest, options.encoding), len(rest) * 8)


class Literal(DataType):
    """Not buffer-backed: always yields its constant and consumes nothing."""
    aligned = False

    def __init__(self, value: Primitive):
        self.value = value
        self.name = f"Literal({value!r})"

    def bit_size(self, options=None) -> int:
        return 0

    def decode(self, cursor, options, mode) -> Decoded:
        return Decoded(self.value, 0)


UInt8 = Integer("UInt8", 1, signed=False)
Int8 = Integer("Int8", 1, signed=True)
UInt16 = Integer("UInt16", 2, signed=False)
Int16 = Integer("Int16", 2, signed=True)
UInt32 = Integer("UInt32", 4, signed=False)
Int32 = Integer("Int32", 4, signed=True)

Float = Floating("Float", 4)
Double = Floating("Double", 8)

Bit = Bits(1, name="Bit")
Bool = Boolean()
Bits2, Bits3, Bits4, Bits5, Bits6, Bits7, Bits8, Bits9 = (Bits(w) for w in range(2, 10))
Bits10, Bits11, Bits12, Bits13, Bits14, Bits15, Bits16 = (Bits(w) for w in range(10, 17))

Text = TextType()
