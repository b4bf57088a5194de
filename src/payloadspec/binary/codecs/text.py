from __future__ import annotations
import base64
from typing import Callable, Dict
from payloadspec.models.common import Encoding

# Byte-to-str codecs selectable through TypeOptions.encoding.
_DECODERS: Dict[Encoding, Callable[[bytes], str]] = {
    Encoding.UTF8:    lambda raw: raw.decode("utf-8", errors="replace"),
    Encoding.UTF_8:   lambda raw: raw.decode("utf-8", errors="replace"),
    Encoding.ASCII:   lambda raw: bytes(b & 0x7F for b in raw).decode("ascii"),
    Encoding.LATIN1:  lambda raw: raw.decode("latin-1"),
    Encoding.BINARY:  lambda raw: raw.decode("latin-1"),
    Encoding.UTF16LE: lambda raw: raw[: len(raw) & ~1].decode("utf-16-le", errors="replace"),
    Encoding.UCS2:    lambda raw: raw[: len(raw) & ~1].decode("utf-16-le", errors="replace"),
    Encoding.UCS_2:   lambda raw: raw[: len(raw) & ~1].decode("utf-16-le", errors="replace"),
    Encoding.HEX:     lambda raw: raw.hex(),
    Encoding.BASE64:  lambda raw: base64.b64encode(raw).decode("ascii"),
}


def decode_text(raw: bytes | bytearray | memoryview, encoding: Encoding | str = Encoding.UTF8) -> str:
    """Decode raw bytes with one of the supported encodings (utf8 by default)."""
    return _DECODERS[Encoding(encoding)](bytes(raw))
