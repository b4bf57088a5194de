from __future__ import annotations
from enum import Enum


class Mode(str, Enum):
    """Byte order for multi-byte numeric reads."""
    BE = "big"
    LE = "little"

    @property
    def struct_prefix(self) -> str:
        return ">" if self is Mode.BE else "<"


class Encoding(str, Enum):
    UTF8 = "utf8"
    UTF_8 = "utf-8"
    ASCII = "ascii"
    LATIN1 = "latin1"
    BINARY = "binary"
    UTF16LE = "utf16le"
    UCS2 = "ucs2"
    UCS_2 = "ucs-2"
    HEX = "hex"
    BASE64 = "base64"
