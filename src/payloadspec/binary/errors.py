from __future__ import annotations
from typing import Any


class ParsingError(ValueError):
    pass


class OutOfBoundsError(ParsingError):
    """A read, skip or peek would leave the buffer."""

    READ = "Attempt to read outside of the buffer"
    SKIP = "Attempt to skip outside the buffer"
    PEEK = "Attempt to peek outside of the buffer"


class AlignmentError(ParsingError):
    def __init__(self, bit_offset: int):
        self.bit_offset = bit_offset
        super().__init__(
            f"Buffer position is not at a byte boundary (bit offset {bit_offset}). "
            "Do you need to use pad()?"
        )


class TerminatorNotFoundError(ParsingError):
    def __init__(self, terminator: int, start: int):
        self.terminator = terminator
        self.start = start
        super().__init__(f"Terminator 0x{terminator:02x} not found after byte {start}")


def format_value(v: Any) -> str:
    """Render a value the way it reads in a payload description."""
    if isinstance(v, bool):
        return "true" if v else "false"
    if v is None:
        return "null"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


class ValidationError(ParsingError):
    """A decoded value did not match the field's expected value."""

    def __init__(self, name: str, expected: Any, actual: Any):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected {name} to be {format_value(expected)} but was {format_value(actual)}"
        )
