from __future__ import annotations
from typing import Any, Dict, List, Mapping, Union

from payloadspec.binary.codecs.bitcursor import BytesLike, Cursor
from payloadspec.binary.codecs.types import DataType, Literal, Primitive
from payloadspec.binary.instructions import (
    DeriveInstruction,
    EndiannessInstruction,
    FieldInstruction,
    IfInstruction,
    Instruction,
    LiteralInstruction,
    PadInstruction,
    Predicate,
    SkipInstruction,
    StoredInstruction,
    SwitchInstruction,
    ValueProvider,
    table_key,
)
from payloadspec.binary.reader import BufferReader
from payloadspec.models.common import Mode
from payloadspec.models.options import TypeOptions

DEFAULT_KEY = "default"


class PayloadSpec:
    """
    Ordered, reusable decode program. Each builder call appends one instruction
    and returns the spec, so calls chain:

        PayloadSpec().field("count", UInt8).skip(1).field("temp", Int16)

    A spec keeps no run state; `execute` may be called any number of times.
    """

    def __init__(self, mode: Mode = Mode.BE):
        self.mode = Mode(mode)
        self.instructions: List[Instruction] = []

    def __len__(self) -> int:
        return len(self.instructions)

    def __repr__(self) -> str:
        return f"PayloadSpec(mode={self.mode.name}, instructions={len(self.instructions)})"

    # -- building

    @staticmethod
    def _resolve(name: str, kind: Union[DataType, Primitive], options, kwargs) -> Instruction:
        if isinstance(kind, Literal):
            literal = kind
        elif isinstance(kind, DataType):
            return FieldInstruction(name, kind, TypeOptions.of(options, **kwargs))
        elif isinstance(kind, (bool, int, float, str)):
            literal = Literal(kind)
        else:
            raise TypeError(f"field {name!r}: expected a DataType or a scalar literal, got {kind!r}")
        if options or kwargs:
            raise ValueError(f"field {name!r}: literal values take no options")
        return LiteralInstruction(name, literal)

    def field(self, name: str, kind: Union[DataType, Primitive], options: TypeOptions | dict | None = None, **kwargs) -> "PayloadSpec":
        self.instructions.append(self._resolve(name, kind, options, kwargs))
        return self

    def store(self, name: str, kind: Union[DataType, Primitive], options: TypeOptions | dict | None = None, **kwargs) -> "PayloadSpec":
        self.instructions.append(StoredInstruction(self._resolve(name, kind, options, kwargs)))
        return self

    def derive(self, name: str, callback: ValueProvider) -> "PayloadSpec":
        if not callable(callback):
            raise TypeError(f"derive {name!r}: callback must be callable")
        self.instructions.append(DeriveInstruction(name, callback))
        return self

    def skip(self, sizable: Union[int, DataType]) -> "PayloadSpec":
        if isinstance(sizable, DataType):
            bits = sizable.bit_size(TypeOptions())
            if bits is None:
                raise ValueError(f"cannot skip {sizable!r}: it has no fixed width")
            nbytes = bits // 8
        elif isinstance(sizable, int) and not isinstance(sizable, bool):
            nbytes = sizable
        else:
            raise TypeError(f"skip expects a byte count or a DataType, got {sizable!r}")
        self.instructions.append(SkipInstruction(nbytes))
        return self

    def pad(self) -> "PayloadSpec":
        self.instructions.append(PadInstruction())
        return self

    def endianness(self, mode: Mode) -> "PayloadSpec":
        self.instructions.append(EndiannessInstruction(mode))
        return self

    def if_(self, predicate: Predicate, other: "PayloadSpec") -> "PayloadSpec":
        if not callable(predicate):
            raise TypeError("if_ predicate must be callable")
        if not isinstance(other, PayloadSpec):
            raise TypeError(f"if_ branch must be a PayloadSpec, got {other!r}")
        self.instructions.append(IfInstruction(predicate, other))
        return self

    def switch(
        self,
        key_fn: ValueProvider,
        table: Mapping[Any, "PayloadSpec"],
        default: "PayloadSpec | None" = None,
    ) -> "PayloadSpec":
        """
        Multi-way branch. Table keys are stringified scalars; the key "default"
        (or the `default` argument) names the fallback spec. No match and no
        fallback leaves the result untouched.
        """
        if not callable(key_fn):
            raise TypeError("switch key function must be callable")
        branches: Dict[str, PayloadSpec] = {}
        for key, branch in table.items():
            if not isinstance(branch, PayloadSpec):
                raise TypeError(f"switch branch {key!r} must be a PayloadSpec, got {branch!r}")
            if key == DEFAULT_KEY:
                if default is None:
                    default = branch
            else:
                branches[table_key(key)] = branch
        if default is not None and not isinstance(default, PayloadSpec):
            raise TypeError(f"switch default must be a PayloadSpec, got {default!r}")
        self.instructions.append(SwitchInstruction(key_fn, branches, default))
        return self

    # -- running

    def run(self, cursor: Cursor) -> Dict[str, Any]:
        return BufferReader(self.instructions, self.mode).read(cursor)

    def execute(self, data: Union[BytesLike, Cursor]) -> Dict[str, Any]:
        """Decode `data` in one pass and return the named result values."""
        return BufferReader(self.instructions, self.mode).read(data)

    exec = execute
