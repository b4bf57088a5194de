from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

from payloadspec.binary.codecs.types import DataType, Literal
from payloadspec.models.common import Mode
from payloadspec.models.options import TypeOptions

if TYPE_CHECKING:
    from payloadspec.binary.reader import ReaderState
    from payloadspec.spec import PayloadSpec

Predicate = Callable[[Mapping[str, Any]], bool]
ValueProvider = Callable[[Mapping[str, Any]], Any]

logger = logging.getLogger(__name__)


def table_key(value: Any) -> str:
    """Stringify a scalar the same way for switch tables and run-time keys."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Instruction(ABC):
    """
    One step of a spec. `execute` returns the number of bits the interpreter
    must advance the cursor by; `size` is the static contribution, or None
    when it is only known at run time.
    """
    name: Optional[str] = None

    @property
    def size(self) -> int | None:
        return 0

    @abstractmethod
    def execute(self, state: "ReaderState") -> int: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})" if self.name else f"{type(self).__name__}()"


class FieldInstruction(Instruction):
    def __init__(self, name: str, kind: DataType, options: TypeOptions):
        self.name = name
        self.kind = kind
        self.options = options

    @property
    def size(self) -> int | None:
        return self.kind.bit_size(self.options)

    def execute(self, state) -> int:
        decoded = state.cursor.decode(self.kind, self.options)
        state.result[self.name] = self.options.finish(self.name, decoded.value)
        return decoded.bits

    def __repr__(self) -> str:
        return f"FieldInstruction({self.name!r}, {self.kind!r})"


class LiteralInstruction(Instruction):
    def __init__(self, name: str, literal: Literal):
        self.name = name
        self.literal = literal

    def execute(self, state) -> int:
        state.result[self.name] = self.literal.value
        return 0


class StoredInstruction(Instruction):
    """Consumes the buffer like the wrapped field, but files the value under `stored`."""

    def __init__(self, inner: FieldInstruction | LiteralInstruction):
        self.inner = inner
        self.name = inner.name

    @property
    def size(self) -> int | None:
        return self.inner.size

    def execute(self, state) -> int:
        bits = self.inner.execute(state)
        state.stored[self.name] = state.result.pop(self.name)
        return bits

    def __repr__(self) -> str:
        return f"StoredInstruction({self.inner!r})"


class DeriveInstruction(Instruction):
    def __init__(self, name: str, callback: ValueProvider):
        self.name = name
        self.callback = callback

    def execute(self, state) -> int:
        state.result[self.name] = self.callback(state.snapshot())
        return 0


class SkipInstruction(Instruction):
    def __init__(self, nbytes: int):
        self.nbytes = nbytes

    @property
    def size(self) -> int:
        return self.nbytes * 8

    def execute(self, state) -> int:
        state.cursor.check_skip(self.size)
        return self.size

    def __repr__(self) -> str:
        return f"SkipInstruction({self.nbytes})"


class PadInstruction(Instruction):
    @property
    def size(self) -> None:
        return None  # depends on the bit offset at run time

    def execute(self, state) -> int:
        return state.cursor.pad_bits()


class EndiannessInstruction(Instruction):
    """Handled by the interpreter loop itself; executing it directly is a no-op."""

    def __init__(self, mode: Mode):
        self.mode = Mode(mode)

    def execute(self, state) -> int:
        return 0

    def __repr__(self) -> str:
        return f"EndiannessInstruction({self.mode.name})"


class IfInstruction(Instruction):
    def __init__(self, predicate: Predicate, spec: "PayloadSpec"):
        self.predicate = predicate
        self.spec = spec

    def execute(self, state) -> int:
        if self.predicate(state.view()):
            logger.debug("condition met, entering nested spec at byte %d", state.cursor.pos)
            state.result.update(self.spec.run(state.cursor.slice_from_here()))
        return 0


class SwitchInstruction(Instruction):
    def __init__(
        self,
        key_fn: ValueProvider,
        table: Dict[str, "PayloadSpec"],
        default: "PayloadSpec | None" = None,
    ):
        self.key_fn = key_fn
        self.table = table
        self.default = default

    def select(self, state) -> "PayloadSpec | None":
        key = table_key(self.key_fn(state.view()))
        if key in self.table:
            logger.debug("switch key %r matched", key)
            return self.table[key]
        logger.debug("switch key %r unmatched, default=%s", key, self.default is not None)
        return self.default

    def execute(self, state) -> int:
        branch = self.select(state)
        if branch is not None:
            state.result.update(branch.run(state.cursor.slice_from_here()))
        return 0

