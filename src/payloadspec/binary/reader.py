from __future__ import annotations

import logging
from collections import ChainMap
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Sequence, Union

from payloadspec.binary.codecs.bitcursor import BytesLike, Cursor
from payloadspec.binary.instructions import EndiannessInstruction, Instruction
from payloadspec.models.common import Mode

logger = logging.getLogger(__name__)


@dataclass
class ReaderState:
    """Everything one execution mutates. Created per run, never shared."""
    cursor: Cursor
    mode: Mode = Mode.BE
    result: Dict[str, Any] = field(default_factory=dict)
    stored: Dict[str, Any] = field(default_factory=dict)

    def view(self) -> Mapping[str, Any]:
        """
        Read-only view over result and stored values, as seen at this moment.
        On a key present in both, the result value wins.
        """
        return MappingProxyType(ChainMap(self.result, self.stored))

    def snapshot(self) -> Mapping[str, Any]:
        """Read-only copy of `view()`; later reads do not show up in it."""
        return MappingProxyType(dict(self.view()))


class BufferReader:
    """Runs a sequence of instructions once over a buffer."""

    def __init__(self, instructions: Sequence[Instruction], mode: Mode = Mode.BE):
        self.instructions = tuple(instructions)
        self.mode = Mode(mode)

    def read(self, data: Union[BytesLike, Cursor]) -> Dict[str, Any]:
        if not isinstance(data, Cursor):
            data = Cursor(data, mode=self.mode)
        # a caller-supplied cursor advances, but keeps its own mode afterwards
        saved, data.mode = data.mode, self.mode
        state = ReaderState(cursor=data, mode=self.mode)
        try:
            for instruction in self.instructions:
                self.dispatch(instruction, state)
        finally:
            data.mode = saved
        return state.result

    def dispatch(self, instruction: Instruction, state: ReaderState) -> None:
        if isinstance(instruction, EndiannessInstruction):
            logger.debug("endianness %s -> %s", state.mode.name, instruction.mode.name)
            state.mode = state.cursor.mode = instruction.mode
            return
        logger.debug("%r at %s", instruction, tuple(state.cursor.offset))
        bits = instruction.execute(state)
        state.cursor.advance(bits)
