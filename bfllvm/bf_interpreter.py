from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

from .config import TAPE_SIZE
from .errors import StepLimitExceeded, TapeBoundsError
from .parser import (
    Decrement,
    Increment,
    Input,
    Instruction,
    Loop,
    MoveLeft,
    MoveRight,
    Output,
    Program,
)

EOF_CELL = 0xFF


@dataclass
class BrainfuckInterpreter:
    """Tree-walking evaluator with the same semantics as the generated code.

    Loops run the entry test once and then a trailing test after every pass
    of the body. Cells wrap modulo 256 and an exhausted input stores 255,
    which is what truncating an EOF from the read primitive produces.
    """

    tape_size: int = TAPE_SIZE

    tape: List[int] = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    output_buffer: List[int] = field(init=False, repr=False)
    steps: int = field(init=False, repr=False)
    entry_tests: int = field(init=False, repr=False)
    trailing_tests: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.tape = [0] * self.tape_size
        self.pointer = 0
        self.output_buffer = []
        self.steps = 0
        self.entry_tests = 0
        self.trailing_tests = 0

    def run(
        self,
        program: Program,
        input_data: Optional[Iterable[int]] = None,
        max_steps: Optional[int] = None,
    ) -> bytes:
        self.reset()
        self._input_iter: Iterator[int] = iter(list(input_data or []))
        self._max_steps = max_steps
        self._execute_block(program.body)
        return bytes(self.output_buffer)

    def _tick(self) -> None:
        if self._max_steps is not None and self.steps >= self._max_steps:
            raise StepLimitExceeded("Brainfuck program exceeded allowed step count")
        self.steps += 1

    def _cell_index(self) -> int:
        # Moving is unchecked; only touching a cell off the tape is an error.
        if not (0 <= self.pointer < self.tape_size):
            raise TapeBoundsError(f"Pointer {self.pointer} is outside the tape (0..{self.tape_size - 1})")
        return self.pointer

    def _execute_block(self, body: List[Instruction]) -> None:
        for node in body:
            self._execute_instruction(node)

    def _execute_instruction(self, node: Instruction) -> None:
        self._tick()
        if isinstance(node, Increment):
            index = self._cell_index()
            self.tape[index] = (self.tape[index] + 1) % 256
        elif isinstance(node, Decrement):
            index = self._cell_index()
            self.tape[index] = (self.tape[index] - 1) % 256
        elif isinstance(node, MoveLeft):
            self.pointer -= 1
        elif isinstance(node, MoveRight):
            self.pointer += 1
        elif isinstance(node, Output):
            self.output_buffer.append(self.tape[self._cell_index()])
        elif isinstance(node, Input):
            index = self._cell_index()
            try:
                self.tape[index] = next(self._input_iter) & 0xFF
            except StopIteration:
                self.tape[index] = EOF_CELL
        elif isinstance(node, Loop):
            self._execute_loop(node)
        else:
            raise TypeError(f"Unhandled instruction type: {node!r}")

    def _execute_loop(self, node: Loop) -> None:
        self.entry_tests += 1
        if self.tape[self._cell_index()] == 0:
            return
        while True:
            self._execute_block(node.body)
            self._tick()
            self.trailing_tests += 1
            if self.tape[self._cell_index()] == 0:
                return


__all__ = ["BrainfuckInterpreter", "EOF_CELL"]
