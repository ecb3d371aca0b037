from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, TextIO, Type, Union

from .errors import EmptyParseError, ParseError, SourceUnavailableError

logger = logging.getLogger(__name__)


# === AST Nodes ===


class Instruction:
    pass


@dataclass
class Increment(Instruction):
    pass


@dataclass
class Decrement(Instruction):
    pass


@dataclass
class MoveLeft(Instruction):
    pass


@dataclass
class MoveRight(Instruction):
    pass


@dataclass
class Output(Instruction):
    pass


@dataclass
class Input(Instruction):
    pass


@dataclass
class Loop(Instruction):
    body: List[Instruction] = field(default_factory=list)


@dataclass
class Program:
    body: List[Instruction] = field(default_factory=list)


COMMANDS: Dict[str, Type[Instruction]] = {
    "+": Increment,
    "-": Decrement,
    "<": MoveLeft,
    ">": MoveRight,
    ".": Output,
    ",": Input,
}

_SYMBOLS: Dict[Type[Instruction], str] = {node_type: char for char, node_type in COMMANDS.items()}


# === Parser ===


class Parser:
    """Recursive-descent parser over single-character tokens.

    Characters other than ``+-<>.,[]`` are comments. By default bracket
    matching is permissive: the end of the stream closes every open loop and
    a stray ``]`` ends the scope that is currently open, which at top level
    ends the program. ``strict=True`` reports both cases as ``ParseError``.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def parse(self, source: str) -> Program:
        return self.try_parse(io.StringIO(source))

    def try_parse(self, stream: TextIO) -> Program:
        self._stream = stream
        self.pos = 0
        try:
            body = self._parse_scope(opened_at=None)
        except (OSError, UnicodeDecodeError) as exc:
            raise EmptyParseError(f"Failed to parse AST: {exc}") from exc
        program = Program(body=body)
        logger.debug("parsed %d top-level instructions from %d characters", len(body), self.pos)
        return program

    def _read(self) -> Optional[str]:
        char = self._stream.read(1)
        if not char:
            return None
        self.pos += 1
        return char

    def _parse_scope(self, opened_at: Optional[int]) -> List[Instruction]:
        body: List[Instruction] = []
        while True:
            char = self._read()
            if char is None:
                if opened_at is not None and self.strict:
                    raise ParseError("Unmatched '['", opened_at)
                return body
            if char == "[":
                body.append(Loop(body=self._parse_scope(opened_at=self.pos - 1)))
            elif char == "]":
                if opened_at is None and self.strict:
                    raise ParseError("Unmatched ']'", self.pos - 1)
                return body
            else:
                node_type = COMMANDS.get(char)
                if node_type is not None:
                    body.append(node_type())


def load_program(path: Union[str, Path], strict: bool = False) -> Program:
    source_path = Path(path)
    try:
        # Any byte value is a comment unless it is one of the eight commands
        stream = source_path.open("r", encoding="latin-1")
    except OSError as exc:
        raise SourceUnavailableError(f"Failed to open input file: {path}") from exc
    with stream:
        return Parser(strict=strict).try_parse(stream)


# === Inspection helpers ===


def format_program(node: Union[Program, Instruction]) -> str:
    """Render a tree back into its canonical source form."""
    parts: List[str] = []
    _format_into(node, parts)
    return "".join(parts)


def _format_into(node: Union[Program, Instruction], parts: List[str]) -> None:
    if isinstance(node, Program):
        for child in node.body:
            _format_into(child, parts)
    elif isinstance(node, Loop):
        parts.append("[")
        for child in node.body:
            _format_into(child, parts)
        parts.append("]")
    else:
        parts.append(_SYMBOLS[type(node)])


def count_instructions(node: Union[Program, Instruction]) -> int:
    if isinstance(node, (Program, Loop)):
        return sum(count_instructions(child) for child in node.body) + (1 if isinstance(node, Loop) else 0)
    return 1


def max_depth(node: Union[Program, Instruction]) -> int:
    if isinstance(node, (Program, Loop)):
        inner = max((max_depth(child) for child in node.body), default=0)
        return inner + (1 if isinstance(node, Loop) else 0)
    return 0


__all__ = [
    "COMMANDS",
    "Decrement",
    "Increment",
    "Input",
    "Instruction",
    "Loop",
    "MoveLeft",
    "MoveRight",
    "Output",
    "Parser",
    "Program",
    "count_instructions",
    "format_program",
    "load_program",
    "max_depth",
]
