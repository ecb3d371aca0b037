from __future__ import annotations

import ctypes
import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, List, Optional

from llvmlite import binding

from .backend import create_target_machine
from .codegen import compile_program
from .config import CompilerOptions
from .parser import Program

logger = logging.getLogger(__name__)

WRITE_SYMBOL = "bfllvm_jit_write_byte"
READ_SYMBOL = "bfllvm_jit_read_byte"
EOF = -1

_WRITE_BYTE = ctypes.CFUNCTYPE(ctypes.c_int32, ctypes.c_int8)
_READ_BYTE = ctypes.CFUNCTYPE(ctypes.c_int32)
_ENTRY = ctypes.CFUNCTYPE(None)


@dataclass
class _Channel:
    input_iter: Iterator[int]
    output: List[int] = field(default_factory=list)


_active: Optional[_Channel] = None
_run_lock = threading.Lock()


def _current_channel() -> _Channel:
    if _active is None:
        raise RuntimeError("I/O primitive called outside of JITRunner.run")
    return _active


def _write_byte(value: int) -> int:
    channel = _current_channel()
    byte = value & 0xFF
    channel.output.append(byte)
    return byte


def _read_byte() -> int:
    channel = _current_channel()
    try:
        return next(channel.input_iter) & 0xFF
    except StopIteration:
        return EOF


# Process-wide symbols; the callback objects must outlive every engine.
_write_callback = _WRITE_BYTE(_write_byte)
_read_callback = _READ_BYTE(_read_byte)
_symbols_registered = False


def _register_symbols() -> None:
    global _symbols_registered
    if _symbols_registered:
        return
    binding.add_symbol(WRITE_SYMBOL, ctypes.cast(_write_callback, ctypes.c_void_p).value)
    binding.add_symbol(READ_SYMBOL, ctypes.cast(_read_callback, ctypes.c_void_p).value)
    _symbols_registered = True


class JITRunner:
    """Compile a program with MCJIT and execute its entry routine in-process.

    The write/read primitives are routed to Python so output can be captured.
    Reading past the end of ``input_data`` yields EOF (-1), which lands in
    the cell as 255 after truncation.
    """

    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        base = options or CompilerOptions()
        self.options = replace(base, write_primitive=WRITE_SYMBOL, read_primitive=READ_SYMBOL)

    def run(self, program: Program, input_data: Optional[Iterable[int]] = None) -> bytes:
        global _active
        llvm_module = compile_program(program, self.options)
        target_machine = create_target_machine(self.options.speed_level)
        _register_symbols()

        with _run_lock:
            engine = binding.create_mcjit_compiler(llvm_module, target_machine)
            engine.finalize_object()
            engine.run_static_constructors()
            address = engine.get_function_address(self.options.entry_name)
            entry = _ENTRY(address)

            channel = _Channel(input_iter=iter(list(input_data or [])))
            _active = channel
            try:
                logger.debug("running %s at 0x%x", self.options.entry_name, address)
                entry()
            finally:
                _active = None
        return bytes(channel.output)


__all__ = ["EOF", "JITRunner", "READ_SYMBOL", "WRITE_SYMBOL"]
