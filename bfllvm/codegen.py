from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from llvmlite import binding, ir

from .backend import initialize_llvm, optimize_module, verify_module
from .config import CompilerOptions
from .errors import CodegenError
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

logger = logging.getLogger(__name__)

CELL = ir.IntType(8)
POSITION = ir.IntType(64)
STATUS = ir.IntType(32)

WRITE_BYTE_TYPE = ir.FunctionType(STATUS, [CELL])
READ_BYTE_TYPE = ir.FunctionType(STATUS, [])


# === Code Generator ===


@dataclass
class CodeGenState:
    module: ir.Module
    function: ir.Function
    builder: ir.IRBuilder
    pointer: ir.AllocaInstr
    tape: ir.AllocaInstr
    write_byte: Optional[ir.Function] = None
    read_byte: Optional[ir.Function] = None


class LLVMCodeGenerator:
    def __init__(self, options: Optional[CompilerOptions] = None) -> None:
        self.options = options or CompilerOptions()

    def generate(self, program: Program) -> ir.Module:
        """Lower ``program`` into a verified module holding the entry routine."""
        initialize_llvm()
        module = ir.Module(name=self.options.module_name)
        module.triple = binding.get_default_triple()
        state = self._emit_intro(module)
        for node in program.body:
            self._emit_instruction(node, state)
        state.builder.ret_void()
        verify_module(module)
        logger.debug(
            "generated %s with %d basic blocks",
            self.options.entry_name,
            len(state.function.blocks),
        )
        return module

    # --- Helpers ---

    def _emit_intro(self, module: ir.Module) -> CodeGenState:
        entry_type = ir.FunctionType(ir.VoidType(), [])
        function = ir.Function(module, entry_type, name=self.options.entry_name)
        builder = ir.IRBuilder(function.append_basic_block("entry"))

        pointer = builder.alloca(POSITION, name="pointer")
        builder.store(ir.Constant(POSITION, 0), pointer)

        tape_type = ir.ArrayType(CELL, self.options.tape_size)
        tape = builder.alloca(tape_type, name="tape")
        builder.store(ir.Constant(tape_type, None), tape)

        return CodeGenState(
            module=module,
            function=function,
            builder=builder,
            pointer=pointer,
            tape=tape,
        )

    def _load_position(self, state: CodeGenState) -> ir.Instruction:
        return state.builder.load(state.pointer, name="position")

    def _cell_ptr(self, state: CodeGenState) -> ir.Instruction:
        # No bounds check: the pointer may leave the tape.
        return state.builder.gep(
            state.tape,
            [ir.Constant(POSITION, 0), self._load_position(state)],
            name="cell_ptr",
        )

    def _load_cell(self, state: CodeGenState) -> ir.Instruction:
        return state.builder.load(self._cell_ptr(state), name="cell")

    def _cell_is_nonzero(self, state: CodeGenState, name: str) -> ir.Instruction:
        return state.builder.icmp_unsigned("!=", self._load_cell(state), ir.Constant(CELL, 0), name=name)

    def _write_byte(self, state: CodeGenState) -> ir.Function:
        if state.write_byte is None:
            state.write_byte = self._declare(state.module, self.options.write_primitive, WRITE_BYTE_TYPE)
        return state.write_byte

    def _read_byte(self, state: CodeGenState) -> ir.Function:
        if state.read_byte is None:
            state.read_byte = self._declare(state.module, self.options.read_primitive, READ_BYTE_TYPE)
        return state.read_byte

    def _declare(self, module: ir.Module, name: str, function_type: ir.FunctionType) -> ir.Function:
        existing = module.globals.get(name)
        if existing is not None:
            return existing
        return ir.Function(module, function_type, name=name)

    # --- Instruction emitters ---

    def _emit_instruction(self, node: Instruction, state: CodeGenState) -> None:
        builder = state.builder
        if isinstance(node, Increment):
            self._emit_cell_delta(state, subtract=False)
        elif isinstance(node, Decrement):
            self._emit_cell_delta(state, subtract=True)
        elif isinstance(node, MoveLeft):
            self._emit_move(state, subtract=True)
        elif isinstance(node, MoveRight):
            self._emit_move(state, subtract=False)
        elif isinstance(node, Output):
            builder.call(self._write_byte(state), [self._load_cell(state)], name="write_status")
        elif isinstance(node, Input):
            status = builder.call(self._read_byte(state), [], name="read_status")
            value = builder.trunc(status, CELL, name="input_byte")
            builder.store(value, self._cell_ptr(state))
        elif isinstance(node, Loop):
            self._emit_loop(node, state)
        else:
            raise CodegenError(f"Unhandled instruction type: {node!r}")

    def _emit_cell_delta(self, state: CodeGenState, *, subtract: bool) -> None:
        builder = state.builder
        cell_ptr = self._cell_ptr(state)
        current = builder.load(cell_ptr, name="cell")
        one = ir.Constant(CELL, 1)
        if subtract:
            updated = builder.sub(current, one, name="new_cell")
        else:
            updated = builder.add(current, one, name="new_cell")
        builder.store(updated, cell_ptr)

    def _emit_move(self, state: CodeGenState, *, subtract: bool) -> None:
        builder = state.builder
        current = self._load_position(state)
        one = ir.Constant(POSITION, 1)
        if subtract:
            updated = builder.sub(current, one, name="next_position")
        else:
            updated = builder.add(current, one, name="next_position")
        builder.store(updated, state.pointer)

    def _emit_loop(self, node: Loop, state: CodeGenState) -> None:
        builder = state.builder
        function = state.function

        # Skip the whole group when the cell is zero on entry
        entry_test = self._cell_is_nonzero(state, "entry_test")
        body_block = function.append_basic_block("loop_body")
        merge_block = function.append_basic_block("loop_merge")
        builder.cbranch(entry_test, body_block, merge_block)

        builder.position_at_end(body_block)
        for child in node.body:
            self._emit_instruction(child, state)

        # Nested loops leave the cursor in their own merge block
        trailing_test = self._cell_is_nonzero(state, "trailing_test")
        builder.cbranch(trailing_test, body_block, merge_block)

        builder.position_at_end(merge_block)


def compile_program(program: Program, options: Optional[CompilerOptions] = None) -> binding.ModuleRef:
    """Generate, verify and optionally optimize ``program``."""
    options = options or CompilerOptions()
    module = LLVMCodeGenerator(options).generate(program)
    if options.optimize:
        return optimize_module(module, entry_name=options.entry_name, speed_level=options.speed_level)
    return verify_module(module)


__all__ = [
    "CodeGenState",
    "LLVMCodeGenerator",
    "compile_program",
]
