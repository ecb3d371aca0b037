from .bf_interpreter import BrainfuckInterpreter
from .codegen import CodeGenState, LLVMCodeGenerator, compile_program
from .config import TAPE_SIZE, CompilerOptions
from .errors import (
    BackendVerificationError,
    BfllvmError,
    CodegenError,
    ConfigError,
    EmptyParseError,
    ParseError,
    SourceUnavailableError,
    StepLimitExceeded,
    TapeBoundsError,
)
from .jit import JITRunner
from .parser import (
    Decrement,
    Increment,
    Input,
    Instruction,
    Loop,
    MoveLeft,
    MoveRight,
    Output,
    Parser,
    Program,
    format_program,
    load_program,
)

__all__ = [
    "BackendVerificationError",
    "BfllvmError",
    "BrainfuckInterpreter",
    "CodeGenState",
    "CodegenError",
    "CompilerOptions",
    "ConfigError",
    "Decrement",
    "EmptyParseError",
    "Increment",
    "Input",
    "Instruction",
    "JITRunner",
    "LLVMCodeGenerator",
    "Loop",
    "MoveLeft",
    "MoveRight",
    "Output",
    "ParseError",
    "Parser",
    "Program",
    "SourceUnavailableError",
    "StepLimitExceeded",
    "TAPE_SIZE",
    "TapeBoundsError",
    "compile_program",
    "format_program",
    "load_program",
]
