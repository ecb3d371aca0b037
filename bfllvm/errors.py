from __future__ import annotations

from typing import Optional


class BfllvmError(Exception):
    pass


class ConfigError(BfllvmError):
    pass


class ParseError(BfllvmError):
    def __init__(self, message: str, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)
        self.position = position


class SourceUnavailableError(BfllvmError):
    """Raised when the program source cannot be opened or read."""


class EmptyParseError(BfllvmError):
    """Raised when parsing produced no program at all."""


class CodegenError(BfllvmError):
    pass


class BackendVerificationError(BfllvmError):
    """Raised when LLVM rejects the emitted module during verification."""


class StepLimitExceeded(RuntimeError):
    """Raised when Brainfuck execution exceeds the configured step budget."""


class TapeBoundsError(IndexError):
    pass


__all__ = [
    "BfllvmError",
    "BackendVerificationError",
    "CodegenError",
    "ConfigError",
    "EmptyParseError",
    "ParseError",
    "SourceUnavailableError",
    "StepLimitExceeded",
    "TapeBoundsError",
]
