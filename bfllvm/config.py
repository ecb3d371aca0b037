from __future__ import annotations

from dataclasses import dataclass

from .errors import ConfigError

TAPE_SIZE = 0x4000


@dataclass(frozen=True)
class CompilerOptions:
    tape_size: int = TAPE_SIZE
    module_name: str = "brainfuck"
    entry_name: str = "main"
    write_primitive: str = "putchar"
    read_primitive: str = "getchar"
    optimize: bool = False
    speed_level: int = 2

    def __post_init__(self) -> None:
        if self.tape_size <= 0:
            raise ConfigError(f"tape_size must be positive, got {self.tape_size}")
        if not (0 <= self.speed_level <= 3):
            raise ConfigError(f"speed_level must be between 0 and 3, got {self.speed_level}")
        names = (self.entry_name, self.write_primitive, self.read_primitive)
        if not all(names):
            raise ConfigError("entry and I/O primitive names must be non-empty")
        if len(set(names)) != len(names):
            raise ConfigError("entry and I/O primitive names must be distinct")


__all__ = ["CompilerOptions", "TAPE_SIZE"]
