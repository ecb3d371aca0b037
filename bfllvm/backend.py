from __future__ import annotations

import logging
from typing import Union

from llvmlite import binding, ir

from .errors import BackendVerificationError, ConfigError

logger = logging.getLogger(__name__)

EMIT_FORMATS = ("llvm", "asm", "obj")

_initialized = False


def initialize_llvm() -> None:
    global _initialized
    if _initialized:
        return
    try:
        binding.initialize()
    except RuntimeError:
        # Newer llvmlite versions initialize the core on import
        pass
    binding.initialize_native_target()
    binding.initialize_native_asmprinter()
    _initialized = True


def create_target_machine(speed_level: int = 2) -> binding.TargetMachine:
    initialize_llvm()
    target = binding.Target.from_default_triple()
    return target.create_target_machine(opt=speed_level)


def verify_module(module: Union[ir.Module, str]) -> binding.ModuleRef:
    """Parse the textual form of ``module`` and run the LLVM verifier on it."""
    initialize_llvm()
    try:
        llvm_module = binding.parse_assembly(str(module))
        llvm_module.verify()
    except RuntimeError as exc:
        raise BackendVerificationError(f"LLVM rejected the generated module: {exc}") from exc
    logger.debug("verified module %s", llvm_module.name)
    return llvm_module


def optimize_module(
    module: Union[ir.Module, str],
    entry_name: str = "main",
    speed_level: int = 2,
) -> binding.ModuleRef:
    """Run the function simplification pipeline over the entry routine.

    At ``speed_level`` 2 the pipeline covers instruction combining,
    reassociation, GVN and CFG simplification.
    """
    llvm_module = verify_module(module)
    if speed_level == 0:
        return llvm_module
    target_machine = create_target_machine(speed_level)
    tuning = binding.create_pipeline_tuning_options(speed_level=speed_level, size_level=0)
    pass_builder = binding.create_pass_builder(target_machine, tuning)
    function_passes = pass_builder.getFunctionPassManager()
    function_passes.run(llvm_module.get_function(entry_name), pass_builder)
    try:
        llvm_module.verify()
    except RuntimeError as exc:
        raise BackendVerificationError(f"Optimized module failed verification: {exc}") from exc
    logger.debug("optimized %s at speed level %d", entry_name, speed_level)
    return llvm_module


def render_module(module: Union[ir.Module, binding.ModuleRef], fmt: str = "llvm") -> Union[str, bytes]:
    if fmt not in EMIT_FORMATS:
        raise ConfigError(f"Unknown emit format '{fmt}', expected one of {', '.join(EMIT_FORMATS)}")
    if isinstance(module, ir.Module):
        module = verify_module(module)
    if fmt == "llvm":
        return str(module)
    target_machine = create_target_machine()
    if fmt == "asm":
        return target_machine.emit_assembly(module)
    return target_machine.emit_object(module)


__all__ = [
    "EMIT_FORMATS",
    "create_target_machine",
    "initialize_llvm",
    "optimize_module",
    "render_module",
    "verify_module",
]
