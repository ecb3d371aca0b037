from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field, validator

from bfllvm.backend import render_module
from bfllvm.bf_interpreter import BrainfuckInterpreter
from bfllvm.codegen import compile_program
from bfllvm.config import TAPE_SIZE, CompilerOptions
from bfllvm.errors import (
    BackendVerificationError,
    ConfigError,
    ParseError,
    StepLimitExceeded,
    TapeBoundsError,
)
from bfllvm.parser import Parser, count_instructions, format_program

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 1_000_000


class CompileRequest(BaseModel):
    code: str = ""
    optimize: bool = False
    strict: bool = False
    emit: str = "llvm"
    tape_size: int = Field(default=TAPE_SIZE, ge=1)

    @validator("emit")
    def validate_emit(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"llvm", "asm"}:
            raise ValueError("emit must be either 'llvm' or 'asm'")
        return normalized


class CompileResponse(BaseModel):
    ir: str
    ast: str
    instruction_count: int


class RunRequest(BaseModel):
    code: str = ""
    input: str = ""
    strict: bool = False
    max_steps: int = Field(default=DEFAULT_MAX_STEPS, ge=1)
    engine: str = "interpreter"

    @validator("engine")
    def validate_engine(cls, value: str) -> str:
        normalized = value.lower()
        # Native code has no step budget or tape bounds; it stays out of the server process.
        if normalized != "interpreter":
            raise ValueError("engine must be 'interpreter'")
        return normalized


class RunResponse(BaseModel):
    output: str
    output_bytes: list[int]
    steps: int


def create_app() -> FastAPI:
    app = FastAPI(title="bfllvm API", version="0.1.0")

    def _parse(code: str, strict: bool):
        try:
            return Parser(strict=strict).parse(code)
        except ParseError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc

    @app.post("/api/compile", response_model=CompileResponse)
    def compile_code(payload: CompileRequest) -> CompileResponse:
        program = _parse(payload.code, payload.strict)
        try:
            options = CompilerOptions(tape_size=payload.tape_size, optimize=payload.optimize)
            llvm_module = compile_program(program, options)
            emitted = render_module(llvm_module, payload.emit)
        except ConfigError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        except BackendVerificationError as exc:  # pragma: no cover - codegen defect
            logger.error("backend rejected generated code: %s", exc)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
        return CompileResponse(
            ir=emitted,
            ast=format_program(program),
            instruction_count=count_instructions(program),
        )

    @app.post("/api/run", response_model=RunResponse)
    def run_code(payload: RunRequest) -> RunResponse:
        program = _parse(payload.code, payload.strict)
        input_bytes = payload.input.encode("utf-8")
        interpreter = BrainfuckInterpreter()
        try:
            output = interpreter.run(program, input_data=input_bytes, max_steps=payload.max_steps)
        except StepLimitExceeded as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except TapeBoundsError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        return RunResponse(
            output=output.decode("latin-1"),
            output_bytes=list(output),
            steps=interpreter.steps,
        )

    return app


__all__ = ["create_app"]
