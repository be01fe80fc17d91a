"""Call a JIT'd entry point and report its integer result."""

from __future__ import annotations

import ctypes
import logging
import sys
import time
from dataclasses import dataclass
from typing import TextIO

from irjit.arguments import ArgumentVector
from irjit.engine import ExecutionSession

logger = logging.getLogger(__name__)

# int main(int argc, char **argv)
MAIN_FUNC_TYPE = ctypes.CFUNCTYPE(ctypes.c_int, ctypes.c_int, ctypes.POINTER(ctypes.c_char_p))


@dataclass(frozen=True)
class ExecutionResult:
    value: int
    entry: str = "main"
    elapsed_ms: float = 0.0


def invoke(
    session: ExecutionSession, argv: ArgumentVector, entry: str = "main"
) -> ExecutionResult:
    """Look up *entry* in *session* and call it synchronously with *argv*.

    The native code runs in this process with its full privileges and there
    is no timeout: this returns only when the callee does.
    """
    entry_point = session.lookup(entry)
    fn = MAIN_FUNC_TYPE(entry_point.address)

    logger.debug("Invoking %s at 0x%x with argc=%d", entry, entry_point.address, argv.argc)
    start = time.perf_counter()
    value = fn(argv.argc, argv.argv)
    elapsed = (time.perf_counter() - start) * 1000
    logger.debug("%s returned %d in %.2fms", entry, value, elapsed)

    return ExecutionResult(value=value, entry=entry, elapsed_ms=elapsed)


def report(result: ExecutionResult, stream: TextIO | None = None) -> None:
    stream = stream if stream is not None else sys.stdout
    print(f"Result: {result.value}", file=stream)
    stream.flush()
