"""Exception hierarchy for the IR execution pipeline.

Every stage raises a subclass of :class:`IRJitError`. The ``stage`` attribute
names the failing stage so the driver can report it without inspecting types.
"""

from __future__ import annotations

from enum import Enum


class IRJitError(Exception):
    """Base class for all pipeline failures."""

    stage = "pipeline"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Acquisition
# ---------------------------------------------------------------------------

class AcquisitionReason(str, Enum):
    NOT_FOUND = "NotFound"
    IO_ERROR = "IOError"
    UNSUPPORTED = "Unsupported"
    FETCH_FAILED = "FetchFailed"


class AcquisitionError(IRJitError):
    """The IR bytes could not be obtained from their source."""

    stage = "acquisition"

    def __init__(self, reason: AcquisitionReason, message: str):
        super().__init__(message)
        self.reason = reason


class FetchError(AcquisitionError):
    """Connection, request or response failure while fetching remote IR."""

    stage = "fetch"

    def __init__(self, message: str):
        super().__init__(AcquisitionReason.FETCH_FAILED, message)


class DecryptionError(IRJitError):
    """Key rejected, malformed ciphertext, or unusable plaintext."""

    stage = "decryption"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class ParseError(IRJitError):
    """Malformed IR. Carries the LLVM diagnostic and its location when known."""

    stage = "parse"

    def __init__(
        self,
        message: str,
        buffer_name: str = "<in-mem-ir>",
        line: int | None = None,
        column: int | None = None,
    ):
        super().__init__(message)
        self.buffer_name = buffer_name
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return f"{self.buffer_name}: {self.message}"
        return f"{self.buffer_name}:{self.line}:{self.column}: {self.message}"


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------

class ArgumentError(IRJitError, ValueError):
    """An argument cannot be passed as a C string."""

    stage = "arguments"


# ---------------------------------------------------------------------------
# Engine / invocation
# ---------------------------------------------------------------------------

class EngineErrorKind(str, Enum):
    BACKEND_INIT_FAILED = "BackendInitFailed"
    LIBRARY_LOAD_FAILED = "LibraryLoadFailed"
    UNRESOLVED_SYMBOLS = "UnresolvedSymbols"
    SESSION_CREATE_FAILED = "SessionCreateFailed"
    COMPILE_FAILED = "CompileFailed"
    MODULE_CONSUMED = "ModuleConsumed"


class EngineError(IRJitError):
    """A step of session creation failed; no code is callable."""

    stage = "engine"

    def __init__(self, kind: EngineErrorKind, detail: str):
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail


class SymbolNotFound(IRJitError):
    """The entry point is not defined by the compiled module."""

    stage = "lookup"

    def __init__(self, name: str):
        super().__init__(f"'{name}' function not found in module")
        self.name = name
