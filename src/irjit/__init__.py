"""Run LLVM IR modules by JIT-compiling them and calling their entry point."""

from irjit.arguments import ArgumentVector, marshal_arguments
from irjit.config import RunConfig
from irjit.engine import ExecutionSession, create_session, initialize_native_backend
from irjit.errors import (
    AcquisitionError,
    ArgumentError,
    DecryptionError,
    EngineError,
    FetchError,
    IRJitError,
    ParseError,
    SymbolNotFound,
)
from irjit.invoker import ExecutionResult, invoke, report
from irjit.loader import LoadedModule, parse
from irjit.pipeline import run
from irjit.sources import EncryptedBlob, LocalFile, RemoteResource, acquire

__all__ = [
    "AcquisitionError", "ArgumentError", "DecryptionError", "EngineError", "FetchError",
    "IRJitError", "ParseError", "SymbolNotFound",
    "ArgumentVector", "marshal_arguments",
    "RunConfig",
    "ExecutionSession", "create_session", "initialize_native_backend",
    "ExecutionResult", "invoke", "report",
    "LoadedModule", "parse",
    "run",
    "EncryptedBlob", "LocalFile", "RemoteResource", "acquire",
]
