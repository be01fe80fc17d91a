"""JIT execution sessions built on llvmlite's MCJIT.

Session creation runs in a fixed order and stops at the first failing step:

1. native backend initialization (once per process)
2. optional shared library load with process-global visibility
3. optional registration of the host process's symbols
4. resolution of every external declaration in the module
5. MCJIT creation (takes ownership of the module) and eager compilation
"""

from __future__ import annotations

import ctypes
import functools
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from llvmlite import binding as llvm

from irjit.errors import EngineError, EngineErrorKind, SymbolNotFound
from irjit.loader import LoadedModule
from irjit.symbols import SymbolResolver, SymbolSource, host_source, library_source

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Process-wide setup
# ---------------------------------------------------------------------------

@functools.cache
def initialize_native_backend() -> str:
    """Initialize the native target, asm printer and asm parser.

    Idempotent: the first successful call does the work, later calls return
    the cached process triple.
    """
    try:
        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()
        llvm.initialize_native_asmparser()
    except RuntimeError as exc:
        raise EngineError(EngineErrorKind.BACKEND_INIT_FAILED, str(exc)) from exc
    triple = llvm.get_process_triple()
    logger.debug("Native backend initialized for %s", triple)
    return triple


def load_library(path: str) -> ctypes.CDLL:
    """Load *path* into process-wide symbol visibility, or raise EngineError."""
    try:
        handle = ctypes.CDLL(path, mode=ctypes.RTLD_GLOBAL)
    except OSError as exc:
        raise EngineError(EngineErrorKind.LIBRARY_LOAD_FAILED, f"{path}: {exc}") from exc
    try:
        llvm.load_library_permanently(path)
    except RuntimeError as exc:
        raise EngineError(EngineErrorKind.LIBRARY_LOAD_FAILED, f"{path}: {exc}") from exc
    logger.info("Loaded shared lib: %s", path)
    return handle


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResolvedEntryPoint:
    """Native address of a JIT'd function; valid while its session is open."""
    name: str
    address: int
    session: ExecutionSession

    @property
    def valid(self) -> bool:
        return not self.session.closed


class ExecutionSession:
    """Owns the MCJIT engine, the compiled module, its context and symbol table."""

    def __init__(
        self,
        engine: llvm.ExecutionEngine,
        context: llvm.ContextRef,
        module_name: str,
        defined_functions: frozenset[str],
        resolver: SymbolResolver,
    ):
        self.engine = engine
        self.context = context
        self.module_name = module_name
        self.defined_functions = defined_functions
        self.resolver = resolver
        self.closed = False

    def lookup(self, name: str) -> ResolvedEntryPoint:
        """Return the entry point *name* defined by the compiled module.

        Only the module's own definitions are eligible, so a same-named
        symbol in the host process is never returned.
        """
        if self.closed:
            raise RuntimeError("execution session is closed")
        if name not in self.defined_functions:
            raise SymbolNotFound(name)
        address = self.engine.get_function_address(name)
        if not address:
            raise SymbolNotFound(name)
        return ResolvedEntryPoint(name=name, address=address, session=self)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.engine.run_static_destructors()
        finally:
            # The engine disposes the module it owns; the context goes last.
            self.engine.close()
            self.context.close()
        logger.debug("Session for %s closed", self.module_name)

    def __enter__(self) -> ExecutionSession:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _target_machine(opt_level: int) -> llvm.TargetMachine:
    target = llvm.Target.from_default_triple()
    return target.create_target_machine(opt=opt_level, codemodel="jitdefault", jit=True)


def create_session(
    loaded: LoadedModule,
    library_path: str | None = None,
    use_host_symbols: bool = True,
    opt_level: int = 2,
    extra_sources: Iterable[SymbolSource] = (),
) -> ExecutionSession:
    """Compile *loaded* into a new execution session.

    *extra_sources* are registered after the library and the host, so they
    take precedence over both (later registration wins).
    """
    if loaded.consumed:
        raise EngineError(
            EngineErrorKind.MODULE_CONSUMED,
            f"module {loaded.name} already belongs to a session",
        )

    # 1. backend
    process_triple = initialize_native_backend()

    # 2. library
    resolver = SymbolResolver()
    if library_path:
        handle = load_library(library_path)
        resolver.register(library_source(handle, library_path))

    # 3. host symbols
    if use_host_symbols:
        resolver.register(host_source())
    for source in extra_sources:
        resolver.register(source)

    # 4. external references
    unresolved = resolver.resolve(loaded.external_symbols)
    if unresolved:
        raise EngineError(
            EngineErrorKind.UNRESOLVED_SYMBOLS,
            "unresolved external symbols: " + ", ".join(unresolved),
        )
    for name, (address, _source) in resolver.bindings.items():
        llvm.add_symbol(name, address)

    # 5. compile
    module = loaded.module
    if not module.triple:
        module.triple = process_triple
    elif module.triple != process_triple:
        logger.warning("Module triple %s differs from host %s", module.triple, process_triple)

    try:
        target_machine = _target_machine(opt_level)
    except RuntimeError as exc:
        raise EngineError(EngineErrorKind.SESSION_CREATE_FAILED, str(exc)) from exc
    try:
        engine = llvm.create_mcjit_compiler(module, target_machine)
    except RuntimeError as exc:
        # The failed builder has already destroyed the module it was given.
        module.detach()
        loaded.consumed = True
        loaded.context.close()
        raise EngineError(EngineErrorKind.SESSION_CREATE_FAILED, str(exc)) from exc
    loaded.consumed = True

    try:
        engine.finalize_object()
        engine.run_static_constructors()
    except RuntimeError as exc:
        engine.close()
        loaded.context.close()
        raise EngineError(EngineErrorKind.COMPILE_FAILED, str(exc)) from exc

    session = ExecutionSession(
        engine=engine,
        context=loaded.context,
        module_name=loaded.name,
        defined_functions=loaded.defined_functions,
        resolver=resolver,
    )
    logger.info(
        "JIT session ready for %s (%d functions, %d external bindings)",
        loaded.name, len(loaded.defined_functions), len(resolver.bindings),
    )
    return session
