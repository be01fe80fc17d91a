"""IR loading: bytes -> verified llvmlite module in a fresh context."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from llvmlite import binding as llvm

from irjit.errors import ParseError
from irjit.utils.crypto import is_bitcode

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_NAME = "<in-mem-ir>"

# "<string>:3:17: error: expected type"
_DIAG_RE = re.compile(r":(\d+):(\d+):\s*error:\s*(.+)")


@dataclass
class LoadedModule:
    """A parsed, verified module and the context that owns it.

    Ownership moves into an ExecutionSession exactly once; after that
    ``consumed`` is set and the module must not be used again.
    """
    module: llvm.ModuleRef
    context: llvm.ContextRef
    name: str
    format: str
    defined_functions: frozenset[str]
    external_functions: frozenset[str]
    external_globals: frozenset[str]
    consumed: bool = field(default=False, repr=False)

    @property
    def external_symbols(self) -> frozenset[str]:
        return self.external_functions | self.external_globals

    def dispose(self) -> None:
        """Release a module that was never handed to a session."""
        if self.consumed:
            return
        self.consumed = True
        self.module.close()
        self.context.close()


def _diagnostic(exc: RuntimeError, buffer_name: str) -> ParseError:
    text = str(exc).strip()
    for line in text.splitlines():
        m = _DIAG_RE.search(line)
        if m:
            return ParseError(m.group(3).strip(), buffer_name,
                              int(m.group(1)), int(m.group(2)))
    # Headers such as "LLVM IR parsing error" carry no location.
    lines = [ln for ln in text.splitlines() if ln.strip()]
    return ParseError(lines[-1] if lines else "unknown parse error", buffer_name)


def _collect_symbols(module: llvm.ModuleRef):
    defined: set[str] = set()
    ext_funcs: set[str] = set()
    for func in module.functions:
        if func.is_declaration:
            if not func.name.startswith("llvm."):
                ext_funcs.add(func.name)
        else:
            defined.add(func.name)
    ext_globals = {gv.name for gv in module.global_variables if gv.is_declaration}
    return frozenset(defined), frozenset(ext_funcs), frozenset(ext_globals)


def parse(data: bytes, name: str = DEFAULT_BUFFER_NAME) -> LoadedModule:
    """Parse textual or bitcode IR into a new context and verify it.

    The result is all-or-nothing: on any failure the context is disposed and
    ParseError is raised.
    """
    if not data:
        raise ParseError("empty IR buffer", name)

    fmt = "bitcode" if is_bitcode(data) else "text"
    if fmt == "text":
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"IR text is not valid UTF-8 ({exc.reason})", name) from exc
        nul = data.find(b"\x00")
        if nul != -1:
            raise ParseError(f"IR text contains a NUL byte at offset {nul}", name)
        if not text.strip():
            raise ParseError("empty IR buffer", name)

    context = llvm.create_context()
    try:
        if fmt == "bitcode":
            module = llvm.parse_bitcode(data, context=context)
        else:
            module = llvm.parse_assembly(text, context=context)
    except RuntimeError as exc:
        context.close()
        raise _diagnostic(exc, name) from exc

    try:
        module.verify()
    except RuntimeError as exc:
        module.close()
        context.close()
        raise ParseError(f"verification failed: {str(exc).strip()}", name) from exc

    defined, ext_funcs, ext_globals = _collect_symbols(module)
    logger.debug(
        "Parsed %s IR %s: %d defined functions, %d external declarations",
        fmt, name, len(defined), len(ext_funcs) + len(ext_globals),
    )
    return LoadedModule(
        module=module,
        context=context,
        name=name,
        format=fmt,
        defined_functions=defined,
        external_functions=ext_funcs,
        external_globals=ext_globals,
    )
