"""Symbol sources and the resolution policy for JIT'd external references.

Sources are consulted in the order they were registered. When more than one
source defines a name, the source registered *later* wins. The engine
registers the explicitly loaded library first and the host process second, so
host symbols shadow library symbols of the same name. A later source only
takes over a name when it resolves it to a different address: the host handle
also sees libraries loaded with global visibility, and those symbols stay
credited to the library that provides them.
"""

from __future__ import annotations

import ctypes
import logging
import platform
from collections.abc import Iterable

logger = logging.getLogger(__name__)


class SymbolSource:
    """A named place symbols can be looked up in."""

    def __init__(self, label: str):
        self.label = label

    def lookup(self, name: str) -> int | None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label!r})"


class CDLLSource(SymbolSource):
    """Symbols exported by one or more ctypes library handles."""

    def __init__(self, label: str, handles: Iterable[ctypes.CDLL]):
        super().__init__(label)
        self.handles = list(handles)

    def lookup(self, name: str) -> int | None:
        for handle in self.handles:
            try:
                sym = getattr(handle, name)
            except AttributeError:
                continue
            address = ctypes.cast(sym, ctypes.c_void_p).value
            if address:
                return address
        return None


class DictSource(SymbolSource):
    """Fixed name -> address table."""

    def __init__(self, label: str, table: dict[str, int]):
        super().__init__(label)
        self.table = dict(table)

    def lookup(self, name: str) -> int | None:
        return self.table.get(name)


def library_source(handle: ctypes.CDLL, path: str) -> CDLLSource:
    return CDLLSource(f"library:{path}", [handle])


def host_source() -> CDLLSource:
    """The hosting process's own exported symbols."""
    if platform.system() == "Windows":
        handles = [ctypes.pythonapi, ctypes.cdll.msvcrt, ctypes.windll.kernel32]
    else:
        # dlopen(NULL): the main program and everything it loaded globally.
        handles = [ctypes.CDLL(None)]
    return CDLLSource("host", handles)


class SymbolResolver:
    """Binds external names to addresses from an ordered list of sources."""

    def __init__(self, sources: Iterable[SymbolSource] = ()):
        self.sources: list[SymbolSource] = list(sources)
        self.bindings: dict[str, tuple[int, SymbolSource]] = {}

    def register(self, source: SymbolSource) -> None:
        self.sources.append(source)

    def resolve(self, names: Iterable[str]) -> list[str]:
        """Resolve *names*, recording the winning source. Returns unresolved names."""
        unresolved = []
        for name in sorted(names):
            winner: tuple[int, SymbolSource] | None = None
            for source in self.sources:
                address = source.lookup(name)
                # A repeat of the current address keeps the earlier source.
                if address and (winner is None or address != winner[0]):
                    winner = (address, source)
            if winner is None:
                unresolved.append(name)
                continue
            self.bindings[name] = winner
            logger.debug("Bound %s -> 0x%x (%s)", name, winner[0], winner[1].label)
        return unresolved

    def source_of(self, name: str) -> SymbolSource | None:
        bound = self.bindings.get(name)
        return bound[1] if bound else None

    def address_of(self, name: str) -> int | None:
        bound = self.bindings.get(name)
        return bound[0] if bound else None
