"""Build the ``(argc, argv)`` pair handed to a JIT'd ``main``.

argc/argv are always passed and contain only the caller's extra arguments:
no program-name slot is added unless one is requested explicitly. The
pointer array is NULL-terminated (``argv[argc] == NULL``) and borrows from
byte strings owned by the ArgumentVector, so the vector must stay alive
for the whole call; use it as a context manager around the invocation.
"""

from __future__ import annotations

import ctypes
import os
from collections.abc import Sequence

from irjit.errors import ArgumentError


class ArgumentVector:
    """Owned argument strings plus the ``char**`` array pointing into them."""

    def __init__(self, tokens: Sequence[str]):
        self.tokens: tuple[str, ...] = tuple(tokens)
        self._buffers: list[bytes] = [_encode(t) for t in self.tokens]
        self._array = (ctypes.c_char_p * (len(self._buffers) + 1))(*self._buffers, None)
        self._released = False

    @property
    def argc(self) -> int:
        return len(self._buffers)

    @property
    def argv(self) -> ctypes.Array:
        if self._released:
            raise RuntimeError("argument vector used after release")
        return self._array

    def release(self) -> None:
        """Drop the backing storage. The pointer array is unusable afterwards."""
        self._released = True
        self._array = None
        self._buffers = []

    def __enter__(self) -> ArgumentVector:
        return self

    def __exit__(self, *exc) -> None:
        self.release()

    def __len__(self) -> int:
        return self.argc

    def __repr__(self) -> str:
        return f"ArgumentVector(argc={self.argc}, tokens={list(self.tokens)!r})"


def _encode(token: str) -> bytes:
    try:
        data = os.fsencode(token)
    except UnicodeEncodeError as exc:
        raise ArgumentError(f"argument cannot be encoded: {token!r}") from exc
    if b"\x00" in data:
        raise ArgumentError(f"argument contains an embedded NUL: {token!r}")
    return data


def marshal_arguments(
    tokens: Sequence[str], program_name: str | None = None
) -> ArgumentVector:
    """Return an ArgumentVector for *tokens*, optionally prefixed by *program_name*."""
    if program_name is not None:
        tokens = [program_name, *tokens]
    return ArgumentVector(tokens)
