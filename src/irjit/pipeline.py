"""End-to-end driver: acquire -> decrypt -> parse -> JIT -> invoke."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from irjit.arguments import marshal_arguments
from irjit.config import RunConfig
from irjit.engine import create_session
from irjit.invoker import ExecutionResult, invoke
from irjit.loader import DEFAULT_BUFFER_NAME, parse
from irjit.sources import (
    LocalFile,
    RemoteResource,
    SourceDescriptor,
    SourceRegistry,
    acquire,
)
from irjit.symbols import SymbolSource
from irjit.utils.crypto import decrypt

logger = logging.getLogger(__name__)


def buffer_name(descriptor: SourceDescriptor) -> str:
    """Name used in parse diagnostics for IR from *descriptor*."""
    if isinstance(descriptor, LocalFile):
        return descriptor.path
    if isinstance(descriptor, RemoteResource):
        return f"http://{descriptor.host}{descriptor.path}"
    return DEFAULT_BUFFER_NAME


def load_bytes(descriptor: SourceDescriptor) -> bytes:
    """Acquire the IR bytes for *descriptor*, decrypting when the source needs it."""
    data = acquire(descriptor)
    provider = SourceRegistry.get(type(descriptor))
    if provider.info().needs_decryption:
        data = decrypt(data, descriptor.key)
        logger.debug("Decrypted %d bytes of IR", len(data))
    return data


def run(
    descriptor: SourceDescriptor,
    arguments: Sequence[str] = (),
    config: RunConfig | None = None,
    extra_sources: Iterable[SymbolSource] = (),
) -> ExecutionResult:
    """Run the IR described by *descriptor* and return its entry point's result.

    Raises an IRJitError subclass naming the first stage that failed; nothing
    is invoked unless every earlier stage succeeded.
    """
    config = config or RunConfig()

    # Bad arguments fail before anything is acquired or compiled.
    with marshal_arguments(arguments, config.program_name) as argv:
        data = load_bytes(descriptor)
        loaded = parse(data, name=buffer_name(descriptor))
        del data

        try:
            session = create_session(
                loaded,
                library_path=config.library_path,
                use_host_symbols=config.use_host_symbols,
                opt_level=config.opt_level,
                extra_sources=extra_sources,
            )
        finally:
            # No-op once the session owns the module.
            loaded.dispose()

        with session:
            return invoke(session, argv, entry=config.entry)
