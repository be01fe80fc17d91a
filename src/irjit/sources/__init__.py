"""Provider registry and dispatch for IR acquisition strategies."""

from __future__ import annotations

import logging

from irjit.errors import AcquisitionError, AcquisitionReason
from irjit.sources.base import (
    EncryptedBlob,
    LocalFile,
    RemoteResource,
    SourceDescriptor,
    SourceInfo,
    SourceProvider,
)

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Registry of available source providers, keyed by descriptor type."""

    _providers: dict[type, type[SourceProvider]] = {}

    @classmethod
    def register(cls, provider_cls: type[SourceProvider]) -> type:
        cls._providers[provider_cls.descriptor_type] = provider_cls
        return provider_cls

    @classmethod
    def get(cls, descriptor_type: type) -> type[SourceProvider] | None:
        return cls._providers.get(descriptor_type)

    @classmethod
    def all_providers(cls) -> dict[type, type[SourceProvider]]:
        return dict(cls._providers)


def acquire(descriptor: SourceDescriptor) -> bytes:
    """Run the one provider registered for *descriptor* and return its bytes."""
    provider_cls = SourceRegistry.get(type(descriptor))
    if provider_cls is None:
        raise AcquisitionError(
            AcquisitionReason.UNSUPPORTED,
            f"no source provider for {type(descriptor).__name__}",
        )
    info = provider_cls.info()
    data = provider_cls().acquire(descriptor)
    logger.debug("Acquired %d bytes via %s", len(data), info.name)
    return data


# Providers register themselves on import.
from irjit.sources import embedded, local_file, remote  # noqa: E402,F401

__all__ = [
    "EncryptedBlob",
    "LocalFile",
    "RemoteResource",
    "SourceDescriptor",
    "SourceInfo",
    "SourceProvider",
    "SourceRegistry",
    "acquire",
]
