"""Source descriptors and the base class for IR source providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SourceInfo:
    name: str
    description: str
    needs_decryption: bool = False


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LocalFile:
    """IR read from a file on disk."""
    path: str


@dataclass(frozen=True)
class EncryptedBlob:
    """IR shipped as ciphertext together with its key material."""
    ciphertext: bytes = field(repr=False)
    key: bytes = field(repr=False)

    @classmethod
    def embedded(cls) -> EncryptedBlob:
        """Build a descriptor from the payload bundled with the package."""
        from irjit import payload

        return cls(ciphertext=bytes(payload.CIPHERTEXT), key=bytes(payload.KEY))


@dataclass(frozen=True)
class RemoteResource:
    """IR fetched over plain HTTP from ``host`` at ``path``."""
    host: str
    path: str


SourceDescriptor = LocalFile | EncryptedBlob | RemoteResource


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------

class SourceProvider(ABC):
    """Abstract base class for IR acquisition strategies."""

    descriptor_type: type

    @abstractmethod
    def acquire(self, descriptor) -> bytes:
        """Return the raw IR bytes described by *descriptor*."""
        ...

    @classmethod
    @abstractmethod
    def info(cls) -> SourceInfo:
        """Return metadata about this provider."""
        ...
