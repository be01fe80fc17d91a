"""Local file provider: reads IR (text or bitcode) from disk."""

from __future__ import annotations

from irjit.errors import AcquisitionError, AcquisitionReason
from irjit.sources import SourceRegistry
from irjit.sources.base import LocalFile, SourceInfo, SourceProvider


@SourceRegistry.register
class LocalFileProvider(SourceProvider):

    descriptor_type = LocalFile

    @classmethod
    def info(cls) -> SourceInfo:
        return SourceInfo(
            name="local_file",
            description="Read IR from a local .ll or .bc file",
        )

    def acquire(self, descriptor: LocalFile) -> bytes:
        try:
            with open(descriptor.path, "rb") as f:
                return f.read()
        except FileNotFoundError as exc:
            raise AcquisitionError(
                AcquisitionReason.NOT_FOUND,
                f"{descriptor.path}: no such file",
            ) from exc
        except OSError as exc:
            raise AcquisitionError(
                AcquisitionReason.IO_ERROR,
                f"{descriptor.path}: {exc.strerror or exc}",
            ) from exc
