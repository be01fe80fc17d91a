"""Remote provider: fetches IR over plain HTTP."""

from __future__ import annotations

from irjit.sources import SourceRegistry
from irjit.sources.base import RemoteResource, SourceInfo, SourceProvider
from irjit.utils.http import fetch


@SourceRegistry.register
class RemoteProvider(SourceProvider):

    descriptor_type = RemoteResource

    @classmethod
    def info(cls) -> SourceInfo:
        return SourceInfo(
            name="remote",
            description="Fetch IR with a single unauthenticated HTTP GET",
        )

    def acquire(self, descriptor: RemoteResource) -> bytes:
        return fetch(descriptor.host, descriptor.path)
