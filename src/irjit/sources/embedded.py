"""Embedded blob provider and the payload module renderer used to seal IR."""

from __future__ import annotations

import textwrap

from irjit.sources import SourceRegistry
from irjit.sources.base import EncryptedBlob, SourceInfo, SourceProvider


@SourceRegistry.register
class EmbeddedBlobProvider(SourceProvider):
    """Hands back the ciphertext unchanged; decryption is the next stage."""

    descriptor_type = EncryptedBlob

    @classmethod
    def info(cls) -> SourceInfo:
        return SourceInfo(
            name="embedded_blob",
            description="Encrypted IR bundled with the program",
            needs_decryption=True,
        )

    def acquire(self, descriptor: EncryptedBlob) -> bytes:
        return bytes(descriptor.ciphertext)


def _bytes_literal(data: bytes, width: int = 76) -> str:
    if not data:
        return 'b""'
    hex_text = "".join(f"\\x{b:02x}" for b in data)
    # 4 characters per byte; never split an escape
    step = (width // 4) * 4
    chunks = [hex_text[i:i + step] for i in range(0, len(hex_text), step)]
    body = "\n".join(f'b"{chunk}"' for chunk in chunks)
    return "(\n" + textwrap.indent(body, "    ") + "\n)"


def render_payload_module(ciphertext: bytes, key: bytes) -> str:
    """Return the source of a payload module holding *ciphertext* and *key*."""
    return (
        '"""Encrypted IR payload. Generated by irjit-seal."""\n'
        "\n"
        f"CIPHERTEXT = {_bytes_literal(ciphertext)}\n"
        "\n"
        f"KEY = {_bytes_literal(key)}\n"
    )
