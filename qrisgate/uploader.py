"""Interface for publishing rendered QR images."""
from __future__ import annotations

from typing import Protocol


class Uploader(Protocol):
    """Publishes a PNG and returns its public URL.

    Implementations own transport, retries and progress reporting.
    """

    async def upload(self, png_bytes: bytes) -> str: ...
