"""Shared helpers for feeding and draining byte streams."""

from __future__ import annotations


async def body_of(*chunks: bytes):
    """Async byte stream for feeding backends directly."""
    for chunk in chunks:
        yield chunk


async def read_all(reader) -> bytes:
    buf = b""
    async for chunk in reader:
        buf += chunk
    return buf
