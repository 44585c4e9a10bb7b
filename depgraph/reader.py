"""Decoding the analyzer's stdout into :class:`~depgraph.protocol.Item` values."""
from __future__ import annotations

from typing import AsyncIterator, Protocol

from .errors import ProtocolError
from .protocol import Item, decode_item


class Source(Protocol):
    """The subset of :class:`asyncio.StreamReader` used by :func:`read_items`."""

    async def readline(self) -> bytes:
        ...


async def read_items(source: Source) -> AsyncIterator[Item]:
    """Yield one :class:`Item` per output line until *source* reaches EOF.

    A malformed line raises :class:`ProtocolError` at the pull that reached
    it; nothing after it is read.
    """

    while True:
        try:
            raw = await source.readline()
        except ValueError as exc:
            # StreamReader refuses lines longer than its limit.
            raise ProtocolError(b"", f"line exceeds stream limit: {exc}") from exc
        if not raw:
            return
        line = raw.rstrip(b"\r\n")
        if not line:
            raise ProtocolError(raw, "empty line")
        yield decode_item(line)
