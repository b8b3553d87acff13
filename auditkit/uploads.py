"""
auditkit.uploads
================

Logo and attachment uploads are kept inline as ``data:`` URLs.

:class:`SingleSlotReader` models the one‑shot asynchronous file read behind an
upload: issuing a new read supersedes the previous one, and only the most
recently issued read is allowed to update state when it completes.  Reads are
not cancelled, so a superseded read may still finish later; its result is
dropped.

Usage
-----
reader = SingleSlotReader()
reader.issue(lambda: read_file_as_data_url(path),
             lambda res: session.attach_file(control_id, *res))
await reader.wait()
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_MIME = "application/octet-stream"


def guess_mime(filename: str) -> str:
    """MIME type from the file extension, falling back to octet-stream."""
    mime, _ = mimetypes.guess_type(filename)
    return mime or DEFAULT_MIME


def encode_data_url(data: bytes, mime_type: str = DEFAULT_MIME) -> str:
    """Return ``data:<mime>;base64,<payload>``."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(url: str) -> Tuple[str, bytes]:
    """
    Split a base64 ``data:`` URL into ``(mime_type, payload)``.

    Raises :class:`ValueError` for anything that is not a base64 data URL.
    """
    if not url.startswith("data:") or "," not in url:
        raise ValueError("not a data URL")
    header, payload = url[5:].split(",", 1)
    parts = header.split(";")
    if "base64" not in parts[1:]:
        raise ValueError("data URL is not base64 encoded")
    try:
        raw = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 payload: {e}") from e
    return parts[0] or DEFAULT_MIME, raw


def _read_bytes(path: Path) -> bytes:
    return path.read_bytes()


async def read_file_as_data_url(path: str | Path) -> Tuple[str, str]:
    """Read *path* off the event loop and return ``(filename, data_url)``."""
    p = Path(path)
    data = await asyncio.to_thread(_read_bytes, p)
    return p.name, encode_data_url(data, guess_mime(p.name))


class SingleSlotReader:
    """
    Tracks at most one in-flight read.

    Each :meth:`issue` bumps a generation counter; a completion is applied
    only if its generation is still the latest when it finishes.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    def issue(
        self,
        read: Callable[[], Awaitable[Any]],
        apply: Callable[[Any], None],
    ) -> asyncio.Task:
        """Start *read* and apply its result unless superseded meanwhile."""
        self._generation += 1
        gen = self._generation

        async def _run() -> bool:
            result = await read()
            if gen != self._generation:
                logger.debug(f"Dropping superseded upload #{gen} (latest #{self._generation})")
                return False
            apply(result)
            return True

        self._task = asyncio.ensure_future(_run())
        return self._task

    async def wait(self) -> Optional[bool]:
        """Await the most recently issued read; ``None`` if none was issued."""
        if self._task is None:
            return None
        return await self._task
