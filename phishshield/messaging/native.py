"""Native messaging transport between the browser extension and this host.

Frames are a 4-byte little-endian length followed by UTF-8 JSON, as the
browser's native messaging API defines them. Inbound frames are either
lifecycle events (``{"event": ...}``) or RPC requests (``{"action": ...}``,
optionally with an ``"id"`` to correlate the reply). Outbound frames are
replies (``{"id": ..., "response": ...}``) or shell commands
(``{"command": ...}``).
"""

from __future__ import annotations

import asyncio
import json
import logging
import struct
import sys
from typing import Any, BinaryIO, Optional, Sequence

from ..shell import TabId
from .router import MessageRouter, Sender

logger = logging.getLogger(__name__)

HEADER = struct.Struct("<I")
# Browser-imposed ceilings: 1 MiB host -> browser, 64 MiB browser -> host
MAX_OUTBOUND_BYTES = 1024 * 1024
MAX_INBOUND_BYTES = 64 * 1024 * 1024


class FramingError(Exception):
    """A frame violated the native messaging format."""

    pass


def encode_message(message: Any) -> bytes:
    body = json.dumps(message, ensure_ascii=False).encode("utf-8")
    if len(body) > MAX_OUTBOUND_BYTES:
        raise FramingError(f"Outbound message of {len(body)} bytes exceeds 1 MiB")
    return HEADER.pack(len(body)) + body


class NativeMessagingChannel:
    """Reads and writes framed JSON messages."""

    def __init__(self, reader: asyncio.StreamReader, output: BinaryIO):
        self.reader = reader
        self.output = output
        self._write_lock = asyncio.Lock()

    @classmethod
    async def from_stdio(cls) -> "NativeMessagingChannel":
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_INBOUND_BYTES)
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin.buffer)
        return cls(reader, sys.stdout.buffer)

    async def read_message(self) -> Optional[Any]:
        """Next decoded message, or None once the browser closes the pipe."""
        try:
            header = await self.reader.readexactly(HEADER.size)
        except asyncio.IncompleteReadError as e:
            if e.partial:
                raise FramingError("Truncated frame header") from e
            return None

        (length,) = HEADER.unpack(header)
        if length > MAX_INBOUND_BYTES:
            raise FramingError(f"Inbound frame of {length} bytes exceeds limit")
        try:
            body = await self.reader.readexactly(length)
        except asyncio.IncompleteReadError as e:
            raise FramingError("Truncated frame body") from e

        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FramingError(f"Frame is not valid JSON: {e}") from e

    async def write_message(self, message: Any) -> None:
        frame = encode_message(message)
        async with self._write_lock:
            self.output.write(frame)
            self.output.flush()


class NativeShell:
    """BrowserShell that forwards commands to the extension over the channel."""

    def __init__(self, channel: NativeMessagingChannel):
        self.channel = channel

    async def set_badge(self, tab_id: Optional[TabId], text: str, color: Optional[str]) -> None:
        await self.channel.write_message(
            {"command": "setBadge", "tabId": tab_id, "text": text, "color": color}
        )

    async def show_notification(self, alert: dict[str, Any]) -> None:
        await self.channel.write_message({"command": "showNotification", "alert": alert})

    async def inject_content_script(self, tab_id: TabId, files: Sequence[str]) -> None:
        await self.channel.write_message(
            {"command": "injectContentScript", "tabId": tab_id, "files": list(files)}
        )

    async def send_to_tab(self, tab_id: TabId, message: dict[str, Any]) -> None:
        await self.channel.write_message({"command": "sendToTab", "tabId": tab_id, "message": message})


class NativeMessagingHost:
    """Serves one browser connection until it closes the pipe."""

    def __init__(self, channel: NativeMessagingChannel, router: MessageRouter, lifecycle):
        self.channel = channel
        self.router = router
        self.lifecycle = lifecycle
        self._tasks: set[asyncio.Task] = set()
        self.frames_received = 0

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def serve(self) -> None:
        """Read frames until EOF; each frame is handled in its own task."""
        logger.info("Native messaging host ready")
        while True:
            try:
                message = await self.channel.read_message()
            except FramingError as e:
                logger.error("Closing native messaging channel: %s", e)
                break
            if message is None:
                logger.info("Browser closed the native messaging channel")
                break

            self.frames_received += 1
            task = asyncio.create_task(self._process(message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _process(self, message: Any) -> None:
        if not isinstance(message, dict):
            logger.warning("Ignoring non-object frame")
            return

        try:
            if "event" in message:
                await self.lifecycle.handle_event(message)
                return

            if "action" in message:
                sender = Sender.from_dict(message.get("sender"))
                response = await self.router.handle(message, sender)
                if message.get("id") is not None:
                    await self.channel.write_message({"id": message["id"], "response": response})
                return

            logger.warning("Ignoring frame without event or action: %s", sorted(message))
        except Exception as e:
            logger.error("Failed to process frame: %s", e)
