"""
Asyncio ESC/POS Writer.

Same operations and byte output as `Writer`, but each write yields at
the transport boundary. The transport follows the `asyncio.StreamWriter`
contract: `write(data)` followed by `await drain()`.
"""

import asyncio
from typing import Protocol

from PIL import Image

from .barcode import Barcode
from .commands import (
    Alignment,
    Command,
    Cut,
    DoubleStrike,
    Emphasize,
    Feed,
    HriPosition,
    Justification,
    PrintBarcode,
    PrintImage,
    Reverse,
    SetHriPosition,
    Speed,
    Underline,
)
from .errors import TransportError
from .models import CharacterSet, Model
from .writer import WriterBase, WriterState


class AsyncTransport(Protocol):
    """Async byte sink (asyncio.StreamWriter, BLEConnection)."""

    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...


class AsyncWriter(WriterBase):
    """
    Asyncio ESC/POS writer.

    Use `await AsyncWriter.open()` rather than the constructor; it
    initializes the printer before returning.
    """

    @classmethod
    async def open(cls, model: Model, transport: AsyncTransport) -> "AsyncWriter":
        """
        Create a writer and initialize the printer.

        Raises:
            TransportError: If the Init command could not be written
        """
        writer = cls(model, transport)
        await writer.init()
        return writer

    async def _write_all(self, data: bytes):
        self._log_tx(data)
        try:
            self.transport.write(data)
            await self.transport.drain()
        except (OSError, asyncio.TimeoutError) as e:
            raise TransportError(e) from e

    async def init(self):
        """Initialize the printer."""
        await self._write_all(self._encode_init())
        self.state = WriterState.OPEN
        self.active_character_set = CharacterSet.RAW

    async def write_command(self, command: Command):
        """Encode and send any command without model checks."""
        await self._write_all(self._encode(command))

    async def write(self, data: bytes):
        """Send raw bytes."""
        self._require_open()
        await self._write_all(bytes(data))

    async def text(self, text: str):
        """Send text encoded for the active character set."""
        await self._write_all(self._encode_text(text))

    async def character_set(self, character_set: CharacterSet):
        """
        Select the character set for following text.

        Raises:
            UnsupportedError: If the model does not support the set
        """
        await self._write_all(self._encode_character_set(character_set))
        self.active_character_set = character_set

    async def set_unicode(self):
        await self.character_set(CharacterSet.UNICODE)

    async def cut(self):
        await self.write_command(Cut())

    async def underline(self, state: bool):
        await self.write_command(Underline(state))

    async def emphasize(self, state: bool):
        await self.write_command(Emphasize(state))

    async def double_strike(self, state: bool):
        await self.write_command(DoubleStrike(state))

    async def reverse(self, state: bool):
        await self.write_command(Reverse(state))

    async def justify(self, alignment: Alignment):
        await self.write_command(Justification(alignment))

    async def feed(self, count: int):
        await self.write_command(Feed(count))

    async def speed(self, speed: int):
        await self.write_command(Speed(speed))

    async def set_hri_position(self, position: HriPosition):
        await self.write_command(SetHriPosition(position))

    async def print_image(self, image: Image.Image):
        """
        Print a grayscale image, checked against the model.

        Raises:
            ImageWidthError: If the image is wider than the model allows
            ImageTooLargeError: If the image exceeds the packed size limit
        """
        await self._write_all(self._encode_checked_image(image))

    async def print_image_unchecked(self, image: Image.Image):
        """Print an image without checking it against the model."""
        await self.write_command(PrintImage(image))

    async def print_barcode(self, barcode: Barcode):
        await self.write_command(PrintBarcode(barcode))

    async def close(self):
        """Close the writer and its transport. No command is sent."""
        if self.state is WriterState.CLOSED:
            return
        self.state = WriterState.CLOSED
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()
        wait_closed = getattr(self.transport, "wait_closed", None)
        if wait_closed is not None:
            await wait_closed()

    async def __aenter__(self) -> "AsyncWriter":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
