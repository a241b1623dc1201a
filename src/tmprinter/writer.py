"""
Capability-Gated Printer Writer.

`WriterBase` holds everything shared by the blocking `Writer` and the
asyncio `AsyncWriter`: state tracking, model checks, encoding and debug
output. The adapters only differ in how bytes reach the transport.

A writer exclusively owns its transport and performs no locking; callers
must not issue concurrent calls against the same writer.
"""

from enum import Enum
from typing import Optional, Protocol

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
    Init,
    Justification,
    PrintBarcode,
    PrintImage,
    Reverse,
    SelectCharacterSet,
    SetHriPosition,
    Speed,
    Underline,
    encode,
)
from .errors import TransportError, UnsupportedError, WriterStateError
from .models import CharacterSet, Model, check_image

# Code page used for text while the RAW character set is active
RAW_TEXT_ENCODING = "cp437"


class WriterState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class Transport(Protocol):
    """Blocking byte sink (serial.Serial, socket wrapper, file, BytesIO)."""

    def write(self, data: bytes) -> Optional[int]: ...


class WriterBase:
    """Shared state and encoding logic for printer writers."""

    def __init__(self, model: Model, transport):
        self.model = model
        self.transport = transport
        self.state = WriterState.UNOPENED
        self.active_character_set = CharacterSet.RAW
        self._debug = False

    def set_debug(self, enabled: bool):
        """Enable/disable debug output."""
        self._debug = enabled

    def _log(self, message: str):
        """Print debug message if enabled."""
        if self._debug:
            print(f"[TM] {message}")

    def _log_tx(self, data: bytes):
        self._log(f"TX: {data.hex() if len(data) < 50 else data[:50].hex() + '...'}")

    def _require_open(self):
        if self.state is not WriterState.OPEN:
            raise WriterStateError(f"Writer is {self.state.value}")

    def _encode(self, command: Command) -> bytes:
        """Encode a command for a writer that must already be open."""
        self._require_open()
        return encode(command)

    def _encode_init(self) -> bytes:
        if self.state is WriterState.CLOSED:
            raise WriterStateError("Writer is closed")
        return encode(Init())

    def _encode_character_set(self, character_set: CharacterSet) -> bytes:
        self._require_open()
        if not self.model.supports_character_set(character_set):
            raise UnsupportedError(
                f"{self.model.name} does not support the "
                f"{character_set.value} character set"
            )
        return encode(SelectCharacterSet(character_set))

    def _encode_checked_image(self, image: Image.Image) -> bytes:
        self._require_open()
        check_image(self.model, image)
        return encode(PrintImage(image))

    def _encode_text(self, text: str) -> bytes:
        self._require_open()
        if self.active_character_set is CharacterSet.UNICODE:
            return text.encode("utf-8")
        return text.encode(RAW_TEXT_ENCODING, errors="replace")


class Writer(WriterBase):
    """
    Blocking ESC/POS writer.

    Use `Writer.open()` rather than the constructor; it initializes the
    printer before returning.
    """

    @classmethod
    def open(cls, model: Model, transport: Transport) -> "Writer":
        """
        Create a writer and initialize the printer.

        Raises:
            TransportError: If the Init command could not be written
        """
        writer = cls(model, transport)
        writer.init()
        return writer

    def _write_all(self, data: bytes):
        self._log_tx(data)
        try:
            remaining = data
            while remaining:
                written = self.transport.write(remaining)
                if written is None:
                    break
                if written <= 0:
                    raise OSError(f"Transport accepted no bytes ({len(remaining)} pending)")
                remaining = remaining[written:]
            flush = getattr(self.transport, "flush", None)
            if flush is not None:
                flush()
        except OSError as e:
            raise TransportError(e) from e

    def init(self):
        """Initialize the printer."""
        self._write_all(self._encode_init())
        self.state = WriterState.OPEN
        self.active_character_set = CharacterSet.RAW

    def write_command(self, command: Command):
        """Encode and send any command without model checks."""
        self._write_all(self._encode(command))

    def write(self, data: bytes):
        """Send raw bytes."""
        self._require_open()
        self._write_all(bytes(data))

    def text(self, text: str):
        """Send text encoded for the active character set."""
        self._write_all(self._encode_text(text))

    def character_set(self, character_set: CharacterSet):
        """
        Select the character set for following text.

        Raises:
            UnsupportedError: If the model does not support the set
        """
        self._write_all(self._encode_character_set(character_set))
        self.active_character_set = character_set

    def set_unicode(self):
        """Switch to UTF-8 text, if the model supports it."""
        self.character_set(CharacterSet.UNICODE)

    def cut(self):
        self.write_command(Cut())

    def underline(self, state: bool):
        self.write_command(Underline(state))

    def emphasize(self, state: bool):
        self.write_command(Emphasize(state))

    def double_strike(self, state: bool):
        self.write_command(DoubleStrike(state))

    def reverse(self, state: bool):
        self.write_command(Reverse(state))

    def justify(self, alignment: Alignment):
        self.write_command(Justification(alignment))

    def feed(self, count: int):
        """Feed the specified number of lines."""
        self.write_command(Feed(count))

    def speed(self, speed: int):
        """Set print speed (reduced modulo 9 by the encoder)."""
        self.write_command(Speed(speed))

    def set_hri_position(self, position: HriPosition):
        """Set where barcode human-readable text is printed."""
        self.write_command(SetHriPosition(position))

    def print_image(self, image: Image.Image):
        """
        Print a grayscale image.

        Raises:
            ImageWidthError: If the image is wider than the model allows
            ImageTooLargeError: If the image exceeds the packed size limit
        """
        self._write_all(self._encode_checked_image(image))

    def print_image_unchecked(self, image: Image.Image):
        """
        Print an image without checking it against the model.

        Oversized images may print garbage; packing limits still apply.
        """
        self.write_command(PrintImage(image))

    def print_barcode(self, barcode: Barcode):
        """Print a barcode using the current HRI position."""
        self.write_command(PrintBarcode(barcode))

    def close(self):
        """Close the writer and its transport. No command is sent."""
        if self.state is WriterState.CLOSED:
            return
        self.state = WriterState.CLOSED
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "Writer":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

