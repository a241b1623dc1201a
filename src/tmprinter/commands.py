"""
ESC/POS Command Encoding.

Each printer command is a small immutable value; `encode` maps a command
to the exact bytes the printer expects.

Reference: Epson ESC/POS Command Reference (TM-T20II / TM-T30II)
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from PIL import Image

from .barcode import Barcode
from .image import pack_image
from .models import CharacterSet

ESC = 0x1B
FS = 0x1C
GS = 0x1D


class Alignment(IntEnum):
    """Horizontal justification, valued by wire code."""
    LEFT = 0
    RIGHT = 2
    CENTER = 1


class HriPosition(IntEnum):
    """Where barcode human-readable text is printed."""
    NOT_PRINTED = 0
    ABOVE = 1
    BELOW = 2
    BOTH = 3


def _check_u8(name: str, value: int):
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")


@dataclass(frozen=True)
class Init:
    """Reset the printer to its power-on state."""


@dataclass(frozen=True)
class Cut:
    """Cut the paper."""


@dataclass(frozen=True)
class Underline:
    state: bool


@dataclass(frozen=True)
class Emphasize:
    state: bool


@dataclass(frozen=True)
class DoubleStrike:
    state: bool


@dataclass(frozen=True)
class Reverse:
    """White-on-black text."""
    state: bool


@dataclass(frozen=True)
class Justification:
    alignment: Alignment


@dataclass(frozen=True)
class Speed:
    """Print speed. Encoded modulo 9."""
    speed: int

    def __post_init__(self):
        _check_u8("speed", self.speed)


@dataclass(frozen=True)
class Feed:
    """Print the buffer and feed the given number of lines."""
    count: int

    def __post_init__(self):
        _check_u8("feed count", self.count)


@dataclass(frozen=True)
class SelectCharacterSet:
    character_set: CharacterSet


@dataclass(frozen=True)
class SetHriPosition:
    position: HriPosition


@dataclass(frozen=True)
class PrintImage:
    """Print a raster image (any PIL mode; converted to grayscale)."""
    image: Image.Image


@dataclass(frozen=True)
class PrintBarcode:
    barcode: Barcode


@dataclass(frozen=True)
class Raw:
    """Bytes sent verbatim (text, or commands not modelled here)."""
    data: bytes


Command = Union[
    Init, Cut, Underline, Emphasize, DoubleStrike, Reverse, Justification,
    Speed, Feed, SelectCharacterSet, SetHriPosition, PrintImage,
    PrintBarcode, Raw,
]

# FS ( C fn=48: select character encoding system
_CHARACTER_SET_CODES = {
    CharacterSet.RAW: 0x01,      # 1-byte character encoding
    CharacterSet.UNICODE: 0x02,  # UTF-8
}


def encode(command: Command) -> bytes:
    """
    Encode a command as raw bytes for the printer.

    Raises:
        ImageTooLargeError: If a PrintImage exceeds the packed size limit
        TypeError: If `command` is not a known command
    """
    if isinstance(command, Init):
        return bytes([ESC, ord("@")])
    if isinstance(command, Cut):
        return bytes([ESC, ord("i")])
    if isinstance(command, Underline):
        return bytes([ESC, ord("-"), 0x01 if command.state else 0x00])
    if isinstance(command, Emphasize):
        return bytes([ESC, ord("E"), 0xFF if command.state else 0x00])
    if isinstance(command, DoubleStrike):
        return bytes([ESC, ord("G"), 0xFF if command.state else 0x00])
    if isinstance(command, Reverse):
        return bytes([ESC, ord("B"), 0xFF if command.state else 0x00])
    if isinstance(command, Justification):
        return bytes([ESC, ord("a"), int(command.alignment)])
    if isinstance(command, Feed):
        return bytes([ESC, ord("d"), command.count])
    if isinstance(command, Speed):
        # GS ( K fn=50: select print speed
        return bytes([GS, ord("("), ord("K"), 0x02, 0x00, 0x32, command.speed % 9])
    if isinstance(command, SelectCharacterSet):
        code = _CHARACTER_SET_CODES[command.character_set]
        return bytes([FS, ord("("), ord("C"), 0x02, 0x00, 0x30, code])
    if isinstance(command, SetHriPosition):
        return bytes([GS, ord("H"), int(command.position)])
    if isinstance(command, PrintImage):
        # GS v 0 m=0: raster bit image, normal density
        bitmap = pack_image(command.image)
        header = bytes([GS, ord("v"), ord("0"), 0x00])
        header += bitmap.width_bytes.to_bytes(2, "little")
        header += bitmap.height.to_bytes(2, "little")
        return header + bitmap.pixels
    if isinstance(command, PrintBarcode):
        # GS k m n d1...dn (function B)
        data = command.barcode.data
        return bytes([GS, ord("k"), command.barcode.type_code, len(data)]) + data
    if isinstance(command, Raw):
        return bytes(command.data)
    raise TypeError(f"Not a printer command: {command!r}")
