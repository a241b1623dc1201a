"""Epson-compatible ESC/POS thermal printer driver."""

__version__ = "0.1.0"

from .async_writer import AsyncWriter
from .barcode import Barcode, BarcodeType
from .commands import Alignment, HriPosition, encode
from .connection import BLEConnection, PrinterInfo, TCPConnection, open_serial, open_tcp
from .errors import (
    BarcodeError,
    ImageTooLargeError,
    ImageWidthError,
    InvalidBarcodeCharacters,
    InvalidBarcodeLength,
    PrinterError,
    ProtocolError,
    TransportError,
    UnsupportedError,
    WriterStateError,
)
from .image import PackedBitmap, pack_image
from .models import CharacterSet, Model
from .writer import Writer, WriterState

__all__ = [
    "Writer",
    "AsyncWriter",
    "WriterState",
    "Model",
    "CharacterSet",
    "Alignment",
    "HriPosition",
    "Barcode",
    "BarcodeType",
    "encode",
    "pack_image",
    "PackedBitmap",
    "TCPConnection",
    "BLEConnection",
    "PrinterInfo",
    "open_serial",
    "open_tcp",
    "PrinterError",
    "ProtocolError",
    "UnsupportedError",
    "ImageTooLargeError",
    "ImageWidthError",
    "BarcodeError",
    "InvalidBarcodeLength",
    "InvalidBarcodeCharacters",
    "WriterStateError",
    "TransportError",
]
