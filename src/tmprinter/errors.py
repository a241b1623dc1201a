"""
Exception hierarchy for tmprinter.

Protocol-level errors are raised before any bytes reach the transport.
Transport-level errors wrap whatever the underlying transport raised.
"""


class PrinterError(Exception):
    """Base exception for all printer errors."""

    pass


class ProtocolError(PrinterError):
    """A request was refused before anything was transmitted."""

    pass


class UnsupportedError(ProtocolError):
    """The active printer model does not support the requested feature."""

    pass


class ImageTooLargeError(ProtocolError, ValueError):
    """Image dimensions exceed what can be encoded or printed."""

    pass


class ImageWidthError(ImageTooLargeError, UnsupportedError):
    """Image is wider than the active model can print."""

    def __init__(self, width: int, max_width: int):
        super().__init__(
            f"Image width ({width}px) exceeds model maximum ({max_width}px)"
        )
        self.width = width
        self.max_width = max_width


class BarcodeError(ProtocolError, ValueError):
    """Barcode data failed validation."""

    pass


class InvalidBarcodeLength(BarcodeError):
    """Wrong number of digits for the barcode symbology."""

    pass


class InvalidBarcodeCharacters(BarcodeError):
    """Barcode data contains characters the symbology cannot encode."""

    pass


class WriterStateError(ProtocolError):
    """Operation attempted on a writer that is not open."""

    pass


class TransportError(PrinterError):
    """The transport failed to accept or complete a write.

    Attributes:
        original: The exception raised by the transport (also ``__cause__``)
    """

    def __init__(self, original: BaseException):
        super().__init__(f"Transport write failed: {original}")
        self.original = original
