"""
Barcode values for printer-native barcode rendering.

Only UPC-A is supported. Data is validated at construction so an
invalid barcode can never reach the encoder.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from .errors import InvalidBarcodeCharacters, InvalidBarcodeLength


class BarcodeType(IntEnum):
    """Barcode symbologies, valued by their GS k (function B) type code."""
    UPCA = 65


def upca_check_digit(digits: bytes) -> int:
    """Compute the UPC-A check digit for 11 ASCII digits."""
    values = [d - 0x30 for d in digits[:11]]
    odd = sum(values[0::2])   # 1st, 3rd, ... 11th
    even = sum(values[1::2])
    return (10 - (odd * 3 + even) % 10) % 10


@dataclass(frozen=True)
class Barcode:
    """
    A validated barcode.

    Attributes:
        symbology: Barcode type
        data: ASCII digits including the check digit
    """
    symbology: BarcodeType
    data: bytes

    def __post_init__(self):
        if len(self.data) != 12:
            raise InvalidBarcodeLength(
                f"UPC-A data must be 12 digits with check digit, got {len(self.data)}"
            )
        if not all(0x30 <= b <= 0x39 for b in self.data):
            raise InvalidBarcodeCharacters(f"UPC-A data must be numeric: {self.data!r}")

    @classmethod
    def upca(cls, digits: Union[str, bytes]) -> "Barcode":
        """
        Create a UPC-A barcode.

        With 11 digits the check digit is computed; with 12 the last digit
        is taken as the check digit as given.

        Raises:
            InvalidBarcodeLength: If not 11 or 12 characters
            InvalidBarcodeCharacters: If any character is not 0-9
        """
        if isinstance(digits, str):
            try:
                data = digits.encode("ascii")
            except UnicodeEncodeError:
                raise InvalidBarcodeCharacters(
                    f"UPC-A data must be numeric: {digits!r}"
                ) from None
        else:
            data = bytes(digits)

        if len(data) not in (11, 12):
            raise InvalidBarcodeLength(
                f"UPC-A requires 11 or 12 digits, got {len(data)}"
            )
        if not all(0x30 <= b <= 0x39 for b in data):
            raise InvalidBarcodeCharacters(f"UPC-A data must be numeric: {data!r}")

        if len(data) == 11:
            data += str(upca_check_digit(data)).encode("ascii")

        return cls(BarcodeType.UPCA, data)

    @property
    def type_code(self) -> int:
        """Wire type code for the GS k command."""
        return int(self.symbology)

    def __str__(self) -> str:
        return self.data.decode("ascii")
