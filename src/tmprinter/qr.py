"""
QR Code rasterisation for printing as an image.

Requires optional dependencies:
    pip install tmprinter[qr]
"""

from typing import Literal, Optional

from PIL import Image

# QR code error correction levels
QRErrorCorrection = Literal["L", "M", "Q", "H"]

# QR code size presets (box_size, border)
QR_SIZES = {
    "small": (4, 4),
    "medium": (6, 4),
    "large": (8, 4),
}


def _check_qrcode_dependency() -> None:
    """Check that qrcode is installed."""
    try:
        import qrcode  # noqa: F401
    except ImportError:
        raise ImportError(
            "qrcode is required for QR code generation. Install with: pip install tmprinter[qr]"
        ) from None


def generate_qr(
    data: str,
    size: Literal["small", "medium", "large"] = "medium",
    error_correction: QRErrorCorrection = "M",
    max_width: Optional[int] = None,
) -> Image.Image:
    """
    Generate a QR code image.

    Args:
        data: The data to encode (URL, text, etc.)
        size: Size preset (small, medium, large)
        error_correction: Error correction level (L=7%, M=15%, Q=25%, H=30%)
        max_width: Shrink the module size until the code fits this width

    Returns:
        PIL Image in "L" mode (black on white)

    Raises:
        ImportError: If qrcode is not installed
        ValueError: If size or error correction is invalid, or the code
            cannot fit `max_width`
    """
    _check_qrcode_dependency()

    import qrcode
    from qrcode.constants import (
        ERROR_CORRECT_H,
        ERROR_CORRECT_L,
        ERROR_CORRECT_M,
        ERROR_CORRECT_Q,
    )

    if size not in QR_SIZES:
        raise ValueError(f"Invalid size: {size}. Supported sizes: {list(QR_SIZES.keys())}")

    ec_map = {
        "L": ERROR_CORRECT_L,
        "M": ERROR_CORRECT_M,
        "Q": ERROR_CORRECT_Q,
        "H": ERROR_CORRECT_H,
    }
    if error_correction not in ec_map:
        raise ValueError(f"Invalid error correction: {error_correction}")

    box_size, border = QR_SIZES[size]

    qr = qrcode.QRCode(
        version=None,  # Auto-detect version based on data
        error_correction=ec_map[error_correction],
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    if max_width is not None:
        modules = qr.modules_count + 2 * border
        qr.box_size = min(box_size, max_width // modules)
        if qr.box_size < 1:
            raise ValueError(f"QR code ({modules} modules) cannot fit {max_width}px")

    img = qr.make_image(fill_color="black", back_color="white")

    # qrcode returns a PilImage wrapper
    if hasattr(img, "get_image"):
        img = img.get_image()

    return img.convert("L")
