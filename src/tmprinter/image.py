"""
Image Processing for ESC/POS raster printing.

Converts grayscale images to the packed 1-bit bitmap format used by
the GS v 0 raster command.
"""

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image

from .errors import ImageTooLargeError

# Packed dimensions are sent as little-endian 16-bit values
MAX_PACKED_DIMENSION = 0xFFFF

# Samples at or below this value are printed (black)
BLACK_THRESHOLD = 128

# Loading limit to prevent memory exhaustion from malicious/malformed images
MAX_IMAGE_PIXELS = 10_000_000


@dataclass(frozen=True)
class PackedBitmap:
    """
    Monochrome bitmap, 8 horizontal pixels per byte.

    Attributes:
        width_bytes: Row width in bytes (padded pixel width / 8)
        height: Number of rows
        pixels: Row-major packed data, MSB is the leftmost pixel
    """
    width_bytes: int
    height: int
    pixels: bytes


def to_grayscale(image: Image.Image) -> Image.Image:
    """Convert to "L", flattening any transparency onto white paper."""
    if image.mode == "L":
        return image
    if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
        background = Image.new("RGBA", image.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, image.convert("RGBA"))
    return image.convert("L")


def pack_image(image: Image.Image) -> PackedBitmap:
    """
    Pack a grayscale image into a 1-bit bitmap.

    The width is padded up to a multiple of 8; padding pixels are never
    set. A sample <= 128 becomes a set (printed) bit.

    Raises:
        ImageTooLargeError: If the packed width in bytes or the height
            does not fit in 16 bits
    """
    image = to_grayscale(image)

    width, height = image.size
    width_bytes = (width + 7) // 8

    if width_bytes > MAX_PACKED_DIMENSION or height > MAX_PACKED_DIMENSION:
        raise ImageTooLargeError(
            f"Image ({width}x{height}) exceeds packed limit of "
            f"{MAX_PACKED_DIMENSION} bytes wide / {MAX_PACKED_DIMENSION} rows"
        )

    samples = image.tobytes()
    result = bytearray()

    for y in range(height):
        row = samples[y * width:(y + 1) * width]
        for x in range(0, width_bytes * 8, 8):
            block = 0
            # Slicing past the row end yields fewer samples, so padding stays clear
            for bit, sample in enumerate(row[x:x + 8]):
                if sample <= BLACK_THRESHOLD:
                    block |= 0x80 >> bit
            result.append(block)

    return PackedBitmap(width_bytes=width_bytes, height=height, pixels=bytes(result))


def load_image(source: Union[str, Path, bytes, Image.Image]) -> Image.Image:
    """
    Load an image from various sources as 8-bit grayscale.

    Args:
        source: File path, bytes, or PIL Image

    Returns:
        PIL Image in "L" mode

    Raises:
        ImageTooLargeError: If the image exceeds the pixel safety limit
        ValueError: If source type is unsupported
    """
    if isinstance(source, Image.Image):
        img = source
    elif isinstance(source, (str, Path)):
        img = Image.open(source)
    elif isinstance(source, bytes):
        img = Image.open(BytesIO(source))
    else:
        raise ValueError(f"Unsupported source type: {type(source)}")

    if img.width * img.height > MAX_IMAGE_PIXELS:
        raise ImageTooLargeError(
            f"Image pixel count ({img.width * img.height:,}) exceeds "
            f"maximum ({MAX_IMAGE_PIXELS:,})"
        )

    return to_grayscale(img)


def fit_to_width(image: Image.Image, width: int) -> Image.Image:
    """Downscale an image to at most `width` pixels, keeping aspect ratio."""
    if image.width <= width:
        return image
    ratio = width / image.width
    new_height = max(1, int(image.height * ratio))
    return image.resize((width, new_height), Image.Resampling.LANCZOS)
