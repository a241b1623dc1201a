"""
Printer Model Capability Table.

Static facts about the supported Epson-compatible thermal printers.
Lookups are pure; models are never mutated once selected.
"""

from dataclasses import dataclass
from enum import Enum

from PIL import Image

from .errors import ImageWidthError


class CharacterSet(Enum):
    """Encoding of text bytes sent to the printer."""
    RAW = "raw"          # Single-byte code page (PC437 on most devices)
    UNICODE = "unicode"  # UTF-8


class Model(Enum):
    """Known printer models."""
    GENERIC = "generic"  # Safe defaults for unknown compatible printers
    T20II = "t20ii"      # Epson TM-T20II
    T30II = "t30ii"      # Epson TM-T30II

    @classmethod
    def from_name(cls, name: str) -> "Model":
        """Look up a model by name, case-insensitively (e.g. "T20II")."""
        key = name.strip().lower().replace("-", "")
        for model in cls:
            if model.value == key or model.name.lower() == key:
                return model
        names = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown printer model: {name!r}. Known models: {names}")

    @property
    def max_image_width(self) -> int:
        return max_image_width(self)

    @property
    def columns(self) -> int:
        return columns(self)

    def supports_character_set(self, character_set: CharacterSet) -> bool:
        return supports_character_set(self, character_set)


@dataclass(frozen=True)
class ModelCapabilities:
    """Capabilities of a single printer model."""
    max_image_width: int  # Pixels
    columns: int          # Characters per line in the default font
    character_sets: frozenset


# TM-T20II and TM-T30II: 12 pixels per column, 48 columns = 576 pixels
CAPABILITIES = {
    Model.GENERIC: ModelCapabilities(
        max_image_width=512,
        columns=48,
        character_sets=frozenset({CharacterSet.RAW}),
    ),
    Model.T20II: ModelCapabilities(
        max_image_width=576,
        columns=48,
        character_sets=frozenset({CharacterSet.RAW}),
    ),
    Model.T30II: ModelCapabilities(
        max_image_width=576,
        columns=48,
        character_sets=frozenset({CharacterSet.RAW, CharacterSet.UNICODE}),
    ),
}


def max_image_width(model: Model) -> int:
    """Maximum image width in pixels that is safe to send to the model."""
    return CAPABILITIES[model].max_image_width


def supports_character_set(model: Model, character_set: CharacterSet) -> bool:
    """Check whether the model understands the given character set."""
    if character_set is CharacterSet.RAW:
        return True
    return character_set in CAPABILITIES[model].character_sets


def columns(model: Model) -> int:
    """Number of printable columns in normal text mode."""
    return CAPABILITIES[model].columns


def check_image(model: Model, image: Image.Image) -> None:
    """
    Ensure an image is printable on the model.

    Raises:
        ImageWidthError: If the image is wider than the model allows
    """
    limit = max_image_width(model)
    if image.width > limit:
        raise ImageWidthError(image.width, limit)
