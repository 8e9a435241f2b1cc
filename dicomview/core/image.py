from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from dicomview.core.errors import DicomError, ErrorKind


class PhotometricInterpretation(Enum):
    """How sample values map to displayed intensity or color."""
    MONOCHROME1 = "MONOCHROME1"   # Min value = white
    MONOCHROME2 = "MONOCHROME2"   # Min value = black
    RGB = "RGB"
    PALETTE_COLOR = "PALETTE COLOR"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> PhotometricInterpretation:
        """Maps a DICOM PhotometricInterpretation string onto the enum.

        Unrecognized or missing values resolve to ``UNKNOWN``.
        """
        if not value:
            return cls.UNKNOWN
        normalized = str(value).strip().upper()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.UNKNOWN

    @property
    def is_grayscale(self) -> bool:
        return self in (PhotometricInterpretation.MONOCHROME1, PhotometricInterpretation.MONOCHROME2)


@dataclass(frozen=True)
class GrayscalePixels:
    """Canonical grayscale samples, one uint16 per pixel, low = dark."""
    values: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "values", np.ascontiguousarray(self.values, dtype=np.uint16).ravel())

    def __len__(self) -> int:
        return self.values.size


@dataclass(frozen=True)
class RgbPixels:
    """Interleaved 8-bit R,G,B samples, three per pixel."""
    values: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "values", np.ascontiguousarray(self.values, dtype=np.uint8).ravel())

    def __len__(self) -> int:
        return self.values.size // 3


PixelData = GrayscalePixels | RgbPixels

_EMPTY_U16 = np.empty(0, dtype=np.uint16)
_EMPTY_U8 = np.empty(0, dtype=np.uint8)


@dataclass
class CanonicalImage:
    """A decoded image in the canonical representation used for display.

    Grayscale images hold uint16 samples scaled onto [0, 65535] with
    MONOCHROME1 already resolved, so low values are always dark. RGB images
    hold the decoder's 8-bit interleaved buffer unchanged.

    Only the current window (``window_center`` / ``window_width``) is mutable;
    the window found at construction is kept in ``original_window_center`` /
    ``original_window_width`` for resets.

    Attributes:
        pixel_data (PixelData): Either ``GrayscalePixels`` or ``RgbPixels``.
        width (int): Columns, > 0.
        height (int): Rows, > 0.
        photometric (PhotometricInterpretation): Convention of ``pixel_data``.
        bits_stored (int): Bits stored per sample in the source.
        bits_allocated (int): Bits allocated per sample in the source.
        samples_per_pixel (int): 1 for grayscale, 3 for RGB.
        is_signed (bool): Whether the source samples were signed.
        window_center (int): Current window center in canonical space.
        window_width (int): Current window width in canonical space, >= 1.
        processed_pixels (np.ndarray | None): Optional 8-bit buffer already
            windowed by the decoder. When present, it is displayed as-is.
    """
    pixel_data: PixelData
    width: int
    height: int
    photometric: PhotometricInterpretation = PhotometricInterpretation.MONOCHROME2
    bits_stored: int = 16
    bits_allocated: int = 16
    samples_per_pixel: int = 1
    is_signed: bool = False
    window_center: int = 0
    window_width: int = 1
    processed_pixels: np.ndarray | None = None

    original_window_center: int = field(init=False)
    original_window_width: int = field(init=False)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise DicomError(
                ErrorKind.INVALID_IMAGE_DIMENSIONS,
                "Invalid image dimensions",
                f"{self.width}x{self.height}",
            )

        if isinstance(self.pixel_data, RgbPixels) != (self.photometric == PhotometricInterpretation.RGB):
            raise DicomError(
                ErrorKind.UNSUPPORTED_PHOTOMETRIC_INTERPRETATION,
                "Pixel data does not match the photometric interpretation",
                self.photometric.value,
            )

        # Sample count must agree with the declared geometry.
        if len(self.pixel_data) != self.pixel_count or (self.is_rgb and self.pixel_data.values.size % 3):
            raise DicomError(
                ErrorKind.INVALID_IMAGE_DIMENSIONS,
                "Pixel buffer does not match image dimensions",
                f"expected {self.pixel_count} pixels for {self.width}x{self.height}, got {len(self.pixel_data)}",
            )

        if self.processed_pixels is not None:
            self.processed_pixels = np.ascontiguousarray(self.processed_pixels, dtype=np.uint8).ravel()
            if self.processed_pixels.size != self.pixel_count:
                raise DicomError(
                    ErrorKind.INVALID_IMAGE_DIMENSIONS,
                    "Processed buffer does not match image dimensions",
                    f"expected {self.pixel_count} values, got {self.processed_pixels.size}",
                )

        self.window_center = int(self.window_center)
        self.window_width = max(int(self.window_width), 1)
        self.original_window_center = self.window_center
        self.original_window_width = self.window_width

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def is_rgb(self) -> bool:
        return isinstance(self.pixel_data, RgbPixels)

    @property
    def is_grayscale(self) -> bool:
        return isinstance(self.pixel_data, GrayscalePixels)

    @property
    def is_preprocessed(self) -> bool:
        return self.processed_pixels is not None

    @property
    def pixels(self) -> np.ndarray:
        """Canonical uint16 samples, or an empty array for RGB images."""
        return self.pixel_data.values if self.is_grayscale else _EMPTY_U16

    @property
    def rgb_pixels(self) -> np.ndarray:
        """Interleaved RGB samples, or an empty array for grayscale images."""
        return self.pixel_data.values if self.is_rgb else _EMPTY_U8

    def set_window(self, center: int, width: int) -> None:
        """Sets the current window. Widths below 1 are raised to 1."""
        self.window_center = int(center)
        self.window_width = max(int(width), 1)

    def reset_window(self) -> None:
        """Restores the window captured when the image was created."""
        self.window_center = self.original_window_center
        self.window_width = self.original_window_width
