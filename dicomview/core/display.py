from dataclasses import dataclass
from enum import Enum

import numpy as np

from dicomview.core.image import CanonicalImage
from dicomview.core.window_level import window_level_array


class PixelFormat(Enum):
    """Layout tag handed to the rendering surface with each buffer."""
    GRAYSCALE8 = "Grayscale8"
    RGB888 = "RGB888"

    @property
    def channels(self) -> int:
        return 3 if self is PixelFormat.RGB888 else 1


@dataclass(frozen=True)
class DisplayBuffer:
    """A flat 8-bit buffer ready for presentation.

    Attributes:
        data (np.ndarray): uint8 values, ``width*height`` for GRAYSCALE8 or
            ``width*height*3`` (interleaved) for RGB888.
        width (int): Columns.
        height (int): Rows.
        pixel_format (PixelFormat): Layout of ``data``.
    """
    data: np.ndarray
    width: int
    height: int
    pixel_format: PixelFormat

    def __len__(self) -> int:
        return self.data.size

    def as_array(self) -> np.ndarray:
        """Returns the buffer reshaped to (H, W) or (H, W, 3)."""
        if self.pixel_format is PixelFormat.RGB888:
            return self.data.reshape(self.height, self.width, 3)
        return self.data.reshape(self.height, self.width)


def build_display_buffer(image: CanonicalImage, center: int, width: int) -> DisplayBuffer:
    """Renders the image with the given window.

    RGB images and images carrying a decoder-windowed buffer are returned
    verbatim; the window only applies to canonical grayscale samples.

    Args:
        image (CanonicalImage): Image to render.
        center (int): Window center in canonical space.
        width (int): Window width in canonical space.

    Returns:
        DisplayBuffer: RGB888 for RGB images, GRAYSCALE8 otherwise.
    """
    if image.is_rgb:
        return DisplayBuffer(image.rgb_pixels, image.width, image.height, PixelFormat.RGB888)

    if image.is_preprocessed:
        return DisplayBuffer(image.processed_pixels, image.width, image.height, PixelFormat.GRAYSCALE8)

    data = window_level_array(image.pixels, center, width, invert=False)
    return DisplayBuffer(data, image.width, image.height, PixelFormat.GRAYSCALE8)


def build_rgb_display_buffer(
    image: CanonicalImage,
    center: int | None = None,
    width: int | None = None,
) -> DisplayBuffer:
    """Renders the image as RGB888, broadcasting gray values into all channels.

    Args:
        image (CanonicalImage): Image to render.
        center (int | None, optional): Window center. Defaults to the image's current center.
        width (int | None, optional): Window width. Defaults to the image's current width.

    Returns:
        DisplayBuffer: RGB888 buffer of length ``width*height*3``.
    """
    if image.is_rgb:
        return DisplayBuffer(image.rgb_pixels, image.width, image.height, PixelFormat.RGB888)

    center = image.window_center if center is None else center
    width = image.window_width if width is None else width

    gray = build_display_buffer(image, center, width).data
    rgb = np.repeat(gray, 3)
    return DisplayBuffer(rgb, image.width, image.height, PixelFormat.RGB888)
