import numpy as np

from configs.config import AutoWindowConfig
from dicomview.core.auto_window import auto_window_level
from dicomview.core.errors import DicomError, ErrorKind
from dicomview.core.image import CanonicalImage, GrayscalePixels, PhotometricInterpretation, RgbPixels
from dicomview.core.window_level import WindowLevel
from dicomview.decoding.source import DecodedImageSource
from dicomview.utils.logger import FallbackLogger, ViewerLogger

CANONICAL_MAX = 65535

# Integer sample widths, in bytes, that are scaled with the decoder's min/max.
_SCALED_ITEMSIZES = (2, 4)

# Fixed window for RGB images, which are never windowed.
RGB_WINDOW = WindowLevel(128, 256)


def canonical_range(min_val: float, max_val: float) -> float:
    """Width of the reported value span; spans narrower than 1 count as 1."""
    data_range = float(max_val) - float(min_val)
    if data_range < 1:
        data_range = 1.0
    return data_range


def canonical_scale(min_val: float, max_val: float) -> float:
    """Factor mapping the span ``[min_val, max_val]`` onto [0, 65535]."""
    return CANONICAL_MAX / canonical_range(min_val, max_val)


def normalize_samples(samples: np.ndarray, min_val: float, max_val: float) -> np.ndarray:
    """Scales native samples linearly so that ``min_val -> 0`` and ``max_val -> 65535``.

    Args:
        samples (np.ndarray): Native 16- or 32-bit samples, signed or unsigned.
        min_val (float): Decoder-reported minimum.
        max_val (float): Decoder-reported maximum.

    Returns:
        np.ndarray: Flat uint16 array, clamped and truncated.
    """
    # Multiply before dividing so that max_val lands exactly on 65535.
    offset = np.asarray(samples, dtype=np.float64).ravel() - float(min_val)
    normalized = offset * CANONICAL_MAX / canonical_range(min_val, max_val)
    return np.clip(normalized, 0.0, float(CANONICAL_MAX)).astype(np.uint16)


def widen_8bit(rendered: np.ndarray) -> np.ndarray:
    """Expands 8-bit samples to 16 bits exactly (0 -> 0, 255 -> 65535)."""
    return np.asarray(rendered, dtype=np.uint8).ravel().astype(np.uint16) * np.uint16(257)


def invert_monochrome1(pixels: np.ndarray) -> np.ndarray:
    """Flips canonical samples so that low values are dark."""
    return (CANONICAL_MAX - np.asarray(pixels, dtype=np.uint16)).astype(np.uint16)


def to_canonical_window(
    center: float,
    width: float,
    min_val: float,
    max_val: float,
    invert: bool = False,
) -> WindowLevel:
    """Converts a native-space window into canonical space.

    Args:
        center (float): Native window center.
        width (float): Native window width.
        min_val (float): Decoder-reported minimum.
        max_val (float): Decoder-reported maximum.
        invert (bool, optional): Mirror the center for MONOCHROME1 data. Defaults to False.

    Returns:
        WindowLevel: Truncated canonical center and width.
    """
    data_range = canonical_range(min_val, max_val)
    canonical_center = int((float(center) - float(min_val)) * CANONICAL_MAX / data_range)
    canonical_width = int(float(width) * CANONICAL_MAX / data_range)
    if invert:
        canonical_center = CANONICAL_MAX - canonical_center
    return WindowLevel(canonical_center, canonical_width)


class PixelNormalizer:
    """
    Converts decoder output into a ``CanonicalImage``.

    Grayscale samples are scaled onto [0, 65535] using the decoder's reported
    range (or widened from the decoder's 8-bit rendering when the native
    representation is neither 16- nor 32-bit), MONOCHROME1 data is inverted
    exactly once, and an initial window is chosen: the stored window converted
    to canonical space when it has a positive width, otherwise a histogram
    estimate.
    """

    def __init__(self, auto_window: AutoWindowConfig | None = None, logger: ViewerLogger | None = None):
        self.auto_window = auto_window or AutoWindowConfig()
        self.logger = logger if logger is not None else FallbackLogger()

    def normalize(self, source: DecodedImageSource) -> CanonicalImage:
        """Builds the canonical image for one decoded frame.

        Args:
            source (DecodedImageSource): Decoder output.

        Returns:
            CanonicalImage: The normalized image with its initial window.

        Raises:
            DicomError: INVALID_IMAGE_DIMENSIONS for zero width or height,
                MISSING_PIXEL_DATA when no samples are available and
                UNSUPPORTED_PHOTOMETRIC_INTERPRETATION for palette or unknown data.
        """
        if source.width == 0 or source.height == 0:
            raise DicomError(ErrorKind.INVALID_IMAGE_DIMENSIONS, "Invalid image dimensions",
                             f"{source.width}x{source.height}")

        photometric = source.photometric
        self.logger.trace("photometric", value=photometric.value)

        if photometric == PhotometricInterpretation.RGB:
            return self._normalize_rgb(source)
        if photometric.is_grayscale:
            return self._normalize_grayscale(source)

        raise DicomError(ErrorKind.UNSUPPORTED_PHOTOMETRIC_INTERPRETATION,
                         "Unsupported photometric interpretation", photometric.value)

    def _normalize_rgb(self, source: DecodedImageSource) -> CanonicalImage:
        samples = source.samples()
        if samples is None or samples.size == 0:
            raise DicomError(ErrorKind.MISSING_PIXEL_DATA, "Failed to get RGB pixel data")

        return CanonicalImage(
            pixel_data=RgbPixels(samples),
            width=source.width,
            height=source.height,
            photometric=PhotometricInterpretation.RGB,
            bits_stored=source.bits_stored,
            bits_allocated=source.bits_allocated,
            samples_per_pixel=3,
            is_signed=source.is_signed,
            window_center=RGB_WINDOW.center,
            window_width=RGB_WINDOW.width,
        )

    def _normalize_grayscale(self, source: DecodedImageSource) -> CanonicalImage:
        samples = source.samples()
        if samples is None or samples.size == 0:
            raise DicomError(ErrorKind.MISSING_PIXEL_DATA, "No pixel data found")

        is_monochrome1 = source.photometric == PhotometricInterpretation.MONOCHROME1
        min_val, max_val = source.min_max()
        self.logger.trace("range_computed", min=min_val, max=max_val,
                          scale=f"{canonical_scale(min_val, max_val):.6f}")

        if samples.dtype.kind in "iu" and samples.dtype.itemsize in _SCALED_ITEMSIZES:
            self.logger.trace("representation", dtype=samples.dtype.name, path="scaled")
            pixels = normalize_samples(samples, min_val, max_val)
        else:
            # 8-bit and floating point data go through the decoder's own rendering.
            self.logger.trace("representation", dtype=samples.dtype.name, path="8bit_fallback")
            rendered = source.render_8bit()
            if rendered is None:
                raise DicomError(ErrorKind.MISSING_PIXEL_DATA, "No pixel data found",
                                 "decoder produced no 8-bit output")
            pixels = widen_8bit(rendered)

        if is_monochrome1:
            self.logger.trace("inversion_applied", photometric="MONOCHROME1")
            pixels = invert_monochrome1(pixels)

        if pixels.size:
            self.logger.trace("final_range", min=int(pixels.min()), max=int(pixels.max()))

        window = self._initial_window(source, pixels, min_val, max_val, is_monochrome1)

        return CanonicalImage(
            pixel_data=GrayscalePixels(pixels),
            width=source.width,
            height=source.height,
            photometric=PhotometricInterpretation.MONOCHROME2,
            bits_stored=source.bits_stored,
            bits_allocated=source.bits_allocated,
            samples_per_pixel=source.samples_per_pixel,
            is_signed=source.is_signed,
            window_center=window.center,
            window_width=max(window.width, 1),
        )

    def _initial_window(
        self,
        source: DecodedImageSource,
        pixels: np.ndarray,
        min_val: float,
        max_val: float,
        is_monochrome1: bool,
    ) -> WindowLevel:
        """Picks the stored window when usable, else a histogram estimate."""
        stored = source.window()
        if stored is not None and stored[1] > 0:
            window = to_canonical_window(stored[0], stored[1], min_val, max_val, invert=is_monochrome1)
            self.logger.trace("window_source", source="stored", native_center=stored[0],
                              native_width=stored[1], center=window.center, width=window.width)
            if window.width > 0:
                return window

        estimate = auto_window_level(pixels, **self.auto_window.estimator_kwargs())
        if estimate is None:
            self.logger.trace("window_source", source="none")
            return WindowLevel(0, 1)

        self.logger.trace("window_source", source="auto", center=estimate.center, width=estimate.width)
        return estimate
