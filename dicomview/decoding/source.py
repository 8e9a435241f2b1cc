from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from dicomview.core.image import PhotometricInterpretation


class DecodedImageSource(ABC):
    """
    Abstract boundary between a decoding backend and the normalization core.

    A source describes one decoded frame: its geometry, bit layout,
    photometric convention and the samples in the decoder's native value
    space (after any modality rescale the decoder applied). The core never
    parses container formats; it only consumes this structure.
    """

    width: int
    height: int
    bits_allocated: int
    bits_stored: int
    samples_per_pixel: int
    is_signed: bool
    photometric: PhotometricInterpretation

    @abstractmethod
    def samples(self) -> np.ndarray | None:
        """
        Native samples, flattened. Grayscale sources return one value per
        pixel in the decoder's internal representation; RGB sources return
        interleaved 8-bit R,G,B. Returns None when no pixel data is available.
        """
        pass

    @abstractmethod
    def min_max(self) -> tuple[float, float]:
        """The decoder's reported minimum and maximum sample value."""
        pass

    @abstractmethod
    def window(self) -> tuple[float, float] | None:
        """The stored ``(center, width)`` window in native value space, if any."""
        pass

    @abstractmethod
    def render_8bit(self) -> np.ndarray | None:
        """
        The decoder's own 8-bit rendering using a min/max window, flattened.
        Used when the native representation is neither 16- nor 32-bit.
        """
        pass


class ArraySource(DecodedImageSource):
    """An in-memory source backed by a numpy array.

    The array's dtype plays the role of the decoder's internal
    representation: int16/uint16 and int32/uint32 take the scaling path,
    anything else falls back to ``render_8bit``.
    """

    def __init__(
        self,
        samples: np.ndarray | None,
        width: int,
        height: int,
        photometric: PhotometricInterpretation = PhotometricInterpretation.MONOCHROME2,
        bits_allocated: int | None = None,
        bits_stored: int | None = None,
        samples_per_pixel: int | None = None,
        is_signed: bool | None = None,
        min_max: tuple[float, float] | None = None,
        window: tuple[float, float] | None = None,
    ) -> None:
        """Initializes the source.

        Args:
            samples (np.ndarray | None): Native samples; any shape, flattened on read.
            width (int): Columns.
            height (int): Rows.
            photometric (PhotometricInterpretation, optional): Defaults to MONOCHROME2.
            bits_allocated (int | None, optional): Defaults to the dtype's bit width.
            bits_stored (int | None, optional): Defaults to ``bits_allocated``.
            samples_per_pixel (int | None, optional): Defaults to 3 for RGB, else 1.
            is_signed (bool | None, optional): Defaults to whether the dtype is signed.
            min_max (tuple[float, float] | None, optional): Reported value range.
                Defaults to the samples' actual min/max.
            window (tuple[float, float] | None, optional): Native-space window. Defaults to None.
        """
        self._samples = None if samples is None else np.asarray(samples).ravel()
        self.width = int(width)
        self.height = int(height)
        self.photometric = photometric

        itemsize_bits = self._samples.dtype.itemsize * 8 if self._samples is not None else 16
        self.bits_allocated = bits_allocated if bits_allocated is not None else itemsize_bits
        self.bits_stored = bits_stored if bits_stored is not None else self.bits_allocated
        if samples_per_pixel is None:
            samples_per_pixel = 3 if photometric == PhotometricInterpretation.RGB else 1
        self.samples_per_pixel = samples_per_pixel
        if is_signed is None:
            is_signed = self._samples is not None and self._samples.dtype.kind == "i"
        self.is_signed = is_signed

        self._min_max = min_max
        self._window = window

    def samples(self) -> np.ndarray | None:
        return self._samples

    def min_max(self) -> tuple[float, float]:
        if self._min_max is not None:
            return float(self._min_max[0]), float(self._min_max[1])
        if self._samples is None or self._samples.size == 0:
            return 0.0, 0.0
        return float(self._samples.min()), float(self._samples.max())

    def window(self) -> tuple[float, float] | None:
        return self._window

    def render_8bit(self) -> np.ndarray | None:
        """Stretches [min, max] onto [0, 255], truncating like an integer cast."""
        if self._samples is None:
            return None

        min_val, max_val = self.min_max()
        values = self._samples.astype(np.float64)
        if max_val <= min_val:
            return np.zeros(values.shape, dtype=np.uint8)

        scaled = (values - min_val) / (max_val - min_val) * 255.0
        return np.clip(scaled, 0.0, 255.0).astype(np.uint8)
