from typing import NamedTuple

import numpy as np


class WindowLevel(NamedTuple):
    """A window in canonical value space."""
    center: int
    width: int


def apply_window_level(sample: int, center: int, width: int, invert: bool = False) -> int:
    """Maps one canonical sample to an 8-bit display intensity.

    Samples at or below ``center - width/2`` map to 0, samples at or above
    ``center + width/2`` map to 255, and everything in between is
    interpolated linearly and truncated.

    Args:
        sample (int): Canonical uint16 sample.
        center (int): Window center.
        width (int): Window width. Values below 1 are treated as 1.
        invert (bool, optional): Return ``255 - output``. Defaults to False.

    Returns:
        int: Display intensity in [0, 255].
    """
    if width < 1:
        width = 1

    ww = float(width)
    lower = float(center) - ww / 2.0
    upper = float(center) + ww / 2.0
    pv = float(sample)

    if pv <= lower:
        output = 0.0
    elif pv >= upper:
        output = 255.0
    else:
        output = ((pv - lower) / ww) * 255.0

    value = int(min(max(output, 0.0), 255.0))
    return 255 - value if invert else value


def window_level_array(pixels: np.ndarray, center: int, width: int, invert: bool = False) -> np.ndarray:
    """Vectorized ``apply_window_level`` over a whole buffer.

    Args:
        pixels (np.ndarray): Canonical uint16 samples, any shape.
        center (int): Window center.
        width (int): Window width. Values below 1 are treated as 1.
        invert (bool, optional): Return ``255 - output``. Defaults to False.

    Returns:
        np.ndarray: uint8 array with the same shape as ``pixels``.
    """
    if width < 1:
        width = 1

    ww = float(width)
    lower = float(center) - ww / 2.0
    upper = float(center) + ww / 2.0

    pv = np.asarray(pixels, dtype=np.float64)
    output = ((pv - lower) / ww) * 255.0
    output = np.where(pv <= lower, 0.0, output)
    output = np.where(pv >= upper, 255.0, output)

    # Truncate like an integer cast; the clip keeps every value non-negative.
    result = np.clip(output, 0.0, 255.0).astype(np.uint8)
    if invert:
        result = 255 - result
    return result
