import numpy as np

from dicomview.core.window_level import WindowLevel

NUM_BINS = 4096
CLIP_PER_MILLE = 10            # 1% dropped from each end of the histogram
SMALL_RANGE_THRESHOLD = 10
SMALL_RANGE_WIDTH = 256
MIN_WIDTH = 100


def _cut_bin(histogram: np.ndarray, threshold: int) -> int:
    """Index of the first bin whose cumulative count exceeds ``threshold``."""
    cumulative = np.cumsum(histogram)
    return int(np.argmax(cumulative > threshold))


def percentile_bounds(
    pixels: np.ndarray,
    num_bins: int = NUM_BINS,
    clip_per_mille: int = CLIP_PER_MILLE,
) -> tuple[int, int]:
    """Finds the value range left after clipping both tails of the histogram.

    Builds ``num_bins`` uniform bins over ``[min, max]`` and scans from each
    end until the cumulative count exceeds ``total * clip_per_mille // 1000``.
    The selected bins are converted back to value space and clamped into
    ``[min, max]``.

    Args:
        pixels (np.ndarray): Non-empty canonical uint16 samples.
        num_bins (int, optional): Histogram resolution. Defaults to 4096.
        clip_per_mille (int, optional): Fraction clipped from each tail, in
            thousandths. Defaults to 10 (1%).

    Returns:
        tuple[int, int]: ``(lower_bound, upper_bound)``.
    """
    values = np.asarray(pixels).ravel().astype(np.int64)
    min_val = int(values.min())
    max_val = int(values.max())

    bin_size = float(max_val - min_val + 1) / float(num_bins)
    bins = ((values - min_val) / bin_size).astype(np.int64)
    bins = np.minimum(bins, num_bins - 1)
    histogram = np.bincount(bins, minlength=num_bins)

    threshold = values.size * clip_per_mille // 1000
    lower_bin = _cut_bin(histogram, threshold)
    upper_bin = num_bins - 1 - _cut_bin(histogram[::-1], threshold)

    lower_bound = int(min_val + lower_bin * bin_size)
    upper_bound = int(min_val + (upper_bin + 1) * bin_size)

    return max(lower_bound, min_val), min(upper_bound, max_val)


def auto_window_level(
    pixels: np.ndarray,
    num_bins: int = NUM_BINS,
    clip_per_mille: int = CLIP_PER_MILLE,
    small_range_threshold: int = SMALL_RANGE_THRESHOLD,
    small_range_width: int = SMALL_RANGE_WIDTH,
    min_width: int = MIN_WIDTH,
) -> WindowLevel | None:
    """Estimates a display window from the histogram of canonical samples.

    Percentile clipping keeps a handful of saturated or dead pixels from
    stretching the window, while still spanning the bulk of the data.

    Args:
        pixels (np.ndarray): Canonical uint16 samples.
        num_bins (int, optional): Histogram resolution. Defaults to 4096.
        clip_per_mille (int, optional): Tail fraction to drop, in thousandths.
            Defaults to 10 (1st/99th percentile).
        small_range_threshold (int, optional): Ranges narrower than this use a
            fixed window around the mid value. Defaults to 10.
        small_range_width (int, optional): Width used for narrow ranges. Defaults to 256.
        min_width (int, optional): Lower limit for the estimated width. Defaults to 100.

    Returns:
        WindowLevel | None: The estimated window, or None when ``pixels`` is
        empty (the caller keeps its current window).
    """
    values = np.asarray(pixels)
    if values.size == 0:
        return None

    min_val = int(values.min())
    max_val = int(values.max())

    if max_val - min_val < small_range_threshold:
        return WindowLevel((max_val + min_val) // 2, small_range_width)

    lower_bound, upper_bound = percentile_bounds(values, num_bins=num_bins, clip_per_mille=clip_per_mille)

    center = (upper_bound + lower_bound) // 2
    width = max(upper_bound - lower_bound, min_width)
    return WindowLevel(center, width)
