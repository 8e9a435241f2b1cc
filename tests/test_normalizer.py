import numpy as np
import pytest

from configs.config import AutoWindowConfig
from dicomview.core.auto_window import auto_window_level
from dicomview.core.errors import DicomError, ErrorKind
from dicomview.core.image import PhotometricInterpretation
from dicomview.core.normalizer import (
    PixelNormalizer,
    canonical_scale,
    invert_monochrome1,
    normalize_samples,
    to_canonical_window,
    widen_8bit,
)
from dicomview.decoding.source import ArraySource


def _gradient(dtype, lo: int, hi: int, width: int = 16, height: int = 8) -> np.ndarray:
    return np.linspace(lo, hi, width * height).round().astype(dtype)


def test_range_endpoints_map_to_canonical_extremes() -> None:
    samples = np.array([-1024, -200, 0, 3071], dtype=np.int16)
    out = normalize_samples(samples, -1024, 3071)
    assert out.dtype == np.uint16
    assert out[0] == 0
    assert out[-1] == 65535
    assert np.all(np.diff(out.astype(np.int64)) >= 0)


def test_32bit_samples_use_the_same_scaling() -> None:
    samples = np.array([-100000, 0, 100000], dtype=np.int32)
    out = normalize_samples(samples, -100000, 100000)
    assert out.tolist() == [0, 32767, 65535]


def test_degenerate_range_does_not_divide_by_zero() -> None:
    assert canonical_scale(500, 500) == 65535.0
    assert canonical_scale(500, 500.5) == 65535.0
    out = normalize_samples(np.array([500, 500], dtype=np.uint16), 500, 500)
    assert out.tolist() == [0, 0]


def test_values_outside_reported_range_are_clamped() -> None:
    out = normalize_samples(np.array([0, 50, 300], dtype=np.uint16), 100, 200)
    assert out.tolist() == [0, 0, 65535]


def test_widen_8bit_is_exact() -> None:
    out = widen_8bit(np.array([0, 1, 128, 255], dtype=np.uint8))
    assert out.dtype == np.uint16
    assert out.tolist() == [0, 257, 32896, 65535]


def test_monochrome1_inversion_is_involutive() -> None:
    pixels = normalize_samples(_gradient(np.uint16, 0, 4095), 0, 4095)
    once = invert_monochrome1(pixels)
    assert once[0] == 65535 and once[-1] == 0
    np.testing.assert_array_equal(invert_monochrome1(once), pixels)


def test_window_conversion_into_canonical_space() -> None:
    center, width = to_canonical_window(500, 200, 0, 1000)
    assert abs(center - 32767) <= 1
    assert abs(width - 13107) <= 1

    mirrored, _ = to_canonical_window(500, 200, 0, 1000, invert=True)
    assert mirrored == 65535 - center


def test_monochrome2_uses_stored_window() -> None:
    samples = _gradient(np.uint16, 0, 1000)
    source = ArraySource(samples, 16, 8, window=(500, 200))
    image = PixelNormalizer().normalize(source)

    assert image.photometric == PhotometricInterpretation.MONOCHROME2
    np.testing.assert_array_equal(image.pixels, normalize_samples(samples, 0, 1000))
    assert image.pixels[0] == 0 and image.pixels[-1] == 65535
    assert abs(image.window_center - 32767) <= 1
    assert abs(image.window_width - 13107) <= 1
    assert image.original_window_center == image.window_center
    assert image.original_window_width == image.window_width


def test_monochrome1_is_resolved_at_normalization() -> None:
    samples = _gradient(np.uint16, 0, 1000)
    plain = PixelNormalizer().normalize(ArraySource(samples, 16, 8, window=(300, 200)))
    inverted = PixelNormalizer().normalize(
        ArraySource(samples, 16, 8, photometric=PhotometricInterpretation.MONOCHROME1, window=(300, 200))
    )

    assert inverted.photometric == PhotometricInterpretation.MONOCHROME2
    np.testing.assert_array_equal(inverted.pixels, 65535 - plain.pixels)
    assert inverted.window_center == 65535 - plain.window_center
    assert inverted.window_width == plain.window_width


def test_8bit_fallback_widens_decoder_rendering() -> None:
    samples = np.array([0, 100, 200, 50], dtype=np.uint8)
    source = ArraySource(samples, 2, 2)
    image = PixelNormalizer().normalize(source)

    np.testing.assert_array_equal(image.pixels, source.render_8bit().astype(np.uint16) * 257)
    assert image.pixels.tolist() == [0, 127 * 257, 65535, 63 * 257]


def test_8bit_fallback_keeps_native_window_scaling() -> None:
    # The stored window is still scaled with the decoder's min/max on this path.
    samples = np.array([0, 100, 200, 50], dtype=np.uint8)
    image = PixelNormalizer().normalize(ArraySource(samples, 2, 2, window=(100, 50)))

    expected = to_canonical_window(100, 50, 0, 200)
    assert (image.window_center, image.window_width) == tuple(expected)


def test_float_samples_take_the_fallback_path() -> None:
    samples = np.array([-0.5, 0.25, 1.5, 3.75], dtype=np.float64)
    image = PixelNormalizer().normalize(ArraySource(samples, 2, 2))
    assert image.pixels[0] == 0
    assert image.pixels[-1] == 65535
    assert np.all(image.pixels % 257 == 0)


def test_missing_window_falls_back_to_auto_estimate() -> None:
    rng = np.random.default_rng(0)
    samples = rng.integers(0, 4096, size=64 * 64).astype(np.uint16)
    cfg = AutoWindowConfig()
    image = PixelNormalizer(auto_window=cfg).normalize(ArraySource(samples, 64, 64))

    expected = auto_window_level(image.pixels, **cfg.estimator_kwargs())
    assert (image.window_center, image.window_width) == tuple(expected)


def test_non_positive_stored_width_is_ignored() -> None:
    samples = _gradient(np.uint16, 0, 1000)
    image = PixelNormalizer().normalize(ArraySource(samples, 16, 8, window=(500, 0)))
    expected = auto_window_level(image.pixels)
    assert (image.window_center, image.window_width) == tuple(expected)


def test_rgb_passthrough_and_fixed_window() -> None:
    rgb = np.arange(2 * 3 * 3, dtype=np.uint8)
    image = PixelNormalizer().normalize(ArraySource(rgb, 3, 2, photometric=PhotometricInterpretation.RGB))

    assert image.is_rgb
    assert image.samples_per_pixel == 3
    np.testing.assert_array_equal(image.rgb_pixels, rgb)
    assert image.pixels.size == 0
    assert (image.window_center, image.window_width) == (128, 256)


def test_zero_dimensions_are_rejected() -> None:
    with pytest.raises(DicomError) as exc:
        PixelNormalizer().normalize(ArraySource(np.zeros(0, dtype=np.uint16), 0, 10))
    assert exc.value.kind == ErrorKind.INVALID_IMAGE_DIMENSIONS


def test_missing_samples_are_rejected() -> None:
    with pytest.raises(DicomError) as exc:
        PixelNormalizer().normalize(ArraySource(None, 4, 4))
    assert exc.value.kind == ErrorKind.MISSING_PIXEL_DATA

    with pytest.raises(DicomError) as exc:
        PixelNormalizer().normalize(ArraySource(None, 4, 4, photometric=PhotometricInterpretation.RGB))
    assert exc.value.kind == ErrorKind.MISSING_PIXEL_DATA


@pytest.mark.parametrize("photometric", [PhotometricInterpretation.MONOCHROME2, PhotometricInterpretation.RGB])
def test_empty_samples_count_as_missing(photometric) -> None:
    empty = np.zeros(0, dtype=np.uint8 if photometric == PhotometricInterpretation.RGB else np.uint16)
    with pytest.raises(DicomError) as exc:
        PixelNormalizer().normalize(ArraySource(empty, 4, 4, photometric=photometric))
    assert exc.value.kind == ErrorKind.MISSING_PIXEL_DATA


@pytest.mark.parametrize("photometric", [PhotometricInterpretation.PALETTE_COLOR, PhotometricInterpretation.UNKNOWN])
def test_unsupported_photometric(photometric) -> None:
    source = ArraySource(np.zeros(16, dtype=np.uint16), 4, 4, photometric=photometric)
    with pytest.raises(DicomError) as exc:
        PixelNormalizer().normalize(source)
    assert exc.value.kind == ErrorKind.UNSUPPORTED_PHOTOMETRIC_INTERPRETATION
