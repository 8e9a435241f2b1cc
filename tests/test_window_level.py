import numpy as np
import pytest

from dicomview.core.window_level import WindowLevel, apply_window_level, window_level_array


SAMPLES = np.array([0, 1, 100, 1000, 16000, 32767, 32768, 50000, 65534, 65535], dtype=np.uint16)
WINDOWS = [(32767, 65535), (1000, 1), (1000, 400), (0, 100), (65535, 2000), (-500, 300), (40000, 7)]


def test_output_always_in_byte_range() -> None:
    rng = np.random.default_rng(0)
    pixels = rng.integers(0, 65536, size=5000, dtype=np.uint16)
    for center, width in WINDOWS:
        out = window_level_array(pixels, center, width)
        assert out.dtype == np.uint8
        assert out.min() >= 0 and out.max() <= 255
        for s in SAMPLES:
            assert 0 <= apply_window_level(int(s), center, width) <= 255


def test_saturates_outside_window() -> None:
    center, width = 30000, 1000
    # lower = 29500, upper = 30500
    assert apply_window_level(29500, center, width) == 0
    assert apply_window_level(0, center, width) == 0
    assert apply_window_level(30500, center, width) == 255
    assert apply_window_level(65535, center, width) == 255


def test_linear_interpolation_truncates() -> None:
    # lower = 0, so output = s / 1000 * 255
    assert apply_window_level(500, 500, 1000) == 127
    assert apply_window_level(999, 500, 1000) == 254
    assert apply_window_level(1, 500, 1000) == 0


def test_monotonic_in_sample() -> None:
    pixels = np.arange(0, 65536, 7, dtype=np.uint16)
    for center, width in WINDOWS:
        out = window_level_array(pixels, center, width).astype(np.int32)
        assert np.all(np.diff(out) >= 0)


def test_invert_is_complement() -> None:
    for center, width in WINDOWS:
        for s in SAMPLES:
            plain = apply_window_level(int(s), center, width, invert=False)
            assert apply_window_level(int(s), center, width, invert=True) == 255 - plain

        plain = window_level_array(SAMPLES, center, width)
        inverted = window_level_array(SAMPLES, center, width, invert=True)
        np.testing.assert_array_equal(inverted.astype(np.int32), 255 - plain.astype(np.int32))


@pytest.mark.parametrize("width", [0, -5, -100000])
def test_width_below_one_is_treated_as_one(width: int) -> None:
    for s in SAMPLES:
        assert apply_window_level(int(s), 1000, width) == apply_window_level(int(s), 1000, 1)
    np.testing.assert_array_equal(window_level_array(SAMPLES, 1000, width), window_level_array(SAMPLES, 1000, 1))


def test_vectorized_matches_scalar() -> None:
    rng = np.random.default_rng(1)
    pixels = rng.integers(0, 65536, size=2000, dtype=np.uint16)
    for center, width in WINDOWS:
        expected = [apply_window_level(int(s), center, width) for s in pixels]
        np.testing.assert_array_equal(window_level_array(pixels, center, width), np.array(expected, dtype=np.uint8))


def test_full_range_window_scenario() -> None:
    pixels = np.array([0, 32767, 65535, 16000], dtype=np.uint16)
    out = window_level_array(pixels, 32767, 65535)
    expected = [0, 128, 255, 62]
    for got, want in zip(out.tolist(), expected):
        assert abs(got - want) <= 1


def test_window_level_tuple_unpacks() -> None:
    center, width = WindowLevel(10, 20)
    assert (center, width) == (10, 20)
