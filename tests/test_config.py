from pathlib import Path

import pytest

from configs.config import AutoWindowConfig, RenderConfig, WindowOverride, next_run_dir


def test_auto_window_defaults() -> None:
    kwargs = AutoWindowConfig().estimator_kwargs()
    assert kwargs == {
        "num_bins": 4096,
        "clip_per_mille": 10,
        "small_range_threshold": 10,
        "small_range_width": 256,
        "min_width": 100,
    }


@pytest.mark.parametrize("kwargs", [{"num_bins": 0}, {"clip_per_mille": 500}, {"clip_per_mille": -1},
                                    {"min_width": 0}, {"small_range_width": 0}])
def test_auto_window_rejects_invalid_values(kwargs) -> None:
    with pytest.raises(ValueError):
        AutoWindowConfig(**kwargs)


def test_window_override_needs_both_values() -> None:
    assert not WindowOverride().is_set
    assert not WindowOverride(center=100).is_set
    assert WindowOverride(center=100, width=50).is_set


def test_render_runs_auto_increment(tmp_path: Path) -> None:
    first = RenderConfig(base_dir=str(tmp_path), name="ct")
    second = RenderConfig(base_dir=str(tmp_path), name="ct")

    assert first.run_dir.is_dir() and second.run_dir.is_dir()
    assert first.run_dir.name.startswith("ct-00-")
    assert second.run_dir.name.startswith("ct-01-")


def test_next_run_dir_skips_unrelated_folders(tmp_path: Path) -> None:
    (tmp_path / "ct-07-2024-01-01").mkdir()
    (tmp_path / "ct-notes").mkdir()
    (tmp_path / "ctx-42-2024-01-01").mkdir()
    (tmp_path / "ct-99-stray.txt").write_text("not a run")

    run_dir = next_run_dir(tmp_path, "ct")
    assert run_dir.is_dir()
    assert run_dir.name.startswith("ct-08-")
