from pathlib import Path
from dataclasses import dataclass, field
from typing import Any
from datetime import datetime
import re


def next_run_dir(base: Path, name: str) -> Path:
    """Creates and returns ``base/{name}-{NN}-{date}``, one past the highest NN present.

    Args:
        base (Path): Parent directory, created if missing.
        name (str): Run prefix, e.g. 'render'.

    Returns:
        Path: The new, empty run directory.
    """
    base.mkdir(parents=True, exist_ok=True)
    pattern = re.compile(rf"{re.escape(name)}-(\d+)-")
    used = [int(m.group(1)) for p in base.iterdir() if p.is_dir() and (m := pattern.match(p.name))]

    run_dir = base / f"{name}-{max(used, default=-1) + 1:02d}-{datetime.now():%Y-%m-%d}"
    run_dir.mkdir(exist_ok=True)
    return run_dir


@dataclass
class AutoWindowConfig:
    """Parameters of the histogram-based window estimate.

    Attributes:
        num_bins (int): Histogram resolution. Defaults to 4096.
        clip_per_mille (int): Fraction clipped from each histogram tail, in
            thousandths. Defaults to 10 (1st/99th percentile).
        small_range_threshold (int): Data ranges narrower than this get a fixed
            window around their mid value. Defaults to 10.
        small_range_width (int): Width used for narrow ranges. Defaults to 256.
        min_width (int): Smallest width the estimate may return. Defaults to 100.
    """
    num_bins: int = 4096
    clip_per_mille: int = 10
    small_range_threshold: int = 10
    small_range_width: int = 256
    min_width: int = 100

    def __post_init__(self):
        if self.num_bins < 1:
            raise ValueError(f"num_bins must be >= 1, got {self.num_bins}")
        if not 0 <= self.clip_per_mille < 500:
            raise ValueError(f"clip_per_mille must be in [0, 500), got {self.clip_per_mille}")
        if self.small_range_width < 1 or self.min_width < 1:
            raise ValueError("Window widths must be >= 1.")

    def estimator_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``auto_window_level``."""
        return {
            "num_bins": self.num_bins,
            "clip_per_mille": self.clip_per_mille,
            "small_range_threshold": self.small_range_threshold,
            "small_range_width": self.small_range_width,
            "min_width": self.min_width,
        }


@dataclass
class LogConfig:
    """
    Configuration for the ViewerLogger.
    Matches arguments in dicomview.utils.logger.ViewerLogger.
    """
    name: str = "DICOMVIEW"
    level: str = "INFO"                    # DEBUG shows every pipeline decision
    to_file: bool = True                   # Write 'session.log' into the run directory


@dataclass
class WindowOverride:
    """A window forced from the command line, in canonical space."""
    center: int | None = None
    width: int | None = None

    @property
    def is_set(self) -> bool:
        return self.center is not None and self.width is not None


@dataclass
class RenderConfig:
    """The master configuration for rendering DICOM files to PNG."""
    inputs: list[str] = field(default_factory=list)
    base_dir: str = "./renders"
    name: str = "render"

    auto_window: bool = False              # Re-estimate the window instead of using the stored one
    rgb: bool = False                      # Broadcast grayscale output into RGB
    save_histogram: bool = False           # Save a histogram plot next to each PNG
    window: WindowOverride = field(default_factory=WindowOverride)
    estimator: AutoWindowConfig = field(default_factory=AutoWindowConfig)
    logs: LogConfig = field(default_factory=LogConfig)

    run_dir: Path = field(init=False)

    def __post_init__(self):
        """Automatically resolves the output directory on initialization."""
        self.run_dir = next_run_dir(Path(self.base_dir), self.name)


@dataclass
class InspectConfig:
    """Configuration for printing DICOM metadata."""
    inputs: list[str] = field(default_factory=list)
    logs: LogConfig = field(default_factory=lambda: LogConfig(to_file=False))
