from __future__ import annotations

from pathlib import Path

from configs.config import AutoWindowConfig
from dicomview.core.auto_window import auto_window_level
from dicomview.core.display import DisplayBuffer, build_display_buffer, build_rgb_display_buffer
from dicomview.core.image import CanonicalImage
from dicomview.core.window_level import WindowLevel
from dicomview.decoding.metadata import DicomMetadata
from dicomview.decoding.pydicom_reader import ImageReader, PydicomDecoder
from dicomview.utils.logger import FallbackLogger, ViewerLogger


class ViewerSession:
    """
    Holds the currently loaded image and drives window/level interaction.

    The session owns exactly one ``CanonicalImage`` at a time. Loading
    replaces image, metadata and display cache together; a failed load
    raises and leaves the previous state untouched. Every window change
    recomputes the display buffer before returning.
    """

    def __init__(
        self,
        reader: ImageReader | None = None,
        auto_window: AutoWindowConfig | None = None,
        logger: ViewerLogger | None = None,
    ):
        self.logger = logger if logger is not None else FallbackLogger()
        self.auto_window_cfg = auto_window or AutoWindowConfig()
        self.reader = reader if reader is not None else PydicomDecoder(logger=self.logger)

        self.image: CanonicalImage | None = None
        self.metadata: DicomMetadata | None = None
        self.source_path: Path | None = None
        self._display: DisplayBuffer | None = None

    @property
    def is_loaded(self) -> bool:
        return self.image is not None

    @property
    def window(self) -> WindowLevel | None:
        if self.image is None:
            return None
        return WindowLevel(self.image.window_center, self.image.window_width)

    @property
    def display(self) -> DisplayBuffer | None:
        """The display buffer for the current window, if an image is loaded."""
        return self._display

    def load(self, path: str | Path) -> CanonicalImage:
        """Loads a file and makes it the current image.

        Raises:
            DicomError: Propagated from the reader; the session is unchanged.
        """
        image, metadata = self.reader.load_complete(path)
        self.set_image(image, metadata, source_path=Path(path))
        return image

    def set_image(self, image: CanonicalImage, metadata: DicomMetadata | None = None,
                  source_path: Path | None = None) -> None:
        """Replaces the whole model with an already normalized image."""
        display = build_display_buffer(image, image.window_center, image.window_width)

        self.image = image
        self.metadata = metadata
        self.source_path = source_path
        self._display = display
        self.logger.info(self.status_text())

    def set_window(self, center: int, width: int) -> DisplayBuffer | None:
        """Applies a user-chosen window. Widths below 1 become 1."""
        if self.image is None:
            return None
        self.image.set_window(center, width)
        self.logger.trace("window_source", source="user", center=self.image.window_center,
                          width=self.image.window_width)
        return self._refresh()

    def reset_window(self) -> DisplayBuffer | None:
        """Restores the window the image was loaded with."""
        if self.image is None:
            return None
        self.image.reset_window()
        self.logger.trace("window_source", source="reset", center=self.image.window_center,
                          width=self.image.window_width)
        return self._refresh()

    def auto_window(self) -> DisplayBuffer | None:
        """Re-estimates the window from the histogram of the current image.

        RGB images have no canonical samples, so their window stays as it is.
        """
        if self.image is None:
            return None

        estimate = auto_window_level(self.image.pixels, **self.auto_window_cfg.estimator_kwargs())
        if estimate is None:
            self.logger.trace("window_source", source="auto", result="unchanged")
        else:
            self.image.set_window(estimate.center, estimate.width)
            self.logger.trace("window_source", source="auto", center=estimate.center, width=estimate.width)
        return self._refresh()

    def render(self) -> DisplayBuffer | None:
        return self._display

    def render_rgb(self) -> DisplayBuffer | None:
        """The current image as RGB888, gray values broadcast into each channel."""
        if self.image is None:
            return None
        return build_rgb_display_buffer(self.image)

    def _refresh(self) -> DisplayBuffer:
        self._display = build_display_buffer(self.image, self.image.window_center, self.image.window_width)
        return self._display

    def status_text(self) -> str:
        if self.image is None:
            return "No image loaded"
        kind = "RGB" if self.image.is_rgb else "Grayscale"
        return f"Loaded: {self.image.width}x{self.image.height} {kind}"
