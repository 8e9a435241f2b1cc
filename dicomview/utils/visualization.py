import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from dicomview.core.display import build_display_buffer
from dicomview.core.image import CanonicalImage


def plot_window_histogram(image: CanonicalImage, center: int | None = None, width: int | None = None,
                          bins: int = 256) -> Figure:
    """Plots the rendered image beside the canonical histogram with the window marked.

    Layout:
        [ Rendered image | Histogram + window bounds ]

    Args:
        image (CanonicalImage): A grayscale image.
        center (int | None, optional): Window center. Defaults to the image's current center.
        width (int | None, optional): Window width. Defaults to the image's current width.
        bins (int, optional): Histogram bins for the plot. Defaults to 256.

    Returns:
        Figure: The matplotlib figure; the caller saves or shows it.
    """
    if not image.is_grayscale:
        raise ValueError("Histogram plots need a grayscale image.")

    center = image.window_center if center is None else center
    width = image.window_width if width is None else width
    lower = center - width / 2.0
    upper = center + width / 2.0

    fig, ax = plt.subplots(1, 2, figsize=(12, 5))

    buffer = build_display_buffer(image, center, width)
    ax[0].imshow(buffer.as_array(), cmap="gray", vmin=0, vmax=255)
    ax[0].set_title(f"WC={center}  WW={width}")
    ax[0].axis("off")

    counts, edges = np.histogram(image.pixels, bins=bins, range=(0, 65535))
    ax[1].stairs(counts, edges, fill=True, color="tab:gray")
    ax[1].axvspan(max(lower, 0), min(upper, 65535), color="tab:orange", alpha=0.25, label="window")
    ax[1].axvline(center, color="tab:orange", linestyle="--", linewidth=1)
    ax[1].set_yscale("log")
    ax[1].set_xlim(0, 65535)
    ax[1].set_xlabel("Canonical value")
    ax[1].set_ylabel("Pixels")
    ax[1].legend(loc="upper right")

    fig.tight_layout()
    return fig
