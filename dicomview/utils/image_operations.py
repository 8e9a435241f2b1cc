from pathlib import Path

from PIL import Image

from dicomview.core.display import DisplayBuffer, PixelFormat


def to_pil_image(buffer: DisplayBuffer) -> Image.Image:
    """Converts a display buffer into a PIL Image object.

    Does NOT save to disk (separation of concerns).

    Args:
        buffer (DisplayBuffer): GRAYSCALE8 or RGB888 buffer.

    Returns:
        Image.Image: A PIL Image in mode 'L' or 'RGB'.
    """
    # uint8 (H, W) arrays map to mode 'L' and (H, W, 3) to 'RGB'.
    image = Image.fromarray(buffer.as_array())
    expected = "RGB" if buffer.pixel_format is PixelFormat.RGB888 else "L"
    assert image.mode == expected, f"Expected mode {expected}, got {image.mode}"
    return image


def save_display_buffer(buffer: DisplayBuffer, path: str | Path) -> Path:
    """Writes a display buffer to an image file; the format follows the suffix.

    Args:
        buffer (DisplayBuffer): Buffer to save.
        path (str | Path): Destination, e.g. 'slice.png'.

    Returns:
        Path: The written path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_pil_image(buffer).save(path)
    return path
