"""Image to ASCII rasterization.

Nearest-neighbour downsampling to a fixed character width, then a luminance
lookup into a 10-step ramp.  Height keeps the source aspect ratio with no
correction for the shape of terminal cells.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from termweb.errors import FileIOError, ImageDecodeError

# Ordered from sparse to dense; index = floor(luminance * 9)
RAMP = " .:-=+*#%@"

DEFAULT_WIDTH = 80

_LUMA = np.array([0.299, 0.587, 0.114])

# Integer and float grayscale modes that Pillow cannot convert to RGB without
# clipping everything above 255.
_WIDE_MODES = {"I", "I;16", "I;16B", "I;16L", "I;16N", "F"}


def _rgb_pixels(image: Image.Image) -> np.ndarray:
    """Return an ``(h, w, 3)`` array of 8-bit channels for any Pillow mode.

    Alpha is premultiplied so fully transparent pixels read as black.
    """
    if image.mode in _WIDE_MODES:
        wide = np.asarray(image, dtype=np.float64)
        if image.mode == "F":
            scale = 255.0
        elif image.mode == "I":
            # 32-bit container: scale by the observed range, never below 16 bits.
            scale = 255.0 / max(float(wide.max(initial=0)), 65535.0)
        else:
            scale = 255.0 / 65535.0
        gray = np.clip(wide * scale, 0, 255)
        return np.repeat(gray[:, :, np.newaxis], 3, axis=2)

    rgba = np.asarray(image.convert("RGBA"), dtype=np.float64)
    alpha = rgba[:, :, 3:4] / 255.0
    return rgba[:, :, :3] * alpha


def rasterize(image: Image.Image, width: int = DEFAULT_WIDTH) -> str:
    """Render *image* as ``width`` columns of ramp characters.

    ``height = width * source_height // source_width``; each row ends in a
    newline.  An image too wide to fill a single row yields ``""``.
    """
    if width <= 0:
        raise ValueError("width must be positive")

    src_w, src_h = image.size
    if src_w == 0 or src_h == 0:
        return ""
    height = width * src_h // src_w
    if height == 0:
        return ""

    pixels = _rgb_pixels(image)
    xs = np.arange(width) * src_w // width
    ys = np.arange(height) * src_h // height
    sampled = pixels[ys][:, xs]

    luminance = sampled @ _LUMA / 255.0
    # The weights sum to 1.0 only up to float error, so white needs the nudge
    # to land on the last ramp step.
    steps = np.floor(luminance * (len(RAMP) - 1) + 1e-9).astype(int)
    indices = np.clip(steps, 0, len(RAMP) - 1)

    return "".join("".join(RAMP[i] for i in row) + "\n" for row in indices)


def decode_image(data: bytes) -> Image.Image:
    """Decode *data* completely so a bad image fails here, not halfway through.

    Raises:
        ImageDecodeError: If Pillow cannot identify or decode the bytes.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (
        UnidentifiedImageError,
        OSError,
        EOFError,
        SyntaxError,
        ValueError,
        Image.DecompressionBombError,
    ) as exc:
        raise ImageDecodeError(f"error decoding image: {exc}") from exc
    return image


def rasterize_file(path: Union[str, Path], width: int = DEFAULT_WIDTH) -> str:
    """Load an image file and convert it to ASCII art.

    Raises:
        FileIOError: If the file cannot be read.
        ImageDecodeError: If the file is not a decodable image.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise FileIOError(f"error opening image: {exc}") from exc
    return rasterize(decode_image(data), width)
