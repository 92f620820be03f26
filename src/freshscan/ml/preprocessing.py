"""Image preprocessing pipeline.

Handles decoding (raw bytes or ``data:`` URIs) with EXIF orientation, size
validation, bounded downscaling, white-background compositing, a fixed
brightness/contrast boost, JPEG re-encoding and conversion to model input
tensors. Classifiers see the pixels of the re-encoded JPEG, not the
enhanced buffer it was encoded from.
"""

from __future__ import annotations

import base64
import binascii
import io
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from freshscan.errors import ImageDecodeError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

DEFAULT_MAX_SIZE: int = 512
DEFAULT_JPEG_QUALITY: int = 90
CONTRAST_GAIN: float = 1.1
BRIGHTNESS_OFFSET: float = 10.0

RawImage = bytes | str


@dataclass(frozen=True)
class PreprocessedImage:
    """A decoded, resized and enhanced image ready for classification.

    ``pixels`` is the decoded form of ``encoded``.
    """

    pixels: NDArray[np.uint8]
    encoded: bytes

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


def _unwrap_data_uri(data: RawImage) -> bytes:
    if isinstance(data, str):
        if not data.startswith("data:"):
            raise ImageDecodeError("String input must be a data: URI")
        data = data.encode("ascii", errors="ignore")

    if not data.startswith(b"data:"):
        return data

    header, sep, payload = data.partition(b",")
    if not sep or not header.endswith(b";base64"):
        raise ImageDecodeError("Only base64 data URIs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ImageDecodeError(f"Invalid base64 payload: {exc}") from exc


def decode_image(data: RawImage, max_pixels: int | None = None) -> Image.Image:
    """Decode raw image bytes or a data URI into a Pillow image.

    Raises:
        ImageDecodeError: If the input is not a readable image or exceeds
            ``max_pixels``.
    """
    raw = _unwrap_data_uri(data)
    if not raw:
        raise ImageDecodeError("Empty image data")

    try:
        image = Image.open(io.BytesIO(raw))
        if max_pixels is not None and image.width * image.height > max_pixels:
            raise ImageDecodeError(f"Image has {image.width * image.height} pixels, limit is {max_pixels}")
        image.load()
        image = ImageOps.exif_transpose(image)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Cannot decode image: {exc}") from exc
    return image


def _scaled_size(width: int, height: int, max_size: int) -> tuple[int, int]:
    scale = min(1.0, max_size / max(width, height))
    return max(1, round(width * scale)), max(1, round(height * scale))


def _flatten_on_white(image: Image.Image) -> Image.Image:
    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
    return Image.alpha_composite(background, rgba).convert("RGB")


def enhance(pixels: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Apply ``min(255, c * 1.1 + 10)`` to every channel."""
    boosted = pixels.astype(np.float32) * CONTRAST_GAIN + BRIGHTNESS_OFFSET
    return np.rint(np.minimum(boosted, 255.0)).astype(np.uint8)


def preprocess(
    data: RawImage,
    max_size: int = DEFAULT_MAX_SIZE,
    quality: int = DEFAULT_JPEG_QUALITY,
    max_pixels: int | None = None,
) -> PreprocessedImage:
    """Decode, bound, flatten and enhance an image.

    Args:
        data: Encoded image bytes or a base64 ``data:`` URI.
        max_size: Upper bound for the longest side, aspect ratio preserved.
        quality: JPEG quality of the re-encoded form.
        max_pixels: Reject images with more pixels than this.

    Returns:
        The JPEG encoding of the enhanced image and its decoded pixels.

    Raises:
        ImageDecodeError: If decoding fails.
    """
    image = decode_image(data, max_pixels=max_pixels)

    # Flattened first so palette and alpha modes resize in RGB space.
    image = _flatten_on_white(image)
    size = _scaled_size(image.width, image.height, max_size)
    if size != image.size:
        image = image.resize(size, Image.Resampling.BILINEAR)

    pixels = enhance(np.asarray(image, dtype=np.uint8))

    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format="JPEG", quality=quality)
    encoded = buffer.getvalue()

    with Image.open(io.BytesIO(encoded)) as jpeg:
        decoded = np.asarray(jpeg.convert("RGB"), dtype=np.uint8)
    return PreprocessedImage(pixels=decoded, encoded=encoded)


def to_model_input(
    pixels: NDArray[np.uint8],
    input_size: int,
    mean: Sequence[float],
    std: Sequence[float],
) -> NDArray[np.float32]:
    """Convert an HxWx3 uint8 array into a normalized 1x3xSxS float32 tensor."""
    resized = Image.fromarray(pixels).resize((input_size, input_size), Image.Resampling.BILINEAR)
    array = np.asarray(resized, dtype=np.float32) / 255.0
    array = (array - np.asarray(mean, dtype=np.float32)) / np.asarray(std, dtype=np.float32)
    return np.ascontiguousarray(array.transpose(2, 0, 1)[np.newaxis, ...], dtype=np.float32)
