"""Shrink receipt images until they fit an upstream payload budget."""

import io
import logging
from collections.abc import Iterator

from PIL import Image, UnidentifiedImageError

from receipt_analyzer.errors import ImageDecodeError, ImageTooSmallToShrink

logger = logging.getLogger("receipt_analyzer")

SHRINK_FACTOR = 0.9
MIN_DIMENSION = 100
JPEG_QUALITY = 75

# Formats the model accepts as inline attachments without re-encoding,
# mapped to the media type they are sent as. MPO is a JPEG with an extra
# multi-picture block, as written by many phone cameras.
PASSTHROUGH_MEDIA_TYPES = {
    "JPEG": "image/jpeg",
    "MPO": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


def _open_image(image_bytes: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(image_bytes))
        # Image.open is lazy; force a full decode so truncated data fails here
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Input is not a decodable image: {e}") from e
    return image


def detect_media_type(image_bytes: bytes) -> str:
    """Return the media type the model should be told for encoded image bytes."""
    image = _open_image(image_bytes)
    return PASSTHROUGH_MEDIA_TYPES.get(
        image.format or "", Image.MIME.get(image.format or "", "image/jpeg")
    )


def shrink_steps(width: int, height: int) -> Iterator[tuple[int, int]]:
    """
    Yield successively smaller dimensions, each 0.9x the previous step.

    Each step is truncated to whole pixels and derived from the previous step
    rather than the original, so the shrink compounds (0.9, 0.81, 0.729, ...).
    The sequence ends before either dimension drops to MIN_DIMENSION or below.
    """
    while True:
        width = int(width * SHRINK_FACTOR)
        height = int(height * SHRINK_FACTOR)
        if width <= MIN_DIMENSION or height <= MIN_DIMENSION:
            return
        yield width, height


def _encode_jpeg(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()


def prepare_image(image_bytes: bytes, max_size_bytes: int) -> tuple[bytes, str]:
    """
    Fit an image within ``max_size_bytes`` and report its media type.

    The image is decoded once. An image that already fits is returned
    unchanged when its format can be sent as is, or re-encoded as JPEG at
    its original size otherwise. Anything still too large is repeatedly
    scaled by 0.9, re-rendered with Lanczos resampling and re-encoded as
    JPEG until it fits.

    Args:
        image_bytes: Encoded input image (any format Pillow can decode)
        max_size_bytes: Maximum allowed size of the returned bytes

    Returns:
        Tuple of (encoded image bytes, media type such as ``image/jpeg``)

    Raises:
        ImageDecodeError: If the input is not a decodable image
        ImageTooSmallToShrink: If the image reaches the 100 pixel floor
            before fitting the budget
    """
    image = _open_image(image_bytes)
    fits = len(image_bytes) <= max_size_bytes

    if fits and image.format in PASSTHROUGH_MEDIA_TYPES:
        return image_bytes, PASSTHROUGH_MEDIA_TYPES[image.format]

    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    if fits:
        encoded = _encode_jpeg(image)
        if len(encoded) <= max_size_bytes:
            return encoded, "image/jpeg"

    for width, height in shrink_steps(image.width, image.height):
        resized = image.resize((width, height), Image.Resampling.LANCZOS)
        resized_bytes = _encode_jpeg(resized)

        if len(resized_bytes) <= max_size_bytes:
            return resized_bytes, "image/jpeg"

        logger.debug(
            "Resized image to %dx%d: %d bytes", width, height, len(resized_bytes)
        )

    raise ImageTooSmallToShrink(
        f"Could not shrink image below {max_size_bytes} bytes "
        f"without going under {MIN_DIMENSION} pixels"
    )


def reduce_image_size(image_bytes: bytes, max_size_bytes: int) -> bytes:
    """Shrink an image until it fits within ``max_size_bytes``.

    See prepare_image for the algorithm and the errors raised.
    """
    prepared, _ = prepare_image(image_bytes, max_size_bytes)
    return prepared
