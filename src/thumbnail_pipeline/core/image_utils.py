"""Image and temp-file utilities for thumbnail generation."""

import hashlib
import io
from pathlib import Path
from typing import Tuple, Union
from urllib.parse import quote

from PIL import Image

THUMBNAIL_SIZE: Tuple[int, int] = (300, 240)
THUMBNAIL_FORMAT = "JPEG"
THUMBNAIL_CONTENT_TYPE = "image/jpeg"
THUMBNAIL_QUALITY = 85

TEMP_FILE_PREFIX = "thumb-"
# Leaves room for the prefix within the usual 255-byte filename limit
MAX_TEMP_NAME_LENGTH = 200


def make_thumbnail(
    img: "Image.Image", size: Tuple[int, int] = THUMBNAIL_SIZE
) -> "Image.Image":
    """
    Resize an image to fit within ``size``, preserving aspect ratio.

    Images already inside the box are left at their size. Modes JPEG cannot
    store (alpha, palette, 16-bit) are converted to RGB first.

    Args:
        img: PIL Image to shrink
        size: (width, height) bounding box

    Returns:
        A new RGB or L PIL Image
    """
    if img.mode not in ("RGB", "L"):
        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            img = background
        else:
            img = img.convert("RGB")
    else:
        img = img.copy()

    img.thumbnail(size)
    return img


def encode_jpeg(img: "Image.Image", quality: int = THUMBNAIL_QUALITY) -> bytes:
    """Encode an image as JPEG bytes."""
    output_stream = io.BytesIO()
    img.save(output_stream, format=THUMBNAIL_FORMAT, quality=quality)
    return output_stream.getvalue()


def load_image(source_path: Union[str, Path]) -> "Image.Image":
    """
    Decode the image at ``source_path`` fully into memory.

    Raises:
        PIL.UnidentifiedImageError: If the file is not a decodable image
        OSError: If the file cannot be read or the image is truncated
    """
    image = Image.open(source_path)
    image.load()
    return image


def temp_file_name(object_key: str) -> str:
    """
    Derive a single path component from an object key.

    The key is percent-encoded so that separators and ``..`` segments cannot
    escape the temp directory. Overlong names keep a readable head followed by
    a digest of the full key.

    Args:
        object_key: Opaque object key

    Returns:
        A file name (never a path)
    """
    encoded = quote(object_key, safe="")
    if len(encoded) > MAX_TEMP_NAME_LENGTH:
        digest = hashlib.sha256(object_key.encode("utf-8")).hexdigest()
        encoded = f"{encoded[:MAX_TEMP_NAME_LENGTH - len(digest) - 1]}-{digest}"
    return f"{TEMP_FILE_PREFIX}{encoded}"


def temp_file_path(temp_dir: Union[str, Path], object_key: str) -> Path:
    """Return the transient download path for ``object_key`` inside ``temp_dir``."""
    return Path(temp_dir) / temp_file_name(object_key)
