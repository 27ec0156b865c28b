"""Decoding of JPEG colour images stored in frame logs."""

from __future__ import annotations

import io

import numpy as np
from PIL import Image, UnidentifiedImageError


def decode_jpeg(data) -> np.ndarray:
    """Decode JPEG bytes to a ``(height, width, 3)`` uint8 array.

    The three channels are written in reverse of the decoder's RGB order.
    Raises ValueError if the data is not a decodable JPEG image.
    """
    try:
        with Image.open(io.BytesIO(bytes(data))) as image:
            if image.format != "JPEG":
                raise ValueError(f"expected JPEG data, got {image.format}")
            image.load()
            rgb = np.asarray(image.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"JPEG decoding error: {exc}") from exc
    return np.ascontiguousarray(rgb[..., ::-1])