# pixfetch/core/media/decode.py
from __future__ import annotations

import io

from PIL import Image, UnidentifiedImageError

from pixfetch.core.fetch.errors import DecodeError


def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw bytes into a fully loaded PIL image.

    Format sniffing is left to Pillow. Empty, truncated or unknown payloads
    raise DecodeError.
    """
    if not data:
        raise DecodeError("Decode error: empty payload")
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            # detach from the BytesIO so the image outlives the context manager
            return im.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Decode error: {type(e).__name__}: {e}") from e
