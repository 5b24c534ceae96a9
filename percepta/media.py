"""Input artifact helpers.

An ImageInput is the opaque payload the pipeline passes untouched through
every step. Models that upload it call to_jpeg() to get bytes at their
preferred quality.
"""

import base64
import binascii
import io
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image


@dataclass(frozen=True)
class ImageInput:
    """Raw image bytes plus enough metadata to re-encode them."""

    data: bytes
    mime_type: str = "image/jpeg"
    filename: Optional[str] = None

    @classmethod
    def from_path(cls, path: Path) -> "ImageInput":
        path = Path(path)
        mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        return cls(data=path.read_bytes(), mime_type=mime_type, filename=path.name)

    @classmethod
    def from_base64(
        cls, encoded: str, mime_type: str = "image/jpeg", filename: Optional[str] = None
    ) -> "ImageInput":
        """Decode base64 (a ``data:...;base64,`` prefix is accepted).

        Raises:
            ValueError: If the payload is not valid base64 or is empty
        """
        if encoded.startswith("data:") and "," in encoded:
            header, encoded = encoded.split(",", 1)
            mime_type = header[5:].split(";", 1)[0] or mime_type
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 image payload: {e}") from e
        if not data:
            raise ValueError("Empty image payload")
        return cls(data=data, mime_type=mime_type, filename=filename)

    def size(self) -> tuple[int, int]:
        """Pixel dimensions (width, height)."""
        with Image.open(io.BytesIO(self.data)) as img:
            return img.size

    def to_jpeg(self, quality: float = 0.8, max_size: Optional[int] = None) -> bytes:
        """Re-encode as JPEG.

        Args:
            quality: JPEG quality on a 0-1 scale
            max_size: If set, downscale so the longest side fits

        Raises:
            PIL.UnidentifiedImageError: If the bytes are not a readable image
        """
        with Image.open(io.BytesIO(self.data)) as img:
            img = img.convert("RGB")
            if max_size and max(img.size) > max_size:
                img.thumbnail((max_size, max_size))
            buffer = io.BytesIO()
            img.save(buffer, format="JPEG", quality=max(1, min(95, int(quality * 100))))
        return buffer.getvalue()
