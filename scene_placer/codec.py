"""
codec.py — RasterImage and the data-URL transport encoding.

Images cross component boundaries either as RasterImage values or as
`data:<mime>;base64,<payload>` strings. Pixel dimensions are read from the
bytes with Pillow at construction time, after applying EXIF orientation, so
every RasterImage knows the width/height it is displayed at.
"""

from __future__ import annotations

import base64
import binascii
import io
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import DecodeError

MIME_MAP = {
    ".jpg":  "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png":  "image/png",
    ".webp": "image/webp",
    ".gif":  "image/gif",
    ".bmp":  "image/bmp",
}
EXT_MAP = {
    "image/jpeg": ".jpeg",
    "image/png":  ".png",
    "image/webp": ".webp",
    "image/gif":  ".gif",
    "image/bmp":  ".bmp",
}

_HEADER_RE = re.compile(r"^data:([^;,]+);")


@dataclass(frozen=True)
class RasterImage:
    data: bytes
    mime_type: str
    filename: str
    width: int
    height: int
    label: str = ""

    def __repr__(self) -> str:
        return (
            f"RasterImage({self.filename!r}, {self.mime_type}, "
            f"{self.width}x{self.height}, {len(self.data)} bytes)"
        )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    # ── Constructors ──────────────────────────────────────────────────────────

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        filename: str,
        mime_type: Optional[str] = None,
        label: str = "",
    ) -> "RasterImage":
        """Wrap raw image bytes, reading dimensions (and MIME type if not given)."""
        width, height, detected = probe(data)
        return cls(
            data=bytes(data),
            mime_type=mime_type or detected,
            filename=filename,
            width=width,
            height=height,
            label=label,
        )

    @classmethod
    def from_data_url(cls, url: str, filename: str, label: str = "") -> "RasterImage":
        mime_type, data = parse_data_url(url)
        return cls.from_bytes(data, filename, mime_type=mime_type, label=label)

    @classmethod
    def from_path(cls, path: Path) -> "RasterImage":
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DecodeError(f"Could not read image file {path}: {e}") from e
        return cls.from_bytes(data, path.name, mime_type=MIME_MAP.get(path.suffix.lower()))

    # ── Conversions ───────────────────────────────────────────────────────────

    def to_data_url(self) -> str:
        return build_data_url(self.mime_type, self.data)

    def open(self) -> Image.Image:
        """Decode into a fully loaded Pillow image."""
        return _open(self.data)

    def renamed(self, filename: str) -> "RasterImage":
        return replace(self, filename=filename)

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path


# ── Transport helpers ─────────────────────────────────────────────────────────

def build_data_url(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(url: str) -> Tuple[str, bytes]:
    """
    Split a `data:<mime>;base64,<payload>` string into (mime, raw bytes).

    Raises DecodeError when the comma-delimited header is missing, the MIME
    type cannot be extracted, or the payload is not valid base64.
    """
    header, sep, payload = (url or "").partition(",")
    if not sep:
        raise DecodeError("Invalid data URL: missing ',' between header and payload")
    match = _HEADER_RE.match(header.strip())
    if not match:
        raise DecodeError(f"Invalid data URL: could not extract MIME type from {header[:40]!r}")
    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid data URL payload: {e}") from e
    return match.group(1), data


def probe(data: bytes) -> Tuple[int, int, str]:
    """Return (width, height, mime) for encoded image bytes."""
    img, fmt = _decode(data)
    mime = Image.MIME.get(fmt or "", "") or "application/octet-stream"
    return img.width, img.height, mime


def encode(img: Image.Image, mime_type: str = "image/jpeg", quality: int = 95) -> bytes:
    """Encode a Pillow image; JPEG output is flattened to RGB first."""
    buf = io.BytesIO()
    if mime_type == "image/jpeg":
        img.convert("RGB").save(buf, format="JPEG", quality=quality)
    elif mime_type == "image/png":
        img.save(buf, format="PNG")
    elif mime_type == "image/webp":
        img.save(buf, format="WEBP", quality=quality)
    else:
        raise DecodeError(f"Unsupported output type {mime_type}")
    return buf.getvalue()


def _open(data: bytes) -> Image.Image:
    return _decode(data)[0]


def _decode(data: bytes) -> Tuple[Image.Image, Optional[str]]:
    """
    Decode bytes into an upright, fully loaded image plus its source format.

    EXIF orientation is applied, so width/height are the displayed dimensions.
    """
    if not data:
        raise DecodeError("Image payload is empty")
    try:
        img = Image.open(io.BytesIO(data))
        fmt = img.format
        img.load()
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        raise DecodeError(f"Could not decode image bytes: {e}") from e
    return img, fmt
