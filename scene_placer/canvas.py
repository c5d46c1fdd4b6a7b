"""
canvas.py — Minimal 2D raster-drawing surface backed by Pillow.

The letterbox / marker / crop steps only ever need four operations:

  fill_background     — opaque fill of the whole canvas
  draw_image_at       — scale an image into a ContentRect
  draw_filled_circle  — marker dot with an outline ring
  extract_region      — copy a ContentRect out as a new canvas

Keeping them behind one small class pins the coordinate contract
(ContentRect.to_box) in a single place.
"""

from __future__ import annotations

from typing import Tuple, Union

from PIL import Image, ImageDraw

from .codec import RasterImage, encode
from .geometry import ContentRect, PixelPoint

Color = Union[str, Tuple[int, int, int]]

BLACK = (0, 0, 0)


class RasterCanvas:
    def __init__(self, image: Image.Image) -> None:
        self._img = image.convert("RGB")

    @classmethod
    def blank(cls, width: int, height: int, color: Color = BLACK) -> "RasterCanvas":
        return cls(Image.new("RGB", (width, height), color))

    @classmethod
    def from_raster(cls, raster: RasterImage) -> "RasterCanvas":
        return cls(raster.open())

    @property
    def width(self) -> int:
        return self._img.width

    @property
    def height(self) -> int:
        return self._img.height

    # ── Drawing ───────────────────────────────────────────────────────────────

    def fill_background(self, color: Color = BLACK) -> "RasterCanvas":
        ImageDraw.Draw(self._img).rectangle((0, 0, self.width, self.height), fill=color)
        return self

    def draw_image_at(self, source: Image.Image, rect: ContentRect) -> "RasterCanvas":
        left, top, right, bottom = rect.to_box()
        scaled = source.convert("RGBA").resize((right - left, bottom - top), Image.LANCZOS)
        # alpha is composited onto whatever the background fill left behind
        self._img.paste(scaled, (left, top), scaled)
        return self

    def draw_filled_circle(
        self,
        center: PixelPoint,
        radius: float,
        fill: Color = "red",
        outline: Color = "white",
        outline_width: float = 0.0,
    ) -> "RasterCanvas":
        # the stroke is centered on the circle edge, so the outer ring reaches
        # radius + outline_width / 2
        half = outline_width / 2
        r = radius + half
        box = (center.x - r, center.y - r, center.x + r, center.y + r)
        width = max(1, int(round(outline_width))) if outline_width > 0 else 0
        ImageDraw.Draw(self._img).ellipse(box, fill=fill, outline=outline if width else None, width=width)
        return self

    def extract_region(self, rect: ContentRect) -> "RasterCanvas":
        return RasterCanvas(self._img.crop(rect.to_box()))

    def resized(self, width: int, height: int) -> "RasterCanvas":
        return RasterCanvas(self._img.resize((width, height), Image.LANCZOS))

    # ── Output ────────────────────────────────────────────────────────────────

    def to_pil(self) -> Image.Image:
        return self._img.copy()

    def to_raster(
        self,
        filename: str,
        mime_type: str = "image/jpeg",
        quality: int = 95,
        label: str = "",
    ) -> RasterImage:
        return RasterImage(
            data=encode(self._img, mime_type, quality),
            mime_type=mime_type,
            filename=filename,
            width=self.width,
            height=self.height,
            label=label,
        )
