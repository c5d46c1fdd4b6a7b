"""
geometry.py — Content rectangles and coordinate mapping.

Two coordinate spaces are in play:

  percent  — PercentPoint, 0–100 relative to the visible image content
  pixel    — PixelPoint, raw pixels in a specific canvas (usually the padded
             D×D square the model sees)

content_rect_for() is the one formula shared by the letterboxer, the marker
stamper and the aspect cropper; each recomputes it from the original
dimensions instead of trusting a value passed along.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import GeometryError


class PercentPoint(BaseModel):
    """Placement relative to the visible content, each axis 0–100."""
    model_config = ConfigDict(frozen=True)

    x_percent: float = Field(ge=0, le=100)
    y_percent: float = Field(ge=0, le=100)


@dataclass(frozen=True)
class PixelPoint:
    x: float
    y: float


@dataclass(frozen=True)
class ContentRect:
    offset_x: float
    offset_y: float
    content_width: float
    content_height: float

    @property
    def right(self) -> float:
        return self.offset_x + self.content_width

    @property
    def bottom(self) -> float:
        return self.offset_y + self.content_height

    def contains(self, point: PixelPoint) -> bool:
        return (
            self.offset_x <= point.x <= self.right
            and self.offset_y <= point.y <= self.bottom
        )

    def to_box(self) -> Tuple[int, int, int, int]:
        """Integer (left, top, right, bottom) box, at least one pixel each way."""
        left = int(round(self.offset_x))
        top = int(round(self.offset_y))
        right = max(int(round(self.right)), left + 1)
        bottom = max(int(round(self.bottom)), top + 1)
        return left, top, right, bottom

    def check_within(self, width: float, height: float) -> "ContentRect":
        """Raise GeometryError unless the rect lies inside a width×height canvas."""
        eps = 1e-6
        if (
            self.content_width <= 0 or self.content_height <= 0
            or self.offset_x < -eps or self.offset_y < -eps
            or self.right > width + eps or self.bottom > height + eps
        ):
            raise GeometryError(f"Content rect {self} falls outside {width}x{height} canvas")
        return self


# ── Fitting ───────────────────────────────────────────────────────────────────

def fit_contain(natural_w: float, natural_h: float, box_w: float, box_h: float) -> ContentRect:
    """
    Centered aspect-preserving fit of a natural_w×natural_h image into a box
    (CSS object-fit: contain).
    """
    if natural_w <= 0 or natural_h <= 0 or box_w <= 0 or box_h <= 0:
        raise GeometryError(
            f"Dimensions must be positive: image {natural_w}x{natural_h}, box {box_w}x{box_h}"
        )
    image_ratio = natural_w / natural_h
    if image_ratio > box_w / box_h:
        content_w = float(box_w)
        content_h = box_w / image_ratio
    else:
        content_h = float(box_h)
        content_w = box_h * image_ratio
    return ContentRect(
        offset_x=(box_w - content_w) / 2,
        offset_y=(box_h - content_h) / 2,
        content_width=content_w,
        content_height=content_h,
    )


def content_rect_for(original_w: float, original_h: float, target_dimension: int) -> ContentRect:
    """Where an original_w×original_h image lives inside the padded D×D square."""
    if original_w <= 0 or original_h <= 0:
        raise GeometryError(f"Original dimensions must be positive, got {original_w}x{original_h}")
    d = target_dimension
    aspect_ratio = original_w / original_h
    if aspect_ratio > 1:
        content_w = float(d)
        content_h = d / aspect_ratio
    else:
        content_h = float(d)
        content_w = d * aspect_ratio
    rect = ContentRect(
        offset_x=(d - content_w) / 2,
        offset_y=(d - content_h) / 2,
        content_width=content_w,
        content_height=content_h,
    )
    return rect.check_within(d, d)


# ── Mapping ───────────────────────────────────────────────────────────────────

def to_canvas_pixel(point: PercentPoint, rect: ContentRect) -> PixelPoint:
    return PixelPoint(
        x=rect.offset_x + (point.x_percent / 100) * rect.content_width,
        y=rect.offset_y + (point.y_percent / 100) * rect.content_height,
    )


def to_content_percent(pixel: PixelPoint, rect: ContentRect) -> Optional[PercentPoint]:
    """Inverse of to_canvas_pixel. Returns None when the pixel is outside the content."""
    if not rect.contains(pixel):
        return None
    # clamp float noise at the edges back into [0, 100]
    x = min(100.0, max(0.0, (pixel.x - rect.offset_x) / rect.content_width * 100))
    y = min(100.0, max(0.0, (pixel.y - rect.offset_y) / rect.content_height * 100))
    return PercentPoint(x_percent=x, y_percent=y)


def drop_to_percent(
    drop_x: float,
    drop_y: float,
    container_w: float,
    container_h: float,
    natural_w: float,
    natural_h: float,
) -> Optional[PercentPoint]:
    """
    Map a drop position inside a display box to a content-relative point.

    The scene is assumed to be shown contain-fitted and centered in a
    container_w×container_h box. Drops landing on the letterbox padding
    return None so the caller can ignore them.
    """
    rect = fit_contain(natural_w, natural_h, container_w, container_h)
    return to_content_percent(PixelPoint(drop_x, drop_y), rect)
