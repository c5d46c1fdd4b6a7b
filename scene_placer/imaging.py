"""
imaging.py — Letterbox, marker stamping and aspect crop-back.

  letterbox()       any image  → D×D square, centered, black padding
  stamp_marker()    D×D square → same square with a red dot at the drop point
  crop_to_aspect()  generated square → original aspect ratio, padding removed

All three derive the content rect independently from the original
dimensions via geometry.content_rect_for(), so they always agree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .canvas import RasterCanvas
from .codec import RasterImage
from .config import JPEG_QUALITY, MARKER_MIN_RADIUS, MARKER_RADIUS_RATIO
from .errors import GeometryError
from .geometry import ContentRect, PercentPoint, PixelPoint, content_rect_for, to_canvas_pixel

logger = logging.getLogger(__name__)

OUTPUT_MIME = "image/jpeg"

MARKER_FILL    = "red"
MARKER_OUTLINE = "white"
OUTLINE_RATIO  = 0.2


@dataclass(frozen=True)
class NormalizedImage:
    image: RasterImage
    target_dimension: int
    content_rect: ContentRect
    original_width: int
    original_height: int


# ── Letterboxer ───────────────────────────────────────────────────────────────

def letterbox(
    image: RasterImage,
    target_dimension: int,
    quality: int = JPEG_QUALITY,
) -> NormalizedImage:
    """Fit `image` into a black D×D square without cropping."""
    d = target_dimension
    rect = content_rect_for(image.width, image.height, d)

    canvas = RasterCanvas.blank(d, d).fill_background()
    canvas.draw_image_at(image.open(), rect)
    out = canvas.to_raster(image.filename, OUTPUT_MIME, quality)

    logger.debug(
        f"letterboxed {image.filename} {image.width}x{image.height} → {d}x{d} "
        f"(content {rect.content_width:.1f}x{rect.content_height:.1f})"
    )
    return NormalizedImage(
        image=out,
        target_dimension=d,
        content_rect=rect,
        original_width=image.width,
        original_height=image.height,
    )


# ── MarkerStamper ─────────────────────────────────────────────────────────────

def marker_radius(
    canvas_w: int,
    canvas_h: int,
    min_radius: float = MARKER_MIN_RADIUS,
    ratio: float = MARKER_RADIUS_RATIO,
) -> float:
    return max(min_radius, min(canvas_w, canvas_h) * ratio)


def marker_center(
    point: PercentPoint,
    original_width: int,
    original_height: int,
    target_dimension: int,
) -> PixelPoint:
    """Canvas pixel for a content-relative point; GeometryError if outside the content."""
    rect = content_rect_for(original_width, original_height, target_dimension)
    center = to_canvas_pixel(point, rect)
    if not rect.contains(center):
        raise GeometryError(f"Marker {center} falls outside content rect {rect}")
    return center


def stamp_marker(
    normalized: NormalizedImage,
    point: PercentPoint,
    original_width: int,
    original_height: int,
    min_radius: float = MARKER_MIN_RADIUS,
    radius_ratio: float = MARKER_RADIUS_RATIO,
    quality: int = JPEG_QUALITY,
) -> RasterImage:
    """Draw the placement marker on a copy of a letterboxed image."""
    canvas = RasterCanvas.from_raster(normalized.image)
    d = canvas.width
    if canvas.height != d:
        raise GeometryError(f"Marker canvas must be square, got {canvas.width}x{canvas.height}")

    rect = content_rect_for(original_width, original_height, d)
    if rect != normalized.content_rect:
        raise GeometryError(
            f"Content rect mismatch: recomputed {rect}, letterboxed {normalized.content_rect}"
        )

    center = marker_center(point, original_width, original_height, d)
    radius = marker_radius(canvas.width, canvas.height, min_radius, radius_ratio)
    canvas.draw_filled_circle(
        center,
        radius,
        fill=MARKER_FILL,
        outline=MARKER_OUTLINE,
        outline_width=radius * OUTLINE_RATIO,
    )
    logger.debug(f"marker at ({center.x:.1f}, {center.y:.1f}) r={radius:.1f}")
    return canvas.to_raster(f"marked-{normalized.image.filename}", OUTPUT_MIME, quality)


# ── AspectCropper ─────────────────────────────────────────────────────────────

def crop_to_aspect(
    image: RasterImage,
    original_width: int,
    original_height: int,
    target_dimension: int,
    quality: int = JPEG_QUALITY,
    filename: str = "",
) -> RasterImage:
    """
    Strip letterbox padding from a generated square.

    The result has the original aspect ratio at D-derived resolution, not the
    original pixel size.
    """
    d = target_dimension
    canvas = RasterCanvas.from_raster(image)
    if (canvas.width, canvas.height) != (d, d):
        logger.warning(
            f"generated image is {canvas.width}x{canvas.height}, expected {d}x{d} — resizing before crop"
        )
        canvas = canvas.resized(d, d)

    rect = content_rect_for(original_width, original_height, d)
    cropped = canvas.extract_region(rect)
    return cropped.to_raster(filename or image.filename, OUTPUT_MIME, quality, label=image.label)
