import io
from dataclasses import replace

import pytest
from PIL import Image

from scene_placer.codec import RasterImage
from scene_placer.errors import GeometryError
from scene_placer.geometry import PercentPoint, content_rect_for
from scene_placer.imaging import (
    NormalizedImage,
    crop_to_aspect,
    letterbox,
    marker_center,
    marker_radius,
    stamp_marker,
)

from conftest import make_raster


def _close(pixel, expected, tol=12):
    return all(abs(a - b) <= tol for a, b in zip(pixel, expected))


# ── letterbox ─────────────────────────────────────────────────────────────────

def test_letterbox_landscape_pads_top_and_bottom():
    scene = make_raster(800, 600, color=(255, 255, 255), filename="room.png")
    norm = letterbox(scene, 1024)

    assert norm.image.size == (1024, 1024)
    assert norm.image.mime_type == "image/jpeg"
    assert norm.image.filename == "room.png"
    assert (norm.original_width, norm.original_height) == (800, 600)
    assert norm.content_rect == content_rect_for(800, 600, 1024)

    img = norm.image.open()
    assert _close(img.getpixel((512, 20)), (0, 0, 0))        # top bar
    assert _close(img.getpixel((512, 1000)), (0, 0, 0))      # bottom bar
    assert _close(img.getpixel((512, 512)), (255, 255, 255))  # content
    assert _close(img.getpixel((5, 512)), (255, 255, 255))    # content reaches the side


def test_letterbox_portrait_pads_left_and_right():
    norm = letterbox(make_raster(600, 800, color=(255, 255, 255)), 512)
    img = norm.image.open()
    assert norm.image.size == (512, 512)
    assert _close(img.getpixel((10, 256)), (0, 0, 0))
    assert _close(img.getpixel((500, 256)), (0, 0, 0))
    assert _close(img.getpixel((256, 5)), (255, 255, 255))


def test_letterbox_square_has_no_padding():
    norm = letterbox(make_raster(300, 300, color=(255, 255, 255)), 256)
    img = norm.image.open()
    assert _close(img.getpixel((2, 2)), (255, 255, 255))
    assert _close(img.getpixel((253, 253)), (255, 255, 255))


# ── marker ────────────────────────────────────────────────────────────────────

def test_marker_radius_rule():
    assert marker_radius(1024, 1024) == pytest.approx(15.36)
    assert marker_radius(100, 100) == 5.0


def test_marker_center_maps_through_content_rect():
    center = marker_center(PercentPoint(x_percent=50, y_percent=0), 800, 600, 1024)
    assert center.x == pytest.approx(512.0)
    assert center.y == pytest.approx(128.0)


def test_stamp_marker_draws_red_dot_at_point():
    scene = make_raster(800, 600, color=(0, 160, 0))
    norm = letterbox(scene, 1024)
    marked = stamp_marker(norm, PercentPoint(x_percent=25, y_percent=75), 800, 600)

    assert marked.size == (1024, 1024)
    assert marked.filename.startswith("marked-")
    img = marked.open()
    # 25% of 1024 wide content, 128 + 75% of 768 tall content
    r, g, b = img.getpixel((256, 704))
    assert r > 200 and g < 60 and b < 60
    # away from the dot the scene is untouched
    assert _close(img.getpixel((800, 300)), (0, 160, 0), tol=20)


def test_stamp_marker_does_not_modify_input():
    norm = letterbox(make_raster(400, 300, color=(0, 0, 255)), 256)
    before = norm.image.data
    stamp_marker(norm, PercentPoint(x_percent=50, y_percent=50), 400, 300)
    assert norm.image.data == before


def test_stamp_marker_rejects_mismatched_dimensions():
    norm = letterbox(make_raster(800, 600), 256)
    with pytest.raises(GeometryError):
        stamp_marker(norm, PercentPoint(x_percent=50, y_percent=50), 600, 800)


def test_stamp_marker_rejects_non_square_canvas():
    norm = letterbox(make_raster(800, 600), 256)
    bogus = NormalizedImage(
        image=make_raster(256, 200),
        target_dimension=256,
        content_rect=norm.content_rect,
        original_width=800,
        original_height=600,
    )
    with pytest.raises(GeometryError):
        stamp_marker(bogus, PercentPoint(x_percent=50, y_percent=50), 800, 600)


# ── crop-back ─────────────────────────────────────────────────────────────────

def test_crop_to_aspect_restores_landscape_ratio():
    generated = make_raster(1024, 1024, filename="generated.png")
    out = crop_to_aspect(generated, 800, 600, 1024, filename="composite-room.jpeg")
    assert out.size == (1024, 768)
    assert out.filename == "composite-room.jpeg"
    assert out.mime_type == "image/jpeg"


def test_crop_to_aspect_portrait():
    out = crop_to_aspect(make_raster(512, 512), 600, 800, 512)
    assert out.size == (384, 512)


def test_crop_removes_letterbox_padding():
    norm = letterbox(make_raster(800, 600, color=(255, 255, 255)), 512)
    out = crop_to_aspect(norm.image, 800, 600, 512)
    img = out.open()
    assert out.size == (512, 384)
    assert _close(img.getpixel((256, 2)), (255, 255, 255), tol=30)
    assert _close(img.getpixel((256, 381)), (255, 255, 255), tol=30)


def test_crop_resizes_unexpected_square_size(caplog):
    generated = make_raster(900, 900)
    with caplog.at_level("WARNING", logger="scene_placer.imaging"):
        out = crop_to_aspect(generated, 800, 600, 1024)
    assert out.size == (1024, 768)
    assert "expected 1024x1024" in caplog.text


def test_crop_keeps_label():
    generated = make_raster(256, 256)
    labeled = replace(generated, label="back view")
    assert crop_to_aspect(labeled, 256, 256, 256).label == "back view"


@pytest.mark.parametrize("w,h", [(800, 600), (333, 777), (1000, 7), (64, 64), (1919, 1080)])
def test_letterbox_then_crop_recovers_aspect(w, h):
    d = 128
    norm = letterbox(make_raster(w, h), d)
    out = crop_to_aspect(norm.image, w, h, d)
    rect = content_rect_for(w, h, d)
    assert abs(out.width - rect.content_width) <= 1
    assert abs(out.height - rect.content_height) <= 1


def test_letterbox_uses_exif_orientation():
    exif = Image.Exif()
    exif[0x0112] = 6
    buf = io.BytesIO()
    Image.new("RGB", (400, 200), (255, 255, 255)).save(buf, format="JPEG", exif=exif.tobytes())
    photo = RasterImage.from_bytes(buf.getvalue(), "phone.jpg")

    norm = letterbox(photo, 256)
    img = norm.image.open()
    assert norm.content_rect == content_rect_for(200, 400, 256)
    assert _close(img.getpixel((10, 128)), (0, 0, 0))         # side bar
    assert _close(img.getpixel((128, 5)), (255, 255, 255))    # content reaches the top
