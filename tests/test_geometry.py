import pytest
from pydantic import ValidationError

from scene_placer.errors import GeometryError
from scene_placer.geometry import (
    ContentRect,
    PercentPoint,
    PixelPoint,
    content_rect_for,
    drop_to_percent,
    fit_contain,
    to_canvas_pixel,
    to_content_percent,
)


@pytest.mark.parametrize(
    "w,h",
    [(800, 600), (600, 800), (1000, 1000), (1920, 1080), (333, 777), (5000, 3), (1, 1)],
)
def test_content_rect_fits_square_and_touches_long_axis(w, h):
    d = 1024
    rect = content_rect_for(w, h, d)
    assert rect.content_width <= d and rect.content_height <= d
    assert d in (rect.content_width, rect.content_height)
    assert rect.offset_x >= 0 and rect.offset_y >= 0
    assert rect.right <= d and rect.bottom <= d
    # centered
    assert rect.offset_x == pytest.approx(d - rect.right)
    assert rect.offset_y == pytest.approx(d - rect.bottom)


def test_landscape_rect_values():
    rect = content_rect_for(800, 600, 1024)
    assert rect.offset_x == 0.0
    assert rect.content_width == 1024.0
    assert rect.offset_y == pytest.approx(128.0)
    assert rect.content_height == pytest.approx(768.0)


def test_portrait_rect_values():
    rect = content_rect_for(600, 800, 1024)
    assert rect == ContentRect(offset_x=128.0, offset_y=0.0, content_width=768.0, content_height=1024.0)


def test_non_positive_dimensions_raise():
    with pytest.raises(GeometryError):
        content_rect_for(0, 600, 1024)
    with pytest.raises(GeometryError):
        fit_contain(800, 600, 0, 100)


def test_fit_contain_matches_square_letterbox():
    assert fit_contain(1920, 1080, 1024, 1024) == content_rect_for(1920, 1080, 1024)


def test_to_canvas_pixel_center_of_landscape():
    rect = content_rect_for(800, 600, 1024)
    pixel = to_canvas_pixel(PercentPoint(x_percent=50, y_percent=50), rect)
    assert pixel.x == pytest.approx(512.0)
    assert pixel.y == pytest.approx(512.0)


def test_to_canvas_pixel_corners_map_to_content_edges():
    rect = content_rect_for(800, 600, 1024)
    top_left = to_canvas_pixel(PercentPoint(x_percent=0, y_percent=0), rect)
    bottom_right = to_canvas_pixel(PercentPoint(x_percent=100, y_percent=100), rect)
    assert (top_left.x, top_left.y) == pytest.approx((0.0, 128.0))
    assert (bottom_right.x, bottom_right.y) == pytest.approx((1024.0, 896.0))


@pytest.mark.parametrize("w,h", [(800, 600), (600, 800), (1234, 567), (7, 3)])
@pytest.mark.parametrize("xp,yp", [(0, 0), (100, 100), (50, 50), (12.5, 87.25), (99.999, 0.001)])
def test_percent_pixel_round_trip(w, h, xp, yp):
    rect = content_rect_for(w, h, 1024)
    back = to_content_percent(to_canvas_pixel(PercentPoint(x_percent=xp, y_percent=yp), rect), rect)
    assert back is not None
    assert back.x_percent == pytest.approx(xp, rel=1e-6, abs=1e-9)
    assert back.y_percent == pytest.approx(yp, rel=1e-6, abs=1e-9)


def test_pixel_in_padding_is_out_of_bounds():
    rect = content_rect_for(800, 600, 1024)
    assert to_content_percent(PixelPoint(512, 50), rect) is None
    assert to_content_percent(PixelPoint(512, 1000), rect) is None


def test_percent_point_rejects_out_of_range():
    with pytest.raises(ValidationError):
        PercentPoint(x_percent=-0.1, y_percent=50)
    with pytest.raises(ValidationError):
        PercentPoint(x_percent=50, y_percent=100.5)


def test_percent_point_is_frozen():
    point = PercentPoint(x_percent=10, y_percent=20)
    with pytest.raises(ValidationError):
        point.x_percent = 30


def test_drop_inside_contained_image():
    # 800x600 image shown in a 400x400 box → rendered 400x300, 50px bars top/bottom
    point = drop_to_percent(100, 125, 400, 400, 800, 600)
    assert point.x_percent == pytest.approx(25.0)
    assert point.y_percent == pytest.approx(25.0)


def test_drop_on_padding_is_ignored():
    assert drop_to_percent(200, 20, 400, 400, 800, 600) is None


def test_drop_in_wide_container_with_side_bars():
    # 600x800 image in an 800x400 box → rendered 300x400, 250px bars left/right
    assert drop_to_percent(100, 200, 800, 400, 600, 800) is None
    point = drop_to_percent(400, 200, 800, 400, 600, 800)
    assert point == PercentPoint(x_percent=50, y_percent=50)


def test_check_within_raises_for_overflow():
    with pytest.raises(GeometryError):
        ContentRect(offset_x=10, offset_y=0, content_width=1024, content_height=100).check_within(1024, 1024)


def test_to_box_is_at_least_one_pixel():
    rect = content_rect_for(1, 10000, 256)
    left, top, right, bottom = rect.to_box()
    assert right - left >= 1
    assert (top, bottom) == (0, 256)
