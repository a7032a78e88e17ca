import itertools

import numpy as np
import pytest

from app.rois import build_player_fields
from config.roi import ROI
from core.errors import OutOfBounds, RegionReleased
from core.roi_manager import Rect, relative_rect, subdivide_grid, subdivide_row

from conftest import make_solid


# ----------------------------
# Rect / subdivide_grid
# ----------------------------
def test_rect_rejects_negative_values():
    with pytest.raises(ValueError):
        Rect(-1, 0, 10, 10)
    with pytest.raises(ValueError):
        Rect(0, 0, 10, -0.5)


def test_rect_truncates_to_pixel_grid():
    assert Rect(280.32, 159.84, 64.0, 59.85).to_pixels() == (280, 159, 64, 59)


@pytest.mark.parametrize(
    "parent, cols, rows",
    [
        (Rect(0, 0, 600, 1200), 6, 12),
        (Rect(280.32, 159.84, 384.0, 718.2), 6, 12),
        (Rect(10.5, 3.25, 97.3, 41.1), 8, 1),
        (Rect(0, 0, 1, 1), 3, 7),
    ],
)
def test_subdivide_grid_partitions_parent(parent, cols, rows):
    """
    cols*rows 개 셀, 면적 합 = 부모 면적, 서로 겹치지 않음
    """
    cells = subdivide_grid(parent, cols, rows)
    flat = [c for column in cells for c in column]

    assert len(cells) == cols
    assert all(len(column) == rows for column in cells)
    assert sum(c.area for c in flat) == pytest.approx(parent.area, rel=1e-9)

    for a, b in itertools.combinations(flat, 2):
        ow = min(a.right, b.right) - max(a.x, b.x)
        oh = min(a.bottom, b.bottom) - max(a.y, b.y)
        assert ow <= 1e-9 or oh <= 1e-9

    assert all(parent.contains(c) for c in flat)


def test_subdivide_grid_origin_formula():
    parent = Rect(100, 50, 60, 120)
    cells = subdivide_grid(parent, 6, 12)

    assert cells[0][0] == Rect(100, 50, 10, 10)
    assert cells[5][11].x == pytest.approx(150)
    assert cells[5][11].y == pytest.approx(160)
    # [x][y] 인덱싱: 같은 열은 x 가 같다
    assert {c.x for c in cells[3]} == {130}


def test_subdivide_grid_is_deterministic():
    parent = Rect(280.32, 159.84, 384.0, 718.2)
    assert subdivide_grid(parent, 6, 12) == subdivide_grid(parent, 6, 12)


@pytest.mark.parametrize("cols, rows", [(0, 12), (6, 0), (-1, 3)])
def test_subdivide_grid_rejects_non_positive(cols, rows):
    with pytest.raises(ValueError):
        subdivide_grid(Rect(0, 0, 10, 10), cols, rows)


def test_subdivide_row_splits_horizontally():
    digits = subdivide_row(Rect(0, 10, 80, 20), 8)
    assert len(digits) == 8
    assert [d.x for d in digits] == pytest.approx([0, 10, 20, 30, 40, 50, 60, 70])
    assert all(d.y == 10 and d.height == 20 for d in digits)


def test_relative_rect_scales_by_screen():
    screen = Rect(0, 0, 1920, 1080)
    field = relative_rect(screen, ROI.player(1).FIELD)

    assert field.x == pytest.approx(280.32)
    assert field.y == pytest.approx(159.84)
    assert field.width == pytest.approx(384.0)
    assert field.height == pytest.approx(718.2)


def test_relative_rect_respects_screen_offset():
    screen = Rect(100, 40, 1000, 500)
    r = relative_rect(screen, (0.1, 0.2, 0.5, 0.5))
    assert r.as_tuple() == pytest.approx((200, 140, 500, 250))


def test_relative_rect_out_of_screen():
    with pytest.raises(OutOfBounds):
        relative_rect(Rect(0, 0, 100, 100), (0.9, 0.0, 0.2, 0.1))


# ----------------------------
# Layout table
# ----------------------------
def test_unknown_player_layout():
    with pytest.raises(ValueError):
        ROI.player(3)


@pytest.mark.parametrize("player", [1, 2])
@pytest.mark.parametrize("size", [(1920, 1080), (1280, 720), (853, 480)])
def test_cells_inside_field_and_digits_inside_score(player, size):
    w, h = size
    frame = make_solid(w, h)

    with build_player_fields(frame, player) as fields:
        assert len(fields.cells) == 6
        assert all(len(column) == 12 for column in fields.cells)
        assert len(fields.score_digits) == 8

        for column in fields.cells:
            for cell in column:
                assert fields.field.rect.contains(cell.rect)
        for digit in fields.score_digits:
            assert fields.score_area.rect.contains(digit.rect)


def test_player_two_is_mirrored():
    screen = Rect(0, 0, 1000, 1000)
    p1 = relative_rect(screen, ROI.player(1).FIELD)
    p2 = relative_rect(screen, ROI.player(2).FIELD)
    assert p2.x == pytest.approx(screen.width - p1.right)
    assert (p2.y, p2.width, p2.height) == pytest.approx((p1.y, p1.width, p1.height))


# ----------------------------
# Regions
# ----------------------------
def test_cell_views_alias_frame_storage():
    frame = make_solid(1920, 1080)
    fields = build_player_fields(frame, 1)

    cell = fields.cells[0][0]
    x, y, w, h = cell.rect.to_pixels()
    assert cell.view.pixels.shape == (h, w, 3)
    assert np.shares_memory(cell.view.pixels, frame.pixels)


def test_release_drops_all_views():
    frame = make_solid(1920, 1080)
    with build_player_fields(frame, 1) as fields:
        cell = fields.cells[2][3]
        assert cell.view is not None

    with pytest.raises(RegionReleased):
        cell.view
    with pytest.raises(RegionReleased):
        fields.score_digits[7].view


def test_geometry_is_plain_rects():
    frame = make_solid(1280, 720)
    with build_player_fields(frame, 2) as fields:
        geo = fields.geometry()

    # view 를 놓은 뒤에도 좌표는 그대로 쓸 수 있다
    assert geo.player == 2
    assert len(geo.cells) == 6 and len(geo.cells[0]) == 12
    assert geo.cells[0][0].x == pytest.approx(geo.field.x)
    assert len(geo.score_digits) == 8


def test_custom_screen_rect_offsets_regions():
    frame = make_solid(2000, 1200)
    screen = Rect(40, 60, 1920, 1080)
    with build_player_fields(frame, 1, screen_rect=screen) as fields:
        assert fields.field.rect.x == pytest.approx(40 + 280.32)
        assert fields.field.rect.y == pytest.approx(60 + 159.84)


def test_screen_rect_outside_frame_is_out_of_bounds():
    frame = make_solid(640, 360)
    with pytest.raises(OutOfBounds):
        build_player_fields(frame, 1, screen_rect=Rect(0, 0, 1920, 1080))
