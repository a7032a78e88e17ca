import os

import numpy as np
import pytest

from config.calibration import SWATCHES
from config.labels import LABEL_ORDER
from config.roi import ROI
from core.image_buffer import ColorSpace, ImageBuffer
from core.roi_manager import Rect, relative_rect, subdivide_grid
from pipeline.profile_store import ColorProfile, build_profile

# 라벨별 단색 (RGB). HSV 로 바꿨을 때 모두 서로 다른 bin 에 떨어진다.
SWATCH_RGB = {
    "red": (255, 0, 0),
    "green": (0, 255, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "purple": (128, 0, 128),
    "garbage": (128, 128, 128),
}
BACKGROUND_RGB = (0, 0, 0)

# 18 x 10 x 10 joint bin index (h, s, v)
EXPECTED_BIN = {
    "red": 0 * 100 + 9 * 10 + 9,
    "green": 6 * 100 + 9 * 10 + 9,
    "blue": 12 * 100 + 9 * 10 + 9,
    "yellow": 3 * 100 + 9 * 10 + 9,
    "purple": 15 * 100 + 9 * 10 + 5,
    "garbage": 0 * 100 + 0 * 10 + 5,
}


def make_solid(w, h, color=BACKGROUND_RGB, space=ColorSpace.RGB):
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = color
    return ImageBuffer(arr, space)


def make_calibration_image(colors=None):
    """스킨 이미지 흉내: 라벨마다 64x60 단색 샘플을 정해진 위치에 배치."""
    colors = colors or SWATCH_RGB
    w, h = SWATCHES.min_image_size
    arr = np.zeros((h + 12, w + 8, 3), dtype=np.uint8)
    arr[:, :] = (40, 40, 40)
    for label, origins in SWATCHES.swatch_origins().items():
        for x, y in origins:
            arr[y : y + SWATCHES.swatch_height, x : x + SWATCHES.swatch_width] = colors[label]
    return ImageBuffer(arr, ColorSpace.RGB)


def cell_pixel_box(frame_w, frame_h, player, x, y):
    """(x0, y0, x1, y1) pixel box the pipeline crops for cell (x, y)."""
    screen = Rect(0, 0, frame_w, frame_h)
    field = relative_rect(screen, ROI.player(player).FIELD)
    cell = subdivide_grid(field, ROI.GRID.FIELD_COLS, ROI.GRID.FIELD_ROWS)[x][y]
    px, py, pw, ph = cell.to_pixels()
    return px, py, px + pw, py + ph


def paint_cell(frame, player, x, y, color):
    x0, y0, x1, y1 = cell_pixel_box(frame.width, frame.height, player, x, y)
    frame.pixels[y0:y1, x0:x1] = color


def one_hot(index, length=1800, value=1.0):
    h = np.zeros(length, dtype=np.float32)
    h[index] = value
    return h


@pytest.fixture
def calibration():
    return make_calibration_image()


@pytest.fixture
def profile(calibration):
    return build_profile(calibration)


@pytest.fixture
def one_hot_profile():
    return ColorProfile({label: one_hot(EXPECTED_BIN[label], value=100.0) for label in LABEL_ORDER})


PUYO_ENV_KEYS = (
    "PUYO_PROFILES_PATH",
    "PUYO_PROFILE",
    "PUYO_THRESHOLD",
    "PUYO_METRIC",
    "PUYO_WORKERS",
    "PUYO_PLAYER",
    "PUYO_SCREEN",
    "PUYO_SLEEP_SEC",
    "PUYO_DEBUG_SAVE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """PUYO_* 환경변수 없이 시작. load_dotenv 가 넣은 값도 테스트 끝나면 지운다."""
    for key in PUYO_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
    for key in PUYO_ENV_KEYS:
        os.environ.pop(key, None)
