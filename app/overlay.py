from __future__ import annotations

from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image

from app.frame_types import FieldAnalysis
from config.labels import LABEL_CODES
from core.image_buffer import ImageBuffer
from core.roi_manager import Rect

CELL_COLOR = (255, 0, 0)
SCORE_COLOR = (0, 0, 255)
TEXT_COLOR = (255, 255, 255)


def _draw_rect(img: np.ndarray, rect: Rect, color) -> None:
    x, y, w, h = rect.to_pixels()
    cv2.rectangle(img, (x, y), (x + w, y + h), color, 1, cv2.LINE_AA)


def draw_overlay(frame: ImageBuffer, analysis: FieldAnalysis, with_labels: bool = True) -> np.ndarray:
    """
    디버그용: 셀/점수 영역 사각형 + 셀 라벨 코드를 그린 RGB 사본을 반환.
    분류가 끝난 뒤에만 호출 (원본 frame 은 건드리지 않는다).
    """
    rgb = frame.to_pil().convert("RGB")
    canvas = np.array(rgb)

    geo = analysis.geometry
    for x, column in enumerate(geo.cells):
        for y, rect in enumerate(column):
            _draw_rect(canvas, rect, CELL_COLOR)
            if with_labels:
                code = LABEL_CODES[analysis.results[x][y].label]
                cx, cy = int(rect.x + rect.width / 2), int(rect.y + rect.height / 2)
                cv2.putText(canvas, code, (cx - 5, cy + 5), cv2.FONT_HERSHEY_SIMPLEX, 0.5, TEXT_COLOR, 1, cv2.LINE_AA)

    _draw_rect(canvas, geo.score_area, SCORE_COLOR)
    for rect in geo.score_digits:
        _draw_rect(canvas, rect, SCORE_COLOR)
    return canvas


def save_overlay(
    frame: ImageBuffer,
    analysis: FieldAnalysis,
    path: Union[str, Path],
    with_labels: bool = True,
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(draw_overlay(frame, analysis, with_labels)).save(path)
    return path
