from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple

from core.roi_manager import Rect
from pipeline.classifier import ClassificationResult


@dataclass(frozen=True)
class PlayerGeometry:
    """렌더러 없이 쓸 수 있는 순수 좌표 (프레임 절대 좌표)."""

    player: int
    field: Rect
    cells: Tuple[Tuple[Rect, ...], ...]  # cells[x][y]
    score_area: Rect
    score_digits: Tuple[Rect, ...]


@dataclass(frozen=True)
class FieldAnalysis:
    player: int
    geometry: PlayerGeometry
    results: List[List[ClassificationResult]]  # results[x][y]
