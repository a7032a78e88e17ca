# pipeline/classifier.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from config.labels import LABEL_ORDER, NONE_LABEL
from pipeline.profile_store import ColorProfile
from pipeline.similarity import similarity

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.15


@dataclass(frozen=True)
class ClassificationResult:
    label: str  # LABEL_ORDER 중 하나 | "none"
    confidence: float
    similarities: Tuple[float, ...] = ()  # LABEL_ORDER 순서, 디버그용

    @property
    def is_empty(self) -> bool:
        return self.label == NONE_LABEL


def classify_cell(
    cell_hist: np.ndarray,
    profile: ColorProfile,
    threshold: float = DEFAULT_THRESHOLD,
    metric: str = "hellinger",
) -> ClassificationResult:
    """
    - 6개 라벨 모두 similarity <= threshold 면 "none" (confidence = 평균)
    - 아니면 최댓값 라벨. 동점이면 LABEL_ORDER 에서 앞선 라벨
    """
    scores = [similarity(cell_hist, profile[label], metric) for label in LABEL_ORDER]

    if all(s <= threshold for s in scores):
        return ClassificationResult(NONE_LABEL, float(np.mean(scores)), tuple(scores))

    best = 0
    for i in range(1, len(scores)):
        if scores[i] > scores[best]:
            best = i
    return ClassificationResult(LABEL_ORDER[best], scores[best], tuple(scores))


def classify_field(
    cell_hists: Sequence[Sequence[np.ndarray]],
    profile: ColorProfile,
    threshold: float = DEFAULT_THRESHOLD,
    metric: str = "hellinger",
    workers: int = 1,
) -> List[List[ClassificationResult]]:
    """
    cell_hists[x][y] 각각을 독립적으로 분류. 셀 사이 의존성 없음.
    workers > 1 이면 스레드 풀로 나눠서 처리 (profile 은 읽기 전용).
    """
    flat = [(x, y, h) for x, column in enumerate(cell_hists) for y, h in enumerate(column)]

    def _one(item):
        _, _, h = item
        return classify_cell(h, profile, threshold, metric)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(_one, flat))
    else:
        results = [_one(item) for item in flat]

    grid: List[List[ClassificationResult]] = [[None] * len(column) for column in cell_hists]
    for (x, y, _), res in zip(flat, results):
        grid[x][y] = res

    filled = sum(1 for r in results if not r.is_empty)
    logger.debug("classified %d cells (%d filled)", len(results), filled)
    return grid
