from __future__ import annotations

from typing import Callable, Dict

import cv2
import numpy as np

from core.errors import ChannelMismatch


def _as_hist(h: np.ndarray) -> np.ndarray:
    return np.ascontiguousarray(h, dtype=np.float32).reshape(-1)


def hellinger_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """1 - Hellinger(Bhattacharyya) distance. 같은 분포면 1, 겹침이 없으면 0."""
    d = cv2.compareHist(_as_hist(a), _as_hist(b), cv2.HISTCMP_HELLINGER)
    return float(min(1.0, max(0.0, 1.0 - d)))


def intersection_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Histogram intersection of the L1-normalized histograms."""
    a = _as_hist(a)
    b = _as_hist(b)
    sa, sb = float(a.sum()), float(b.sum())
    if sa <= 0 or sb <= 0:
        return 0.0
    s = cv2.compareHist(a / sa, b / sb, cv2.HISTCMP_INTERSECT)
    return float(min(1.0, max(0.0, s)))


METRICS: Dict[str, Callable[[np.ndarray, np.ndarray], float]] = {
    "hellinger": hellinger_similarity,
    "intersection": intersection_similarity,
}


def similarity(a: np.ndarray, b: np.ndarray, metric: str = "hellinger") -> float:
    if len(a) != len(b):
        raise ChannelMismatch(f"histogram lengths differ: {len(a)} vs {len(b)}")
    try:
        fn = METRICS[metric]
    except KeyError:
        raise ValueError(f"unknown metric '{metric}'; known: {sorted(METRICS)}") from None
    return fn(a, b)
