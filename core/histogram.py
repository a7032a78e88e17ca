# core/histogram.py
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from core.errors import ChannelMismatch, EmptyRegion, MaskMismatch


# ======================
# Config
# ======================
@dataclass(frozen=True)
class HistogramConfig:
    """
    HSV 3채널 joint histogram (18 x 10 x 10 = 1800 bins).
    프로파일 생성과 분류 모두 이 설정 하나만 사용해야 bin 단위 비교가 성립한다.
    """

    channels: Tuple[int, ...] = (0, 1, 2)
    bin_counts: Tuple[int, ...] = (18, 10, 10)
    ranges: Tuple[Tuple[int, int], ...] = ((0, 180), (0, 256), (0, 256))

    # 셀 모서리/배경을 빼기 위한 타원 마스크 높이 비율
    mask_height_ratio: float = 0.8

    @property
    def length(self) -> int:
        return int(np.prod(self.bin_counts))


DEFAULT_HIST_CONFIG = HistogramConfig()


# ======================
# Masks
# ======================
@lru_cache(maxsize=32)
def _ellipse_mask_cached(width: int, height: int, height_ratio: float) -> np.ndarray:
    mask = np.zeros((height, width), dtype=np.uint8)
    box = ((width / 2.0, height / 2.0), (float(width), height * height_ratio), 0.0)
    cv2.ellipse(mask, box, 255, -1, cv2.LINE_8)
    mask.setflags(write=False)
    return mask


def ellipse_mask(width: int, height: int, height_ratio: float = 0.8) -> np.ndarray:
    """
    셀에 내접하는 축 정렬 타원 마스크 (높이는 height_ratio 배).
    반환: (height, width) uint8, 타원 내부 255
    """
    if width <= 0 or height <= 0:
        raise EmptyRegion(f"mask extent must be positive: {width}x{height}")
    return _ellipse_mask_cached(int(width), int(height), float(height_ratio))


# ======================
# Public API
# ======================
def compute_histogram(
    pixels: np.ndarray,
    channels: Sequence[int],
    bin_counts: Sequence[int],
    ranges: Sequence[Tuple[int, int]],
    mask: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    pixels 의 joint histogram 을 계산해서 1차원 float32 벡터로 반환.
    순서는 C-order (channel 0 이 가장 바깥 축).
    """
    h, w = pixels.shape[:2]
    if h == 0 or w == 0:
        raise EmptyRegion("region has zero area")

    n_channels = 1 if pixels.ndim == 2 else pixels.shape[2]
    if not (len(channels) == len(bin_counts) == len(ranges)):
        raise ChannelMismatch(
            f"channels/bin_counts/ranges length differ: "
            f"{len(channels)}/{len(bin_counts)}/{len(ranges)}"
        )
    for c in channels:
        if c < 0 or c >= n_channels:
            raise ChannelMismatch(f"channel {c} out of range for {n_channels}-channel image")

    if mask is not None and mask.shape[:2] != (h, w):
        raise MaskMismatch(f"mask {mask.shape[:2]} != region {(h, w)}")

    flat_ranges = [float(v) for lo_hi in ranges for v in lo_hi]
    hist = cv2.calcHist(
        [np.ascontiguousarray(pixels)],
        [int(c) for c in channels],
        None if mask is None else np.ascontiguousarray(mask, dtype=np.uint8),
        [int(b) for b in bin_counts],
        flat_ranges,
        accumulate=False,
    )
    return hist.astype(np.float32).reshape(-1)


def histogram_with_config(
    pixels: np.ndarray,
    config: HistogramConfig = DEFAULT_HIST_CONFIG,
    mask: Optional[np.ndarray] = None,
) -> np.ndarray:
    return compute_histogram(pixels, config.channels, config.bin_counts, config.ranges, mask)


def cell_histogram(pixels: np.ndarray, config: HistogramConfig = DEFAULT_HIST_CONFIG) -> np.ndarray:
    """Histogram of one field cell / swatch with the default ellipse mask."""
    h, w = pixels.shape[:2]
    if h == 0 or w == 0:
        raise EmptyRegion("region has zero area")
    mask = ellipse_mask(w, h, config.mask_height_ratio)
    return histogram_with_config(pixels, config, mask)


def mean_histogram(histograms: Sequence[np.ndarray]) -> np.ndarray:
    """Bin-wise arithmetic mean."""
    if not histograms:
        raise EmptyRegion("no histograms to average")
    lengths = {len(h) for h in histograms}
    if len(lengths) != 1:
        raise ChannelMismatch(f"histogram lengths differ: {sorted(lengths)}")
    return np.mean(np.stack(histograms).astype(np.float64), axis=0).astype(np.float32)
