# pipeline/profile_store.py
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from config.calibration import SWATCHES, SwatchLayout
from config.labels import LABEL_ORDER
from core.errors import MalformedProfile, OutOfBounds
from core.histogram import DEFAULT_HIST_CONFIG, HistogramConfig, cell_histogram, mean_histogram
from core.image_buffer import ImageBuffer, crop, to_hsv
from core.roi_manager import Rect
from pipeline.similarity import similarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ColorProfile:
    """label -> 기준 histogram. 항상 LABEL_ORDER 의 6개 라벨을 모두 가진다."""

    histograms: Mapping[str, np.ndarray]

    def __post_init__(self):
        missing = [label for label in LABEL_ORDER if label not in self.histograms]
        if missing:
            raise MalformedProfile(f"profile is missing labels: {missing}")
        extra = sorted(set(self.histograms) - set(LABEL_ORDER))
        if extra:
            raise MalformedProfile(f"profile has unknown labels: {extra}")

        lengths = {len(self.histograms[label]) for label in LABEL_ORDER}
        if len(lengths) != 1:
            raise MalformedProfile(f"profile histograms differ in length: {sorted(lengths)}")
        if lengths == {0}:
            raise MalformedProfile("profile histograms are empty")

        frozen = {}
        for label in LABEL_ORDER:
            arr = np.array(self.histograms[label], dtype=np.float32).reshape(-1)
            arr.setflags(write=False)
            frozen[label] = arr
        object.__setattr__(self, "histograms", MappingProxyType(frozen))

    @property
    def bin_count(self) -> int:
        return len(self.histograms[LABEL_ORDER[0]])

    def __getitem__(self, label: str) -> np.ndarray:
        return self.histograms[label]


ProfileSet = Mapping[str, ColorProfile]


# ======================
# Build (calibration image -> profile)
# ======================
def swatch_histograms(
    calibration: ImageBuffer,
    layout: SwatchLayout = SWATCHES,
    config: HistogramConfig = DEFAULT_HIST_CONFIG,
) -> Dict[str, List[np.ndarray]]:
    """
    캘리브레이션 이미지의 각 샘플(swatch)을 잘라서 타원 마스크 histogram 계산.
    반환: label -> [hist, ...]
    """
    hsv = to_hsv(calibration)
    need_w, need_h = layout.min_image_size
    if hsv.width < need_w or hsv.height < need_h:
        raise OutOfBounds(
            f"calibration image {hsv.width}x{hsv.height} is smaller than swatch layout {need_w}x{need_h}"
        )

    result: Dict[str, List[np.ndarray]] = {}
    for label in LABEL_ORDER:
        hists = []
        for x, y in layout.swatch_origins()[label]:
            view = crop(hsv, Rect(x, y, layout.swatch_width, layout.swatch_height))
            hists.append(cell_histogram(view.pixels, config))
        result[label] = hists
        logger.debug("swatches %s: %d samples", label, len(hists))
    return result


def build_profile(
    calibration: ImageBuffer,
    layout: SwatchLayout = SWATCHES,
    config: HistogramConfig = DEFAULT_HIST_CONFIG,
) -> ColorProfile:
    """Average the swatch histograms of each label into one reference histogram."""
    per_label = swatch_histograms(calibration, layout, config)
    return ColorProfile({label: mean_histogram(hists) for label, hists in per_label.items()})


# ======================
# Persistence
# ======================
def serialize_profile(profile: ColorProfile) -> Dict[str, List[float]]:
    return {label: profile[label].tolist() for label in LABEL_ORDER}


def load_profile(data: Mapping[str, Any], expected_bins: Optional[int] = None) -> ColorProfile:
    """
    label -> [float, ...] 를 ColorProfile 로 복원.
    라벨 누락 / 숫자 아님 / 음수 / 길이 불일치면 MalformedProfile.
    """
    if not isinstance(data, Mapping):
        raise MalformedProfile(f"profile must be a mapping, got {type(data).__name__}")
    unknown = sorted(set(data) - set(LABEL_ORDER))
    if unknown:
        raise MalformedProfile(f"profile has unknown labels: {unknown}")

    histograms: Dict[str, np.ndarray] = {}
    for label in LABEL_ORDER:
        if label not in data:
            raise MalformedProfile(f"profile is missing label '{label}'")
        values = data[label]
        if not isinstance(values, (list, tuple)) or not values:
            raise MalformedProfile(f"'{label}' must be a non-empty list of numbers")
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
            raise MalformedProfile(f"'{label}' contains non-numeric values")
        if not all(math.isfinite(v) and v >= 0 for v in values):
            raise MalformedProfile(f"'{label}' contains negative or non-finite values")
        # float32 로 바꾸면서 inf 가 되는 값 (예: 1e40)
        with np.errstate(over="ignore"):
            arr = np.asarray(values, dtype=np.float32)
        if not np.isfinite(arr).all():
            raise MalformedProfile(f"'{label}' has values out of float32 range")
        histograms[label] = arr

    profile = ColorProfile(histograms)
    if expected_bins is not None and profile.bin_count != expected_bins:
        raise MalformedProfile(
            f"profile has {profile.bin_count} bins, histogram config expects {expected_bins}"
        )
    return profile


def load_profile_set(path: Union[str, Path], expected_bins: Optional[int] = None) -> Dict[str, ColorProfile]:
    """
    JSON 파일 {profile_name: {label: [...]}} 로드.
    파일이 없거나 깨져 있으면 시작할 수 없으므로 MalformedProfile.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise MalformedProfile(f"profile file not found: {path}") from None
    except json.JSONDecodeError as e:
        raise MalformedProfile(f"profile file is not valid JSON: {path} ({e})") from e

    if not isinstance(raw, dict) or not raw:
        raise MalformedProfile(f"profile file has no profiles: {path}")

    profiles = {}
    for name, data in raw.items():
        try:
            profiles[name] = load_profile(data, expected_bins=expected_bins)
        except MalformedProfile as e:
            raise MalformedProfile(f"profile '{name}': {e.message}", details={"profile": name}) from e

    logger.info("loaded %d profile(s) from %s", len(profiles), path)
    return profiles


def save_profile_set(path: Union[str, Path], profiles: Mapping[str, ColorProfile]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {name: serialize_profile(profile) for name, profile in profiles.items()}
    path.write_text(json.dumps(payload), encoding="utf-8")
    logger.info("saved %d profile(s) to %s", len(payload), path)
    return path


# ======================
# Verification
# ======================
@dataclass(frozen=True)
class VerificationRecord:
    base: str
    sample_label: str
    sample_index: int
    scores: Mapping[str, float]  # metric -> similarity


@dataclass(frozen=True)
class VerificationSummary:
    records: Sequence[VerificationRecord]
    # metric -> (자기 라벨이 최고 점수인 샘플 수, 전체 샘플 수)
    self_match: Mapping[str, tuple]


def verify_profile(
    profile: ColorProfile,
    swatches: Mapping[str, Sequence[np.ndarray]],
    metrics: Sequence[str] = ("hellinger", "intersection"),
) -> VerificationSummary:
    """
    모든 샘플을 모든 라벨의 기준 histogram 과 비교해서 metric 별 점수를 남긴다.
    프로파일이 샘플을 잘 구분하는지 확인하는 용도.
    """
    records: List[VerificationRecord] = []
    hits = {m: 0 for m in metrics}
    total = 0

    for sample_label in LABEL_ORDER:
        for idx, hist in enumerate(swatches.get(sample_label, ())):
            total += 1
            per_metric_best: Dict[str, tuple] = {}
            for base in LABEL_ORDER:
                scores = {m: similarity(profile[base], hist, m) for m in metrics}
                records.append(VerificationRecord(base, sample_label, idx, scores))
                for m, s in scores.items():
                    if m not in per_metric_best or s > per_metric_best[m][0]:
                        per_metric_best[m] = (s, base)
            for m, (_, best) in per_metric_best.items():
                hits[m] += int(best == sample_label)

    return VerificationSummary(records=records, self_match={m: (hits[m], total) for m in metrics})
