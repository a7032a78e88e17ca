from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from app.frame_types import FieldAnalysis
from app.rois import build_player_fields
from app.wiring import AppDeps
from config.roi import ROI, ROISet
from core.histogram import DEFAULT_HIST_CONFIG, HistogramConfig, cell_histogram
from core.image_buffer import ImageBuffer, to_hsv
from core.roi_manager import Rect
from pipeline.classifier import DEFAULT_THRESHOLD, classify_field
from pipeline.profile_store import ColorProfile

logger = logging.getLogger(__name__)


def analyze_frame(
    frame: ImageBuffer,
    player: int,
    profile: ColorProfile,
    *,
    screen: Optional[Rect] = None,
    roi: ROISet = ROI,
    hist_config: HistogramConfig = DEFAULT_HIST_CONFIG,
    threshold: float = DEFAULT_THRESHOLD,
    metric: str = "hellinger",
    workers: int = 1,
) -> FieldAnalysis:
    """
    frame -> HSV -> 필드/셀 영역 -> 셀 histogram -> 분류.
    각 단계는 이전 결과만 받아서 새 결과를 만든다 (공유 상태 없음).
    """
    hsv = to_hsv(frame)

    with build_player_fields(hsv, player, screen_rect=screen, roi=roi) as fields:
        geometry = fields.geometry()
        # 모든 셀 histogram 을 먼저 다 계산하고 나서야 view 를 놓는다
        cell_hists = [
            [cell_histogram(cell.view.pixels, hist_config) for cell in column]
            for column in fields.cells
        ]

    results = classify_field(cell_hists, profile, threshold=threshold, metric=metric, workers=workers)
    return FieldAnalysis(player=player, geometry=geometry, results=results)


@dataclass
class FieldAnalyzer:
    deps: AppDeps

    def analyze(self, frame: ImageBuffer, player: Optional[int] = None) -> FieldAnalysis:
        s = self.deps.settings
        screen = Rect(*s.screen) if s.screen is not None else None
        return analyze_frame(
            frame,
            s.player if player is None else player,
            self.deps.profile,
            screen=screen,
            roi=self.deps.roi,
            hist_config=self.deps.hist_config,
            threshold=s.threshold,
            metric=s.metric,
            workers=s.workers,
        )
