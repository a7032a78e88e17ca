from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from itertools import islice
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from app.field_analyzer import FieldAnalyzer
from app.frame_types import FieldAnalysis
from app.overlay import save_overlay
from app.wiring import AppDeps
from config.path import PATHS
from core.errors import OutOfBounds
from core.image_buffer import ImageBuffer

logger = logging.getLogger(__name__)

FrameProvider = Iterable[Tuple[str, ImageBuffer]]
# (frame_id, frame) 를 순서대로 내놓는 iterable


@dataclass(frozen=True)
class FrameOutcome:
    frame_id: str
    analysis: Optional[FieldAnalysis]
    error: Optional[str] = None


def run_loop_with_provider(
    deps: AppDeps,
    frame_provider: FrameProvider,
    on_result: Optional[Callable[[FrameOutcome], None]] = None,
    limit: int = 0,
    stop_event: Optional[threading.Event] = None,
) -> List[FrameOutcome]:
    """
    프레임마다 분석. OutOfBounds 는 그 프레임만 건너뛰고 다음 프레임으로 진행.
    그 외 오류(설정/프로그래밍 오류)는 그대로 올린다.
    """
    analyzer = FieldAnalyzer(deps)
    settings = deps.settings
    outcomes: List[FrameOutcome] = []

    def _stopped() -> bool:
        if stop_event is not None and stop_event.is_set():
            logger.info("stop_event set -> exit loop")
            return True
        return False

    if _stopped():
        return outcomes

    # limit 이 있으면 provider 에서 그 이상 꺼내지 않는다 (iter_frames 는 꺼낼 때 파일을 연다)
    frames = islice(frame_provider, limit) if limit else frame_provider
    for frame_id, frame in frames:
        try:
            analysis = analyzer.analyze(frame)
        except OutOfBounds as e:
            logger.warning("skip frame %s: %s", frame_id, e)
            outcome = FrameOutcome(frame_id, None, error=str(e))
        else:
            outcome = FrameOutcome(frame_id, analysis)
            if settings.debug_save:
                path = PATHS.OVERLAY_DIR / f"{Path(str(frame_id)).stem}_p{analysis.player}.png"
                save_overlay(frame, analysis, path)
                logger.debug("overlay saved: %s", path)

        outcomes.append(outcome)
        if on_result is not None:
            on_result(outcome)

        if settings.sleep_sec:
            time.sleep(settings.sleep_sec)
        if _stopped():
            break

    return outcomes
