from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from app.settings import Settings
from config.roi import ROI, ROISet
from core.errors import MalformedProfile
from core.histogram import DEFAULT_HIST_CONFIG, HistogramConfig
from pipeline.profile_store import ColorProfile, load_profile_set
from pipeline.similarity import METRICS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppDeps:
    settings: Settings
    profiles: Mapping[str, ColorProfile]
    profile: ColorProfile
    hist_config: HistogramConfig
    roi: ROISet


def build_deps(
    settings: Settings,
    profiles: Optional[Mapping[str, ColorProfile]] = None,
    hist_config: HistogramConfig = DEFAULT_HIST_CONFIG,
    roi: ROISet = ROI,
) -> AppDeps:
    """
    파이프라인을 만들기 전에 딱 한 번 호출하는 초기화 단계.
    프로파일 로드/검증이 실패하면 MalformedProfile 을 던지고, 분류는 시작하지 않는다.
    """
    if not 0.0 <= settings.threshold <= 1.0:
        raise ValueError(f"threshold must be in [0, 1], got {settings.threshold}")
    if settings.metric not in METRICS:
        raise ValueError(f"unknown metric '{settings.metric}'; known: {sorted(METRICS)}")
    if settings.workers < 1:
        raise ValueError(f"workers must be >= 1, got {settings.workers}")
    roi.player(settings.player)

    if profiles is None:
        profiles = load_profile_set(settings.profiles_path, expected_bins=hist_config.length)

    if settings.profile_name not in profiles:
        raise MalformedProfile(
            f"profile '{settings.profile_name}' not found; available: {sorted(profiles)}"
        )
    profile = profiles[settings.profile_name]
    if profile.bin_count != hist_config.length:
        raise MalformedProfile(
            f"profile '{settings.profile_name}' has {profile.bin_count} bins, "
            f"histogram config expects {hist_config.length}"
        )

    logger.info(
        "ready: profile=%s bins=%d threshold=%.3f metric=%s workers=%d",
        settings.profile_name,
        profile.bin_count,
        settings.threshold,
        settings.metric,
        settings.workers,
    )
    return AppDeps(
        settings=settings,
        profiles=profiles,
        profile=profile,
        hist_config=hist_config,
        roi=roi,
    )
