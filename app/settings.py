from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from config.path import PATHS


@dataclass(frozen=True)
class Settings:
    profiles_path: Path = PATHS.PROFILES_JSON
    profile_name: str = "puyo_aqua"

    threshold: float = 0.15
    metric: str = "hellinger"
    workers: int = 1

    player: int = 1
    # 프레임 안 게임 화면 (x, y, w, h) px. None 이면 프레임 전체
    screen: Optional[Tuple[float, float, float, float]] = None

    sleep_sec: float = 0.0
    debug_save: bool = False

    def with_overrides(self, **kwargs) -> "Settings":
        """None 이 아닌 값만 덮어쓴다 (CLI 인자용)."""
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_typed(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} has invalid value {raw!r}") from None


def _parse_screen(raw: str) -> Tuple[float, float, float, float]:
    parts = [p for p in raw.replace(",", " ").split() if p]
    if len(parts) != 4:
        raise ValueError("expected 4 numbers: x y w h")
    x, y, w, h = (float(p) for p in parts)
    return x, y, w, h


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    .env (python-dotenv) + 환경변수에서 설정을 읽는다.
    이미 설정된 환경변수가 .env 보다 우선.
    """
    load_dotenv(dotenv_path=env_file, override=False)
    d = Settings()

    return Settings(
        profiles_path=_env_typed("PUYO_PROFILES_PATH", Path, d.profiles_path),
        profile_name=_env_typed("PUYO_PROFILE", str, d.profile_name),
        threshold=_env_typed("PUYO_THRESHOLD", float, d.threshold),
        metric=_env_typed("PUYO_METRIC", str, d.metric),
        workers=_env_typed("PUYO_WORKERS", int, d.workers),
        player=_env_typed("PUYO_PLAYER", int, d.player),
        screen=_env_typed("PUYO_SCREEN", _parse_screen, d.screen),
        sleep_sec=_env_typed("PUYO_SLEEP_SEC", float, d.sleep_sec),
        debug_save=_env_bool("PUYO_DEBUG_SAVE", d.debug_save),
    )
