# config/path.py
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class Paths:
    DATA_DIR: Path = PROJECT_ROOT / "data"
    PROFILES_JSON: Path = DATA_DIR / "profiles.json"

    CAPTURE_DIR: Path = PROJECT_ROOT / "captured_images"
    OVERLAY_DIR: Path = CAPTURE_DIR / "overlays"

    TEST_IMAGES_DIR: Path = CAPTURE_DIR / "test_images"
    TEST_FRAMES_DIR: Path = TEST_IMAGES_DIR / "frames"


PATHS = Paths()
