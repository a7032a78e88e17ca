from __future__ import annotations

# ======================
# Standard library
# ======================
import argparse
import logging
from pathlib import Path

# ======================
# Local modules
# ======================
from config.path import PATHS

from app.capture import iter_frames, list_images
from app.loop import FrameOutcome, run_loop_with_provider
from app.settings import load_settings
from app.wiring import build_deps
from pipeline.field_matrix import format_field


# ======================
# Main
# ======================
def main() -> None:
    defaults = load_settings()

    parser = argparse.ArgumentParser()
    parser.add_argument("--testset", required=True)
    parser.add_argument("--limit", type=int, default=0)
    parser.add_argument("--player", type=int, default=defaults.player)
    parser.add_argument("--threshold", type=float, default=defaults.threshold)
    parser.add_argument("--profile", type=str, default=defaults.profile_name)
    parser.add_argument("--workers", type=int, default=defaults.workers)
    parser.add_argument("--debug_save", action="store_true")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    settings = defaults.with_overrides(
        player=args.player,
        threshold=args.threshold,
        profile_name=args.profile,
        workers=args.workers,
        debug_save=args.debug_save or defaults.debug_save,
    )

    test_dir = PATHS.TEST_FRAMES_DIR / args.testset
    if not test_dir.exists():
        raise FileNotFoundError(f"테스트셋 폴더 없음: {test_dir}")

    img_paths = list_images(test_dir)
    if not img_paths:
        raise FileNotFoundError(f"이미지 없음: {test_dir}")

    deps = build_deps(settings)

    print(f"📁 OFFLINE testset: {test_dir}")
    print(f"🖼 frames: {len(img_paths)} | player={settings.player} | threshold={settings.threshold}")
    print("====================================")

    def _report(outcome: FrameOutcome) -> None:
        print(f"\n#[{outcome.frame_id}]")
        if outcome.analysis is None:
            print(f" [SKIP] {outcome.error}")
            return
        results = outcome.analysis.results
        filled = sum(1 for column in results for r in column if not r.is_empty)
        print(format_field(results))
        print(f" filled={filled}")

    frames = ((p.name, f) for p, f in iter_frames(img_paths))
    outcomes = run_loop_with_provider(deps, frames, on_result=_report, limit=args.limit)

    print("\n====================================")
    print(f"✅ OFFLINE DONE. processed={len(outcomes)} / total={len(img_paths)}")


if __name__ == "__main__":
    main()
