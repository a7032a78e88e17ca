from __future__ import annotations

# ======================
# Standard library
# ======================
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# ======================
# Local modules
# ======================
from app.capture import iter_frames
from app.loop import FrameOutcome, run_loop_with_provider
from app.settings import Settings, load_settings
from app.wiring import build_deps
from core.errors import MalformedProfile, PuyoVisionError
from core.image_buffer import open_frame
from pipeline.field_matrix import format_field, to_code_matrix
from pipeline.profile_store import (
    build_profile,
    load_profile_set,
    save_profile_set,
    swatch_histograms,
    verify_profile,
)
from pipeline.similarity import METRICS

logger = logging.getLogger(__name__)


# ======================
# Commands
# ======================
def cmd_build_profile(args: argparse.Namespace, settings: Settings) -> int:
    path = Path(args.profiles) if args.profiles else settings.profiles_path
    calibration = open_frame(args.calibration)

    profile = build_profile(calibration)

    profiles = {}
    if path.exists():
        profiles = dict(load_profile_set(path))
    profiles[args.name] = profile
    save_profile_set(path, profiles)
    print(f"✅ profile '{args.name}' ({profile.bin_count} bins) -> {path}")

    if args.verify:
        summary = verify_profile(profile, swatch_histograms(calibration), metrics=sorted(METRICS))
        for metric, (hits, total) in summary.self_match.items():
            print(f" {metric:<13} self-match {hits}/{total}")
        if args.verbose:
            for r in summary.records:
                scores = " ".join(f"{m}={s:.3f}" for m, s in r.scores.items())
                print(f"  base={r.base:<8} sample={r.sample_label}[{r.sample_index}] {scores}")
    return 0


def _print_outcome(outcome: FrameOutcome) -> None:
    print(f"\n# {outcome.frame_id}")
    if outcome.analysis is None:
        print(f" [SKIP] {outcome.error}")
        return
    print(format_field(outcome.analysis.results))
    print(" matrix:", to_code_matrix(outcome.analysis.results))


def cmd_analyze(args: argparse.Namespace, settings: Settings) -> int:
    settings = settings.with_overrides(
        profiles_path=Path(args.profiles) if args.profiles else None,
        profile_name=args.profile,
        threshold=args.threshold,
        metric=args.metric,
        workers=args.workers,
        player=args.player,
        screen=tuple(args.screen) if args.screen else None,
        debug_save=True if args.debug_save else None,
    )
    deps = build_deps(settings)

    frames = ((str(p), f) for p, f in iter_frames([Path(p) for p in args.frames]))
    outcomes = run_loop_with_provider(deps, frames, on_result=_print_outcome)

    skipped = sum(1 for o in outcomes if o.analysis is None)
    print(f"\n✅ DONE. analyzed={len(outcomes) - skipped} skipped={skipped}")
    return 0


# ======================
# Parser
# ======================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="puyo-field",
        description="Read Puyo Puyo field cells from screen captures using color histograms.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--env-file", type=str, default=None, help=".env file to load")
    sub = parser.add_subparsers(dest="command", required=True)

    p_build = sub.add_parser("build-profile", help="build a color profile from a skin image")
    p_build.add_argument("calibration", type=str, help="skin/calibration image (png)")
    p_build.add_argument("--name", required=True, help="profile name, e.g. puyo_aqua")
    p_build.add_argument("--profiles", type=str, default=None, help="profiles JSON path")
    p_build.add_argument("--verify", action="store_true", help="score every swatch against the profile")
    p_build.set_defaults(func=cmd_build_profile)

    p_an = sub.add_parser("analyze", help="classify field cells of captured frames")
    p_an.add_argument("frames", nargs="+", help="frame image files")
    p_an.add_argument("--player", type=int, choices=(1, 2), default=None)
    p_an.add_argument("--profile", type=str, default=None)
    p_an.add_argument("--profiles", type=str, default=None)
    p_an.add_argument("--threshold", type=float, default=None)
    p_an.add_argument("--metric", choices=sorted(METRICS), default=None)
    p_an.add_argument("--workers", type=int, default=None)
    p_an.add_argument("--screen", type=float, nargs=4, metavar=("X", "Y", "W", "H"), default=None)
    p_an.add_argument("--debug-save", action="store_true", help="write ROI overlays")
    p_an.set_defaults(func=cmd_analyze)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(Path(args.env_file) if args.env_file else None)
        return args.func(args, settings)
    except MalformedProfile as e:
        logger.error("cannot start without a valid profile: %s", e)
        return 2
    except (PuyoVisionError, ValueError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
