import json

import numpy as np
import pytest

from config.calibration import SWATCHES
from config.labels import LABEL_ORDER
from core.errors import MalformedProfile, OutOfBounds
from core.histogram import ellipse_mask
from core.image_buffer import ColorSpace, ImageBuffer
from pipeline.profile_store import (
    ColorProfile,
    build_profile,
    load_profile,
    load_profile_set,
    save_profile_set,
    serialize_profile,
    swatch_histograms,
    verify_profile,
)

from conftest import EXPECTED_BIN, make_calibration_image, one_hot

MASK_PIXELS = int(np.count_nonzero(ellipse_mask(SWATCHES.swatch_width, SWATCHES.swatch_height)))


# ----------------------------
# build
# ----------------------------
def test_profile_peaks_at_swatch_color(profile):
    assert profile.bin_count == 1800
    for label in LABEL_ORDER:
        assert int(np.argmax(profile[label])) == EXPECTED_BIN[label]
        assert profile[label][EXPECTED_BIN[label]] == pytest.approx(MASK_PIXELS)


def test_swatch_sample_counts(calibration):
    per_label = swatch_histograms(calibration)
    assert [len(per_label[label]) for label in LABEL_ORDER] == [16, 16, 16, 16, 16, 1]


def test_profile_is_mean_of_swatches():
    """
    빨강 샘플 절반을 어두운 빨강으로 -> 두 bin 에 반반
    """
    img = make_calibration_image()
    for x, y in SWATCHES.swatch_origins()["red"][:8]:
        img.pixels[y : y + SWATCHES.swatch_height, x : x + SWATCHES.swatch_width] = (200, 0, 0)

    red = build_profile(img)["red"]
    dark_bin = 0 * 100 + 9 * 10 + 7

    assert red[dark_bin] == pytest.approx(MASK_PIXELS / 2)
    assert red[EXPECTED_BIN["red"]] == pytest.approx(MASK_PIXELS / 2)
    assert red.sum() == pytest.approx(MASK_PIXELS)


def test_calibration_too_small():
    small = ImageBuffer(np.zeros((100, 100, 3), dtype=np.uint8), ColorSpace.RGB)
    with pytest.raises(OutOfBounds):
        build_profile(small)


def test_profile_arrays_are_read_only(profile):
    with pytest.raises(ValueError):
        profile["red"][0] = 5.0
    with pytest.raises(TypeError):
        profile.histograms["red"] = np.zeros(1800)


def test_profile_requires_all_labels():
    hists = {label: one_hot(1) for label in LABEL_ORDER[:-1]}
    with pytest.raises(MalformedProfile):
        ColorProfile(hists)


def test_profile_rejects_empty_histograms():
    with pytest.raises(MalformedProfile):
        ColorProfile({label: np.zeros(0, dtype=np.float32) for label in LABEL_ORDER})


def test_profile_rejects_mixed_lengths():
    hists = {label: one_hot(1) for label in LABEL_ORDER}
    hists["garbage"] = one_hot(1, length=10)
    with pytest.raises(MalformedProfile):
        ColorProfile(hists)


# ----------------------------
# persistence
# ----------------------------
def test_serialize_then_load_is_bin_for_bin_equal(profile):
    data = json.loads(json.dumps(serialize_profile(profile)))
    restored = load_profile(data, expected_bins=1800)

    for label in LABEL_ORDER:
        assert np.array_equal(restored[label], profile[label])


def _valid_data():
    return {label: [0.0, 1.0, 2.0] for label in LABEL_ORDER}


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("purple"),
        lambda d: d.__setitem__("red", []),
        lambda d: d.__setitem__("red", "0,1,2"),
        lambda d: d.__setitem__("green", [0.0, "x", 1.0]),
        lambda d: d.__setitem__("green", [0.0, True, 1.0]),
        lambda d: d.__setitem__("blue", [0.0, -1.0, 1.0]),
        lambda d: d.__setitem__("blue", [0.0, float("nan"), 1.0]),
        lambda d: d.__setitem__("blue", [0.0, 1e40, 1.0]),
        lambda d: d.__setitem__("yellow", [0.0, 1.0]),
        lambda d: d.__setitem__("cyan", [0.0, 1.0, 2.0]),
    ],
    ids=[
        "missing", "empty", "not-list", "non-numeric", "bool",
        "negative", "nan", "float32-overflow", "length", "unknown-label",
    ],
)
def test_malformed_profile_data(mutate):
    data = _valid_data()
    mutate(data)
    with pytest.raises(MalformedProfile):
        load_profile(data)


def test_profile_must_be_mapping():
    with pytest.raises(MalformedProfile):
        load_profile([[0.0, 1.0]])


def test_expected_bins_mismatch():
    with pytest.raises(MalformedProfile):
        load_profile(_valid_data(), expected_bins=1800)


def test_save_and_load_profile_set(tmp_path, profile):
    path = save_profile_set(tmp_path / "nested" / "profiles.json", {"puyo_aqua": profile})
    assert path.exists()

    profiles = load_profile_set(path, expected_bins=1800)
    assert list(profiles) == ["puyo_aqua"]
    assert np.array_equal(profiles["puyo_aqua"]["garbage"], profile["garbage"])


def test_load_profile_set_missing_file(tmp_path):
    with pytest.raises(MalformedProfile):
        load_profile_set(tmp_path / "nope.json")


def test_load_profile_set_bad_json(tmp_path):
    p = tmp_path / "profiles.json"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedProfile):
        load_profile_set(p)


def test_load_profile_set_reports_profile_name(tmp_path):
    p = tmp_path / "profiles.json"
    p.write_text(json.dumps({"broken": {"red": [1.0]}}), encoding="utf-8")
    with pytest.raises(MalformedProfile) as e:
        load_profile_set(p)
    assert e.value.details == {"profile": "broken"}


# ----------------------------
# verification
# ----------------------------
def test_verify_profile_self_match(calibration, profile):
    swatches = swatch_histograms(calibration)
    summary = verify_profile(profile, swatches)

    assert summary.self_match == {"hellinger": (81, 81), "intersection": (81, 81)}
    # 샘플 81개 x 기준 라벨 6개
    assert len(summary.records) == 81 * 6

    rec = next(r for r in summary.records if r.base == "red" and r.sample_label == "red")
    assert rec.scores["hellinger"] == pytest.approx(1.0, abs=1e-6)
    other = next(r for r in summary.records if r.base == "blue" and r.sample_label == "red")
    assert other.scores["intersection"] == pytest.approx(0.0, abs=1e-6)
