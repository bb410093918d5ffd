from __future__ import annotations

import dataclasses
from types import SimpleNamespace

import numpy as np
import pytest

from hand_metrics.features.frame import (
    FrameAssembler,
    assemble_frame,
    normalize_handedness,
    normalize_landmark,
    normalize_landmarks,
)
from hand_metrics.features.hand_skeleton import FINGER_NAMES
from hand_metrics.types import Landmark, RawHand


def test_zero_hands_gives_empty_list():
    assert assemble_frame([], timestamp=1.0) == []
    assert assemble_frame(None, timestamp=1.0) == []


def test_order_and_handedness_preserved(make_raw_hand):
    hands = [make_raw_hand("Left"), make_raw_hand("right")]
    records = assemble_frame(hands, timestamp=42.5)
    assert [r.handedness for r in records] == ["Left", "Right"]
    assert all(r.timestamp == 42.5 for r in records)
    assert all(len(r.landmarks) == 21 for r in records)
    assert all(tuple(r.finger_angles) == FINGER_NAMES for r in records)


@pytest.mark.parametrize("count", [0, 20, 22])
def test_wrong_landmark_count_is_skipped(make_raw_hand, count):
    points = [(0.1, 0.2, 0.0)] * count
    hands = [make_raw_hand("Left", points), make_raw_hand("Right")]
    records = assemble_frame(hands, timestamp=0.0)
    assert len(records) == 1
    assert records[0].handedness == "Right"


def test_unknown_handedness_is_skipped(make_raw_hand):
    records = assemble_frame([make_raw_hand("unknown"), make_raw_hand("Left")], timestamp=0.0)
    assert [r.handedness for r in records] == ["Left"]


def test_missing_landmark_slot_zero_fills(make_raw_hand):
    hand = make_raw_hand()
    points = list(hand.landmarks)
    points[20] = None
    records = assemble_frame([RawHand("Right", points)], timestamp=0.0)
    assert len(records) == 1
    record = records[0]
    assert record.landmarks[20] is None
    assert record.finger_angles["Pinky"] == 0.0
    assert len(record.finger_angles) == 5
    assert len(record.finger_pair_angles) == 3


def test_corrupt_hand_does_not_block_others(make_raw_hand):
    points = list(make_raw_hand().landmarks)
    points[6] = (float("nan"), 0.5, 0.0)
    faults = []
    records = assemble_frame(
        [RawHand("Left", points), make_raw_hand("Right")],
        timestamp=0.0,
        on_fault=lambda idx, exc: faults.append((idx, exc)),
    )
    assert [r.handedness for r in records] == ["Right"]
    assert len(faults) == 1
    assert faults[0][0] == 0
    assert isinstance(faults[0][1], ValueError)


def test_annotate_called_per_record_with_detector_index(make_raw_hand):
    calls = []
    hands = [make_raw_hand("Left", []), make_raw_hand("Right"), make_raw_hand("Left")]
    records = assemble_frame(
        hands,
        timestamp=0.0,
        annotate=lambda record, idx: calls.append((record.handedness, idx)),
    )
    assert len(records) == 2
    assert calls == [("Right", 1), ("Left", 2)]


def test_annotate_failure_keeps_records(make_raw_hand):
    def broken(record, idx):
        raise RuntimeError("draw failed")

    records = assemble_frame([make_raw_hand(), make_raw_hand("Left")], timestamp=0.0, annotate=broken)
    assert len(records) == 2


def test_records_are_frozen(make_raw_hand):
    record = assemble_frame([make_raw_hand()], timestamp=0.0)[0]
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.gap = 1.0


def test_normalize_landmark_formats():
    assert normalize_landmark({"x": 0.1, "y": 0.2}) == Landmark(0.1, 0.2, 0.0)
    assert normalize_landmark(SimpleNamespace(x=0.1, y=0.2, z=0.3)) == Landmark(0.1, 0.2, 0.3)
    assert normalize_landmark(SimpleNamespace(x=0.1, y=0.2)) == Landmark(0.1, 0.2, 0.0)
    assert normalize_landmark((1, 2)) == Landmark(1.0, 2.0, 0.0)
    assert normalize_landmark(np.array([0.5, 0.25, -0.1])) == Landmark(0.5, 0.25, -0.1)
    assert normalize_landmark(None) is None
    assert normalize_landmark("bad") is None
    assert normalize_landmark({"x": "a", "y": 0.2}) is None
    assert normalize_landmark({"x": 0.1, "y": 0.2, "z": None}) == Landmark(0.1, 0.2, 0.0)


def test_normalize_landmarks_keeps_slots():
    points = normalize_landmarks([(0.0, 0.0), None, (1.0, 1.0, 1.0)])
    assert points == (Landmark(0.0, 0.0, 0.0), None, Landmark(1.0, 1.0, 1.0))


def test_normalize_handedness():
    assert normalize_handedness("LEFT") == "Left"
    assert normalize_handedness(" right ") == "Right"
    assert normalize_handedness("") is None
    assert normalize_handedness(None) is None
    assert normalize_handedness("both") is None


def test_frame_assembler_uses_clock_and_default_annotate(make_raw_hand):
    seen = []
    assembler = FrameAssembler(annotate=lambda r, i: seen.append(i), clock=lambda: 99.0)
    records = assembler.process_frame([make_raw_hand()])
    assert records[0].timestamp == 99.0
    assert seen == [0]

    override = []
    records = assembler.process_frame(
        [make_raw_hand()], timestamp=5.0, annotate=lambda r, i: override.append(i)
    )
    assert records[0].timestamp == 5.0
    assert override == [0]
    assert seen == [0]


def test_frame_assembler_is_stateless(make_raw_hand):
    assembler = FrameAssembler(clock=lambda: 1.0)
    first = assembler.process_frame([make_raw_hand(), make_raw_hand("Left")])
    assert assembler.process_frame([]) == []
    again = assembler.process_frame([make_raw_hand(), make_raw_hand("Left")])
    assert first == again


@pytest.mark.parametrize(
    "slot,value",
    [(0, (float("nan"), 0.5, 0.0)), (19, (0.5, float("inf"), 0.0)), (3, (0.5, 0.5, float("-inf")))],
)
def test_corrupt_slot_outside_metric_joints_is_faulted(make_raw_hand, slot, value):
    points = list(make_raw_hand().landmarks)
    points[slot] = value
    faults = []
    records = assemble_frame(
        [RawHand("Left", points), make_raw_hand("Right")],
        timestamp=0.0,
        on_fault=lambda idx, exc: faults.append((idx, exc)),
    )
    assert [r.handedness for r in records] == ["Right"]
    assert [idx for idx, _ in faults] == [0]
    assert faults[0][1].index == slot


@pytest.mark.parametrize(
    "entry",
    [
        None,
        RawHand("Left", 5),
        RawHand("Left", None),
        SimpleNamespace(handedness="Left"),
    ],
)
def test_unreadable_hand_entry_is_skipped(make_raw_hand, entry):
    records = assemble_frame([entry, make_raw_hand("Right")], timestamp=0.0)
    assert [r.handedness for r in records] == ["Right"]


def test_entry_without_handedness_is_skipped(make_raw_hand):
    entry = SimpleNamespace(landmarks=make_raw_hand().landmarks)
    records = assemble_frame([entry, make_raw_hand("Left")], timestamp=0.0)
    assert [r.handedness for r in records] == ["Left"]


def test_overflowing_coordinate_becomes_missing_slot(make_raw_hand):
    assert normalize_landmark((10**400, 0.1)) is None
    assert normalize_landmark({"x": 0.1, "y": 0.2, "z": 10**400}) == Landmark(0.1, 0.2, 0.0)

    points = list(make_raw_hand().landmarks)
    points[0] = (10**400, 0.9, 0.0)
    records = assemble_frame([RawHand("Right", points)], timestamp=0.0)
    assert len(records) == 1
    assert records[0].landmarks[0] is None
