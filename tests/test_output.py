from __future__ import annotations

import io
import json

from hand_metrics.features.frame import assemble_frame
from hand_metrics.io.output import JsonlEmitter, frame_to_dict, record_to_dict
from hand_metrics.types import RawHand


def test_record_to_dict_uses_string_pair_keys(make_raw_hand):
    record = assemble_frame([make_raw_hand("Left")], timestamp=1700000000.12345)[0]
    data = record_to_dict(record)
    assert set(data) == {
        "landmarks",
        "fingerAngles",
        "sideBendAngles",
        "fingerPairAngles",
        "handedness",
        "gap",
        "timestamp",
    }
    assert list(data["fingerPairAngles"]) == ["4_8", "8_12", "12_16", "16_20"]
    assert list(data["fingerAngles"]) == ["Thumb", "Index", "Middle", "Ring", "Pinky"]
    assert data["handedness"] == "Left"
    assert data["timestamp"] == 1700000000.123
    assert data["landmarks"][0] == {"x": 0.5, "y": 0.9, "z": 0.0}


def test_missing_landmarks_serialize_as_null(make_raw_hand):
    points = list(make_raw_hand().landmarks)
    points[8] = None
    record = assemble_frame([RawHand("Right", points)], timestamp=0.0)[0]
    data = record_to_dict(record, precision=None)
    assert data["landmarks"][8] is None
    assert "4_8" not in data["fingerPairAngles"]
    assert data["gap"] == 0.0


def test_emit_frame_writes_one_json_line(make_raw_hand):
    stream = io.StringIO()
    emitter = JsonlEmitter(stream)
    records = assemble_frame([make_raw_hand(), make_raw_hand("Left")], timestamp=3.0)
    emitter.emit_frame(records, frame_index=7, timestamp=3.0)
    emitter.emit_frame([], frame_index=8, timestamp=3.5)

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["frame"] == 7
    assert [hand["handedness"] for hand in first["hands"]] == ["Right", "Left"]
    assert json.loads(lines[1]) == {"ts": 3.5, "frame": 8, "hands": []}


def test_frame_to_dict_empty():
    assert frame_to_dict([], frame_index=0, timestamp=0.0) == {"ts": 0.0, "frame": 0, "hands": []}


def test_record_to_dict_with_angle_matrix(make_raw_hand):
    record = assemble_frame([make_raw_hand()], timestamp=0.0)[0]
    assert "angleMatrix" not in record_to_dict(record)

    matrix = record_to_dict(record, include_matrix=True)["angleMatrix"]
    assert [entry["label"] for entry in matrix] == [
        "Thumb", "Index", "Middle", "Ring", "Pinky", "4–8", "8–12", "12–16", "16–20",
    ]
    for entry in matrix:
        assert set(entry) == {"label", "angle", "normalized"}
        assert 0.0 <= entry["normalized"] <= 1.0


def test_emitter_writes_angle_matrix_when_enabled(make_raw_hand):
    stream = io.StringIO()
    records = assemble_frame([make_raw_hand()], timestamp=1.0)
    JsonlEmitter(stream, include_matrix=True).emit_frame(records, frame_index=0, timestamp=1.0)
    hand = json.loads(stream.getvalue())["hands"][0]
    assert len(hand["angleMatrix"]) == 9


def test_corrupt_hand_never_reaches_emitter(make_raw_hand):
    points = list(make_raw_hand().landmarks)
    points[0] = (float("nan"), 0.5, 0.0)
    records = assemble_frame([RawHand("Left", points), make_raw_hand("Right")], timestamp=0.0)

    stream = io.StringIO()
    JsonlEmitter(stream).emit_frame(records, frame_index=0, timestamp=0.0)
    hands = json.loads(stream.getvalue())["hands"]
    assert [hand["handedness"] for hand in hands] == ["Right"]
