"""Tests for speed recalculation, unit conversion and result reporting."""

import json
from dataclasses import replace

import pytest

from tracking.speed_recalculator import recalculate_speeds
from utils.errors import ConfigurationError
from utils.report import AnalysisResult, FrameRecord
from utils.speed import peak_speed, pixels_per_frame_to_kph, scale_from_reference


def normalized_box(cx, cy, size=10.0, frame=640.0):
    return ((cx - size / 2) / frame, (cy - size / 2) / frame, size / frame, size / frame)


def edited_result(centers):
    frames = tuple(
        FrameRecord(timestamp=i / 30, bounding_box=normalized_box(*c) if c is not None else None)
        for i, c in enumerate(centers)
    )
    return AnalysisResult(frames=frames, frame_rate=30.0, frame_width=640, frame_height=640,
                          meters_per_pixel=0.01)


def test_recalculation_rebuilds_speeds_and_points():
    result = edited_result([(100.0, 100.0), (110.0, 100.0), None, (130.0, 100.0)])

    recalculated = recalculate_speeds(result)
    frames = recalculated.frames

    assert frames[0].speed_kph is None
    assert frames[0].tracked_point == pytest.approx((100.0, 100.0))
    assert frames[1].speed_kph == pytest.approx(10.8, rel=0.01)
    # Gap frame coasts on the prediction
    assert frames[2].bounding_box is None
    assert frames[2].tracked_point == pytest.approx((120.0, 100.0), abs=0.1)
    assert frames[3].speed_kph == pytest.approx(10.8, rel=0.01)
    assert [f.bounding_box for f in frames] == [f.bounding_box for f in result.frames]
    assert [f.timestamp for f in frames] == [f.timestamp for f in result.frames]


def test_removing_first_box_moves_the_seed():
    result = edited_result([(100.0, 100.0), (110.0, 100.0), (120.0, 100.0)])
    edited = replace(result, frames=(replace(result.frames[0], bounding_box=None),) + result.frames[1:])

    frames = recalculate_speeds(edited).frames

    assert frames[0].tracked_point is None
    assert frames[0].speed_kph is None
    assert frames[1].speed_kph is None
    assert frames[2].speed_kph == pytest.approx(10.8, rel=0.01)


def test_recalculation_does_not_modify_input():
    result = edited_result([(100.0, 100.0), (110.0, 100.0)])

    recalculate_speeds(result)

    assert all(f.speed_kph is None for f in result.frames)


def test_peak_speed():
    assert peak_speed([None, 12.5, 80.1, None, 40.0]) == 80.1
    assert peak_speed([None, None]) == 0.0
    assert AnalysisResult().peak_speed_kph == 0.0


def test_unit_conversion():
    assert pixels_per_frame_to_kph(10.0, 30.0, 0.01) == pytest.approx(10.8)
    assert pixels_per_frame_to_kph(0.0, 60.0, 0.01) == 0.0


def test_scale_from_reference_distance():
    assert scale_from_reference(6.1, (100.0, 500.0), (710.0, 500.0)) == pytest.approx(0.01)
    assert scale_from_reference(5.0, (0.0, 0.0), (300.0, 400.0)) == pytest.approx(0.01)

    with pytest.raises(ConfigurationError):
        scale_from_reference(6.1, (10.0, 10.0), (10.0, 10.0))
    with pytest.raises(ConfigurationError):
        scale_from_reference(0.0, (0.0, 0.0), (10.0, 0.0))


def test_report_dictionary_is_json_serializable():
    result = recalculate_speeds(edited_result([(100.0, 100.0), None, (120.0, 100.0)]))

    report = json.loads(json.dumps(result.to_dict()))

    assert report['total_frames'] == 3
    assert report['detected_frames'] == 2
    assert report['peak_speed_kph'] == pytest.approx(result.peak_speed_kph)
    assert report['frames'][1]['bounding_box'] is None
    assert AnalysisResult.from_dict(report) == result
