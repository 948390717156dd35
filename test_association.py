"""Tests for candidate scoring and the plausibility gate."""

import numpy as np
import pytest

from detection.detection import Detection
from tracking.association import AssociationGate
from tracking.track import Track
from utils.errors import ConfigurationError

# A 640x640 frame letterboxes onto a 640x640 input unchanged
INPUT_SIZE = (640, 640)
FRAME_SIZE = (640, 640)
FPS = 30.0


def box_at(cx, cy, confidence, size=10.0):
    return Detection((cx - size / 2, cy - size / 2, size, size), confidence)


def moving_track(points=((100.0, 100.0), (110.0, 100.0))):
    """A live track fed one measurement per frame."""
    track = Track.create()
    for point in points:
        track.predict()
        track.update(point)
    return track


def test_rank_without_prediction_uses_neutral_proximity():
    gate = AssociationGate()

    ranked = gate.rank([box_at(50, 50, 0.4), box_at(500, 500, 0.8)], None, INPUT_SIZE, FRAME_SIZE)

    assert [c.score for c in ranked] == pytest.approx([0.3 * 0.8 + 0.35, 0.3 * 0.4 + 0.35])
    assert ranked[0].pixel_box.center == (500.0, 500.0)


def test_rank_prefers_candidates_near_prediction():
    gate = AssociationGate()

    ranked = gate.rank([box_at(400, 400, 0.95), box_at(130, 100, 0.5)], (120.0, 100.0), INPUT_SIZE, FRAME_SIZE)

    # Proximity normaliser is 640 / 4 = 160 px
    assert ranked[0].pixel_box.center == (130.0, 100.0)
    assert ranked[0].score == pytest.approx(0.3 * 0.5 + 0.7 * (1 - 10 / 160))
    assert ranked[1].score == pytest.approx(0.3 * 0.95)


def test_uninitialized_track_accepts_best_candidate_unconditionally():
    gate = AssociationGate()
    track = Track.create()

    decision = gate.select([box_at(20, 20, 0.3), box_at(600, 600, 0.9)], track, None,
                           INPUT_SIZE, FRAME_SIZE, FPS, 0.01)

    assert decision.pixel_box.center == (600.0, 600.0)
    assert decision.speed_kph is None
    assert not track.initialized


def test_no_candidates_selects_nothing():
    gate = AssociationGate()

    assert gate.select([], Track.create(), None, INPUT_SIZE, FRAME_SIZE, FPS, 0.01) is None


def test_live_track_accepts_plausible_candidate_near_prediction():
    gate = AssociationGate()
    track = moving_track()
    predicted = track.predict()

    decision = gate.select([box_at(400, 400, 0.95), box_at(130, 100, 0.5)], track, predicted,
                           INPUT_SIZE, FRAME_SIZE, FPS, 0.01)

    assert decision.pixel_box.center == (130.0, 100.0)
    assert 5.0 <= decision.speed_kph <= 450.0


def test_teleporting_candidate_is_rejected_without_touching_track():
    gate = AssociationGate()
    track = moving_track()
    predicted = track.predict()
    before = track.kalman_filter.state

    # 0.05 m/px puts 450 km/h at roughly 83 px per frame
    decision = gate.select([box_at(600, 600, 0.99)], track, predicted,
                           INPUT_SIZE, FRAME_SIZE, FPS, 0.05)

    assert decision is None
    after = track.kalman_filter.state
    assert np.array_equal(after.x, before.x)
    assert np.array_equal(after.P, before.P)
    assert track.current_state().point == pytest.approx(predicted)


def test_falls_back_to_lower_scored_plausible_candidate():
    gate = AssociationGate(confidence_weight=1.0, proximity_weight=0.0)
    track = moving_track()
    predicted = track.predict()

    decision = gate.select([box_at(600, 600, 0.99), box_at(131, 101, 0.2)], track, predicted,
                           INPUT_SIZE, FRAME_SIZE, FPS, 0.05)

    assert decision.pixel_box.center == (131.0, 101.0)


def test_minimum_speed_applies_only_after_motion():
    gate = AssociationGate()
    track = moving_track()
    predicted = track.predict()
    # Measuring the previous position again nearly cancels the velocity
    stalling = [box_at(110, 100, 0.9)]

    assert track.has_motion
    assert gate.select(stalling, track, predicted, INPUT_SIZE, FRAME_SIZE, FPS, 0.01) is None

    track.has_motion = False
    decision = gate.select(stalling, track, predicted, INPUT_SIZE, FRAME_SIZE, FPS, 0.01)
    assert decision is not None
    assert decision.speed_kph < 5.0


def test_invalid_envelope_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        AssociationGate(min_speed_kph=100.0, max_speed_kph=50.0)
    with pytest.raises(ConfigurationError):
        AssociationGate(proximity_divisor=0.0)
    with pytest.raises(ConfigurationError):
        AssociationGate(confidence_weight=-0.1)
