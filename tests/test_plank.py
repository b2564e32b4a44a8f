import math

import pytest

from pose_coach.exercise_analysis import PlankPhase, create_analyzer

from builders import FrameFeeder, plank_points, standing_points


def test_hold_accumulates_monotonically(feeder):
    plank = feeder("plank")
    plank.feed(plank_points(), 30)
    holds = [s.hold_ms for s in plank.states]
    assert holds == sorted(holds)
    assert plank.states[-1].phase == PlankPhase.HOLD.value
    assert plank.states[-1].hold_ms == pytest.approx(28 * 33.0)
    assert "Strong plank - stay long through your spine and keep breathing." in plank.messages()


def test_brief_sag_pauses_without_resetting(feeder):
    plank = feeder("plank")
    before = plank.feed(plank_points(), 30).hold_ms
    paused = plank.feed(plank_points(sag=0.1), 5)
    assert paused.phase == PlankPhase.HOLD.value
    assert paused.hold_ms == pytest.approx(before)
    resumed = plank.feed(plank_points())
    assert resumed.hold_ms > before
    assert "Hips are sagging - squeeze your glutes and brace your core." in plank.messages()


def test_sustained_sag_breaks_the_hold(feeder):
    plank = feeder("plank")
    plank.feed(plank_points(), 30)
    state = plank.feed(plank_points(sag=0.1), 6)
    assert state.phase == PlankPhase.ADJUST.value
    assert state.hold_ms == 0.0
    assert plank.analyzer.hold_ms == 0.0


def test_timer_restarts_from_zero_after_adjust(feeder):
    plank = feeder("plank")
    plank.feed(plank_points(), 30)
    plank.feed(plank_points(sag=0.1), 6)
    state = plank.feed(plank_points(), 4)
    assert state.phase == PlankPhase.HOLD.value
    assert state.hold_ms == pytest.approx(2 * 33.0)


def test_standing_up_breaks_quickly(feeder):
    plank = feeder("plank")
    plank.feed(plank_points(), 10)
    state = plank.feed(standing_points(), 3)
    assert state.phase == PlankPhase.ADJUST.value
    assert state.hold_ms == 0.0
    assert "Hold broken - get back down into your plank." in plank.messages()


def test_standing_at_setup_gets_a_setup_hint(feeder):
    plank = feeder("plank")
    state = plank.feed(standing_points(), 3)
    assert state.phase == PlankPhase.SETUP.value
    assert "Get down into your plank - elbows under shoulders, legs long." in plank.messages()


def test_frame_gaps_are_capped():
    plank = FrameFeeder(create_analyzer("plank"), frame_ms=1000.0)
    state = plank.feed(plank_points(), 5)
    assert state.hold_ms == pytest.approx(3 * 250.0)


def test_milestone_announced_every_ten_seconds():
    plank = FrameFeeder(create_analyzer("plank"), frame_ms=250.0)
    plank.feed(plank_points(), 45)
    milestones = [text for text in plank.messages() if text.startswith("10 seconds")]
    assert milestones == ["10 seconds - keep breathing and stay tight."]


def test_piked_hips_get_a_pike_correction(feeder):
    plank = feeder("plank")
    state = plank.feed(plank_points(sag=-0.1), 3)
    assert state.phase == PlankPhase.SETUP.value
    assert "Lower your hips into one straight line from shoulders to heels." in plank.messages()


def _plank_at(body_angle):
    return plank_points(sag=0.2 * math.tan(math.radians((180.0 - body_angle) / 2)))


def test_hold_starts_at_exactly_the_minimum_body_angle(feeder):
    plank = feeder("plank")
    plank.feed(_plank_at(150), 3)
    state = plank.feed(_plank_at(165), 2)
    assert state.phase == PlankPhase.HOLD.value
    assert state.metrics["raw_body_angle"] == 165.0
    state = plank.feed(_plank_at(165))
    assert state.hold_ms == pytest.approx(33.0)
