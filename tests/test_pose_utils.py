import math

import pytest

from pose_coach.exercise_analysis.pose_utils import (
    LEFT_HIP, LEFT_SHOULDER, NOSE, NUM_LANDMARKS, RIGHT_HIP, RIGHT_SHOULDER,
    Landmark, LandmarkFrame, Point2D, angle_between, distance, joint_angle, mean_of, torso_length
)


def test_angle_between_right_angle():
    assert angle_between((0.0, 1.0), (0.0, 0.0), (1.0, 0.0)) == pytest.approx(90.0)


def test_angle_between_straight_line_is_180():
    assert angle_between((0.0, 0.0), (0.5, 0.5), (1.0, 1.0)) == pytest.approx(180.0)


def test_angle_between_folds_reflex_angles():
    # Headings differ by 270 degrees; the interior angle is 90
    assert angle_between((0.0, -1.0), (0.0, 0.0), (-1.0, 0.0)) == pytest.approx(90.0)


def test_angle_between_coincident_points_is_finite():
    assert math.isfinite(angle_between((0.2, 0.2), (0.2, 0.2), (0.2, 0.2)))


def test_joint_angle_rejects_degenerate_and_missing():
    assert joint_angle((0.2, 0.2), (0.2, 0.2), (0.5, 0.5)) is None
    assert joint_angle(None, (0.2, 0.2), (0.5, 0.5)) is None
    assert joint_angle((0.0, 1.0), (0.0, 0.0), (1.0, 0.0)) == pytest.approx(90.0)


def test_distance_and_mean_of():
    assert distance((0.0, 0.0), (0.3, 0.4)) == pytest.approx(0.5)
    assert mean_of([None, 1.0, 3.0]) == pytest.approx(2.0)
    assert mean_of([None, None]) is None


def test_landmark_frame_pads_to_full_topology():
    frame = LandmarkFrame([Landmark(0.5, 0.1, 0.9)], timestamp_ms=40)
    assert len(frame) == NUM_LANDMARKS
    assert frame.point(NOSE) == Point2D(0.5, 0.1)
    assert frame.point(LEFT_SHOULDER) is None
    assert frame.timestamp_ms == 40.0
    assert not frame.is_empty


def test_landmark_frame_rejects_too_many_landmarks():
    with pytest.raises(ValueError):
        LandmarkFrame([Landmark(0.1, 0.1)] * (NUM_LANDMARKS + 1))


def test_landmark_frame_empty():
    assert LandmarkFrame([]).is_empty


def test_point_hides_invisible_and_non_finite_landmarks():
    landmarks = [None] * NUM_LANDMARKS
    landmarks[LEFT_SHOULDER] = Landmark(0.4, 0.3, 0.1)
    landmarks[RIGHT_SHOULDER] = Landmark(float("nan"), 0.3, 1.0)
    landmarks[LEFT_HIP] = Landmark(0.4, 0.6, 0.8)
    frame = LandmarkFrame(landmarks, min_visibility=0.3)
    assert frame.point(LEFT_SHOULDER) is None
    assert frame.point(RIGHT_SHOULDER) is None
    assert frame.point("left_hip") == Point2D(0.4, 0.6)


def test_landmark_frame_accepts_lists_and_objects():
    class Normalized:
        x, y, visibility = 0.3, 0.4, 0.2

    frame = LandmarkFrame([[0.1, 0.2, 0.0, 0.05], (0.5, 0.6, 0.9), Normalized()], min_visibility=0.1)
    assert frame.point(0) is None
    assert frame.point(1) == Point2D(0.5, 0.6)
    assert frame.point(2) == Point2D(0.3, 0.4)


def test_torso_length_averages_visible_sides():
    landmarks = [None] * NUM_LANDMARKS
    landmarks[LEFT_SHOULDER] = Landmark(0.4, 0.2)
    landmarks[LEFT_HIP] = Landmark(0.4, 0.5)
    landmarks[RIGHT_SHOULDER] = Landmark(0.6, 0.2)
    landmarks[RIGHT_HIP] = Landmark(0.6, 0.6)
    assert torso_length(LandmarkFrame(landmarks)) == pytest.approx(0.35)

    landmarks[RIGHT_HIP] = None
    assert torso_length(LandmarkFrame(landmarks)) == pytest.approx(0.3)
    assert torso_length(LandmarkFrame([])) is None


def test_angle_between_lands_exactly_on_whole_degrees():
    theta = math.radians(165)
    hip = (0.5 + 0.2 * math.sin(theta), 0.6 + 0.2 * math.cos(theta))
    assert angle_between(hip, (0.5, 0.6), (0.5, 0.8)) == 165.0
