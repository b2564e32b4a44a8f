from pose_coach.exercise_analysis import PushupPhase

from builders import pushup_points


def _top(feeder, frames=2):
    return feeder.feed(pushup_points(170), frames)


def _rep(feeder, depth=80):
    feeder.feed(pushup_points(depth), 2)
    return _top(feeder)


def test_full_pushup_counts_once(feeder):
    pushup = feeder("pushup")
    _top(pushup)
    state = _rep(pushup)
    assert state.rep_count == 1
    assert state.phase == PushupPhase.PRESS.value
    assert sum(1 for s in pushup.states if s.rep_completed) == 1


def test_holding_the_top_does_not_add_reps(feeder):
    pushup = feeder("pushup")
    _top(pushup)
    _rep(pushup)
    state = _top(pushup, frames=20)
    assert state.rep_count == 1


def test_long_bottom_pause_is_one_rep(feeder):
    pushup = feeder("pushup")
    _top(pushup)
    pushup.feed(pushup_points(80), 15)
    state = _top(pushup)
    assert state.rep_count == 1


def test_consecutive_pushups(feeder):
    pushup = feeder("pushup")
    _top(pushup)
    for _ in range(4):
        _rep(pushup)
    assert pushup.analyzer.rep_count == 4


def test_shallow_pushup_explains_why(feeder):
    pushup = feeder("pushup")
    _top(pushup)
    state = _rep(pushup, depth=130)
    assert state.rep_count == 0
    assert "Go lower - chest toward the floor for the rep to count." in pushup.messages()


def test_near_miss_pushup(feeder):
    pushup = feeder("pushup")
    _top(pushup)
    state = _rep(pushup, depth=100)
    assert state.rep_count == 0
    assert "Almost - lower your chest a bit more for the rep to count." in pushup.messages()


def test_starting_at_the_bottom_never_counts(feeder):
    pushup = feeder("pushup")
    pushup.feed(pushup_points(80), 3)
    assert pushup.states[-1].phase == PushupPhase.SETUP.value
    state = _top(pushup)
    assert state.rep_count == 0
    assert state.phase == PushupPhase.SETUP.value


def test_sagging_body_line_hint(feeder):
    pushup = feeder("pushup")
    _top(pushup)
    pushup.feed(pushup_points(80, body_sag=0.1), 2)
    assert "Keep your core tight and body straight." in pushup.messages()
