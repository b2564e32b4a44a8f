import logging

from pose_coach.exercise_analysis import FeedbackMessage
from pose_coach.feedback.feedback_throttle import FeedbackChannel
from pose_coach.feedback.voice_feedback import VoiceFeedback


def test_muted_voice_logs_only_spoken_text(caplog):
    caplog.set_level(logging.INFO, logger="VoiceFeedback")
    voice = VoiceFeedback(muted=True)
    voice("Lowering", False)
    voice("Rep 1", True)
    assert [r.getMessage() for r in caplog.records if r.name == "VoiceFeedback"] == ["[VOICE MUTED] Rep 1"]
    voice.shutdown()


def test_display_stays_with_the_channel_when_speech_goes_to_voice(caplog, clock):
    caplog.set_level(logging.INFO, logger="VoiceFeedback")
    channel = FeedbackChannel(sink=VoiceFeedback(muted=True), clock=clock)
    channel.publish(FeedbackMessage("Great depth", immediate=True))
    channel.publish(FeedbackMessage("Rep 1", immediate=True, speech_only=True))
    assert channel.displayed_text == "Great depth"
    assert [r.getMessage() for r in caplog.records if r.name == "VoiceFeedback"] == ["[VOICE MUTED] Great depth", "[VOICE MUTED] Rep 1"]
