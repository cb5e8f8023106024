"""
Unit tests for the silence detector and utterance segmenter.
"""
import math

from fakes import LOUD, SILENT, FakeClock
from silence_detector import SilenceDetector, UtteranceSegmenter, normalized_power, rms_decibels


def test_rms_decibels():
    """Digital silence is -inf; a half-scale tone is around -6 dBFS."""
    assert rms_decibels(SILENT) == -math.inf
    assert rms_decibels(b"") == -math.inf
    assert -7.0 < rms_decibels(LOUD) < -5.0


def test_normalized_power():
    assert normalized_power(-math.inf) == 0.0
    assert normalized_power(0.0) == 1.0
    assert normalized_power(-80.0) == 0.5
    assert normalized_power(-200.0) == 0.0


def test_speech_during_grace_period_does_not_arm():
    """Voice inside the grace period is ignored; the silence timer starts when it ends."""
    clock = FakeClock()
    detector = SilenceDetector(silence_duration=2.0, grace_period=5.0, clock=clock)
    detector.start()

    clock.advance(1.0)
    assert detector.process_frame(LOUD) is False
    assert detector.in_grace_period

    clock.advance(4.0)   # t=5, grace over
    assert detector.poll() is False
    assert not detector.in_grace_period

    clock.advance(2.0)   # t=7, two seconds of silence after grace
    assert detector.poll() is True


def test_voice_after_grace_resets_silence_timer():
    clock = FakeClock()
    detector = SilenceDetector(silence_duration=2.0, grace_period=5.0, clock=clock)
    detector.start()

    clock.advance(6.0)
    assert detector.process_frame(LOUD) is False   # deadline moves to t=8

    clock.advance(1.5)   # t=7.5
    assert detector.poll() is False

    clock.advance(0.5)   # t=8
    assert detector.poll() is True


def test_detector_fires_once():
    clock = FakeClock()
    detector = SilenceDetector(silence_duration=1.0, grace_period=0.0, clock=clock)
    detector.start()

    clock.advance(1.0)
    assert detector.poll() is True
    assert not detector.active
    clock.advance(10.0)
    assert detector.poll() is False
    assert detector.process_frame(SILENT) is False


def test_restart_rearms_detector():
    clock = FakeClock()
    detector = SilenceDetector(silence_duration=1.0, grace_period=0.0, clock=clock)
    detector.start()
    clock.advance(1.0)
    assert detector.poll() is True

    detector.start()
    assert detector.active
    assert detector.poll() is False
    clock.advance(1.0)
    assert detector.poll() is True


def test_stopped_detector_never_fires():
    clock = FakeClock()
    detector = SilenceDetector(silence_duration=1.0, grace_period=0.0, clock=clock)
    detector.start()
    detector.stop()
    clock.advance(5.0)
    assert detector.poll() is False


def test_segmenter_emits_utterance_after_silence_run():
    """Speech frames plus the trailing silence run make up the utterance."""
    segmenter = UtteranceSegmenter(silence_frames_needed=12, min_speech_frames=5)
    assert segmenter.push(SILENT) is None
    assert not segmenter.is_speaking

    for _ in range(5):
        assert segmenter.push(LOUD) is None
    assert segmenter.is_speaking

    for _ in range(11):
        assert segmenter.push(SILENT) is None
    utterance = segmenter.push(SILENT)

    assert utterance == LOUD * 5 + SILENT * 12
    assert not segmenter.is_speaking


def test_segmenter_discards_short_bursts():
    segmenter = UtteranceSegmenter(silence_frames_needed=12, min_speech_frames=5)
    for _ in range(2):
        segmenter.push(LOUD)
    results = [segmenter.push(SILENT) for _ in range(12)]
    assert results == [None] * 12
    assert not segmenter.is_speaking


def test_segmenter_flush():
    segmenter = UtteranceSegmenter(min_speech_frames=5)
    assert segmenter.flush() is None

    for _ in range(5):
        segmenter.push(LOUD)
    segmenter.push(SILENT)
    assert segmenter.flush() == LOUD * 5 + SILENT
    assert segmenter.flush() is None
