"""
Silence Detection
==================
Fixed-threshold voice activity detection over the RMS decibel level of
16-bit PCM frames.

  - SilenceDetector     — push-to-talk mode: a grace period after start,
                          then recording stops once the speaker has been
                          quiet for a fixed duration.
  - UtteranceSegmenter  — continuous mode: cuts the stream into utterances
                          bounded by runs of silent frames.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

import numpy as np

from config import (
    INITIAL_GRACE_PERIOD_SEC,
    MIN_SPEECH_FRAMES,
    SILENCE_DURATION_SEC,
    SILENCE_FRAMES_NEEDED,
    SPEECH_THRESHOLD_DB,
    VOLUME_THRESHOLD_DB,
)

logger = logging.getLogger(__name__)


def rms_decibels(pcm_bytes: bytes) -> float:
    """RMS level of a 16-bit PCM frame in dBFS. Silence is -inf."""
    samples = np.frombuffer(pcm_bytes, dtype=np.int16).astype(np.float32) / 32768.0
    if samples.size == 0:
        return -math.inf
    rms = float(np.sqrt(np.mean(samples ** 2)))
    if rms <= 0.0:
        return -math.inf
    return 20.0 * math.log10(rms)


def normalized_power(decibels: float) -> float:
    """Map a dB level onto 0..1 for level meters (-160 dB → 0, 0 dB → 1)."""
    if math.isinf(decibels):
        return 0.0
    return max(0.0, 1.0 + decibels / 160.0)


class SilenceDetector:
    """
    Decides when the speaker has stopped talking.

    Timeline after start():
      1. Grace period — nothing the speaker does arms the stop.
      2. Grace period ends — the silence timer starts.
      3. Every frame above the threshold restarts the silence timer.
      4. The silence timer runs out — should_stop is reported once.
    """

    def __init__(
        self,
        threshold_db: float = VOLUME_THRESHOLD_DB,
        silence_duration: float = SILENCE_DURATION_SEC,
        grace_period: float = INITIAL_GRACE_PERIOD_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.threshold_db = threshold_db
        self.silence_duration = silence_duration
        self.grace_period = grace_period
        self._clock = clock

        self._active = False
        self._fired = False
        self._grace_ends_at = 0.0
        self._silence_deadline: Optional[float] = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def in_grace_period(self) -> bool:
        return self._active and self._silence_deadline is None

    def start(self):
        now = self._clock()
        self._active = True
        self._fired = False
        self._grace_ends_at = now + self.grace_period
        self._silence_deadline = None

    def stop(self):
        self._active = False
        self._silence_deadline = None

    def process_frame(self, pcm_bytes: bytes) -> bool:
        """Feed one frame. Returns True when recording should stop."""
        if not self._active:
            return False
        level = rms_decibels(pcm_bytes)
        expired = self.poll()
        if expired:
            return True
        if level > self.threshold_db and not self.in_grace_period:
            logger.debug(f"Voice at {level:.1f} dB, silence timer reset")
            self._silence_deadline = self._clock() + self.silence_duration
        return False

    def poll(self) -> bool:
        """Advance the timers without audio. Returns True when recording should stop."""
        if not self._active or self._fired:
            return False
        now = self._clock()
        if self._silence_deadline is None:
            if now < self._grace_ends_at:
                return False
            # Grace period over: the silence timer starts from its end
            self._silence_deadline = self._grace_ends_at + self.silence_duration
        if now >= self._silence_deadline:
            logger.info("Silence detected. Stopping recording.")
            self._fired = True
            self._active = False
            return True
        return False


class UtteranceSegmenter:
    """
    Splits a continuous frame stream into utterances.
    A frame at or above the speech threshold opens an utterance; a run of
    silent frames closes it. Trailing silence stays in the utterance.
    """

    def __init__(
        self,
        speech_threshold_db: float = SPEECH_THRESHOLD_DB,
        silence_frames_needed: int = SILENCE_FRAMES_NEEDED,
        min_speech_frames: int = MIN_SPEECH_FRAMES,
    ):
        self.speech_threshold_db = speech_threshold_db
        self.silence_frames_needed = silence_frames_needed
        self.min_speech_frames = min_speech_frames
        self.reset()

    def reset(self):
        self._buffer = bytearray()
        self._speech_frames = 0
        self._silence_frames = 0
        self.is_speaking = False

    def push(self, pcm_bytes: bytes) -> Optional[bytes]:
        """Feed one frame. Returns a finished utterance's PCM, or None."""
        level = rms_decibels(pcm_bytes)

        if level >= self.speech_threshold_db:
            self.is_speaking = True
            self._silence_frames = 0
            self._speech_frames += 1
            self._buffer.extend(pcm_bytes)
            return None

        if not self.is_speaking:
            return None

        self._silence_frames += 1
        self._buffer.extend(pcm_bytes)
        if self._silence_frames < self.silence_frames_needed:
            return None

        utterance = bytes(self._buffer) if self._speech_frames >= self.min_speech_frames else None
        if utterance is None:
            logger.debug(f"Discarding short utterance ({self._speech_frames} speech frames)")
        self.reset()
        return utterance

    def flush(self) -> Optional[bytes]:
        """Return whatever speech is buffered (used when listening stops)."""
        utterance = None
        if self.is_speaking and self._speech_frames >= self.min_speech_frames:
            utterance = bytes(self._buffer)
        self.reset()
        return utterance
