"""
Audio Manager
==============
Microphone capture and the in-memory recording buffer.
Captured 16kHz/16-bit/mono frames fan out to registered listeners:
  - AudioRecorder.feed (buffer for upload + level meter)
  - the answer pipeline's frame queue (silence detection, segmentation)
"""

from __future__ import annotations

import io
import logging
import threading
import wave
from typing import Callable, Optional

from config import CHANNELS, CHUNK_SIZE, SAMPLE_RATE, SAMPLE_WIDTH
from silence_detector import normalized_power, rms_decibels

logger = logging.getLogger(__name__)


def pcm_to_wav(pcm_bytes: bytes, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS) -> bytes:
    """Convert raw 16-bit PCM bytes into an in-memory WAV file."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm_bytes)
    return buf.getvalue()


class AudioRecorder:
    """
    Thread-safe PCM accumulator. Frames are only kept while recording.
    Also tracks the most recent level for metering.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._buffer = bytearray()
        self._recording = False
        self.audio_power = 0.0

    @property
    def is_recording(self) -> bool:
        return self._recording

    def start(self):
        with self._lock:
            self._buffer.clear()
            self._recording = True
            self.audio_power = 0.0

    def stop(self) -> bytes:
        with self._lock:
            self._recording = False
            self.audio_power = 0.0
            data = bytes(self._buffer)
            self._buffer.clear()
        return data

    def feed(self, pcm_bytes: bytes):
        with self._lock:
            if not self._recording:
                return
            self._buffer.extend(pcm_bytes)
            self.audio_power = normalized_power(rms_decibels(pcm_bytes))


class AudioManager:
    """
    Microphone capture via PyAudio. Each captured buffer is handed to every
    registered listener on PyAudio's callback thread, so listeners must be
    thread-safe or hop onto the event loop themselves.

    Usage:
        with AudioManager(input_device_index=2) as mic:
            mic.register_frame_callback(recorder.feed)
            ...
    """

    def __init__(self, input_device_index: Optional[int] = None):
        self.input_device_index = input_device_index
        self._audio = None
        self._stream = None
        self._listeners: list[Callable[[bytes], None]] = []

    def __enter__(self) -> "AudioManager":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def _portaudio(self):
        if self._audio is None:
            import pyaudio
            self._audio = pyaudio.PyAudio()
        return self._audio

    # ── Stream ────────────────────────────────────────────────────────────────

    def initialize(self):
        import pyaudio
        if self.is_open:
            return
        self._stream = self._portaudio().open(
            format=pyaudio.paInt16,
            channels=CHANNELS,
            rate=SAMPLE_RATE,
            frames_per_buffer=CHUNK_SIZE,
            input=True,
            input_device_index=self.input_device_index,
            stream_callback=self._on_audio,
        )
        self._stream.start_stream()
        logger.info(f"Microphone open (device={self.input_device_index}, {SAMPLE_RATE} Hz)")

    def _on_audio(self, in_data, frame_count, time_info, status):
        import pyaudio
        if in_data and self.is_open:
            self.dispatch_frame(in_data)
        return (None, pyaudio.paContinue)

    def dispatch_frame(self, pcm_bytes: bytes):
        for listener in list(self._listeners):
            try:
                listener(pcm_bytes)
            except Exception as e:
                # A broken listener must not stop the stream
                logger.error(f"Frame listener {listener!r} failed: {e}")

    # ── Listeners ─────────────────────────────────────────────────────────────

    def register_frame_callback(self, callback: Callable[[bytes], None]):
        self._listeners.append(callback)

    def unregister_frame_callback(self, callback: Callable[[bytes], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ── Devices / Cleanup ─────────────────────────────────────────────────────

    def get_input_device_list(self) -> list[dict]:
        pa = self._portaudio()
        infos = (pa.get_device_info_by_index(i) for i in range(pa.get_device_count()))
        return [
            {"index": info["index"], "name": info["name"]}
            for info in infos
            if info.get("maxInputChannels", 0) > 0
        ]

    def shutdown(self):
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop_stream()
            stream.close()
        if self._audio is not None:
            self._audio.terminate()
            self._audio = None
        logger.info("Microphone closed")
