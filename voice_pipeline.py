"""
Answer Pipeline
================
Live interviewer audio → silence detection → transcription → question
extraction → prompt with CV context → LLM answer.

Two listening modes:
  - run_until_silence(): push-to-talk; recording stops on its own after the
    grace period once the interviewer has been quiet for a fixed duration
    (or when stop_event is set).
  - run_continuous(): every utterance cut by the UtteranceSegmenter is
    answered in turn; one answer request in flight at a time.

Threading model: audio frames arrive on PyAudio's OS thread and are bridged
into the asyncio loop with call_soon_threadsafe. All state lives on the loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from audio_manager import AudioRecorder
from config import MIN_AUDIO_BYTES
from llm_client import GeminiClient, GeminiError
from prompts import build_answer_prompt
from question_detector import extract_question
from repository import Repository
from silence_detector import SilenceDetector, UtteranceSegmenter
from transcription import TranscriptionError, TranscriptionService

logger = logging.getLogger(__name__)

NO_AUDIO = "No audio to transcribe."
NOT_UNDERSTOOD = "Could not understand audio."


class InterviewAcePipeline:
    """
    Master coordinator for live answer generation.

    callbacks = {
        'on_state_change': fn(field_name, value),
        'on_transcript': fn(str),
        'on_answer': fn(str),
        'on_error': fn(str),
    }
    """

    FRAME_TIMEOUT = 0.05

    def __init__(
        self,
        transcription: TranscriptionService,
        llm: GeminiClient,
        repository: Repository,
        callbacks: Optional[dict[str, Callable]] = None,
        detector: Optional[SilenceDetector] = None,
        segmenter: Optional[UtteranceSegmenter] = None,
    ):
        self.transcription = transcription
        self.llm = llm
        self.repository = repository
        self.cbs = callbacks or {}
        self.detector = detector or SilenceDetector()
        self.segmenter = segmenter or UtteranceSegmenter()
        self.recorder = AudioRecorder()

        self.is_listening = False
        self.transcribed_text = ""
        self.generated_answer = ""
        self.is_processing = False
        self.error: Optional[str] = None

        self._frame_queue: asyncio.Queue = asyncio.Queue(maxsize=1000)
        self._processing_lock = asyncio.Lock()

    # ── Published state ───────────────────────────────────────────────────────

    @property
    def audio_power(self) -> float:
        return self.recorder.audio_power

    def _set(self, name: str, value):
        setattr(self, name, value)
        self.cbs.get("on_state_change", lambda n, v: None)(name, value)

    def _fail(self, message: str):
        logger.error(message)
        self._set("error", message)
        self.cbs.get("on_error", lambda x: None)(message)

    # ── Audio input ───────────────────────────────────────────────────────────

    def push_frame_threadsafe(self, pcm_bytes: bytes, loop: asyncio.AbstractEventLoop):
        """Called from the PyAudio OS thread. Hands the frame to the loop."""
        try:
            loop.call_soon_threadsafe(self.push_frame, pcm_bytes)
        except RuntimeError:
            # Loop already closed
            pass

    def push_frame(self, pcm_bytes: bytes):
        """Same-thread variant, for callers already on the loop. Frames are only kept while listening."""
        if not self.is_listening:
            return
        try:
            self._frame_queue.put_nowait(pcm_bytes)
        except asyncio.QueueFull:
            logger.warning("Frame queue full, dropping audio frame")

    def _drain_frames(self):
        while True:
            try:
                self._frame_queue.get_nowait()
            except asyncio.QueueEmpty:
                return

    async def _next_frame(self) -> Optional[bytes]:
        try:
            return await asyncio.wait_for(self._frame_queue.get(), timeout=self.FRAME_TIMEOUT)
        except asyncio.TimeoutError:
            return None

    # ── Push-to-talk ──────────────────────────────────────────────────────────

    def start_listening(self) -> bool:
        if self.is_listening:
            logger.info("Already listening")
            return False
        self._set("transcribed_text", "")
        self._set("generated_answer", "")
        self._set("error", None)
        self._drain_frames()
        self.recorder.start()
        self.detector.start()
        self._set("is_listening", True)
        logger.info("Recording started")
        return True

    async def stop_listening(self) -> Optional[str]:
        """Stop recording, transcribe and answer. Returns the answer, if any."""
        if not self.is_listening:
            return None
        self.detector.stop()
        pcm_bytes = self.recorder.stop()
        self._set("is_listening", False)
        logger.info(f"Recording stopped ({len(pcm_bytes)} bytes)")

        if len(pcm_bytes) <= MIN_AUDIO_BYTES:
            self._fail(NO_AUDIO)
            return None
        return await self.process_recording(pcm_bytes)

    async def run_until_silence(self, stop_event: Optional[asyncio.Event] = None) -> Optional[str]:
        """Record until silence is detected or stop_event is set, then answer."""
        stop_event = stop_event or asyncio.Event()
        self.start_listening()
        while self.is_listening and not stop_event.is_set():
            frame = await self._next_frame()
            if frame is not None:
                self.recorder.feed(frame)
                if self.detector.process_frame(frame):
                    break
            elif self.detector.poll():
                break
        return await self.stop_listening()

    # ── Continuous ────────────────────────────────────────────────────────────

    async def run_continuous(self, stop_event: asyncio.Event):
        """Answer each interviewer utterance until stop_event is set."""
        self.segmenter.reset()
        self._drain_frames()
        self._set("is_listening", True)
        pending: set[asyncio.Task] = set()

        def _schedule(utterance: bytes):
            task = asyncio.create_task(self._answer_in_turn(utterance))
            pending.add(task)
            task.add_done_callback(pending.discard)

        try:
            while not stop_event.is_set():
                frame = await self._next_frame()
                if frame is None:
                    continue
                utterance = self.segmenter.push(frame)
                if utterance:
                    _schedule(utterance)
            leftover = self.segmenter.flush()
            if leftover:
                _schedule(leftover)
            if pending:
                await asyncio.gather(*pending)
        finally:
            self._set("is_listening", False)

    async def _answer_in_turn(self, pcm_bytes: bytes):
        async with self._processing_lock:
            await self.process_recording(pcm_bytes)

    # ── Transcription → answer ────────────────────────────────────────────────

    async def process_recording(self, pcm_bytes: bytes) -> Optional[str]:
        self._set("is_processing", True)
        try:
            transcript = await self.transcription.transcribe(pcm_bytes)
        except TranscriptionError as e:
            self._set("is_processing", False)
            self._fail(f"Whisper transcription failed: {e}")
            return None

        self._set("transcribed_text", transcript.text)
        self.cbs.get("on_transcript", lambda x: None)(transcript.text)
        if not transcript.text:
            self._set("is_processing", False)
            self._fail(NOT_UNDERSTOOD)
            return None

        return await self.answer_question(transcript.text)

    async def answer_question(self, transcript: str) -> Optional[str]:
        question = extract_question(transcript)
        if not question:
            self._set("is_processing", False)
            return None
        logger.info(f"Answering question: {question!r}")

        self._set("is_processing", True)
        try:
            prompt = build_answer_prompt(question, self.repository.cv_summary_context())
            answer = await self.llm.generate_response(prompt)
        except GeminiError as e:
            self._fail(f"Failed to generate answer: {e}")
            return None
        finally:
            self._set("is_processing", False)

        self._set("generated_answer", answer)
        self.cbs.get("on_answer", lambda x: None)(answer)
        return answer
