"""
Warm-up Coach
==============
Five fixed warm-up questions. The candidate records an answer, it is
transcribed, and the coach returns tips on that answer followed by an
example answer.
"""

from __future__ import annotations

import logging
from typing import Optional

from audio_manager import AudioRecorder
from config import MIN_AUDIO_BYTES
from llm_client import GeminiClient, GeminiError
from prompts import build_example_answer_prompt, build_tips_prompt
from transcription import TranscriptionError, TranscriptionService

logger = logging.getLogger(__name__)

WARMUP_QUESTIONS = [
    "Can you please tell me a bit about yourself?",
    "What are your strengths and weaknesses?",
    "Why are you interested in this position?",
    "Where do you see yourself in five years?",
    "Do you have any questions for me?",
]


class WarmupCoach:

    def __init__(self, transcription: TranscriptionService, llm: GeminiClient,
                 questions: Optional[list[str]] = None):
        self.transcription = transcription
        self.llm = llm
        self.questions = list(questions or WARMUP_QUESTIONS)
        self.recorder = AudioRecorder()

        self.current_question_index = 0
        self.transcribed_answer = ""
        self.tips = ""
        self.example_answer = ""
        self.is_loading_tips = False
        self.error_message: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        return self.recorder.is_recording

    @property
    def current_question(self) -> str:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return "No more questions."

    @property
    def question_progress(self) -> str:
        return f"{self.current_question_index + 1}/{len(self.questions)}"

    # ── Navigation ────────────────────────────────────────────────────────────

    def next_question(self) -> bool:
        if self.current_question_index < len(self.questions) - 1:
            self.current_question_index += 1
            self._reset_for_new_question()
            return True
        logger.info("End of warmup session.")
        return False

    def previous_question(self) -> bool:
        if self.current_question_index > 0:
            self.current_question_index -= 1
            self._reset_for_new_question()
            return True
        return False

    def _reset_for_new_question(self):
        self.transcribed_answer = ""
        self.tips = ""
        self.example_answer = ""
        self.error_message = None

    # ── Recording ─────────────────────────────────────────────────────────────

    def start_recording(self):
        self._reset_for_new_question()
        self.recorder.start()

    async def stop_recording(self) -> bool:
        """Transcribe the answer and coach on it. Returns True on success."""
        pcm_bytes = self.recorder.stop()
        if len(pcm_bytes) <= MIN_AUDIO_BYTES:
            self.error_message = "No audio to transcribe."
            return False
        try:
            transcript = await self.transcription.transcribe(pcm_bytes)
        except TranscriptionError as e:
            self.error_message = f"Whisper transcription failed: {e}"
            return False
        self.transcribed_answer = transcript.text
        if not transcript.text:
            self.error_message = "Could not understand audio."
            return False
        return await self.generate_tips_and_example_answer()

    # ── Coaching ──────────────────────────────────────────────────────────────

    async def generate_tips_and_example_answer(self) -> bool:
        question = self.current_question
        self.is_loading_tips = True
        try:
            self.tips = await self.llm.generate_response(
                build_tips_prompt(question, self.transcribed_answer)
            )
            self.example_answer = await self.llm.generate_response(
                build_example_answer_prompt(question)
            )
        except GeminiError as e:
            self.error_message = f"Failed to generate tips/example: {e}"
            logger.error(self.error_message)
            return False
        finally:
            self.is_loading_tips = False
        return True
