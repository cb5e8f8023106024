"""
Mock Interview
===============
Walks the candidate through the stored question bank, filtered by the
current settings. For each question the LLM can draft an answer, and a
spoken or typed response can be scored and saved with its feedback.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from typing import Optional

from config import InterviewSettings
from llm_client import GeminiClient, GeminiError
from models import InterviewSessionRecord, Question, Response
from prompts import build_feedback_prompt, build_mock_answer_prompt
from repository import Repository
from response_parsing import clean_json_string

logger = logging.getLogger(__name__)

AI_RESPONSE_FAILED = "Sorry, I couldn't generate a response at this time."

INTERVIEW_TIPS = [
    "Take a moment to think before answering",
    "Use the STAR method for behavioral questions",
    "Keep your answers concise and focused",
    "Provide specific examples from your experience",
    "Show enthusiasm and confidence",
    "Ask clarifying questions if needed",
    "Maintain good eye contact and body language",
    "Be honest about your weaknesses",
    "Research the company before the interview",
    "Follow up with a thank-you note",
]


@dataclass
class FeedbackData:
    clarity: Optional[float]
    relevance: Optional[float]
    confidence: Optional[float]
    suggestions: str


def _score(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return min(1.0, max(0.0, float(value)))


def parse_feedback(response: str) -> FeedbackData:
    """Scores + suggestions from the feedback JSON; plain prose is kept as suggestions."""
    if "{" in response:
        try:
            payload = json.loads(clean_json_string(response))
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("suggestions"), str):
            return FeedbackData(
                clarity=_score(payload.get("clarity")),
                relevance=_score(payload.get("relevance")),
                confidence=_score(payload.get("confidence")),
                suggestions=payload["suggestions"],
            )
    return FeedbackData(clarity=None, relevance=None, confidence=None, suggestions=response.strip())


class MockInterview:

    def __init__(self, llm: GeminiClient, repository: Repository,
                 settings: Optional[InterviewSettings] = None):
        self.llm = llm
        self.repository = repository
        self.settings = settings or InterviewSettings()

        self.questions: list[Question] = repository.seed_initial_questions()
        self.current_question_index = 0
        self.is_interview_complete = False
        self.session: Optional[InterviewSessionRecord] = None
        self.current_feedback: Optional[FeedbackData] = None
        self.ai_response = ""
        self.current_tip = ""

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def start_interview(self) -> Optional[Question]:
        self.session = self.repository.start_interview_session(
            self.settings.selected_job_role, self.settings.interview_mode.value
        )
        self.questions = [
            q for q in self.repository.list_questions()
            if q.category in self.settings.selected_categories
            and q.job_role == self.settings.selected_job_role
        ]
        logger.info(f"Interview started with {len(self.questions)} questions")
        self.current_question_index = 0
        self.is_interview_complete = not self.questions
        self.current_feedback = None
        return self.current_question

    def next_question(self) -> Optional[Question]:
        if self.current_question_index < len(self.questions) - 1:
            self.current_question_index += 1
            self.current_feedback = None
            return self.current_question
        self.is_interview_complete = True
        return None

    def previous_question(self) -> Optional[Question]:
        if self.current_question_index > 0:
            self.current_question_index -= 1
            self.current_feedback = None
        return self.current_question

    async def generate_ai_response(self, question: Optional[str] = None) -> str:
        question = question or (self.current_question.text if self.current_question else "")
        try:
            self.ai_response = await self.llm.generate_response(
                build_mock_answer_prompt(question, self.settings.selected_job_role)
            )
        except GeminiError as e:
            logger.error(f"Error generating AI response: {e}")
            self.ai_response = AI_RESPONSE_FAILED
        return self.ai_response

    async def generate_feedback(self, response_text: str) -> Optional[FeedbackData]:
        question = self.current_question.text if self.current_question else ""
        try:
            raw = await self.llm.generate_response(build_feedback_prompt(question, response_text))
        except GeminiError as e:
            logger.error(f"Error generating feedback: {e}")
            return None
        self.current_feedback = parse_feedback(raw)
        return self.current_feedback

    def save_response(self, text: str, audio_path: Optional[str] = None) -> Optional[Response]:
        question = self.current_question
        if question is None:
            return None
        feedback = self.current_feedback
        response = self.repository.save_response(
            question.id,
            text,
            audio_path=audio_path,
            feedback_text=feedback.suggestions if feedback else None,
            feedback_score=feedback.clarity if feedback else None,
        )
        question.has_response = True
        return response

    def generate_tip(self) -> str:
        self.current_tip = random.choice(INTERVIEW_TIPS)
        return self.current_tip
