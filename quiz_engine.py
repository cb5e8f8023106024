"""
Quiz Engine
============
Multiple-choice practice quizzes generated from the candidate's CV, with
scoring, timing and persisted results, plus aggregate statistics over the
stored results.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Sequence

from config import QuizCategory
from llm_client import GeminiClient, GeminiError
from models import QuizResult
from prompts import build_quiz_prompt
from repository import Repository
from response_parsing import QuizGenerationError, QuizQuestion, parse_quiz_questions

logger = logging.getLogger(__name__)


class QuizState(Enum):
    SELECTING_CATEGORY = auto()
    LOADING = auto()
    PRACTICING = auto()
    COMPLETED = auto()


class QuizSession:
    """One quiz run: generate → answer each question → save the result."""

    def __init__(self, llm: GeminiClient, repository: Repository,
                 clock: Callable[[], float] = time.monotonic):
        self.llm = llm
        self.repository = repository
        self._clock = clock
        self.reset()

    def reset(self):
        self.state = QuizState.SELECTING_CATEGORY
        self.category: Optional[str] = None
        self.questions: list[QuizQuestion] = []
        self.current_question_index = 0
        self.selected_option_index: Optional[int] = None
        self.is_answer_submitted = False
        self.score = 0
        self.selected_answers: list[Optional[int]] = []
        self.error_message: Optional[str] = None
        self.result: Optional[QuizResult] = None
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    @property
    def elapsed_time(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self._clock()
        return end - self._started_at

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    async def generate(self, category: QuizCategory | str, experience_level: str = "senior") -> bool:
        category_name = category.value if isinstance(category, QuizCategory) else category
        logger.info(f"Generating quiz for category: {category_name}")
        self.state = QuizState.LOADING

        cv_info = self.repository.latest_cv()
        prompt = build_quiz_prompt(
            category_name,
            cv_info.skills if cv_info else None,
            cv_info.summary if cv_info else None,
            experience_level,
        )
        try:
            response = await self.llm.generate_response(prompt)
            questions = parse_quiz_questions(response, category_name)
            if not questions:
                raise QuizGenerationError("The AI service returned no questions")
        except (GeminiError, QuizGenerationError) as e:
            logger.error(f"Error generating questions: {e}")
            self.error_message = str(e)
            self.state = QuizState.SELECTING_CATEGORY
            return False

        self.reset()
        self.category = category_name
        self.questions = questions
        self.selected_answers = [None] * len(questions)
        self.state = QuizState.PRACTICING
        self._started_at = self._clock()
        logger.info(f"Generated {len(questions)} questions")
        return True

    def select_answer(self, index: int):
        question = self.current_question
        if question is None or self.is_answer_submitted:
            return
        if not 0 <= index < len(question.options):
            raise IndexError(f"Option {index} out of range")
        self.selected_option_index = index
        self.selected_answers[self.current_question_index] = index

    def submit_answer(self) -> Optional[bool]:
        """Lock in the selected option. Returns whether it was correct."""
        if self.selected_option_index is None or self.is_answer_submitted:
            return None
        self.is_answer_submitted = True
        correct = self.selected_option_index == self.current_question.correct_option_index
        if correct:
            self.score += 1
        return correct

    def next_question(self) -> bool:
        """Advance; on the last question, finish and persist. Returns False when completed."""
        if self.current_question_index < len(self.questions) - 1:
            self.current_question_index += 1
            self.selected_option_index = self.selected_answers[self.current_question_index]
            self.is_answer_submitted = False
            return True
        self._finish()
        return False

    def _finish(self):
        self._finished_at = self._clock()
        logger.info(f"Quiz completed with score: {self.score}/{len(self.questions)}")
        self.result = self.repository.save_quiz_result(
            self.category or "Unknown",
            self.score,
            self.questions,
            self.selected_answers,
            self.elapsed_time,
        )
        self.state = QuizState.COMPLETED


# ─── Statistics ───────────────────────────────────────────────────────────────

@dataclass
class CategoryStats:
    category: str
    count: int
    average_score: float   # percentage


def average_score(results: Sequence[QuizResult]) -> float:
    """Percentage of all answered questions that were correct."""
    total_questions = sum(r.total_questions for r in results)
    if total_questions <= 0:
        return 0.0
    return sum(r.score for r in results) / total_questions * 100


def category_stats(results: Sequence[QuizResult]) -> list[CategoryStats]:
    """Per-category quiz count and average percentage, most-practised first."""
    grouped: dict[str, list[QuizResult]] = {}
    for result in results:
        grouped.setdefault(result.category or "Unknown", []).append(result)
    stats = [
        CategoryStats(category=category, count=len(items), average_score=average_score(items))
        for category, items in grouped.items()
    ]
    return sorted(stats, key=lambda s: s.count, reverse=True)


class QuizStatistics:

    def __init__(self, repository: Repository):
        self.repository = repository
        self.results: list[QuizResult] = []

    def load(self) -> list[QuizResult]:
        self.results = self.repository.list_quiz_results()
        logger.info(f"Loaded {len(self.results)} quiz results")
        return self.results

    def average_score(self) -> float:
        return average_score(self.results)

    def category_stats(self) -> list[CategoryStats]:
        return category_stats(self.results)

    def delete_all(self) -> int:
        deleted = self.repository.delete_all_quiz_results()
        self.results = []
        return deleted
