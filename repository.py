"""
Repository
===========
All reads and writes against the local SQLite store. Children are deleted
explicitly before their parent.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Callable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from config import NO_CV_SUMMARY
from db import get_session
from models import (
    CVInfo,
    Education,
    Experience,
    Feedback,
    InterviewSessionRecord,
    Question,
    QuizQuestionResult,
    QuizResult,
    Response,
)
from response_parsing import CVData, QuizQuestion, StorageError

logger = logging.getLogger(__name__)

INITIAL_QUESTIONS = [
    ("Tell me about yourself.", "Behavioral", "Easy"),
    ("What are your greatest strengths?", "Behavioral", "Easy"),
    ("What is your greatest weakness?", "Behavioral", "Medium"),
    ("Why do you want to work here?", "Behavioral", "Medium"),
    ("Where do you see yourself in 5 years?", "Behavioral", "Medium"),
    ("Describe a challenging project you worked on.", "Technical", "Hard"),
    ("How do you handle stress and pressure?", "Behavioral", "Medium"),
    ("What is your leadership style?", "Behavioral", "Hard"),
    ("How do you handle conflict in the workplace?", "Behavioral", "Medium"),
    ("What are your salary expectations?", "Behavioral", "Medium"),
]


class Repository:

    def __init__(self, session_factory: Callable[[], AbstractContextManager[Session]] = get_session):
        self._session = session_factory

    # ── CV ────────────────────────────────────────────────────────────────────

    def save_cv(self, cv_data: CVData) -> CVInfo:
        now = datetime.now()
        cv_info = CVInfo(
            name=cv_data.name,
            email=cv_data.email,
            phone=cv_data.phone,
            summary=cv_data.summary,
            skills=list(cv_data.skills),
            created_at=now,
            updated_at=now,
        )
        try:
            with self._session() as session:
                session.add(cv_info)
                session.flush()
                for exp in cv_data.experience:
                    session.add(Experience(
                        cv_info_id=cv_info.id,
                        company=exp.company,
                        position=exp.position,
                        start_date=exp.start_date,
                        end_date=exp.end_date,
                        job_description=exp.job_description,
                    ))
                for edu in cv_data.education:
                    session.add(Education(
                        cv_info_id=cv_info.id,
                        institution=edu.institution,
                        degree=edu.degree,
                        field=edu.field,
                        start_date=edu.start_date,
                        end_date=edu.end_date,
                    ))
                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Save error: {e}")
            raise StorageError(e) from e
        logger.info(f"Saved CV for {cv_info.name} ({len(cv_data.experience)} roles, "
                    f"{len(cv_data.education)} education entries)")
        return cv_info

    def latest_cv(self) -> Optional[CVInfo]:
        with self._session() as session:
            statement = select(CVInfo).order_by(CVInfo.updated_at.desc()).limit(1)
            return session.exec(statement).first()

    def experiences_for(self, cv_id: uuid.UUID) -> list[Experience]:
        with self._session() as session:
            statement = select(Experience).where(Experience.cv_info_id == cv_id)
            return list(session.exec(statement).all())

    def education_for(self, cv_id: uuid.UUID) -> list[Education]:
        with self._session() as session:
            statement = select(Education).where(Education.cv_info_id == cv_id)
            return list(session.exec(statement).all())

    def delete_cv(self, cv_id: uuid.UUID) -> None:
        try:
            with self._session() as session:
                for exp in session.exec(select(Experience).where(Experience.cv_info_id == cv_id)).all():
                    session.delete(exp)
                for edu in session.exec(select(Education).where(Education.cv_info_id == cv_id)).all():
                    session.delete(edu)
                cv_info = session.get(CVInfo, cv_id)
                if cv_info is not None:
                    session.delete(cv_info)
                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting CV: {e}")
            raise StorageError(e) from e
        logger.info("Deleted CV and all related data")

    def cv_summary_context(self) -> str:
        """Summary of the most recently updated CV, for prompt context."""
        try:
            cv_info = self.latest_cv()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching CV summary: {e}")
            return NO_CV_SUMMARY
        if cv_info is None:
            logger.info("No CV found in the store.")
            return NO_CV_SUMMARY
        return cv_info.summary or NO_CV_SUMMARY

    # ── Interview questions & responses ───────────────────────────────────────

    def list_questions(self) -> list[Question]:
        with self._session() as session:
            return list(session.exec(select(Question).order_by(Question.timestamp)).all())

    def seed_initial_questions(self, job_role: str = "Software Engineer") -> list[Question]:
        """Create the starter question set if the store has none."""
        existing = self.list_questions()
        if existing:
            return existing
        created = []
        with self._session() as session:
            for text, category, difficulty in INITIAL_QUESTIONS:
                question = Question(text=text, category=category, difficulty=difficulty, job_role=job_role)
                session.add(question)
                created.append(question)
            session.commit()
        logger.info(f"Seeded {len(created)} initial questions")
        return created

    def start_interview_session(self, job_role: str, mode: str) -> InterviewSessionRecord:
        record = InterviewSessionRecord(job_role=job_role, mode=mode)
        with self._session() as session:
            session.add(record)
            session.commit()
        return record

    def save_response(self, question_id: uuid.UUID, text: str, audio_path: Optional[str] = None,
                      feedback_text: Optional[str] = None, feedback_score: Optional[float] = None) -> Response:
        response = Response(question_id=question_id, text=text, audio_path=audio_path)
        with self._session() as session:
            session.add(response)
            session.flush()
            question = session.get(Question, question_id)
            if question is not None:
                question.has_response = True
                session.add(question)
            if feedback_text is not None:
                session.add(Feedback(
                    response_id=response.id,
                    text=feedback_text,
                    score=feedback_score if feedback_score is not None else 0.0,
                ))
            session.commit()
        return response

    def responses_for(self, question_id: uuid.UUID) -> list[Response]:
        with self._session() as session:
            statement = select(Response).where(Response.question_id == question_id)
            return list(session.exec(statement).all())

    def feedback_for(self, response_id: uuid.UUID) -> list[Feedback]:
        with self._session() as session:
            statement = select(Feedback).where(Feedback.response_id == response_id)
            return list(session.exec(statement).all())

    # ── Quiz results ──────────────────────────────────────────────────────────

    def save_quiz_result(self, category: str, score: int, questions: Sequence[QuizQuestion],
                         selected_answers: Sequence[Optional[int]], duration: float) -> QuizResult:
        result = QuizResult(
            category=category,
            score=score,
            total_questions=len(questions),
            duration=duration,
        )
        with self._session() as session:
            session.add(result)
            session.flush()
            for question, selected in zip(questions, selected_answers):
                session.add(QuizQuestionResult(
                    quiz_result_id=result.id,
                    question_text=question.question_text,
                    options=list(question.options),
                    correct_option_index=question.correct_option_index,
                    selected_option_index=selected,
                ))
            session.commit()
        logger.info(f"Saved quiz result {score}/{len(questions)} for {category}")
        return result

    def list_quiz_results(self) -> list[QuizResult]:
        """All quiz results, newest first."""
        with self._session() as session:
            return list(session.exec(select(QuizResult).order_by(QuizResult.date.desc())).all())

    def question_results_for(self, quiz_result_id: uuid.UUID) -> list[QuizQuestionResult]:
        with self._session() as session:
            statement = select(QuizQuestionResult).where(QuizQuestionResult.quiz_result_id == quiz_result_id)
            return list(session.exec(statement).all())

    def delete_all_quiz_results(self) -> int:
        with self._session() as session:
            results = session.exec(select(QuizResult)).all()
            for question_result in session.exec(select(QuizQuestionResult)).all():
                session.delete(question_result)
            for result in results:
                session.delete(result)
            session.commit()
        logger.info(f"Deleted {len(results)} quiz results")
        return len(results)
