"""
Unit tests for the mock interview flow and feedback parsing.
"""
import asyncio
import json

from config import InterviewSettings
from fakes import FakeLLM
from llm_client import GeminiError
from mock_interview import AI_RESPONSE_FAILED, INTERVIEW_TIPS, MockInterview, parse_feedback
from repository import INITIAL_QUESTIONS


def test_parse_feedback_json():
    raw = "```json\n" + json.dumps({
        "clarity": 0.8, "relevance": 1.4, "confidence": "high", "suggestions": "Quantify the impact.",
    }) + "\n```"
    feedback = parse_feedback(raw)
    assert feedback.clarity == 0.8
    assert feedback.relevance == 1.0
    assert feedback.confidence is None
    assert feedback.suggestions == "Quantify the impact."


def test_parse_feedback_prose():
    feedback = parse_feedback("  Good structure, but add an example.  ")
    assert feedback.clarity is None
    assert feedback.suggestions == "Good structure, but add an example."


def test_start_interview_uses_all_matching_questions(repository):
    interview = MockInterview(FakeLLM(), repository)

    first = interview.start_interview()

    assert first is not None
    assert len(interview.questions) == len(INITIAL_QUESTIONS)
    assert not interview.is_interview_complete
    assert interview.session.job_role == "Software Engineer"


def test_start_interview_filters_by_category(repository):
    settings = InterviewSettings(selected_categories={"Technical"})
    interview = MockInterview(FakeLLM(), repository, settings)

    question = interview.start_interview()

    assert question.text == "Describe a challenging project you worked on."
    assert interview.next_question() is None
    assert interview.is_interview_complete


def test_start_interview_without_matches(repository):
    settings = InterviewSettings(selected_job_role="UX Designer")
    interview = MockInterview(FakeLLM(), repository, settings)

    assert interview.start_interview() is None
    assert interview.is_interview_complete


def test_navigation(repository):
    interview = MockInterview(FakeLLM(), repository)
    interview.start_interview()

    assert interview.previous_question() is interview.questions[0]
    second = interview.next_question()
    assert second is interview.questions[1]
    assert interview.previous_question() is interview.questions[0]


def test_feedback_is_saved_with_response(repository):
    llm = FakeLLM(json.dumps({"clarity": 0.6, "relevance": 0.9, "confidence": 0.7,
                              "suggestions": "Use the STAR method."}))
    interview = MockInterview(llm, repository)
    question = interview.start_interview()

    feedback = asyncio.run(interview.generate_feedback("I once led a migration."))
    response = interview.save_response("I once led a migration.")

    assert feedback.suggestions == "Use the STAR method."
    assert question.text in llm.prompts[0]
    stored = repository.feedback_for(response.id)
    assert stored[0].text == "Use the STAR method."
    assert stored[0].score == 0.6
    assert question.has_response


def test_feedback_failure_returns_none(repository):
    interview = MockInterview(FakeLLM(error=GeminiError("down")), repository)
    interview.start_interview()
    assert asyncio.run(interview.generate_feedback("answer")) is None
    assert interview.current_feedback is None


def test_ai_response(repository):
    llm = FakeLLM("I would start by clarifying requirements.")
    interview = MockInterview(llm, repository, InterviewSettings(selected_job_role="Software Engineer"))
    interview.start_interview()

    answer = asyncio.run(interview.generate_ai_response())

    assert answer == "I would start by clarifying requirements."
    assert "As an experienced Software Engineer" in llm.prompts[0]


def test_ai_response_failure(repository):
    interview = MockInterview(FakeLLM(error=GeminiError("down")), repository)
    interview.start_interview()
    assert asyncio.run(interview.generate_ai_response()) == AI_RESPONSE_FAILED


def test_generate_tip(repository):
    assert MockInterview(FakeLLM(), repository).generate_tip() in INTERVIEW_TIPS
